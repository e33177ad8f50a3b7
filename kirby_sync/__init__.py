"""Mirror Kirby CMS content into a local tree for static site builds."""

__version__ = "1.0.0"
