"""Language and content index discovery."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..models.content import GlobalConfig, PageSummary, parse_index
from .client import KirbyClient


@dataclass(frozen=True)
class LanguagePass:
    """One traversal of the CMS tree.

    language is the URL prefix (None for the unprefixed root) and dest_dir the
    directory the pass writes into.
    """

    language: str | None
    dest_dir: Path

    @property
    def label(self) -> str:
        return self.language or "root"

    @property
    def is_root(self) -> bool:
        return self.language is None


def discover_languages(global_config: GlobalConfig) -> list[str]:
    """All language codes, default first, without duplicates."""
    languages: list[str] = []
    for code in global_config.languages:
        if code not in languages:
            languages.append(code)
    return languages


def language_passes(global_config: GlobalConfig, content_dir: Path) -> list[LanguagePass]:
    """Build the ordered list of passes for a sync run.

    The default language is synced twice: once unprefixed into the content
    root and once under its own language directory. Translations follow in
    CMS order.
    """
    content_dir = Path(content_dir)
    passes = [LanguagePass(language=None, dest_dir=content_dir)]
    for code in discover_languages(global_config):
        passes.append(LanguagePass(language=code, dest_dir=content_dir / code))
    return passes


def fetch_global(
    client: KirbyClient,
    language: str | None = None,
) -> tuple[Any, GlobalConfig]:
    """Fetch and parse global.json.

    Returns:
        Tuple of (raw document, parsed GlobalConfig)

    Raises:
        ResourceUnavailableError: If the document cannot be fetched
        InvalidConfigError: If it lacks a usable defaultLang.code
    """
    raw = client.get("global.json", language)
    return raw, GlobalConfig.from_dict(raw)


def fetch_index(
    client: KirbyClient,
    language: str | None = None,
) -> tuple[Any, list[PageSummary]]:
    """Fetch and parse index.json for a language (None = unprefixed root)."""
    raw = client.get("index.json", language)
    return raw, parse_index(raw)
