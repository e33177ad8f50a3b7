"""Data models for the sync system."""

from .config import SyncConfig, parse_bool
from .content import GlobalConfig, PageSummary, parse_index

__all__ = [
    "GlobalConfig",
    "PageSummary",
    "SyncConfig",
    "parse_bool",
    "parse_index",
]
