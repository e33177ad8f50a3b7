"""Core sync functionality."""

from .client import KirbyClient
from .discovery import LanguagePass, discover_languages, fetch_global, fetch_index, language_passes
from .lifecycle import BuildCache, BuildLifecycle, DirectoryBuildCache
from .logger import SyncLogger
from .orchestrator import (
    PageOutcome,
    PageStatus,
    PassStats,
    SyncMode,
    SyncOrchestrator,
    SyncPhase,
    SyncStats,
)
from .state import HashStore, SyncStateData, fingerprint
from .writer import ContentWriter

__all__ = [
    "BuildCache",
    "BuildLifecycle",
    "ContentWriter",
    "DirectoryBuildCache",
    "HashStore",
    "KirbyClient",
    "LanguagePass",
    "PageOutcome",
    "PageStatus",
    "PassStats",
    "SyncLogger",
    "SyncMode",
    "SyncOrchestrator",
    "SyncPhase",
    "SyncStateData",
    "SyncStats",
    "discover_languages",
    "fetch_global",
    "fetch_index",
    "fingerprint",
    "language_passes",
]
