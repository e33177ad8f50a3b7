"""Build-lifecycle hooks: run the sync before a site build, cache state after it."""

import shutil
from pathlib import Path
from typing import Protocol

from ..models.config import SyncConfig
from .logger import SyncLogger
from .orchestrator import SyncOrchestrator
from .state import SyncStateData


class BuildCache(Protocol):
    """External cache that survives between build runs."""

    def restore(self, path: Path) -> bool:
        """Restore a cached file to path. Returns True if something was restored."""
        ...

    def save(self, path: Path) -> bool:
        """Store the file at path in the cache. Returns True on success."""
        ...


class DirectoryBuildCache:
    """BuildCache backed by a persistent directory.

    Files are stored under cache_dir by name, so two cached paths with the
    same filename share a slot.
    """

    def __init__(self, cache_dir: Path, logger: SyncLogger | None = None) -> None:
        self.cache_dir = Path(cache_dir)
        self.logger = logger or SyncLogger()

    def _slot(self, path: Path) -> Path:
        return self.cache_dir / Path(path).name

    def restore(self, path: Path) -> bool:
        slot = self._slot(path)
        if not slot.is_file():
            return False
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(slot, path)
        except OSError as e:
            self.logger.warn(f"Could not restore {path} from build cache: {e}")
            return False
        return True

    def save(self, path: Path) -> bool:
        path = Path(path)
        if not path.is_file():
            return False
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, self._slot(path))
        except OSError as e:
            self.logger.warn(f"Could not save {path} to build cache: {e}")
            return False
        return True


class BuildLifecycle:
    """Runs the content sync at the right point of a static site build."""

    def __init__(
        self,
        config: SyncConfig,
        cache: BuildCache | None = None,
        orchestrator: SyncOrchestrator | None = None,
        logger: SyncLogger | None = None,
    ) -> None:
        """Initialize the lifecycle adapter.

        Args:
            config: Sync configuration
            cache: Cache for the state file (directory cache at config.cache_dir if not provided)
            orchestrator: Orchestrator to run (created lazily from config if not provided)
            logger: Run-scoped logger
        """
        self.config = config
        self.logger = logger or SyncLogger(verbose=config.verbose, debug_tracebacks=config.verbose)
        self.cache = cache or DirectoryBuildCache(config.cache_dir, logger=self.logger)
        self._orchestrator = orchestrator

    @property
    def orchestrator(self) -> SyncOrchestrator:
        """Get or create the orchestrator."""
        if self._orchestrator is None:
            self._orchestrator = SyncOrchestrator(self.config, logger=self.logger)
        return self._orchestrator

    def on_pre_build(self) -> SyncStateData | None:
        """Restore cached state and sync content before any page is rendered.

        Returns:
            The resulting sync state, or None if skipped or tolerated failure

        Raises:
            Exception: The sync error, unless running in a tolerant hosting context
        """
        if self.config.dev_mode:
            self.logger.info("Development mode: skipping content sync")
            return None

        if self.cache.restore(self.config.state_file):
            self.logger.info(f"Restored sync state from build cache ({self.config.state_file})")
        else:
            self.logger.debug("No cached sync state found")

        try:
            return self.orchestrator.run(force_full_sync=self.config.force_full_sync)
        except Exception as e:
            self.logger.error("Content sync failed", e)
            if self.config.tolerant:
                self.logger.warn("Continuing build with existing content despite sync error")
                return None
            raise

    def on_post_build(self) -> bool:
        """Persist the state file into the build cache.

        Returns:
            True if the state file was cached
        """
        if self.config.dev_mode:
            return False
        if self.cache.save(self.config.state_file):
            self.logger.success("Saved sync state to build cache")
            return True
        self.logger.debug("No sync state to cache")
        return False
