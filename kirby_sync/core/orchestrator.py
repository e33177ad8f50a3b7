"""Sync orchestration: full and incremental mirroring of the CMS content tree.

A run moves through these phases:

    IDLE -> DISCOVERING -> FULL_SYNCING | INCREMENTAL_SYNCING -> DONE

Any failure during an incremental run sends it back through DISCOVERING into
a full sync, exactly once. A failure in full mode ends in FAILED and
propagates to the caller.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from ..errors import InvalidConfigError, ResourceUnavailableError, TransientFetchError
from ..models.config import SyncConfig
from ..models.content import PageSummary
from .client import KirbyClient
from .discovery import LanguagePass, fetch_global, fetch_index, language_passes
from .logger import SyncLogger
from .state import HashStore, SyncStateData, utc_now
from .writer import ContentWriter

GLOBAL_FILENAME = "global.json"
INDEX_FILENAME = "index.json"


class SyncMode(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


class SyncPhase(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    FULL_SYNCING = "full_syncing"
    INCREMENTAL_SYNCING = "incremental_syncing"
    DONE = "done"
    FAILED = "failed"


class PageStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FATAL = "fatal"


@dataclass
class PageOutcome:
    """Result of syncing a single page."""

    status: PageStatus
    uri: str
    url: str
    language: str | None = None
    written: bool = False
    reason: str = ""


@dataclass
class PassStats:
    """Counters for one language pass."""

    label: str
    changed_files: int = 0
    total_files: int = 0
    skipped: list[PageOutcome] = field(default_factory=list)


@dataclass
class SyncStats:
    """Aggregated result of a sync run."""

    mode: SyncMode | None = None
    fell_back: bool = False
    passes: list[PassStats] = field(default_factory=list)
    failures: list[PageOutcome] = field(default_factory=list)
    pruned: int = 0

    @property
    def changed_files(self) -> int:
        return sum(p.changed_files for p in self.passes)

    @property
    def total_files(self) -> int:
        return sum(p.total_files for p in self.passes)

    @property
    def skipped(self) -> list[PageOutcome]:
        return [outcome for p in self.passes for outcome in p.skipped]

    @property
    def up_to_date(self) -> bool:
        return self.mode is SyncMode.INCREMENTAL and self.changed_files == 0


class SyncOrchestrator:
    """Mirrors the CMS content tree into the local content directory."""

    def __init__(
        self,
        config: SyncConfig,
        client: KirbyClient | None = None,
        store: HashStore | None = None,
        writer: ContentWriter | None = None,
        logger: SyncLogger | None = None,
        clock: Callable[[], str] = utc_now,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Sync configuration (api_base_url is required)
            client: KirbyClient (built from config if not provided)
            store: HashStore (uses config.state_file if not provided)
            writer: ContentWriter (uses config.strict_writes if not provided)
            logger: Run-scoped logger
            clock: Returns the current time as an ISO-8601 string
        """
        self.config = config.validate()
        self.logger = logger or SyncLogger(verbose=config.verbose, debug_tracebacks=config.verbose)
        self.client = client or KirbyClient(
            config.api_base_url,
            retries=config.retries,
            retry_delay=config.retry_delay,
            backoff=config.backoff,
            timeout=config.timeout,
            on_retry=self._log_retry,
        )
        self.store = store or HashStore(config.state_file, logger=self.logger)
        self.writer = writer or ContentWriter(strict=config.strict_writes, logger=self.logger)
        self.clock = clock
        self.phase = SyncPhase.IDLE
        self.stats = SyncStats()
        self._seen: set[str] = set()

    @property
    def content_dir(self) -> Path:
        return self.config.content_dir

    def _log_retry(self, url: str, attempt: int, error: TransientFetchError) -> None:
        self.logger.warn(f"Attempt {attempt}/{self.client.retries} failed for {url}: {error}. Retrying...")

    def _transition(self, phase: SyncPhase) -> None:
        self.logger.debug(f"Phase {self.phase.value} -> {phase.value}")
        self.phase = phase

    # =========================================================================
    # Entry point
    # =========================================================================

    def run(self, force_full_sync: bool | None = None) -> SyncStateData:
        """Run a sync, choosing full or incremental mode.

        Args:
            force_full_sync: Force a full sync (defaults to config.force_full_sync)

        Returns:
            The sync state after the run

        Raises:
            InvalidConfigError: If the CMS global document is unusable
            ResourceUnavailableError: If a required resource fails in full mode
            WriteError: If a strict write fails in full mode
        """
        force = self.config.force_full_sync if force_full_sync is None else force_full_sync
        self.stats = SyncStats()
        self.phase = SyncPhase.IDLE

        try:
            self._transition(SyncPhase.DISCOVERING)
            previous = self.store.load()

            if force:
                self.logger.info("Full sync forced")
                return self._full_sync()
            if previous.is_fresh:
                self.logger.info("No previous sync state found, running full sync")
                return self._full_sync()

            try:
                return self._incremental_sync(previous)
            except InvalidConfigError:
                raise
            except Exception as e:
                self.logger.warn(f"Incremental sync failed ({e}), falling back to full sync")
                self._transition(SyncPhase.DISCOVERING)
                self.stats = SyncStats(fell_back=True)
                return self._full_sync()
        except Exception:
            self._transition(SyncPhase.FAILED)
            raise

    # =========================================================================
    # Modes
    # =========================================================================

    def _full_sync(self) -> SyncStateData:
        """Wipe the content tree and mirror every resource."""
        root_global, global_config = fetch_global(self.client)
        passes = language_passes(global_config, self.content_dir)

        self._transition(SyncPhase.FULL_SYNCING)
        self.stats.mode = SyncMode.FULL
        self.logger.info(f"Starting full sync from {self.client.base_url}")

        self.writer.clean(self.content_dir)
        state = self.store.reset(self.clock())
        self._seen = set()

        for lang_pass in passes:
            self.stats.passes.append(
                self._sync_pass(lang_pass, state, root_global, change_aware=False)
            )

        self.store.save(state)
        self._transition(SyncPhase.DONE)
        self.logger.success(
            f"Full sync complete: {self.stats.total_files} files "
            f"across {len(passes) - 1} language(s)"
        )
        self._report_skipped()
        return state

    def _incremental_sync(self, state: SyncStateData) -> SyncStateData:
        """Fetch everything, but only write resources whose content changed."""
        root_global, global_config = fetch_global(self.client)
        passes = language_passes(global_config, self.content_dir)

        self._transition(SyncPhase.INCREMENTAL_SYNCING)
        self.stats.mode = SyncMode.INCREMENTAL
        self.logger.info(f"Starting incremental sync (last sync: {state.last_sync})")
        self._seen = set()

        for lang_pass in passes:
            self.stats.passes.append(
                self._sync_pass(lang_pass, state, root_global, change_aware=True)
            )

        self.stats.pruned = self._prune(state)
        state.last_sync = self.clock()
        self.store.save(state)
        self._transition(SyncPhase.DONE)

        if self.stats.up_to_date:
            self.logger.success(f"Content is up to date ({self.stats.total_files} files checked)")
        else:
            self.logger.success(
                f"Incremental sync complete: {self.stats.changed_files} of "
                f"{self.stats.total_files} files updated"
            )
        self._report_skipped()
        return state

    # =========================================================================
    # Per-language pass
    # =========================================================================

    def _sync_pass(
        self,
        lang_pass: LanguagePass,
        state: SyncStateData,
        root_global: Any,
        change_aware: bool,
    ) -> PassStats:
        """Sync global.json, index.json and every page for one language pass.

        Args:
            lang_pass: The language prefix and destination directory
            state: Sync state to read and update
            root_global: Already-fetched unprefixed global.json
            change_aware: Only write resources that changed or are missing

        Returns:
            Counters for this pass
        """
        stats = PassStats(label=lang_pass.label)
        language = lang_pass.language
        self.logger.info(f"Syncing {lang_pass.label} -> {lang_pass.dest_dir}")

        global_url = self.client.resource_url(GLOBAL_FILENAME, language)
        global_doc = root_global if lang_pass.is_root else self.client.fetch_json(global_url)
        self._sync_resource(
            global_url, global_doc, lang_pass.dest_dir / GLOBAL_FILENAME, state, change_aware, stats
        )

        index_url = self.client.resource_url(INDEX_FILENAME, language)
        index_doc, pages = fetch_index(self.client, language)
        self._sync_resource(
            index_url, index_doc, lang_pass.dest_dir / INDEX_FILENAME, state, change_aware, stats
        )

        for page in pages:
            outcome = self._sync_page(page, lang_pass, state, change_aware, stats)
            if outcome.status is PageStatus.SKIPPED:
                stats.skipped.append(outcome)

        self.logger.debug(
            f"{lang_pass.label}: {stats.changed_files}/{stats.total_files} files written"
        )
        return stats

    def _sync_page(
        self,
        page: PageSummary,
        lang_pass: LanguagePass,
        state: SyncStateData,
        change_aware: bool,
        stats: PassStats,
    ) -> PageOutcome:
        """Fetch and write one page.

        Section pages embed their items, so they need no extra request.
        """
        url = self.client.resource_url(page.filename, lang_pass.language)
        if page.is_reserved:
            self.logger.warn(
                f"Skipping page {page.uri} ({lang_pass.label}): "
                f"it would overwrite the pass's {page.filename}"
            )
            return PageOutcome(
                status=PageStatus.SKIPPED,
                uri=page.uri,
                url=url,
                language=lang_pass.language,
                reason=f"reserved filename {page.filename}",
            )

        try:
            document = self.client.fetch_json(url)
        except ResourceUnavailableError as e:
            if self.config.skip_missing_pages and e.is_not_found:
                self._seen.add(url)
                self.logger.warn(f"Skipping missing page {page.uri} ({lang_pass.label})")
                return PageOutcome(
                    status=PageStatus.SKIPPED,
                    uri=page.uri,
                    url=url,
                    language=lang_pass.language,
                    reason=str(e),
                )
            self.stats.failures.append(
                PageOutcome(
                    status=PageStatus.FATAL,
                    uri=page.uri,
                    url=url,
                    language=lang_pass.language,
                    reason=str(e),
                )
            )
            raise

        written = self._sync_resource(
            url, document, lang_pass.dest_dir / page.filename, state, change_aware, stats
        )
        return PageOutcome(
            status=PageStatus.OK,
            uri=page.uri,
            url=url,
            language=lang_pass.language,
            written=written,
        )

    def _sync_resource(
        self,
        url: str,
        value: Any,
        dest: Path,
        state: SyncStateData,
        change_aware: bool,
        stats: PassStats,
    ) -> bool:
        """Write a fetched resource if the mode's write gate allows it.

        Returns:
            True if the file was written
        """
        self._seen.add(url)
        stats.total_files += 1

        if change_aware and not self.store.has_changed(url, value, state) and self.writer.exists(dest):
            return False

        if not self.writer.write_json(dest, value):
            return False

        self.store.record(url, value, state)
        stats.changed_files += 1
        self.logger.debug(f"Wrote {dest}")
        return True

    def _prune(self, state: SyncStateData) -> int:
        """Drop fingerprints of resources no longer served by the CMS."""
        stale = [url for url in state.content_hashes if url not in self._seen]
        for url in stale:
            del state.content_hashes[url]
        if stale:
            self.logger.info(f"Forgot {len(stale)} resource(s) no longer in the CMS")
        return len(stale)

    def _report_skipped(self) -> None:
        skipped = self.stats.skipped
        if skipped:
            self.logger.warn(
                f"{len(skipped)} page(s) skipped: "
                + ", ".join(f"{o.language or 'root'}/{o.uri}" for o in skipped)
            )
