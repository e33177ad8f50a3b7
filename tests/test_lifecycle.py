"""Tests for the build-lifecycle adapter and its state cache."""

from dataclasses import replace
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from kirby_sync.core.lifecycle import BuildLifecycle, DirectoryBuildCache
from kirby_sync.core.orchestrator import SyncMode
from kirby_sync.core.state import SyncStateData
from kirby_sync.errors import ResourceUnavailableError


class TestDirectoryBuildCache:
    """Tests for the directory-backed cache."""

    def test_save_and_restore(self, tmp_path: Path, logger) -> None:
        cache = DirectoryBuildCache(tmp_path / "cache", logger=logger)
        state_file = tmp_path / "work" / "sync-state.json"
        state_file.parent.mkdir()
        state_file.write_text('{"lastSync": null}')

        assert cache.save(state_file) is True
        state_file.unlink()

        assert cache.restore(state_file) is True
        assert state_file.read_text() == '{"lastSync": null}'

    def test_restore_empty_cache(self, tmp_path: Path, logger) -> None:
        cache = DirectoryBuildCache(tmp_path / "cache", logger=logger)
        assert cache.restore(tmp_path / "sync-state.json") is False

    def test_save_missing_file(self, tmp_path: Path, logger) -> None:
        cache = DirectoryBuildCache(tmp_path / "cache", logger=logger)
        assert cache.save(tmp_path / "sync-state.json") is False


class TestOnPreBuild:
    """Tests for the pre-build hook."""

    def test_dev_mode_skips(self, config, logger) -> None:
        orchestrator = MagicMock()
        lifecycle = BuildLifecycle(replace(config, dev_mode=True), orchestrator=orchestrator, logger=logger)

        assert lifecycle.on_pre_build() is None
        orchestrator.run.assert_not_called()
        assert "Development mode" in logger.console.file.getvalue()

    def test_runs_sync(self, config, logger) -> None:
        orchestrator = MagicMock()
        orchestrator.run.return_value = SyncStateData(last_sync="now")
        lifecycle = BuildLifecycle(
            replace(config, force_full_sync=True), orchestrator=orchestrator, logger=logger
        )

        result = lifecycle.on_pre_build()

        assert result.last_sync == "now"
        orchestrator.run.assert_called_once_with(force_full_sync=True)

    def test_failure_raises(self, config, logger) -> None:
        orchestrator = MagicMock()
        orchestrator.run.side_effect = ResourceUnavailableError("https://cms.test/global.json", status=503)
        lifecycle = BuildLifecycle(config, orchestrator=orchestrator, logger=logger)

        with pytest.raises(ResourceUnavailableError):
            lifecycle.on_pre_build()

        assert "Content sync failed" in logger.console.file.getvalue()

    def test_tolerant_context_continues(self, config, logger) -> None:
        orchestrator = MagicMock()
        orchestrator.run.side_effect = ResourceUnavailableError("https://cms.test/global.json", status=503)
        lifecycle = BuildLifecycle(replace(config, tolerant=True), orchestrator=orchestrator, logger=logger)

        assert lifecycle.on_pre_build() is None
        assert "Continuing build" in logger.console.file.getvalue()

    def test_missing_url_tolerated(self, config, logger) -> None:
        lifecycle = BuildLifecycle(replace(config, api_base_url="", tolerant=True), logger=logger)
        assert lifecycle.on_pre_build() is None

    def test_missing_url_raises(self, config, logger) -> None:
        lifecycle = BuildLifecycle(replace(config, api_base_url=""), logger=logger)

        with pytest.raises(ValueError, match="Missing Kirby CMS URL"):
            lifecycle.on_pre_build()

    def test_restores_state_before_sync(self, config, logger) -> None:
        cache = MagicMock()
        cache.restore.return_value = True
        orchestrator = MagicMock()
        calls: list[str] = []
        cache.restore.side_effect = lambda path: calls.append("restore") or True
        orchestrator.run.side_effect = lambda **kwargs: calls.append("run")

        BuildLifecycle(config, cache=cache, orchestrator=orchestrator, logger=logger).on_pre_build()

        cache.restore.assert_called_once_with(config.state_file)
        assert calls == ["restore", "run"]


class TestOnPostBuild:
    """Tests for the post-build hook."""

    def test_saves_state(self, config, logger) -> None:
        config.state_file.parent.mkdir(parents=True)
        config.state_file.write_text("{}")
        lifecycle = BuildLifecycle(config, orchestrator=MagicMock(), logger=logger)

        assert lifecycle.on_post_build() is True
        assert (config.cache_dir / config.state_file.name).exists()

    def test_nothing_to_save(self, config, logger) -> None:
        lifecycle = BuildLifecycle(config, orchestrator=MagicMock(), logger=logger)
        assert lifecycle.on_post_build() is False

    def test_dev_mode(self, config, logger) -> None:
        lifecycle = BuildLifecycle(replace(config, dev_mode=True), orchestrator=MagicMock(), logger=logger)
        assert lifecycle.on_post_build() is False


def test_cache_round_trip_enables_incremental(make_orchestrator, config, logger) -> None:
    """A state file cached after one build makes the next build incremental."""
    first = BuildLifecycle(config, orchestrator=make_orchestrator(), logger=logger)
    first.on_pre_build()
    first.on_post_build()

    # Fresh build machine: state file gone, build cache kept
    config.state_file.unlink()

    orchestrator = make_orchestrator()
    BuildLifecycle(config, orchestrator=orchestrator, logger=logger).on_pre_build()

    assert orchestrator.stats.mode is SyncMode.INCREMENTAL
    assert orchestrator.stats.up_to_date
