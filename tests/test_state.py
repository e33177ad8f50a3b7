"""Tests for content fingerprinting and sync state persistence."""

import json
import tempfile
from pathlib import Path

import pytest

from kirby_sync.core.state import STATE_VERSION, HashStore, SyncStateData, fingerprint
from kirby_sync.errors import StateCorruptError

ABOUT = {
    "title": "About Us",
    "content": "This is our about page content.",
    "lastModified": "2024-01-01",
}


class TestFingerprint:
    """Tests for fingerprint()."""

    def test_deterministic(self) -> None:
        hash1 = fingerprint(ABOUT)
        hash2 = fingerprint(dict(ABOUT))

        assert hash1 == hash2
        assert len(hash1) == 64  # SHA-256 hex length

    def test_changed_value(self) -> None:
        modified = {**ABOUT, "lastModified": "2024-01-15"}
        assert fingerprint(ABOUT) != fingerprint(modified)

    def test_added_key(self) -> None:
        assert fingerprint(ABOUT) != fingerprint({**ABOUT, "draft": False})

    def test_key_order_ignored(self) -> None:
        reordered = {k: ABOUT[k] for k in reversed(list(ABOUT))}
        assert fingerprint(ABOUT) == fingerprint(reordered)

    def test_nested_key_order_ignored(self) -> None:
        a = {"items": [{"a": 1, "b": 2}], "title": "x"}
        b = {"title": "x", "items": [{"b": 2, "a": 1}]}
        assert fingerprint(a) == fingerprint(b)

    def test_list_order_matters(self) -> None:
        assert fingerprint([{"uri": "a"}, {"uri": "b"}]) != fingerprint([{"uri": "b"}, {"uri": "a"}])

    def test_unicode(self) -> None:
        assert fingerprint({"title": "Über uns"}) != fingerprint({"title": "Uber uns"})


class TestHasChanged:
    """Tests for change detection."""

    URL = "https://cms.test/about.json"

    def test_no_entry(self) -> None:
        assert HashStore.has_changed(self.URL, ABOUT, SyncStateData()) is True

    def test_same_fingerprint(self) -> None:
        state = SyncStateData(content_hashes={self.URL: fingerprint(ABOUT)})
        assert HashStore.has_changed(self.URL, ABOUT, state) is False

    def test_different_fingerprint(self) -> None:
        state = SyncStateData(content_hashes={self.URL: fingerprint(ABOUT)})
        modified = {**ABOUT, "content": "Updated content with new information."}
        assert HashStore.has_changed(self.URL, modified, state) is True

    def test_record(self) -> None:
        state = SyncStateData()
        digest = HashStore.record(self.URL, ABOUT, state)

        assert state.content_hashes == {self.URL: digest}
        assert HashStore.has_changed(self.URL, ABOUT, state) is False


class TestSyncStateData:
    """Tests for the state model."""

    def test_defaults(self) -> None:
        state = SyncStateData()

        assert state.last_sync is None
        assert state.content_hashes == {}
        assert state.version == STATE_VERSION
        assert state.is_fresh

    def test_to_dict_uses_file_keys(self) -> None:
        state = SyncStateData(last_sync="2026-01-31T12:00:00+00:00", content_hashes={"u": "h"})

        assert state.to_dict() == {
            "lastSync": "2026-01-31T12:00:00+00:00",
            "contentHashes": {"u": "h"},
            "version": "1.0.0",
        }

    def test_from_dict_rejects_bad_hashes(self) -> None:
        with pytest.raises(StateCorruptError):
            SyncStateData.from_dict({"lastSync": None, "contentHashes": {"u": 1}})

    def test_from_dict_rejects_bad_last_sync(self) -> None:
        with pytest.raises(StateCorruptError):
            SyncStateData.from_dict({"lastSync": 12345, "contentHashes": {}})

    def test_from_dict_rejects_other_major_version(self) -> None:
        with pytest.raises(StateCorruptError):
            SyncStateData.from_dict({"lastSync": None, "contentHashes": {}, "version": "2.0.0"})

    def test_from_dict_accepts_minor_version(self) -> None:
        state = SyncStateData.from_dict({"lastSync": None, "contentHashes": {}, "version": "1.2.0"})
        assert state.version == "1.2.0"


class TestHashStore:
    """Tests for loading and saving state files."""

    def test_load_missing_file(self, logger) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = HashStore(Path(tmpdir) / "sync-state.json", logger=logger)
            state = store.load()

            assert state.is_fresh
            assert state.content_hashes == {}

    def test_save_and_load(self, logger) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            state_file = Path(tmpdir) / "nested" / "sync-state.json"
            store = HashStore(state_file, logger=logger)

            state = HashStore.reset("2026-01-31T12:00:00+00:00")
            HashStore.record("https://cms.test/home.json", {"title": "Home"}, state)
            assert store.save(state) is True

            loaded = HashStore(state_file, logger=logger).load()

            assert loaded.last_sync == "2026-01-31T12:00:00+00:00"
            assert loaded.content_hashes == state.content_hashes
            assert state_file.read_text().endswith("\n")

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "[]",
            '{"lastSync": null, "contentHashes": []}',
            '{"lastSync": 5}',
            "",
        ],
    )
    def test_load_corrupt_file(self, logger, content: str) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            state_file = Path(tmpdir) / "sync-state.json"
            state_file.write_text(content)

            state = HashStore(state_file, logger=logger).load()

            assert state.is_fresh
            assert state.content_hashes == {}
            assert "Ignoring unreadable sync state" in logger.console.file.getvalue()

    def test_save_failure_is_not_fatal(self, logger) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            # A directory where the file should be makes open() fail
            state_file = Path(tmpdir) / "sync-state.json"
            state_file.mkdir()

            assert HashStore(state_file, logger=logger).save(SyncStateData()) is False
            assert "Could not save sync state" in logger.console.file.getvalue()

    def test_reset(self) -> None:
        state = HashStore.reset("2026-01-31T12:00:00+00:00")

        assert state.last_sync == "2026-01-31T12:00:00+00:00"
        assert state.content_hashes == {}
        assert not state.is_fresh

    def test_status(self, logger) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = HashStore(Path(tmpdir) / "sync-state.json", logger=logger)
            state = SyncStateData(last_sync="2026-01-31", content_hashes={"u": "abcdef0123456789"})

            status = store.status(state)

            assert status["tracked_resources"] == 1
            assert status["exists"] is False
            assert status["resources"] == [{"url": "u", "hash": "abcdef01..."}]

    def test_saved_file_schema(self, logger) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            state_file = Path(tmpdir) / "sync-state.json"
            HashStore(state_file, logger=logger).save(HashStore.reset("2026-01-31"))

            data = json.loads(state_file.read_text())

            assert set(data) == {"lastSync", "contentHashes", "version"}
