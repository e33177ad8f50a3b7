"""Content fingerprinting and persisted sync state."""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..errors import StateCorruptError
from .logger import SyncLogger

STATE_VERSION = "1.0.0"


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def fingerprint(value: Any) -> str:
    """Compute a SHA-256 fingerprint of a JSON value.

    Keys are sorted recursively before hashing so that a change in field
    order alone never registers as a content change.
    """
    canonical = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class SyncStateData:
    """Sync state persisted between builds."""

    last_sync: str | None = None
    content_hashes: dict[str, str] = field(default_factory=dict)  # resource URL -> fingerprint
    version: str = STATE_VERSION

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary using the on-disk key names."""
        return {
            "lastSync": self.last_sync,
            "contentHashes": dict(self.content_hashes),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SyncStateData":
        """Create from a parsed state file.

        Raises:
            StateCorruptError: If the payload does not match the schema
        """
        if not isinstance(data, dict):
            raise StateCorruptError("state file is not a JSON object")

        last_sync = data.get("lastSync")
        if last_sync is not None and not isinstance(last_sync, str):
            raise StateCorruptError("lastSync must be a string or null")

        hashes = data.get("contentHashes", {})
        if not isinstance(hashes, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in hashes.items()
        ):
            raise StateCorruptError("contentHashes must map strings to strings")

        version = data.get("version", STATE_VERSION)
        if not isinstance(version, str):
            raise StateCorruptError("version must be a string")
        if version.split(".")[0] != STATE_VERSION.split(".")[0]:
            raise StateCorruptError(f"unsupported state version {version}")

        return cls(last_sync=last_sync, content_hashes=dict(hashes), version=version)

    @property
    def is_fresh(self) -> bool:
        """True if no sync has ever completed against this state."""
        return self.last_sync is None


class HashStore:
    """Loads, saves and queries the content fingerprint map."""

    def __init__(self, state_file: Path, logger: SyncLogger | None = None) -> None:
        """Initialize the store.

        Args:
            state_file: Path to the sync-state JSON file
            logger: Logger for recoverable problems
        """
        self.state_file = Path(state_file)
        self.logger = logger or SyncLogger()

    def load(self) -> SyncStateData:
        """Load state from disk, or return a fresh state.

        Never raises: a missing, unreadable or malformed file all yield an
        empty state, which forces a full sync.
        """
        if not self.state_file.exists():
            self.logger.debug(f"No sync state at {self.state_file}")
            return SyncStateData()

        try:
            with open(self.state_file, encoding="utf-8") as f:
                data = json.load(f)
            return SyncStateData.from_dict(data)
        except (OSError, ValueError, StateCorruptError) as e:
            self.logger.warn(f"Ignoring unreadable sync state {self.state_file}: {e}")
            return SyncStateData()

    def save(self, state: SyncStateData) -> bool:
        """Write state to disk. Failures are logged, not raised.

        Returns:
            True if the file was written
        """
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.state_file, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2)
                f.write("\n")
        except OSError as e:
            self.logger.error(f"Could not save sync state to {self.state_file}", e)
            return False
        return True

    @staticmethod
    def reset(now: str | None = None) -> SyncStateData:
        """Create an empty state stamped with the given sync time."""
        return SyncStateData(last_sync=now or utc_now())

    @staticmethod
    def has_changed(url: str, value: Any, state: SyncStateData) -> bool:
        """Check whether a resource differs from its last recorded fingerprint."""
        previous = state.content_hashes.get(url)
        if previous is None:
            return True
        return previous != fingerprint(value)

    @staticmethod
    def record(url: str, value: Any, state: SyncStateData) -> str:
        """Store the fingerprint of a resource and return it."""
        digest = fingerprint(value)
        state.content_hashes[url] = digest
        return digest

    def status(self, state: SyncStateData) -> dict[str, Any]:
        """Get a summary of the sync state."""
        return {
            "state_file": str(self.state_file),
            "exists": self.state_file.exists(),
            "version": state.version,
            "last_sync": state.last_sync,
            "tracked_resources": len(state.content_hashes),
            "resources": [
                {"url": url, "hash": digest[:8] + "..."}
                for url, digest in sorted(state.content_hashes.items())
            ],
        }
