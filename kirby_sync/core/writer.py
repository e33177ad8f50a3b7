"""Filesystem operations for the local content tree."""

import json
import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ..errors import WriteError
from .logger import SyncLogger


class ContentWriter:
    """Reads and writes JSON files under the content directory."""

    def __init__(self, strict: bool = True, logger: SyncLogger | None = None) -> None:
        """Initialize the writer.

        Args:
            strict: Raise WriteError on failure instead of logging it
            logger: Logger for non-strict failures
        """
        self.strict = strict
        self.logger = logger or SyncLogger()

    @staticmethod
    def ensure_dir(path: Path) -> None:
        """Create a directory and its parents if missing."""
        Path(path).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def exists(path: Path) -> bool:
        return Path(path).is_file()

    def write_json(self, path: Path, value: Any) -> bool:
        """Write a JSON value to a file, overwriting any existing content.

        Args:
            path: Destination file
            value: JSON-serializable value

        Returns:
            True if written, False if a non-strict write failed

        Raises:
            WriteError: In strict mode, when the file cannot be written
        """
        path = Path(path)
        try:
            self.ensure_dir(path.parent)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
        except OSError as e:
            error = WriteError(path, e)
            if self.strict:
                raise error from e
            self.logger.error("Write failed", error)
            return False
        return True

    @staticmethod
    def read_json(path: Path, default: Any = None) -> Any:
        """Read a JSON file, returning default if it is missing or unparsable."""
        path = Path(path)
        if not path.is_file():
            return default
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError):
            return default

    def clean(self, path: Path, exclude: Iterable[str] = ()) -> bool:
        """Remove everything inside a directory, then make sure it exists.

        Args:
            path: Directory to empty
            exclude: Entry names directly under path to keep

        Returns:
            True if cleaned, False if a non-strict clean failed

        Raises:
            WriteError: In strict mode, when an entry cannot be removed
        """
        path = Path(path)
        keep = set(exclude)
        target = path
        try:
            if path.is_dir():
                for entry in path.iterdir():
                    if entry.name in keep:
                        continue
                    target = entry
                    if entry.is_dir() and not entry.is_symlink():
                        shutil.rmtree(entry)
                    else:
                        entry.unlink()
            elif path.exists():
                path.unlink()
            target = path
            self.ensure_dir(path)
        except OSError as e:
            error = WriteError(target, e)
            if self.strict:
                raise error from e
            self.logger.error("Clean failed", error)
            return False
        self.logger.debug(f"Cleaned {path}")
        return True
