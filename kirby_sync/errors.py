"""Exception types raised by the content sync engine."""

from pathlib import Path


class KirbySyncError(Exception):
    """Base class for all sync errors."""


class TransientFetchError(KirbySyncError):
    """A single fetch attempt failed (network error, non-2xx status, bad body)."""

    def __init__(
        self,
        url: str,
        status: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.url = url
        self.status = status
        self.cause = cause
        if status is not None:
            message = f"HTTP {status} for {url}"
        else:
            message = f"Request to {url} failed: {cause}"
        super().__init__(message)


class ResourceUnavailableError(KirbySyncError):
    """A resource could not be fetched after exhausting all retries."""

    def __init__(
        self,
        url: str,
        status: int | None = None,
        cause: BaseException | None = None,
        attempts: int = 0,
    ) -> None:
        self.url = url
        self.status = status
        self.cause = cause
        self.attempts = attempts
        detail = f"status {status}" if status is not None else str(cause)
        super().__init__(f"Failed to fetch {url} after {attempts} attempt(s): {detail}")

    @property
    def is_not_found(self) -> bool:
        """True if the last attempt ended in a 404."""
        return self.status == 404


class InvalidConfigError(KirbySyncError):
    """The CMS returned a global or index document missing required fields."""


class StateCorruptError(KirbySyncError):
    """The persisted sync state could not be parsed."""


class WriteError(KirbySyncError):
    """Writing a file into the content tree failed."""

    def __init__(self, path: Path, cause: BaseException | None = None) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to write {self.path}: {cause}")
