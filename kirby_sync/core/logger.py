"""Run-scoped console logger with a consistent plugin prefix."""

from rich.console import Console
from rich.markup import escape
from rich.traceback import Traceback


class SyncLogger:
    """Prefixed logger writing to a rich Console.

    One instance is created per run and handed to every component, so output
    can be redirected (e.g. to a recording console in tests) without touching
    global state.
    """

    def __init__(
        self,
        name: str = "kirby-sync",
        console: Console | None = None,
        verbose: bool = False,
        debug_tracebacks: bool = False,
    ) -> None:
        """Initialize the logger.

        Args:
            name: Prefix shown in front of every line
            console: Console to write to (stderr console if not provided)
            verbose: Emit debug messages
            debug_tracebacks: Print tracebacks alongside logged exceptions
        """
        self.name = name
        self.console = console or Console(stderr=True)
        self.verbose = verbose
        self.debug_tracebacks = debug_tracebacks

    @property
    def prefix(self) -> str:
        return f"[bold cyan]\\[{escape(self.name)}][/bold cyan]"

    def _emit(self, message: str, style: str | None = None) -> None:
        text = escape(message)
        if style:
            text = f"[{style}]{text}[/{style}]"
        self.console.print(f"{self.prefix} {text}", highlight=False)

    def info(self, message: str) -> None:
        self._emit(message, "dim")

    def success(self, message: str) -> None:
        self._emit(f"✓ {message}", "green")

    def warn(self, message: str) -> None:
        self._emit(f"⚠ {message}", "yellow")

    def error(self, message: str, error: BaseException | None = None) -> None:
        """Log an error, optionally with the exception that caused it."""
        if error is not None:
            message = f"{message}: {error}"
        self._emit(f"✖ {message}", "red")
        if error is not None and self.debug_tracebacks and error.__traceback__ is not None:
            self.console.print(
                Traceback.from_exception(type(error), error, error.__traceback__)
            )

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit(message, "blue")
