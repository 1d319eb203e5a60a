import sys
from time import monotonic
from typing import Optional

from rich.console import Console


def _is_tty() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def format_elapsed(seconds: float) -> str:
    """12.3s, 4m05s or 1h02m."""
    s = max(0.0, float(seconds))
    if s < 60.0:
        return f"{s:.1f}s"
    minutes, sec = divmod(int(round(s)), 60)
    if minutes < 60:
        return f"{minutes}m{sec:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m"


class CliStatus:
    """
    Spinner around one CLI step, closed by a single result line.

    On a TTY a rich spinner runs until `complete` or `fail` is called;
    otherwise only the result line is printed, so captured logs stay clean.

    Example
    -------
    with CliStatus("Clustering categories...") as task:
        order, overlap = order_categories(categories)
        task.complete(f"Clustering {len(order)} categories ...Finished")
    """

    def __init__(self, desc: str, *, enabled: bool = True, show_elapsed: bool = True) -> None:
        self.desc = str(desc)
        self.enabled = bool(enabled)
        self.show_elapsed = bool(show_elapsed)
        self._console: Optional[Console] = None
        self._status = None
        self._t0 = 0.0
        self._done = False

    def __enter__(self) -> "CliStatus":
        self._t0 = monotonic()
        if self.enabled and _is_tty():
            self._console = Console()
            self._status = self._console.status(self.desc, spinner="dots", spinner_style="cyan")
            self._status.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._stop()

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def _finish(self, symbol: str, style: str, message: str) -> None:
        if self._done:
            return
        self._done = True
        self._stop()
        if self.show_elapsed:
            message = f"{message} [{format_elapsed(monotonic() - self._t0)}]"
        if self._console is not None:
            self._console.print(f"[{style}]{symbol}[/{style}] {message}")
        else:
            print(f"{symbol} {message}", flush=True)

    def complete(self, message: str) -> None:
        self._finish("✔︎", "green", message)

    def fail(self, message: str) -> None:
        self._finish("✘", "red", message)
