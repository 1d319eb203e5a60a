import os
import sys
import logging

# Third-party loggers that flood the console while saving hundreds of frames.
for _name in ("fontTools.subset", "matplotlib.font_manager", "PIL.PngImagePlugin"):
    logging.getLogger(_name).setLevel(logging.ERROR)

_PREFIX = {logging.WARNING: "Warning: ", logging.ERROR: "Error: ", logging.CRITICAL: "Error: "}
_ANSI = {logging.WARNING: "\033[33m", logging.ERROR: "\033[31m", logging.CRITICAL: "\033[31m"}


class PrefixFormatter(logging.Formatter):
    """
    Plain message with a 'Warning: ' / 'Error: ' prefix; with ``color``
    the prefixed line is also wrapped in yellow / red ANSI codes.
    """

    def __init__(self, color: bool = False) -> None:
        super().__init__()
        self.color = bool(color)

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        prefix = _PREFIX.get(record.levelno, "")
        if prefix and not msg.startswith(prefix):
            msg = prefix + msg
        if self.color and record.levelno in _ANSI:
            msg = f"{_ANSI[record.levelno]}{msg}\033[0m"
        return msg


def _supports_color(stream) -> bool:
    if os.environ.get("NO_COLOR") is not None:
        return False
    if os.environ.get("TERM", "").lower() == "dumb":
        return False
    return os.name != "nt" and bool(getattr(stream, "isatty", lambda: False)())


def setup_logging(log_file_path: str, verbose: bool = False) -> logging.Logger:
    """
    Send root logging to ``log_file_path`` and stdout; an old log at the
    same path is replaced. ``verbose`` switches from INFO to DEBUG.
    """
    if log_file_path.endswith(".log") and os.path.exists(log_file_path):
        os.remove(log_file_path)
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger()
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    handlers = [
        (logging.FileHandler(log_file_path, encoding="utf-8"), PrefixFormatter()),
        (logging.StreamHandler(sys.stdout), PrefixFormatter(color=_supports_color(sys.stdout))),
    ]
    for handler, formatter in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
