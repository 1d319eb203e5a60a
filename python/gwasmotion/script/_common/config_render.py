import logging
import sys
from typing import Optional, Sequence

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

Rows = Sequence[tuple[str, object]]


def _emit_info(logger: logging.Logger, message: str, *, to_file: bool) -> None:
    """Hand one INFO record to the file handlers only, or to the stream handlers only."""
    record = logger.makeRecord(logger.name, logging.INFO, __file__, 0, message, (), None)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) == to_file:
            handler.handle(record)


def truncate_line(text: object, max_chars: int = 60, mark: str = "***") -> str:
    s = str(text)
    if len(s) <= max_chars:
        return s
    if max_chars <= len(mark):
        return mark[:max(0, max_chars)]
    return s[: max_chars - len(mark)] + mark


def _panel(app_title: str, config_title: str, host: str, blocks, key_width: int, width: int) -> Panel:
    parts: list = [Text(app_title, style="bold"), Text(f"Host: {host}")]
    for name, rows in blocks:
        table = Table(show_header=False, box=box.SIMPLE, pad_edge=False)
        table.add_column(style="bold cyan", no_wrap=True, width=key_width)
        table.add_column(no_wrap=True)
        for key, val in rows:
            table.add_row(key, truncate_line(val, max(1, width - key_width - 2)))
        parts += [Text(""), Text(name, style="bold cyan"), table]
    return Panel(Group(*parts), title=config_title, border_style="green", expand=False)


def emit_cli_configuration(
    logger: logging.Logger,
    *,
    app_title: str,
    config_title: str,
    host: str,
    sections: Sequence[tuple[str, Rows]],
    footer_rows: Optional[Rows] = None,
    line_max_chars: int = 60,
) -> None:
    """
    Show the validated run configuration before any work starts.

    The console gets a rich panel on a TTY and truncated ``key: value``
    lines otherwise. The log file always gets the full lines. Empty
    sections are skipped.
    """
    blocks = [
        (str(name), [(str(k), str(v)) for k, v in rows])
        for name, rows in sections
        if len(rows) > 0
    ]
    if footer_rows:
        blocks.append(("Output", [(str(k), str(v)) for k, v in footer_rows]))
    key_width = max([8] + [len(k) for _, rows in blocks for k, _ in rows])

    def plain(width: Optional[int]) -> list[str]:
        rule = "*" * (width or 60)
        out = [app_title, f"Host: {host}\n", rule, config_title, rule]
        for name, rows in blocks:
            out.append(f"{name}:")
            for key, val in rows:
                line = f"  {key}:{' ' * (key_width - len(key) + 1)}{val}"
                out.append(line if width is None else truncate_line(line, width))
        out.append(rule + "\n")
        return out

    if sys.stdout.isatty():
        Console().print(_panel(app_title, config_title, host, blocks, key_width, line_max_chars))
    else:
        for line in plain(line_max_chars):
            _emit_info(logger, line, to_file=False)
    for line in plain(None):
        _emit_info(logger, line, to_file=True)
