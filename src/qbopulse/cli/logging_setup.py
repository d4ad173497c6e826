"""Console logging for the CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.WARNING)


def configure_logging(level: str | int = "WARNING") -> None:
    """Route log records to stderr through rich. Safe to call repeatedly."""
    root = logging.getLogger()
    root.setLevel(_parse_level(level))

    for handler in root.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(_parse_level(level))
            return

    handler = RichHandler(
        console=Console(stderr=True),
        show_level=True,
        show_path=False,
        log_time_format="%Y-%m-%d %H:%M:%S",
    )
    handler.setLevel(_parse_level(level))
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
