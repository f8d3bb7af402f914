"""Logging setup for the ankirpc command line."""

import logging
import os
import sys
from typing import Iterable

_LEVEL_COLORS = {
    logging.DEBUG: "\033[2m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
_RESET = "\033[0m"


def _use_color(stream) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


class ColorFormatter(logging.Formatter):
    """Prefix non-INFO records with their level, colored on terminals."""

    def __init__(self, color: bool):
        super().__init__("%(message)s")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno != logging.INFO:
            message = f"{record.levelname}: {message}"
        color = _LEVEL_COLORS.get(record.levelno)
        if self.color and color:
            return f"{color}{message}{_RESET}"
        return message


def configure_logging(
    stream_level: int = logging.INFO,
    ignore_libs: Iterable[str] = (),
) -> None:
    """Send log records to stderr, replacing any handlers already installed."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(stream_level)
    handler.setFormatter(ColorFormatter(color=_use_color(sys.stderr)))
    root.addHandler(handler)
    root.setLevel(stream_level)

    for lib in ignore_libs:
        logging.getLogger(lib).setLevel(logging.WARNING)
