import logging
import sys

from ankirpc.log import ColorFormatter, configure_logging


def _record(level: int, message: str) -> logging.LogRecord:
    return logging.LogRecord("ankirpc", level, __file__, 1, message, None, None)


def test_info_records_are_plain():
    formatter = ColorFormatter(color=False)

    assert formatter.format(_record(logging.INFO, "done")) == "done"


def test_other_levels_are_prefixed():
    formatter = ColorFormatter(color=False)

    assert formatter.format(_record(logging.ERROR, "boom")) == "ERROR: boom"


def test_color_wraps_message():
    formatter = ColorFormatter(color=True)

    rendered = formatter.format(_record(logging.WARNING, "careful"))

    assert rendered.startswith("\033[33m")
    assert rendered.endswith("\033[0m")
    assert "WARNING: careful" in rendered


def test_configure_logging_installs_single_stderr_handler(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging(logging.DEBUG, ignore_libs=["urllib3.connectionpool"])
        configure_logging(logging.DEBUG)

        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert handler.stream is sys.stderr
        assert handler.formatter.color is False
        assert root.level == logging.DEBUG
        assert logging.getLogger("urllib3.connectionpool").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
