import atexit
import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from utils.config import LOG_FILE


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # Initial default width

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        record.name = record.name.center(CenteredFormatter.longest_name_length)
        return super().format(record)


_console: Optional[Console] = None


def _log_console() -> Console:
    """
    One console shared by every logger. With KEEBSHOP_LOG_FILE set, records
    go to that file so they don't draw over the running TUI; otherwise stderr.
    """
    global _console
    if _console is None:
        if LOG_FILE:
            folder = os.path.dirname(LOG_FILE)
            if folder:
                os.makedirs(folder, exist_ok=True)
            stream = open(LOG_FILE, "a", encoding="utf-8")
            atexit.register(stream.close)
            _console = Console(file=stream, width=120)
        else:
            _console = Console(stderr=True)
    return _console


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger configured with RichHandler for rich output.

    Level is DEBUG when the DEBUG env var is set, INFO otherwise.
    """
    if name is None:
        name = "keebshop"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=_log_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(CenteredFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized.")

    return logger
