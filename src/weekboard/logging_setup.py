# src/weekboard/logging_setup.py

"""
Logging for the board and the task API server.

The console shows the board's own logs at the configured level and holds back
per-request chatter (our HTTP client, uvicorn, httpx); the file under the data
dir keeps everything at DEBUG.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# (logger name prefix, lowest level shown on the console); first match wins
CONSOLE_FLOORS: tuple[tuple[str, int], ...] = (
    ("weekboard.client.", logging.WARNING),  # one line per request below WARNING
    ("weekboard.", logging.NOTSET),
    ("uvicorn", logging.WARNING),
    ("py.warnings", logging.ERROR),
)
DEFAULT_CONSOLE_FLOOR = logging.ERROR

# libraries whose DEBUG output is noise even in the file
QUIET_LIBRARIES = ("httpx", "httpcore")

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def console_floor(logger_name: str) -> int:
    for prefix, floor in CONSOLE_FLOORS:
        if logger_name.startswith(prefix):
            return floor
    return DEFAULT_CONSOLE_FLOOR


class _ConsoleNoiseFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_floor(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/weekboard",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    log_name: str = "weekboard.log",
) -> Path:
    """
    Replace the root handlers with a filtered stderr handler and a file handler.

    Call once at startup, before anything logs. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / log_name

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
