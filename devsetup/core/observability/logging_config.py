"""
Logging configuration — called once by the CLI before any command runs.

Level precedence:  CLI flag  >  DEVSETUP_LOG_LEVEL  >  WARNING

DEVSETUP_LOG_FILE adds a file handler that always uses the detailed
format; DEVSETUP_LOG_FILE_LEVEL sets its level independently of the
console (defaults to the console level).
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "DEVSETUP_LOG_LEVEL"
ENV_FILE = "DEVSETUP_LOG_FILE"
ENV_FILE_LEVEL = "DEVSETUP_LOG_FILE_LEVEL"

DEFAULT_LEVEL = logging.WARNING

# (format, datefmt) for the console, chosen by the console level
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s %(name)s  %(message)s", "%H:%M:%S"),
}
_CONSOLE_PLAIN = ("%(levelname)s: %(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def parse_level(level: str | int | None) -> int:
    """Level name or number → numeric level. Unknown names fall back to WARNING."""
    if isinstance(level, int):
        return level
    if not level:
        return DEFAULT_LEVEL
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else DEFAULT_LEVEL


def resolve_level(flag_level: str | None = None) -> int:
    """Console level from a CLI flag, else the environment, else WARNING."""
    if flag_level:
        return parse_level(flag_level)
    return parse_level(os.environ.get(ENV_LEVEL))


def setup_logging(
    level: str | int | None = None,
    log_file: str | None = None,
    log_file_level: str | int | None = None,
) -> None:
    """Configure the root logger.

    Args:
        level: Console level; None resolves from ``DEVSETUP_LOG_LEVEL``.
        log_file: Optional log file path; None reads ``DEVSETUP_LOG_FILE``.
        log_file_level: File level; None reads ``DEVSETUP_LOG_FILE_LEVEL``
            and then falls back to the console level.
    """
    console_level = parse_level(level) if level is not None else resolve_level()
    fmt, datefmt = _CONSOLE_FORMATS.get(console_level, _CONSOLE_PLAIN)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(console)
    root_level = console_level

    log_file = log_file or os.environ.get(ENV_FILE)
    if log_file:
        if log_file_level is None:
            log_file_level = os.environ.get(ENV_FILE_LEVEL)
        file_level = parse_level(log_file_level) if log_file_level else console_level

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(file_handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    logging.raiseExceptions = False
