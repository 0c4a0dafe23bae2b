"""
Logging setup for the CLI and for shim runs.

Console output goes to stderr so it never mixes with a shimmed tool's
stdout or with ``--json`` output. Level precedence:

    --debug  >  --verbose  >  TOOLSHIM_DEBUG  >  TOOLSHIM_LOG_LEVEL  >  WARNING

TOOLSHIM_LOG_FILE adds a file handler, at TOOLSHIM_LOG_FILE_LEVEL if set.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping

# (format, datefmt) per console level; warnings print bare messages.
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("toolshim: %(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    logging.INFO: ("toolshim: %(message)s", None),
}
_DEFAULT_FORMAT: tuple[str, str | None] = ("%(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    env: Mapping[str, str] | None = None,
) -> str:
    """Pick the console log level from flags and the environment."""
    env = env if env is not None else {}
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if env.get("TOOLSHIM_DEBUG"):
        return "DEBUG"
    return env.get("TOOLSHIM_LOG_LEVEL", "WARNING")


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_FORMATS.get(level, _DEFAULT_FORMAT)
    if level < logging.DEBUG:
        fmt, datefmt = _CONSOLE_FORMATS[logging.DEBUG]
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root logger's handlers with toolshim's.

    Args:
        level: Console level name.
        log_file: Optional log file path.
        log_file_level: Level for the file; ``level`` when unset.
        quiet_third_party: Hold third-party loggers at WARNING unless
            the console is at DEBUG.
    """
    console_level = _parse_level(level)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(file_handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # A closed stderr (e.g. a shimmed tool piped into head) must not
    # print logging tracebacks.
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to number; unknown or empty names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
