"""
Logging configuration — one setup call for the whole process.

Called once at startup by main.py. Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Levels are resolved in precedence order:
    CLI flag  >  PROVISIONER_LOG_LEVEL env var  >  WARNING (default)

Optional file output via --log-file or PROVISIONER_LOG_FILE, at its own
level from PROVISIONER_LOG_FILE_LEVEL. The path is expanded and its
directory created; a file that cannot be opened is reported on stderr
and logging continues on the console only.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ENV_LOG_LEVEL = "PROVISIONER_LOG_LEVEL"
ENV_LOG_FILE = "PROVISIONER_LOG_FILE"
ENV_LOG_FILE_LEVEL = "PROVISIONER_LOG_FILE_LEVEL"

# ── Format strings ──────────────────────────────────────────────

# WARNING level: just the message, the CLI prints its own summary
_FMT_MINIMAL = "%(levelname)s: %(message)s"

# INFO level: timestamped with module context
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

# DEBUG level and files: full detail with file:line
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.
    """
    numeric_level = _parse_level(level)

    # ── Console handler (stderr) ────────────────────────────────
    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective_level = numeric_level

    # ── File handler (optional) ─────────────────────────────────
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        fh = _file_handler(log_file)
        if fh is not None:
            effective_level = min(effective_level, file_level)
            fh.setLevel(file_level)
            fh.setFormatter(logging.Formatter(_FMT_DEBUG, datefmt=_DATEFMT_FILE))
            root.addHandler(fh)

    root.setLevel(effective_level)
    logging.raiseExceptions = False


def _file_handler(log_file: str) -> logging.FileHandler | None:
    path = Path(log_file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        print(f"Cannot write log file {path}: {e}", file=sys.stderr)
        return None


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
