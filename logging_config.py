"""
logging_config.py
-------------------

Diagnostic logging for the log-to-SQLite tools.

Operator-facing progress lines are printed by :mod:`log_parser`; the loggers
configured here carry diagnostics (derived columns, generated DDL, per-file
commits and failures). Output goes to stderr so it never mixes with the
progress lines on stdout, and optionally to a rotating log file.

Logger hierarchy: ``log_to_sqlite.{component}`` with the components
``parser``, ``cli`` and ``ui``.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "log_to_sqlite"

# timestamp | level | component | message
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 5 MB per file, three backups kept
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3


def setup_logging(log_level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """Configure the ``log_to_sqlite`` logger tree.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR). Unknown names
            fall back to WARNING.
        log_file: Optional path of a rotating log file. None means stderr only.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    # Drop handlers from an earlier call (tests, Streamlit reruns)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning("Log file %s is not writable: %s - logging to stderr only", log_file, e)

    logging.getLogger("streamlit").setLevel(logging.WARNING)


def get_logger(component: str) -> logging.Logger:
    """Return the logger ``log_to_sqlite.{component}``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
