"""Central logging configuration for the triage job.

This module handles FILE LOGGING ONLY - for console output, use utils.console.

Usage:
    from invite_triage.utils.logging import get_logger, init_logging
    init_logging("triage")  # once at job start (e.g., in main.py)
    logger = get_logger(__name__)
    logger.debug("Prompt length: %d", n)  # Goes to file only

Features:
    * File only: timestamp, module, function, line number
    * New log file per run (./logs/{name}_YYYYmmdd_HHMMSS.log)
    * DEBUG level by default; LOG_LEVEL env var overrides
"""
from __future__ import annotations

import datetime
import logging
import os
from pathlib import Path

_INITIALIZED = False
LOG_DIR = Path("logs")
# Default log file, updated by init_logging
LOG_FILE = LOG_DIR / "triage.log"
DEFAULT_FILE_LEVEL = logging.DEBUG


def init_logging(name: str = "triage", file_level: int | None = None) -> None:
    """Initialize file logging once. Safe to call multiple times.

    Args:
        name: Base name for the log file. A timestamp is appended:
              logs/{name}_{date}.log
        file_level: Minimum level for file logging. Falls back to the
              LOG_LEVEL env var, then DEBUG.
    """
    global _INITIALIZED, LOG_FILE
    if _INITIALIZED:
        return
    LOG_DIR.mkdir(exist_ok=True)

    if file_level is None:
        file_level = getattr(logging, os.getenv("LOG_LEVEL", "DEBUG").upper(), DEFAULT_FILE_LEVEL)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    LOG_FILE = LOG_DIR / f"{name}_{timestamp}.log"

    # Format: timestamp | level | module:function:line | message
    file_fmt = "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"

    # One file per run, so no rotation
    file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(file_fmt, datefmt="%Y-%m-%d %H:%M:%S")
    )
    root.addHandler(file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    _INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given module name."""
    return logging.getLogger(name)


__all__ = ["init_logging", "get_logger", "LOG_FILE"]
