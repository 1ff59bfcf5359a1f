"""Logging setup for the CourseHub service and its admin CLI.

Every ``coursehub.*`` logger (and, when serving, uvicorn's loggers) writes to
one rotating file. Records pass through a formatter that strips bearer tokens
and passwords, since request paths and exception reprs can carry either.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "coursehub.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_SENSITIVE_PATTERNS = [
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"token=[a-zA-Z0-9._-]+"), "token=[REDACTED]"),
    (re.compile(r"eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+"), "[JWT]"),
    (re.compile(r"\"password\"\s*:\s*\"[^\"]*\""), '"password": "[REDACTED]"'),
]


def sanitize_for_log(text: str) -> str:
    """Replace bearer tokens, JWTs and password fields in ``text``."""
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class RedactingFormatter(logging.Formatter):
    """Formatter whose output has credentials removed."""

    def format(self, record: logging.LogRecord) -> str:
        return sanitize_for_log(super().format(record))


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
    server_loggers: Iterable[str] = (),
) -> logging.Logger:
    """Configure the ``coursehub`` logger.

    Args:
        log_dir: Directory for log files. Falls back to COURSEHUB_LOG_DIR, then 'logs'.
        log_file: Log file name.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files to keep.
        level: Level name. Falls back to COURSEHUB_LOG_LEVEL, then INFO.
        console: Also write to stderr. Admin commands that print results on
            stdout pass False so their output stays parseable.
        server_loggers: Extra loggers (e.g. SERVER_LOGGERS under ``serve``)
            routed to the same handlers.

    Returns:
        The ``coursehub`` logger.
    """
    if log_dir is None:
        log_dir = os.environ.get("COURSEHUB_LOG_DIR", DEFAULT_LOG_DIR)
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    if level is None:
        level = os.environ.get("COURSEHUB_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = RedactingFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    log_path = log_dir / log_file
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [file_handler]

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    logger = logging.getLogger("coursehub")
    for name in ("coursehub", *server_loggers):
        target = logging.getLogger(name)
        _reset_handlers(target)
        target.setLevel(log_level)
        for handler in handlers:
            target.addHandler(handler)
        if name != "coursehub":
            target.propagate = False

    logger.info("CourseHub logging initialized (level=%s, file=%s)", level, log_path)

    return logger
