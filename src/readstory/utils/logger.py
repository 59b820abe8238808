"""Category loggers for the crawler.

``core`` carries the crawl flow, ``chapter_error`` one line per chapter that
could not be fetched or parsed, and ``progress`` batch window progress.
"""

from __future__ import annotations

import logging
import os
from functools import cache
from logging.handlers import RotatingFileHandler

from readstory.config.env_loader import get_bool, get_str

LOG_FOLDER = get_str("LOG_FOLDER") or "logs"
ENABLE_FILE_LOGS = bool(get_bool("ENABLE_FILE_LOGS"))
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

_FORMATTER = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

LOG_FILES: dict[str, str] = {
    "core": "crawler.log",
    "chapter_error": "chapter_errors.log",
    "progress": "progress.log",
}


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    handler.setFormatter(_FORMATTER)
    return handler


def _file_handler(category: str) -> logging.Handler:
    os.makedirs(LOG_FOLDER, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(LOG_FOLDER, LOG_FILES.get(category, LOG_FILES["core"])),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_FORMATTER)
    return handler


@cache
def get_logger(category: str = "core") -> logging.Logger:
    """Logger named ``ReadStory.<category>``; configured once per category.

    Console output is always on. Rotating files under ``LOG_FOLDER`` are added
    when ``ENABLE_FILE_LOGS`` is truthy.
    """

    log = logging.getLogger(f"ReadStory.{category or 'core'}")
    log.setLevel(logging.DEBUG)
    if not log.handlers:
        log.addHandler(_console_handler())
        if ENABLE_FILE_LOGS:
            log.addHandler(_file_handler(category or "core"))
    return log


logger = get_logger("core")
chapter_error_logger = get_logger("chapter_error")
progress_logger = get_logger("progress")

__all__ = [
    "chapter_error_logger",
    "get_logger",
    "logger",
    "progress_logger",
]
