from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from cwkgen.config import LOG_FILE, LOG_LEVEL

LOGGER_NAME = "cwkgen"


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    *,
    console: bool = True,
) -> logging.Logger:
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        "%Y-%m-%d %H:%M:%S",
    )
    level_name = level or LOG_LEVEL
    resolved_level = getattr(logging, str(level_name).upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(resolved_level)

    path = log_file or LOG_FILE
    if path:
        _ensure_parent(path)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    logger.propagate = False
    return logger


logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())
