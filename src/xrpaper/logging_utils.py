"""Logging setup shared by the CLI and journal workflow."""

from __future__ import annotations

import logging
from pathlib import Path

from xrpaper.config import LoggingConfig

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
JOURNAL_LOGGER_NAME = "xrpaper"


def configure_logging(log_file: Path, level: int | str = logging.INFO) -> logging.Logger:
    """Configure process-wide console and journal log file handlers.

    ``level`` accepts a numeric level or a level name such as ``"DEBUG"``.
    """

    log_file.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(level, str):
        level = level.upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(level)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    root_logger.addHandler(stream_handler)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(JOURNAL_LOGGER_NAME)
    logger.setLevel(level)
    return logger


def configure_journal_logging(logs_root: Path, config: LoggingConfig) -> logging.Logger:
    """Configure logging from the ``logging`` settings section."""

    return configure_logging(logs_root / config.file_name, level=config.level)
