from __future__ import annotations

import logging
from pathlib import Path

from xrpaper.config import LoggingConfig
from xrpaper.logging_utils import configure_journal_logging


def test_configure_journal_logging_uses_configured_level_and_file(tmp_path: Path) -> None:
    logger = configure_journal_logging(tmp_path / "logs", LoggingConfig(level="DEBUG", file_name="journal.log"))

    logging.getLogger("xrpaper.journal.workflow").debug("debug line kept")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert "debug line kept" in (tmp_path / "logs" / "journal.log").read_text(encoding="utf-8")


def test_configure_journal_logging_filters_below_level(tmp_path: Path) -> None:
    configure_journal_logging(tmp_path, LoggingConfig(level="WARNING"))

    logging.getLogger("xrpaper.cli").info("info line dropped")
    logging.getLogger("xrpaper.cli").warning("warning line kept")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = (tmp_path / "xrpaper.log").read_text(encoding="utf-8")
    assert "info line dropped" not in text
    assert "warning line kept" in text
