from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from xrpaper.journal.auth import LocalAuthProvider
from xrpaper.journal.duckdb_store import DuckDBJournalStore
from xrpaper.journal.workflow import JournalService


@pytest.fixture
def store(tmp_path: Path) -> Iterator[DuckDBJournalStore]:
    journal_store = DuckDBJournalStore(tmp_path / "journal.duckdb")
    try:
        yield journal_store
    finally:
        journal_store.close()


@pytest.fixture
def auth() -> LocalAuthProvider:
    return LocalAuthProvider("user-1", email="trader@example.com", password="secret", signed_in=True)


@pytest.fixture
def service(store: DuckDBJournalStore, auth: LocalAuthProvider) -> JournalService:
    return JournalService(level_store=store, snapshot_store=store, auth=auth)


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    config_dir = tmp_path / "configs"
    config_dir.mkdir()
    path = config_dir / "settings.yaml"
    path.write_text(
        "\n".join(
            [
                "paths:",
                "  data_root: ./data",
                "  logs_root: ./logs",
                "  reports_root: ./reports",
                "  database_file: ./data/journal.duckdb",
                "auth:",
                "  user_id: cli-user",
                "levels:",
                "  default_symbol: BTCUSDT",
                "  default_timeframe: 5m",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return path
