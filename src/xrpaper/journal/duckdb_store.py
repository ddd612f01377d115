"""DuckDB-backed level and snapshot store for local journals."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

import duckdb

from xrpaper.errors import StoreError
from xrpaper.journal.snapshots import level_from_row, normalize_snapshot_record, snapshot_to_record
from xrpaper.journal.store import LevelFilter
from xrpaper.signals.models import IndicatorSnapshot, PriceLevel
from xrpaper.utils.time_utils import now_utc, parse_timestamp

LOGGER = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS hl_lines (
    id VARCHAR PRIMARY KEY,
    user_id VARCHAR,
    symbol VARCHAR NOT NULL,
    timeframe VARCHAR NOT NULL,
    type VARCHAR NOT NULL CHECK (type IN ('support', 'resistance', 'undefined')),
    price DOUBLE NOT NULL,
    observed_at TIMESTAMP,
    created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS mex_runs (
    id VARCHAR PRIMARY KEY,
    user_id VARCHAR,
    symbol VARCHAR,
    timeframe VARCHAR,
    date_from TIMESTAMP,
    date_to TIMESTAMP,
    price_now DOUBLE,
    atr_abs DOUBLE,
    atr_pct DOUBLE,
    rsi_k DOUBLE,
    rsi_d DOUBLE,
    ema20 DOUBLE,
    ema200 DOUBLE,
    vwap DOUBLE,
    vol_avg DOUBLE,
    mex_signal VARCHAR,
    hl_rows VARCHAR NOT NULL DEFAULT '[]',
    created_at TIMESTAMP NOT NULL
);
"""

SNAPSHOT_COLUMNS: tuple[str, ...] = (
    "id",
    "user_id",
    "symbol",
    "timeframe",
    "date_from",
    "date_to",
    "price_now",
    "atr_abs",
    "atr_pct",
    "rsi_k",
    "rsi_d",
    "ema20",
    "ema200",
    "vwap",
    "vol_avg",
    "mex_signal",
    "hl_rows",
    "created_at",
)


def open_journal_duckdb(database_path: Path | str) -> duckdb.DuckDBPyConnection:
    """Open or create the DuckDB journal database."""

    if str(database_path) == MEMORY_DATABASE:
        return duckdb.connect(MEMORY_DATABASE)
    path = Path(database_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path))


def _naive_utc(value: datetime | None) -> datetime | None:
    """DuckDB TIMESTAMP columns hold naive UTC values."""

    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return uuid4().hex


def _owned(query: str, row_id: str, user_id: str | None) -> tuple[str, list[Any]]:
    """Restrict a by-id statement to rows owned by ``user_id`` when given."""

    if user_id is None:
        return query, [row_id]
    return f"{query} AND user_id = ?", [row_id, user_id]


class DuckDBJournalStore:
    """LevelStore and SnapshotStore over one DuckDB connection."""

    def __init__(self, database_path: Path | str) -> None:
        self.database_path = database_path
        try:
            self._conn = open_journal_duckdb(database_path)
            for statement in SCHEMA_SQL.split(";"):
                if statement.strip():
                    self._conn.execute(statement)
        except duckdb.Error as exc:
            raise StoreError(f"Could not open journal database {database_path}: {exc}") from exc

    def __enter__(self) -> "DuckDBJournalStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def _fetch_dicts(self, query: str, params: list[Any]) -> list[dict[str, Any]]:
        try:
            cursor = self._conn.execute(query, params)
            rows = cursor.fetchall()
            columns = [item[0] for item in cursor.description]
        except duckdb.Error as exc:
            raise StoreError(f"Journal query failed: {exc}") from exc
        return [dict(zip(columns, row)) for row in rows]

    def _execute(self, query: str, params: list[Any]) -> None:
        try:
            self._conn.execute(query, params)
        except duckdb.Error as exc:
            raise StoreError(f"Journal write failed: {exc}") from exc

    # Levels

    def query_levels(self, level_filter: LevelFilter) -> list[PriceLevel]:
        """Return levels for a symbol, optionally by timeframe, owner and observed-at range."""

        clauses = ["symbol = ?"]
        params: list[Any] = [level_filter.symbol.upper()]
        if level_filter.timeframe:
            clauses.append("timeframe = ?")
            params.append(level_filter.timeframe)
        if level_filter.user_id is not None:
            clauses.append("user_id = ?")
            params.append(level_filter.user_id)
        if level_filter.from_time is not None:
            clauses.append("observed_at >= ?")
            params.append(_naive_utc(level_filter.from_time))
        if level_filter.to_time is not None:
            clauses.append("observed_at <= ?")
            params.append(_naive_utc(level_filter.to_time))

        query = (
            "SELECT id, user_id, symbol, timeframe, type, price, observed_at FROM hl_lines WHERE "
            + " AND ".join(clauses)
            + " ORDER BY price DESC, created_at ASC, id ASC"
        )
        levels: list[PriceLevel] = []
        for row in self._fetch_dicts(query, params):
            level = level_from_row(row)
            if level is not None:
                levels.append(level)
        return levels

    def insert_level(self, record: PriceLevel) -> PriceLevel:
        level_id = _new_id()
        self._execute(
            "INSERT INTO hl_lines (id, user_id, symbol, timeframe, type, price, observed_at, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                level_id,
                record.user_id,
                record.symbol.upper(),
                record.timeframe,
                record.type,
                float(record.price),
                _naive_utc(record.observed_at),
                _naive_utc(now_utc()),
            ],
        )
        LOGGER.debug("Inserted level id=%s symbol=%s price=%s", level_id, record.symbol, record.price)
        return PriceLevel(
            id=level_id,
            symbol=record.symbol.upper(),
            timeframe=record.timeframe,
            type=record.type,
            price=float(record.price),
            observed_at=parse_timestamp(record.observed_at),
            user_id=record.user_id,
        )

    def delete_level(self, level_id: str, *, user_id: str | None = None) -> None:
        query, params = _owned("DELETE FROM hl_lines WHERE id = ?", level_id, user_id)
        self._execute(query, params)

    # Snapshots

    def insert_snapshot(self, record: IndicatorSnapshot) -> str:
        snapshot_id = _new_id()
        values = snapshot_to_record(record)
        values["id"] = snapshot_id
        values["date_from"] = _naive_utc(values["date_from"])
        values["date_to"] = _naive_utc(values["date_to"])
        values["created_at"] = _naive_utc(values["created_at"] or now_utc())
        placeholders = ", ".join("?" for _ in SNAPSHOT_COLUMNS)
        self._execute(
            f"INSERT INTO mex_runs ({', '.join(SNAPSHOT_COLUMNS)}) VALUES ({placeholders})",
            [values[column] for column in SNAPSHOT_COLUMNS],
        )
        LOGGER.debug("Inserted snapshot id=%s hl_rows=%d", snapshot_id, len(record.hl_rows))
        return snapshot_id

    def get_snapshot(self, snapshot_id: str, *, user_id: str | None = None) -> IndicatorSnapshot | None:
        rows = self._fetch_dicts(*_owned("SELECT * FROM mex_runs WHERE id = ?", snapshot_id, user_id))
        return normalize_snapshot_record(rows[0]) if rows else None

    def delete_snapshot(self, snapshot_id: str, *, user_id: str | None = None) -> None:
        query, params = _owned("DELETE FROM mex_runs WHERE id = ?", snapshot_id, user_id)
        self._execute(query, params)

    def get_latest_snapshot(self, user_id: str) -> IndicatorSnapshot | None:
        rows = self._fetch_dicts(
            "SELECT * FROM mex_runs WHERE user_id = ? ORDER BY created_at DESC, id DESC LIMIT 1",
            [user_id],
        )
        return normalize_snapshot_record(rows[0]) if rows else None
