"""Storage collaborator contracts for price levels and study snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from xrpaper.signals.models import IndicatorSnapshot, PriceLevel


@dataclass(frozen=True, slots=True)
class LevelFilter:
    """Level query filter; time bounds are inclusive on ``observed_at``."""

    symbol: str
    timeframe: str | None = None
    from_time: datetime | None = None
    to_time: datetime | None = None
    user_id: str | None = None


class LevelStore(Protocol):
    def query_levels(self, level_filter: LevelFilter) -> list[PriceLevel]:
        """Return matching levels ordered by price descending."""
        ...

    def insert_level(self, record: PriceLevel) -> PriceLevel:
        """Persist a new level and return it with its assigned id."""
        ...

    def delete_level(self, level_id: str, *, user_id: str | None = None) -> None:
        """Delete a level; with ``user_id`` only when that user owns it."""
        ...


class SnapshotStore(Protocol):
    def insert_snapshot(self, record: IndicatorSnapshot) -> str:
        """Persist a snapshot and return its id."""
        ...

    def get_snapshot(self, snapshot_id: str, *, user_id: str | None = None) -> IndicatorSnapshot | None:
        """Return the snapshot, or None when missing or owned by another user."""
        ...

    def delete_snapshot(self, snapshot_id: str, *, user_id: str | None = None) -> None: ...

    def get_latest_snapshot(self, user_id: str) -> IndicatorSnapshot | None: ...
