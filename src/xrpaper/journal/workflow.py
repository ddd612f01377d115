"""Journal workflow: level entry, study sessions, snapshots and execution views."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from xrpaper.errors import AuthRequiredError, SnapshotNotFoundError, StoreError
from xrpaper.journal.auth import AuthProvider
from xrpaper.journal.snapshots import StudyInputs, build_snapshot, snapshot_context
from xrpaper.journal.store import LevelFilter, LevelStore, SnapshotStore
from xrpaper.signals.execution import plan_all
from xrpaper.signals.merge import merge_and_sort
from xrpaper.signals.models import (
    LEVEL_TYPES,
    TIMEFRAME_OPTIONS,
    ExecutionContext,
    ExecutionPlan,
    IndicatorSnapshot,
    MergedLevel,
    Mood,
    NearestLevels,
    PriceLevel,
)
from xrpaper.signals.mood import MoodPolicy, ScoreMoodPolicy
from xrpaper.signals.nearest import select_nearest
from xrpaper.signals.numeric import normalize_number
from xrpaper.signals.overlays import build_overlays
from xrpaper.utils.time_utils import parse_timestamp

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StudyRequest:
    """Filters and raw indicator values for one study session."""

    symbol: str
    timeframe: str
    date_from: datetime | None
    date_to: datetime | None
    inputs: StudyInputs


@dataclass(frozen=True, slots=True)
class StudyResult:
    request: StudyRequest
    mood: Mood
    levels: list[PriceLevel]
    merged: list[MergedLevel]
    nearest: NearestLevels


@dataclass(frozen=True, slots=True)
class ExecutionView:
    snapshot: IndicatorSnapshot
    context: ExecutionContext
    nearest: NearestLevels
    plans: dict[tuple[str, str], ExecutionPlan]


def _validate_timeframe(timeframe: str) -> str:
    if timeframe not in TIMEFRAME_OPTIONS:
        raise ValueError(f"timeframe must be one of: {','.join(TIMEFRAME_OPTIONS)}")
    return timeframe


class JournalService:
    """Coordinates the signal core with injected auth and storage collaborators."""

    def __init__(
        self,
        level_store: LevelStore,
        snapshot_store: SnapshotStore,
        auth: AuthProvider,
        mood_policy: MoodPolicy | None = None,
    ) -> None:
        self.level_store = level_store
        self.snapshot_store = snapshot_store
        self.auth = auth
        self.mood_policy = mood_policy or ScoreMoodPolicy()

    def require_user_id(self) -> str:
        session = self.auth.get_current_session()
        if session is None:
            raise AuthRequiredError("Sign in required")
        return session.user_id

    # Levels

    def add_level(
        self,
        *,
        symbol: str,
        timeframe: str,
        level_type: str,
        price: Any,
        observed_at: Any = None,
    ) -> PriceLevel:
        """Record a level from raw user input."""

        user_id = self.require_user_id()
        normalized_price = normalize_number(price)
        if normalized_price is None:
            raise ValueError(f"Invalid level price: {price!r}")
        if level_type not in LEVEL_TYPES:
            raise ValueError(f"level type must be one of: {','.join(LEVEL_TYPES)}")
        cleaned_symbol = symbol.strip().upper()
        if not cleaned_symbol:
            raise ValueError("symbol must not be empty")

        level = self.level_store.insert_level(
            PriceLevel(
                id=None,
                symbol=cleaned_symbol,
                timeframe=_validate_timeframe(timeframe),
                type=level_type,  # type: ignore[arg-type]
                price=normalized_price,
                observed_at=parse_timestamp(observed_at),
                user_id=user_id,
            )
        )
        LOGGER.info("Level added id=%s %s %s %s @ %s", level.id, level.symbol, level.timeframe, level.type, level.price)
        return level

    def list_levels(
        self,
        symbol: str,
        *,
        timeframe: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[PriceLevel]:
        user_id = self.require_user_id()
        return self.level_store.query_levels(
            LevelFilter(
                symbol=symbol.strip().upper(),
                timeframe=timeframe,
                from_time=date_from,
                to_time=date_to,
                user_id=user_id,
            )
        )

    def delete_level(self, level_id: str) -> None:
        user_id = self.require_user_id()
        self.level_store.delete_level(level_id, user_id=user_id)
        LOGGER.info("Level deleted id=%s", level_id)

    # Study

    def study(self, request: StudyRequest) -> StudyResult:
        """Classify mood and build the level view for a study session.

        A failed level fetch degrades to an empty level list.
        """

        try:
            levels = self.list_levels(
                request.symbol,
                timeframe=request.timeframe,
                date_from=request.date_from,
                date_to=request.date_to,
            )
        except StoreError:
            LOGGER.exception("Level fetch failed for %s %s; continuing without levels", request.symbol, request.timeframe)
            levels = []

        inputs = request.inputs
        mood = self.mood_policy.classify(inputs.mood_inputs())
        merged = merge_and_sort(levels, build_overlays(inputs.overlay_inputs()))
        nearest = select_nearest(levels, inputs.price_now)
        LOGGER.info(
            "Study %s %s: mood=%s policy=%s levels=%d",
            request.symbol,
            request.timeframe,
            mood,
            self.mood_policy.name,
            len(levels),
        )
        return StudyResult(request=request, mood=mood, levels=levels, merged=merged, nearest=nearest)

    def save_snapshot(self, result: StudyResult) -> str:
        """Persist the study with a frozen copy of its levels; returns the snapshot id."""

        user_id = self.require_user_id()
        request = result.request
        snapshot = build_snapshot(
            user_id=user_id,
            symbol=request.symbol,
            timeframe=request.timeframe,
            date_from=request.date_from,
            date_to=request.date_to,
            inputs=request.inputs,
            signal=result.mood,
            levels=result.levels,
        )
        snapshot_id = self.snapshot_store.insert_snapshot(snapshot)
        LOGGER.info("Snapshot saved id=%s hl_rows=%d", snapshot_id, len(snapshot.hl_rows))
        return snapshot_id

    # Execution

    def execution_view(self, snapshot_id: str) -> ExecutionView:
        user_id = self.require_user_id()
        snapshot = self.snapshot_store.get_snapshot(snapshot_id, user_id=user_id)
        if snapshot is None:
            raise SnapshotNotFoundError(f"Snapshot not found: {snapshot_id}")
        context = snapshot_context(snapshot)
        nearest = NearestLevels(
            support1=context.support1,
            support2=context.support2,
            resistance1=context.resistance1,
            resistance2=context.resistance2,
        )
        return ExecutionView(snapshot=snapshot, context=context, nearest=nearest, plans=plan_all(context))

    def latest_snapshot_id(self) -> str | None:
        user_id = self.require_user_id()
        snapshot = self.snapshot_store.get_latest_snapshot(user_id)
        return snapshot.id if snapshot is not None else None

    def delete_snapshot(self, snapshot_id: str) -> None:
        user_id = self.require_user_id()
        self.snapshot_store.delete_snapshot(snapshot_id, user_id=user_id)
        LOGGER.info("Snapshot deleted id=%s", snapshot_id)


def study_request_from_raw(
    *,
    symbol: str,
    timeframe: str,
    date_from: Any,
    date_to: Any,
    raw_inputs: Mapping[str, Any],
) -> StudyRequest:
    """Build a study request from user strings."""

    return StudyRequest(
        symbol=symbol.strip().upper(),
        timeframe=_validate_timeframe(timeframe),
        date_from=parse_timestamp(date_from),
        date_to=parse_timestamp(date_to),
        inputs=StudyInputs.from_raw(raw_inputs),
    )
