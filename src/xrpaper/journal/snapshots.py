"""Study inputs, snapshot capture and tolerant snapshot normalization."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from xrpaper.signals.models import (
    LEVEL_TYPES,
    ExecutionContext,
    IndicatorSnapshot,
    Mood,
    MoodInputs,
    OverlayInputs,
    PriceLevel,
)
from xrpaper.signals.mood import atr_percent, parse_mood
from xrpaper.signals.nearest import select_nearest
from xrpaper.signals.numeric import normalize_number
from xrpaper.utils.time_utils import now_utc, parse_timestamp, to_iso_or_none

LOGGER = logging.getLogger(__name__)

SYMBOL_KEYS: tuple[str, ...] = ("symbol", "sym", "ticker")
TIMEFRAME_KEYS: tuple[str, ...] = ("timeframe", "tf")
DATE_FROM_KEYS: tuple[str, ...] = ("date_from", "from", "period_from", "start_at", "start")
DATE_TO_KEYS: tuple[str, ...] = ("date_to", "to", "period_to", "end_at", "end")
PRICE_KEYS: tuple[str, ...] = ("price_now", "price", "last_price")
ATR_PCT_KEYS: tuple[str, ...] = ("atr_pct", "atrPercent", "atrp")
ATR_ABS_KEYS: tuple[str, ...] = ("atr_abs", "atr")
RSI_K_KEYS: tuple[str, ...] = ("rsi_k", "rsiK")
RSI_D_KEYS: tuple[str, ...] = ("rsi_d", "rsiD")
EMA20_KEYS: tuple[str, ...] = ("ema20", "ema_20")
EMA200_KEYS: tuple[str, ...] = ("ema200", "ema_200")
VWAP_KEYS: tuple[str, ...] = ("vwap",)
VOL_AVG_KEYS: tuple[str, ...] = ("vol_avg", "volAvg", "volume_avg")
SIGNAL_KEYS: tuple[str, ...] = ("mex_signal", "signal")


@dataclass(frozen=True, slots=True)
class StudyInputs:
    """Indicator values copied from a broker or chart, already normalized."""

    price_now: float | None = None
    atr_abs: float | None = None
    rsi_k: float | None = None
    rsi_d: float | None = None
    ema20: float | None = None
    ema200: float | None = None
    vwap: float | None = None
    vol_avg: float | None = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "StudyInputs":
        """Normalize raw user strings (``"112.863,5"``, ``"0,8%"``) field by field."""

        return cls(
            price_now=normalize_number(raw.get("price_now")),
            atr_abs=normalize_number(raw.get("atr_abs")),
            rsi_k=normalize_number(raw.get("rsi_k")),
            rsi_d=normalize_number(raw.get("rsi_d")),
            ema20=normalize_number(raw.get("ema20")),
            ema200=normalize_number(raw.get("ema200")),
            vwap=normalize_number(raw.get("vwap")),
            vol_avg=normalize_number(raw.get("vol_avg")),
        )

    def mood_inputs(self) -> MoodInputs:
        return MoodInputs(
            price=self.price_now,
            ema20=self.ema20,
            ema200=self.ema200,
            rsi_k=self.rsi_k,
            rsi_d=self.rsi_d,
            atr=self.atr_abs,
            vwap=self.vwap,
        )

    def overlay_inputs(self) -> OverlayInputs:
        return OverlayInputs(price_now=self.price_now, ema20=self.ema20, ema200=self.ema200)


def _first_present(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _first_number(raw: Mapping[str, Any], keys: Sequence[str]) -> float | None:
    for key in keys:
        value = normalize_number(raw.get(key))
        if value is not None:
            return value
    return None


def _first_text(raw: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    value = _first_present(raw, keys)
    return str(value) if value is not None else None


def _level_type(value: Any) -> str:
    text = str(value).strip().lower() if value is not None else ""
    return text if text in LEVEL_TYPES else "undefined"


def level_from_row(row: Mapping[str, Any], *, symbol: str | None = None) -> PriceLevel | None:
    """Build a level from a stored row; rows without a usable price give None."""

    price = normalize_number(row.get("price"))
    if price is None:
        return None
    row_symbol = row.get("symbol") or symbol or ""
    level_id = row.get("id")
    return PriceLevel(
        id=str(level_id) if level_id is not None else None,
        symbol=str(row_symbol).upper(),
        timeframe=str(row.get("timeframe") or ""),
        type=_level_type(row.get("type")),  # type: ignore[arg-type]
        price=price,
        observed_at=parse_timestamp(_first_present(row, ("at", "observed_at"))),
        user_id=(str(row["user_id"]) if row.get("user_id") is not None else None),
    )


def level_to_row(level: PriceLevel) -> dict[str, Any]:
    """Embedded snapshot row for a level."""

    return {
        "price": float(level.price),
        "timeframe": level.timeframe,
        "type": level.type or "undefined",
        "at": to_iso_or_none(level.observed_at),
    }


def _parse_hl_rows(value: Any) -> list[Mapping[str, Any]]:
    rows = value
    if isinstance(rows, str):
        try:
            rows = json.loads(rows)
        except json.JSONDecodeError:
            LOGGER.warning("Snapshot hl_rows is not valid JSON; treating as empty")
            return []
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, Mapping)]


def freeze_levels(
    levels: Iterable[PriceLevel],
    *,
    captured_at: datetime,
) -> tuple[PriceLevel, ...]:
    """Copy levels in scope for embedding; missing observed-at becomes the capture time."""

    frozen: list[PriceLevel] = []
    for level in levels:
        frozen.append(
            PriceLevel(
                id=None,
                symbol=level.symbol,
                timeframe=level.timeframe,
                type=level.type or "undefined",  # type: ignore[arg-type]
                price=float(level.price),
                observed_at=level.observed_at or captured_at,
                user_id=None,
            )
        )
    return tuple(frozen)


def build_snapshot(
    *,
    user_id: str,
    symbol: str,
    timeframe: str,
    date_from: datetime | None,
    date_to: datetime | None,
    inputs: StudyInputs,
    signal: Mood | None,
    levels: Iterable[PriceLevel],
    captured_at: datetime | None = None,
) -> IndicatorSnapshot:
    """Capture a study session with a frozen copy of its levels."""

    captured = captured_at or now_utc()
    return IndicatorSnapshot(
        id=None,
        user_id=user_id,
        symbol=symbol.upper(),
        timeframe=timeframe,
        date_from=date_from,
        date_to=date_to,
        price_now=inputs.price_now,
        atr_abs=inputs.atr_abs,
        atr_pct=atr_percent(inputs.atr_abs, inputs.price_now),
        rsi_k=inputs.rsi_k,
        rsi_d=inputs.rsi_d,
        ema20=inputs.ema20,
        ema200=inputs.ema200,
        vwap=inputs.vwap,
        vol_avg=inputs.vol_avg,
        signal=signal,
        hl_rows=freeze_levels(levels, captured_at=captured),
        created_at=captured,
    )


def snapshot_to_record(snapshot: IndicatorSnapshot) -> dict[str, Any]:
    """Flat record for storage; ``hl_rows`` is serialized as JSON text."""

    return {
        "id": snapshot.id,
        "user_id": snapshot.user_id,
        "symbol": snapshot.symbol,
        "timeframe": snapshot.timeframe,
        "date_from": snapshot.date_from,
        "date_to": snapshot.date_to,
        "price_now": snapshot.price_now,
        "atr_abs": snapshot.atr_abs,
        "atr_pct": snapshot.atr_pct,
        "rsi_k": snapshot.rsi_k,
        "rsi_d": snapshot.rsi_d,
        "ema20": snapshot.ema20,
        "ema200": snapshot.ema200,
        "vwap": snapshot.vwap,
        "vol_avg": snapshot.vol_avg,
        "mex_signal": snapshot.signal,
        "hl_rows": json.dumps([level_to_row(level) for level in snapshot.hl_rows]),
        "created_at": snapshot.created_at,
    }


def normalize_snapshot_record(raw: Mapping[str, Any] | None) -> IndicatorSnapshot | None:
    """Build a snapshot from a stored row, tolerating legacy field names."""

    if not raw:
        return None

    symbol = _first_text(raw, SYMBOL_KEYS)
    price_now = _first_number(raw, PRICE_KEYS)
    atr_abs = _first_number(raw, ATR_ABS_KEYS)
    atr_pct = _first_number(raw, ATR_PCT_KEYS)
    if atr_pct is None:
        atr_pct = atr_percent(atr_abs, price_now)

    levels: list[PriceLevel] = []
    for row in _parse_hl_rows(raw.get("hl_rows")):
        level = level_from_row(row, symbol=symbol)
        if level is not None:
            levels.append(level)

    snapshot_id = raw.get("id")
    user_id = raw.get("user_id")
    return IndicatorSnapshot(
        id=str(snapshot_id) if snapshot_id is not None else None,
        user_id=str(user_id) if user_id is not None else None,
        symbol=symbol,
        timeframe=_first_text(raw, TIMEFRAME_KEYS),
        date_from=parse_timestamp(_first_present(raw, DATE_FROM_KEYS)),
        date_to=parse_timestamp(_first_present(raw, DATE_TO_KEYS)),
        price_now=price_now,
        atr_abs=atr_abs,
        atr_pct=atr_pct,
        rsi_k=_first_number(raw, RSI_K_KEYS),
        rsi_d=_first_number(raw, RSI_D_KEYS),
        ema20=_first_number(raw, EMA20_KEYS),
        ema200=_first_number(raw, EMA200_KEYS),
        vwap=_first_number(raw, VWAP_KEYS),
        vol_avg=_first_number(raw, VOL_AVG_KEYS),
        signal=parse_mood(_first_present(raw, SIGNAL_KEYS)),
        hl_rows=tuple(levels),
        created_at=parse_timestamp(raw.get("created_at")),
    )


def snapshot_context(snapshot: IndicatorSnapshot) -> ExecutionContext:
    """Execution context from a snapshot's own frozen levels."""

    nearest = select_nearest(snapshot.hl_rows, snapshot.price_now)
    return ExecutionContext(
        price=snapshot.price_now,
        ema20=snapshot.ema20,
        ema200=snapshot.ema200,
        support1=nearest.support1,
        support2=nearest.support2,
        resistance1=nearest.resistance1,
        resistance2=nearest.resistance2,
    )
