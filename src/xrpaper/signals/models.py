"""Typed models for levels, indicator snapshots and execution plans."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

LevelType = Literal["support", "resistance", "undefined"]
LevelKind = Literal["hl", "overlay"]
Timeframe = Literal["1m", "5m", "15m", "30m", "1h", "4h", "1d", "1w", "1mo", "1y"]
Mood = Literal["favoravel", "desfavoravel", "neutro"]
Direction = Literal["long", "short"]
TradeMode = Literal["breakout", "pullback"]

LEVEL_TYPES: tuple[str, ...] = ("support", "resistance", "undefined")
TIMEFRAME_OPTIONS: tuple[str, ...] = ("1m", "5m", "15m", "30m", "1h", "4h", "1d", "1w", "1mo", "1y")
DIRECTIONS: tuple[str, ...] = ("long", "short")
TRADE_MODES: tuple[str, ...] = ("breakout", "pullback")

MOOD_FAVORABLE: Mood = "favoravel"
MOOD_UNFAVORABLE: Mood = "desfavoravel"
MOOD_NEUTRAL: Mood = "neutro"

MOOD_LABELS: dict[str, str] = {
    MOOD_FAVORABLE: "Favorável",
    MOOD_UNFAVORABLE: "Desfavorável",
    MOOD_NEUTRAL: "Neutro",
}

OVERLAY_LABEL_PRICE = "[Valor Atual]"
OVERLAY_LABEL_EMA20 = "[EMA20]"
OVERLAY_LABEL_EMA200 = "[EMA200]"


@dataclass(frozen=True, slots=True)
class PriceLevel:
    """A support/resistance line recorded by a user.

    Attributes:
        id: store-assigned identifier; None for rows embedded in a snapshot
        symbol: uppercase instrument ticker
        timeframe: chart interval the level was drawn on
        type: 'support' | 'resistance' | 'undefined'
        price: level price
        observed_at: when the level was observed, if known
        user_id: owning user, if known
    """

    id: str | None
    symbol: str
    timeframe: str
    type: LevelType
    price: float
    observed_at: datetime | None = None
    user_id: str | None = None


@dataclass(frozen=True, slots=True)
class OverlayLevel:
    """Pseudo-level synthesized from a current indicator value."""

    label: str
    price: float


@dataclass(frozen=True, slots=True)
class MergedLevel:
    """Persisted level or overlay in one price-ordered view."""

    kind: LevelKind
    price: float | None
    label: str
    level: PriceLevel | None = None

    @property
    def type(self) -> str | None:
        return self.level.type if self.level is not None else None


@dataclass(frozen=True, slots=True)
class OverlayInputs:
    price_now: float | None = None
    ema20: float | None = None
    ema200: float | None = None


@dataclass(frozen=True, slots=True)
class MoodInputs:
    """Indicator readings consumed by mood policies."""

    price: float | None = None
    ema20: float | None = None
    ema200: float | None = None
    rsi_k: float | None = None
    rsi_d: float | None = None
    atr: float | None = None
    vwap: float | None = None


@dataclass(frozen=True, slots=True)
class NearestLevels:
    support1: float | None = None
    support2: float | None = None
    resistance1: float | None = None
    resistance2: float | None = None


@dataclass(frozen=True, slots=True)
class NearestByDistance:
    support: float | None = None
    resistance: float | None = None


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Price, trend references and bounding levels for one execution pass."""

    price: float | None
    ema20: float | None = None
    ema200: float | None = None
    support1: float | None = None
    support2: float | None = None
    resistance1: float | None = None
    resistance2: float | None = None


@dataclass(frozen=True, slots=True)
class ExecutionPlan:
    """Derived stop/targets and risk-reward for one direction and mode."""

    direction: Direction
    mode: TradeMode
    stop: float | None
    target1: float | None
    target2: float | None
    risk_reward1: float | None
    risk_reward2: float | None
    guidance: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class IndicatorSnapshot:
    """Frozen record of one study session, reused by the execution view."""

    id: str | None
    user_id: str | None
    symbol: str | None
    timeframe: str | None
    date_from: datetime | None
    date_to: datetime | None
    price_now: float | None
    atr_abs: float | None
    atr_pct: float | None
    rsi_k: float | None
    rsi_d: float | None
    ema20: float | None
    ema200: float | None
    vwap: float | None
    vol_avg: float | None
    signal: Mood | None
    hl_rows: tuple[PriceLevel, ...] = field(default_factory=tuple)
    created_at: datetime | None = None
