"""Qualitative market-mood classification from indicator readings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol

from xrpaper.signals.models import (
    MOOD_FAVORABLE,
    MOOD_LABELS,
    MOOD_NEUTRAL,
    MOOD_UNFAVORABLE,
    Mood,
    MoodInputs,
)
from xrpaper.signals.numeric import safe_float

if TYPE_CHECKING:
    from xrpaper.config import SignalsConfig

MoodPolicyName = Literal["score", "atr_band"]


class MoodPolicy(Protocol):
    name: str

    def classify(self, inputs: MoodInputs) -> Mood: ...


@dataclass(frozen=True, slots=True)
class ScoreMoodPolicy:
    """Additive score over trend, momentum and volatility conditions."""

    favorable_min_score: int = 3
    unfavorable_max_score: int = 1
    name: str = "score"

    def evaluate(self, inputs: MoodInputs) -> tuple[int, int]:
        """Return ``(score, evaluable_conditions)``."""

        price = safe_float(inputs.price)
        ema20 = safe_float(inputs.ema20)
        ema200 = safe_float(inputs.ema200)
        rsi_k = safe_float(inputs.rsi_k)
        rsi_d = safe_float(inputs.rsi_d)
        atr = safe_float(inputs.atr)

        score = 0
        evaluable = 0
        if price is not None and ema20 is not None:
            evaluable += 1
            score += int(price > ema20)
        if price is not None and ema200 is not None:
            evaluable += 1
            score += int(price > ema200)
        if rsi_k is not None and rsi_d is not None:
            evaluable += 1
            score += int(rsi_k > rsi_d)
        if atr is not None:
            evaluable += 1
            score += int(atr > 0)
        return score, evaluable

    def score(self, inputs: MoodInputs) -> int:
        return self.evaluate(inputs)[0]

    def classify(self, inputs: MoodInputs) -> Mood:
        score, evaluable = self.evaluate(inputs)
        if evaluable == 0:
            return MOOD_NEUTRAL
        if score >= self.favorable_min_score:
            return MOOD_FAVORABLE
        if score <= self.unfavorable_max_score:
            return MOOD_UNFAVORABLE
        return MOOD_NEUTRAL


def atr_percent(atr: float | None, price: float | None) -> float | None:
    """Return ATR as a percentage of price, or None when undefined."""

    atr_value = safe_float(atr)
    price_value = safe_float(price)
    if atr_value is None or price_value is None or price_value == 0:
        return None
    return atr_value / price_value * 100.0


@dataclass(frozen=True, slots=True)
class AtrBandMoodPolicy:
    """ATR%-threshold bands combined with an RSI-K momentum band."""

    favorable_min_atr_pct: float = 1.0
    unfavorable_max_atr_pct: float = 0.5
    rsi_k_band_low: float = 50.0
    rsi_k_band_high: float = 80.0
    name: str = "atr_band"

    def classify(self, inputs: MoodInputs) -> Mood:
        atr_pct = atr_percent(inputs.atr, inputs.price)
        rsi_k = safe_float(inputs.rsi_k)
        rsi_d = safe_float(inputs.rsi_d)
        if atr_pct is None or rsi_k is None or rsi_d is None:
            return MOOD_NEUTRAL

        in_band = self.rsi_k_band_low <= rsi_k <= self.rsi_k_band_high
        if atr_pct >= self.favorable_min_atr_pct and in_band and rsi_k > rsi_d:
            return MOOD_FAVORABLE
        if atr_pct < self.unfavorable_max_atr_pct or rsi_k < rsi_d:
            return MOOD_UNFAVORABLE
        return MOOD_NEUTRAL


DEFAULT_MOOD_POLICY: MoodPolicy = ScoreMoodPolicy()


def mood_policy_from_config(config: "SignalsConfig") -> MoodPolicy:
    """Build the configured mood policy."""

    if config.mood_policy == "atr_band":
        band = config.atr_band
        return AtrBandMoodPolicy(
            favorable_min_atr_pct=band.favorable_min_atr_pct,
            unfavorable_max_atr_pct=band.unfavorable_max_atr_pct,
            rsi_k_band_low=band.rsi_k_band_low,
            rsi_k_band_high=band.rsi_k_band_high,
        )
    if config.mood_policy == "score":
        return ScoreMoodPolicy(
            favorable_min_score=config.score.favorable_min_score,
            unfavorable_max_score=config.score.unfavorable_max_score,
        )
    raise ValueError(f"Unsupported mood policy: {config.mood_policy}")


def classify_mood(inputs: MoodInputs, policy: MoodPolicy | None = None) -> Mood:
    """Classify indicator readings; missing inputs degrade to neutral."""

    return (policy or DEFAULT_MOOD_POLICY).classify(inputs)


def parse_mood(value: object) -> Mood | None:
    """Accept a stored mood either as value (``favoravel``) or label (``Favorável``)."""

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    for mood, label in MOOD_LABELS.items():
        if text.lower() in {mood, label.lower()}:
            return mood  # type: ignore[return-value]
    return None


def mood_label(mood: str | None) -> str:
    if mood is None:
        return "—"
    return MOOD_LABELS.get(mood, mood)
