from __future__ import annotations

import pytest

from xrpaper.config import SignalsConfig
from xrpaper.signals.models import MoodInputs
from xrpaper.signals.mood import (
    AtrBandMoodPolicy,
    ScoreMoodPolicy,
    atr_percent,
    classify_mood,
    mood_label,
    mood_policy_from_config,
    parse_mood,
)

SCENARIO = MoodInputs(
    price=112863.0,
    ema20=112043.0,
    ema200=112335.0,
    rsi_k=43.41,
    rsi_d=47.94,
    atr=89.74,
)


def test_score_policy_scenario_is_favorable() -> None:
    policy = ScoreMoodPolicy()

    assert policy.score(SCENARIO) == 3
    assert classify_mood(SCENARIO) == "favoravel"


def test_all_missing_inputs_are_neutral() -> None:
    assert ScoreMoodPolicy().score(MoodInputs()) == 0
    assert classify_mood(MoodInputs()) == "neutro"
    assert classify_mood(MoodInputs(), AtrBandMoodPolicy()) == "neutro"


def test_score_policy_thresholds() -> None:
    policy = ScoreMoodPolicy()
    two_points = MoodInputs(price=10.0, ema20=9.0, ema200=11.0, rsi_k=40.0, rsi_d=50.0, atr=1.0)
    one_point = MoodInputs(price=10.0, ema20=11.0, ema200=11.0, rsi_k=40.0, rsi_d=50.0, atr=1.0)

    assert policy.score(two_points) == 2
    assert policy.classify(two_points) == "neutro"
    assert policy.classify(one_point) == "desfavoravel"


def test_score_policy_with_partial_inputs() -> None:
    assert classify_mood(MoodInputs(atr=0.0)) == "desfavoravel"
    assert classify_mood(MoodInputs(price=10.0, rsi_k=60.0)) == "neutro"


def test_atr_band_policy() -> None:
    policy = AtrBandMoodPolicy()

    favorable = MoodInputs(price=100.0, atr=1.2, rsi_k=60.0, rsi_d=55.0)
    low_volatility = MoodInputs(price=100.0, atr=0.4, rsi_k=60.0, rsi_d=55.0)
    falling_momentum = MoodInputs(price=100.0, atr=1.2, rsi_k=45.0, rsi_d=55.0)
    out_of_band = MoodInputs(price=100.0, atr=1.2, rsi_k=85.0, rsi_d=80.0)

    assert policy.classify(favorable) == "favoravel"
    assert policy.classify(low_volatility) == "desfavoravel"
    assert policy.classify(falling_momentum) == "desfavoravel"
    assert policy.classify(out_of_band) == "neutro"
    assert policy.classify(MoodInputs(price=0.0, atr=1.0, rsi_k=60.0, rsi_d=50.0)) == "neutro"


def test_policies_disagree_on_scenario() -> None:
    assert classify_mood(SCENARIO, ScoreMoodPolicy()) == "favoravel"
    assert classify_mood(SCENARIO, AtrBandMoodPolicy()) == "desfavoravel"


def test_atr_percent() -> None:
    assert atr_percent(89.74, 112863.0) == pytest.approx(0.07951, rel=1e-3)
    assert atr_percent(None, 100.0) is None
    assert atr_percent(1.0, 0.0) is None


def test_mood_policy_from_config() -> None:
    score_policy = mood_policy_from_config(SignalsConfig())
    band_policy = mood_policy_from_config(
        SignalsConfig.model_validate({"mood_policy": "atr_band", "atr_band": {"favorable_min_atr_pct": 2.0}})
    )

    assert isinstance(score_policy, ScoreMoodPolicy)
    assert isinstance(band_policy, AtrBandMoodPolicy)
    assert band_policy.favorable_min_atr_pct == 2.0


def test_parse_mood_accepts_values_and_labels() -> None:
    assert parse_mood("favoravel") == "favoravel"
    assert parse_mood("Favorável") == "favoravel"
    assert parse_mood("Desfavorável") == "desfavoravel"
    assert parse_mood("neutro") == "neutro"
    assert parse_mood("") is None
    assert parse_mood("bullish") is None
    assert mood_label("neutro") == "Neutro"
    assert mood_label(None) == "—"
