from __future__ import annotations

import pytest

from xrpaper.signals.execution import execution_guidance, plan_all, plan_execution, risk_reward
from xrpaper.signals.models import ExecutionContext, PriceLevel
from xrpaper.signals.nearest import select_nearest


def test_end_to_end_long_plan_from_levels() -> None:
    levels = [
        PriceLevel(id=None, symbol="BTCUSDT", timeframe="5m", type="support", price=112000.0),
        PriceLevel(id=None, symbol="BTCUSDT", timeframe="5m", type="resistance", price=113000.0),
    ]
    nearest = select_nearest(levels, 112500.0)
    context = ExecutionContext(
        price=112500.0,
        support1=nearest.support1,
        support2=nearest.support2,
        resistance1=nearest.resistance1,
        resistance2=nearest.resistance2,
    )

    plan = plan_execution(context, "long", "breakout")

    assert plan.stop == 112000.0
    assert plan.target1 == 113000.0
    assert plan.target2 is None
    assert plan.risk_reward1 == pytest.approx(1.0)
    assert plan.risk_reward2 is None


def test_long_stop_uses_support_regardless_of_emas() -> None:
    context = ExecutionContext(price=100.0, ema20=99.5, ema200=50.0, support1=95.0)

    assert plan_execution(context, "long", "breakout").stop == 95.0
    assert plan_execution(context, "long", "pullback").stop == 95.0


def test_long_fallbacks_use_emas_clamped_against_price() -> None:
    context = ExecutionContext(price=100.0, ema20=102.0, ema200=98.0)

    plan = plan_execution(context, "long", "breakout")

    assert plan.stop == 100.0
    assert plan.target1 == 100.0
    assert plan.risk_reward1 is None


def test_long_fallbacks_with_emas_on_expected_sides() -> None:
    context = ExecutionContext(price=100.0, ema20=96.0, ema200=108.0)

    plan = plan_execution(context, "long", "breakout")

    assert plan.stop == 96.0
    assert plan.target1 == 108.0
    assert plan.risk_reward1 == pytest.approx(2.0)


def test_short_plan_mirrors_long_rules() -> None:
    context = ExecutionContext(
        price=100.0,
        ema20=97.0,
        ema200=104.0,
        support1=96.0,
        support2=92.0,
        resistance1=102.0,
        resistance2=106.0,
    )

    plan = plan_execution(context, "short", "breakout")

    assert plan.stop == 102.0
    assert plan.target1 == 96.0
    assert plan.target2 == 92.0
    assert plan.risk_reward1 == pytest.approx(2.0)
    assert plan.risk_reward2 == pytest.approx(4.0)


def test_short_fallbacks() -> None:
    plan = plan_execution(ExecutionContext(price=100.0, ema20=97.0, ema200=104.0), "short", "pullback")

    assert plan.stop == 104.0
    assert plan.target1 == 97.0
    assert plan.target2 is None
    assert plan.risk_reward1 == pytest.approx(0.75)


def test_missing_everything_gives_empty_plan() -> None:
    plan = plan_execution(ExecutionContext(price=None), "long", "breakout")

    assert (plan.stop, plan.target1, plan.target2) == (None, None, None)
    assert (plan.risk_reward1, plan.risk_reward2) == (None, None)


def test_long_rr_is_none_when_stop_not_below_price() -> None:
    assert risk_reward("long", 100.0, 100.0, 110.0) is None
    assert risk_reward("long", 100.0, 101.0, 110.0) is None
    context = ExecutionContext(price=100.0, support1=100.0, resistance1=110.0)
    assert plan_execution(context, "long", "breakout").risk_reward1 is None


def test_short_rr_is_none_when_stop_not_above_price() -> None:
    assert risk_reward("short", 100.0, 99.0, 90.0) is None
    assert risk_reward("short", 100.0, 105.0, 90.0) == pytest.approx(2.0)


def test_modes_share_numbers_but_not_guidance() -> None:
    context = ExecutionContext(price=100.0, ema20=97.0, ema200=104.0, support1=95.0, resistance1=108.0)

    plans = plan_all(context)

    assert len(plans) == 4
    for direction in ("long", "short"):
        breakout = plans[(direction, "breakout")]
        pullback = plans[(direction, "pullback")]
        assert (breakout.stop, breakout.target1, breakout.risk_reward1) == (
            pullback.stop,
            pullback.target1,
            pullback.risk_reward1,
        )
        assert breakout.guidance != pullback.guidance
    assert execution_guidance("long", "pullback") == plans[("long", "pullback")].guidance


def test_invalid_direction_or_mode_raises() -> None:
    context = ExecutionContext(price=100.0)

    with pytest.raises(ValueError, match="direction"):
        plan_execution(context, "sideways", "breakout")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="mode"):
        plan_execution(context, "long", "scalp")  # type: ignore[arg-type]
