"""Stop/target derivation and risk-reward for breakout and pullback setups."""

from __future__ import annotations

from xrpaper.signals.models import (
    DIRECTIONS,
    TRADE_MODES,
    Direction,
    ExecutionContext,
    ExecutionPlan,
    TradeMode,
)
from xrpaper.signals.numeric import safe_float

GUIDANCE: dict[tuple[str, str], tuple[str, ...]] = {
    ("long", "breakout"): (
        "Espere um candle fechar acima da EMA20.",
        "O RSI K deve estar acima do D (cruzamento para cima).",
        "O ATR% precisa aumentar.",
    ),
    ("short", "breakout"): (
        "Espere um candle fechar abaixo da EMA200.",
        "O RSI K deve estar abaixo do D (cruzamento para baixo).",
        "O ATR% precisa aumentar.",
    ),
    ("long", "pullback"): (
        "Primeiro, o preço já deve estar acima da EMA20.",
        "Espere um recuo até a EMA20 ou até o suporte mais próximo.",
        "Entre quando o RSI K cruzar acima do D novamente.",
    ),
    ("short", "pullback"): (
        "O preço já deve estar abaixo da EMA200.",
        "Espere um repique até a resistência mais próxima ou até a EMA200.",
        "Entre quando o RSI K cruzar abaixo do D novamente.",
    ),
}


def _validate(direction: str, mode: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of: {','.join(DIRECTIONS)}")
    if mode not in TRADE_MODES:
        raise ValueError(f"mode must be one of: {','.join(TRADE_MODES)}")


def _below_reference(ema: float | None, price: float | None) -> float | None:
    if ema is None or price is None:
        return None
    return min(ema, price)


def _above_reference(ema: float | None, price: float | None) -> float | None:
    if ema is None or price is None:
        return None
    return max(ema, price)


def risk_reward(
    direction: Direction,
    price: float | None,
    stop: float | None,
    target: float | None,
) -> float | None:
    """Return reward/risk for one target, or None when risk is not positive."""

    if price is None or stop is None or target is None:
        return None
    if direction == "long":
        risk = price - stop
        reward = target - price
    else:
        risk = stop - price
        reward = price - target
    if risk <= 0:
        return None
    return reward / risk


def execution_guidance(direction: Direction, mode: TradeMode) -> tuple[str, ...]:
    _validate(direction, mode)
    return GUIDANCE[(direction, mode)]


def plan_execution(context: ExecutionContext, direction: Direction, mode: TradeMode) -> ExecutionPlan:
    """Derive stop, targets and risk-reward for one direction and mode.

    Nearest levels win; EMA20/EMA200 clamped against price are the
    fallbacks. Both modes share the same level rule and differ only in
    guidance text.
    """

    _validate(direction, mode)
    price = safe_float(context.price)
    ema20 = safe_float(context.ema20)
    ema200 = safe_float(context.ema200)
    support1 = safe_float(context.support1)
    support2 = safe_float(context.support2)
    resistance1 = safe_float(context.resistance1)
    resistance2 = safe_float(context.resistance2)

    if direction == "long":
        stop = support1 if support1 is not None else _below_reference(ema20, price)
        target1 = resistance1 if resistance1 is not None else _above_reference(ema200, price)
        target2 = resistance2
    else:
        stop = resistance1 if resistance1 is not None else _above_reference(ema200, price)
        target1 = support1 if support1 is not None else _below_reference(ema20, price)
        target2 = support2

    return ExecutionPlan(
        direction=direction,
        mode=mode,
        stop=stop,
        target1=target1,
        target2=target2,
        risk_reward1=risk_reward(direction, price, stop, target1),
        risk_reward2=risk_reward(direction, price, stop, target2),
        guidance=GUIDANCE[(direction, mode)],
    )


def plan_all(context: ExecutionContext) -> dict[tuple[str, str], ExecutionPlan]:
    """Return plans for every (direction, mode) pair."""

    return {
        (direction, mode): plan_execution(context, direction, mode)  # type: ignore[arg-type]
        for mode in TRADE_MODES
        for direction in DIRECTIONS
    }
