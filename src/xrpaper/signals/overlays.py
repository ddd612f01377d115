"""Overlay pseudo-levels built from current indicator readings."""

from __future__ import annotations

from xrpaper.signals.models import (
    OVERLAY_LABEL_EMA20,
    OVERLAY_LABEL_EMA200,
    OVERLAY_LABEL_PRICE,
    OverlayInputs,
    OverlayLevel,
)
from xrpaper.signals.numeric import safe_float


def build_overlays(inputs: OverlayInputs) -> list[OverlayLevel]:
    """Return one overlay per available reading: price, EMA20, EMA200."""

    candidates = (
        (OVERLAY_LABEL_PRICE, inputs.price_now),
        (OVERLAY_LABEL_EMA20, inputs.ema20),
        (OVERLAY_LABEL_EMA200, inputs.ema200),
    )
    overlays: list[OverlayLevel] = []
    for label, value in candidates:
        price = safe_float(value)
        if price is None:
            continue
        overlays.append(OverlayLevel(label=label, price=price))
    return overlays
