"""Nearest support/resistance selection around a reference price."""

from __future__ import annotations

from typing import Iterable

from xrpaper.signals.models import MergedLevel, NearestByDistance, NearestLevels, PriceLevel
from xrpaper.signals.numeric import safe_float


def _typed_prices(levels: Iterable[PriceLevel | MergedLevel], level_type: str) -> list[float]:
    """Return finite prices of persisted levels with the requested type, in input order."""

    prices: list[float] = []
    for item in levels:
        if isinstance(item, MergedLevel):
            if item.kind != "hl" or item.level is None:
                continue
            level = item.level
        else:
            level = item
        if level.type != level_type:
            continue
        price = safe_float(level.price)
        if price is not None:
            prices.append(price)
    return prices


def _slot(values: list[float], index: int) -> float | None:
    return values[index] if len(values) > index else None


def select_nearest(levels: Iterable[PriceLevel | MergedLevel], px: float | None) -> NearestLevels:
    """Select the two closest supports at/below and resistances at/above ``px``.

    Overlay entries of a merged view are ignored. Slots without a
    qualifying level stay None; no EMA fallback is applied here.
    """

    price = safe_float(px)
    if price is None:
        return NearestLevels()
    rows = list(levels)

    supports = sorted((p for p in _typed_prices(rows, "support") if p <= price), reverse=True)
    resistances = sorted(p for p in _typed_prices(rows, "resistance") if p >= price)
    return NearestLevels(
        support1=_slot(supports, 0),
        support2=_slot(supports, 1),
        resistance1=_slot(resistances, 0),
        resistance2=_slot(resistances, 1),
    )


def _closest(prices: list[float], price: float) -> float | None:
    best: float | None = None
    best_distance = 0.0
    for candidate in prices:
        distance = abs(price - candidate)
        if best is None or distance < best_distance:
            best = candidate
            best_distance = distance
    return best


def select_nearest_by_distance(
    levels: Iterable[PriceLevel | MergedLevel],
    px: float | None,
) -> NearestByDistance:
    """Select the support and the resistance closest to ``px`` on either side."""

    price = safe_float(px)
    if price is None:
        return NearestByDistance()
    rows = list(levels)
    return NearestByDistance(
        support=_closest(_typed_prices(rows, "support"), price),
        resistance=_closest(_typed_prices(rows, "resistance"), price),
    )
