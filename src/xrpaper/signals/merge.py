"""Merge persisted levels and overlays into one price-ordered view."""

from __future__ import annotations

import math
from typing import Iterable

from xrpaper.signals.models import MergedLevel, OverlayLevel, PriceLevel
from xrpaper.signals.numeric import safe_float


def _sort_key(item: MergedLevel) -> float:
    price = safe_float(item.price)
    return price if price is not None else -math.inf


def to_merged(level: PriceLevel) -> MergedLevel:
    return MergedLevel(kind="hl", price=safe_float(level.price), label=level.type, level=level)


def overlay_to_merged(overlay: OverlayLevel) -> MergedLevel:
    return MergedLevel(kind="overlay", price=safe_float(overlay.price), label=overlay.label)


def merge_and_sort(
    levels: Iterable[PriceLevel],
    overlays: Iterable[OverlayLevel],
) -> list[MergedLevel]:
    """Return levels and overlays sorted by price descending.

    Missing prices sort last. The sort is stable, so equal prices keep
    levels ahead of overlays and otherwise follow input order.
    """

    merged = [to_merged(level) for level in levels]
    merged.extend(overlay_to_merged(overlay) for overlay in overlays)
    return sorted(merged, key=_sort_key, reverse=True)
