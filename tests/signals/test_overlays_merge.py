from __future__ import annotations

from xrpaper.signals.merge import merge_and_sort
from xrpaper.signals.models import MergedLevel, OverlayInputs, OverlayLevel, PriceLevel
from xrpaper.signals.overlays import build_overlays


def _level(price: float, level_type: str = "support", level_id: str | None = None) -> PriceLevel:
    return PriceLevel(id=level_id, symbol="BTCUSDT", timeframe="5m", type=level_type, price=price)  # type: ignore[arg-type]


def test_build_overlays_keeps_fixed_order_and_labels() -> None:
    overlays = build_overlays(OverlayInputs(price_now=112863.0, ema20=112043.0, ema200=112335.0))

    assert [item.label for item in overlays] == ["[Valor Atual]", "[EMA20]", "[EMA200]"]
    assert [item.price for item in overlays] == [112863.0, 112043.0, 112335.0]


def test_build_overlays_skips_missing_inputs() -> None:
    overlays = build_overlays(OverlayInputs(price_now=None, ema20=100.0, ema200=None))

    assert overlays == [OverlayLevel(label="[EMA20]", price=100.0)]
    assert build_overlays(OverlayInputs()) == []


def test_merge_and_sort_orders_descending_with_length_preserved() -> None:
    levels = [_level(112000.0), _level(113000.0, "resistance"), _level(111500.0)]
    overlays = build_overlays(OverlayInputs(price_now=112500.0, ema20=112100.0))

    merged = merge_and_sort(levels, overlays)

    prices = [item.price for item in merged]
    assert prices == sorted(prices, reverse=True)
    assert len(merged) == len(levels) + len(overlays)
    assert merged[0].kind == "hl" and merged[0].type == "resistance"
    assert merged[1].kind == "overlay" and merged[1].label == "[Valor Atual]"


def test_merge_and_sort_is_stable_for_equal_prices() -> None:
    first = _level(100.0, "support", "a")
    second = _level(100.0, "resistance", "b")
    overlay = OverlayLevel(label="[EMA20]", price=100.0)

    merged = merge_and_sort([first, second], [overlay])

    assert [item.level.id if item.level else item.label for item in merged] == ["a", "b", "[EMA20]"]


def test_merge_and_sort_puts_missing_prices_last() -> None:
    broken = OverlayLevel(label="[EMA200]", price=float("nan"))

    merged = merge_and_sort([_level(5.0)], [broken, OverlayLevel(label="[EMA20]", price=-3.0)])

    assert merged[-1] == MergedLevel(kind="overlay", price=None, label="[EMA200]")
    assert [item.price for item in merged[:2]] == [5.0, -3.0]


def test_merge_and_sort_is_pure() -> None:
    levels = [_level(1.0), _level(3.0)]
    overlays = [OverlayLevel(label="[EMA20]", price=2.0)]

    assert merge_and_sort(levels, overlays) == merge_and_sort(levels, overlays)
    assert [level.price for level in levels] == [1.0, 3.0]
