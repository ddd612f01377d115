from __future__ import annotations

from datetime import datetime, timezone

import polars as pl

from xrpaper.journal.reports import (
    LEVEL_SCHEMA,
    format_date,
    format_num,
    format_pct,
    levels_frame,
    merged_frame,
    render_execution_report,
)
from xrpaper.journal.snapshots import StudyInputs, build_snapshot, snapshot_context
from xrpaper.signals.execution import plan_all
from xrpaper.signals.merge import merge_and_sort
from xrpaper.signals.models import NearestLevels, OverlayLevel, PriceLevel


def _levels() -> list[PriceLevel]:
    return [
        PriceLevel(id="a", symbol="BTCUSDT", timeframe="5m", type="support", price=112000.0),
        PriceLevel(id="b", symbol="BTCUSDT", timeframe="5m", type="resistance", price=113000.0),
    ]


def test_format_num_uses_pt_br_separators() -> None:
    assert format_num(112863) == "112.863"
    assert format_num(112863.5) == "112.863,5"
    assert format_num(47.94) == "47,94"
    assert format_num(1.0) == "1"
    assert format_num(None) == "—"
    assert format_num(float("nan")) == "—"


def test_format_pct_and_date() -> None:
    assert format_pct(0.7977) == "0,80%"
    assert format_pct(None) == "—"
    assert format_date(datetime(2025, 9, 1, 12, 30, tzinfo=timezone.utc)) == "01/09/2025 12:30:00"
    assert format_date("2025-09-01 08:00:00") == "01/09/2025 08:00:00"
    assert format_date("ontem") == "ontem"
    assert format_date("") == "—"


def test_levels_frame_keeps_schema_when_empty() -> None:
    frame = levels_frame([])

    assert frame.height == 0
    assert frame.columns == list(LEVEL_SCHEMA)
    assert frame.schema["price"] == pl.Float64


def test_levels_and_merged_frames() -> None:
    levels = _levels()
    merged = merge_and_sort(levels, [OverlayLevel(label="[Valor Atual]", price=112500.0)])

    frame = levels_frame(levels)
    merged_view = merged_frame(merged)

    assert frame["price"].to_list() == [112000.0, 113000.0]
    assert merged_view["label"].to_list() == ["resistance", "[Valor Atual]", "support"]
    assert merged_view["type"].to_list() == ["resistance", None, "support"]


def test_render_execution_report() -> None:
    snapshot = build_snapshot(
        user_id="user-1",
        symbol="BTCUSDT",
        timeframe="5m",
        date_from=None,
        date_to=None,
        inputs=StudyInputs(price_now=112500.0, atr_abs=89.74, ema20=112043.0, ema200=112335.0),
        signal="favoravel",
        levels=_levels(),
        captured_at=datetime(2025, 9, 1, tzinfo=timezone.utc),
    )
    context = snapshot_context(snapshot)
    nearest = NearestLevels(support1=context.support1, resistance1=context.resistance1)

    text = render_execution_report(snapshot, nearest, plan_all(context))

    assert text.startswith("# XRPaper - MEX\n")
    assert "Sinal: **Favorável**" in text
    assert "| Preço | 112.500 |" in text
    assert "## Gatilhos (Rompimento)" in text
    assert "## Gatilhos (Pullback)" in text
    assert "### Long (Compra)" in text
    assert "- **Alvo T1**: 113.000 (RR 1)" in text
    assert "| 112.000 | 5m | support | 01/09/2025 00:00:00 |" in text


def test_render_execution_report_single_mode_without_levels() -> None:
    snapshot = build_snapshot(
        user_id="user-1",
        symbol="BTCUSDT",
        timeframe="5m",
        date_from=None,
        date_to=None,
        inputs=StudyInputs(price_now=100.0),
        signal=None,
        levels=[],
    )
    context = snapshot_context(snapshot)

    text = render_execution_report(snapshot, NearestLevels(), plan_all(context), mode="pullback")

    assert "Sinal: **—**" in text
    assert "Rompimento" not in text
    assert "Nenhuma HL no snapshot." in text
