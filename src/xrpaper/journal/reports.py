"""pt-BR formatting, level tables and markdown execution reports."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

import polars as pl

from xrpaper.signals.models import (
    DIRECTIONS,
    TRADE_MODES,
    ExecutionPlan,
    IndicatorSnapshot,
    MergedLevel,
    NearestLevels,
    PriceLevel,
)
from xrpaper.signals.mood import mood_label
from xrpaper.signals.numeric import safe_float
from xrpaper.utils.time_utils import parse_timestamp, to_iso_or_none

EMPTY = "—"

MODE_LABELS: dict[str, str] = {"breakout": "Rompimento", "pullback": "Pullback"}
DIRECTION_LABELS: dict[str, str] = {
    "long": "Long (Compra)",
    "short": "Short (Venda)",
}

LEVEL_SCHEMA: dict[str, pl.DataType] = {
    "id": pl.String,
    "symbol": pl.String,
    "timeframe": pl.String,
    "type": pl.String,
    "price": pl.Float64,
    "observed_at": pl.String,
}

MERGED_SCHEMA: dict[str, pl.DataType] = {
    "kind": pl.String,
    "label": pl.String,
    "type": pl.String,
    "price": pl.Float64,
}


def format_num(value: Any, max_decimals: int = 2) -> str:
    """Format like pt-BR ``toLocaleString``: ``112863.5`` -> ``112.863,5``."""

    number = safe_float(value)
    if number is None:
        return EMPTY
    rendered = f"{number:,.{max_decimals}f}"
    if "." in rendered:
        rendered = rendered.rstrip("0").rstrip(".")
    return rendered.replace(",", "_").replace(".", ",").replace("_", ".")


def format_pct(value: Any) -> str:
    number = safe_float(value)
    if number is None:
        return EMPTY
    return f"{number:.2f}".replace(".", ",") + "%"


def format_date(value: Any) -> str:
    """Render timestamps as ``dd/mm/yyyy HH:MM:SS`` UTC; unparseable text is shown raw."""

    if value is None or value == "":
        return EMPTY
    parsed = parse_timestamp(value)
    if parsed is None:
        return str(value)
    return parsed.astimezone(timezone.utc).strftime("%d/%m/%Y %H:%M:%S")


def levels_frame(levels: Iterable[PriceLevel]) -> pl.DataFrame:
    """Tabular view of levels with a stable schema."""

    rows = [
        {
            "id": level.id,
            "symbol": level.symbol,
            "timeframe": level.timeframe,
            "type": level.type,
            "price": float(level.price),
            "observed_at": to_iso_or_none(level.observed_at),
        }
        for level in levels
    ]
    if not rows:
        return pl.DataFrame(schema=LEVEL_SCHEMA)
    return pl.DataFrame(rows, schema=LEVEL_SCHEMA)


def merged_frame(merged: Iterable[MergedLevel]) -> pl.DataFrame:
    rows = [
        {"kind": item.kind, "label": item.label, "type": item.type, "price": item.price}
        for item in merged
    ]
    if not rows:
        return pl.DataFrame(schema=MERGED_SCHEMA)
    return pl.DataFrame(rows, schema=MERGED_SCHEMA)


def _plan_lines(plan: ExecutionPlan) -> list[str]:
    lines = [f"- {text}" for text in plan.guidance]
    lines.append(f"- **Stop**: {format_num(plan.stop)}")
    lines.append(f"- **Alvo T1**: {format_num(plan.target1)} (RR {format_num(plan.risk_reward1)})")
    if plan.target2 is not None:
        lines.append(f"- **Alvo T2**: {format_num(plan.target2)} (RR {format_num(plan.risk_reward2)})")
    return lines


def render_execution_report(
    snapshot: IndicatorSnapshot,
    nearest: NearestLevels,
    plans: Mapping[tuple[str, str], ExecutionPlan],
    *,
    mode: str | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Render the execution view of a snapshot as markdown."""

    modes = [mode] if mode is not None else list(TRADE_MODES)
    lines = [
        "# XRPaper - MEX",
        "",
        f"Sinal: **{mood_label(snapshot.signal)}**",
        "",
        "## Resumo",
        "",
        "| Campo | Valor |",
        "|---|---|",
        f"| Símbolo | {snapshot.symbol or EMPTY} |",
        f"| Tempo Gráfico | {snapshot.timeframe or EMPTY} |",
        f"| Período | {format_date(snapshot.date_from)} → {format_date(snapshot.date_to)} |",
        f"| Preço | {format_num(snapshot.price_now)} |",
        f"| ATR% | {format_pct(snapshot.atr_pct)} |",
        f"| RSI K/D | {format_num(snapshot.rsi_k)} / {format_num(snapshot.rsi_d)} |",
        f"| EMA20 | {format_num(snapshot.ema20)} |",
        f"| EMA200 | {format_num(snapshot.ema200)} |",
        f"| VWAP | {format_num(snapshot.vwap)} |",
        f"| Volume médio | {format_num(snapshot.vol_avg)} |",
        "",
        "## Níveis mais próximos",
        "",
        f"- Suporte 1 / 2: {format_num(nearest.support1)} / {format_num(nearest.support2)}",
        f"- Resistência 1 / 2: {format_num(nearest.resistance1)} / {format_num(nearest.resistance2)}",
    ]

    for current_mode in modes:
        lines.extend(["", f"## Gatilhos ({MODE_LABELS.get(current_mode, current_mode)})"])
        for direction in DIRECTIONS:
            plan = plans.get((direction, current_mode))
            if plan is None:
                continue
            lines.extend(["", f"### {DIRECTION_LABELS[direction]}", "", *_plan_lines(plan)])

    lines.extend(["", "## Linhas HL do snapshot", ""])
    if snapshot.hl_rows:
        lines.extend(["| Preço | TF | Tipo | Data |", "|---|---|---|---|"])
        for level in snapshot.hl_rows:
            lines.append(
                f"| {format_num(level.price)} | {level.timeframe or EMPTY} | {level.type} | "
                f"{format_date(level.observed_at)} |"
            )
    else:
        lines.append("Nenhuma HL no snapshot.")

    if generated_at is not None:
        lines.extend(["", f"_Gerado em {format_date(generated_at)}_"])
    return "\n".join(lines) + "\n"
