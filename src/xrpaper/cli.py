"""Typer CLI entrypoint for xrpaper."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

import typer
import yaml

from xrpaper.config import AppSettings, load_settings
from xrpaper.errors import AuthError, XRPaperError
from xrpaper.journal.auth import LocalAuthProvider
from xrpaper.journal.duckdb_store import DuckDBJournalStore
from xrpaper.journal.reports import (
    format_num,
    levels_frame,
    merged_frame,
    render_execution_report,
)
from xrpaper.journal.workflow import JournalService, study_request_from_raw
from xrpaper.journal.writer import (
    write_csv_atomically,
    write_markdown_atomically,
    write_parquet_atomically,
)
from xrpaper.logging_utils import JOURNAL_LOGGER_NAME, configure_journal_logging
from xrpaper.signals.models import DIRECTIONS, LEVEL_TYPES, TIMEFRAME_OPTIONS, TRADE_MODES
from xrpaper.signals.mood import mood_label, mood_policy_from_config
from xrpaper.utils.paths import ensure_directories
from xrpaper.utils.time_utils import now_utc, parse_timestamp

app = typer.Typer(
    add_completion=False,
    help="xrpaper trading journal command line interface.",
    no_args_is_help=True,
)


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        logger = configure_journal_logging(settings.paths.logs_root, settings.logging)
    else:
        logger = logging.getLogger(JOURNAL_LOGGER_NAME)
    return settings, logger



def _auth_provider(settings: AppSettings) -> LocalAuthProvider:
    return LocalAuthProvider.from_config(settings.auth, session_file=settings.paths.session_file)


@contextmanager
def _journal(settings: AppSettings) -> Iterator[JournalService]:
    ensure_directories([settings.paths.data_root])
    store = DuckDBJournalStore(settings.paths.database_file)
    try:
        yield JournalService(
            level_store=store,
            snapshot_store=store,
            auth=_auth_provider(settings),
            mood_policy=mood_policy_from_config(settings.signals),
        )
    finally:
        store.close()


def _fail(logger: logging.Logger, exc: Exception) -> typer.Exit:
    logger.error("command.failed error=%s", exc)
    typer.echo(f"error: {exc}", err=True)
    return typer.Exit(code=1)


def _parse_datetime(value: str | None, option_name: str) -> datetime | None:
    if value is None:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise typer.BadParameter(f"{option_name} must be an ISO timestamp (YYYY-MM-DD[THH:MM[:SS]]).")
    return parsed


def _normalize_choice(value: str, *, allowed: tuple[str, ...], option_name: str) -> str:
    normalized = value.strip().lower()
    if normalized not in allowed:
        raise typer.BadParameter(f"{option_name} must be one of: {','.join(allowed)}")
    return normalized


def _timeframe_choice(value: str | None, settings: AppSettings) -> str:
    if value is None:
        return settings.levels.default_timeframe
    if value.strip() not in TIMEFRAME_OPTIONS:
        raise typer.BadParameter(f"timeframe must be one of: {','.join(TIMEFRAME_OPTIONS)}")
    return value.strip()


@app.command("show-config")
def show_config(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Print the effective configuration after env overrides."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("whoami")
def whoami(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Show the current session of the local auth provider."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    session = _auth_provider(settings).get_current_session()
    if session is None:
        typer.echo("signed_out")
        raise typer.Exit(code=1)
    typer.echo(f"user_id: {session.user_id}")
    typer.echo(f"email: {session.email or 'none'}")


@app.command("sign-in")
def sign_in(
    email: str | None = typer.Option(None, "--email", help="Account email (default from settings)."),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Account password."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Sign in with email and password; the session persists across commands."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    provider = _auth_provider(settings)
    try:
        session = provider.sign_in_with_password(email or settings.auth.email or "", password)
    except AuthError as exc:
        raise _fail(logger, exc) from exc
    typer.echo(f"user_id: {session.user_id}")
    typer.echo(f"email: {session.email or 'none'}")
    typer.echo(f"session_file: {settings.paths.session_file}")


@app.command("sign-out")
def sign_out(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """End the persisted session."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=True)
    provider = _auth_provider(settings)
    provider.sign_out()
    typer.echo("signed_out")


@app.command("levels-add")
def levels_add(
    price: str = typer.Option(..., "--price", help="Level price; accepts 1.234,56 or 1,234.56."),
    level_type: str = typer.Option("support", "--type", help="support, resistance or undefined."),
    symbol: str | None = typer.Option(None, "--symbol", help="Instrument ticker (default from settings)."),
    timeframe: str | None = typer.Option(None, "--timeframe", help="Chart interval (default from settings)."),
    observed_at: str | None = typer.Option(None, "--at", help="Optional observed-at ISO timestamp (UTC)."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Record a support/resistance level."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    normalized_type = _normalize_choice(level_type, allowed=LEVEL_TYPES, option_name="type")
    selected_timeframe = _timeframe_choice(timeframe, settings)
    at = _parse_datetime(observed_at, "at")
    try:
        with _journal(settings) as journal:
            level = journal.add_level(
                symbol=symbol or settings.levels.default_symbol,
                timeframe=selected_timeframe,
                level_type=normalized_type,
                price=price,
                observed_at=at,
            )
    except (XRPaperError, ValueError) as exc:
        raise _fail(logger, exc) from exc

    typer.echo(f"level_id: {level.id}")
    typer.echo(f"symbol: {level.symbol}")
    typer.echo(f"timeframe: {level.timeframe}")
    typer.echo(f"type: {level.type}")
    typer.echo(f"price: {format_num(level.price)}")


@app.command("levels-list")
def levels_list(
    symbol: str | None = typer.Option(None, "--symbol", help="Instrument ticker (default from settings)."),
    timeframe: str | None = typer.Option(None, "--timeframe", help="Optional timeframe filter."),
    date_from: str | None = typer.Option(None, "--date-from", help="Optional observed-at lower bound (ISO)."),
    date_to: str | None = typer.Option(None, "--date-to", help="Optional observed-at upper bound (ISO)."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """List levels ordered by price descending."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=False)
    selected_timeframe = _timeframe_choice(timeframe, settings) if timeframe is not None else None
    start = _parse_datetime(date_from, "date-from")
    end = _parse_datetime(date_to, "date-to")
    try:
        with _journal(settings) as journal:
            levels = journal.list_levels(
                symbol or settings.levels.default_symbol,
                timeframe=selected_timeframe,
                date_from=start,
                date_to=end,
            )
    except (XRPaperError, ValueError) as exc:
        raise _fail(logger, exc) from exc

    if not levels:
        typer.echo("No levels found.")
        return
    typer.echo(str(levels_frame(levels)))


@app.command("levels-delete")
def levels_delete(
    level_id: str = typer.Argument(..., help="Level id to delete."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Delete a level by id."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    try:
        with _journal(settings) as journal:
            journal.delete_level(level_id)
    except (XRPaperError, ValueError) as exc:
        raise _fail(logger, exc) from exc
    typer.echo(f"deleted_level_id: {level_id}")


@app.command("levels-export")
def levels_export(
    output: Path = typer.Option(..., "--output", help="Output path ending in .csv or .parquet."),
    symbol: str | None = typer.Option(None, "--symbol", help="Instrument ticker (default from settings)."),
    timeframe: str | None = typer.Option(None, "--timeframe", help="Optional timeframe filter."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Export levels to CSV or parquet."""

    suffix = output.suffix.lower()
    if suffix not in {".csv", ".parquet"}:
        raise typer.BadParameter("output must end in .csv or .parquet")
    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    selected_timeframe = _timeframe_choice(timeframe, settings) if timeframe is not None else None
    try:
        with _journal(settings) as journal:
            levels = journal.list_levels(symbol or settings.levels.default_symbol, timeframe=selected_timeframe)
    except (XRPaperError, ValueError) as exc:
        raise _fail(logger, exc) from exc

    frame = levels_frame(levels)
    if suffix == ".csv":
        written = write_csv_atomically(frame, output)
    else:
        written = write_parquet_atomically(frame, output)
    logger.info("levels_export.summary rows=%s path=%s", frame.height, written)
    typer.echo(f"rows: {frame.height}")
    typer.echo(f"output: {written}")


@app.command("study")
def study(
    price: str | None = typer.Option(None, "--price", help="Current price."),
    atr: str | None = typer.Option(None, "--atr", help="ATR (absolute value)."),
    rsi_k: str | None = typer.Option(None, "--rsi-k", help="Stochastic RSI K."),
    rsi_d: str | None = typer.Option(None, "--rsi-d", help="Stochastic RSI D."),
    ema20: str | None = typer.Option(None, "--ema20", help="EMA20."),
    ema200: str | None = typer.Option(None, "--ema200", help="EMA200."),
    vwap: str | None = typer.Option(None, "--vwap", help="VWAP."),
    vol_avg: str | None = typer.Option(None, "--vol-avg", help="Average volume."),
    symbol: str | None = typer.Option(None, "--symbol", help="Instrument ticker (default from settings)."),
    timeframe: str | None = typer.Option(None, "--timeframe", help="Chart interval (default from settings)."),
    date_from: str | None = typer.Option(None, "--date-from", help="Study period start (ISO)."),
    date_to: str | None = typer.Option(None, "--date-to", help="Study period end (ISO)."),
    save: bool = typer.Option(False, "--save", help="Save a snapshot for the execution view."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Classify the market mood and show levels merged with current readings."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    request = study_request_from_raw(
        symbol=symbol or settings.levels.default_symbol,
        timeframe=_timeframe_choice(timeframe, settings),
        date_from=_parse_datetime(date_from, "date-from"),
        date_to=_parse_datetime(date_to, "date-to"),
        raw_inputs={
            "price_now": price,
            "atr_abs": atr,
            "rsi_k": rsi_k,
            "rsi_d": rsi_d,
            "ema20": ema20,
            "ema200": ema200,
            "vwap": vwap,
            "vol_avg": vol_avg,
        },
    )
    snapshot_id: str | None = None
    try:
        with _journal(settings) as journal:
            result = journal.study(request)
            if save:
                snapshot_id = journal.save_snapshot(result)
    except (XRPaperError, ValueError) as exc:
        raise _fail(logger, exc) from exc

    nearest = result.nearest
    typer.echo(f"symbol: {request.symbol}")
    typer.echo(f"timeframe: {request.timeframe}")
    typer.echo(f"mood: {mood_label(result.mood)}")
    typer.echo(f"levels: {len(result.levels)}")
    typer.echo(f"support1: {format_num(nearest.support1)}")
    typer.echo(f"support2: {format_num(nearest.support2)}")
    typer.echo(f"resistance1: {format_num(nearest.resistance1)}")
    typer.echo(f"resistance2: {format_num(nearest.resistance2)}")
    if result.merged:
        typer.echo(str(merged_frame(result.merged)))
    if snapshot_id is not None:
        typer.echo(f"snapshot_id: {snapshot_id}")


@app.command("mex")
def mex(
    snapshot_id: str | None = typer.Option(None, "--id", help="Snapshot id to open."),
    latest: bool = typer.Option(False, "--latest", help="Open the most recent snapshot."),
    mode: str | None = typer.Option(None, "--mode", help="breakout or pullback (default: both)."),
    report: bool = typer.Option(False, "--report", help="Write a markdown report under reports_root."),
    report_file: Path | None = typer.Option(None, "--report-file", help="Explicit markdown report path."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Show stops, targets and risk-reward for a saved snapshot."""

    if snapshot_id is None and not latest:
        raise typer.BadParameter("Provide --id or --latest. Save a snapshot first with: study --save")
    selected_mode = _normalize_choice(mode, allowed=TRADE_MODES, option_name="mode") if mode is not None else None
    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    try:
        with _journal(settings) as journal:
            chosen_id = snapshot_id if snapshot_id is not None else journal.latest_snapshot_id()
            if chosen_id is None:
                typer.echo("No snapshot saved yet. Run: study --save")
                raise typer.Exit(code=1)
            view = journal.execution_view(chosen_id)
    except (XRPaperError, ValueError) as exc:
        raise _fail(logger, exc) from exc

    snapshot = view.snapshot
    typer.echo(f"snapshot_id: {snapshot.id}")
    typer.echo(f"symbol: {snapshot.symbol or '—'}")
    typer.echo(f"timeframe: {snapshot.timeframe or '—'}")
    typer.echo(f"signal: {mood_label(snapshot.signal)}")
    typer.echo(f"price: {format_num(snapshot.price_now)}")
    modes = [selected_mode] if selected_mode is not None else list(TRADE_MODES)
    for current_mode in modes:
        for direction in DIRECTIONS:
            plan = view.plans[(direction, current_mode)]
            typer.echo(
                f"{current_mode} | {direction} | stop={format_num(plan.stop)} "
                f"| t1={format_num(plan.target1)} rr1={format_num(plan.risk_reward1)} "
                f"| t2={format_num(plan.target2)} rr2={format_num(plan.risk_reward2)}"
            )

    if report or report_file is not None:
        output = report_file or settings.paths.reports_root / f"mex_{snapshot.id}.md"
        text = render_execution_report(
            snapshot,
            view.nearest,
            view.plans,
            mode=selected_mode,
            generated_at=now_utc(),
        )
        written = write_markdown_atomically(text, output)
        logger.info("mex.report_written snapshot_id=%s path=%s", snapshot.id, written)
        typer.echo(f"report: {written}")


@app.command("snapshot-delete")
def snapshot_delete(
    snapshot_id: str = typer.Argument(..., help="Snapshot id to delete."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Delete a saved snapshot."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    try:
        with _journal(settings) as journal:
            journal.delete_snapshot(snapshot_id)
    except (XRPaperError, ValueError) as exc:
        raise _fail(logger, exc) from exc
    typer.echo(f"deleted_snapshot_id: {snapshot_id}")


def main() -> None:
    """CLI script entrypoint."""

    app()


if __name__ == "__main__":
    main()
