from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from xrpaper.cli import app

runner = CliRunner()


def _invoke(settings_file: Path, *args: str):
    return runner.invoke(app, [*args, "--config-file", str(settings_file)])


def _value(output: str, key: str) -> str:
    for line in output.splitlines():
        if line.startswith(f"{key}: "):
            return line.split(": ", 1)[1]
    raise AssertionError(f"{key} not found in output:\n{output}")


def test_show_config_and_whoami(settings_file: Path) -> None:
    shown = _invoke(settings_file, "show-config")
    who = _invoke(settings_file, "whoami")

    assert shown.exit_code == 0
    assert "user_id: cli-user" in shown.output
    assert who.exit_code == 0
    assert _value(who.output, "user_id") == "cli-user"


def test_levels_add_list_and_delete(settings_file: Path) -> None:
    added = _invoke(settings_file, "levels-add", "--price", "112.000,00", "--type", "support")
    assert added.exit_code == 0, added.output
    assert _value(added.output, "symbol") == "BTCUSDT"
    assert _value(added.output, "price") == "112.000"

    listed = _invoke(settings_file, "levels-list")
    assert listed.exit_code == 0
    assert "support" in listed.output

    deleted = _invoke(settings_file, "levels-delete", _value(added.output, "level_id"))
    assert deleted.exit_code == 0
    assert "No levels found." in _invoke(settings_file, "levels-list").output


def test_levels_add_rejects_bad_price(settings_file: Path) -> None:
    result = _invoke(settings_file, "levels-add", "--price", "abc")

    assert result.exit_code == 1


def test_levels_export_csv(settings_file: Path, tmp_path: Path) -> None:
    _invoke(settings_file, "levels-add", "--price", "113000", "--type", "resistance")
    output = tmp_path / "exports" / "levels.csv"

    result = _invoke(settings_file, "levels-export", "--output", str(output))

    assert result.exit_code == 0, result.output
    assert _value(result.output, "rows") == "1"
    assert "resistance" in output.read_text(encoding="utf-8")


def test_study_save_then_mex_report(settings_file: Path) -> None:
    _invoke(settings_file, "levels-add", "--price", "112000", "--type", "support")
    _invoke(settings_file, "levels-add", "--price", "113000", "--type", "resistance")

    studied = _invoke(
        settings_file,
        "study",
        "--price", "112500",
        "--atr", "89,74",
        "--rsi-k", "43.41",
        "--rsi-d", "47.94",
        "--ema20", "112043",
        "--ema200", "112335",
        "--save",
    )
    assert studied.exit_code == 0, studied.output
    assert _value(studied.output, "mood") == "Favorável"
    assert _value(studied.output, "support1") == "112.000"
    assert _value(studied.output, "resistance1") == "113.000"
    snapshot_id = _value(studied.output, "snapshot_id")

    executed = _invoke(settings_file, "mex", "--latest", "--report")
    assert executed.exit_code == 0, executed.output
    assert _value(executed.output, "snapshot_id") == snapshot_id
    assert "breakout | long | stop=112.000 | t1=113.000 rr1=1 |" in executed.output
    report_path = Path(_value(executed.output, "report"))
    assert report_path.parent == settings_file.parent.parent.resolve() / "reports"
    assert "# XRPaper - MEX" in report_path.read_text(encoding="utf-8")


def test_mex_requires_a_snapshot(settings_file: Path) -> None:
    missing_choice = _invoke(settings_file, "mex")
    empty = _invoke(settings_file, "mex", "--latest")

    assert missing_choice.exit_code == 2
    assert empty.exit_code == 1
    assert "No snapshot saved yet." in empty.output


def _signed_out_settings(tmp_path: Path) -> Path:
    config_dir = tmp_path / "locked" / "configs"
    config_dir.mkdir(parents=True)
    path = config_dir / "settings.yaml"
    path.write_text(
        "\n".join(
            [
                "paths:",
                "  data_root: ./data",
                "  logs_root: ./logs",
                "  database_file: ./data/journal.duckdb",
                "auth:",
                "  user_id: locked-user",
                "  email: trader@example.com",
                "  password: secret",
                "  start_signed_in: false",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_sign_in_and_sign_out_control_journal_access(tmp_path: Path) -> None:
    settings_file = _signed_out_settings(tmp_path)

    assert _invoke(settings_file, "levels-list").exit_code == 1
    assert _invoke(settings_file, "whoami").exit_code == 1

    rejected = _invoke(settings_file, "sign-in", "--password", "wrong")
    assert rejected.exit_code == 1

    signed_in = _invoke(settings_file, "sign-in", "--email", "Trader@Example.com", "--password", "secret")
    assert signed_in.exit_code == 0, signed_in.output
    assert _value(signed_in.output, "user_id") == "locked-user"
    assert Path(_value(signed_in.output, "session_file")).exists()

    assert _value(_invoke(settings_file, "whoami").output, "user_id") == "locked-user"
    listed = _invoke(settings_file, "levels-list")
    assert listed.exit_code == 0
    assert "No levels found." in listed.output

    signed_out = _invoke(settings_file, "sign-out")
    assert signed_out.exit_code == 0
    assert "signed_out" in signed_out.output
    assert _invoke(settings_file, "levels-list").exit_code == 1


def test_sign_in_uses_configured_email_by_default(tmp_path: Path) -> None:
    settings_file = _signed_out_settings(tmp_path)

    result = _invoke(settings_file, "sign-in", "--password", "secret")

    assert result.exit_code == 0, result.output
    assert _value(result.output, "email") == "trader@example.com"
