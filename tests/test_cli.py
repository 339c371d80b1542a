# ruff: noqa: E501
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import statement_import.cli as cli_mod

SCENARIO_A = "Date,Description,Amount,Type\n2024-01-15,Salary Deposit,5000.00,Credit\n2024-01-16,Grocery Store,-120.50,Debit\n"


@pytest.fixture(autouse=True)
def _quiet_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Keep handlers off the package logger and keep a developer .env out of reach.
    monkeypatch.setattr(cli_mod, "configure_logging", lambda *a, **k: None)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_prints_tsv_rows_and_summary(runner: CliRunner, tmp_path: Path):
    path = _write(tmp_path, "a.csv", SCENARIO_A)

    result = runner.invoke(cli_mod.app, ["parse", "--csv-path", str(path), "--no-ai"])

    assert result.exit_code == 0, result.output
    assert "2024-01-15\tincome\t5000.00\tIncome\t" in result.output
    assert "2024-01-16\texpense\t-120.50\tFood & Dining\t" in result.output
    assert f"{path}: ok imported=2 skipped=0 ai_used=no total=4879.50" in result.output


def test_bom_prefixed_export_is_read(runner: CliRunner, tmp_path: Path):
    path = tmp_path / "bom.csv"
    path.write_bytes(b"\xef\xbb\xbf" + SCENARIO_A.encode("utf-8"))
    result = runner.invoke(cli_mod.app, ["parse", "--csv-path", str(path), "--no-ai"])
    assert result.exit_code == 0, result.output
    assert "imported=2" in result.output


def test_parse_json_output(runner: CliRunner, tmp_path: Path):
    path = _write(tmp_path, "a.csv", SCENARIO_A)

    result = runner.invoke(
        cli_mod.app, ["parse", "--csv-path", str(path), "--no-ai", "--json"]
    )

    assert result.exit_code == 0, result.output
    payloads = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
    assert len(payloads) == 1
    body = payloads[0]
    assert body["success"] is True
    assert body["aiUsed"] is False
    assert [t["category"] for t in body["transactions"]] == ["Income", "Food & Dining"]


def test_ai_without_key_reports_fallback(runner: CliRunner, tmp_path: Path):
    path = _write(tmp_path, "a.csv", SCENARIO_A)
    result = runner.invoke(cli_mod.app, ["parse", "--csv-path", str(path)])
    assert result.exit_code == 0, result.output
    assert "ClassificationFallbackUsed: " in result.output


def test_merge_duplicates_flag(runner: CliRunner, tmp_path: Path, icici_statement_text: str):
    path = _write(tmp_path, "icici.csv", icici_statement_text)

    kept = runner.invoke(cli_mod.app, ["parse", "--csv-path", str(path), "--no-ai"])
    merged = runner.invoke(
        cli_mod.app, ["parse", "--csv-path", str(path), "--no-ai", "--merge-duplicates"]
    )

    assert kept.exit_code == 0 and merged.exit_code == 0
    assert "imported=7" in kept.output
    assert "imported=6" in merged.output
    assert "total=194934.15" in merged.output


def test_missing_file_exits_one_but_parses_the_rest(runner: CliRunner, tmp_path: Path):
    good = _write(tmp_path, "a.csv", SCENARIO_A)
    missing = tmp_path / "nope.csv"

    result = runner.invoke(
        cli_mod.app,
        ["parse", "--csv-path", str(missing), "--csv-path", str(good), "--no-ai"],
    )

    assert result.exit_code == 1
    assert f"Error: File not found: {missing}" in result.output
    assert f"{good}: ok imported=2" in result.output


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", "EmptyStatementError: "),
        ("Name,Value\nfoo,1\n", "UnrecognizedFormatError: "),
    ],
)
def test_failed_parse_exits_one(runner: CliRunner, tmp_path: Path, text: str, expected: str):
    path = _write(tmp_path, "bad.csv", text)
    result = runner.invoke(cli_mod.app, ["parse", "--csv-path", str(path), "--no-ai"])
    assert result.exit_code == 1
    assert f"{path}: failed imported=0" in result.output
    assert expected in result.output


def test_invalid_environment_config_exits_two(
    runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setenv("STATEMENT_IMPORT_AI_TIMEOUT", "soon")
    path = _write(tmp_path, "a.csv", SCENARIO_A)
    result = runner.invoke(cli_mod.app, ["parse", "--csv-path", str(path)])
    assert result.exit_code == 2
    assert "Error: invalid configuration: STATEMENT_IMPORT_AI_TIMEOUT" in result.output


def test_dotenv_is_loaded_from_cwd(
    runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    # Registers the variable with monkeypatch so the value dotenv sets is undone.
    monkeypatch.setenv("STATEMENT_IMPORT_MAX_AMOUNT", "unset")
    monkeypatch.delenv("STATEMENT_IMPORT_MAX_AMOUNT")
    (tmp_path / ".env").write_text("STATEMENT_IMPORT_MAX_AMOUNT=1000\n", encoding="utf-8")
    path = _write(tmp_path, "a.csv", SCENARIO_A)

    result = runner.invoke(cli_mod.app, ["parse", "--csv-path", str(path), "--no-ai"])

    # The 5000.00 salary now exceeds the configured ceiling.
    assert result.exit_code == 0, result.output
    assert "imported=1 skipped=1" in result.output
    assert "implausible amount" in result.output


def test_every_option_is_accepted(runner: CliRunner, tmp_path: Path):
    path = _write(tmp_path, "a.csv", SCENARIO_A)

    result = runner.invoke(
        cli_mod.app,
        [
            "parse",
            "--csv-path",
            str(path),
            "--no-ai",
            "--no-auto-categorize",
            "--keep-duplicates",
            "--no-validate-amounts",
            "--format-hint",
            "csv",
            "--json",
        ],
    )

    assert result.exit_code == 0, result.output
    body = next(json.loads(line) for line in result.output.splitlines() if line.startswith("{"))
    assert {t["category"] for t in body["transactions"]} == {"Uncategorized"}
