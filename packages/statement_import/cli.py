"""CLI for the ``statement_import`` package.

Typer-based console interface over :mod:`statement_import.pipeline`.
Environment variables (notably ``OPENAI_API_KEY``) are loaded from a local
``.env`` using ``python-dotenv`` before any command runs. Parsing logic lives
in the library; this module only reads files, prints results, and maps
failures to exit codes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .config import ParserConfig
from .logging_setup import configure_logging, get_logger, log_event
from .models import NormalizedTransaction, ParseOptions, ParseResult, TransactionType
from .pipeline import parse_statements

_logger = get_logger("statement_import.cli")


# ---- Small module-level helpers ----------------------------------------------


def _read_statement(path: Path) -> str:
    # utf-8-sig drops the BOM some bank exports prepend.
    return path.read_text(encoding="utf-8-sig")


def _format_row(txn: NormalizedTransaction) -> str:
    amount = f"{txn.amount:.2f}"
    if txn.type is TransactionType.EXPENSE:
        amount = "-" + amount
    return "\t".join(
        [txn.date.isoformat(), txn.type.value, amount, txn.category, txn.merchant or ""]
    )


def _print_summary(path: Path, result: ParseResult) -> None:
    status = "ok" if result.success else "failed"
    typer.echo(
        (
            f"{path}: {status} imported={len(result.transactions)} "
            f"skipped={result.skipped_rows} ai_used={'yes' if result.ai_used else 'no'} "
            f"total={result.total_amount:.2f}"
        ),
        err=True,
    )
    for msg in result.errors:
        typer.echo(f"  {msg}", err=True)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Extract and categorize transactions from bank-statement CSV exports. "
        "Loads OPENAI_API_KEY from a local .env before running."
    ),
)


@app.command("parse")
def parse_cmd(
    csv_path: Annotated[
        list[Path],
        typer.Option(
            "--csv-path",
            help="Statement file to parse (repeat for several files)",
            dir_okay=False,
            file_okay=True,
            exists=False,  # missing files are reported per path below
        ),
    ],
    *,
    ai: Annotated[
        bool, typer.Option("--ai/--no-ai", help="Try AI categorization first.")
    ] = True,
    auto_categorize: Annotated[
        bool,
        typer.Option(
            "--auto-categorize/--no-auto-categorize",
            help="Apply keyword categories when classifying with rules.",
        ),
    ] = True,
    merge_duplicates: Annotated[
        bool,
        typer.Option(
            "--merge-duplicates/--keep-duplicates",
            help="Collapse same-date, same-amount, same-description transactions.",
        ),
    ] = False,
    validate_amounts: Annotated[
        bool,
        typer.Option(
            "--validate-amounts/--no-validate-amounts",
            help="Skip rows with zero or implausibly large amounts.",
        ),
    ] = True,
    format_hint: Annotated[
        str | None,
        typer.Option(
            "--format-hint",
            help="auto (default), csv, statement, or a text kind (text, pdf, xlsx, ...).",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print one JSON result per file instead of TSV rows."),
    ] = False,
) -> None:
    """Parse statements and print their transactions."""

    try:
        config = ParserConfig.from_env()
    except ValueError as e:
        typer.echo(f"Error: invalid configuration: {e}", err=True)
        raise typer.Exit(2) from e

    options = ParseOptions(
        use_ai=ai,
        auto_categorize=auto_categorize,
        merge_duplicates=merge_duplicates,
        validate_amounts=validate_amounts,
        format_hint=format_hint,
    )

    exit_code = 0
    readable: list[tuple[Path, str]] = []
    for path in csv_path:
        try:
            readable.append((path, _read_statement(path)))
        except FileNotFoundError:
            typer.echo(f"Error: File not found: {path}", err=True)
            exit_code = 1
        except PermissionError:
            typer.echo(f"Error: Permission denied: {path}", err=True)
            exit_code = 1
        except (OSError, UnicodeDecodeError) as e:
            typer.echo(f"Error: Unexpected failure reading '{path}': {e}", err=True)
            exit_code = 1

    results = parse_statements([text for _, text in readable], options, config)
    for (path, _), result in zip(readable, results, strict=True):
        if as_json:
            typer.echo(result.model_dump_json(by_alias=True))
        else:
            for txn in result.transactions:
                typer.echo(_format_row(txn))
        _print_summary(path, result)
        if not result.success:
            exit_code = 1

    log_event(
        _logger, logging.DEBUG, "cli:parse_done", files=len(csv_path), exit_code=exit_code
    )
    if exit_code:
        raise typer.Exit(exit_code)


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
