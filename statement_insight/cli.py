# ruff: noqa: I001
"""CLI for the ``statement_insight`` package.

Thin presentation over the pipeline: command handlers (``cmd_analyze``,
``cmd_compare``) print results to stdout and errors to stderr and return an
exit code; the Typer app wires them to ``statement-insight analyze`` and
``statement-insight compare``. Environment variables (notably
``OPENAI_API_KEY``) are loaded from a local ``.env`` via ``python-dotenv``.
"""

from __future__ import annotations

import dataclasses
import json
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv

from .aggregate import aggregate, summarize
from .errors import StatementProcessingError
from .logging_setup import configure_logging
from .models import ComparisonMatrix, Statement, Transaction
from .session import StatementSession
from .tagging import DEFINED_TAGS, HOME_TAGS


# ---- Rendering helpers --------------------------------------------------------


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _render_transaction(tx: Transaction) -> str:
    sign = "-" if tx.is_withdrawal else "+"
    return (
        f"{tx.date or '-':<12} {tx.detail[:40]:<40} {tx.tag[:16]:<16} "
        f"{sign + _money(tx.amount):>14} {_money(tx.balance):>14}"
    )


def _render_statement(statement: Statement) -> list[str]:
    stats = aggregate(statement.transactions)
    summary = summarize(statement.transactions)
    lines = [
        f"== {statement.file_name} ({stats.transaction_count} transactions)",
        f"Total Withdrawals: {_money(stats.total_withdrawals)}",
        f"Total Deposits:    {_money(stats.total_deposits)}",
        f"Net Cash Flow:     {_money(stats.net_change)}",
        "",
    ]
    lines.extend(_render_transaction(tx) for tx in statement.transactions)
    lines.append("")
    lines.append("Spending by category:")
    for tag in DEFINED_TAGS:
        lines.append(f"  {tag:<14} {_money(summary.per_tag[tag]):>14}")
    lines.append(f"  Home total ({', '.join(HOME_TAGS)}): {_money(summary.home_total)}")
    lines.append("")
    if summary.untagged:
        lines.append("Untagged withdrawals:")
        for tx in summary.untagged:
            lines.append(f"  {tx.detail[:50]:<50} {_money(tx.amount):>14}")
        lines.append(f"  {'Total Untagged':<50} {_money(summary.untagged_total):>14}")
    else:
        lines.append("No untagged withdrawals found.")
    return lines


def _render_comparison(matrix: ComparisonMatrix, comments: Mapping[str, str]) -> list[str]:
    lines = [
        f"Comparing {len(matrix.statements)} statements (oldest to latest).",
        "Category".ljust(22) + "".join(f"{name[:16]:>18}" for name in matrix.file_names),
    ]
    for row in matrix.rows_with_spending():
        label = "HOME & LIVING" if row.is_total else row.tag
        cells = "".join(f"{_money(dp.amount):>18}" for dp in row.data_points)
        lines.append(f"{label:<22}{cells}")
        comment = comments.get(row.tag)
        if comment:
            lines.append(f"  -> {comment}")
    return lines


def _statement_to_json(statement: Statement) -> dict[str, Any]:
    return {
        "file_name": statement.file_name,
        "stats": dataclasses.asdict(aggregate(statement.transactions)),
        "summary": dataclasses.asdict(summarize(statement.transactions)),
        "transactions": [dataclasses.asdict(tx) for tx in statement.transactions],
    }


def _comparison_to_json(matrix: ComparisonMatrix, comments: Mapping[str, str]) -> dict[str, Any]:
    return {
        "statements": matrix.file_names,
        "rows": [
            {
                "tag": row.tag,
                "is_total": row.is_total,
                "data_points": [dp._asdict() for dp in row.data_points],
                "comment": comments.get(row.tag),
            }
            for row in matrix.rows
        ],
    }


# ---- Command handlers ---------------------------------------------------------


def _new_session() -> StatementSession:
    return StatementSession()


def _load(paths: Sequence[Path], session: StatementSession) -> bool:
    try:
        session.add_files(paths)
    except StatementProcessingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return False
    return True


def cmd_analyze(paths: Sequence[Path], *, json_output: bool = False) -> int:
    """Process each PDF and print per-statement stats, transactions and summary."""

    if not os.getenv("OPENAI_API_KEY"):
        print("Error: OPENAI_API_KEY is not set in the environment.", file=sys.stderr)
        return 1

    session = _new_session()
    if not _load(paths, session):
        return 1

    if json_output:
        print(json.dumps([_statement_to_json(s) for s in session.statements], indent=2))
        return 0

    for statement in session.statements:
        print("\n".join(_render_statement(statement)))
        print()
    return 0


def cmd_compare(
    paths: Sequence[Path], *, json_output: bool = False, with_comments: bool = True
) -> int:
    """Process the PDFs and print the category comparison across statements."""

    if not os.getenv("OPENAI_API_KEY"):
        print("Error: OPENAI_API_KEY is not set in the environment.", file=sys.stderr)
        return 1

    session = _new_session()
    if not _load(paths, session):
        return 1

    matrix = session.compare()
    comments = session.trend_comments(matrix) if with_comments else {}

    if json_output:
        print(json.dumps(_comparison_to_json(matrix, comments), indent=2))
    else:
        print("\n".join(_render_comparison(matrix, comments)))
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Extract, categorize and compare bank-statement PDFs using OpenAI (Responses API). "
        "Loads OPENAI_API_KEY from a local .env before running."
    ),
)

PdfPaths = Annotated[
    list[Path],
    typer.Argument(help="Statement PDFs, processed in the given order.", dir_okay=False),
]


@app.command("analyze")
def analyze_cmd(
    pdfs: PdfPaths,
    json_output: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """Show stats, transactions and category totals for each statement."""

    raise typer.Exit(cmd_analyze(pdfs, json_output=json_output))


@app.command("compare")
def compare_cmd(
    pdfs: PdfPaths,
    json_output: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
    comments: bool = typer.Option(
        True, "--comments/--no-comments", help="Ask the model for a trend comment per row."
    ),
) -> None:
    """Compare category spending across statements, oldest to latest."""

    raise typer.Exit(cmd_compare(pdfs, json_output=json_output, with_comments=comments))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Logging level (falls back to STATEMENT_INSIGHT_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


if __name__ == "__main__":  # pragma: no cover
    app()
