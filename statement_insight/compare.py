"""Cross-statement comparison.

:func:`compare` orders statements by their earliest parseable transaction
date and builds a tag x statement matrix of withdrawal totals (one row per
fixed category plus the home & living composite). :func:`generate_trend_comments`
then asks the trend-comment provider for a one-line description of every row
with spending, concurrently, isolating failures per row.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime

from dateutil import parser as date_parser

from .logging_setup import get_logger
from .models import (
    ComparisonMatrix,
    ComparisonRow,
    DataPoint,
    Statement,
    Transaction,
    TransactionType,
)
from .pmap import p_map
from .tagging import DEFINED_TAGS, HOME_TAGS, HOME_TOTAL_LABEL

type TrendCommenter = Callable[[str, Sequence[DataPoint]], str]

COMMENT_FALLBACK = "Analysis unavailable."

_logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def parse_statement_date(value: str | None) -> datetime | None:
    """Parse a statement date string; ``None`` when it is empty or unparseable."""

    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def earliest_date(transactions: Iterable[Transaction]) -> datetime | None:
    dates = [d for d in (parse_statement_date(tx.date) for tx in transactions) if d is not None]
    return min(dates) if dates else None


def sort_statements(statements: Iterable[Statement]) -> list[Statement]:
    """Sort oldest to latest; statements without any parseable date come first.

    The sort is stable, so ties keep their input order.
    """

    def _key(statement: Statement) -> tuple[int, datetime]:
        first = earliest_date(statement.transactions)
        if first is None:
            return (0, datetime.min)
        return (1, first)

    return sorted(statements, key=_key)


# ---------------------------------------------------------------------------
# Matrix
# ---------------------------------------------------------------------------


def _withdrawal_total(transactions: Iterable[Transaction], tags: frozenset[str]) -> float:
    return sum(
        tx.amount
        for tx in transactions
        if tx.type is TransactionType.WITHDRAWAL and tx.tag.lower() in tags
    )


def compare(statements: Iterable[Statement]) -> ComparisonMatrix:
    """Build the comparison matrix; all rows are returned, including all-zero ones."""

    ordered = sort_statements(statements)

    rows: list[ComparisonRow] = []
    for tag in DEFINED_TAGS:
        tags = frozenset({tag})
        rows.append(
            ComparisonRow(
                tag=tag,
                data_points=tuple(
                    DataPoint(s.file_name, _withdrawal_total(s.transactions, tags))
                    for s in ordered
                ),
            )
        )

    home = frozenset(HOME_TAGS)
    rows.append(
        ComparisonRow(
            tag=HOME_TOTAL_LABEL,
            data_points=tuple(
                DataPoint(s.file_name, _withdrawal_total(s.transactions, home)) for s in ordered
            ),
            is_total=True,
        )
    )
    return ComparisonMatrix(statements=tuple(ordered), rows=tuple(rows))


# ---------------------------------------------------------------------------
# Trend comments
# ---------------------------------------------------------------------------


def generate_trend_comments(
    matrix: ComparisonMatrix,
    commenter: TrendCommenter | None = None,
    *,
    concurrency: int = 4,
    min_statements: int = 2,
) -> Mapping[str, str]:
    """Return ``{row tag: comment}`` for every row with spending.

    Requests run concurrently (bounded by ``concurrency``) and all of them
    settle before this returns. A failing request yields
    :data:`COMMENT_FALLBACK` for its row and never affects sibling rows.
    Nothing is requested when fewer than ``min_statements`` are compared.
    """

    if len(matrix.statements) < min_statements:
        return {}

    if commenter is None:
        from .trends import comment_on_category

        commenter = comment_on_category

    rows = matrix.rows_with_spending()
    if not rows:
        return {}

    def _comment(row: ComparisonRow) -> tuple[str, str]:
        t0 = time.perf_counter()
        try:
            text = commenter(row.tag, list(row.data_points))
        except Exception as e:  # noqa: BLE001
            _logger.warning(
                "trends:comment_failed category=%s error=%s", row.tag, e.__class__.__name__
            )
            return (row.tag, COMMENT_FALLBACK)
        if not isinstance(text, str) or not text.strip():
            return (row.tag, COMMENT_FALLBACK)
        _logger.debug(
            "trends:comment_done category=%s latency_ms=%.2f",
            row.tag,
            (time.perf_counter() - t0) * 1000.0,
        )
        return (row.tag, text)

    results: list[tuple[str, str]] = p_map(
        rows, _comment, concurrency=concurrency, thread_name_prefix="si-trend"
    )
    return dict(results)


__all__ = [
    "COMMENT_FALLBACK",
    "TrendCommenter",
    "parse_statement_date",
    "earliest_date",
    "sort_statements",
    "compare",
    "generate_trend_comments",
]
