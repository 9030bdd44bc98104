"""Single-statement totals: cash-flow stats and per-category spending.

Only withdrawals are categorized; deposits count towards
:class:`~statement_insight.models.StatementStats` but never towards a tag.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import StatementStats, TagSummary, Transaction, TransactionType
from .tagging import DEFINED_TAGS, HOME_TAGS


def aggregate(transactions: Iterable[Transaction]) -> StatementStats:
    total_withdrawals = 0.0
    total_deposits = 0.0
    count = 0
    for tx in transactions:
        count += 1
        if tx.type is TransactionType.WITHDRAWAL:
            total_withdrawals += tx.amount
        else:
            total_deposits += tx.amount
    return StatementStats(
        total_withdrawals=total_withdrawals,
        total_deposits=total_deposits,
        net_change=total_deposits - total_withdrawals,
        transaction_count=count,
    )


def summarize(transactions: Iterable[Transaction]) -> TagSummary:
    """Group withdrawal amounts by (lowercased) tag.

    Tags outside :data:`~statement_insight.tagging.DEFINED_TAGS` are reported
    as untagged, keeping their transactions in input order for review.
    """

    per_tag: dict[str, float] = dict.fromkeys(DEFINED_TAGS, 0.0)
    untagged: list[Transaction] = []
    untagged_total = 0.0

    for tx in transactions:
        if tx.type is not TransactionType.WITHDRAWAL:
            continue
        key = tx.tag.lower()
        if key in per_tag:
            per_tag[key] += tx.amount
        else:
            untagged.append(tx)
            untagged_total += tx.amount

    return TagSummary(
        per_tag=per_tag,
        home_total=sum(per_tag[t] for t in HOME_TAGS),
        untagged=tuple(untagged),
        untagged_total=untagged_total,
    )


__all__ = ["aggregate", "summarize"]
