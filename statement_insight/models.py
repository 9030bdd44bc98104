"""Data models for ``statement_insight``.

Two record shapes flow through the pipeline:

- :class:`RawTransactionRecord`: one item of the extraction provider's JSON
  output, validated with Pydantic. Transient; consumed exactly once by
  :func:`statement_insight.reconcile.reconcile`.
- :class:`Transaction`: the canonical, post-reconciliation row. Only the
  reducer mutates ``amount``/``balance`` (when folding a tax or service-charge
  line into it); everything downstream treats it as read-only.

The remaining types are the aggregate views consumed by the presentation
layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TransactionType(StrEnum):
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"


class RawTransactionRecord(BaseModel):
    """A transaction row as returned by the extraction provider.

    ``detail``, ``type``, ``amount``, ``balance`` and ``tag`` are required;
    ``date`` is optional. ``tag`` is the provider's suggested category, which
    equals ``detail`` when none of its rules matched.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, allow_inf_nan=False)

    date: str | None = None
    detail: str
    type: Literal["withdrawal", "deposit"]
    amount: float = Field(ge=0)
    balance: float
    tag: str

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _stringify_date(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v


@dataclass(slots=True)
class Transaction:
    """A canonical transaction belonging to exactly one statement.

    Attributes
    ----------
    id:
        Process-assigned identifier, unique within the session.
    date:
        Statement-supplied date string; may be empty or unparseable.
    detail:
        Free-text description as extracted.
    type:
        Withdrawal or deposit.
    amount:
        Non-negative magnitude. Includes any merged tax/service charges.
    balance:
        Running balance; the last merged line's balance when a merge occurred.
    tag:
        Category label as produced by the classifier, or the raw detail when
        unclassified.
    """

    id: str
    date: str
    detail: str
    type: TransactionType
    amount: float
    balance: float
    tag: str

    @property
    def is_withdrawal(self) -> bool:
        return self.type is TransactionType.WITHDRAWAL


@dataclass(slots=True)
class Statement:
    """A processed file: its name plus its reconciled transactions."""

    file_name: str
    transactions: list[Transaction] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StatementStats:
    total_withdrawals: float
    total_deposits: float
    net_change: float
    transaction_count: int


@dataclass(frozen=True, slots=True)
class TagSummary:
    """Withdrawal totals grouped by category.

    ``per_tag`` holds one entry for every fixed category (zero when absent).
    Withdrawals whose tag is outside the fixed list are listed in
    ``untagged`` (input order) and summed in ``untagged_total``.
    """

    per_tag: dict[str, float]
    home_total: float
    untagged: tuple[Transaction, ...]
    untagged_total: float


class DataPoint(NamedTuple):
    """One statement's total for a comparison row."""

    file_name: str
    amount: float


@dataclass(frozen=True, slots=True)
class ComparisonRow:
    tag: str
    data_points: tuple[DataPoint, ...]
    is_total: bool = False

    @property
    def has_spending(self) -> bool:
        return any(dp.amount > 0 for dp in self.data_points)


@dataclass(frozen=True, slots=True)
class ComparisonMatrix:
    """Tag x statement withdrawal totals.

    ``statements`` are ordered oldest to latest; every row's ``data_points``
    follow the same order. All rows are present, including all-zero ones;
    filtering is left to the caller (see :meth:`rows_with_spending`).
    """

    statements: tuple[Statement, ...]
    rows: tuple[ComparisonRow, ...]

    @property
    def file_names(self) -> list[str]:
        return [s.file_name for s in self.statements]

    def rows_with_spending(self) -> list[ComparisonRow]:
        return [r for r in self.rows if r.has_spending]

    def row(self, tag: str) -> ComparisonRow:
        for r in self.rows:
            if r.tag == tag:
                return r
        raise KeyError(tag)


__all__ = [
    "TransactionType",
    "RawTransactionRecord",
    "Transaction",
    "Statement",
    "StatementStats",
    "TagSummary",
    "DataPoint",
    "ComparisonRow",
    "ComparisonMatrix",
]
