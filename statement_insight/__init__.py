"""Public interface for the ``statement_insight`` package.

This module exposes the pipeline operations and public models as the stable
import surface. There is no runtime logic here, only symbol re-exports.
Provider-facing modules (``extraction``, ``trends``) are not imported here so
the classification core stays importable without touching the OpenAI client.
"""

from .aggregate import aggregate, summarize
from .compare import compare, earliest_date, generate_trend_comments, sort_statements
from .errors import BatchProcessingError, StatementProcessingError
from .keywords import matches
from .models import (
    ComparisonMatrix,
    ComparisonRow,
    DataPoint,
    RawTransactionRecord,
    Statement,
    StatementStats,
    TagSummary,
    Transaction,
    TransactionType,
)
from .reconcile import parse_raw_records, reconcile
from .session import StatementSession
from .tagging import DEFINED_TAGS, HOME_TAGS, classify

__all__ = [
    # Pipeline
    "matches",
    "classify",
    "parse_raw_records",
    "reconcile",
    "aggregate",
    "summarize",
    "compare",
    "earliest_date",
    "sort_statements",
    "generate_trend_comments",
    "StatementSession",
    # Constants
    "DEFINED_TAGS",
    "HOME_TAGS",
    # Models / types
    "TransactionType",
    "RawTransactionRecord",
    "Transaction",
    "Statement",
    "StatementStats",
    "TagSummary",
    "DataPoint",
    "ComparisonRow",
    "ComparisonMatrix",
    # Errors
    "StatementProcessingError",
    "BatchProcessingError",
]
