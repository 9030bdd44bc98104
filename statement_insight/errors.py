"""Exception types raised by the statement pipeline."""

from __future__ import annotations


class StatementProcessingError(RuntimeError):
    """A single statement could not be turned into transactions.

    Raised for malformed extraction output (not an array, missing or invalid
    fields) and for failures of the extraction call itself. ``file_name`` is
    ``None`` when the failing payload is not tied to a file (e.g., direct
    calls to :func:`statement_insight.reconcile.reconcile`).
    """

    def __init__(self, message: str, *, file_name: str | None = None) -> None:
        super().__init__(message)
        self.file_name = file_name


class BatchProcessingError(StatementProcessingError):
    """One file of a multi-file batch failed; the whole batch was discarded."""


__all__ = ["StatementProcessingError", "BatchProcessingError"]
