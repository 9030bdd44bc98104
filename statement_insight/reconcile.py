"""Reconciliation of raw extraction rows into canonical transactions.

:func:`reconcile` makes one forward pass over the provider's rows:

- every row is classified (:mod:`statement_insight.tagging`);
- a tax or service-charge row (``VAT`` token, ``SVC CHG`` phrase) is folded
  into the nearest preceding withdrawal: its amount is added and the
  withdrawal takes over its balance; no transaction is created for it;
- the recurring cleaner charge (bank code + fixed amount, withdrawal) is
  tagged ``cleaner`` only for its first occurrence in the pass; later
  occurrences keep their detail as tag.

The payload is validated in full before any transaction is built, so a
malformed response never yields partial results.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from .errors import StatementProcessingError
from .keywords import matches
from .logging_setup import get_logger
from .models import RawTransactionRecord, Transaction, TransactionType
from .tagging import (
    RECURRING_CLEANER_TAG,
    fallback_tag,
    is_recurring_cleaner_charge,
    match_rule,
)

PROCESSING_ERROR_MESSAGE = "could not process statement"

_logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Payload validation
# ---------------------------------------------------------------------------


def parse_raw_records(payload: Any) -> list[RawTransactionRecord]:
    """Validate the provider payload and return typed raw records.

    Accepts the JSON text or the decoded value. The value must be an array of
    records, or an object whose ``transactions`` key holds that array (the
    envelope used for strict structured output). Anything else raises
    :class:`StatementProcessingError`.
    """

    if isinstance(payload, str | bytes | bytearray):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            # JSONDecodeError, or UnicodeDecodeError for undecodable bytes.
            raise StatementProcessingError(f"{PROCESSING_ERROR_MESSAGE}: invalid JSON") from e

    if isinstance(payload, Mapping) and "transactions" in payload:
        payload = payload["transactions"]

    if not isinstance(payload, list):
        raise StatementProcessingError(
            f"{PROCESSING_ERROR_MESSAGE}: expected a JSON array, got {type(payload).__name__}"
        )

    records: list[RawTransactionRecord] = []
    for pos, item in enumerate(payload):
        if isinstance(item, RawTransactionRecord):
            records.append(item)
            continue
        if not isinstance(item, Mapping):
            raise StatementProcessingError(
                f"{PROCESSING_ERROR_MESSAGE}: record {pos} is not an object"
            )
        try:
            records.append(RawTransactionRecord.model_validate(dict(item)))
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise StatementProcessingError(
                f"{PROCESSING_ERROR_MESSAGE}: record {pos} invalid ({', '.join(fields)})"
            ) from e
    return records


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


def is_tax_or_service_charge(detail: str) -> bool:
    return matches(detail, "VAT") or "SVC CHG" in detail.upper()


def _new_id() -> str:
    return f"tx-{uuid.uuid4().hex[:16]}"


def _merge_target(produced: Sequence[Transaction]) -> Transaction | None:
    for tx in reversed(produced):
        if tx.type is TransactionType.WITHDRAWAL:
            return tx
    return None


def reconcile(raw_records: Any) -> list[Transaction]:
    """Turn provider rows into canonical transactions in a single pass.

    Parameters
    ----------
    raw_records:
        The provider payload (see :func:`parse_raw_records`) or an already
        validated sequence of :class:`RawTransactionRecord`.

    Returns
    -------
    list[Transaction]
        Transactions in input order, minus the rows merged away.

    Raises
    ------
    StatementProcessingError
        When the payload is not an array of valid records.
    """

    records = parse_raw_records(raw_records)

    produced: list[Transaction] = []
    cleaner_charge_seen = False

    for record in records:
        rule_tag = match_rule(record.detail)
        if rule_tag is not None:
            tag = rule_tag
        elif is_recurring_cleaner_charge(record):
            if not cleaner_charge_seen:
                tag = RECURRING_CLEANER_TAG
                cleaner_charge_seen = True
            else:
                tag = record.detail
                _logger.info(
                    'reconcile:cleaner_singleton repeated detail="%s" amount=%.2f',
                    record.detail,
                    record.amount,
                )
        else:
            tag = fallback_tag(record.detail, record.tag)

        if produced and is_tax_or_service_charge(record.detail):
            target = _merge_target(produced)
            if target is not None:
                target.amount += record.amount
                target.balance = record.balance
                _logger.debug(
                    'reconcile:merged detail="%s" into="%s" amount=%.2f',
                    record.detail,
                    target.detail,
                    record.amount,
                )
                continue

        produced.append(
            Transaction(
                id=_new_id(),
                date=record.date or "",
                detail=record.detail,
                type=TransactionType(record.type),
                amount=record.amount,
                balance=record.balance,
                tag=tag,
            )
        )

    _logger.info(
        "reconcile:done records=%d transactions=%d merged=%d",
        len(records),
        len(produced),
        len(records) - len(produced),
    )
    return produced


__all__ = [
    "PROCESSING_ERROR_MESSAGE",
    "parse_raw_records",
    "is_tax_or_service_charge",
    "reconcile",
]
