"""Statement extraction: PDF bytes -> provider JSON -> reconciled transactions.

:func:`extract_statement` sends one PDF (inline, base64) together with the
fixed instruction set to the Responses API and returns the validated raw
records. :func:`process_statement` adds reconciliation and converts every
failure into a :class:`~statement_insight.errors.StatementProcessingError`
naming the file.
"""

from __future__ import annotations

import base64
import time
from typing import Any

from . import openai_client, prompting
from .config import Settings
from .errors import StatementProcessingError
from .logging_setup import get_logger
from .models import RawTransactionRecord, Statement
from .reconcile import parse_raw_records, reconcile

_logger = get_logger(__name__)


def encode_pdf(pdf_bytes: bytes) -> str:
    """Return the ``data:`` URL carrying ``pdf_bytes`` as base64."""

    return "data:application/pdf;base64," + base64.b64encode(pdf_bytes).decode("ascii")


def _build_input(pdf_bytes: bytes, file_name: str) -> list[dict[str, Any]]:
    return [
        {
            "role": "user",
            "content": [
                {
                    "type": "input_file",
                    "filename": file_name,
                    "file_data": encode_pdf(pdf_bytes),
                },
                {"type": "input_text", "text": prompting.build_extraction_instructions()},
            ],
        }
    ]


def extract_statement(
    pdf_bytes: bytes,
    *,
    file_name: str,
    client: Any | None = None,
    model: str | None = None,
) -> list[RawTransactionRecord]:
    """Run OCR/extraction for one PDF and return its validated raw records.

    Raises :class:`StatementProcessingError` for an empty or malformed
    response; SDK/network errors propagate unchanged.
    """

    if client is None:
        client = openai_client.create_client()
    model = model or Settings.from_env().model

    _logger.info("extract:start file=%s bytes=%d", file_name, len(pdf_bytes))
    t0 = time.perf_counter()
    resp = openai_client.create_response(
        client,
        label=file_name,
        model=model,
        input=_build_input(pdf_bytes, file_name),
        text={"format": prompting.build_extraction_response_format()},
    )
    text = openai_client.extract_output_text(resp)
    if text is None:
        raise StatementProcessingError(
            "could not process statement: empty extraction response", file_name=file_name
        )
    records = parse_raw_records(text)
    _logger.info(
        "extract:done file=%s records=%d latency_ms=%.2f",
        file_name,
        len(records),
        (time.perf_counter() - t0) * 1000.0,
    )
    return records


def process_statement(
    pdf_bytes: bytes,
    *,
    file_name: str,
    client: Any | None = None,
    model: str | None = None,
) -> Statement:
    """Extract and reconcile one statement.

    Any failure (provider call, malformed output) is raised as
    :class:`StatementProcessingError` whose message names ``file_name``.
    """

    try:
        records = extract_statement(pdf_bytes, file_name=file_name, client=client, model=model)
        transactions = reconcile(records)
    except Exception as e:
        _logger.error("extract:failed file=%s error=%s", file_name, e.__class__.__name__)
        raise StatementProcessingError(
            f"Failed to process {file_name}: {e}. "
            "Please ensure the PDF is a valid bank statement.",
            file_name=file_name,
        ) from e
    return Statement(file_name=file_name, transactions=transactions)


__all__ = ["encode_pdf", "extract_statement", "process_statement"]
