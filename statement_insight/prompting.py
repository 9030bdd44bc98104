"""Prompt construction for the extraction and trend-comment calls.

This module builds:
- The extraction instructions, with the provider-side tagging rules rendered
  from :data:`statement_insight.tagging.PROVIDER_RULES`.
- The strict ``text.format`` (JSON Schema) object for the Responses API.
- The trend-comment prompt for one comparison row.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .models import DataPoint
from .tagging import PROVIDER_RULES, TRANSFER_ID_PREFIX, TRANSFER_TAG, TagRule


def _quoted_list(keywords: Sequence[str]) -> str:
    quoted = [f'"{kw}"' for kw in keywords]
    if len(quoted) == 1:
        return quoted[0]
    return ", ".join(quoted[:-1]) + ", or " + quoted[-1]


def _render_rule(rule: TagRule) -> str:
    noun = "as a distinct word" if len(rule.keywords) == 1 else "as distinct words"
    return f'- If detail contains {_quoted_list(rule.keywords)} {noun} -> tag is "{rule.tag}".'


def build_extraction_instructions() -> str:
    """Return the fixed instruction set sent with every statement PDF."""

    rule_lines: list[str] = []
    for rule in PROVIDER_RULES:
        rule_lines.append(_render_rule(rule))
        if rule.tag == "amenities":
            rule_lines.append(
                '- IMPORTANT: Do NOT tag "DUBAI" as "amenities" just because it contains "DU". '
                '"DU" must be a standalone word.'
            )
    rule_lines.append(
        f'- If detail matches the pattern "{TRANSFER_ID_PREFIX}" followed by a series of numbers '
        f'(like an IBAN or transfer ID) -> tag is "{TRANSFER_TAG}".'
    )
    rule_lines.append("- Otherwise, the 'tag' should be the original 'detail'.")

    return "\n".join(
        [
            "Analyze this bank statement PDF. It is likely image-based, so perform robust OCR.",
            "Extract every transaction into a structured JSON array.",
            "",
            "For each row in the statement:",
            "1. Identify the 'Date'.",
            "2. Identify the 'Details' or 'Description'.",
            "3. Identify the 'Withdrawals' (or Debits) and 'Deposits' (or Credits).",
            "4. Identify the 'Balance'.",
            "",
            "Tagging Rules for the 'tag' field (case-insensitive):",
            *rule_lines,
            "",
            "Important Formatting:",
            "- Amounts should be positive numbers.",
            '- Type must be either "withdrawal" or "deposit".',
            "- Ensure 'balance' is a number.",
        ]
    )


def build_extraction_response_format() -> dict[str, Any]:
    """Return the strict JSON Schema ``format`` object for extraction.

    Strict mode requires an object at the root, so the transaction array is
    wrapped as ``{"transactions": [...]}``; ``date`` is nullable instead of
    optional for the same reason.
    """

    record_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "date": {"type": ["string", "null"]},
            "detail": {"type": "string"},
            "type": {"type": "string", "enum": ["withdrawal", "deposit"]},
            "amount": {"type": "number"},
            "balance": {"type": "number"},
            "tag": {"type": "string"},
        },
        "required": ["date", "detail", "type", "amount", "balance", "tag"],
        "additionalProperties": False,
    }
    return {
        "type": "json_schema",
        "name": "statement_transactions",
        "schema": {
            "type": "object",
            "properties": {
                "transactions": {"type": "array", "items": record_schema},
            },
            "required": ["transactions"],
            "additionalProperties": False,
        },
        "strict": True,
    }


def format_data_points(data_points: Sequence[DataPoint]) -> str:
    return ", ".join(f"{dp.file_name}: ${dp.amount:.2f}" for dp in data_points)


def build_trend_prompt(category: str, data_points: Sequence[DataPoint]) -> str:
    return "\n".join(
        [
            f'Analyze the spending for the category "{category}" across multiple bank statements:',
            f"Data: {format_data_points(data_points)}",
            "",
            "Provide a very brief (max 15 words) comment on the trend or change.",
            "Examples:",
            '- "Spending increased significantly in the latest statement."',
            '- "Consistent spending across all periods."',
            '- "Major drop in expenses compared to previous month."',
            '- "Roughly the same with minor fluctuations."',
            "",
            "Be concise and direct.",
        ]
    )


__all__ = [
    "build_extraction_instructions",
    "build_extraction_response_format",
    "format_data_points",
    "build_trend_prompt",
]
