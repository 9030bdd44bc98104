"""Trend-comment provider: one short sentence per comparison row.

Never raises. An exception from the client yields ``"Analysis unavailable."``;
an empty response yields ``"No analysis available."``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from . import openai_client, prompting
from .compare import COMMENT_FALLBACK as FAILED_COMMENT
from .config import Settings
from .logging_setup import get_logger
from .models import DataPoint

EMPTY_COMMENT = "No analysis available."

_logger = get_logger(__name__)


def comment_on_category(
    category: str,
    data_points: Sequence[DataPoint],
    *,
    client: Any | None = None,
    model: str | None = None,
) -> str:
    try:
        if client is None:
            client = openai_client.create_client()
        resp = openai_client.create_response(
            client,
            label=category,
            model=model or Settings.from_env().model,
            input=prompting.build_trend_prompt(category, data_points),
        )
        text = openai_client.extract_output_text(resp)
    except Exception as e:  # noqa: BLE001
        _logger.warning(
            "trends:comment_failed category=%s error=%s", category, e.__class__.__name__
        )
        return FAILED_COMMENT
    return text.strip() if text and text.strip() else EMPTY_COMMENT


__all__ = ["EMPTY_COMMENT", "FAILED_COMMENT", "comment_on_category"]
