"""Thin helpers around the OpenAI Responses SDK.

- :func:`create_client` builds the SDK client (reads ``OPENAI_API_KEY``).
- :func:`extract_output_text` locates the text output across SDK shapes.
- :func:`create_response` issues ``responses.create`` with a narrow retry
  policy: HTTP 429 and 5xx only, up to three attempts with jittered backoff.
  Everything else propagates on the first failure.
"""

from __future__ import annotations

import random
import time
from typing import Any

from openai import OpenAI

from .logging_setup import get_logger

_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

_logger = get_logger(__name__)


def create_client() -> OpenAI:
    return OpenAI()


def extract_output_text(resp: Any) -> str | None:
    """Return the response text, or ``None`` when the SDK result carries none.

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``
    (which some SDK versions expose as an object with a ``value`` string).
    """

    text: str | None = getattr(resp, "output_text", None)
    if text:
        return text
    output = getattr(resp, "output", None)
    if not output:
        return None
    content = getattr(output[0], "content", None)
    if not content:
        return None
    txt_obj = getattr(content[0], "text", None)
    if isinstance(txt_obj, str):
        return txt_obj
    maybe_val = getattr(txt_obj, "value", None)
    return maybe_val if isinstance(maybe_val, str) else None


def _is_retryable(exc: BaseException) -> bool:
    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    base = _BACKOFF_SCHEDULE_SEC[min(attempt_no - 1, len(_BACKOFF_SCHEDULE_SEC) - 1)]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


def create_response(client: Any, *, label: str, **kwargs: Any) -> Any:
    """Call ``client.responses.create(**kwargs)``, retrying transient failures.

    ``label`` only tags log lines (e.g. the file name or category).
    """

    attempt = 1
    while True:
        try:
            return client.responses.create(**kwargs)
        except Exception as e:
            if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                raise
            _logger.warning(
                "openai:retry label=%s error=%s attempt=%d",
                label,
                e.__class__.__name__,
                attempt,
            )
            _sleep_backoff(attempt)
            attempt += 1


__all__ = ["create_client", "extract_output_text", "create_response"]
