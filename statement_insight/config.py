"""Environment-driven settings.

Values are read from the process environment at call time; the CLI loads a
local ``.env`` with ``python-dotenv`` before calling :meth:`Settings.from_env`.

- ``STATEMENT_INSIGHT_MODEL``: Responses API model (default ``gpt-5``).
- ``STATEMENT_INSIGHT_EXTRACT_CONCURRENCY``: workers for multi-file extraction
  (default 1, i.e. strictly sequential; capped at 8).
- ``STATEMENT_INSIGHT_COMMENT_CONCURRENCY``: workers for trend comments
  (default 4; capped at 16).
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MODEL = "gpt-5"
DEFAULT_EXTRACT_CONCURRENCY = 1
DEFAULT_COMMENT_CONCURRENCY = 4
_MAX_EXTRACT_CONCURRENCY = 8
_MAX_COMMENT_CONCURRENCY = 16


def _env_workers(name: str, *, default: int, cap: int) -> int:
    raw = os.getenv(name)
    try:
        value = int(raw) if raw else None
    except ValueError:
        value = None
    if value is None or value <= 0:
        return default
    return min(value, cap)


@dataclass(frozen=True, slots=True)
class Settings:
    model: str = DEFAULT_MODEL
    extract_concurrency: int = DEFAULT_EXTRACT_CONCURRENCY
    comment_concurrency: int = DEFAULT_COMMENT_CONCURRENCY

    @classmethod
    def from_env(cls) -> Settings:
        model = (os.getenv("STATEMENT_INSIGHT_MODEL") or "").strip() or DEFAULT_MODEL
        return cls(
            model=model,
            extract_concurrency=_env_workers(
                "STATEMENT_INSIGHT_EXTRACT_CONCURRENCY",
                default=DEFAULT_EXTRACT_CONCURRENCY,
                cap=_MAX_EXTRACT_CONCURRENCY,
            ),
            comment_concurrency=_env_workers(
                "STATEMENT_INSIGHT_COMMENT_CONCURRENCY",
                default=DEFAULT_COMMENT_CONCURRENCY,
                cap=_MAX_COMMENT_CONCURRENCY,
            ),
        )


__all__ = ["Settings", "DEFAULT_MODEL"]
