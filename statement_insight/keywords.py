"""Whole-word keyword matching for statement details.

A keyword matches when it occurs in the text (case-insensitive) and the
characters immediately around the occurrence, if any, are not ASCII letters
or digits. ``"DU"`` therefore matches ``"DU PREPAID"`` and ``"PAY-DU"`` but not
``"DUBAI"``; multi-word keywords such as ``"UNION COOP"`` match as a phrase.
Keywords are escaped, so ``"E&"`` is matched literally.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache


@lru_cache(maxsize=512)
def _compile(keyword: str) -> re.Pattern[str]:
    return re.compile(
        rf"(?<![A-Za-z0-9]){re.escape(keyword)}(?![A-Za-z0-9])",
        re.IGNORECASE,
    )


def matches(text: str, keyword: str) -> bool:
    """Return True when ``keyword`` appears in ``text`` as a distinct token."""

    if not text or not keyword:
        return False
    return _compile(keyword).search(text) is not None


def matches_any(text: str, keywords: Iterable[str]) -> bool:
    return any(matches(text, kw) for kw in keywords)


__all__ = ["matches", "matches_any"]
