"""Logging for the ``statement_insight`` package.

Library modules call ``get_logger(__name__)`` and never attach handlers; the
package logger carries a ``NullHandler`` so nothing is printed unless an
entrypoint opts in. The CLI calls :func:`configure_logging` with the value of
``--log-level`` (or ``STATEMENT_INSIGHT_LOG_LEVEL``).

Log lines are ``event key=value`` pairs, e.g.
``extract:done file=jan.pdf records=42 latency_ms=812.10``.

The OpenAI SDK logs every HTTP request through ``openai`` and ``httpx`` at
INFO. Those loggers are held at WARNING unless the package itself runs at
DEBUG, so the pipeline's own events stay readable.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_insight"
LEVEL_ENV = "STATEMENT_INSIGHT_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_HANDLER_NAME = "statement_insight.stream"
_SDK_LOGGERS = ("openai", "httpx", "httpcore")

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the environment default) into a numeric level.

    Accepts ints, numeric strings and level names in any case. Unknown names
    raise ``ValueError`` so a mistyped ``--log-level`` is reported, not ignored.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    try:
        return logging.getLevelNamesMapping()[name]
    except KeyError:
        raise ValueError(f"unknown log level: {level!r}") from None


def configure_logging(
    level: int | str | None = None,
    *,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Send package logs to ``stream`` (default: current ``sys.stderr``).

    Calling it again replaces the handler installed by the previous call, so
    the level and stream always reflect the latest call. Returns the handler.
    """

    resolved = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h.get_name() == _HANDLER_NAME:
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    sdk_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name``, placed under the package logger.

    Module names inside the package (``__name__``) are used as is; anything
    else is nested as ``statement_insight.<name>``.
    """

    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


__all__ = ["PACKAGE_LOGGER", "resolve_level", "configure_logging", "get_logger"]
