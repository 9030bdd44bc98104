"""Pytest configuration for test isolation.

Settings are read from ``STATEMENT_INSIGHT_*`` environment variables and the
CLI configures the package and SDK loggers. Both would leak across
tests, so autouse fixtures clear the variables, provide a dummy API key,
and restore those loggers after each test.
"""

from __future__ import annotations

import logging
import os

import pytest

from statement_insight import logging_setup


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("STATEMENT_INSIGHT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")


@pytest.fixture(autouse=True)
def _restore_loggers():
    names = (logging_setup.PACKAGE_LOGGER, "openai", "httpx", "httpcore")
    saved = {}
    for name in names:
        logger = logging.getLogger(name)
        saved[name] = (list(logger.handlers), logger.level, logger.propagate)
    yield
    for name, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(name)
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate
