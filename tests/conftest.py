"""
Verdict Test Suite - Shared Fixtures and Configuration
"""

from __future__ import annotations

from typing import Any

import pytest

from verdict.core.config import reset_settings
from verdict.core.logging import reset_logging


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate settings and logging from the host environment and other tests."""
    for var in (
        "VERDICT_LOG_LEVEL",
        "VERDICT_DEBUG",
        "VERDICT_LOG_JSON",
        "VERDICT_DELIVERY_TIMEOUT",
        "VERDICT_DELIVERY_USER_AGENT",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    reset_logging()
    yield
    reset_settings()
    reset_logging()


@pytest.fixture
def test_data() -> dict[str, Any]:
    """The canonical small fact payload used across evaluator tests."""
    return {
        "foo": 1,
        "bar": "bar",
        "baz": True,
    }


@pytest.fixture
def person_facts() -> dict[str, Any]:
    return {
        "name": "John Doe",
        "fav_number": 5,
        "profile": {
            "age": 34,
            "email": "john@example.com",
            "tags": ["admin", "beta"],
            "verified": "TRUE",
        },
        "a/b": "slash-key",
        "user.id": "dotted-key",
    }
