"""Shared pytest fixtures for the async-digest test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
import structlog

from async_digest.config import Settings
from async_digest.models import NormalizedRecord, SourceType

RecordFactory = Callable[..., NormalizedRecord]


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clear_log_context() -> None:
    """Drop structlog context bound by a previous test."""
    structlog.contextvars.clear_contextvars()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> Settings:
    """Settings built from defaults only, ignoring local YAML/.env files."""
    return Settings.model_construct()


@pytest.fixture()
def no_credential_env() -> dict[str, str]:
    """An environment with no engine credential."""
    return {}


@pytest.fixture()
def credential_env() -> dict[str, str]:
    """An environment with a usable engine credential."""
    return {"OPENAI_API_KEY": "sk-test-0123456789"}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_record() -> RecordFactory:
    """Factory for ``NormalizedRecord`` with overridable defaults."""

    def _make(**overrides: Any) -> NormalizedRecord:
        fields: dict[str, Any] = {
            "source_type": SourceType.CHAT,
            "author": "Paula Serrano",
            "timestamp": "2026-01-07T10:00:00Z",
            "content": "We should review the welcome screen copy before launch.",
        }
        fields.update(overrides)
        return NormalizedRecord(**fields)

    return _make


@pytest.fixture()
def discussion(make_record: RecordFactory) -> list[NormalizedRecord]:
    """A short chronologically sorted discussion with decision markers."""
    return [
        make_record(
            author="Martin Silva",
            timestamp="2026-01-07T10:00:00Z",
            content=(
                "Should we keep the legal disclaimer on the welcome screen? "
                "I propose moving the disclaimer copy to a second step."
            ),
        ),
        make_record(
            author="Diana Reyes",
            timestamp="2026-01-07T10:30:00Z",
            content=(
                "I disagree, the disclaimer copy needs to stay visible. "
                "I'll draft a shorter disclaimer version today."
            ),
        ),
        make_record(
            source_type=SourceType.VIDEO,
            author="Eduardo Ortiz",
            timestamp="2026-01-07T11:00:00Z",
            content=(
                "[Video Transcript] We decided to keep the disclaimer on the "
                "welcome screen. The illustration work is blocked on brand review."
            ),
        ),
    ]
