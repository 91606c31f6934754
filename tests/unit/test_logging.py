"""Unit tests for async_digest.logging - structlog setup and stage context."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest
import structlog

from async_digest.logging import (
    _VALID_LEVELS,
    configure_logging,
    generate_request_id,
    request_logging_context,
    stage_logging_context,
)

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Reset structlog state between tests."""
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


def _flush() -> None:
    for handler in logging.getLogger().handlers:
        handler.flush()


def _json_lines(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text().splitlines() if line]


# ---------------------------------------------------------------------------
# generate_request_id
# ---------------------------------------------------------------------------


class TestGenerateRequestId:
    def test_uuid_format(self) -> None:
        rid = generate_request_id()
        assert len(rid) == 36
        assert rid.count("-") == 4

    def test_unique_across_calls(self) -> None:
        assert len({generate_request_id() for _ in range(10)}) == 10


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Level validation, handlers, and provider logger levels."""

    def test_case_insensitive_level(self) -> None:
        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="TRACE")

    def test_all_valid_levels_accepted(self) -> None:
        for lvl in _VALID_LEVELS:
            configure_logging(level=lvl)
            assert logging.getLogger().level == getattr(logging, lvl)

    def test_provider_loggers_held_at_warning(self) -> None:
        configure_logging(level="DEBUG")
        assert logging.getLogger("LiteLLM").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_provider_loggers_follow_stricter_level(self) -> None:
        configure_logging(level="ERROR")
        assert logging.getLogger("LiteLLM").level == logging.ERROR

    def test_does_not_bind_request_id(self) -> None:
        configure_logging()
        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_reconfigure_replaces_file_handler(self, tmp_path: Path) -> None:
        configure_logging(log_file=tmp_path / "first.log")
        configure_logging(log_file=tmp_path / "second.log")
        file_handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1

    def test_json_file_output(self, tmp_path: Path) -> None:
        log_file = tmp_path / "digest.log"
        configure_logging(level="INFO", fmt="json", log_file=str(log_file))

        structlog.get_logger("json_test").warning("engine_degraded", entries=4)
        _flush()

        (entry,) = _json_lines(log_file)
        assert entry["event"] == "engine_degraded"
        assert entry["entries"] == 4
        assert entry["level"] == "warning"
        assert "timestamp" in entry

    def test_level_filters_output(self, tmp_path: Path) -> None:
        log_file = tmp_path / "digest.log"
        configure_logging(level="ERROR", fmt="json", log_file=log_file)

        structlog.get_logger("quiet").info("not_written")
        _flush()

        assert log_file.read_text() == ""


# ---------------------------------------------------------------------------
# request_logging_context
# ---------------------------------------------------------------------------


class TestRequestLoggingContext:
    def test_generates_and_binds_id(self) -> None:
        with request_logging_context() as rid:
            assert structlog.contextvars.get_contextvars()["request_id"] == rid
            assert len(rid) == 36
        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_explicit_id(self) -> None:
        with request_logging_context("req-123") as rid:
            assert rid == "req-123"

    def test_events_carry_request_id(self, tmp_path: Path) -> None:
        log_file = tmp_path / "requests.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file)

        with request_logging_context("req-abc"), stage_logging_context("normalize"):
            structlog.get_logger("inside").info("fetch_dispatched")
        _flush()

        entries = _json_lines(log_file)
        assert [entry["event"] for entry in entries] == [
            "stage_start",
            "fetch_dispatched",
            "stage_end",
        ]
        assert all(entry["request_id"] == "req-abc" for entry in entries)


# ---------------------------------------------------------------------------
# stage_logging_context
# ---------------------------------------------------------------------------


class TestStageLoggingContext:
    """Stage name and input sizes are bound, timed, and released."""

    def test_binds_stage_and_counts(self) -> None:
        configure_logging(level="DEBUG")
        with stage_logging_context("normalize", links=3) as log:
            ctx = structlog.contextvars.get_contextvars()
            assert ctx.get("stage") == "normalize"
            assert ctx.get("links") == 3
            assert hasattr(log, "info")

    def test_unbinds_on_exit(self) -> None:
        configure_logging(level="DEBUG")
        with stage_logging_context("normalize", links=3):
            pass
        ctx = structlog.contextvars.get_contextvars()
        assert "stage" not in ctx
        assert "links" not in ctx

    def test_exception_propagated_and_cleaned(self) -> None:
        configure_logging(level="DEBUG")
        with pytest.raises(RuntimeError, match="boom"), stage_logging_context(
            "process"
        ):
            raise RuntimeError("boom")
        assert "stage" not in structlog.contextvars.get_contextvars()

    def test_end_event_reports_elapsed(self, tmp_path: Path) -> None:
        log_file = tmp_path / "stages.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file)

        with stage_logging_context("process", entries=2):
            pass
        _flush()

        start, end = _json_lines(log_file)
        assert start["event"] == "stage_start"
        assert start["stage"] == "process"
        assert start["entries"] == 2
        assert end["event"] == "stage_end"
        assert end["elapsed_ms"] >= 0

    def test_failure_logged_without_end_event(self, tmp_path: Path) -> None:
        log_file = tmp_path / "stages.log"
        configure_logging(level="DEBUG", fmt="json", log_file=log_file)

        with pytest.raises(ValueError), stage_logging_context("process", entries=2):
            raise ValueError("bad payload")
        _flush()

        entries = _json_lines(log_file)
        assert [entry["event"] for entry in entries] == ["stage_start", "stage_failed"]
        assert entries[1]["elapsed_ms"] >= 0
