"""structlog setup plus request and pipeline-stage logging scopes.

``configure_logging`` is called once by the CLI or server entry point.
Each digest request runs inside ``request_logging_context`` so every event
it emits carries the same ``request_id``; each pipeline stage (normalize,
process) runs inside ``stage_logging_context`` and reports its duration.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# Provider client libraries log every HTTP exchange at INFO
_PROVIDER_LOGGERS = ("LiteLLM", "httpx", "httpcore")


def generate_request_id() -> str:
    """Return a fresh UUID4 string identifying one digest request."""
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _handlers(log_file: str | Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))
    return handlers


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    log_file: str | Path | None = None,
) -> None:
    """Route structlog events through stdlib handlers on stderr and a file.

    Args:
        level: Log level name, case-insensitive.
        fmt: ``"console"`` for human-readable lines, ``"json"`` for one
            JSON object per line.
        log_file: Optional file receiving the same events as stderr.

    Raises:
        ValueError: If ``level`` is not a recognized log level.
    """
    level_name = level.upper()
    if level_name not in _VALID_LEVELS:
        msg = f"Invalid log level: {level!r}. Must be one of {sorted(_VALID_LEVELS)}"
        raise ValueError(msg)
    numeric_level: int = getattr(logging, level_name)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(fmt),
        ],
    )

    root = logging.getLogger()
    root.setLevel(numeric_level)
    # Replace rather than stack handlers when reconfigured
    root.handlers.clear()
    for handler in _handlers(log_file):
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _PROVIDER_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


# ---------------------------------------------------------------------------
# Request and stage scopes
# ---------------------------------------------------------------------------


@contextmanager
def request_logging_context(request_id: str | None = None) -> Iterator[str]:
    """Bind ``request_id`` for one digest request and yield it.

    The binding lives in contextvars, so concurrent requests on the same
    event loop each keep their own id.
    """
    rid = request_id or generate_request_id()
    with structlog.contextvars.bound_contextvars(request_id=rid):
        yield rid


@contextmanager
def stage_logging_context(
    stage: str,
    **counts: int,
) -> Iterator[structlog.stdlib.BoundLogger]:
    """Scope one pipeline stage: bind its name and input sizes, time it.

    Emits ``stage_start`` on entry and ``stage_end`` with ``elapsed_ms`` on
    success. If the block raises, ``stage_failed`` is logged with the
    exception and elapsed time, and the exception propagates.

    Example::

        with stage_logging_context("normalize", links=3) as log:
            log.info("fetch_dispatched", count=3)
    """
    log: structlog.stdlib.BoundLogger = structlog.get_logger("async_digest.stage")
    started = time.perf_counter()

    with structlog.contextvars.bound_contextvars(stage=stage, **counts):
        log.info("stage_start")
        try:
            yield log
        except Exception:
            log.exception("stage_failed", elapsed_ms=_elapsed_ms(started))
            raise
        log.info("stage_end", elapsed_ms=_elapsed_ms(started))


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)
