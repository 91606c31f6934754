"""End-to-end digest orchestration.

Drives one request: normalize links into canonical records, gate on input
sufficiency, pick the analysis strategy, recover from engine failure with
the deterministic fallback, and shape the boundary response.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from async_digest.config import (
    ProcessingConfig,
    ProcessingMode,
    Settings,
    select_processing_config,
)
from async_digest.digest import Digest
from async_digest.engine.fallback import generate_fallback_digest
from async_digest.engine.llm import LLMDigestEngine
from async_digest.engine.result import (
    DigestEngine,
    EngineFailure,
    EngineResult,
    EngineSuccess,
)
from async_digest.exceptions import EngineError
from async_digest.intake.normalizer import normalize
from async_digest.intake.sources import SourceRegistry
from async_digest.logging import request_logging_context, stage_logging_context
from async_digest.models import NormalizedRecord

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

FallbackGenerator = Callable[[Sequence[NormalizedRecord]], Digest]

NO_LINKS_MESSAGE = "Please provide at least one chat or video link"
NO_ENTRIES_MESSAGE = "No entries to process. Please provide valid chat or video links."
GENERIC_FAILURE_MESSAGE = "An unexpected error occurred while generating the digest"


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ProcessingResult:
    """Digest plus how it was produced and how long it took."""

    digest: Digest
    mode: ProcessingMode
    elapsed_ms: float


class GenerateResponse(BaseModel):
    """Boundary response: a digest on success, an error message otherwise."""

    success: bool
    digest: Digest | None = None
    mode: ProcessingMode = ProcessingMode.FALLBACK
    error: str | None = None
    invalid_urls: list[str] = Field(default_factory=list, alias="invalidUrls")
    status_code: Literal[200, 400, 500] = Field(default=200, exclude=True)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def failure(
        cls,
        error: str,
        status_code: Literal[400, 500],
        invalid_urls: list[str] | None = None,
    ) -> GenerateResponse:
        return cls(
            success=False,
            error=error,
            status_code=status_code,
            invalid_urls=invalid_urls or [],
        )


# ---------------------------------------------------------------------------
# Sufficiency gate
# ---------------------------------------------------------------------------


def validate_entries_for_processing(
    entries: Sequence[NormalizedRecord],
    min_entries: int = 2,
    min_content_chars: int = 100,
) -> str | None:
    """Check there is enough material to synthesize a meaningful digest.

    Args:
        entries: Canonical record sequence.
        min_entries: Minimum number of records.
        min_content_chars: Minimum total content length across records.

    Returns:
        A user-facing error message, or None when the input is sufficient.
    """
    if not entries:
        return NO_ENTRIES_MESSAGE

    if len(entries) < min_entries:
        return (
            f"At least {min_entries} discussion entries are needed to generate "
            "a meaningful digest."
        )

    total_chars = sum(len(entry.content) for entry in entries)
    if total_chars < min_content_chars:
        return "The discussion content is too short to generate a meaningful digest."

    return None


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


async def _analyze(
    engine: DigestEngine,
    entries: Sequence[NormalizedRecord],
    credential: str,
) -> EngineResult:
    # Injected engines may raise instead of returning EngineFailure
    try:
        return await engine.analyze(entries, credential)
    except Exception as exc:
        error = EngineError(f"{type(exc).__name__}: {exc}")
        error.__cause__ = exc
        return EngineFailure(error=error)


async def process_entries(
    entries: Sequence[NormalizedRecord],
    config: ProcessingConfig | None = None,
    engine: DigestEngine | None = None,
    fallback: FallbackGenerator = generate_fallback_digest,
) -> ProcessingResult:
    """Produce a digest with the capable engine, degrading to the fallback.

    Engine failures never propagate: they are logged and replaced by the
    fallback digest, and the returned mode reports the degradation.

    Args:
        entries: Canonical record sequence.
        config: Processing configuration. Resolved from the environment
            when omitted.
        engine: Capable analysis engine. Defaults to ``LLMDigestEngine``.
        fallback: Deterministic generator used when the engine is not
            selected or fails.

    Returns:
        A ``ProcessingResult`` with digest, mode, and elapsed milliseconds.
    """
    started = time.perf_counter()
    resolved = config or select_processing_config()

    mode = ProcessingMode.FALLBACK
    digest: Digest | None = None

    if resolved.use_capable_engine and resolved.credential:
        logger.info("capable_engine_selected", entries=len(entries))
        result = await _analyze(
            engine or LLMDigestEngine(), entries, resolved.credential
        )
        match result:
            case EngineSuccess(digest=engine_digest):
                digest = engine_digest
                mode = ProcessingMode.CAPABLE
            case EngineFailure(error=error):
                logger.warning(
                    "capable_engine_failed",
                    error=str(error),
                    error_type=type(error.__cause__ or error).__name__,
                )
    else:
        logger.info("capable_engine_unavailable", entries=len(entries))

    if digest is None:
        digest = fallback(entries)

    elapsed_ms = (time.perf_counter() - started) * 1000
    return ProcessingResult(digest=digest, mode=mode, elapsed_ms=elapsed_ms)


# ---------------------------------------------------------------------------
# Request boundary
# ---------------------------------------------------------------------------


async def generate_digest(
    links: Sequence[str],
    settings: Settings | None = None,
    registry: SourceRegistry | None = None,
    engine: DigestEngine | None = None,
    environ: Mapping[str, str] | None = None,
) -> GenerateResponse:
    """Run the full pipeline for one request and never raise.

    Input problems yield a 400-style failure, unexpected exceptions a
    500-style failure carrying the exception message.

    Args:
        links: Raw link strings as submitted.
        settings: Application settings; loaded when omitted.
        registry: Record sources per type; bundled fixtures when omitted.
        engine: Capable analysis engine override.
        environ: Environment mapping for credential lookup.

    Returns:
        A ``GenerateResponse``.
    """
    cleaned = [link.strip() for link in links if link.strip()]
    if not cleaned:
        return GenerateResponse.failure(NO_LINKS_MESSAGE, status_code=400)

    with request_logging_context():
        return await _run_request(cleaned, settings, registry, engine, environ)


async def _run_request(
    links: list[str],
    settings: Settings | None,
    registry: SourceRegistry | None,
    engine: DigestEngine | None,
    environ: Mapping[str, str] | None,
) -> GenerateResponse:
    try:
        app_settings = settings or Settings.load()
        with stage_logging_context("normalize", links=len(links)):
            normalized = await normalize(links, registry)

        if normalized.invalid_urls:
            logger.info("invalid_urls_skipped", urls=normalized.invalid_urls)

        problem = validate_entries_for_processing(
            normalized.entries,
            min_entries=app_settings.intake.min_entries,
            min_content_chars=app_settings.intake.min_content_chars,
        )
        if problem:
            return GenerateResponse.failure(
                problem, status_code=400, invalid_urls=normalized.invalid_urls
            )

        config = select_processing_config(
            environ, credential_env_var=app_settings.engine.credential_env_var
        )
        with stage_logging_context("process", entries=len(normalized.entries)):
            result = await process_entries(
                normalized.entries,
                config=config,
                engine=engine or LLMDigestEngine(app_settings.engine),
            )
    except Exception as exc:
        logger.exception("generate_digest_failed")
        return GenerateResponse.failure(str(exc) or GENERIC_FAILURE_MESSAGE, 500)

    logger.info(
        "digest_generated",
        mode=result.mode.value,
        elapsed_ms=round(result.elapsed_ms, 1),
        entries=len(normalized.entries),
    )
    return GenerateResponse(
        success=True,
        digest=result.digest,
        mode=result.mode,
        invalid_urls=normalized.invalid_urls,
    )
