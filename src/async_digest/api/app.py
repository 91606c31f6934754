"""FastAPI application exposing digest generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from async_digest import __version__
from async_digest.api.models import GenerateRequest, ProcessingInfoResponse
from async_digest.config import (
    Settings,
    describe_processing_mode,
    select_processing_config,
)
from async_digest.orchestrator import GenerateResponse, generate_digest

if TYPE_CHECKING:
    from collections.abc import Mapping

    from async_digest.engine.result import DigestEngine
    from async_digest.intake.sources import SourceRegistry

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

LINKS_REQUIRED_MESSAGE = "Request must include a 'links' array"


def _json(response: GenerateResponse) -> JSONResponse:
    return JSONResponse(
        content=response.model_dump(mode="json", by_alias=True, exclude_none=True),
        status_code=response.status_code,
    )


def create_app(
    settings: Settings | None = None,
    registry: SourceRegistry | None = None,
    engine: DigestEngine | None = None,
    environ: Mapping[str, str] | None = None,
) -> FastAPI:
    """Create and configure the API app.

    ``registry``, ``engine``, and ``environ`` override the bundled fixture
    sources, the LLM engine, and ``os.environ`` respectively.
    """
    app_settings = settings or Settings.load()

    app = FastAPI(title="async-digest API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.api.cors_origins,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.state.settings = app_settings

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/processing-info", response_model=ProcessingInfoResponse)
    async def processing_info() -> ProcessingInfoResponse:
        env_var = app_settings.engine.credential_env_var
        config = select_processing_config(environ, credential_env_var=env_var)
        info = describe_processing_mode(config, credential_env_var=env_var)
        return ProcessingInfoResponse(mode=info.mode, description=info.description)

    @app.post("/api/generate")
    async def generate(payload: GenerateRequest) -> JSONResponse:
        links = payload.links
        if not isinstance(links, list) or not all(
            isinstance(link, str) for link in links
        ):
            return _json(GenerateResponse.failure(LINKS_REQUIRED_MESSAGE, 400))

        logger.info("generate_request", links=len(links))
        response = await generate_digest(
            links,
            settings=app_settings,
            registry=registry,
            engine=engine,
            environ=environ,
        )
        return _json(response)

    return app
