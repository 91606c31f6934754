"""API request/response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from async_digest.config import ProcessingMode


class GenerateRequest(BaseModel):
    """Request payload for digest generation.

    ``links`` is typed loosely so that a missing or non-list value can be
    reported with the pipeline's own error message instead of a 422.
    """

    links: Any = None


class ProcessingInfoResponse(BaseModel):
    """Active processing mode, as reported to clients."""

    mode: ProcessingMode
    description: str
