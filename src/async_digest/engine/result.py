"""Two-branch result type returned by analysis engines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from async_digest.digest import Digest
    from async_digest.exceptions import EngineError
    from async_digest.models import NormalizedRecord


@dataclass(slots=True, frozen=True)
class EngineSuccess:
    digest: Digest


@dataclass(slots=True, frozen=True)
class EngineFailure:
    error: EngineError


EngineResult = EngineSuccess | EngineFailure


class DigestEngine(Protocol):
    """Capability that analyzes records into a digest.

    Implementations report failure through ``EngineFailure`` instead of
    raising.
    """

    async def analyze(
        self, records: Sequence[NormalizedRecord], credential: str
    ) -> EngineResult: ...
