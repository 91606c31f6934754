"""Per-source record fetchers and the registry that dispatches to them."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog
from pydantic import ValidationError

from async_digest.exceptions import SourceFetchError
from async_digest.intake.classifier import DEFAULT_IDENTIFIER
from async_digest.intake.fixtures import CHAT_FIXTURES, VIDEO_FIXTURES
from async_digest.models import NormalizedRecord, SourceType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from async_digest.models import LinkDescriptor

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class RecordSource(Protocol):
    """Capability that returns the discussion records behind an identifier."""

    async def fetch(self, identifier: str) -> list[NormalizedRecord]: ...


def to_records(
    source_type: SourceType, rows: list[dict[str, Any]]
) -> list[NormalizedRecord]:
    """Validate raw source rows into records, skipping malformed rows.

    Rows with a missing author or an unparsable timestamp are logged and
    dropped so they never reach the chronological merge.
    """
    records: list[NormalizedRecord] = []
    for index, row in enumerate(rows):
        try:
            records.append(NormalizedRecord(source_type=source_type, **row))
        except (TypeError, ValidationError) as exc:
            logger.warning(
                "record_skipped",
                source_type=source_type.value,
                row_index=index,
                error=str(exc),
            )
    return records


class FixtureRecordSource:
    """Serve records from an in-memory fixture map keyed by identifier."""

    def __init__(
        self,
        source_type: SourceType,
        fixtures: Mapping[str, list[dict[str, Any]]],
    ) -> None:
        self._source_type = source_type
        self._fixtures = fixtures

    async def fetch(self, identifier: str) -> list[NormalizedRecord]:
        """Return records for *identifier*, or the default set if unknown."""
        rows = self._fixtures.get(identifier)
        if rows is None:
            logger.debug(
                "fixture_identifier_unknown",
                source_type=self._source_type.value,
                identifier=identifier,
            )
            rows = self._fixtures.get(DEFAULT_IDENTIFIER, [])
        return to_records(self._source_type, rows)


class SourceRegistry:
    """Route link descriptors to the record source for their type."""

    def __init__(self, sources: Mapping[SourceType, RecordSource] | None = None) -> None:
        self._sources: dict[SourceType, RecordSource] = dict(sources or {})

    def register(self, source_type: SourceType, source: RecordSource) -> None:
        self._sources[source_type] = source

    async def fetch_for_link(self, link: LinkDescriptor) -> list[NormalizedRecord]:
        """Fetch records for one classified link.

        Source types with no registered source yield an empty list.

        Raises:
            SourceFetchError: If the source fails; the original error is
                chained.
        """
        source = self._sources.get(link.source_type)
        if source is None:
            logger.warning("source_not_registered", source_type=link.source_type.value)
            return []
        try:
            records = await source.fetch(link.identifier)
        except SourceFetchError:
            raise
        except Exception as exc:
            raise SourceFetchError(
                f"Failed to fetch {link.source_type.value} link {link.raw_url}: {exc}"
            ) from exc
        logger.debug(
            "link_fetched",
            source_type=link.source_type.value,
            identifier=link.identifier,
            records=len(records),
        )
        return records


def default_registry() -> SourceRegistry:
    """Build a registry backed by the bundled chat and video fixtures."""
    return SourceRegistry(
        {
            SourceType.CHAT: FixtureRecordSource(SourceType.CHAT, CHAT_FIXTURES),
            SourceType.VIDEO: FixtureRecordSource(SourceType.VIDEO, VIDEO_FIXTURES),
        }
    )
