"""Normalization pipeline: classify links, fetch concurrently, dedupe, sort.

Produces the canonical record sequence: unique by identity key and sorted
ascending by timestamp. The result depends only on the set of fetched
records, never on fetch completion order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from async_digest.intake.classifier import partition_links
from async_digest.intake.sources import SourceRegistry, default_registry
from async_digest.models import NormalizedRecord

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(slots=True)
class NormalizationResult:
    """Canonical records plus the input URLs that were not recognized."""

    entries: list[NormalizedRecord] = field(default_factory=list)
    invalid_urls: list[str] = field(default_factory=list)


def deduplicate_records(records: list[NormalizedRecord]) -> list[NormalizedRecord]:
    """Drop records whose identity key was already seen; first one wins."""
    seen: set[str] = set()
    unique: list[NormalizedRecord] = []
    for record in records:
        key = record.identity_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def sort_chronologically(records: list[NormalizedRecord]) -> list[NormalizedRecord]:
    """Stable ascending sort by timestamp; ties keep their relative order."""
    return sorted(records, key=lambda record: record.instant)


async def normalize(
    urls: list[str],
    registry: SourceRegistry | None = None,
) -> NormalizationResult:
    """Turn raw links into one deduplicated, chronological record sequence.

    All fetches are awaited jointly. A failing fetch is not isolated: its
    exception propagates and fails the whole normalization.

    Args:
        urls: Raw link strings.
        registry: Record sources per type. Defaults to the bundled fixtures.

    Returns:
        A ``NormalizationResult`` with sorted entries and invalid URLs.
    """
    partition = partition_links(urls)

    if not partition.valid:
        logger.info("normalize_no_valid_links", invalid=len(partition.invalid))
        return NormalizationResult(entries=[], invalid_urls=partition.invalid)

    sources = registry or default_registry()
    logger.info(
        "fetch_dispatched",
        links=len(partition.valid),
        invalid=len(partition.invalid),
    )

    batches = await asyncio.gather(
        *(sources.fetch_for_link(link) for link in partition.valid)
    )
    flattened = [record for batch in batches for record in batch]

    unique = deduplicate_records(flattened)
    entries = sort_chronologically(unique)

    logger.info(
        "normalize_complete",
        fetched=len(flattened),
        duplicates_dropped=len(flattened) - len(unique),
        entries=len(entries),
    )
    return NormalizationResult(entries=entries, invalid_urls=partition.invalid)
