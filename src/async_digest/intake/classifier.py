"""Link classification for chat threads and video walkthroughs.

Turns free-text URLs into typed ``LinkDescriptor``s. Each source type has a
structured pattern (which yields a stable identifier from the URL path) and
a loose domain match (which falls back to the last path segment).
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from async_digest.models import LinkDescriptor, SourceType

_CHAT_THREAD_RE = re.compile(r"slack\.com/archives/([A-Z0-9]+)/p(\d+)", re.IGNORECASE)
_CHAT_DOMAIN_RE = re.compile(r"slack\.com", re.IGNORECASE)
_VIDEO_SHARE_RE = re.compile(r"loom\.com/share/([a-zA-Z0-9]+)", re.IGNORECASE)
_VIDEO_DOMAIN_RE = re.compile(r"loom\.com", re.IGNORECASE)

DEFAULT_IDENTIFIER = "default"


@dataclass(slots=True, frozen=True)
class _Recognizer:
    source_type: SourceType
    pattern: re.Pattern[str]
    identifier: Callable[[re.Match[str], str], str]


def _last_segment(_match: re.Match[str], url: str) -> str:
    parts = [part for part in url.split("/") if part]
    return parts[-1] if parts else DEFAULT_IDENTIFIER


# Checked in order; the first match wins.
_RECOGNIZERS: tuple[_Recognizer, ...] = (
    _Recognizer(
        SourceType.CHAT,
        _CHAT_THREAD_RE,
        lambda match, _url: f"{match.group(1)}-{match.group(2)}",
    ),
    _Recognizer(SourceType.CHAT, _CHAT_DOMAIN_RE, _last_segment),
    _Recognizer(SourceType.VIDEO, _VIDEO_SHARE_RE, lambda match, _url: match.group(1)),
    _Recognizer(SourceType.VIDEO, _VIDEO_DOMAIN_RE, _last_segment),
)


def classify(url: str) -> LinkDescriptor | None:
    """Classify a single URL into a typed link descriptor.

    Args:
        url: Free-text URL; surrounding whitespace is ignored.

    Returns:
        A ``LinkDescriptor``, or None when the URL is blank or matches no
        known source.
    """
    trimmed = url.strip()
    if not trimmed:
        return None

    for recognizer in _RECOGNIZERS:
        match = recognizer.pattern.search(trimmed)
        if match:
            return LinkDescriptor(
                source_type=recognizer.source_type,
                raw_url=trimmed,
                identifier=recognizer.identifier(match, trimmed),
            )
    return None


@dataclass(slots=True)
class LinkPartition:
    """Input links split into recognized descriptors and rejected URLs."""

    valid: list[LinkDescriptor] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)


def partition_links(urls: list[str]) -> LinkPartition:
    """Classify every URL, keeping unrecognized ones for reporting.

    Blank entries are dropped silently rather than reported as invalid.
    """
    partition = LinkPartition()
    for url in urls:
        descriptor = classify(url)
        if descriptor is not None:
            partition.valid.append(descriptor)
        elif url.strip():
            partition.invalid.append(url.strip())
    return partition


def is_valid_source_url(url: str) -> bool:
    """Return True if *url* is a recognized chat or video link."""
    return classify(url) is not None


def get_source_type(url: str) -> SourceType | None:
    """Return the source type of *url* without keeping the descriptor."""
    descriptor = classify(url)
    return descriptor.source_type if descriptor else None
