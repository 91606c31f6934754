"""Source-agnostic data models for discussion records.

A ``NormalizedRecord`` is one atomic unit of discussion (a chat message, a
video transcript segment, a comment). Records from every source share this
shape so they can be merged into one chronological sequence.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Characters of content included in a record's identity key.
IDENTITY_CONTENT_PREFIX = 50


class SourceType(StrEnum):
    """Kind of asynchronous discussion source."""

    CHAT = "chat"
    VIDEO = "video"


class LinkDescriptor(BaseModel):
    """A classified input link, tagged with its source type."""

    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    raw_url: str
    identifier: str


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    A trailing ``Z`` is accepted and naive values are interpreted as UTC.

    Raises:
        ValueError: If *value* is not a valid ISO-8601 timestamp.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class NormalizedRecord(BaseModel):
    """One message, transcript segment, or comment from any source."""

    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    author: str = Field(min_length=1)
    timestamp: str = Field(description="ISO-8601 timestamp.")
    content: str

    @field_validator("timestamp")
    @classmethod
    def _timestamp_must_parse(cls, value: str) -> str:
        parse_timestamp(value)
        return value

    @property
    def instant(self) -> datetime:
        """The timestamp as an aware datetime."""
        return parse_timestamp(self.timestamp)

    @property
    def identity_key(self) -> str:
        """Composite key used to detect duplicate records."""
        prefix = self.content[:IDENTITY_CONTENT_PREFIX]
        return f"{self.author}-{self.timestamp}-{prefix}"
