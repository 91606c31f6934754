"""Digest data contract and the coercion of untrusted analysis output.

A ``Digest`` is always structurally complete: list fields default to empty
lists and text fields default to non-empty placeholders. ``coerce_digest``
is the only way external engine output becomes a ``Digest``; it never
raises, whatever shape the input has.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Placeholders
# ---------------------------------------------------------------------------

UNKNOWN_DISCUSSED = "Unable to determine discussion summary"
UNKNOWN_IMPORTANCE = "Unable to determine importance"
UNKNOWN_CHANGES = "Unable to determine changes"
UNKNOWN_TIMESTAMP = "Unknown time"
UNKNOWN_TEXT = "Not specified"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class _DigestModel(BaseModel):
    """Frozen model serialized with camelCase keys at the boundary."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Significance(StrEnum):
    """How much a timeline event moved the discussion."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DecisionStatus(StrEnum):
    """Resolution state of a decision or action item."""

    DECIDED = "decided"
    PENDING = "pending"
    BLOCKED = "blocked"


class ExecutiveSummary(_DigestModel):
    what_was_discussed: str = Field(default=UNKNOWN_DISCUSSED, min_length=1)
    why_it_matters: str = Field(default=UNKNOWN_IMPORTANCE, min_length=1)
    what_changed: str = Field(default=UNKNOWN_CHANGES, min_length=1)


class TimelineEvent(_DigestModel):
    timestamp: str = Field(default=UNKNOWN_TIMESTAMP, min_length=1)
    summary: str = Field(default=UNKNOWN_TEXT, min_length=1)
    participants: list[str] = Field(default_factory=list)
    significance: Significance = Significance.MEDIUM


class Decision(_DigestModel):
    description: str = Field(default=UNKNOWN_TEXT, min_length=1)
    context: str = Field(default=UNKNOWN_TEXT, min_length=1)
    participants: list[str] = Field(default_factory=list)


class Decisions(_DigestModel):
    decided: list[Decision] = Field(default_factory=list)
    pending: list[Decision] = Field(default_factory=list)
    blocked: list[Decision] = Field(default_factory=list)


class ActionItem(_DigestModel):
    action: str = Field(default=UNKNOWN_TEXT, min_length=1)
    owner: str | None = None
    status: DecisionStatus = DecisionStatus.PENDING
    context: str = Field(default=UNKNOWN_TEXT, min_length=1)


class TopicCluster(_DigestModel):
    topic: str = Field(default=UNKNOWN_TEXT, min_length=1)
    entries: int = Field(default=0, ge=0)
    summary: str = Field(default=UNKNOWN_TEXT, min_length=1)


class Digest(_DigestModel):
    """Structured summary of a set of asynchronous discussions."""

    executive_summary: ExecutiveSummary = Field(default_factory=ExecutiveSummary)
    timeline: list[TimelineEvent] = Field(default_factory=list)
    decisions: Decisions = Field(default_factory=Decisions)
    action_items: list[ActionItem] = Field(default_factory=list)
    open_questions: list[str] = Field(default_factory=list)
    topic_clusters: list[TopicCluster] = Field(default_factory=list)
    disagreements: list[str] = Field(default_factory=list)
    repeated_feedback: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Coercion of untrusted output
# ---------------------------------------------------------------------------


def _field(data: Mapping[str, Any], name: str) -> Any:
    """Look up *name* by its camelCase alias first, then snake_case."""
    camel = to_camel(name)
    if camel in data:
        return data[camel]
    return data.get(name)


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _mappings(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float) and math.isfinite(value):
        return max(int(value), 0)
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return 0


def _enum(enum_cls: type[StrEnum], value: Any, default: StrEnum) -> Any:
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return default
    return default


def _decision(data: Mapping[str, Any]) -> Decision:
    return Decision(
        description=_text(_field(data, "description"), UNKNOWN_TEXT),
        context=_text(_field(data, "context"), UNKNOWN_TEXT),
        participants=_strings(_field(data, "participants")),
    )


def coerce_digest(raw: Any) -> Digest:
    """Reshape arbitrary engine output into a complete ``Digest``.

    Missing or blank text becomes a placeholder, non-list collections
    become empty lists, list items of the wrong shape are dropped, and
    out-of-range enum values fall back to ``medium`` significance or
    ``pending`` status. Keys may be camelCase or snake_case.

    Args:
        raw: Parsed engine output of any type.

    Returns:
        A structurally complete ``Digest``.
    """
    data = _mapping(raw)
    summary = _mapping(_field(data, "executive_summary"))
    decisions = _mapping(_field(data, "decisions"))

    return Digest(
        executive_summary=ExecutiveSummary(
            what_was_discussed=_text(
                _field(summary, "what_was_discussed"), UNKNOWN_DISCUSSED
            ),
            why_it_matters=_text(_field(summary, "why_it_matters"), UNKNOWN_IMPORTANCE),
            what_changed=_text(_field(summary, "what_changed"), UNKNOWN_CHANGES),
        ),
        timeline=[
            TimelineEvent(
                timestamp=_text(_field(item, "timestamp"), UNKNOWN_TIMESTAMP),
                summary=_text(_field(item, "summary"), UNKNOWN_TEXT),
                participants=_strings(_field(item, "participants")),
                significance=_enum(
                    Significance, _field(item, "significance"), Significance.MEDIUM
                ),
            )
            for item in _mappings(_field(data, "timeline"))
        ],
        decisions=Decisions(
            decided=[_decision(item) for item in _mappings(decisions.get("decided"))],
            pending=[_decision(item) for item in _mappings(decisions.get("pending"))],
            blocked=[_decision(item) for item in _mappings(decisions.get("blocked"))],
        ),
        action_items=[
            ActionItem(
                action=_text(_field(item, "action"), UNKNOWN_TEXT),
                owner=_optional_text(_field(item, "owner")),
                status=_enum(
                    DecisionStatus, _field(item, "status"), DecisionStatus.PENDING
                ),
                context=_text(_field(item, "context"), UNKNOWN_TEXT),
            )
            for item in _mappings(_field(data, "action_items"))
        ],
        open_questions=_strings(_field(data, "open_questions")),
        topic_clusters=[
            TopicCluster(
                topic=_text(_field(item, "topic"), UNKNOWN_TEXT),
                entries=_count(_field(item, "entries")),
                summary=_text(_field(item, "summary"), UNKNOWN_TEXT),
            )
            for item in _mappings(_field(data, "topic_clusters"))
        ],
        disagreements=_strings(_field(data, "disagreements")),
        repeated_feedback=_strings(_field(data, "repeated_feedback")),
    )
