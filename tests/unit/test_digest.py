"""Unit tests for async_digest.digest - model defaults and output coercion."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from async_digest.digest import (
    UNKNOWN_CHANGES,
    UNKNOWN_DISCUSSED,
    UNKNOWN_IMPORTANCE,
    UNKNOWN_TEXT,
    UNKNOWN_TIMESTAMP,
    ActionItem,
    DecisionStatus,
    Digest,
    ExecutiveSummary,
    Significance,
    coerce_digest,
)


def _assert_complete(digest: Digest) -> None:
    """Every list field is a list and every text field is non-empty."""
    summary = digest.executive_summary
    for text in (
        summary.what_was_discussed,
        summary.why_it_matters,
        summary.what_changed,
    ):
        assert isinstance(text, str) and text.strip()
    for field in (
        digest.timeline,
        digest.action_items,
        digest.open_questions,
        digest.topic_clusters,
        digest.disagreements,
        digest.repeated_feedback,
        digest.decisions.decided,
        digest.decisions.pending,
        digest.decisions.blocked,
    ):
        assert isinstance(field, list)
    for event in digest.timeline:
        assert event.timestamp.strip() and event.summary.strip()
    for item in digest.action_items:
        assert item.action.strip() and item.context.strip()


class TestDigestModel:
    def test_defaults_are_complete(self) -> None:
        digest = Digest()
        _assert_complete(digest)
        assert digest.executive_summary.what_was_discussed == UNKNOWN_DISCUSSED

    def test_serializes_camel_case(self) -> None:
        data = Digest().model_dump(by_alias=True)
        assert "executiveSummary" in data
        assert "whatWasDiscussed" in data["executiveSummary"]
        assert "actionItems" in data
        assert "repeatedFeedback" in data

    def test_blank_text_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ExecutiveSummary(what_was_discussed="")

    def test_action_item_defaults(self) -> None:
        item = ActionItem(action="Ship it", context="standup")
        assert item.owner is None
        assert item.status is DecisionStatus.PENDING


class TestCoerceDigest:
    """coerce_digest never raises and always backfills."""

    @pytest.mark.parametrize(
        "raw", [None, 42, "text", [], {"timeline": "nope"}, {"decisions": []}]
    )
    def test_garbage_input(self, raw: object) -> None:
        digest = coerce_digest(raw)
        _assert_complete(digest)
        assert digest.timeline == []

    def test_empty_mapping_uses_placeholders(self) -> None:
        summary = coerce_digest({}).executive_summary
        assert summary.what_was_discussed == UNKNOWN_DISCUSSED
        assert summary.why_it_matters == UNKNOWN_IMPORTANCE
        assert summary.what_changed == UNKNOWN_CHANGES

    def test_camel_case_payload(self) -> None:
        digest = coerce_digest(
            {
                "executiveSummary": {
                    "whatWasDiscussed": "Onboarding copy",
                    "whyItMatters": "Legal exposure",
                    "whatChanged": "Version 2 chosen",
                },
                "actionItems": [
                    {"action": "Draft copy", "owner": "Diana", "status": "DECIDED"}
                ],
                "openQuestions": ["Who signs off?", "", 7],
                "topicClusters": [{"topic": "Legal", "entries": 3, "summary": "x"}],
            }
        )
        assert digest.executive_summary.what_changed == "Version 2 chosen"
        assert digest.action_items[0].owner == "Diana"
        assert digest.action_items[0].status is DecisionStatus.DECIDED
        assert digest.action_items[0].context == UNKNOWN_TEXT
        assert digest.open_questions == ["Who signs off?"]
        assert digest.topic_clusters[0].entries == 3

    def test_snake_case_payload(self) -> None:
        digest = coerce_digest(
            {"executive_summary": {"what_was_discussed": "Copy review"}}
        )
        assert digest.executive_summary.what_was_discussed == "Copy review"

    def test_timeline_backfill_and_enum_fallback(self) -> None:
        digest = coerce_digest(
            {
                "timeline": [
                    {"summary": "  kickoff  ", "significance": "critical"},
                    "not a mapping",
                    {"timestamp": "2026-01-07", "significance": "HIGH"},
                ]
            }
        )
        assert len(digest.timeline) == 2
        first, second = digest.timeline
        assert first.timestamp == UNKNOWN_TIMESTAMP
        assert first.summary == "kickoff"
        assert first.significance is Significance.MEDIUM
        assert second.significance is Significance.HIGH

    def test_decisions_buckets(self) -> None:
        digest = coerce_digest(
            {
                "decisions": {
                    "decided": [{"description": "Use version 2"}],
                    "pending": "nope",
                    "blocked": [{"participants": "Ana"}],
                }
            }
        )
        assert digest.decisions.decided[0].description == "Use version 2"
        assert digest.decisions.pending == []
        blocked = digest.decisions.blocked[0]
        assert blocked.description == UNKNOWN_TEXT
        assert blocked.participants == []

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (4, 4),
            (-2, 0),
            (3.9, 3),
            ("12", 12),
            ("many", 0),
            (True, 0),
            (float("nan"), 0),
            (float("inf"), 0),
            (None, 0),
        ],
    )
    def test_topic_entry_counts(self, raw: object, expected: int) -> None:
        digest = coerce_digest({"topicClusters": [{"topic": "T", "entries": raw}]})
        assert digest.topic_clusters[0].entries == expected

    def test_blank_owner_becomes_none(self) -> None:
        digest = coerce_digest({"actionItems": [{"action": "x", "owner": "  "}]})
        assert digest.action_items[0].owner is None
