"""Deterministic, rule-based digest generator.

Used whenever the LLM engine is unavailable or fails. Every section is
derived from explicit phrase markers and term frequencies in the records,
so the same input always yields the same digest. The generator only
reports a decision when a sentence states one outright; proposals and
unclear items land in ``pending``.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC
from typing import TYPE_CHECKING

from async_digest.digest import (
    ActionItem,
    Decision,
    Decisions,
    DecisionStatus,
    Digest,
    ExecutiveSummary,
    Significance,
    TimelineEvent,
    TopicCluster,
)
from async_digest.models import SourceType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from async_digest.models import NormalizedRecord

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_MAX_TIMELINE_EVENTS = 12
_MAX_OPEN_QUESTIONS = 10
_MAX_TOPIC_CLUSTERS = 5
_MAX_REPEATED_FEEDBACK = 5
_MAX_SUMMARY_CHARS = 160

_MIN_TOPIC_ENTRIES = 2
_MIN_REPEATED_ENTRIES = 3
_MIN_REPEATED_AUTHORS = 2

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_TAG_PREFIX_RE = re.compile(r"^\[[^\]]+\]\s*")
_MENTION_RE = re.compile(r"@([A-Z][a-zA-Z]+(?: [A-Z][a-zA-Z]+)?)")
_WORD_RE = re.compile(r"[a-z][a-z'+-]{3,}")

_BLOCKED_RE = re.compile(
    r"\b(blocked|blocker|waiting (on|for)|on hold|can'?t proceed|depends on)\b",
    re.IGNORECASE,
)
_DECIDED_RE = re.compile(
    r"\b(we decided|decided|decision is|let'?s go with|going with|agreed|approved)\b",
    re.IGNORECASE,
)
_PROPOSAL_RE = re.compile(
    r"\b(propos\w*|suggest\w*|should we|what if|consider|maybe|lean towards"
    r"|leaving it open|i'?d drop)\b",
    re.IGNORECASE,
)
_SELF_COMMIT_RE = re.compile(r"\b(i['’]ll|i will|i['’]?m going to)\b", re.IGNORECASE)
_REQUEST_RE = re.compile(
    r"\b(please|can you|could you|so (she|he|they) can|take (these|this|it))\b",
    re.IGNORECASE,
)
_TASK_RE = re.compile(r"\b(needs? to|action item|todo|to-do)\b", re.IGNORECASE)
_DISAGREE_RE = re.compile(
    r"\b(disagree\w*|not sure|concern\w*|i'?d rather|instead|however|push back)\b",
    re.IGNORECASE,
)

_STOPWORDS = frozenset(
    """
    about above after again against also although always another anything
    around because been before being below between both could does doing down
    during each even every feel feels from further good great have having here
    into itself just know leave like make more most much must need only other
    ours over really same should since some something still such than that
    their theirs them then there these they thing think this those though
    through today under until very want well were what when where which while
    will with without would your yours team version first second side right
    away going real reason looking reads start starts quick
    """.split()
)


# ---------------------------------------------------------------------------
# Sentence analysis
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _Statement:
    """One sentence of one record, with the markers it carries."""

    record: NormalizedRecord
    text: str
    mentions: list[str] = field(default_factory=list)

    @property
    def is_question(self) -> bool:
        return self.text.endswith("?")

    @property
    def status(self) -> DecisionStatus | None:
        if _BLOCKED_RE.search(self.text):
            return DecisionStatus.BLOCKED
        if self.is_question:
            return None
        if _DECIDED_RE.search(self.text):
            return DecisionStatus.DECIDED
        if _PROPOSAL_RE.search(self.text):
            return DecisionStatus.PENDING
        return None

    @property
    def participants(self) -> list[str]:
        return _unique([self.record.author, *self.mentions])


def _unique(items: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        ordered.append(item)
    return ordered


def _clean(content: str) -> str:
    return " ".join(_TAG_PREFIX_RE.sub("", content.strip()).split())


def _statements(record: NormalizedRecord) -> list[_Statement]:
    text = _clean(record.content)
    return [
        _Statement(record=record, text=sentence, mentions=_MENTION_RE.findall(sentence))
        for sentence in _SENTENCE_SPLIT_RE.split(text)
        if sentence.strip()
    ]


def _shorten(text: str, limit: int = _MAX_SUMMARY_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _source_label(record: NormalizedRecord) -> str:
    if record.source_type is SourceType.VIDEO:
        return "Video walkthrough"
    return "Chat thread"


def _format_instant(record: NormalizedRecord) -> str:
    return record.instant.astimezone(UTC).strftime("%Y-%m-%d %H:%M UTC")


def _terms(record: NormalizedRecord) -> set[str]:
    found = _WORD_RE.findall(_clean(record.content).lower())
    words = (word.strip("'-+") for word in found)
    return {word for word in words if len(word) > 3 and word not in _STOPWORDS}


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _decisions(statements: list[_Statement]) -> Decisions:
    buckets: dict[DecisionStatus, list[Decision]] = {
        status: [] for status in DecisionStatus
    }
    seen: set[str] = set()
    for statement in statements:
        status = statement.status
        if status is None:
            continue
        key = statement.text.lower()
        if key in seen:
            continue
        seen.add(key)
        buckets[status].append(
            Decision(
                description=statement.text,
                context=(
                    f"{_source_label(statement.record)} entry by "
                    f"{statement.record.author} at {statement.record.timestamp}"
                ),
                participants=statement.participants,
            )
        )
    return Decisions(
        decided=buckets[DecisionStatus.DECIDED],
        pending=buckets[DecisionStatus.PENDING],
        blocked=buckets[DecisionStatus.BLOCKED],
    )


def _action_owner(statement: _Statement) -> tuple[bool, str | None]:
    """Return whether *statement* is an action item, and its owner."""
    if _SELF_COMMIT_RE.search(statement.text):
        return True, statement.record.author
    if statement.mentions and (
        _REQUEST_RE.search(statement.text) or _DECIDED_RE.search(statement.text)
    ):
        return True, statement.mentions[-1]
    if _TASK_RE.search(statement.text):
        return True, None
    return False, None


def _action_items(statements: list[_Statement]) -> list[ActionItem]:
    items: list[ActionItem] = []
    for statement in statements:
        if statement.is_question:
            continue
        is_action, owner = _action_owner(statement)
        if not is_action:
            continue
        items.append(
            ActionItem(
                action=statement.text,
                owner=owner,
                status=statement.status or DecisionStatus.PENDING,
                context=f"Raised by {statement.record.author} at "
                f"{statement.record.timestamp}",
            )
        )
    return items


def _open_questions(statements: list[_Statement]) -> list[str]:
    questions = [
        f"{statement.text} ({statement.record.author})"
        for statement in statements
        if statement.is_question
    ]
    return _unique(questions)[:_MAX_OPEN_QUESTIONS]


def _disagreements(statements: list[_Statement]) -> list[str]:
    return _unique(
        [
            f"{statement.record.author}: {statement.text}"
            for statement in statements
            if _DISAGREE_RE.search(statement.text)
        ]
    )


def _term_index(
    records: Sequence[NormalizedRecord],
) -> tuple[Counter[str], dict[str, list[str]], dict[str, int]]:
    """Count, per term, the entries and authors that mention it."""
    document_frequency: Counter[str] = Counter()
    authors: dict[str, list[str]] = {}
    first_seen: dict[str, int] = {}
    for index, record in enumerate(records):
        for term in sorted(_terms(record)):
            document_frequency[term] += 1
            authors.setdefault(term, []).append(record.author)
            first_seen.setdefault(term, index)
    return document_frequency, authors, first_seen


def _ranked_terms(
    document_frequency: Counter[str], first_seen: dict[str, int], minimum: int
) -> list[str]:
    eligible = [term for term, count in document_frequency.items() if count >= minimum]
    return sorted(eligible, key=lambda term: (-document_frequency[term], first_seen[term]))


def _topic_clusters(records: Sequence[NormalizedRecord]) -> list[TopicCluster]:
    frequency, authors, first_seen = _term_index(records)
    clusters: list[TopicCluster] = []
    for term in _ranked_terms(frequency, first_seen, _MIN_TOPIC_ENTRIES)[
        :_MAX_TOPIC_CLUSTERS
    ]:
        names = _unique(authors[term])
        clusters.append(
            TopicCluster(
                topic=term.capitalize(),
                entries=frequency[term],
                summary=f"Raised in {frequency[term]} entries by {', '.join(names)}",
            )
        )
    return clusters


def _repeated_feedback(records: Sequence[NormalizedRecord]) -> list[str]:
    frequency, authors, first_seen = _term_index(records)
    feedback: list[str] = []
    for term in _ranked_terms(frequency, first_seen, _MIN_REPEATED_ENTRIES):
        names = _unique(authors[term])
        if len(names) < _MIN_REPEATED_AUTHORS:
            continue
        feedback.append(
            f"'{term}' came up in {frequency[term]} entries "
            f"from {len(names)} participants"
        )
        if len(feedback) == _MAX_REPEATED_FEEDBACK:
            break
    return feedback


def _significance(statements: list[_Statement]) -> Significance | None:
    statuses = {statement.status for statement in statements}
    if DecisionStatus.DECIDED in statuses or DecisionStatus.BLOCKED in statuses:
        return Significance.HIGH
    if any(
        statement.is_question
        or _DISAGREE_RE.search(statement.text)
        or _action_owner(statement)[0]
        for statement in statements
    ):
        return Significance.MEDIUM
    return None


def _timeline(records: Sequence[NormalizedRecord]) -> list[TimelineEvent]:
    events: list[TimelineEvent] = []
    last_index = len(records) - 1
    for index, record in enumerate(records):
        statements = _statements(record)
        if not statements:
            continue
        significance = _significance(statements)
        if significance is None:
            if index not in (0, last_index):
                continue
            significance = Significance.LOW

        marked = next(
            (s for s in statements if s.status is not None or s.is_question),
            statements[0],
        )
        events.append(
            TimelineEvent(
                timestamp=record.timestamp,
                summary=_shorten(f"{record.author}: {marked.text}"),
                participants=_unique(
                    [record.author, *(m for s in statements for m in s.mentions)]
                ),
                significance=significance,
            )
        )

    if len(events) <= _MAX_TIMELINE_EVENTS:
        return events
    # Keep the chronological bounds and the most significant events between.
    rank = {Significance.HIGH: 0, Significance.MEDIUM: 1, Significance.LOW: 2}
    middle = sorted(
        range(1, len(events) - 1),
        key=lambda i: (rank[events[i].significance], i),
    )[: _MAX_TIMELINE_EVENTS - 2]
    keep = sorted({0, len(events) - 1, *middle})
    return [events[i] for i in keep]


def _executive_summary(
    records: Sequence[NormalizedRecord],
    decisions: Decisions,
    clusters: list[TopicCluster],
) -> ExecutiveSummary:
    if not records:
        return ExecutiveSummary(
            what_was_discussed="No discussion entries were provided.",
        )

    participants = _unique([record.author for record in records])
    chat = sum(1 for record in records if record.source_type is SourceType.CHAT)
    video = len(records) - chat
    discussed = (
        f"{len(records)} entries from {len(participants)} participants "
        f"({chat} chat messages, {video} video entries) between "
        f"{_format_instant(records[0])} and {_format_instant(records[-1])}."
    )
    if clusters:
        topics = ", ".join(cluster.topic for cluster in clusters[:3])
        discussed += f" Main topics: {topics}."

    if decisions.blocked:
        matters = (
            f"{len(decisions.blocked)} item(s) are blocked and "
            f"{len(decisions.pending)} remain pending, so follow-up is needed "
            "before the work can move forward."
        )
    elif decisions.pending:
        matters = (
            f"{len(decisions.pending)} proposal(s) are still open and need an "
            "explicit decision."
        )
    else:
        matters = "No open proposals or blockers were detected in the discussion."

    if decisions.decided:
        changed = "Decided: " + "; ".join(
            _shorten(decision.description, 100) for decision in decisions.decided[:3]
        )
    else:
        changed = "No explicit decisions were recorded."

    return ExecutiveSummary(
        what_was_discussed=discussed,
        why_it_matters=matters,
        what_changed=changed,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def generate_fallback_digest(records: Sequence[NormalizedRecord]) -> Digest:
    """Build a digest from *records* using phrase markers and term counts.

    Args:
        records: Canonical, chronologically sorted records.

    Returns:
        A structurally complete ``Digest``.
    """
    statements = [statement for record in records for statement in _statements(record)]
    decisions = _decisions(statements)
    clusters = _topic_clusters(records)

    return Digest(
        executive_summary=_executive_summary(records, decisions, clusters),
        timeline=_timeline(records),
        decisions=decisions,
        action_items=_action_items(statements),
        open_questions=_open_questions(statements),
        topic_clusters=clusters,
        disagreements=_disagreements(statements),
        repeated_feedback=_repeated_feedback(records),
    )
