"""Bundled demo discussions used by the fixture record sources.

Two chat threads and two video walkthroughs about an app onboarding
redesign. Keys are source identifiers; ``"default"`` answers any
identifier the map does not know.
"""

from __future__ import annotations

from typing import Any

_ONBOARDING_THREAD: list[dict[str, Any]] = [
    {
        "author": "Fernando Alvarez",
        "timestamp": "2026-01-07T02:26:00Z",
        "content": (
            "On this screen I'd rather err on the side of longer copy and more "
            "legal coverage than on simplification and readability."
        ),
    },
    {
        "author": "Fernando Alvarez",
        "timestamp": "2026-01-07T04:09:00Z",
        "content": (
            "Great work! I lean towards version 2, the first one. It should be "
            "good enough for legal. The scroll behaviour is nice but I don't "
            "think this content is mandatory to push, so I prefer to leave it "
            "to the user."
        ),
    },
    {
        "author": "Fernando Alvarez",
        "timestamp": "2026-01-07T06:37:00Z",
        "content": (
            "I like the icons, although I'm not sure about anything alarming like "
            "the red one. Conceptually they keep the screen from feeling heavy."
        ),
    },
    {
        "author": "Paula Serrano",
        "timestamp": "2026-01-08T01:00:00Z",
        "content": (
            "@Martin Silva I get it. The real reason is legal protection, but for "
            "the user it reads as what you need to know before using the app. "
            "Copying the reference down to the copy feels borderline to me. "
            "Adding @Diana Reyes so she can take these copies."
        ),
    },
    {
        "author": "Paula Serrano",
        "timestamp": "2026-01-08T02:00:00Z",
        "content": (
            "My concern is that without forcing a scroll someone could later claim "
            "the text was too small to notice. I wanted it a bit more mandatory, "
            "even though we know 99% of users will skip it without reading."
        ),
    },
    {
        "author": "Paula Serrano",
        "timestamp": "2026-01-08T03:35:00Z",
        "content": (
            "@Diana Reyes we decided to go with the CTA behaviour from the first "
            "version, so reading is not required to continue."
        ),
    },
]

_PRIORITIES_THREAD: list[dict[str, Any]] = [
    {
        "author": "Martin Silva",
        "timestamp": "2026-01-07T10:00:00Z",
        "content": (
            "Team, I reviewed the welcome screen proposals and we're on a good "
            "track. The open question: do we prioritise legal coverage or user "
            "experience?"
        ),
    },
    {
        "author": "Diana Reyes",
        "timestamp": "2026-01-07T10:30:00Z",
        "content": (
            "From the design side I think we can get both. The icons help users "
            "scan quickly without sacrificing the legal content."
        ),
    },
    {
        "author": "Fernando Alvarez",
        "timestamp": "2026-01-07T11:15:00Z",
        "content": (
            "I disagree a little: the +18 disclaimer should always be visible. "
            "Should we keep it pinned at the top instead of inside the scroll?"
        ),
    },
    {
        "author": "Martin Silva",
        "timestamp": "2026-01-07T12:00:00Z",
        "content": (
            "The +18 placement is blocked until legal confirms the requirement. "
            "I'll ask them this week."
        ),
    },
    {
        "author": "Diana Reyes",
        "timestamp": "2026-01-07T12:45:00Z",
        "content": (
            "I will prepare a prototype with the CTA visible from the start so we "
            "can test drop-off on the onboarding."
        ),
    },
]

_WALKTHROUGH_VIDEO: list[dict[str, Any]] = [
    {
        "author": "Paula Serrano",
        "timestamp": "2026-01-07T14:00:00Z",
        "content": (
            "[Video Transcript] Hi team, here is what Diana and I have been "
            "looking at: what she can do right away and what needs confirmation, "
            "mostly around copy."
        ),
    },
    {
        "author": "Paula Serrano",
        "timestamp": "2026-01-07T14:01:00Z",
        "content": (
            "[Video Transcript] We started from the reference app. Its typography "
            "is tiny and does not pass accessibility, so the minimum size has to "
            "go up."
        ),
    },
    {
        "author": "Paula Serrano",
        "timestamp": "2026-01-07T14:02:30Z",
        "content": (
            "[Video Transcript] There are several copy proposals. I suggest we "
            "consider the more human options, but I'm leaving it open so we can "
            "pick together."
        ),
    },
    {
        "author": "Paula Serrano",
        "timestamp": "2026-01-07T14:07:00Z",
        "content": (
            "[Video Transcript] On scrolling: the button is always visible but "
            "disabled until the user scrolls to the end of the disclaimer."
        ),
    },
    {
        "author": "Eduardo Ortiz",
        "timestamp": "2026-01-08T09:00:00Z",
        "content": (
            "[Comment] Let's go with 'Before We Begin', no icons, more spacing, "
            "and the CTA visible from the start. The icons add too much to parse."
        ),
    },
]

_FEEDBACK_VIDEO: list[dict[str, Any]] = [
    {
        "author": "Eduardo Ortiz",
        "timestamp": "2026-01-08T08:00:00Z",
        "content": (
            "[Video Transcript] Quick feedback on the onboarding. The spacing "
            "feels cramped and it is hard to separate the lines visually."
        ),
    },
    {
        "author": "Eduardo Ortiz",
        "timestamp": "2026-01-08T08:02:00Z",
        "content": (
            "[Video Transcript] I'd drop 'Work in Progress' from the disclaimers. "
            "It makes the content longer and is not a key disclaimer."
        ),
    },
    {
        "author": "Fernando Alvarez",
        "timestamp": "2026-01-08T08:30:00Z",
        "content": (
            "[Comment] Agreed on spacing. Still not sure about removing 'Work in "
            "Progress', what does legal think?"
        ),
    },
    {
        "author": "Diana Reyes",
        "timestamp": "2026-01-08T10:00:00Z",
        "content": (
            "[Comment] I'll update the spacing and typography today. Waiting on "
            "approval before touching the welcome screen itself."
        ),
    },
]

CHAT_FIXTURES: dict[str, list[dict[str, Any]]] = {
    "welcome-screen": _ONBOARDING_THREAD,
    "legal-disclaimers": _ONBOARDING_THREAD,
    "onboarding-priorities": _PRIORITIES_THREAD,
    "default": _ONBOARDING_THREAD,
}

VIDEO_FIXTURES: dict[str, list[dict[str, Any]]] = {
    "welcome-screen-walkthrough": _WALKTHROUGH_VIDEO,
    "design-feedback": _FEEDBACK_VIDEO,
    "legal-review": _FEEDBACK_VIDEO,
    "default": _WALKTHROUGH_VIDEO,
}
