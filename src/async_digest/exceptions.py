"""Centralized exception hierarchy for the async-digest package.

All domain-specific exceptions inherit from ``AsyncDigestError`` so
callers can catch the entire family with a single ``except`` clause.
"""

from __future__ import annotations


class AsyncDigestError(Exception):
    """Base exception for all async-digest errors."""


# ---------------------------------------------------------------------------
# Source errors
# ---------------------------------------------------------------------------


class SourceFetchError(AsyncDigestError):
    """Raised when a discussion source cannot return its records."""


# ---------------------------------------------------------------------------
# Analysis engine errors
# ---------------------------------------------------------------------------


class EngineError(AsyncDigestError):
    """Raised when the capable analysis engine fails to produce a digest."""


class EngineResponseError(EngineError):
    """Raised when the engine response is empty or cannot be parsed."""
