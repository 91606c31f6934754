"""LLM-backed digest engine.

Sends the canonical record sequence to a chat-completion model through
litellm and coerces the JSON reply into a ``Digest``. Every failure mode
(transport error, empty reply, unparsable JSON) is reported as an
``EngineFailure``; nothing is retried.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from async_digest.config import EngineSettings
from async_digest.digest import coerce_digest
from async_digest.engine.result import EngineFailure, EngineResult, EngineSuccess
from async_digest.exceptions import EngineError, EngineResponseError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from async_digest.models import NormalizedRecord

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_PROMPTS_DIR = Path(__file__).parent / "prompts"


# ---------------------------------------------------------------------------
# Prompt loading and formatting
# ---------------------------------------------------------------------------


def _load_prompt() -> dict[str, str]:
    """Load the digest prompt templates from YAML.

    Returns:
        Dictionary with 'system' and 'user' prompt templates.
    """
    import yaml

    path = _PROMPTS_DIR / "digest.yaml"
    with path.open(encoding="utf-8") as f:
        result: dict[str, str] = yaml.safe_load(f)
    return result


def format_entries(records: Sequence[NormalizedRecord]) -> str:
    """Render records as numbered, source-tagged blocks for the prompt."""
    blocks: list[str] = []
    for index, record in enumerate(records, start=1):
        header = (
            f"[{index}] {record.timestamp} | {record.source_type.value.upper()} "
            f"| {record.author}:"
        )
        blocks.append(f"{header}\n{record.content}")
    return "\n\n".join(blocks)


def build_messages(records: Sequence[NormalizedRecord]) -> list[dict[str, str]]:
    """Build the system + user chat messages for a digest request."""
    templates = _load_prompt()
    participants = {record.author for record in records}
    user_prompt = templates["user"].format(
        num_entries=len(records),
        num_participants=len(participants),
        entries=format_entries(records),
    )
    return [
        {"role": "system", "content": templates["system"]},
        {"role": "user", "content": user_prompt},
    ]


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)
_JSON_BRACE_RE = re.compile(r"\{.*\}", re.DOTALL)


def extract_json(text: str) -> dict[str, Any]:
    """Extract a JSON object from LLM response text.

    Handles JSON wrapped in markdown code fences or surrounded by
    explanation text.

    Raises:
        EngineResponseError: If no JSON object can be extracted.
    """
    text = text.strip()

    try:
        result = json.loads(text)
        if isinstance(result, dict):
            return result
    except json.JSONDecodeError:
        pass

    fence_match = _JSON_FENCE_RE.search(text)
    if fence_match:
        try:
            result = json.loads(fence_match.group(1).strip())
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    brace_match = _JSON_BRACE_RE.search(text)
    if brace_match:
        try:
            result = json.loads(brace_match.group(0))
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    raise EngineResponseError(f"Could not extract JSON from response: {text[:200]}")


def _response_text(response: Any) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise EngineResponseError("Malformed completion response") from exc
    if not isinstance(content, str) or not content.strip():
        raise EngineResponseError("No content in completion response")
    return content


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class LLMDigestEngine:
    """Digest engine backed by a litellm chat-completion model."""

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self._settings = settings or EngineSettings()

    async def analyze(
        self, records: Sequence[NormalizedRecord], credential: str
    ) -> EngineResult:
        """Analyze *records* with the configured model.

        Args:
            records: Canonical, chronologically sorted records.
            credential: API key passed through to the provider.

        Returns:
            ``EngineSuccess`` with a coerced digest, or ``EngineFailure``.
        """
        try:
            import litellm

            response = await litellm.acompletion(
                model=self._settings.model,
                messages=build_messages(records),
                api_key=credential,
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
                response_format={"type": "json_object"},
            )
            payload = extract_json(_response_text(response))
        except EngineError as exc:
            return EngineFailure(error=exc)
        except Exception as exc:
            error = EngineError(f"{type(exc).__name__}: {exc}")
            error.__cause__ = exc
            return EngineFailure(error=error)

        logger.info(
            "llm_digest_ok",
            model=self._settings.model,
            entries=len(records),
        )
        return EngineSuccess(digest=coerce_digest(payload))
