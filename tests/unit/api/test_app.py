"""Tests for FastAPI app endpoints and CORS handling."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from async_digest.api.app import LINKS_REQUIRED_MESSAGE, create_app
from async_digest.digest import Digest, ExecutiveSummary
from async_digest.engine.result import EngineSuccess
from async_digest.orchestrator import NO_ENTRIES_MESSAGE, NO_LINKS_MESSAGE

if TYPE_CHECKING:
    from collections.abc import Sequence

    from async_digest.config import Settings
    from async_digest.models import NormalizedRecord

CHAT_LINK = "https://acme.slack.com/archives/C04AB12CD/p1704593160000"


class _CannedEngine:
    async def analyze(
        self, records: Sequence[NormalizedRecord], credential: str
    ) -> EngineSuccess:
        return EngineSuccess(
            digest=Digest(
                executive_summary=ExecutiveSummary(what_was_discussed="canned")
            )
        )


@pytest.fixture()
def client(settings: Settings) -> TestClient:
    settings.api.cors_origins = ["http://localhost:3000"]
    return TestClient(create_app(settings, environ={}))


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_cors_headers(client: TestClient) -> None:
    resp = client.get("/health", headers={"Origin": "http://localhost:3000"})
    assert resp.headers.get("access-control-allow-origin") == "http://localhost:3000"


def test_cors_preflight(client: TestClient) -> None:
    resp = client.options(
        "/api/generate",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert resp.status_code == 200
    assert "POST" in resp.headers.get("access-control-allow-methods", "")


def test_processing_info_fallback(client: TestClient) -> None:
    resp = client.get("/api/processing-info")
    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "fallback"
    assert "OPENAI_API_KEY" in body["description"]


def test_processing_info_capable(settings: Settings) -> None:
    app = create_app(settings, environ={"OPENAI_API_KEY": "sk-real"})
    with TestClient(app) as client:
        assert client.get("/api/processing-info").json()["mode"] == "capable"


@pytest.mark.parametrize(
    "payload",
    [{}, {"links": "https://slack.com/x"}, {"links": None}, {"links": [1, 2]}],
)
def test_generate_requires_links_array(client: TestClient, payload: dict) -> None:
    resp = client.post("/api/generate", json=payload)
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == LINKS_REQUIRED_MESSAGE


def test_generate_blank_links(client: TestClient) -> None:
    resp = client.post("/api/generate", json={"links": ["", "   "]})
    assert resp.status_code == 400
    assert resp.json()["error"] == NO_LINKS_MESSAGE


def test_generate_unrecognized_links(client: TestClient) -> None:
    resp = client.post("/api/generate", json={"links": ["not-a-real-link"]})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == NO_ENTRIES_MESSAGE
    assert body["invalidUrls"] == ["not-a-real-link"]


def test_generate_fallback_digest(client: TestClient) -> None:
    resp = client.post("/api/generate", json={"links": [CHAT_LINK, "nope"]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["mode"] == "fallback"
    assert body["invalidUrls"] == ["nope"]
    digest = body["digest"]
    assert set(digest) >= {
        "executiveSummary",
        "timeline",
        "decisions",
        "actionItems",
        "openQuestions",
        "topicClusters",
        "disagreements",
        "repeatedFeedback",
    }
    assert set(digest["decisions"]) == {"decided", "pending", "blocked"}
    assert "status_code" not in body


def test_generate_capable_digest(settings: Settings) -> None:
    app = create_app(
        settings,
        engine=_CannedEngine(),
        environ={"OPENAI_API_KEY": "sk-real"},
    )
    with TestClient(app) as client:
        resp = client.post("/api/generate", json={"links": [CHAT_LINK]})

    body = resp.json()
    assert body["mode"] == "capable"
    assert body["digest"]["executiveSummary"]["whatWasDiscussed"] == "canned"


def test_processing_info_names_configured_variable(settings: Settings) -> None:
    custom = settings.model_copy(
        update={
            "engine": settings.engine.model_copy(
                update={"credential_env_var": "DIGEST_LLM_KEY"}
            )
        }
    )
    app = create_app(custom, environ={"OPENAI_API_KEY": "sk-real"})
    with TestClient(app) as client:
        body = client.get("/api/processing-info").json()

    assert body["mode"] == "fallback"
    assert "DIGEST_LLM_KEY" in body["description"]
