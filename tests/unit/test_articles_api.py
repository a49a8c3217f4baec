"""Unit tests for the article API routes."""

from __future__ import annotations

import json
from collections.abc import Iterator
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from newsroom.config import settings
from newsroom.core.exceptions import (
    ArticleNotFoundError,
    ArticleValidationError,
    InvalidStatusTransitionError,
    PersistenceError,
)
from newsroom.dependencies import get_article_repository, get_orchestrator, get_redis, get_run_repository
from newsroom.main import create_app
from newsroom.services import article_status
from newsroom.services.run_registry import ActiveRuns

BASE_PATH = f"{settings.api_v1_prefix}/articles"


def _article(article_id: str = "article-1", *, status: str = "created", version: int = 1) -> SimpleNamespace:
    now = datetime.now(timezone.utc)
    return SimpleNamespace(
        id=article_id,
        org_id="org-1",
        slug="councilbudget",
        version=version,
        source_type="single",
        status=status,
        created_by="user-1",
        updated_by="user-1",
        input_sources=[{"text": "The council met.", "accredit": "Gazette"}],
        input_headline=None,
        preset_title="",
        preset_instructions="",
        preset_blobs=1,
        preset_length="400-550",
        summary=None,
        headline=None,
        blob=None,
        outline=None,
        content=None,
        rich_content=None,
        created_at=now,
        updated_at=now,
    )


class _FakeStore:
    def __init__(self, *articles: SimpleNamespace, unavailable: bool = False) -> None:
        self.articles = {article.id: article for article in articles}
        self.unavailable = unavailable
        self.created_payloads: list[Any] = []
        self.version_calls: list[tuple[str, dict[str, Any], str]] = []

    async def load_by_id(self, article_id: str) -> SimpleNamespace:
        if self.unavailable:
            raise PersistenceError("Article store operation failed: article_load")
        if article_id not in self.articles:
            raise ArticleNotFoundError(article_id)
        return self.articles[article_id]

    async def update_fields(
        self, article_id: str, fields: dict[str, Any], *, status: str | None = None
    ) -> SimpleNamespace:
        article = await self.load_by_id(article_id)
        if status is not None:
            if not article_status.can_transition(article.status, status):
                raise InvalidStatusTransitionError(article_id, article.status, status)
            article.status = status
        for name, value in fields.items():
            setattr(article, name, value)
        return article

    async def update_status(self, article_id: str, status: str) -> None:
        await self.update_fields(article_id, {}, status=status)

    async def create_article(self, payload: Any) -> SimpleNamespace:
        if payload.source_type == "single" and len(payload.sources) != 1:
            raise ArticleValidationError("A single-source article takes exactly one source")
        self.created_payloads.append(payload)
        return _article("article-new")

    async def create_version(self, parent_id: str, overrides: dict[str, Any], *, user_id: str) -> SimpleNamespace:
        await self.load_by_id(parent_id)
        self.version_calls.append((parent_id, overrides, user_id))
        return _article("article-v2", version=2)

    async def list_versions(self, org_id: str, slug: str) -> list[SimpleNamespace]:
        return sorted(self.articles.values(), key=lambda article: article.version, reverse=True)

    async def archive(self, article_id: str) -> SimpleNamespace:
        await self.update_status(article_id, article_status.ARCHIVED)
        return self.articles[article_id]

    async def unarchive(self, article_id: str) -> SimpleNamespace:
        await self.update_status(article_id, article_status.COMPLETED)
        return self.articles[article_id]


class _FakeRunStore:
    async def list_for_article(self, article_id: str, *, limit: int = 20) -> list[SimpleNamespace]:
        return [
            SimpleNamespace(
                id="run-1",
                article_id=article_id,
                user_id="user-1",
                source_type="single",
                length="400-550",
                status="failed",
                failed_step=3,
                error_message="HeadlineBlobsAgent: timed out after 300s",
                input_tokens_used=120,
                output_tokens_used=40,
                cost_usd=0.00096,
                started_at=datetime.now(timezone.utc),
                completed_at=datetime.now(timezone.utc),
            )
        ][:limit]


class _FakeOrchestrator:
    def __init__(self) -> None:
        self.runs: list[str] = []
        self.active_runs = ActiveRuns()

    async def run_pipeline(self, article_id: str, *, claimed: bool = False) -> None:
        self.runs.append(article_id)
        self.active_runs.release(article_id)


class _FakeRedis:
    def __init__(self, entries: list[dict[str, Any]]) -> None:
        self.entries = [json.dumps(entry) for entry in entries]

    async def lrange(self, _key: str, start: int, end: int) -> list[str]:
        return self.entries[start:] if end == -1 else self.entries[start : end + 1]


@pytest.fixture
def production_settings() -> Iterator[None]:
    original_environment = settings.environment
    settings.environment = "production"
    try:
        yield
    finally:
        settings.environment = original_environment


def _client(
    store: _FakeStore,
    *,
    orchestrator: _FakeOrchestrator | None = None,
    redis: _FakeRedis | None = None,
) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_article_repository] = lambda: store
    app.dependency_overrides[get_run_repository] = lambda: _FakeRunStore()
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator or _FakeOrchestrator()
    app.dependency_overrides[get_redis] = lambda: redis or _FakeRedis([])
    return TestClient(app)


def test_health_check(production_settings: None) -> None:
    with _client(_FakeStore()) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "version": settings.app_version}


def test_create_article_returns_created_row(production_settings: None) -> None:
    store = _FakeStore()
    payload = {
        "org_id": "org-1",
        "user_id": "user-1",
        "slug": "Council Budget!",
        "source_type": "single",
        "sources": [{"text": "The council met.", "accredit": "Gazette"}],
        "blobs": 2,
    }

    with _client(store) as client:
        response = client.post(BASE_PATH, json=payload)

    assert response.status_code == 201
    assert response.json()["id"] == "article-new"
    assert response.json()["status"] == "created"
    assert store.created_payloads[0].blobs == 2


def test_create_article_rejects_source_count_mismatch(production_settings: None) -> None:
    payload = {
        "org_id": "org-1",
        "user_id": "user-1",
        "slug": "budget",
        "source_type": "single",
        "sources": [{"text": "one"}, {"text": "two"}],
    }

    with _client(_FakeStore()) as client:
        response = client.post(BASE_PATH, json=payload)

    assert response.status_code == 422
    assert "exactly one source" in response.json()["detail"]


def test_create_article_rejects_out_of_range_blob_count(production_settings: None) -> None:
    payload = {
        "org_id": "org-1",
        "user_id": "user-1",
        "slug": "budget",
        "source_type": "single",
        "sources": [{"text": "one"}],
        "blobs": 7,
    }

    with _client(_FakeStore()) as client:
        response = client.post(BASE_PATH, json=payload)

    assert response.status_code == 422


def test_get_article_not_found(production_settings: None) -> None:
    with _client(_FakeStore()) as client:
        response = client.get(f"{BASE_PATH}/missing")

    assert response.status_code == 404


def test_status_reports_progress_marker(production_settings: None) -> None:
    with _client(_FakeStore(_article(status="43%"))) as client:
        response = client.get(f"{BASE_PATH}/article-1/status")

    assert response.status_code == 200
    assert response.json() == {
        "article_id": "article-1",
        "status": "43%",
        "progress_percent": 43,
        "is_terminal": False,
        "is_running": True,
    }


def test_run_returns_accepted_and_schedules_pipeline(production_settings: None) -> None:
    store = _FakeStore(_article(status="created"))
    orchestrator = _FakeOrchestrator()

    with _client(store, orchestrator=orchestrator) as client:
        response = client.post(f"{BASE_PATH}/article-1/run")

    assert response.status_code == 202
    assert response.json() == {"article_id": "article-1", "status": "started"}
    assert store.articles["article-1"].status == "started"
    assert orchestrator.runs == ["article-1"]


@pytest.mark.parametrize("current_status", ["completed", "archived"])
def test_run_conflicts_when_article_cannot_start(production_settings: None, current_status: str) -> None:
    orchestrator = _FakeOrchestrator()

    with _client(_FakeStore(_article(status=current_status)), orchestrator=orchestrator) as client:
        response = client.post(f"{BASE_PATH}/article-1/run")

    assert response.status_code == 409
    assert orchestrator.runs == []


def test_run_conflicts_while_a_run_is_live(production_settings: None) -> None:
    orchestrator = _FakeOrchestrator()
    orchestrator.active_runs.claim("article-1")

    with _client(_FakeStore(_article(status="57%")), orchestrator=orchestrator) as client:
        response = client.post(f"{BASE_PATH}/article-1/run")

    assert response.status_code == 409
    assert "already running" in response.json()["detail"]
    assert orchestrator.runs == []


def test_run_restarts_article_left_mid_run(production_settings: None) -> None:
    store = _FakeStore(_article(status="57%"))
    orchestrator = _FakeOrchestrator()

    with _client(store, orchestrator=orchestrator) as client:
        response = client.post(f"{BASE_PATH}/article-1/run")

    assert response.status_code == 202
    assert store.articles["article-1"].status == "started"
    assert orchestrator.runs == ["article-1"]


def test_run_unknown_article_is_not_found(production_settings: None) -> None:
    with _client(_FakeStore()) as client:
        response = client.post(f"{BASE_PATH}/missing/run")

    assert response.status_code == 404


def test_store_outage_maps_to_service_unavailable(production_settings: None) -> None:
    with _client(_FakeStore(unavailable=True)) as client:
        response = client.get(f"{BASE_PATH}/article-1")

    assert response.status_code == 503


def test_create_version_passes_only_provided_overrides(production_settings: None) -> None:
    store = _FakeStore(_article())

    with _client(store) as client:
        response = client.post(
            f"{BASE_PATH}/article-1/versions",
            json={"user_id": "user-2", "length": "700-850"},
        )

    assert response.status_code == 201
    assert response.json()["version"] == 2
    assert store.version_calls == [("article-1", {"preset_length": "700-850"}, "user-2")]


def test_create_version_rejects_identity_fields(production_settings: None) -> None:
    with _client(_FakeStore(_article())) as client:
        response = client.post(
            f"{BASE_PATH}/article-1/versions",
            json={"user_id": "user-2", "slug": "other"},
        )

    assert response.status_code == 422


def test_list_versions_is_not_shadowed_by_article_lookup(production_settings: None) -> None:
    store = _FakeStore(_article("article-1", version=1), _article("article-2", version=2))

    with _client(store) as client:
        response = client.get(f"{BASE_PATH}/versions", params={"org_id": "org-1", "slug": "councilbudget"})

    assert response.status_code == 200
    assert [item["version"] for item in response.json()] == [2, 1]


def test_archive_requires_completed_article(production_settings: None) -> None:
    with _client(_FakeStore(_article(status="29%"))) as client:
        response = client.post(f"{BASE_PATH}/article-1/archive")

    assert response.status_code == 409


def test_archive_and_unarchive_completed_article(production_settings: None) -> None:
    store = _FakeStore(_article(status="completed"))

    with _client(store) as client:
        archived = client.post(f"{BASE_PATH}/article-1/archive")
        restored = client.post(f"{BASE_PATH}/article-1/unarchive")

    assert archived.status_code == 200
    assert archived.json()["status"] == "archived"
    assert restored.status_code == 200
    assert restored.json()["status"] == "completed"


def test_list_runs_hides_traceback(production_settings: None) -> None:
    with _client(_FakeStore(_article())) as client:
        response = client.get(f"{BASE_PATH}/article-1/runs")

    assert response.status_code == 200
    run = response.json()[0]
    assert run["failed_step"] == 3
    assert run["input_tokens_used"] == 120
    assert "error_traceback" not in run


def test_run_log_returns_recorded_events(production_settings: None) -> None:
    redis = _FakeRedis(
        [
            {"timestamp": "2026-01-01T00:00:00+00:00", "event": "run_started", "article_id": "article-1"},
            {
                "timestamp": "2026-01-01T00:00:01+00:00",
                "event": "step_prompts",
                "article_id": "article-1",
                "step": 1,
                "prompts": {"system": "s", "user": "u", "assistant": None},
            },
        ]
    )

    with _client(_FakeStore(_article()), redis=redis) as client:
        response = client.get(f"{BASE_PATH}/article-1/run-log")

    assert response.status_code == 200
    events = response.json()
    assert [event["event"] for event in events] == ["run_started", "step_prompts"]
    assert events[1]["prompts"]["user"] == "u"
