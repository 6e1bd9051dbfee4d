from __future__ import annotations

from unittest.mock import AsyncMock

import httpx

from dashboard.core.clients.backend import BackendError
from dashboard.projects.workspace import WorkspaceStore
from dashboard.schemas.backend import ProjectRecord, ProjectSettings
from dashboard.schemas.source import Source

_CURRENT = {
    "embedding_model": "text-embedding-3-small",
    "rag_strategy": "basic",
    "agent_type": "simple",
    "chunks_per_search": 10,
    "final_context_size": 5,
    "similarity_threshold": 0.3,
    "number_of_queries": 5,
    "reranking_enabled": False,
    "reranking_model": "reranker-english-v3.0",
    "vector_weight": 0.7,
    "keyword_weight": 0.3,
}


def _load(store: WorkspaceStore, with_sources: bool) -> None:
    workspace = store.get_or_create("p1")
    workspace.project = ProjectRecord(id="p1", name="Research")
    workspace.settings = ProjectSettings(id="s1", project_id="p1", **_CURRENT)
    if with_sources:
        workspace.sources = [
            Source(id="d1", display_name="a.pdf", kind="file", processing_status="completed")
        ]


def _echo_backend(backend: AsyncMock) -> None:
    async def _update(project_id, update, token):
        return ProjectSettings(id="s1", project_id=project_id, **update.model_dump())

    backend.update_settings = AsyncMock(side_effect=_update)


async def test_get_settings_reports_lock(client: httpx.AsyncClient, store: WorkspaceStore) -> None:
    _load(store, with_sources=True)

    body = (await client.get("/api/v1/projects/p1/settings")).json()

    assert body["embedding_model_locked"] is True
    assert body["settings"]["embedding_model"] == "text-embedding-3-small"


async def test_embedding_model_locked_once_sources_exist(
    client: httpx.AsyncClient, backend: AsyncMock, store: WorkspaceStore
) -> None:
    _load(store, with_sources=True)
    _echo_backend(backend)

    response = await client.put(
        "/api/v1/projects/p1/settings",
        json={**_CURRENT, "embedding_model": "text-embedding-3-large"},
    )

    assert response.status_code == 409
    backend.update_settings.assert_not_awaited()
    assert store.get("p1").settings.embedding_model == "text-embedding-3-small"


async def test_other_fields_editable_when_locked(
    client: httpx.AsyncClient, backend: AsyncMock, store: WorkspaceStore
) -> None:
    _load(store, with_sources=True)
    _echo_backend(backend)

    response = await client.put(
        "/api/v1/projects/p1/settings", json={**_CURRENT, "rag_strategy": "hybrid"}
    )

    assert response.status_code == 200
    assert response.json()["settings"]["rag_strategy"] == "hybrid"
    assert store.get("p1").settings.rag_strategy == "hybrid"

    notes = (await client.get("/api/v1/projects/p1/notifications")).json()
    assert [n["message"] for n in notes] == ["Settings updated successfully"]


async def test_embedding_model_free_without_sources(
    client: httpx.AsyncClient, backend: AsyncMock, store: WorkspaceStore
) -> None:
    _load(store, with_sources=False)
    _echo_backend(backend)

    response = await client.put(
        "/api/v1/projects/p1/settings",
        json={**_CURRENT, "embedding_model": "text-embedding-3-large"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["settings"]["embedding_model"] == "text-embedding-3-large"
    assert body["embedding_model_locked"] is False


async def test_backend_rejection_keeps_previous_settings(
    client: httpx.AsyncClient, backend: AsyncMock, store: WorkspaceStore
) -> None:
    _load(store, with_sources=False)
    backend.update_settings = AsyncMock(side_effect=BackendError("Invalid weights", 422))

    response = await client.put(
        "/api/v1/projects/p1/settings", json={**_CURRENT, "vector_weight": 2.0}
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid weights"
    assert store.get("p1").settings.vector_weight == 0.7
