from __future__ import annotations

from unittest.mock import AsyncMock

import httpx

from dashboard.projects.workspace import WorkspaceStore
from dashboard.schemas.backend import ChatRecord, ProjectRecord


def _load(store: WorkspaceStore) -> None:
    workspace = store.get_or_create("p1")
    workspace.project = ProjectRecord(id="p1", name="Research")
    workspace.chats = [ChatRecord(id="c1", title="Older", project_id="p1")]


async def test_create_chat_goes_first(
    client: httpx.AsyncClient, backend: AsyncMock, store: WorkspaceStore
) -> None:
    _load(store)
    backend.create_chat = AsyncMock(
        return_value=ChatRecord(id="c2", title="Summary", project_id="p1")
    )

    response = await client.post("/api/v1/chats", json={"title": " Summary ", "project_id": "p1"})

    assert response.status_code == 201
    assert response.json()["id"] == "c2"
    backend.create_chat.assert_awaited_once_with("p1", "Summary", "test-token")
    assert [c.id for c in store.get("p1").chats] == ["c2", "c1"]


async def test_create_chat_needs_loaded_project(client: httpx.AsyncClient) -> None:
    response = await client.post("/api/v1/chats", json={"title": "Hi", "project_id": "ghost"})
    assert response.status_code == 404


async def test_blank_title_rejected(client: httpx.AsyncClient, store: WorkspaceStore) -> None:
    _load(store)
    response = await client.post("/api/v1/chats", json={"title": "   ", "project_id": "p1"})
    assert response.status_code == 400


async def test_delete_chat_drops_transcript(
    client: httpx.AsyncClient, backend: AsyncMock, store: WorkspaceStore
) -> None:
    _load(store)
    backend.delete_chat = AsyncMock(return_value=None)
    await client.post("/api/v1/chats/c1/messages", json={"content": "hello"})

    response = await client.delete("/api/v1/chats/c1")

    assert response.status_code == 204
    assert store.get("p1").chats == []
    assert store.transcript("c1") == []
    assert (await client.get("/api/v1/chats/c1/messages")).status_code == 404
    notes = (await client.get("/api/v1/projects/p1/notifications")).json()
    assert [n["message"] for n in notes] == ["Chat deleted successfully"]


async def test_messages_are_echoed_locally(
    client: httpx.AsyncClient, backend: AsyncMock, store: WorkspaceStore
) -> None:
    _load(store)

    first = await client.post("/api/v1/chats/c1/messages", json={"content": "What is RAG?"})
    await client.post("/api/v1/chats/c1/messages", json={"content": "And reranking?"})

    assert first.status_code == 201
    assert first.json()["role"] == "user"
    transcript = (await client.get("/api/v1/chats/c1/messages")).json()
    assert [m["content"] for m in transcript] == ["What is RAG?", "And reranking?"]
    assert backend.mock_calls == []


async def test_unknown_chat_is_404_and_keeps_no_transcript(
    client: httpx.AsyncClient, store: WorkspaceStore
) -> None:
    _load(store)

    for i in range(3):
        response = await client.get(f"/api/v1/chats/nope-{i}/messages")
        assert response.status_code == 404
    posted = await client.post("/api/v1/chats/ghost/messages", json={"content": "hello?"})

    assert posted.status_code == 404
    assert posted.json()["detail"] == "Chat not found"
    assert store._transcripts == {}


async def test_deleted_chat_does_not_come_back(
    client: httpx.AsyncClient, backend: AsyncMock, store: WorkspaceStore
) -> None:
    _load(store)
    backend.delete_chat = AsyncMock(return_value=None)
    await client.post("/api/v1/chats/c1/messages", json={"content": "first"})
    await client.delete("/api/v1/chats/c1")

    response = await client.post("/api/v1/chats/c1/messages", json={"content": "again"})

    assert response.status_code == 404
    assert "c1" not in store._transcripts
