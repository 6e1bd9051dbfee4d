"""End-to-end flow through the dashboard API with backend and storage mocked.

Open a project, upload two files, watch them land as queued sources, follow
one through the processing timeline, then check the embedding lock.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import httpx

from dashboard.schemas.backend import DocumentRecord, ProjectRecord, ProjectSettings, UploadUrlResponse

_SETTINGS = dict(
    embedding_model="text-embedding-3-small",
    rag_strategy="basic",
    agent_type="simple",
    chunks_per_search=10,
    final_context_size=5,
    similarity_threshold=0.3,
    number_of_queries=5,
    reranking_enabled=False,
    reranking_model="reranker-english-v3.0",
    vector_weight=0.7,
    keyword_weight=0.3,
)


async def test_project_upload_and_timeline_flow(
    client: httpx.AsyncClient, backend: AsyncMock, storage: AsyncMock
) -> None:
    docs = {"a.pdf": "doc-1", "b.pdf": "doc-2"}
    processed: dict[str, str] = {}

    async def _request_upload_url(project_id, *, file_name, file_type, file_size, token):
        return UploadUrlResponse(
            data=f"https://storage.test/{docs[file_name]}?sig=abc",
            s3_key=f"projects/{project_id}/{file_name}",
            document=DocumentRecord(id=docs[file_name], filename=file_name),
        )

    async def _confirm_upload(project_id, s3_key, token):
        name = s3_key.rsplit("/", 1)[-1]
        return DocumentRecord(id=docs[name], filename=name, processing_status="queued")

    async def _list_files(project_id, token):
        return [
            DocumentRecord(id=doc_id, filename=name, processing_status=processed.get(doc_id, "queued"))
            for name, doc_id in docs.items()
            if doc_id in processed
        ]

    backend.get_project = AsyncMock(return_value=ProjectRecord(id="p1", name="Research"))
    backend.list_chats = AsyncMock(return_value=[])
    backend.list_files = AsyncMock(side_effect=_list_files)
    backend.get_settings = AsyncMock(
        return_value=ProjectSettings(id="s1", project_id="p1", **_SETTINGS)
    )
    backend.request_upload_url = AsyncMock(side_effect=_request_upload_url)
    backend.confirm_upload = AsyncMock(side_effect=_confirm_upload)

    # 1. Open an empty project: the embedding model is still free to change
    opened = (await client.get("/api/v1/projects/p1")).json()
    assert opened["sources"] == []
    assert opened["embedding_model_locked"] is False

    # 2. Upload two files and wait for the batch to settle
    response = await client.post(
        "/api/v1/projects/p1/uploads",
        files=[
            ("files", ("a.pdf", b"A" * 2048, "application/pdf")),
            ("files", ("b.pdf", b"B" * 512, "application/pdf")),
        ],
    )
    assert response.status_code == 202
    for _ in range(200):
        ledger = (await client.get("/api/v1/projects/p1/uploads")).json()
        if not ledger["any_active"]:
            break
        await asyncio.sleep(0)
    assert {t["state"] for t in ledger["tasks"]} == {"succeeded"}
    assert storage.put_object.await_count == 2

    sources = (await client.get("/api/v1/projects/p1/sources")).json()
    assert sorted(s["display_name"] for s in sources) == ["a.pdf", "b.pdf"]

    # 3. Backend moves doc-1 along; reload picks up the new status
    processed.update({"doc-1": "vectorizing", "doc-2": "queued"})
    reloaded = (await client.get("/api/v1/projects/p1")).json()
    assert reloaded["embedding_model_locked"] is True

    timeline = (await client.post("/api/v1/projects/p1/sources/doc-1/open")).json()
    assert timeline["current_stage"] == "vectorization"
    statuses = [s["status"] for s in timeline["stages"]]
    assert statuses == [
        "completed",
        "completed",
        "completed",
        "completed",
        "completed",
        "processing",
        "pending",
    ]

    # 4. The model cannot change now that sources exist
    locked = await client.put(
        "/api/v1/projects/p1/settings",
        json={**_SETTINGS, "embedding_model": "text-embedding-3-large"},
    )
    assert locked.status_code == 409
    backend.update_settings.assert_not_awaited()

    notes = (await client.get("/api/v1/projects/p1/notifications")).json()
    assert sorted(n["message"] for n in notes) == [
        "a.pdf uploaded successfully",
        "b.pdf uploaded successfully",
    ]
