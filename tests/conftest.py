from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import ASGITransport

from dashboard.dependencies import get_backend, get_orchestrator, get_store
from dashboard.ingestion.orchestrator import UploadOrchestrator
from dashboard.main import app
from dashboard.projects.workspace import WorkspaceStore


@pytest.fixture
def store() -> WorkspaceStore:
    """Fresh in-memory workspace registry per test."""
    return WorkspaceStore()


@pytest.fixture
def backend() -> AsyncMock:
    """Stand-in for BackendClient; tests set return values per method."""
    return AsyncMock()


@pytest.fixture
def storage() -> AsyncMock:
    """Stand-in for StorageClient whose PUTs succeed immediately."""
    return AsyncMock()


@pytest.fixture
def orchestrator(backend: AsyncMock, storage: AsyncMock) -> UploadOrchestrator:
    return UploadOrchestrator(backend, storage, concurrency=4)


@pytest.fixture
async def client(
    store: WorkspaceStore,
    backend: AsyncMock,
    orchestrator: UploadOrchestrator,
) -> AsyncIterator[httpx.AsyncClient]:
    """httpx client bound to the app with store, backend and orchestrator overridden."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers={"Authorization": "Bearer test-token"},
        ) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
