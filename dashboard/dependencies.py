from __future__ import annotations

from fastapi import Depends, Header, HTTPException

from dashboard.core.clients.backend import BackendClient
from dashboard.core.clients.storage import StorageClient
from dashboard.core.security import parse_bearer
from dashboard.ingestion.orchestrator import UploadOrchestrator
from dashboard.projects.workspace import Workspace, WorkspaceStore

backend_client = BackendClient()
storage_client = StorageClient()
orchestrator = UploadOrchestrator(backend_client, storage_client)
workspaces = WorkspaceStore()


def get_backend() -> BackendClient:
    return backend_client


def get_orchestrator() -> UploadOrchestrator:
    return orchestrator


def get_store() -> WorkspaceStore:
    return workspaces


async def get_token(
    authorization: str | None = Header(default=None),
) -> str:
    """Bearer token from the incoming request, forwarded as-is to the backend."""
    return parse_bearer(authorization)


async def get_workspace(
    project_id: str,
    store: WorkspaceStore = Depends(get_store),
) -> Workspace:
    """The open workspace for `project_id`; 404 until GET /projects/{id} has loaded it."""
    workspace = store.get(project_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Project not loaded")
    return workspace
