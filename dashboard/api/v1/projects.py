from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from dashboard.core.clients.backend import BackendClient
from dashboard.dependencies import get_backend, get_store, get_token, get_workspace
from dashboard.projects import service
from dashboard.projects.workspace import Workspace, WorkspaceStore
from dashboard.schemas.backend import ProjectRecord
from dashboard.schemas.notification import NotificationResponse
from dashboard.schemas.project import ProjectCreate, WorkspaceResponse
from dashboard.schemas.upload import LedgerResponse

router = APIRouter()


def workspace_response(workspace: Workspace) -> WorkspaceResponse:
    if workspace.project is None:
        raise HTTPException(status_code=404, detail="Project not loaded")
    return WorkspaceResponse(
        project=workspace.project,
        chats=workspace.chats,
        sources=workspace.sources,
        settings=workspace.settings,
        embedding_model_locked=workspace.embedding_model_locked,
        uploads=LedgerResponse.from_ledger(workspace.uploads),
    )


@router.get("", response_model=list[ProjectRecord])
async def list_projects(
    q: str | None = Query(default=None, description="Case-insensitive name filter"),
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
) -> list[ProjectRecord]:
    return await service.list_projects(backend, token, q)


@router.post("", response_model=ProjectRecord, status_code=201)
async def create_project(
    body: ProjectCreate,
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
    store: WorkspaceStore = Depends(get_store),
) -> ProjectRecord:
    return await service.create_project(store, backend, body.name, body.description, token)


@router.get("/{project_id}", response_model=WorkspaceResponse)
async def open_project(
    project_id: str,
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
    store: WorkspaceStore = Depends(get_store),
) -> WorkspaceResponse:
    """Load (or reload) the project workspace: project, chats, sources, settings."""
    workspace = await service.load_workspace(store, backend, project_id, token)
    return workspace_response(workspace)


@router.delete("/{project_id}", status_code=204, response_model=None)
async def delete_project(
    project_id: str,
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
    store: WorkspaceStore = Depends(get_store),
) -> None:
    await service.delete_project(store, backend, project_id, token)


@router.get("/{project_id}/notifications", response_model=list[NotificationResponse])
async def drain_project_notifications(
    workspace: Workspace = Depends(get_workspace),
) -> list[NotificationResponse]:
    """Pending toasts for this project; each is returned once."""
    return [
        NotificationResponse(level=n.level, message=n.message, created_at=n.created_at)
        for n in workspace.notifier.drain()
    ]
