from __future__ import annotations

from fastapi import APIRouter, Depends

from dashboard.core.clients.backend import BackendClient
from dashboard.dependencies import get_backend, get_token, get_workspace
from dashboard.projects import service
from dashboard.projects.workspace import Workspace
from dashboard.schemas.backend import SettingsUpdate
from dashboard.schemas.project import SettingsResponse

router = APIRouter()


@router.get("/{project_id}/settings", response_model=SettingsResponse)
async def get_settings(workspace: Workspace = Depends(get_workspace)) -> SettingsResponse:
    return SettingsResponse(
        settings=workspace.settings,
        embedding_model_locked=workspace.embedding_model_locked,
    )


@router.put("/{project_id}/settings", response_model=SettingsResponse)
async def update_settings(
    body: SettingsUpdate,
    workspace: Workspace = Depends(get_workspace),
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
) -> SettingsResponse:
    """Save the full settings object. 409 if it changes a locked embedding model."""
    saved = await service.save_settings(workspace, backend, body, token)
    return SettingsResponse(settings=saved, embedding_model_locked=workspace.embedding_model_locked)
