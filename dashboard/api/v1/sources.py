from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from dashboard.core.clients.backend import BackendClient
from dashboard.dependencies import get_backend, get_orchestrator, get_token, get_workspace
from dashboard.ingestion.ledger import InvalidTransition
from dashboard.ingestion.orchestrator import UploadOrchestrator
from dashboard.ingestion.payload import FilePayload
from dashboard.ingestion.stages import build_timeline, resolve_stage
from dashboard.projects import service
from dashboard.projects.workspace import Workspace
from dashboard.schemas.source import AddUrlRequest, Source
from dashboard.schemas.timeline import CursorUpdate, StageViewResponse, TimelineResponse
from dashboard.schemas.upload import LedgerResponse

router = APIRouter()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Source list
# ---------------------------------------------------------------------------


@router.get("/{project_id}/sources", response_model=list[Source])
async def list_sources(workspace: Workspace = Depends(get_workspace)) -> list[Source]:
    return workspace.sources


@router.post("/{project_id}/urls", response_model=Source, status_code=201)
async def add_url(
    body: AddUrlRequest,
    workspace: Workspace = Depends(get_workspace),
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
) -> Source:
    if not body.url.strip():
        raise HTTPException(status_code=400, detail="Please enter a valid URL")
    return await service.add_url(workspace, backend, body.url, token)


@router.delete("/{project_id}/sources/{source_id}", status_code=204, response_model=None)
async def delete_source(
    source_id: str,
    workspace: Workspace = Depends(get_workspace),
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
) -> None:
    if workspace.find_source(source_id) is None:
        raise HTTPException(status_code=404, detail="Source not found")
    await service.delete_source(workspace, backend, source_id, token)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


@router.post("/{project_id}/uploads", response_model=LedgerResponse, status_code=202)
async def upload_files(
    files: list[UploadFile] = File(...),
    workspace: Workspace = Depends(get_workspace),
    token: str = Depends(get_token),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
) -> LedgerResponse:
    """Start uploading a batch. Returns the batch ledger immediately; poll GET /uploads."""
    if not files:
        raise HTTPException(status_code=400, detail="No files selected")

    payloads: list[FilePayload] = []
    for upload in files:
        if not upload.filename:
            raise HTTPException(status_code=400, detail="Every file needs a name")
        # Request-scoped files are closed after the response; the batch outlives it
        data = await upload.read()
        payloads.append(FilePayload.from_bytes(upload.filename, data, upload.content_type))

    batch = service.submit_uploads(workspace, orchestrator, payloads, token)
    logger.info(
        "uploads.submitted",
        extra={"project_id": workspace.project_id, "batch_id": batch.batch_id, "n_files": len(payloads)},
    )
    return LedgerResponse.from_ledger(batch.ledger)


@router.get("/{project_id}/uploads", response_model=LedgerResponse)
async def get_uploads(workspace: Workspace = Depends(get_workspace)) -> LedgerResponse:
    return LedgerResponse.from_ledger(workspace.uploads)


@router.delete("/{project_id}/uploads/{task_key}", status_code=204, response_model=None)
async def dismiss_upload(
    task_key: str,
    workspace: Workspace = Depends(get_workspace),
) -> None:
    """Hide a settled task from the visible ledger."""
    if task_key not in workspace.uploads:
        raise HTTPException(status_code=404, detail="Upload not found")
    try:
        workspace.uploads.remove(task_key)
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Processing timeline
# ---------------------------------------------------------------------------


def _timeline(workspace: Workspace) -> TimelineResponse:
    source_id = workspace.cursor.source_id
    source = workspace.find_source(source_id) if source_id else None
    if source is None:
        raise HTTPException(status_code=404, detail="No source opened")

    views = build_timeline(source.processing_status, workspace.cursor.stage, source.kind)
    return TimelineResponse(
        source_id=source.id,
        source_name=source.display_name,
        processing_status=source.processing_status,
        current_stage=resolve_stage(source.processing_status),
        cursor=workspace.cursor.stage,
        stages=[
            StageViewResponse(
                stage=v.stage,
                title=v.title,
                description=v.description,
                status=v.status,
                selected=v.selected,
            )
            for v in views
        ],
    )


@router.post("/{project_id}/sources/{source_id}/open", response_model=TimelineResponse)
async def open_source(
    source_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> TimelineResponse:
    """Select a source; the cursor resets to the stage its status resolves to."""
    source = workspace.find_source(source_id)
    if source is None:
        raise HTTPException(status_code=404, detail="Source not found")
    workspace.cursor.open(source.id, source.processing_status)
    return _timeline(workspace)


@router.get("/{project_id}/timeline", response_model=TimelineResponse)
async def get_timeline(workspace: Workspace = Depends(get_workspace)) -> TimelineResponse:
    return _timeline(workspace)


@router.put("/{project_id}/timeline/cursor", response_model=TimelineResponse)
async def move_cursor(
    body: CursorUpdate,
    workspace: Workspace = Depends(get_workspace),
) -> TimelineResponse:
    """View another stage. Only the cursor moves; nothing is requested from the backend."""
    if workspace.cursor.source_id is None:
        raise HTTPException(status_code=404, detail="No source opened")
    if body.stage is not None:
        workspace.cursor.select(body.stage)
    elif body.offset is not None:
        workspace.cursor.step(body.offset)
    else:
        raise HTTPException(status_code=400, detail="Provide either stage or offset")
    return _timeline(workspace)
