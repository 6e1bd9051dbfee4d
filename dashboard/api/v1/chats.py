from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from dashboard.core.clients.backend import BackendClient
from dashboard.dependencies import get_backend, get_store, get_token
from dashboard.projects import service
from dashboard.projects.workspace import WorkspaceStore
from dashboard.schemas.backend import ChatRecord
from dashboard.schemas.chat import ChatCreate, MessageCreate, MessageResponse

router = APIRouter()


def _require_chat(store: WorkspaceStore, chat_id: str) -> None:
    if store.workspace_for_chat(chat_id) is None:
        raise HTTPException(status_code=404, detail="Chat not found")


@router.post("", response_model=ChatRecord, status_code=201)
async def create_chat(
    body: ChatCreate,
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
    store: WorkspaceStore = Depends(get_store),
) -> ChatRecord:
    if not body.title.strip():
        raise HTTPException(status_code=400, detail="Please enter a chat title")
    workspace = store.get(body.project_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Project not loaded")
    return await service.create_chat(workspace, backend, body.title, token)


@router.delete("/{chat_id}", status_code=204, response_model=None)
async def delete_chat(
    chat_id: str,
    token: str = Depends(get_token),
    backend: BackendClient = Depends(get_backend),
    store: WorkspaceStore = Depends(get_store),
) -> None:
    await service.delete_chat(store, backend, chat_id, token)


@router.get("/{chat_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    chat_id: str,
    store: WorkspaceStore = Depends(get_store),
) -> list[MessageResponse]:
    _require_chat(store, chat_id)
    return [
        MessageResponse(id=m.id, role=m.role, content=m.content, timestamp=m.timestamp)
        for m in store.transcript(chat_id)
    ]


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    chat_id: str,
    body: MessageCreate,
    store: WorkspaceStore = Depends(get_store),
) -> MessageResponse:
    """Local echo only: the message is kept in the transcript, no assistant reply is produced."""
    _require_chat(store, chat_id)
    message = service.send_message(store, chat_id, body.content)
    return MessageResponse(
        id=message.id, role=message.role, content=message.content, timestamp=message.timestamp
    )
