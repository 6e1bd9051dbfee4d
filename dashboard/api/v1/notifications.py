from __future__ import annotations

from fastapi import APIRouter, Depends

from dashboard.dependencies import get_store
from dashboard.projects.workspace import WorkspaceStore
from dashboard.schemas.notification import NotificationResponse

router = APIRouter()


@router.get("", response_model=list[NotificationResponse])
async def drain_notifications(
    store: WorkspaceStore = Depends(get_store),
) -> list[NotificationResponse]:
    """Toasts raised outside a project (project create/delete)."""
    return [
        NotificationResponse(level=n.level, message=n.message, created_at=n.created_at)
        for n in store.notifier.drain()
    ]
