from __future__ import annotations

from fastapi import APIRouter

from dashboard.api.v1 import chats, notifications, projects, settings, sources

router = APIRouter()
router.include_router(projects.router, prefix="/projects", tags=["projects"])
router.include_router(sources.router, prefix="/projects", tags=["sources"])
router.include_router(settings.router, prefix="/projects", tags=["settings"])
router.include_router(chats.router, prefix="/chats", tags=["chats"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
