from __future__ import annotations

from pydantic import BaseModel, Field

from dashboard.schemas.backend import ChatRecord, ProjectRecord, ProjectSettings
from dashboard.schemas.source import Source
from dashboard.schemas.upload import LedgerResponse


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""


class SettingsResponse(BaseModel):
    settings: ProjectSettings | None
    embedding_model_locked: bool


class WorkspaceResponse(BaseModel):
    project: ProjectRecord
    chats: list[ChatRecord]
    sources: list[Source]
    settings: ProjectSettings | None
    embedding_model_locked: bool
    uploads: LedgerResponse
