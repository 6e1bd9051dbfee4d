from __future__ import annotations

from datetime import datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Wrapper every backend response uses: {status, message, data}."""

    model_config = ConfigDict(extra="ignore")

    status: str = "success"
    message: str = ""
    data: T


class ProjectSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    project_id: str | None = None
    embedding_model: str
    rag_strategy: str
    agent_type: str
    chunks_per_search: int
    final_context_size: int
    similarity_threshold: float
    number_of_queries: int
    reranking_enabled: bool
    reranking_model: str
    vector_weight: float
    keyword_weight: float
    created_at: datetime | None = None


class SettingsUpdate(BaseModel):
    """Body of PUT /api/projects/{id}/settings. Every field is sent on save."""

    embedding_model: str
    rag_strategy: str
    agent_type: str
    chunks_per_search: int
    final_context_size: int
    similarity_threshold: float
    number_of_queries: int
    reranking_enabled: bool
    reranking_model: str
    vector_weight: float
    keyword_weight: float


class ProjectRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str | None = None
    clerk_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    project_settings: list[ProjectSettings] = Field(default_factory=list)


class ChatRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    project_id: str
    clerk_id: str | None = None
    created_at: datetime | None = None


class DocumentRecord(BaseModel):
    """A file or URL row as the backend returns it."""

    model_config = ConfigDict(extra="ignore")

    id: str
    filename: str | None = None
    source_type: Literal["file", "url"] = "file"
    source_url: str | None = None
    s3_key: str | None = None
    file_size: int | None = None
    file_type: str | None = None
    processing_status: str | None = None
    created_at: datetime | None = None


class UploadUrlResponse(BaseModel):
    """Write location issued by POST /files/upload-url.

    `data` is the presigned URL; `document` is the row the backend created
    for the pending upload.
    """

    model_config = ConfigDict(extra="ignore")

    data: str
    s3_key: str
    document: DocumentRecord
