from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from dashboard.schemas.backend import DocumentRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Source(BaseModel):
    id: str
    display_name: str
    kind: Literal["file", "url"]
    processing_status: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_document(cls, doc: DocumentRecord, display_name: str | None = None) -> Source:
        """Build a Source from a backend row; created_at defaults to now when absent."""
        if display_name is None:
            if doc.source_type == "url":
                display_name = doc.source_url or doc.filename
            else:
                display_name = doc.filename or doc.source_url
        return cls(
            id=doc.id,
            display_name=display_name or "Untitled",
            kind=doc.source_type,
            processing_status=doc.processing_status,
            created_at=doc.created_at or _utcnow(),
        )


class AddUrlRequest(BaseModel):
    url: str = Field(min_length=1)
