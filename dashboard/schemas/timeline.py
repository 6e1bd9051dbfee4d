from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from dashboard.ingestion.stages import PipelineStage


class StageViewResponse(BaseModel):
    stage: PipelineStage
    title: str
    description: str
    status: Literal["completed", "processing", "pending"]
    selected: bool


class TimelineResponse(BaseModel):
    source_id: str
    source_name: str
    processing_status: str | None
    current_stage: PipelineStage  # where the status says the source is
    cursor: PipelineStage         # where the user is looking
    stages: list[StageViewResponse]


class CursorUpdate(BaseModel):
    """Either jump to `stage` or move by `offset` stages."""

    stage: PipelineStage | None = None
    offset: int | None = None
