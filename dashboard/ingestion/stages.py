from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class PipelineStage(str, Enum):
    """Canonical processing stages, in pipeline order."""

    UPLOAD = "upload"
    QUEUED = "queued"
    PARTITIONING = "partitioning"
    CHUNKING = "chunking"
    SUMMARISATION = "summarisation"
    VECTORIZATION = "vectorization"
    VIEW_CHUNKS = "view"

    @property
    def index(self) -> int:
        return _ORDER.index(self)


_ORDER: tuple[PipelineStage, ...] = tuple(PipelineStage)

# Unrecognised statuses land here instead of raising
FALLBACK_STAGE = PipelineStage.QUEUED

_STATUS_TO_STAGE: dict[str, PipelineStage] = {
    "": PipelineStage.UPLOAD,
    "uploading": PipelineStage.UPLOAD,
    "queued": PipelineStage.QUEUED,
    "processing": PipelineStage.PARTITIONING,
    "partitioning": PipelineStage.PARTITIONING,
    "chunking": PipelineStage.CHUNKING,
    "summarising": PipelineStage.SUMMARISATION,
    "summarization": PipelineStage.SUMMARISATION,
    "vectorizing": PipelineStage.VECTORIZATION,
    "vectorization": PipelineStage.VECTORIZATION,
    "completed": PipelineStage.VIEW_CHUNKS,
    "complete": PipelineStage.VIEW_CHUNKS,
}

_TERMINAL_STATUSES = frozenset({"completed", "complete"})

StageStatus = Literal["completed", "processing", "pending"]
SourceKind = Literal["file", "url"]


@dataclass(frozen=True)
class StageInfo:
    title: str
    description: str


_STAGE_INFO: dict[PipelineStage, StageInfo] = {
    PipelineStage.UPLOAD: StageInfo("Upload to S3", "Uploading document to cloud storage"),
    PipelineStage.QUEUED: StageInfo("Queued", "Document is queued for processing"),
    PipelineStage.PARTITIONING: StageInfo(
        "Partitioning", "Processing and extracting text, images, and tables"
    ),
    PipelineStage.CHUNKING: StageInfo("Chunking", "Breaking document into smaller chunks"),
    PipelineStage.SUMMARISATION: StageInfo(
        "Summarisation", "Generating summaries for document chunks"
    ),
    PipelineStage.VECTORIZATION: StageInfo(
        "Vectorization & Storage", "Creating embeddings and storing vectors"
    ),
    PipelineStage.VIEW_CHUNKS: StageInfo("View Chunks", "Browse and inspect document chunks"),
}

_URL_UPLOAD_INFO = StageInfo("Source Added", "Website URL added to project")


def _normalise(processing_status: str | None) -> str:
    return (processing_status or "").strip().lower()


def resolve_stage(processing_status: str | None) -> PipelineStage:
    """Map a backend processing_status onto a pipeline stage (case-insensitive)."""
    return _STATUS_TO_STAGE.get(_normalise(processing_status), FALLBACK_STAGE)


def is_terminal(processing_status: str | None) -> bool:
    return _normalise(processing_status) in _TERMINAL_STATUSES


def stage_info(stage: PipelineStage, kind: SourceKind = "file") -> StageInfo:
    if stage is PipelineStage.UPLOAD and kind == "url":
        return _URL_UPLOAD_INFO
    return _STAGE_INFO[stage]


def stage_status(
    stage: PipelineStage,
    processing_status: str | None,
    kind: SourceKind = "file",
) -> StageStatus:
    """Visual status of one stage relative to a source's current status.

    Before the current stage → completed, after → pending. The current stage
    is processing unless the status is terminal. A URL source has nothing to
    upload, so its first stage always reads completed.
    """
    if stage is PipelineStage.UPLOAD and kind == "url":
        return "completed"

    current = resolve_stage(processing_status).index
    i = stage.index
    if i < current:
        return "completed"
    if i > current:
        return "pending"
    return "completed" if is_terminal(processing_status) else "processing"


@dataclass(frozen=True)
class StageView:
    stage: PipelineStage
    title: str
    description: str
    status: StageStatus
    selected: bool


def build_timeline(
    processing_status: str | None,
    cursor: PipelineStage | None = None,
    kind: SourceKind = "file",
) -> list[StageView]:
    """All seven stages with their status; `cursor` marks the one being viewed."""
    selected = cursor or resolve_stage(processing_status)
    views: list[StageView] = []
    for stage in _ORDER:
        info = stage_info(stage, kind)
        views.append(
            StageView(
                stage=stage,
                title=info.title,
                description=info.description,
                status=stage_status(stage, processing_status, kind),
                selected=stage is selected,
            )
        )
    return views


class TimelineCursor:
    """Which stage the user is looking at for the currently opened source.

    Navigation only moves the cursor; the resolved stage is always recomputed
    from the source's status on read.
    """

    def __init__(self) -> None:
        self.source_id: str | None = None
        self.stage: PipelineStage = FALLBACK_STAGE

    def open(self, source_id: str, processing_status: str | None) -> PipelineStage:
        """Select a source; the cursor jumps to wherever its status points."""
        self.source_id = source_id
        self.stage = resolve_stage(processing_status)
        return self.stage

    def close(self) -> None:
        self.source_id = None
        self.stage = FALLBACK_STAGE

    def select(self, stage: PipelineStage) -> PipelineStage:
        self.stage = stage
        return self.stage

    def step(self, offset: int) -> PipelineStage:
        """Move by `offset` stages, clamped to the ends of the timeline."""
        i = min(max(self.stage.index + offset, 0), len(_ORDER) - 1)
        self.stage = _ORDER[i]
        return self.stage
