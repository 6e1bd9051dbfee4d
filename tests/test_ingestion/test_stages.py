from __future__ import annotations

import pytest

from dashboard.ingestion.stages import (
    PipelineStage,
    TimelineCursor,
    build_timeline,
    is_terminal,
    resolve_stage,
    stage_status,
)

_MAPPING = [
    ("uploading", PipelineStage.UPLOAD),
    ("queued", PipelineStage.QUEUED),
    ("processing", PipelineStage.PARTITIONING),
    ("partitioning", PipelineStage.PARTITIONING),
    ("chunking", PipelineStage.CHUNKING),
    ("summarising", PipelineStage.SUMMARISATION),
    ("summarization", PipelineStage.SUMMARISATION),
    ("vectorizing", PipelineStage.VECTORIZATION),
    ("vectorization", PipelineStage.VECTORIZATION),
    ("completed", PipelineStage.VIEW_CHUNKS),
    ("complete", PipelineStage.VIEW_CHUNKS),
]


@pytest.mark.parametrize("status,expected", _MAPPING)
def test_resolve_stage_mapping(status: str, expected: PipelineStage) -> None:
    assert resolve_stage(status) is expected


@pytest.mark.parametrize("status,expected", _MAPPING)
def test_resolve_stage_ignores_case(status: str, expected: PipelineStage) -> None:
    assert resolve_stage(status.upper()) is expected
    assert resolve_stage(status.title()) is expected


@pytest.mark.parametrize("status", [None, ""])
def test_missing_status_is_upload(status: str | None) -> None:
    assert resolve_stage(status) is PipelineStage.UPLOAD


@pytest.mark.parametrize("status", ["failed", "indexing", "queued!", "12", "COMPLETED_WITH_ERRORS"])
def test_unknown_status_falls_back_to_queued(status: str) -> None:
    assert resolve_stage(status) is PipelineStage.QUEUED


def test_resolve_stage_is_idempotent() -> None:
    for status in ["Chunking", "weird", None]:
        assert resolve_stage(status) is resolve_stage(status)


def test_stage_order() -> None:
    assert [s.index for s in PipelineStage] == list(range(7))
    assert PipelineStage.UPLOAD.index == 0
    assert PipelineStage.VIEW_CHUNKS.index == 6


def test_is_terminal() -> None:
    assert is_terminal("Completed")
    assert is_terminal("complete")
    assert not is_terminal("vectorizing")
    assert not is_terminal(None)


def test_partitioning_timeline() -> None:
    statuses = [stage_status(stage, "partitioning") for stage in PipelineStage]
    assert statuses == [
        "completed",
        "completed",
        "processing",
        "pending",
        "pending",
        "pending",
        "pending",
    ]


def test_completed_source_has_no_processing_stage() -> None:
    statuses = [stage_status(stage, "completed") for stage in PipelineStage]
    assert statuses == ["completed"] * 7


def test_url_source_upload_stage_always_completed() -> None:
    assert stage_status(PipelineStage.UPLOAD, "uploading", kind="url") == "completed"
    assert stage_status(PipelineStage.UPLOAD, "uploading", kind="file") == "processing"


def test_build_timeline_defaults_cursor_to_current_stage() -> None:
    views = build_timeline("chunking")
    selected = [v.stage for v in views if v.selected]
    assert selected == [PipelineStage.CHUNKING]


def test_build_timeline_cursor_does_not_change_statuses() -> None:
    at_current = build_timeline("vectorizing")
    elsewhere = build_timeline("vectorizing", cursor=PipelineStage.CHUNKING)
    assert [v.status for v in at_current] == [v.status for v in elsewhere]
    assert [v.stage for v in elsewhere if v.selected] == [PipelineStage.CHUNKING]


def test_build_timeline_url_labels() -> None:
    views = build_timeline("queued", kind="url")
    assert views[0].title == "Source Added"
    assert build_timeline("queued")[0].title == "Upload to S3"


def test_cursor_open_resets_to_resolved_stage() -> None:
    cursor = TimelineCursor()
    cursor.open("doc-1", "vectorizing")
    cursor.select(PipelineStage.CHUNKING)
    assert cursor.stage is PipelineStage.CHUNKING

    cursor.open("doc-2", "queued")
    assert cursor.source_id == "doc-2"
    assert cursor.stage is PipelineStage.QUEUED


def test_cursor_step_is_clamped() -> None:
    cursor = TimelineCursor()
    cursor.open("doc-1", "uploading")
    assert cursor.step(-1) is PipelineStage.UPLOAD
    assert cursor.step(2) is PipelineStage.PARTITIONING
    assert cursor.step(10) is PipelineStage.VIEW_CHUNKS
