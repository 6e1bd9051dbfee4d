from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from dashboard.ingestion.ledger import TaskLedger, UploadTask


class UploadTaskResponse(BaseModel):
    task_key: str
    batch_id: str
    filename: str
    file_size: int
    progress: float
    state: Literal["pending", "uploading", "succeeded", "failed"]
    remote_document_id: str | None = None
    error_detail: str | None = None

    @classmethod
    def from_task(cls, task: UploadTask) -> UploadTaskResponse:
        return cls(
            task_key=task.task_key,
            batch_id=task.batch_id,
            filename=task.filename,
            file_size=task.payload.size,
            progress=round(task.progress, 1),
            state=task.state.value,
            remote_document_id=task.remote_document_id,
            error_detail=task.error_detail,
        )


class LedgerResponse(BaseModel):
    batch_id: str
    any_active: bool
    tasks: list[UploadTaskResponse]

    @classmethod
    def from_ledger(cls, ledger: TaskLedger) -> LedgerResponse:
        return cls(
            batch_id=ledger.batch_id,
            any_active=ledger.any_active,
            tasks=[UploadTaskResponse.from_task(t) for t in ledger],
        )
