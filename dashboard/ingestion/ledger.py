from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from dashboard.config import settings
from dashboard.ingestion.payload import FilePayload

# Byte progress tops out here; only a confirmed upload reaches 100.
_TRANSFER_CEILING = 99.0


class TaskState(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.SUCCEEDED, TaskState.FAILED)


_ALLOWED: dict[TaskState, frozenset[TaskState]] = {
    TaskState.PENDING: frozenset({TaskState.UPLOADING, TaskState.FAILED}),
    TaskState.UPLOADING: frozenset({TaskState.SUCCEEDED, TaskState.FAILED}),
    TaskState.SUCCEEDED: frozenset(),
    TaskState.FAILED: frozenset(),
}


class InvalidTransition(RuntimeError):
    pass


@dataclass
class UploadTask:
    task_key: str
    payload: FilePayload
    batch_id: str
    progress: float = 0.0
    state: TaskState = TaskState.PENDING
    remote_document_id: str | None = None
    error_detail: str | None = None

    @property
    def filename(self) -> str:
        return self.payload.filename


class TaskLedger:
    """Per-batch collection of upload tasks keyed by an opaque task key.

    All mutations are single-key replacements made from the event loop, so no
    locking is needed; callers on OS threads must serialize access themselves.
    """

    def __init__(self, batch_id: str | None = None, progress_step: float | None = None) -> None:
        self.batch_id = batch_id or uuid.uuid4().hex
        self._progress_step = settings.progress_step if progress_step is None else progress_step
        self._tasks: dict[str, UploadTask] = {}

    def __iter__(self) -> Iterator[UploadTask]:
        return iter(list(self._tasks.values()))

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_key: object) -> bool:
        return task_key in self._tasks

    def get(self, task_key: str) -> UploadTask:
        try:
            return self._tasks[task_key]
        except KeyError:
            raise KeyError(f"Unknown upload task {task_key}") from None

    def add(self, payload: FilePayload) -> UploadTask:
        task = UploadTask(task_key=uuid.uuid4().hex, payload=payload, batch_id=self.batch_id)
        self._tasks[task.task_key] = task
        return task

    def adopt(self, task: UploadTask) -> None:
        """Show a task owned by another batch in this ledger (merge policy)."""
        self._tasks[task.task_key] = task

    def remove(self, task_key: str) -> UploadTask:
        """Dismiss a settled task. Active tasks cannot be removed."""
        task = self.get(task_key)
        if not task.state.is_terminal:
            raise InvalidTransition(f"Task {task_key} is still {task.state.value}")
        return self._tasks.pop(task_key)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(self, task: UploadTask, target: TaskState) -> None:
        if target not in _ALLOWED[task.state]:
            raise InvalidTransition(
                f"Task {task.task_key}: {task.state.value} -> {target.value} not allowed"
            )
        task.state = target

    def mark_uploading(self, task_key: str, remote_document_id: str) -> UploadTask:
        task = self.get(task_key)
        self._transition(task, TaskState.UPLOADING)
        task.remote_document_id = remote_document_id
        return task

    def record_progress(self, task_key: str, sent: int, total: int) -> bool:
        """Apply a byte-progress event. Returns True when the stored value changed.

        Events arriving outside UPLOADING are ignored; small deltas are
        coalesced so that every stored change is at least `progress_step`.
        """
        task = self.get(task_key)
        if task.state is not TaskState.UPLOADING:
            return False

        percent = 100.0 if total <= 0 else sent * 100.0 / total
        percent = min(max(percent, 0.0), _TRANSFER_CEILING)
        if percent <= task.progress:
            return False
        if percent - task.progress < self._progress_step and percent < _TRANSFER_CEILING:
            return False

        task.progress = percent
        return True

    def mark_succeeded(self, task_key: str) -> UploadTask:
        task = self.get(task_key)
        self._transition(task, TaskState.SUCCEEDED)
        task.progress = 100.0
        return task

    def mark_failed(self, task_key: str, detail: str) -> UploadTask:
        task = self.get(task_key)
        self._transition(task, TaskState.FAILED)
        task.error_detail = detail or "Upload failed"
        return task

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def any_active(self) -> bool:
        return any(not t.state.is_terminal for t in self._tasks.values())

    @property
    def all_terminal(self) -> bool:
        return not self.any_active

    def counts(self) -> dict[TaskState, int]:
        result = {state: 0 for state in TaskState}
        for task in self._tasks.values():
            result[task.state] += 1
        return result
