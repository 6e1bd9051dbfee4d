from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from dashboard.config import settings
from dashboard.core.clients.backend import BackendClient, BackendError
from dashboard.core.clients.storage import StorageClient, StorageError
from dashboard.core.notifications import Notifier
from dashboard.ingestion.ledger import TaskLedger, TaskState, UploadTask
from dashboard.ingestion.payload import FilePayload
from dashboard.schemas.source import Source

logger = logging.getLogger(__name__)

SourceSink = Callable[[Source], None]


@dataclass
class UploadBatch:
    """Handle on a submitted batch: its ledger plus the task driving it."""

    project_id: str
    ledger: TaskLedger
    runner: asyncio.Task[TaskLedger]

    @property
    def batch_id(self) -> str:
        return self.ledger.batch_id

    @property
    def done(self) -> bool:
        return self.runner.done()

    async def wait(self) -> TaskLedger:
        """Block until every task in the batch is terminal."""
        return await self.runner


class UploadOrchestrator:
    """Runs batches of files through the upload protocol.

    Per file, strictly in order:
      1. request a write location from the backend (assigns the document id)
      2. stream the bytes to that location, recording progress in the ledger
      3. confirm with the backend, which returns the row with its new status

    A batch is drained by at most `concurrency` workers. Each task settles on
    its own: failures mark only that task FAILED and never cancel siblings or
    other batches. There is no retry.
    """

    def __init__(
        self,
        backend: BackendClient,
        storage: StorageClient,
        *,
        concurrency: int | None = None,
    ) -> None:
        self._backend = backend
        self._storage = storage
        self._concurrency = max(1, concurrency or settings.upload_concurrency)
        self._inflight: set[asyncio.Task[TaskLedger]] = set()

    @property
    def inflight_batches(self) -> int:
        return len(self._inflight)

    def submit(
        self,
        project_id: str,
        files: Iterable[FilePayload],
        token: str | None,
        *,
        on_source: SourceSink | None = None,
        notifier: Notifier | None = None,
    ) -> UploadBatch:
        """Register the files as PENDING tasks and start the batch in the background."""
        payloads = list(files)
        if not payloads:
            raise ValueError("An upload batch needs at least one file")

        ledger = TaskLedger()
        for payload in payloads:
            ledger.add(payload)

        runner = asyncio.create_task(
            self._run(project_id, ledger, token, on_source, notifier),
            name=f"upload-batch-{ledger.batch_id}",
        )
        # Keep a strong reference until the batch settles
        self._inflight.add(runner)
        runner.add_done_callback(self._inflight.discard)

        return UploadBatch(project_id=project_id, ledger=ledger, runner=runner)

    async def run_batch(
        self,
        project_id: str,
        files: Iterable[FilePayload],
        token: str | None,
        *,
        on_source: SourceSink | None = None,
        notifier: Notifier | None = None,
    ) -> TaskLedger:
        """Submit and wait for the whole batch."""
        batch = self.submit(project_id, files, token, on_source=on_source, notifier=notifier)
        return await batch.wait()

    async def _run(
        self,
        project_id: str,
        ledger: TaskLedger,
        token: str | None,
        on_source: SourceSink | None,
        notifier: Notifier | None,
    ) -> TaskLedger:
        queue: asyncio.Queue[UploadTask] = asyncio.Queue()
        for task in ledger:
            if task.state is TaskState.PENDING:
                queue.put_nowait(task)

        n_workers = min(self._concurrency, queue.qsize())
        logger.info(
            "upload.batch.start",
            extra={
                "project_id": project_id,
                "batch_id": ledger.batch_id,
                "n_files": len(ledger),
                "workers": n_workers,
            },
        )

        async def _worker() -> None:
            while True:
                try:
                    task = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                await self._upload_one(project_id, ledger, task, token, on_source, notifier)

        await asyncio.gather(*(_worker() for _ in range(n_workers)))

        counts = ledger.counts()
        logger.info(
            "upload.batch.done",
            extra={
                "project_id": project_id,
                "batch_id": ledger.batch_id,
                "succeeded": counts[TaskState.SUCCEEDED],
                "failed": counts[TaskState.FAILED],
            },
        )
        return ledger

    async def _upload_one(
        self,
        project_id: str,
        ledger: TaskLedger,
        task: UploadTask,
        token: str | None,
        on_source: SourceSink | None,
        notifier: Notifier | None,
    ) -> None:
        payload = task.payload
        try:
            # 1. Write location
            issued = await self._backend.request_upload_url(
                project_id,
                file_name=payload.filename,
                file_type=payload.content_type,
                file_size=payload.size,
                token=token,
            )
            ledger.mark_uploading(task.task_key, issued.document.id)

            # 2. Bytes straight to the object store
            await self._storage.put_object(
                issued.data,
                payload,
                on_progress=functools.partial(ledger.record_progress, task.task_key),
            )

            # 3. Confirmation (backend moves the row to "queued")
            confirmed = await self._backend.confirm_upload(project_id, issued.s3_key, token)
        except (BackendError, StorageError) as exc:
            logger.warning(
                "upload.task.failed",
                extra={"task_key": task.task_key, "file_name": payload.filename, "error": exc.message},
            )
            self._fail(ledger, task, exc.message, notifier)
            return
        except Exception as exc:
            logger.exception("Upload of %s failed unexpectedly", payload.filename)
            self._fail(ledger, task, str(exc) or "Upload failed", notifier)
            return

        ledger.mark_succeeded(task.task_key)
        source = Source.from_document(confirmed, display_name=payload.filename)
        if on_source is not None:
            on_source(source)
        if notifier is not None:
            notifier.success(f"{payload.filename} uploaded successfully")

        logger.info(
            "upload.task.succeeded",
            extra={
                "task_key": task.task_key,
                "document_id": source.id,
                "processing_status": source.processing_status,
            },
        )

    @staticmethod
    def _fail(ledger: TaskLedger, task: UploadTask, detail: str, notifier: Notifier | None) -> None:
        ledger.mark_failed(task.task_key, detail)
        if notifier is not None:
            notifier.error(f"Failed to upload {task.filename}: {detail}")
