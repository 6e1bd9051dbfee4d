from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable

import httpx

from dashboard.config import settings
from dashboard.ingestion.payload import FilePayload

logger = logging.getLogger(__name__)

# (bytes_sent, total_bytes)
ProgressCallback = Callable[[int, int], None]


class StorageError(Exception):
    """Byte transfer to the object store failed (network error, abort or non-2xx)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StorageClient:
    """PUTs raw file bytes to a presigned write location.

    Talks to the object store directly, never to the backend, so no bearer
    token is attached.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        chunk_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._chunk_size = chunk_size or settings.upload_chunk_size
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.upload_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def put_object(
        self,
        url: str,
        payload: FilePayload,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Stream `payload` to `url`, reporting progress after every chunk."""
        total = payload.size

        async def _body() -> AsyncIterator[bytes]:
            sent = 0
            async for chunk in payload.iter_chunks(self._chunk_size):
                yield chunk
                sent += len(chunk)
                if on_progress is not None:
                    on_progress(sent, total)

        # Explicit Content-Length keeps httpx from switching to chunked encoding,
        # which presigned PUT URLs reject.
        headers = {"Content-Type": payload.content_type, "Content-Length": str(total)}

        start = time.monotonic()
        try:
            response = await self._client.put(url, content=_body(), headers=headers)
        except httpx.HTTPError as exc:
            raise StorageError(f"Network error during upload: {exc}") from exc

        latency_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "storage.put_object",
            extra={
                "file_name": payload.filename,
                "bytes": total,
                "status_code": response.status_code,
                "latency_ms": latency_ms,
            },
        )

        if not response.is_success:
            raise StorageError(
                f"Upload failed with status {response.status_code}",
                status_code=response.status_code,
            )
