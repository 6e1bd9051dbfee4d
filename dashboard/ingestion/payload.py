from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path

_DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or _DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class FilePayload:
    """Reference to the bytes of one file in an upload batch.

    Holds either in-memory bytes or a filesystem path; the bytes are streamed
    in chunks at transfer time and never copied into the task ledger.
    """

    filename: str
    content_type: str
    size: int
    data: bytes | None = field(default=None, repr=False)
    path: Path | None = None

    @classmethod
    def from_bytes(cls, filename: str, data: bytes, content_type: str | None = None) -> FilePayload:
        return cls(
            filename=filename,
            content_type=content_type or guess_content_type(filename),
            size=len(data),
            data=data,
        )

    @classmethod
    def from_path(cls, path: Path | str, content_type: str | None = None) -> FilePayload:
        path = Path(path)
        return cls(
            filename=path.name,
            content_type=content_type or guess_content_type(path.name),
            size=path.stat().st_size,
            path=path,
        )

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        if self.data is not None:
            for offset in range(0, len(self.data), chunk_size):
                yield self.data[offset : offset + chunk_size]
            return

        if self.path is None:
            raise ValueError(f"{self.filename}: payload has neither data nor path")

        # Blocking file reads run in a worker thread
        fh = await asyncio.to_thread(self.path.open, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(fh.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            fh.close()
