"""upload_files.py: Upload local files to a project through the upload orchestrator.

Usage:
    python scripts/upload_files.py <project_id> <file> [<file> ...]

Requires:
  - Backend reachable at API_BASE_URL (default http://localhost:8000)
  - DASHBOARD_TOKEN env var holding a valid bearer token
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from dashboard.core.clients.backend import BackendClient
from dashboard.core.clients.storage import StorageClient
from dashboard.ingestion.ledger import TaskState
from dashboard.ingestion.orchestrator import UploadOrchestrator
from dashboard.ingestion.payload import FilePayload
from dashboard.ingestion.stages import resolve_stage
from dashboard.schemas.source import Source

TOKEN = os.getenv("DASHBOARD_TOKEN", "")


async def main(project_id: str, paths: list[Path]) -> int:
    missing = [p for p in paths if not p.is_file()]
    if missing:
        for p in missing:
            print(f"  ✗ Not a file: {p}")
        return 1

    backend = BackendClient()
    storage = StorageClient()
    orchestrator = UploadOrchestrator(backend, storage)
    sources: list[Source] = []

    print(f"→ Uploading {len(paths)} file(s) to project {project_id} …")
    try:
        ledger = await orchestrator.run_batch(
            project_id,
            [FilePayload.from_path(p) for p in paths],
            TOKEN,
            on_source=sources.append,
        )
    finally:
        await backend.aclose()
        await storage.aclose()

    for task in ledger:
        if task.state is TaskState.SUCCEEDED:
            print(f"  ✓ {task.filename} document_id: {task.remote_document_id}")
        else:
            print(f"  ✗ {task.filename}: {task.error_detail}")

    for source in sources:
        print(f"    {source.display_name}: {source.processing_status} ({resolve_stage(source.processing_status).value})")

    counts = ledger.counts()
    print(f"\nDone: {counts[TaskState.SUCCEEDED]} succeeded, {counts[TaskState.FAILED]} failed")
    return 0 if counts[TaskState.FAILED] == 0 else 2


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    if not TOKEN:
        print("DASHBOARD_TOKEN is not set")
        sys.exit(1)
    sys.exit(asyncio.run(main(sys.argv[1], [Path(a) for a in sys.argv[2:]])))
