from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from dashboard.config import settings
from dashboard.core.clients.backend import BackendClient, BackendError
from dashboard.ingestion.orchestrator import UploadBatch, UploadOrchestrator
from dashboard.ingestion.payload import FilePayload
from dashboard.projects.workspace import (
    ChatMessage,
    LedgerPolicy,
    UploadInProgressError,
    Workspace,
    WorkspaceStore,
)
from dashboard.schemas.backend import ChatRecord, ProjectRecord, ProjectSettings, SettingsUpdate
from dashboard.schemas.source import Source

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _fail_soft(call: Awaitable[T], default: T, what: str, project_id: str) -> T:
    """Await `call`; on a backend error log it and return `default` instead."""
    try:
        return await call
    except BackendError as exc:
        logger.warning(
            "workspace.load.partial",
            extra={"project_id": project_id, "what": what, "error": exc.message},
        )
        return default


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


async def list_projects(
    backend: BackendClient, token: str | None, query: str | None = None
) -> list[ProjectRecord]:
    """All projects for the caller, optionally filtered by a case-insensitive name substring."""
    projects = await backend.list_projects(token)
    if query:
        needle = query.lower()
        projects = [p for p in projects if needle in p.name.lower()]
    return projects


async def create_project(
    store: WorkspaceStore,
    backend: BackendClient,
    name: str,
    description: str,
    token: str | None,
) -> ProjectRecord:
    try:
        project = await backend.create_project(name.strip(), description.strip(), token)
    except BackendError as exc:
        logger.error("projects.create.failed", extra={"error": exc.message})
        store.notifier.error(exc.message)
        raise
    store.notifier.success(f'"{project.name}" has been created.')
    logger.info("projects.created", extra={"project_id": project.id})
    return project


async def delete_project(
    store: WorkspaceStore, backend: BackendClient, project_id: str, token: str | None
) -> None:
    try:
        await backend.delete_project(project_id, token)
    except BackendError as exc:
        logger.error("projects.delete.failed", extra={"project_id": project_id, "error": exc.message})
        store.notifier.error(exc.message)
        raise
    workspace = store.get(project_id)
    name = workspace.project.name if workspace and workspace.project else "Project"
    store.drop(project_id)
    store.notifier.success(f'"{name}" has been deleted.')
    logger.info("projects.deleted", extra={"project_id": project_id})


async def load_workspace(
    store: WorkspaceStore, backend: BackendClient, project_id: str, token: str | None
) -> Workspace:
    """Fetch project, chats, files and settings in parallel into the workspace.

    Only the project itself is required; chats, files and settings degrade to
    empty on failure. Settings fall back to the first embedded
    project_settings row.
    """
    project, chats, files, project_settings = await asyncio.gather(
        backend.get_project(project_id, token),
        _fail_soft(backend.list_chats(project_id, token), [], "chats", project_id),
        _fail_soft(backend.list_files(project_id, token), [], "files", project_id),
        _fail_soft(backend.get_settings(project_id, token), None, "settings", project_id),
    )

    workspace = store.get_or_create(project_id)
    workspace.project = project
    workspace.chats = list(chats)
    workspace.sources = [Source.from_document(doc) for doc in files]
    workspace.settings = project_settings or (
        project.project_settings[0] if project.project_settings else None
    )

    # Re-opened source may have moved on or vanished
    if workspace.cursor.source_id is not None:
        source = workspace.find_source(workspace.cursor.source_id)
        if source is None:
            workspace.cursor.close()

    logger.info(
        "workspace.load",
        extra={
            "project_id": project_id,
            "n_chats": len(workspace.chats),
            "n_sources": len(workspace.sources),
            "has_settings": workspace.settings is not None,
        },
    )
    return workspace


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def submit_uploads(
    workspace: Workspace,
    orchestrator: UploadOrchestrator,
    payloads: list[FilePayload],
    token: str | None,
    policy: LedgerPolicy | None = None,
) -> UploadBatch:
    """Start a batch for the workspace. Refused while the visible ledger is still active."""
    if workspace.uploads_active:
        raise UploadInProgressError("Uploads are still in progress for this project")

    batch = orchestrator.submit(
        workspace.project_id,
        payloads,
        token,
        on_source=workspace.add_source,
        notifier=workspace.notifier,
    )
    workspace.show_batch(batch.ledger, policy or settings.ledger_policy)
    return batch


async def add_url(
    workspace: Workspace, backend: BackendClient, url: str, token: str | None
) -> Source:
    try:
        doc = await backend.add_url(workspace.project_id, url.strip(), token)
    except BackendError as exc:
        logger.error(
            "sources.add_url.failed",
            extra={"project_id": workspace.project_id, "url": url, "error": exc.message},
        )
        workspace.notifier.error(exc.message)
        raise
    source = Source.from_document(doc)
    workspace.add_source(source)
    workspace.notifier.success("Website URL added successfully")
    return source


async def delete_source(
    workspace: Workspace, backend: BackendClient, source_id: str, token: str | None
) -> None:
    try:
        await backend.delete_file(workspace.project_id, source_id, token)
    except BackendError as exc:
        logger.error(
            "sources.delete.failed",
            extra={"project_id": workspace.project_id, "source_id": source_id, "error": exc.message},
        )
        workspace.notifier.error(exc.message)
        raise
    workspace.remove_source(source_id)
    workspace.notifier.success("Document deleted successfully")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


async def save_settings(
    workspace: Workspace, backend: BackendClient, update: SettingsUpdate, token: str | None
) -> ProjectSettings:
    workspace.check_settings_update(update)
    try:
        saved = await backend.update_settings(workspace.project_id, update, token)
    except BackendError as exc:
        logger.error(
            "settings.update.failed",
            extra={"project_id": workspace.project_id, "error": exc.message},
        )
        workspace.notifier.error(exc.message)
        raise
    workspace.settings = saved
    workspace.notifier.success("Settings updated successfully")
    return saved


# ---------------------------------------------------------------------------
# Chats
# ---------------------------------------------------------------------------


async def create_chat(
    workspace: Workspace, backend: BackendClient, title: str, token: str | None
) -> ChatRecord:
    try:
        chat = await backend.create_chat(workspace.project_id, title.strip(), token)
    except BackendError as exc:
        logger.error(
            "chats.create.failed",
            extra={"project_id": workspace.project_id, "error": exc.message},
        )
        workspace.notifier.error(exc.message)
        raise
    workspace.chats.insert(0, chat)
    workspace.notifier.success("Chat created successfully")
    return chat


async def delete_chat(
    store: WorkspaceStore, backend: BackendClient, chat_id: str, token: str | None
) -> None:
    workspace = store.workspace_for_chat(chat_id)
    notifier = workspace.notifier if workspace else store.notifier
    try:
        await backend.delete_chat(chat_id, token)
    except BackendError as exc:
        logger.error("chats.delete.failed", extra={"chat_id": chat_id, "error": exc.message})
        notifier.error(exc.message)
        raise
    if workspace is not None:
        workspace.chats = [c for c in workspace.chats if c.id != chat_id]
    store.drop_transcript(chat_id)
    notifier.success("Chat deleted successfully")


def send_message(store: WorkspaceStore, chat_id: str, content: str) -> ChatMessage:
    """Append a user message to the local transcript. Nothing is sent anywhere."""
    message = ChatMessage(role="user", content=content)
    store.append_message(chat_id, message)
    return message
