from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from dashboard.core.notifications import Notifier
from dashboard.ingestion.ledger import TaskLedger
from dashboard.ingestion.stages import TimelineCursor
from dashboard.schemas.backend import ChatRecord, ProjectRecord, ProjectSettings, SettingsUpdate
from dashboard.schemas.source import Source

logger = logging.getLogger(__name__)

LedgerPolicy = Literal["replace", "merge"]


class SettingsLockedError(Exception):
    """Embedding model change attempted on a project that already has sources."""


class UploadInProgressError(Exception):
    """A new batch was submitted while the visible ledger still has active tasks."""


@dataclass
class ChatMessage:
    role: Literal["user", "assistant"]
    content: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Workspace:
    """Everything the dashboard holds in memory for one open project."""

    project_id: str
    project: ProjectRecord | None = None
    settings: ProjectSettings | None = None
    sources: list[Source] = field(default_factory=list)
    chats: list[ChatRecord] = field(default_factory=list)
    uploads: TaskLedger = field(default_factory=TaskLedger)
    notifier: Notifier = field(default_factory=Notifier)
    cursor: TimelineCursor = field(default_factory=TimelineCursor)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def find_source(self, source_id: str) -> Source | None:
        return next((s for s in self.sources if s.id == source_id), None)

    def add_source(self, source: Source) -> None:
        """Append a source, or replace the entry that already has its id."""
        for i, existing in enumerate(self.sources):
            if existing.id == source.id:
                self.sources[i] = source
                return
        self.sources.append(source)

    def remove_source(self, source_id: str) -> Source | None:
        source = self.find_source(source_id)
        if source is None:
            return None
        self.sources = [s for s in self.sources if s.id != source_id]
        if self.cursor.source_id == source_id:
            self.cursor.close()
        return source

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    @property
    def uploads_active(self) -> bool:
        return self.uploads.any_active

    def show_batch(self, ledger: TaskLedger, policy: LedgerPolicy) -> None:
        """Make a new batch visible.

        replace: the batch's ledger becomes the visible one; earlier entries
            disappear from view (their tasks keep running and still append
            sources).
        merge: the batch's tasks are added next to whatever is already shown.
        """
        if policy == "merge":
            for task in ledger:
                self.uploads.adopt(task)
        else:
            self.uploads = ledger
        logger.info(
            "workspace.show_batch",
            extra={"project_id": self.project_id, "batch_id": ledger.batch_id, "policy": policy},
        )

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def embedding_model_locked(self) -> bool:
        return bool(self.sources)

    def check_settings_update(self, update: SettingsUpdate) -> None:
        if not self.embedding_model_locked:
            return
        # Current model unknown (settings failed to load): nothing to compare against
        if self.settings is None:
            raise SettingsLockedError(
                "Project settings are not loaded; reload the project before saving"
            )
        if update.embedding_model != self.settings.embedding_model:
            raise SettingsLockedError(
                "Embedding model cannot be changed once documents have been uploaded"
            )

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------

    def find_chat(self, chat_id: str) -> ChatRecord | None:
        return next((c for c in self.chats if c.id == chat_id), None)


class WorkspaceStore:
    """Process-local registry of open workspaces and chat transcripts."""

    def __init__(self) -> None:
        self._workspaces: dict[str, Workspace] = {}
        self._transcripts: dict[str, list[ChatMessage]] = {}
        self.notifier = Notifier()  # for actions outside any single project

    def get(self, project_id: str) -> Workspace | None:
        return self._workspaces.get(project_id)

    def get_or_create(self, project_id: str) -> Workspace:
        workspace = self._workspaces.get(project_id)
        if workspace is None:
            workspace = Workspace(project_id=project_id)
            self._workspaces[project_id] = workspace
        return workspace

    def drop(self, project_id: str) -> None:
        workspace = self._workspaces.pop(project_id, None)
        if workspace is not None:
            for chat in workspace.chats:
                self._transcripts.pop(chat.id, None)

    def workspace_for_chat(self, chat_id: str) -> Workspace | None:
        return next(
            (w for w in self._workspaces.values() if w.find_chat(chat_id) is not None), None
        )

    def transcript(self, chat_id: str) -> list[ChatMessage]:
        return list(self._transcripts.get(chat_id, []))

    def append_message(self, chat_id: str, message: ChatMessage) -> None:
        self._transcripts.setdefault(chat_id, []).append(message)

    def drop_transcript(self, chat_id: str) -> None:
        self._transcripts.pop(chat_id, None)
