from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from dashboard.config import settings

logger = logging.getLogger(__name__)

Level = Literal["success", "error", "info"]


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """Transient user-facing messages (the dashboard's toasts).

    Oldest entries fall off once `maxlen` is reached; `drain()` hands the
    pending messages to the UI and clears them.
    """

    def __init__(self, maxlen: int | None = None) -> None:
        self._queue: deque[Notification] = deque(maxlen=maxlen or settings.notification_backlog)

    def __len__(self) -> int:
        return len(self._queue)

    def push(self, level: Level, message: str) -> Notification:
        note = Notification(level=level, message=message)
        self._queue.append(note)
        logger.debug("notification", extra={"level": level, "text": message})
        return note

    def success(self, message: str) -> Notification:
        return self.push("success", message)

    def error(self, message: str) -> Notification:
        return self.push("error", message)

    def info(self, message: str) -> Notification:
        return self.push("info", message)

    def drain(self) -> list[Notification]:
        notes = list(self._queue)
        self._queue.clear()
        return notes
