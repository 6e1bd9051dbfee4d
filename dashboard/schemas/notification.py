from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    level: Literal["success", "error", "info"]
    message: str
    created_at: datetime
