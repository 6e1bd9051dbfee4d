from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Backend API
    api_base_url: str = Field(default="http://localhost:8000")
    request_timeout: float = 30.0

    # Uploads
    upload_timeout: float = 300.0
    upload_chunk_size: int = 64 * 1024
    upload_concurrency: int = Field(default=4, ge=1)
    progress_step: float = 1.0  # minimum % delta between recorded progress updates
    ledger_policy: Literal["replace", "merge"] = "replace"

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    notification_backlog: int = 50

    # CORS (comma-separated origins, e.g. "http://localhost:3000,https://staging.example.com")
    cors_origins: list[str] = Field(default=["*"])

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors(cls, v: str | list) -> list[str]:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v


settings = Settings()
