from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from dashboard.config import settings
from dashboard.schemas.backend import (
    ChatRecord,
    DocumentRecord,
    Envelope,
    ProjectRecord,
    ProjectSettings,
    SettingsUpdate,
    UploadUrlResponse,
)

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """A backend call failed. `message` is what the user should see."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_detail(response: httpx.Response) -> str:
    fallback = f"HTTP error! status: {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    detail = body.get("detail") if isinstance(body, dict) else None
    if not detail:
        return fallback
    return detail if isinstance(detail, str) else str(detail)


def _first(data: Any) -> Any:
    # Create/delete project endpoints answer with a one-element list
    if isinstance(data, list):
        return data[0] if data else None
    return data


class BackendClient:
    """Thin REST client for the document backend.

    Every call takes the caller's bearer token; the client itself holds no
    credentials. Responses are unwrapped from the {status, message, data}
    envelope and validated into schema models.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.request_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        token: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a JSON request and return the decoded body. Raises BackendError on failure."""
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        start = time.monotonic()
        try:
            response = await self._client.request(method, endpoint, headers=headers, json=json)
        except httpx.HTTPError as exc:
            logger.warning(
                "backend.request.error",
                extra={"method": method, "endpoint": endpoint, "error": str(exc)},
            )
            raise BackendError(f"Request failed: {exc}") from exc

        latency_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "backend.request",
            extra={
                "method": method,
                "endpoint": endpoint,
                "status_code": response.status_code,
                "latency_ms": latency_ms,
            },
        )

        if not response.is_success:
            raise BackendError(_error_detail(response), status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise BackendError("Backend returned a non-JSON response", response.status_code) from exc

    async def _data(self, method: str, endpoint: str, token: str | None, json: dict | None = None) -> Any:
        body = await self.request(method, endpoint, token, json)
        return body.get("data") if isinstance(body, dict) else None

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def list_projects(self, token: str | None) -> list[ProjectRecord]:
        body = await self.request("GET", "/api/projects", token)
        return Envelope[list[ProjectRecord]].model_validate(body).data

    async def get_project(self, project_id: str, token: str | None) -> ProjectRecord:
        body = await self.request("GET", f"/api/projects/{project_id}", token)
        return Envelope[ProjectRecord].model_validate(body).data

    async def create_project(self, name: str, description: str, token: str | None) -> ProjectRecord:
        data = await self._data(
            "POST", "/api/projects", token, {"name": name, "description": description}
        )
        record = _first(data)
        if record is None:
            raise BackendError("Backend returned no project")
        return ProjectRecord.model_validate(record)

    async def delete_project(self, project_id: str, token: str | None) -> None:
        await self.request("DELETE", f"/api/projects/{project_id}", token)

    # ------------------------------------------------------------------
    # Files and URLs
    # ------------------------------------------------------------------

    async def list_files(self, project_id: str, token: str | None) -> list[DocumentRecord]:
        body = await self.request("GET", f"/api/projects/{project_id}/files", token)
        return Envelope[list[DocumentRecord]].model_validate(body).data

    async def delete_file(self, project_id: str, file_id: str, token: str | None) -> None:
        await self.request("DELETE", f"/api/projects/{project_id}/files/{file_id}", token)

    async def request_upload_url(
        self,
        project_id: str,
        *,
        file_name: str,
        file_type: str,
        file_size: int,
        token: str | None,
    ) -> UploadUrlResponse:
        """Ask the backend for a presigned write location for one file."""
        body = await self.request(
            "POST",
            f"/api/projects/{project_id}/files/upload-url",
            token,
            {"file_name": file_name, "file_type": file_type, "file_size": file_size},
        )
        return UploadUrlResponse.model_validate(body)

    async def confirm_upload(self, project_id: str, s3_key: str, token: str | None) -> DocumentRecord:
        """Tell the backend the bytes landed; returns the row with its new processing_status."""
        body = await self.request(
            "POST", f"/api/projects/{project_id}/files/confirm", token, {"s3_key": s3_key}
        )
        return Envelope[DocumentRecord].model_validate(body).data

    async def add_url(self, project_id: str, url: str, token: str | None) -> DocumentRecord:
        body = await self.request("POST", f"/api/projects/{project_id}/urls", token, {"url": url})
        return Envelope[DocumentRecord].model_validate(body).data

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_settings(self, project_id: str, token: str | None) -> ProjectSettings | None:
        data = await self._data("GET", f"/api/projects/{project_id}/settings", token)
        return ProjectSettings.model_validate(data) if data else None

    async def update_settings(
        self, project_id: str, update: SettingsUpdate, token: str | None
    ) -> ProjectSettings:
        body = await self.request(
            "PUT", f"/api/projects/{project_id}/settings", token, update.model_dump()
        )
        return Envelope[ProjectSettings].model_validate(body).data

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------

    async def list_chats(self, project_id: str, token: str | None) -> list[ChatRecord]:
        body = await self.request("GET", f"/api/projects/{project_id}/chats", token)
        return Envelope[list[ChatRecord]].model_validate(body).data

    async def create_chat(self, project_id: str, title: str, token: str | None) -> ChatRecord:
        body = await self.request(
            "POST", "/api/chats", token, {"title": title, "project_id": project_id}
        )
        return Envelope[ChatRecord].model_validate(body).data

    async def delete_chat(self, chat_id: str, token: str | None) -> None:
        await self.request("DELETE", f"/api/chats/{chat_id}", token)
