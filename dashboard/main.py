from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dashboard.api.v1.router import router as api_router
from dashboard.config import settings
from dashboard.core.clients.backend import BackendError
from dashboard.dependencies import backend_client, storage_client
from dashboard.projects.workspace import SettingsLockedError, UploadInProgressError


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[type-arg]
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info(
        "Starting ingestion dashboard",
        extra={"env": settings.app_env, "backend": settings.api_base_url},
    )
    yield
    await backend_client.aclose()
    await storage_client.aclose()
    logger.info("Shutting down ingestion dashboard")


app = FastAPI(
    title="Ingestion Dashboard API",
    version="1.0.0",
    description="Projects, sources, uploads and processing timelines for the document backend",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    # Client errors pass through; anything else is the upstream's fault
    status_code = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else 502
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.exception_handler(SettingsLockedError)
async def settings_locked_handler(request: Request, exc: SettingsLockedError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(UploadInProgressError)
async def upload_in_progress_handler(request: Request, exc: UploadInProgressError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


app.include_router(api_router, prefix="/api/v1")


@app.get("/api/v1/health", tags=["health"])
async def health() -> dict[str, Any]:
    return {"status": "ok", "env": settings.app_env}
