# scoop_media/main.py
from __future__ import annotations

"""
# Scoop Media API • Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the media transformation service.

## Design Goals
- Testable **app factory** (`create_app`) with an explicit lifespan.
- The storage client and transcoder are built once, in the lifespan, and
  handed to `MediaService`; nothing is lazily created on first request.
- Middleware order: request id → CORS → rate limits.
- Centralized exception handling with `{"message", "request_id"}` bodies.

## Probes
- `/healthz`: liveness (process up, no external checks).
- `/metrics`: Prometheus exposition.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from scoop_media.core import logger as _logsetup  # noqa: F401  (configures loguru on import)
from scoop_media.api.v1.routers import router as api_router
from scoop_media.core.config import Settings, settings
from scoop_media.core.exception_handlers import (
    app_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from scoop_media.core.exceptions import AppException
from scoop_media.core.limiter import install_rate_limiter
from scoop_media.media.transcoder import FFmpegTranscoder
from scoop_media.middleware.request_id import RequestIDMiddleware
from scoop_media.security_headers import configure_cors
from scoop_media.services.media_service import MediaService
from scoop_media.utils.aws import S3Client


def build_media_service(cfg: Settings = settings) -> MediaService:
    """Wire the service from configuration (no bucket → storage is None)."""
    storage = S3Client.from_settings(cfg) if cfg.media_configured else None
    if storage is None:
        logger.warning("MEDIA_BUCKET not set; media routes will answer 501")
    transcoder = FFmpegTranscoder(
        cfg.FFMPEG_PATH,
        timeout_seconds=cfg.MEDIA_TRANSCODE_TIMEOUT_SECONDS,
        max_buffer_bytes=cfg.MEDIA_TRANSCODE_MAX_BUFFER_BYTES,
    )
    return MediaService(
        storage,
        transcoder,
        presign_ttl_seconds=cfg.MEDIA_PRESIGN_TTL_SECONDS,
        reencode_threshold_mbps=cfg.MEDIA_REENCODE_THRESHOLD_MBPS,
        tmp_dir=cfg.MEDIA_TMP_DIR,
        ownership_mode=cfg.MEDIA_OWNERSHIP_MODE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the media service unless one was injected, then serve."""
    logger.info("{} {} starting up ({})", settings.PROJECT_NAME, settings.VERSION, settings.ENV)
    if getattr(app.state, "media_service", None) is None:
        app.state.media_service = build_media_service(settings)
    try:
        yield
    finally:
        logger.info("{} shutting down", settings.PROJECT_NAME)


def create_app(service: Optional[MediaService] = None) -> FastAPI:
    """
    Build and configure the FastAPI app.

    Args:
        service: pre-built `MediaService` (tests pass one wired with fakes).
            When omitted, the lifespan builds one from `settings`.
    """
    docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )
    app.state.media_service = service

    # ── Middlewares (last added runs first) ─────────────────────────────────
    install_rate_limiter(app)
    configure_cors(app)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    app.include_router(api_router)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe."""
        return {"ok": True}

    @app.get("/metrics", tags=["meta"], include_in_schema=False)
    async def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
