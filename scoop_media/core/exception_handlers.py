from __future__ import annotations

"""
JSON exception handlers.

Installed by `scoop_media.main.create_app`. Every error leaves the service as
`{"message": ..., "request_id": ...}` with a `no-store` cache policy, which is
the shape the mobile client's API layer already understands.
"""

from typing import Any, Dict

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from scoop_media.core.exceptions import AppException
from scoop_media.middleware.request_id import get_request_id

_NO_STORE = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _error(body: Dict[str, Any], status_code: int, headers: Dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers={**_NO_STORE, **(headers or {})})


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    body = exc.to_body(request_id=get_request_id(request) or None)
    if exc.status_code >= 500:
        logger.error("[media] {} {} failed: {}", request.method, request.url.path, exc.message)
    return _error(body, exc.status_code, exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    message = "Not found" if exc.status_code == 404 else (exc.detail if isinstance(exc.detail, str) else str(exc.detail))
    body = {"message": message, "request_id": get_request_id(request) or "N/A"}
    return _error(body, exc.status_code, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    body = {
        "message": "Invalid request body",
        "request_id": get_request_id(request) or "N/A",
        "details": exc.errors(),
    }
    return _error(body, status.HTTP_400_BAD_REQUEST)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    # Hide internals; the stack trace goes to the log only.
    logger.opt(exception=exc).error("[media] unhandled error on {} {}", request.method, request.url.path)
    body = {"message": "Internal server error", "request_id": get_request_id(request) or "N/A"}
    return _error(body, status.HTTP_500_INTERNAL_SERVER_ERROR)


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
]
