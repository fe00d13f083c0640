from __future__ import annotations

"""
CORS and response cache helpers.

The mobile client and the web app call the media routes cross-origin, so CORS
is always installed with an explicit allow-list (`FRONTEND_ORIGINS`). Every
media response is private to one caller and must never be cached.
"""

from typing import Iterable, List, Optional

from starlette.middleware.cors import CORSMiddleware

from scoop_media.core.config import settings

NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}

_DEFAULT_METHODS = ["GET", "OPTIONS", "POST", "DELETE"]
_DEFAULT_HEADERS = ["Authorization", "Content-Type", "X-Request-ID"]


def configure_cors(
    app,
    *,
    origins: Optional[List[str]] = None,
    allow_methods: Optional[Iterable[str]] = None,
    allow_headers: Optional[Iterable[str]] = None,
) -> None:
    """Install CORS restricted to the configured frontend origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if origins is not None else settings.frontend_origins_list,
        allow_credentials=True,
        allow_methods=list(allow_methods or _DEFAULT_METHODS),
        allow_headers=list(allow_headers or _DEFAULT_HEADERS),
        expose_headers=["X-Request-ID"],
        max_age=3600,
    )


__all__ = ["NO_STORE_HEADERS", "configure_cors"]
