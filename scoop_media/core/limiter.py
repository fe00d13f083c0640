from __future__ import annotations

"""
Scoop Media • HTTP Rate Limiting (SlowAPI)
==========================================

- Per-user keying when identity resolution sets `request.state.user_id`,
  per-client-IP otherwise (X-Forwarded-For / X-Real-IP / client.host).
- Only routes decorated with `rate_limit` are limited; `/healthz` is not.
- `RATE_LIMIT_TEST_BYPASS` disables limits for test runs without re-importing.

Environment
-----------
RATE_LIMIT_ENABLED           default: "true"
DEFAULT_RATE_LIMIT           default: "60/minute"
RATELIMIT_STORAGE_URI        default: "" (falls back to "memory://")
RATE_LIMIT_NAMESPACE         default: ""
RATE_LIMIT_TEST_BYPASS       default: ""

Usage
-----
    @router.post("/upload-url")
    @rate_limit("30/minute")
    async def upload_url(request: Request, ...): ...
"""

import os
from typing import Callable, List

from dotenv import load_dotenv
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_LIMIT = os.getenv("DEFAULT_RATE_LIMIT", "60/minute").strip()
STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "").strip() or "memory://"
NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "").strip()


def _flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _client_ip(request: Request) -> str:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return get_remote_address(request) or "unknown"


def _with_namespace(key: str) -> str:
    return f"{NAMESPACE}:{key}" if NAMESPACE else key


def get_rate_limit_key(request: Request) -> str:
    """`user:<id>` once the caller is known, else `ip:<addr>`."""
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return _with_namespace(f"user:{user_id}")
    return _with_namespace(f"ip:{_client_ip(request)}")


def limits_bypassed() -> bool:
    # Read per request so tests can toggle the flags with monkeypatch.
    return not _flag("RATE_LIMIT_ENABLED", "true") or _flag("RATE_LIMIT_TEST_BYPASS")


def _default_limits() -> List[str]:
    return [chunk.strip() for chunk in DEFAULT_LIMIT.split(",") if chunk.strip()]


limiter = Limiter(key_func=get_rate_limit_key, default_limits=[], storage_uri=STORAGE_URI)


def rate_limit(*limits: str) -> Callable:
    """
    Apply per-route limits (`DEFAULT_RATE_LIMIT` when none are given).

    The decorated endpoint must accept a `request: Request` parameter.
    """
    selected = list(limits) or _default_limits()

    def _apply(fn: Callable) -> Callable:
        for limit_value in reversed(selected):
            fn = limiter.limit(limit_value, exempt_when=limits_bypassed)(fn)
        return fn

    return _apply


def install_rate_limiter(app) -> None:
    """Attach the limiter, its 429 handler and the SlowAPI middleware."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    logger.info("[RateLimit] installed | default={} | storage={}", _default_limits(), STORAGE_URI)


__all__ = ["limiter", "rate_limit", "install_rate_limiter", "get_rate_limit_key", "limits_bypassed"]
