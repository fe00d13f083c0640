# scoop_media/core/security.py
from __future__ import annotations

"""
Scoop Media • Caller Identity
=============================
- Resolves the caller from the `Authorization: Bearer <jwt>` header
- Verifies signature/audience/issuer when `JWT_SECRET_KEY` is configured
- Otherwise trusts the gateway authorizer and only reads the claims
- Exposes `request.state.user_id` for rate-limit keying

Claims mapping follows the user pool tokens: `sub` is the caller id,
`cognito:username` (or email) is the display username.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from loguru import logger

from scoop_media.core.config import settings
from scoop_media.core.exceptions import UnauthorizedError

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str = ""
    username: str = "user"


def decode_claims(token: str) -> Dict[str, Any]:
    """Decode a bearer token into its claims.

    Raises
    ------
    UnauthorizedError
        For malformed tokens or failed verification.
    """
    secret = settings.JWT_SECRET_KEY
    try:
        if secret is None:
            return jwt.get_unverified_claims(token)
        return jwt.decode(
            token,
            secret.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"verify_aud": bool(settings.JWT_AUDIENCE)},
        )
    except JWTError as exc:
        logger.info("[Auth] rejected bearer token: {}", exc)
        raise UnauthorizedError() from exc


def identity_from_claims(claims: Dict[str, Any]) -> Identity:
    sub = claims.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        raise UnauthorizedError()
    email = str(claims.get("email") or "").lower()
    username = claims.get("cognito:username") or claims.get("email") or sub
    return Identity(user_id=sub, email=email, username=str(username))


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Identity:
    """FastAPI dependency: the authenticated caller or 401."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    identity = identity_from_claims(decode_claims(credentials.credentials))
    request.state.user_id = identity.user_id
    logger.debug("[Auth] caller user:{}", identity.user_id[:8])
    return identity


__all__ = ["Identity", "decode_claims", "identity_from_claims", "get_current_identity"]
