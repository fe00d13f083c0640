from __future__ import annotations

"""
Scoop Media • S3 Key Layout
===========================

Documented key layout (single private bucket):

    s3://{bucket}/
      uploads/{owner_id}/{epoch_ms}_{rand8}.{ext}
      uploads/{owner_id}/{epoch_ms}_{rand8}_processed.{ext}
      avatars/{owner_id}/{epoch_ms}.{ext}

Rules
-----
- The owner segment is always the caller id that requested the upload URL;
  keys are built server-side and never accepted from clients at issue time.
- Avatars carry no random suffix: two writes in the same millisecond for the
  same user overwrite each other, which is acceptable for avatars.
- A processed key is derived by inserting `_processed` before the final
  extension. The pipeline derives it exactly once per run.
"""

import re
import secrets
import time
from typing import Optional

NAMESPACE_UPLOADS = "uploads"
NAMESPACE_AVATARS = "avatars"
PROCESSED_SUFFIX = "_processed"
DEFAULT_CONTENT_TYPE = "image/jpeg"
PROCESSED_CONTENT_TYPE = "video/mp4"

_CONTENT_TYPE_RE = re.compile(r"^[\w.+-]+/[\w.+-]+(\s*;.*)?$")
_FINAL_EXT_RE = re.compile(r"(\.[^.]+)$")


def normalize_content_type(content_type: object) -> str:
    """Return a usable MIME type, defaulting to `image/jpeg` when absent or malformed."""
    if not isinstance(content_type, str):
        return DEFAULT_CONTENT_TYPE
    ct = content_type.strip()
    if not ct or not _CONTENT_TYPE_RE.match(ct):
        return DEFAULT_CONTENT_TYPE
    return ct


def extension_for(content_type: str, *, allow_video: bool = True) -> str:
    """
    Map a content type to a file extension.

    `video/*` → `mp4` (only when `allow_video`), anything containing `png` →
    `png`, everything else → `jpg`. Total over all strings.
    """
    ct = (content_type or "").lower()
    if allow_video and ct.startswith("video/"):
        return "mp4"
    if "png" in ct:
        return "png"
    return "jpg"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def build_upload_key(
    owner_id: str,
    content_type: str,
    *,
    now_ms: Optional[int] = None,
    token: Optional[str] = None,
) -> str:
    """`uploads/{owner}/{epoch_ms}_{rand8}.{ext}`"""
    ts = _epoch_ms() if now_ms is None else now_ms
    rand = token or secrets.token_hex(4)
    return f"{NAMESPACE_UPLOADS}/{owner_id}/{ts}_{rand}.{extension_for(content_type)}"


def build_avatar_key(owner_id: str, content_type: str, *, now_ms: Optional[int] = None) -> str:
    """`avatars/{owner}/{epoch_ms}.{ext}` (image extensions only)"""
    ts = _epoch_ms() if now_ms is None else now_ms
    return f"{NAMESPACE_AVATARS}/{owner_id}/{ts}.{extension_for(content_type, allow_video=False)}"


def derive_processed_key(key: str) -> str:
    """
    Insert `_processed` immediately before the final extension.

    `uploads/u1/171_abcd.mp4` → `uploads/u1/171_abcd_processed.mp4`.
    A key with no extension is returned unchanged.
    """
    return _FINAL_EXT_RE.sub(lambda m: f"{PROCESSED_SUFFIX}{m.group(1)}", key, count=1)


def owner_segment(key: str) -> Optional[str]:
    """Return the second path segment (the owner id) or None."""
    parts = (key or "").lstrip("/").split("/")
    if len(parts) < 3 or not parts[1]:
        return None
    return parts[1]


__all__ = [
    "NAMESPACE_UPLOADS",
    "NAMESPACE_AVATARS",
    "PROCESSED_SUFFIX",
    "DEFAULT_CONTENT_TYPE",
    "PROCESSED_CONTENT_TYPE",
    "normalize_content_type",
    "extension_for",
    "build_upload_key",
    "build_avatar_key",
    "derive_processed_key",
    "owner_segment",
]
