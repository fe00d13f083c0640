# scoop_media/utils/aws.py
from __future__ import annotations

"""
🧊 Scoop Media • S3 Utilities
=============================

Thin boto3 wrapper used as the object storage gateway by the media service:

- presigned PUT for direct-from-device uploads (posts, avatars)
- streaming download of a source object into a local file
- server-side upload of a processed file
- single-object delete

🎯 Goals
--------
- Explicit construction at the process entry point (no lazy module client)
- Explicit timeouts + bounded retries
- Key normalization (no leading slash, no `..`)
- Zero secret leakage in logs

🔗 Contract
-----------
- Class: `S3Client`, `S3StorageError`
- Methods: `S3Client.presigned_put(...)`
           `S3Client.download_to(...)`
           `S3Client.upload_file(...)`
           `S3Client.delete(...)`

Every method takes an optional `bucket=` override; the default is the bucket
the client was built for.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import Any, Dict, Optional, Union

import boto3
from botocore.config import Config as BotoConfig
from pydantic import SecretStr

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# 🧱 Exceptions
# ─────────────────────────────────────────────────────────────────────────────

class S3StorageError(RuntimeError):
    """Raised when a storage operation fails (network, auth, policy, etc.)."""


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Key validation
# ─────────────────────────────────────────────────────────────────────────────

_KEY_ALLOWED_RE = re.compile(r"[A-Za-z0-9._\-/+=@() ]+")
_COPY_CHUNK_BYTES = 1024 * 1024


def _normalize_key(key: str) -> str:
    """
    Normalize and validate S3 object keys.

    Steps
    -----
    1) Coerce to str, strip whitespace
    2) Remove leading '/'
    3) Collapse '//' runs
    4) Reject path traversal ('..') and disallowed characters

    Raises
    ------
    S3StorageError
        If key is empty or contains unsafe characters.
    """
    k = str(key or "").strip().lstrip("/")
    k = re.sub(r"/{2,}", "/", k)
    if not k:
        raise S3StorageError("Invalid storage key: empty")
    if ".." in k:
        raise S3StorageError("Invalid storage key: path traversal detected")
    if not _KEY_ALLOWED_RE.fullmatch(k):
        raise S3StorageError("Invalid storage key: contains forbidden characters")
    return k


def _secret_value(v: Optional[Union[SecretStr, str]]) -> Optional[str]:
    if v is None:
        return None
    return v.get_secret_value() if isinstance(v, SecretStr) else str(v)


# ─────────────────────────────────────────────────────────────────────────────
# 📦 S3 Client
# ─────────────────────────────────────────────────────────────────────────────

class S3Client:
    """
    High-level S3 wrapper with safe defaults.

    Parameters
    ----------
    bucket : str
        Default bucket for every operation.
    region_name : str | None
        Region for the client.
    endpoint_url : str | None
        Custom S3-compatible endpoint (LocalStack/MinIO).
    access_key_id / secret_access_key / session_token
        Explicit credentials. When omitted the standard AWS credential chain
        applies (env, profile, Lambda execution role).
    client : botocore client | None
        Pre-built client (tests use a stubbed one).
    """

    def __init__(
        self,
        bucket: str,
        *,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[Union[SecretStr, str]] = None,
        session_token: Optional[Union[SecretStr, str]] = None,
        client: Any = None,
    ) -> None:
        if not bucket:
            raise S3StorageError("Media bucket not configured")
        self.bucket = bucket
        self.region = region_name

        if client is not None:
            self.client = client
        else:
            cfg = BotoConfig(
                signature_version="s3v4",
                retries={"max_attempts": 5, "mode": "standard"},
                connect_timeout=3,
                read_timeout=20,
                s3={"addressing_style": "virtual"},
            )
            client_kwargs: Dict[str, Any] = {"config": cfg}
            if region_name:
                client_kwargs["region_name"] = region_name
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            sk = _secret_value(secret_access_key)
            if access_key_id and sk:
                client_kwargs["aws_access_key_id"] = access_key_id
                client_kwargs["aws_secret_access_key"] = sk
                st = _secret_value(session_token)
                if st:
                    client_kwargs["aws_session_token"] = st
            try:
                self.client = boto3.client("s3", **client_kwargs)
            except Exception as e:  # pragma: no cover
                raise S3StorageError(f"Failed to create S3 client: {e}") from e

        self._repr = f"S3Client(bucket={self.bucket}, region={self.region}, endpoint={'yes' if endpoint_url else 'no'})"

    @classmethod
    def from_settings(cls, settings) -> "S3Client":
        """Build a client from the application settings object."""
        return cls(
            settings.MEDIA_BUCKET,
            region_name=settings.AWS_REGION,
            endpoint_url=settings.AWS_S3_ENDPOINT_URL,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            session_token=settings.AWS_SESSION_TOKEN,
        )

    # ────────────────────────────────────────────────────────────────────────
    # 🔐 Signed URL helpers
    # ────────────────────────────────────────────────────────────────────────

    def presigned_put(
        self,
        key: str,
        *,
        content_type: str,
        expires_in: int = 300,
        bucket: Optional[str] = None,
    ) -> str:
        """
        Generate a **presigned PUT** URL for direct-to-S3 uploads.

        The client must send the same `Content-Type` header it was signed for.

        Raises
        ------
        S3StorageError
            On signing failure or invalid key.
        """
        params: Dict[str, Any] = {
            "Bucket": bucket or self.bucket,
            "Key": _normalize_key(key),
            "ContentType": content_type,
        }
        try:
            return self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params=params,
                ExpiresIn=int(expires_in),
                HttpMethod="PUT",
            )
        except Exception as e:
            raise S3StorageError(f"Failed to create presigned PUT: {e}") from e

    # ────────────────────────────────────────────────────────────────────────
    # 🚚 Object transfer
    # ────────────────────────────────────────────────────────────────────────

    def download_to(self, key: str, path: Union[str, Path], *, bucket: Optional[str] = None) -> int:
        """
        Stream an object into a local file without buffering it in memory.

        Returns
        -------
        int
            Number of bytes written.
        """
        k = _normalize_key(key)
        try:
            resp = self.client.get_object(Bucket=bucket or self.bucket, Key=k)
            body = resp["Body"]
            try:
                with open(path, "wb") as fh:
                    shutil.copyfileobj(body, fh, _COPY_CHUNK_BYTES)
            finally:
                body.close()
        except Exception as e:
            raise S3StorageError(f"Failed to download object: {e}") from e
        return Path(path).stat().st_size

    def upload_file(
        self,
        key: str,
        path: Union[str, Path],
        *,
        content_type: str,
        bucket: Optional[str] = None,
    ) -> None:
        """Upload a local file as a single PUT."""
        k = _normalize_key(key)
        try:
            with open(path, "rb") as fh:
                self.client.put_object(Bucket=bucket or self.bucket, Key=k, Body=fh, ContentType=content_type)
        except Exception as e:
            raise S3StorageError(f"Failed to upload object: {e}") from e

    def delete(self, key: str, *, bucket: Optional[str] = None) -> bool:
        """
        Delete one object.

        Behavior
        --------
        - Returns True on successful request submission (S3 deletes are
          idempotent; a missing key is still a success).
        - Returns False on invalid keys or service errors (logged at WARNING).
        """
        try:
            k = _normalize_key(key)
            self.client.delete_object(Bucket=bucket or self.bucket, Key=k)
            return True
        except Exception as e:
            logger.warning("delete_object failed: %s", e)
            return False

    def __repr__(self) -> str:
        return self._repr


__all__ = ["S3Client", "S3StorageError"]
