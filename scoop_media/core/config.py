# scoop_media/core/config.py
from __future__ import annotations

"""
# Scoop Media • Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; the media bucket is optional so imports never
  crash (operations report `NotConfigured` instead).
- Transcoder knobs (binary path, timeout, buffer bound, threshold) live here,
  not as literals in the pipeline.
- CSV → list helpers for the CORS allow-list.

## Usage
    from scoop_media.core.config import settings
"""

from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Storage:
        - `MEDIA_BUCKET` unset means the deployment has no backing storage;
          every media operation then signals `NotConfigured` (HTTP 501).

    Transcoding:
        - `FFMPEG_PATH` points at the binary shipped in the Lambda layer.
        - `MEDIA_TRANSCODE_TIMEOUT_SECONDS` mirrors the platform timeout.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "Scoop Media API"
    VERSION: str = "1.0.0"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Identity (JWT issued by the user pool) ────────────────
    # When no secret is configured, tokens are assumed to be verified by the
    # gateway authorizer and only their claims are read.
    JWT_SECRET_KEY: Optional[SecretStr] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None

    # ── Storage (S3) ──────────────────────────────────────────
    MEDIA_BUCKET: Optional[str] = None
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    AWS_SESSION_TOKEN: Optional[SecretStr] = None
    AWS_REGION: str = "us-east-1"
    AWS_S3_ENDPOINT_URL: Optional[str] = None
    MEDIA_PRESIGN_TTL_SECONDS: int = Field(300, ge=1, le=7 * 24 * 60 * 60)

    # ── Transcoding ───────────────────────────────────────────
    FFMPEG_PATH: str = "/opt/bin/ffmpeg"
    MEDIA_TRANSCODE_TIMEOUT_SECONDS: float = Field(60.0, gt=0)
    MEDIA_TRANSCODE_MAX_BUFFER_BYTES: int = Field(50 * 1024 * 1024, ge=1024)
    MEDIA_REENCODE_THRESHOLD_MBPS: float = Field(1.5, gt=0)
    MEDIA_TMP_DIR: Optional[Path] = None

    # ── Ownership policy ──────────────────────────────────────
    # "substring": caller id anywhere in the key (legacy clients rely on it)
    # "segment":   caller id must be the owner path segment
    MEDIA_OWNERSHIP_MODE: Literal["substring", "segment"] = "substring"

    # ── CORS ──────────────────────────────────────────────────
    FRONTEND_ORIGINS: Optional[str] = "https://app.scooterbooter.com,http://localhost:5173"

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("MEDIA_BUCKET", "AWS_S3_ENDPOINT_URL", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        s = (v or "").strip() if isinstance(v, str) else v
        return s or None

    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _normalize_frontend_csv(cls, v):
        return None if v is None else ",".join(_split_csv(str(v)))

    # ── Derived / convenience properties ─────────────────────
    @property
    def media_configured(self) -> bool:
        return bool(self.MEDIA_BUCKET)

    @property
    def frontend_origins_list(self) -> List[str]:
        return _split_csv(self.FRONTEND_ORIGINS)


# Singleton instance
settings = Settings()
