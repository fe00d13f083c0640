from __future__ import annotations

"""
Scoop Media • Media Transformation Service
==========================================

Orchestrates the four media operations used by the mobile client:

- `issue_upload_url`  → presigned PUT for post media (`uploads/{caller}/...`)
- `issue_avatar_url`  → presigned PUT for avatars (`avatars/{caller}/...`)
- `process_video`     → trim (and maybe re-encode) an uploaded clip
- `delete_media`      → delete an object the caller owns

Video pipeline (`process_segment`)
----------------------------------
allocate temp paths → probe ffmpeg → download → decide → transcode → upload →
cleanup. Any failure after the probe falls back to the original key; the
caller always gets a usable asset. Temp files are removed on every exit path
by the `TempFileArena` context manager.

The service holds no per-request state and is safe to share across requests.
"""

import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger

from scoop_media.core.exceptions import (
    ForbiddenError,
    MissingFieldError,
    NotConfiguredError,
    StorageError,
)
from scoop_media.core.metrics import inc_delete, inc_presign, inc_transcode, observe_transcode_seconds
from scoop_media.media import keys
from scoop_media.media.compression import DEFAULT_THRESHOLD_MBPS, build_ffmpeg_args, choose_compression
from scoop_media.media.ownership import OwnershipMode, authorize
from scoop_media.media.temp_files import TempFileArena, TempRole
from scoop_media.media.transcoder import TranscodeFailure, Transcoder
from scoop_media.utils.aws import S3Client, S3StorageError


@dataclass(frozen=True)
class UploadTicket:
    url: str
    key: str


@dataclass(frozen=True)
class ProcessResult:
    key: str
    processed: bool


@dataclass(frozen=True)
class TranscodeRequest:
    bucket: str
    source_key: str
    start_seconds: float
    end_seconds: float

    @property
    def duration_seconds(self) -> float:
        return self.end_seconds - self.start_seconds


def _as_seconds(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            seconds = float(value)
        except ValueError:
            return None
    else:
        return None
    return seconds if math.isfinite(seconds) else None


class MediaService:
    """
    Media operations over an injected storage gateway and transcoder.

    `storage=None` means the deployment has no media bucket; every operation
    then raises `NotConfiguredError`.
    """

    def __init__(
        self,
        storage: Optional[S3Client],
        transcoder: Transcoder,
        *,
        presign_ttl_seconds: int = 300,
        reencode_threshold_mbps: float = DEFAULT_THRESHOLD_MBPS,
        tmp_dir: Optional[Union[str, Path]] = None,
        ownership_mode: Union[OwnershipMode, str] = OwnershipMode.SUBSTRING,
    ) -> None:
        self.storage = storage
        self.transcoder = transcoder
        self.presign_ttl_seconds = presign_ttl_seconds
        self.reencode_threshold_mbps = reencode_threshold_mbps
        self.tmp_dir = Path(tmp_dir) if tmp_dir else None
        self.ownership_mode = OwnershipMode(ownership_mode)

    # ────────────────────────────────────────────────────────────────────
    # Helpers
    # ────────────────────────────────────────────────────────────────────

    def _require_storage(self) -> S3Client:
        if self.storage is None:
            raise NotConfiguredError()
        return self.storage

    def _require_owner(self, caller_id: str, key: str) -> None:
        if not authorize(caller_id, key, mode=self.ownership_mode):
            logger.warning("[Media] caller {} denied for key {}", caller_id, key)
            raise ForbiddenError(user_id=caller_id)

    def _new_arena(self) -> TempFileArena:
        return TempFileArena(base_dir=self.tmp_dir) if self.tmp_dir else TempFileArena()

    def _presign(self, namespace: str, key: str, content_type: str) -> UploadTicket:
        storage = self._require_storage()
        try:
            url = storage.presigned_put(key, content_type=content_type, expires_in=self.presign_ttl_seconds)
        except S3StorageError:
            inc_presign(namespace, "error")
            raise
        inc_presign(namespace, "ok")
        return UploadTicket(url=url, key=key)

    # ────────────────────────────────────────────────────────────────────
    # Upload URLs
    # ────────────────────────────────────────────────────────────────────

    def issue_upload_url(self, caller_id: str, content_type: Any = None) -> UploadTicket:
        """Presigned PUT for post media; video types map to `.mp4`."""
        ct = keys.normalize_content_type(content_type)
        return self._presign(keys.NAMESPACE_UPLOADS, keys.build_upload_key(caller_id, ct), ct)

    def issue_avatar_url(self, caller_id: str, content_type: Any = None) -> UploadTicket:
        """Presigned PUT for an avatar image."""
        ct = keys.normalize_content_type(content_type)
        return self._presign(keys.NAMESPACE_AVATARS, keys.build_avatar_key(caller_id, ct), ct)

    # ────────────────────────────────────────────────────────────────────
    # Video processing
    # ────────────────────────────────────────────────────────────────────

    def process_video(self, caller_id: str, key: Any, start_time: Any, end_time: Any) -> ProcessResult:
        """
        Validate, authorize and run the pipeline for one clip.

        Raises `NotConfiguredError`, `MissingFieldError` or `ForbiddenError`;
        transcoding problems never surface here.
        """
        storage = self._require_storage()

        if not isinstance(key, str) or not key.strip() or start_time is None or end_time is None:
            raise MissingFieldError(message="Key, startTime, and endTime required")
        start = _as_seconds(start_time)
        end = _as_seconds(end_time)
        if start is None or end is None:
            raise MissingFieldError(message="startTime and endTime must be numbers")
        if start < 0 or start >= end:
            raise MissingFieldError(
                message="startTime must be >= 0 and less than endTime",
                details={"startTime": start, "endTime": end},
            )

        self._require_owner(caller_id, key)

        result_key = self.process_segment(storage.bucket, key, start, end)
        return ProcessResult(key=result_key, processed=result_key != key)

    def process_segment(self, bucket: str, key: str, start_seconds: float, end_seconds: float) -> str:
        """
        Trim `key` to `[start, end)` and upload the result next to it.

        Returns the processed key on success and the original key on any
        failure. Never raises for storage or transcoder errors.
        """
        storage = self._require_storage()
        request = TranscodeRequest(bucket=bucket, source_key=key, start_seconds=start_seconds, end_seconds=end_seconds)
        logger.info("[VideoProcess] Processing video: {}", key)

        with self._new_arena() as arena:
            source = arena.allocate(TempRole.INPUT)
            output = arena.allocate(TempRole.OUTPUT)

            if not self.transcoder.probe():
                logger.error("[VideoProcess] FFmpeg not available; returning original key")
                inc_transcode("none", "unavailable")
                return key

            strategy = "unknown"
            try:
                size = storage.download_to(request.source_key, source.local_path, bucket=request.bucket)
                decision = choose_compression(
                    size,
                    request.duration_seconds,
                    threshold_mbps=self.reencode_threshold_mbps,
                )
                strategy = decision.strategy.value
                logger.info(
                    "[VideoProcess] {} bytes over {}s -> {}",
                    size,
                    request.duration_seconds,
                    strategy,
                )

                args = build_ffmpeg_args(
                    decision,
                    input_path=source.local_path,
                    output_path=output.local_path,
                    start_seconds=request.start_seconds,
                    duration_seconds=request.duration_seconds,
                )
                started = time.monotonic()
                result = self.transcoder.run(args)
                observe_transcode_seconds(strategy, time.monotonic() - started)
                if not result.ok:
                    raise TranscodeFailure(f"ffmpeg {result.describe()}: {result.stderr_tail[-500:]}")
                if not output.exists():
                    raise TranscodeFailure("ffmpeg reported success but wrote no output")

                processed_key = keys.derive_processed_key(request.source_key)
                if processed_key == request.source_key:
                    raise TranscodeFailure("source key has no extension; refusing to overwrite it")
                storage.upload_file(
                    processed_key,
                    output.local_path,
                    content_type=keys.PROCESSED_CONTENT_TYPE,
                    bucket=request.bucket,
                )
            except Exception as exc:
                logger.opt(exception=exc).error("[VideoProcess] Error processing {}; returning original key", key)
                inc_transcode(strategy, "fallback")
                return key

        inc_transcode(strategy, "ok")
        logger.info("[VideoProcess] Complete: {}", processed_key)
        return processed_key

    # ────────────────────────────────────────────────────────────────────
    # Deletion
    # ────────────────────────────────────────────────────────────────────

    def delete_media(self, caller_id: str, key: str) -> Dict[str, bool]:
        """Delete one owned object. No retries, no tombstones."""
        storage = self._require_storage()
        self._require_owner(caller_id, key)

        if not storage.delete(key):
            inc_delete("error")
            raise StorageError(user_id=caller_id)
        inc_delete("ok")
        logger.info("[Media] Deleted {} for user {}", key, caller_id)
        return {"success": True}


__all__ = ["MediaService", "UploadTicket", "ProcessResult", "TranscodeRequest"]
