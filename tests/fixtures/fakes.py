# tests/fixtures/fakes.py

"""
🧪 Fakes for the media pipeline:
- FakeS3: stand-in for `scoop_media.utils.aws.S3Client`
- FakeTranscoder: stand-in for `FFmpegTranscoder` (no binary needed)

Both record their calls so tests can assert on the pipeline's behaviour.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

from scoop_media.media.transcoder import TranscodeResult
from scoop_media.utils.aws import S3StorageError


class FakeS3:
    """
    Minimal S3 wrapper double.

    `source_bytes` is the size of every downloaded object (written sparse, so
    20 MB sources cost nothing). `fail_on` names one step to break:
    "presign", "download" or "upload".
    """

    def __init__(
        self,
        *,
        bucket: str = "unit-test-bucket",
        source_bytes: int = 1024,
        fail_on: Optional[str] = None,
        delete_ok: bool = True,
    ):
        self.bucket = bucket
        self.source_bytes = source_bytes
        self.fail_on = fail_on
        self.delete_ok = delete_ok
        self.presign_calls: List[dict] = []
        self.downloads: List[dict] = []
        self.uploads: List[dict] = []
        self.deletes: List[str] = []

    def presigned_put(self, key, *, content_type, expires_in=300, bucket=None):
        self.presign_calls.append(
            {"key": key, "content_type": content_type, "expires_in": expires_in, "bucket": bucket}
        )
        if self.fail_on == "presign":
            raise S3StorageError("presign boom")
        return f"https://signed.example/{key}?e={expires_in}"

    def download_to(self, key, path, *, bucket=None):
        self.downloads.append({"key": key, "path": Path(path), "bucket": bucket})
        if self.fail_on == "download":
            raise S3StorageError("download boom")
        with open(path, "wb") as fh:
            fh.truncate(self.source_bytes)
        return self.source_bytes

    def upload_file(self, key, path, *, content_type, bucket=None):
        if self.fail_on == "upload":
            raise S3StorageError("upload boom")
        self.uploads.append(
            {"key": key, "body": Path(path).read_bytes(), "content_type": content_type, "bucket": bucket}
        )

    def delete(self, key, *, bucket=None):
        self.deletes.append(key)
        return self.delete_ok


class FakeTranscoder:
    """Records argument lists; writes a tiny output file on success."""

    def __init__(self, *, available: bool = True, returncode: int = 0, write_output: bool = True):
        self.available = available
        self.returncode = returncode
        self.write_output = write_output
        self.probe_calls = 0
        self.runs: List[List[str]] = []

    def probe(self) -> bool:
        self.probe_calls += 1
        return self.available

    def run(self, args) -> TranscodeResult:
        self.runs.append(list(args))
        if self.returncode == 0 and self.write_output:
            Path(args[-1]).write_bytes(b"processed-bytes")
        return TranscodeResult(
            returncode=self.returncode,
            stderr_tail="" if self.returncode == 0 else "Invalid data found when processing input",
        )


@pytest.fixture()
def fake_s3() -> FakeS3:
    return FakeS3()


@pytest.fixture()
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture()
def scratch_dir(tmp_path) -> Path:
    """Scratch directory the pipeline must leave empty."""
    d = tmp_path / "scratch"
    d.mkdir()
    return d


__all__ = ["FakeS3", "FakeTranscoder", "fake_s3", "fake_transcoder", "scratch_dir"]
