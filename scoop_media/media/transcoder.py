from __future__ import annotations

"""
FFmpeg invoker.

The pipeline only depends on the `Transcoder` protocol (`probe()` and
`run(args)`), so tests can swap in a fake without a real binary.

`FFmpegTranscoder.run` executes synchronously. Captured stderr is bounded by
`max_buffer_bytes`: when a process writes more than that, it is killed and the
run is reported as failed. The wall-clock `timeout_seconds` is enforced the
same way.
"""

import subprocess
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from loguru import logger

_READ_CHUNK = 64 * 1024
_PROBE_TIMEOUT_SECONDS = 10
_READER_JOIN_SECONDS = 5.0


class TranscoderUnavailable(RuntimeError):
    """The transcoder binary is missing or not executable."""


class TranscodeFailure(RuntimeError):
    """The transcoder ran but did not produce a usable output."""


@dataclass(frozen=True)
class TranscodeResult:
    returncode: Optional[int]
    stderr_tail: str = ""
    elapsed_seconds: float = 0.0
    timed_out: bool = False
    buffer_exceeded: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and not self.buffer_exceeded

    def describe(self) -> str:
        if self.timed_out:
            return f"timed out after {self.elapsed_seconds:.1f}s"
        if self.buffer_exceeded:
            return "output buffer exceeded"
        return f"exit code {self.returncode}"


class Transcoder(Protocol):
    def probe(self) -> bool: ...

    def run(self, args: Sequence[str]) -> TranscodeResult: ...


class FFmpegTranscoder:
    """Runs the ffmpeg binary at `binary` with bounded output and time."""

    def __init__(
        self,
        binary: str = "ffmpeg",
        *,
        timeout_seconds: float = 60.0,
        max_buffer_bytes: int = 50 * 1024 * 1024,
    ) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds
        self.max_buffer_bytes = max_buffer_bytes

    def probe(self) -> bool:
        try:
            result = subprocess.run(
                [self.binary, "-version"],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=_PROBE_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired, subprocess.SubprocessError) as exc:
            logger.warning("[Transcoder] {} not available: {}", self.binary, exc)
            return False
        if result.returncode != 0:
            logger.warning("[Transcoder] {} -version exited with {}", self.binary, result.returncode)
            return False
        return True

    def run(self, args: Sequence[str]) -> TranscodeResult:
        cmd: List[str] = [self.binary, *args]
        logger.info("[Transcoder] Running: {}", " ".join(cmd))
        started = time.monotonic()
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise TranscoderUnavailable(f"cannot execute {self.binary}: {exc}") from exc

        captured = bytearray()
        exceeded = threading.Event()

        def _drain() -> None:
            # The reader owns the pipe: it is closed here, once reading stops.
            if proc.stderr is None:
                return
            try:
                while True:
                    chunk = proc.stderr.read1(_READ_CHUNK)
                    if not chunk:
                        break
                    if len(captured) + len(chunk) > self.max_buffer_bytes:
                        exceeded.set()
                        proc.kill()
                        break
                    captured.extend(chunk)
            finally:
                proc.stderr.close()

        reader = threading.Thread(target=_drain, name="ffmpeg-stderr", daemon=True)
        reader.start()

        timed_out = False
        try:
            proc.wait(timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired:
            timed_out = True
            proc.kill()
            proc.wait()
        finally:
            reader.join(timeout=_READER_JOIN_SECONDS)
            if reader.is_alive():
                # A grandchild still holds stderr open; leave the pipe to the reader.
                logger.warning("[Transcoder] stderr still open after exit; not waiting for {}", self.binary)

        return TranscodeResult(
            returncode=proc.returncode,
            stderr_tail=bytes(captured[-4096:]).decode("utf-8", errors="replace"),
            elapsed_seconds=time.monotonic() - started,
            timed_out=timed_out,
            buffer_exceeded=exceeded.is_set(),
        )


__all__ = [
    "Transcoder",
    "TranscodeResult",
    "TranscoderUnavailable",
    "TranscodeFailure",
    "FFmpegTranscoder",
]
