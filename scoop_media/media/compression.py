from __future__ import annotations

"""
Compression policy for trimmed video segments.

The decision only depends on the source size and the requested segment
duration. Sources averaging more than `threshold_mbps` MB per second of
segment are re-encoded (H.264 CRF 28, AAC 128k, faststart, even dimensions);
everything else is stream-copied with timestamps shifted to zero.

`build_ffmpeg_args` turns a decision into the argument list for the
transcoder. Both strategies share the same trim prefix
(`-y -ss {start} -i {input} -t {duration}`).
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

DEFAULT_THRESHOLD_MBPS = 1.5
_BYTES_PER_MB = 1024 * 1024

# libx264 needs even width and height; floor both while keeping aspect ratio.
EVEN_DIMENSIONS_FILTER = "scale=trunc(iw/2)*2:trunc(ih/2)*2"


class Strategy(str, Enum):
    REENCODE = "reencode"
    STREAM_COPY = "stream_copy"


@dataclass(frozen=True)
class CompressionDecision:
    strategy: Strategy
    video_codec: Optional[str] = None
    crf: Optional[int] = None
    preset: Optional[str] = None
    audio_codec: Optional[str] = None
    audio_bitrate_kbps: Optional[int] = None
    scale_filter: Optional[str] = None
    faststart: bool = False


REENCODE = CompressionDecision(
    strategy=Strategy.REENCODE,
    video_codec="libx264",
    crf=28,
    preset="fast",
    audio_codec="aac",
    audio_bitrate_kbps=128,
    scale_filter=EVEN_DIMENSIONS_FILTER,
    faststart=True,
)
STREAM_COPY = CompressionDecision(strategy=Strategy.STREAM_COPY)


def megabytes_per_second(size_bytes: int, duration_seconds: float) -> float:
    if duration_seconds <= 0:
        raise ValueError("duration_seconds must be positive")
    return (size_bytes / _BYTES_PER_MB) / duration_seconds


def choose_compression(
    size_bytes: int,
    duration_seconds: float,
    *,
    threshold_mbps: float = DEFAULT_THRESHOLD_MBPS,
) -> CompressionDecision:
    """Re-encode when the average rate is strictly above the threshold."""
    if megabytes_per_second(size_bytes, duration_seconds) > threshold_mbps:
        return REENCODE
    return STREAM_COPY


def _fmt_seconds(value: float) -> str:
    # Fixed-point, shortest round-trip digits: 3.0 -> "3", 5e-05 -> "0.00005".
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def build_ffmpeg_args(
    decision: CompressionDecision,
    *,
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    start_seconds: float,
    duration_seconds: float,
) -> List[str]:
    """Return the ffmpeg arguments (without the binary) for `decision`."""
    args = [
        "-y",
        "-ss", _fmt_seconds(start_seconds),
        "-i", str(input_path),
        "-t", _fmt_seconds(duration_seconds),
    ]
    if decision.strategy is Strategy.REENCODE:
        args += [
            "-c:v", str(decision.video_codec),
            "-crf", str(decision.crf),
            "-preset", str(decision.preset),
            "-c:a", str(decision.audio_codec),
            "-b:a", f"{decision.audio_bitrate_kbps}k",
        ]
        if decision.faststart:
            args += ["-movflags", "+faststart"]
        if decision.scale_filter:
            args += ["-vf", decision.scale_filter]
    else:
        args += ["-c", "copy", "-avoid_negative_ts", "make_zero"]
    args.append(str(output_path))
    return args


__all__ = [
    "Strategy",
    "CompressionDecision",
    "REENCODE",
    "STREAM_COPY",
    "EVEN_DIMENSIONS_FILTER",
    "megabytes_per_second",
    "choose_compression",
    "build_ffmpeg_args",
]
