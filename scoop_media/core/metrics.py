from __future__ import annotations

"""Prometheus metrics for the media pipeline.

Thin helper functions so call sites never touch label plumbing directly.
"""

from prometheus_client import Counter, Histogram

presigns_total = Counter(
    "media_presigns_total",
    "Number of presigned upload URL generations",
    labelnames=("namespace", "result"),
)
transcodes_total = Counter(
    "media_transcodes_total",
    "Video segment processing outcomes",
    labelnames=("strategy", "result"),
)
transcode_latency = Histogram(
    "media_transcode_seconds",
    "Wall-clock time spent in the external transcoder",
    labelnames=("strategy",),
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 45.0, 60.0),
)
deletes_total = Counter(
    "media_deletes_total",
    "Media delete outcomes",
    labelnames=("result",),
)


def inc_presign(namespace: str, result: str) -> None:
    presigns_total.labels(namespace=namespace, result=result).inc()


def inc_transcode(strategy: str, result: str) -> None:
    transcodes_total.labels(strategy=strategy, result=result).inc()


def observe_transcode_seconds(strategy: str, seconds: float) -> None:
    transcode_latency.labels(strategy=strategy).observe(seconds)


def inc_delete(result: str) -> None:
    deletes_total.labels(result=result).inc()


__all__ = [
    "inc_presign",
    "inc_transcode",
    "observe_transcode_seconds",
    "inc_delete",
]
