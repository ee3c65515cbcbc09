"""Prometheus metrics for the Mix Doctor analysis engine.

Exposes analysis outcomes in metrics so dashboards show how much incoming
material is flagged as unmixed, not just generic HTTP stats.

Metrics:
    mde_analyses_total              Counter by outcome (mixed/unmixed/error)
    mde_analysis_latency_seconds    Histogram of engine wall-clock time
    mde_audio_duration_seconds      Histogram of analysed audio length
    mde_unmixed_points              Histogram of unmixed-detector points

Usage::

    from infrastructure.metrics import LatencyTimer, record_analysis

    with LatencyTimer() as t:
        report = analyze(buffer)
    record_analysis(
        unmixed=report.unmixed.is_likely_unmixed,
        failed_points=report.unmixed.failed_points,
        duration_sec=report.duration_sec,
        latency_seconds=t.elapsed,
    )
"""

from __future__ import annotations

import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

_REGISTRY = CollectorRegistry()

analyses_total = Counter(
    "mde_analyses_total",
    "Total analyses by outcome",
    ["outcome"],
    registry=_REGISTRY,
)

analysis_latency_seconds = Histogram(
    "mde_analysis_latency_seconds",
    "Engine wall-clock time per analysis in seconds",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
    registry=_REGISTRY,
)

audio_duration_seconds = Histogram(
    "mde_audio_duration_seconds",
    "Length of analysed audio in seconds",
    buckets=[1.0, 5.0, 15.0, 30.0, 60.0, 180.0, 300.0, 600.0],
    registry=_REGISTRY,
)

unmixed_points = Histogram(
    "mde_unmixed_points",
    "Unmixed-detector failed points per analysis (max 29)",
    buckets=[0, 2, 4, 6, 8, 10, 15, 20, 29],
    registry=_REGISTRY,
)

logger.info("Prometheus metrics registry initialized")


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def record_analysis(
    *,
    unmixed: bool,
    failed_points: int,
    duration_sec: float,
    latency_seconds: float,
) -> None:
    """Record a completed analysis.

    Args:
        unmixed: Whether the detector flagged the track as likely unmixed.
        failed_points: Detector points (0–29).
        duration_sec: Length of the analysed audio.
        latency_seconds: Engine wall-clock time in seconds.
    """
    analyses_total.labels(outcome="unmixed" if unmixed else "mixed").inc()
    analysis_latency_seconds.observe(latency_seconds)
    audio_duration_seconds.observe(duration_sec)
    unmixed_points.observe(failed_points)


def record_analysis_error() -> None:
    """Increment the failed-analysis counter."""
    analyses_total.labels(outcome="error").inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string).
    """
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            report = analyze(buffer)
        print(t.elapsed)
    """

    def __init__(self) -> None:
        """Initialize timer."""
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        """Start timing."""
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        """Stop timing and record elapsed."""
        self.elapsed = time.perf_counter() - self._start
