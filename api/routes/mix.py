"""
api/routes/mix.py — Mix analysis endpoint.

Endpoints
=========
    POST /mix/analyze    — Full analysis of decoded PCM samples (levels,
                           spectral balance, stereo, dynamics, instruments,
                           unmixed detection, recommendations)

The endpoint is a thin HTTP controller: it builds a PcmBuffer, delegates to
MixAnalysisEngine and serializes the report. No business logic lives here.

Error codes
===========
    422  — Invalid buffer (channel length mismatch, non-finite samples,
           frame_count larger than the data)
    500  — Unexpected analysis failure
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from api.schemas.mix import MixAnalyzeRequest
from core.mix_engine import (
    AnalysisReport,
    MixAnalysisEngine,
    PcmBuffer,
    build_metrics_prompt,
    metrics_payload,
    report_sections,
)
from infrastructure.metrics import LatencyTimer, record_analysis, record_analysis_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mix", tags=["mix"])

_engine = MixAnalysisEngine()


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def _serialize_report(
    report: AnalysisReport,
    *,
    include_sections: bool,
    include_prompt: bool,
    is_pro_user: bool,
) -> dict[str, Any]:
    """Convert an AnalysisReport to a JSON-serializable dict."""
    metrics = metrics_payload(report)
    body: dict[str, Any] = {"metrics": metrics}
    if include_sections:
        body["sections"] = report_sections(report)
    if include_prompt:
        body["prompt"] = build_metrics_prompt(metrics, is_pro_user=is_pro_user)
    return body


# ---------------------------------------------------------------------------
# POST /mix/analyze
# ---------------------------------------------------------------------------


@router.post("/analyze")
def analyze_mix(request: MixAnalyzeRequest) -> dict[str, Any]:
    """Run the complete mix analysis on decoded PCM samples.

    Args:
        request: MixAnalyzeRequest with sample_rate, channels, frame_count.

    Returns:
        JSON with the flat ``metrics`` payload, plus optional ``sections``
        and ``prompt``.

    Raises:
        422: Invalid PCM buffer.
        500: Analysis failure.
    """
    try:
        buffer = PcmBuffer.from_samples(request.channels, request.sample_rate, request.frame_count)
    except ValueError as exc:
        logger.warning("Rejected mix analysis request: %s", exc)
        record_analysis_error()
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        with LatencyTimer() as timer:
            report = _engine.analyze(buffer)
    except Exception as exc:
        logger.error("Mix analysis failed: %s", exc)
        record_analysis_error()
        raise HTTPException(status_code=500, detail=f"Mix analysis failed: {exc}") from exc

    record_analysis(
        unmixed=report.unmixed.is_likely_unmixed,
        failed_points=report.unmixed.failed_points,
        duration_sec=report.duration_sec,
        latency_seconds=timer.elapsed,
    )
    return _serialize_report(
        report,
        include_sections=request.include_sections,
        include_prompt=request.include_prompt,
        is_pro_user=request.is_pro_user,
    )
