"""
core/mix_engine/report.py — Assemble the AnalysisReport and flatten it for consumers.

Implements:
    - assemble_report: combine component results, issue flags and overall
      recommendations into one AnalysisReport
    - metrics_payload: the flat, JSON-safe metric set consumed by storage,
      UI and the prompt builder
    - report_sections: nested per-component view for detailed display

Design:
    - Pure module: no I/O, no timestamps, no logging.
    - Every value in the payloads is a plain float, int, bool, str or list,
      so ``json.dumps`` works without a custom encoder.
    - Mono compatibility stays a percentage (0–100); width and coherence stay
      0–1 ratios, matching the component results.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from core.mix_engine.recommendations import issue_flags, overall_recommendations
from core.mix_engine.types import (
    AnalysisReport,
    DynamicRangeAnalysis,
    DynamicRangeEstimate,
    InstrumentBalanceResult,
    LevelResult,
    PeakToAverageResult,
    SpectralBalanceResult,
    StereoCorrelationResult,
    UnmixedDetectionResult,
)


def assemble_report(
    *,
    levels: LevelResult,
    spectral: SpectralBalanceResult,
    stereo: StereoCorrelationResult,
    dynamics: DynamicRangeAnalysis,
    peak_to_average: PeakToAverageResult,
    dynamic_range_estimate: DynamicRangeEstimate,
    instruments: InstrumentBalanceResult,
    unmixed: UnmixedDetectionResult,
    duration_sec: float,
    sample_rate: int,
    channel_count: int,
    analysis_version: str,
) -> AnalysisReport:
    """Package component results into a single AnalysisReport.

    Issue flags and the overall advice list are derived here; no
    measurement happens in this function.
    """
    return AnalysisReport(
        levels=levels,
        spectral=spectral,
        stereo=stereo,
        dynamics=dynamics,
        peak_to_average=peak_to_average,
        dynamic_range_estimate=dynamic_range_estimate,
        instruments=instruments,
        unmixed=unmixed,
        issues=issue_flags(spectral, stereo, dynamic_range_estimate, instruments),
        recommendations=tuple(
            overall_recommendations(levels, spectral, stereo, dynamic_range_estimate, instruments)
        ),
        duration_sec=duration_sec,
        sample_rate=sample_rate,
        channel_count=channel_count,
        analysis_version=analysis_version,
    )


# ---------------------------------------------------------------------------
# Flat payload
# ---------------------------------------------------------------------------


def metrics_payload(report: AnalysisReport) -> dict[str, Any]:
    """Flatten a report into the metric set used for persistence and prompting.

    Args:
        report: A completed AnalysisReport.

    Returns:
        Flat dict of scalars plus the overall recommendation list.
    """
    spectral = report.spectral
    stereo = report.stereo
    dynamics = report.dynamics
    pta = report.peak_to_average
    issues = report.issues

    return {
        # Levels
        "peak_level": report.peak_db,
        "rms_level": report.rms_db,
        "loudness": report.loudness_lufs,
        "perceived_loudness": report.levels.perceived_loudness,
        "dynamic_range": report.dynamic_range,
        # Stereo
        "stereo_width": stereo.width,
        "phase_coherence": stereo.phase_coherence,
        "mono_compatibility": stereo.mono_compatibility,
        "correlation_coefficient": stereo.correlation,
        "side_energy": stereo.side_energy,
        "center_image": stereo.center_image,
        "stereo_balance": stereo.balance,
        # Five-band summary
        "low_end": spectral.low_end,
        "low_mid": spectral.low_mid,
        "mid": spectral.mid,
        "high_mid": spectral.high_mid,
        "high": spectral.high,
        # Seven-band spectral balance
        "sub_bass_energy": spectral.sub_bass,
        "bass_energy": spectral.bass,
        "low_mid_energy": spectral.low_mid,
        "mid_energy": spectral.mid,
        "high_mid_energy": spectral.high_mid,
        "presence_energy": spectral.presence,
        "air_energy": spectral.air,
        "balance_score": spectral.balance_score,
        "spectral_tilt": spectral.tilt,
        "spectral_centroid": spectral.spectral_centroid,
        "detected_genre": spectral.detected_genre,
        # Dynamic range analysis
        "lufs_range": dynamics.lufs_range,
        "crest_factor": dynamics.crest_factor,
        "percentile_95": dynamics.percentile_95,
        "percentile_5": dynamics.percentile_5,
        "compression_ratio": dynamics.compression_ratio,
        "headroom": dynamics.breathing_room,
        # Peak-to-average
        "peak_to_rms_ratio": pta.peak_to_rms,
        "peak_to_lufs_ratio": pta.peak_to_lufs,
        "true_peak_level": pta.true_peak_db,
        "integrated_loudness": pta.integrated_loudness,
        "loudness_range": pta.loudness_range,
        "punchiness": pta.punchiness,
        # Flags
        "has_clipping": report.has_clipping,
        "has_phase_issues": issues.phase_issues,
        "has_stereo_issues": issues.stereo_issues,
        "has_frequency_imbalance": issues.frequency_imbalance,
        "has_dynamic_range_issues": issues.dynamic_range_issues,
        "has_instrument_balance_issues": issues.instrument_balance_issues,
        # Unmixed detection
        "is_likely_unmixed": report.unmixed.is_likely_unmixed,
        "mixing_quality_score": report.unmixed.mixing_quality_score,
        # Provenance
        "analysis_version": report.analysis_version,
        "duration_sec": report.duration_sec,
        "sample_rate": report.sample_rate,
        "channel_count": report.channel_count,
        "recommendations": list(report.recommendations),
    }


def report_sections(report: AnalysisReport) -> dict[str, Any]:
    """Nested per-component view of a report.

    The raw display spectrum is omitted; it is large and only useful for
    plotting.
    """
    spectral = asdict(report.spectral)
    spectral.pop("spectrum", None)
    spectral["recommendations"] = list(report.spectral.recommendations)

    dynamics = asdict(report.dynamics)
    dynamics["momentary_peaks"] = list(report.dynamics.momentary_peaks)
    dynamics["recommendations"] = list(report.dynamics.recommendations)

    stereo = asdict(report.stereo)
    stereo["recommendations"] = list(report.stereo.recommendations)

    pta = asdict(report.peak_to_average)
    pta["recommendations"] = list(report.peak_to_average.recommendations)

    instruments = report.instruments
    unmixed = report.unmixed

    return {
        "levels": asdict(report.levels),
        "spectral": spectral,
        "stereo": stereo,
        "dynamics": dynamics,
        "peak_to_average": pta,
        "dynamic_range_estimate": report.dynamic_range_estimate.as_dict(),
        "instruments": {
            "energies": instruments.as_dict(),
            "issues": [issue.value for issue in instruments.issues],
            "is_balanced": instruments.is_balanced,
            "balance_score": instruments.balance_score,
            "recommendations": list(instruments.recommendations),
        },
        "unmixed": {
            "is_likely_unmixed": unmixed.is_likely_unmixed,
            "confidence_score": unmixed.confidence_score,
            "failed_points": unmixed.failed_points,
            "mixing_quality_score": unmixed.mixing_quality_score,
            "criteria": unmixed.criteria_dict(),
            "patterns": unmixed.patterns_dict(),
            "sub_tests": unmixed.sub_tests(),
            "recommendations": list(unmixed.recommendations),
        },
        "issues": report.issues.as_dict(),
    }
