"""
core/mix_engine/recommendations.py — Report-level advice and coarse issue flags.

Implements:
    - overall_recommendations: ordered advice list built from every component
      (instrument advice first, then clipping, peak, loudness, frequency
      balance, brightness, stereo and dynamics)
    - issue_flags: the five yes/no problem flags

Design:
    - Pure functions over frozen results; no thresholds are shared with the
      unmixed detector, which keeps its own calibration.
    - Percent-valued thresholds are compared against percentages.
"""

from __future__ import annotations

from core.mix_engine.types import (
    DynamicRangeEstimate,
    InstrumentBalanceResult,
    IssueFlags,
    LevelResult,
    SpectralBalanceResult,
    StereoCorrelationResult,
)

WELL_BALANCED = "Well-balanced mix! Good frequency distribution, stereo imaging, and dynamics."

# Issue flag thresholds
_PHASE_ISSUE_COHERENCE = 0.3
_STEREO_ISSUE_BALANCE = 0.3
_DYNAMIC_RANGE_ISSUE_DB = 4.0


def overall_recommendations(
    levels: LevelResult,
    spectral: SpectralBalanceResult,
    stereo: StereoCorrelationResult,
    dynamic_range: DynamicRangeEstimate,
    instruments: InstrumentBalanceResult,
) -> list[str]:
    """Build the ordered, human-readable advice list for a whole report.

    Args:
        levels:        Level and loudness measurements.
        spectral:      Spectral balance (percentages, centroid, imbalance flag).
        stereo:        Stereo field measurements.
        dynamic_range: Combined dynamic range estimate.
        instruments:   Instrument balance result.

    Returns:
        Non-empty list of advice strings. When nothing fires, a single
        "well-balanced" message.
    """
    recs: list[str] = list(instruments.recommendations)

    if levels.has_clipping:
        recs.append("Clipping detected. Reduce input gain or use limiting to prevent distortion.")

    if levels.peak_db > -0.1:
        recs.append("Peak levels are too hot. Leave some headroom (-1dB to -3dB) for mastering.")
    elif levels.peak_db < -12.0:
        recs.append("Peak levels are quite low. Consider increasing overall level.")

    if levels.loudness_lufs < -30.0:
        recs.append(
            "Mix is too quiet. Increase overall loudness to reach broadcast standards (-23 LUFS)."
        )
    elif levels.loudness_lufs > -10.0:
        recs.append("Mix is too loud and may cause fatigue. Consider reducing overall level.")

    if spectral.has_imbalance:
        if spectral.low_end > 40.0:
            recs.append("Too much low-end energy. Consider high-pass filtering or reducing bass.")
        if spectral.high < 15.0:
            recs.append(
                "Lacking high-frequency content. Add some sparkle with gentle high-shelf EQ."
            )
        if spectral.mid < 20.0:
            recs.append("Midrange content is low. Vocals and lead instruments may lack presence.")

    # A zero centroid means nothing was measured
    if 0.0 < spectral.spectral_centroid < 800.0:
        recs.append("Mix sounds dark. Consider brightening with high-frequency enhancement.")
    elif spectral.spectral_centroid > 4000.0:
        recs.append("Mix sounds harsh or bright. Consider gentle high-frequency reduction.")

    if abs(stereo.balance) > 0.3:
        direction = "right" if stereo.balance > 0 else "left"
        recs.append(f"Mix is heavily panned to the {direction}. Check stereo balance.")

    if stereo.phase_coherence < 0.7:
        recs.append(
            "Phase issues detected between left and right channels. Check for phase cancellation."
        )

    if not stereo.is_mono:
        if stereo.width < 0.1:
            recs.append("Mix lacks stereo width. Consider using stereo imaging techniques.")
        elif stereo.width > 0.9:
            recs.append("Mix may be too wide. Check mono compatibility.")

    combined = dynamic_range.combined
    if combined < 3.0:
        recs.append("Very compressed mix. Consider reducing compression for more dynamics.")
    elif combined < 6.0:
        recs.append("Limited dynamic range. Some gentle expansion might help.")
    elif combined > 25.0:
        recs.append("Very wide dynamic range. Consider gentle compression for consistency.")

    if not recs:
        recs.append(WELL_BALANCED)
    return recs


def issue_flags(
    spectral: SpectralBalanceResult,
    stereo: StereoCorrelationResult,
    dynamic_range: DynamicRangeEstimate,
    instruments: InstrumentBalanceResult,
) -> IssueFlags:
    """Derive the coarse problem flags. Only serious problems raise a flag."""
    return IssueFlags(
        phase_issues=stereo.phase_coherence < _PHASE_ISSUE_COHERENCE,
        stereo_issues=abs(stereo.balance) > _STEREO_ISSUE_BALANCE,
        frequency_imbalance=spectral.has_imbalance,
        dynamic_range_issues=dynamic_range.combined < _DYNAMIC_RANGE_ISSUE_DB,
        instrument_balance_issues=not instruments.is_balanced,
    )
