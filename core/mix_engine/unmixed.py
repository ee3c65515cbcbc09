"""
core/mix_engine/unmixed.py — Rule-based detector for raw, unmixed audio.

Implements:
    - Fifteen weighted boolean criteria in six tiers (mono compatibility,
      stereo imaging, dynamic processing, loudness, clipping + phase,
      supporting indicators, combination patterns), 29 points in total
    - Seven conjunctive detection patterns evaluated independently
    - Final OR-of-ANDs classification, confidence and mixing quality score
    - Seven reporting sub-tests, independent of the classification

Design:
    - Deterministic and total: defined for every finite input, never raises.
    - Point weights and thresholds are calibration constants; changing any of
      them changes stored results.
    - Ratios (mono compatibility, band shares) are compared as 0–1 fractions.
    - A single weak signal never flags a track. Only a critical mono failure,
      10+ points, or a matching pair of patterns does.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.mix_engine.types import (
    PeakToAverageResult,
    SpectralBalanceResult,
    UnmixedDetectionResult,
)

MAX_POINTS = 29
UNMIXED_POINT_THRESHOLD = 10
_QUALITY_WARNING_THRESHOLD = 75.0


@dataclass(frozen=True)
class DetectorInputs:
    """Flat set of metrics the detector reads.

    Level values are dB / LUFS, ratios are 0–1 fractions.
    """

    dynamic_range: float
    loudness: float
    peak_db: float
    rms_db: float
    crest_factor: float
    true_peak_db: float
    loudness_range: float
    punchiness: float
    sub_bass: float
    bass: float
    low_mid: float
    high_mid: float
    presence: float
    air: float
    mono_compatibility: float
    phase_coherence: float
    stereo_width: float
    stereo_balance: float

    @classmethod
    def from_results(
        cls,
        *,
        dynamic_range: float,
        loudness: float,
        peak_db: float,
        rms_db: float,
        peak_to_average: PeakToAverageResult,
        spectral: SpectralBalanceResult,
        mono_compatibility_pct: float,
        phase_coherence: float,
        stereo_width: float,
        stereo_balance: float,
    ) -> DetectorInputs:
        """Build inputs from component results, converting percentages to fractions."""
        return cls(
            dynamic_range=dynamic_range,
            loudness=loudness,
            peak_db=peak_db,
            rms_db=rms_db,
            crest_factor=peak_to_average.peak_to_rms,
            true_peak_db=peak_to_average.true_peak_db,
            loudness_range=peak_to_average.loudness_range,
            punchiness=peak_to_average.punchiness,
            sub_bass=spectral.sub_bass / 100.0,
            bass=spectral.bass / 100.0,
            low_mid=spectral.low_mid / 100.0,
            high_mid=spectral.high_mid / 100.0,
            presence=spectral.presence / 100.0,
            air=spectral.air / 100.0,
            mono_compatibility=mono_compatibility_pct / 100.0,
            phase_coherence=phase_coherence,
            stereo_width=stereo_width,
            stereo_balance=stereo_balance,
        )


# ---------------------------------------------------------------------------
# Weighted criteria
# ---------------------------------------------------------------------------


def _evaluate_criteria(m: DetectorInputs) -> tuple[list[tuple[str, bool]], int, list[str], bool]:
    """Run the fifteen weighted tests.

    Returns:
        (criteria, failed_points, recommendations, wild_transients)
    """
    criteria: list[tuple[str, bool]] = []
    recs: list[str] = []
    failed = 0

    def check(name: str, fired: bool, points: int, message: str | None = None) -> bool:
        nonlocal failed
        criteria.append((name, fired))
        if fired:
            failed += points
            if message:
                recs.append(message)
        return fired

    mono_pct = m.mono_compatibility * 100.0

    # Tier 1: mono compatibility
    check(
        "Very Poor Mono (<50%)",
        m.mono_compatibility < 0.5,
        4,
        f"CRITICAL: Mono compatibility ({mono_pct:.0f}%) - severe phase issues",
    )
    check(
        "Poor Mono (50-60%)",
        0.5 <= m.mono_compatibility < 0.6,
        2,
        f"Poor mono compatibility ({mono_pct:.0f}%) - phase issues need fixing",
    )

    # Tier 1.5: stereo imaging and panning
    width_pct = m.stereo_width * 100.0
    if m.stereo_width < 0.4:
        panning_msg = f"Extremely narrow stereo image ({width_pct:.0f}%) - sounds mono/unmixed"
    else:
        panning_msg = f"Excessively wide stereo ({width_pct:.0f}%) - amateur over-panning"
    check("Extreme Panning", m.stereo_width < 0.4 or m.stereo_width > 1.8, 2, panning_msg)

    direction = "right" if m.stereo_balance > 0 else "left"
    check(
        "Panning Imbalance",
        abs(m.stereo_balance) > 0.15,
        1,
        f"Significant L/R imbalance ({abs(m.stereo_balance) * 100.0:.0f}% to {direction}) - check panning",
    )

    # Tier 2: dynamic processing
    no_compression = check(
        "No Compression",
        m.dynamic_range > 15.0 and m.crest_factor > 13.0 and m.loudness_range > 15.0,
        3,
        f"No compression detected (DR: {m.dynamic_range:.1f}dB, CF: {m.crest_factor:.1f}dB, "
        f"LRA: {m.loudness_range:.1f}LU)",
    )
    check(
        "Light Compression",
        not no_compression and (m.dynamic_range > 14.0 or m.crest_factor > 12.0),
        1,
        "Minimal compression - needs more dynamic control",
    )

    # Tier 3: loudness
    quiet_unprocessed = check(
        "Quiet & Unprocessed",
        m.loudness < -18.0 and m.dynamic_range > 14.0 and m.peak_db < -6.0,
        3,
        f"Severely under-leveled: {m.loudness:.1f}LUFS - needs gain staging and limiting",
    )
    check(
        "Low Loudness",
        not quiet_unprocessed and m.loudness < -18.0,
        1,
        f"Loudness below professional standards ({m.loudness:.1f}LUFS)",
    )

    # Tier 4: clipping with phase problems
    clipping_with_phase = check(
        "Clipping + Phase Issues",
        m.peak_db > -1.0 and m.mono_compatibility < 0.6,
        3,
        f"Clipping ({m.peak_db:.1f}dB) with phase issues - poor gain staging",
    )
    check(
        "Clipping",
        not clipping_with_phase and m.peak_db > -0.5,
        1,
        f"Peaks clipping at {m.peak_db:.1f}dBFS - reduce levels",
    )

    # Tier 5: supporting indicators
    check(
        "No Limiting",
        m.true_peak_db < -4.0,
        1,
        f"True peak at {m.true_peak_db:.1f}dBFS - no limiting applied",
    )
    check(
        "Low Phase Coherence",
        m.phase_coherence < 0.6,
        1,
        f"Low phase coherence ({m.phase_coherence * 100.0:.0f}%) - check stereo imaging",
    )
    if m.punchiness > 90.0:
        transient_msg = f"Very high punchiness ({m.punchiness:.0f}) - uncontrolled transients"
    else:
        transient_msg = f"Very low punchiness ({m.punchiness:.0f}) - lacks punch"
    wild_transients = check(
        "Uncontrolled Transients",
        m.punchiness > 90.0 or m.punchiness < 35.0,
        1,
        transient_msg,
    )

    # Tier 6: combination patterns
    check(
        "Poor Processing (Narrow+Wild+Clip)",
        m.stereo_width < 0.35 and m.loudness_range > 20.0 and m.peak_db > -1.0,
        3,
        f"Multiple processing issues: narrow stereo ({width_pct:.0f}%) + uncontrolled dynamics "
        f"({m.loudness_range:.1f}LU) + clipping",
    )
    check(
        "Poor Processing (Wild+Loud)",
        m.loudness_range > 18.0 and m.crest_factor < 10.0 and m.loudness > -18.0,
        2,
        f"Conflicting dynamics: high loudness range ({m.loudness_range:.1f}LU) without proper "
        "compression - inconsistent processing",
    )

    return criteria, failed, recs, wild_transients


def _evaluate_patterns(m: DetectorInputs) -> list[tuple[str, bool]]:
    """The seven conjunctive detection patterns, in a fixed order."""
    low_three = m.sub_bass + m.bass + m.low_mid
    return [
        ("critical_mono_failure", m.mono_compatibility < 0.30),
        ("quiet_and_dynamic", m.loudness < -25.0 and m.dynamic_range > 18.0),
        ("quiet_and_narrow", m.loudness < -25.0 and m.stereo_width < 0.3),
        ("bass_heavy", low_three > 0.75 and m.loudness < -18.0),
        ("unprocessed", m.crest_factor > 18.0 and m.loudness < -20.0),
        ("raw_peaks", m.peak_db > -0.5 and m.loudness < -18.0),
        (
            "severe_frequency_imbalance",
            (m.sub_bass + m.bass > 0.70 or m.high_mid + m.presence + m.air < 0.03)
            and m.loudness < -15.0,
        ),
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def detect_unmixed(inputs: DetectorInputs) -> UnmixedDetectionResult:
    """Classify a track as likely unmixed from its measured metrics.

    Classification:
        unmixed = failed_points >= 10
                  OR critical_mono_failure
                  OR (quiet_and_dynamic AND quiet_and_narrow)
                  OR (bass_heavy AND severe_frequency_imbalance)
                  OR (unprocessed AND raw_peaks)

    Args:
        inputs: Flat metric set, see DetectorInputs.

    Returns:
        UnmixedDetectionResult with criteria, patterns, scores and advice.
    """
    criteria, failed, recs, wild_transients = _evaluate_criteria(inputs)
    patterns = _evaluate_patterns(inputs)
    p = dict(patterns)

    is_unmixed = (
        failed >= UNMIXED_POINT_THRESHOLD
        or p["critical_mono_failure"]
        or (p["quiet_and_dynamic"] and p["quiet_and_narrow"])
        or (p["bass_heavy"] and p["severe_frequency_imbalance"])
        or (p["unprocessed"] and p["raw_peaks"])
    )

    confidence = failed / MAX_POINTS * 100.0
    quality = max(0.0, 100.0 - confidence)

    if is_unmixed:
        recs.insert(0, f"UNMIXED AUDIO DETECTED ({failed}/{MAX_POINTS} points failed)")
        recs.append("Apply: Compression → EQ → Limiting → Check mono compatibility")
    elif quality < _QUALITY_WARNING_THRESHOLD:
        recs.insert(0, f"Mix quality could be improved ({quality:.0f}% score)")

    m = inputs
    return UnmixedDetectionResult(
        is_likely_unmixed=is_unmixed,
        confidence_score=confidence,
        failed_points=failed,
        criteria=tuple(criteria),
        patterns=tuple(patterns),
        mixing_quality_score=quality,
        recommendations=tuple(recs),
        dynamic_range_test=m.dynamic_range > 15.0,
        peak_to_loudness_ratio_test=(m.peak_db - m.loudness) > 18.0,
        transient_analysis=wild_transients,
        rms_vs_peak_test=(m.peak_db - m.rms_db) > 15.0,
        frequency_masking_test=m.loudness_range > 15.0,
        loudness_test=m.loudness < -18.0,
        crest_factor_test=m.crest_factor > 14.0,
    )
