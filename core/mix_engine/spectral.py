"""
core/mix_engine/spectral.py — Seven-band spectral balance analysis.

Implements:
    - Loudest-window selection so silence at track boundaries does not bias
      the measurement
    - Band energy percentages over 7 mastering bands (20 Hz–20 kHz)
    - Spectral tilt (high three bands vs low three bands)
    - Balance score against a fixed ideal distribution
    - Five-band summary, spectral centroid, genre guess and genre-aware
      imbalance check

Design:
    - Pure: numpy arrays in, SpectralBalanceResult out.
    - Percentages are of the TOTAL spectral energy (DC to Nyquist), so energy
      outside 20 Hz–20 kHz lowers the band sum below 100.
    - Recommendations are advisory text; the unmixed detector reads only the
      numeric fields.
"""

from __future__ import annotations

import numpy as np

from core.mix_engine._genre_loader import imbalance_limits, thresholds_for_genre
from core.mix_engine.fft import (
    band_energy,
    compute_spectrum,
    loudest_window,
    perceptual_weights,
    spectral_centroid,
)
from core.mix_engine.types import (
    IDEAL_BAND_PERCENTAGES,
    SPECTRAL_BAND_EDGES,
    SPECTRAL_BANDS,
    SpectralBalanceResult,
)

_SCORE_PENALTY_PER_POINT = 5.0
_TILT_DENOMINATOR_FLOOR = 0.001
_DISPLAY_BINS = 2048

_LOW_BANDS = ("sub_bass", "bass", "low_mid")
_HIGH_BANDS = ("high_mid", "presence", "air")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _spectral_tilt(percentages: dict[str, float]) -> float:
    low = sum(percentages[b] for b in _LOW_BANDS)
    high = sum(percentages[b] for b in _HIGH_BANDS)
    return (high - low) / max(high + low, _TILT_DENOMINATOR_FLOOR)


def _balance_score(percentages: dict[str, float]) -> float:
    deviation = sum(abs(percentages[b] - IDEAL_BAND_PERCENTAGES[b]) for b in SPECTRAL_BANDS)
    return max(0.0, min(100.0, 100.0 - deviation * _SCORE_PENALTY_PER_POINT))


def _balance_recommendations(percentages: dict[str, float], tilt: float) -> list[str]:
    recs: list[str] = []
    if percentages["sub_bass"] > 20.0:
        recs.append("Excessive sub-bass energy - consider high-pass filtering below 30Hz")
    if percentages["bass"] < 15.0:
        recs.append("Boost low end around 80-120Hz for more weight")
    elif percentages["bass"] > 30.0:
        recs.append("Reduce bass energy around 100-200Hz to avoid muddiness")
    if percentages["mid"] < 18.0:
        recs.append("Boost midrange presence for better clarity")
    if percentages["presence"] < 5.0:
        recs.append("Add presence around 8-10kHz for more sparkle")
    if tilt < -0.3:
        recs.append("Mix is too dark - add high-frequency content")
    elif tilt > 0.3:
        recs.append("Mix is too bright - reduce harsh frequencies")
    return recs


# ---------------------------------------------------------------------------
# Genre heuristics on the five-band summary
# ---------------------------------------------------------------------------


def detect_genre(low_end: float, low_mid: float, mid: float, high_mid: float, high: float) -> str:
    """Guess a genre family from five-band energy percentages.

    Rules are evaluated in order; the first match wins.

    Args:
        low_end:  20–250 Hz, %.
        low_mid:  250–500 Hz, %.
        mid:      500–2 000 Hz, %.
        high_mid: 2 000–6 000 Hz, %.
        high:     6 000–20 000 Hz, %.

    Returns:
        One of 'Electronic/EDM', 'Hip-Hop', 'Rock/Metal', 'Pop',
        'Alternative/Dark Pop' or 'Unknown'.
    """
    total_low = low_end + low_mid
    total_high = high_mid + high

    if low_end > 35.0 and total_high > 8.0 and mid < 30.0:
        return "Electronic/EDM"
    if low_end > 40.0 and total_low > 60.0 and mid > 20.0:
        return "Hip-Hop"
    if mid > 25.0 and total_high > 15.0 and high_mid > 8.0:
        return "Rock/Metal"
    if total_high > 18.0 and mid > 20.0 and low_end < 40.0:
        return "Pop"
    if total_high < 12.0 and total_low > 65.0 and mid > 20.0:
        return "Alternative/Dark Pop"
    if total_high < 10.0:
        return "Alternative/Dark Pop"
    return "Unknown"


def check_frequency_imbalance(
    low_end: float,
    low_mid: float,
    mid: float,
    high_mid: float,
    high: float,
    genre: str = "Unknown",
) -> bool:
    """Return True when the five-band distribution is technically unbalanced.

    Genre-dependent checks (bass ceiling, combined low ceiling, high-frequency
    floor) use the thresholds from ``genre_profiles/imbalance.yaml``; the
    remaining checks are genre-independent.
    """
    thresholds = thresholds_for_genre(genre)
    limits = imbalance_limits()

    if low_end > thresholds["low_end_max"]:
        return True
    if low_end + low_mid > thresholds["combined_low_max"]:
        return True
    if high < thresholds["high_min"]:
        return True
    if mid + high_mid < limits["mid_plus_high_mid_min"]:
        return True
    if low_end + low_mid + mid < limits["low_through_mid_min"]:
        return True

    total = low_end + low_mid + mid + high_mid + high
    if total < limits["total_min"] or total > limits["total_max"]:
        return True

    return (
        low_mid > limits["low_mid_max"]
        or mid > limits["mid_max"]
        or high_mid > limits["high_mid_max"]
        or high > limits["high_max"]
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_spectral_balance(
    samples: np.ndarray,
    sample_rate: int,
    *,
    window_size: int = 4096,
    max_fft_size: int = 4096,
    min_fft_size: int = 512,
    perceptual: bool = False,
) -> SpectralBalanceResult:
    """Measure the seven-band energy distribution of the loudest window.

    Args:
        samples:      1-D sample array (primary channel).
        sample_rate:  Sample rate in Hz.
        window_size:  Length of the loudest-window search.
        max_fft_size: FFT size cap.
        min_fft_size: Minimum FFT size; shorter input returns the neutral result.
        perceptual:   A-weight band energies before computing percentages.

    Returns:
        SpectralBalanceResult. ``SpectralBalanceResult.neutral()`` when the
        input is too short for the minimum FFT size.

    Raises:
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    window = loudest_window(np.asarray(samples, dtype=np.float64), window_size)
    spectrum = compute_spectrum(window, sample_rate, max_size=max_fft_size, min_size=min_fft_size)
    if spectrum.is_empty:
        return SpectralBalanceResult.neutral()

    weights = perceptual_weights(spectrum) if perceptual else None
    energies = {
        band: band_energy(spectrum, lo, hi, weights) for band, (lo, hi) in SPECTRAL_BAND_EDGES.items()
    }
    # Shares of the 20 Hz-20 kHz energy; DC and out-of-band bins do not count
    total = sum(energies.values())
    display = tuple(float(m) for m in spectrum.magnitudes[:_DISPLAY_BINS])

    if total <= 0.0:
        # No in-band energy (digital silence)
        return SpectralBalanceResult(
            **{band: 0.0 for band in SPECTRAL_BANDS},
            tilt=0.0,
            balance_score=0.0,
            spectrum=display,
        )

    percentages = {band: energy / total * 100.0 for band, energy in energies.items()}
    tilt = _spectral_tilt(percentages)

    low_end = percentages["sub_bass"] + percentages["bass"]
    high = percentages["presence"] + percentages["air"]
    genre = detect_genre(
        low_end, percentages["low_mid"], percentages["mid"], percentages["high_mid"], high
    )
    imbalance = check_frequency_imbalance(
        low_end,
        percentages["low_mid"],
        percentages["mid"],
        percentages["high_mid"],
        high,
        genre=genre,
    )

    return SpectralBalanceResult(
        **percentages,
        tilt=tilt,
        balance_score=_balance_score(percentages),
        recommendations=tuple(_balance_recommendations(percentages, tilt)),
        spectrum=display,
        spectral_centroid=spectral_centroid(spectrum),
        detected_genre=genre,
        has_imbalance=imbalance,
    )
