"""
core/mix_engine/dynamics.py — Dynamic range, peak-to-average and combined DR estimate.

Implements:
    - DynamicRangeAnalysis: 100 ms RMS windows (75% overlap) over the L/R
      downmix; percentile range, crest factor, short-term variation,
      compression ratio and headroom
    - PeakToAverageResult: true peak vs RMS of the max(|L|, |R|) envelope,
      loudness estimates, loudness range and punchiness
    - DynamicRangeEstimate: five independent estimators on one channel,
      blended with fixed weights

Design:
    - Pure: numpy arrays in, frozen results out.
    - Too little audio returns the neutral result of each type, never raises.
    - Percentiles are read from the sorted array at ``int(p × n)`` rather than
      interpolated, so values are always observed window levels.
    - The EBU-style estimator pre-filters with an RBJ high shelf
      (scipy.signal.lfilter) before block loudness.
"""

from __future__ import annotations

import numpy as np
from scipy import signal as scipy_signal

from core.mix_engine.fft import compute_spectrum
from core.mix_engine.types import DynamicRangeAnalysis, DynamicRangeEstimate, PeakToAverageResult

_EPS = 1e-10

# Offset from a dBFS RMS level to a loudness-like figure
_LOUDNESS_OFFSET_DB = -23.0

# Expected dynamic range of uncompressed program material, dB
_REFERENCE_RANGE_DB = 20.0

# Ceiling used for breathing room, dBFS
_HEADROOM_CEILING_DB = -1.0

# Weights of the five estimators in the combined DR figure
_ESTIMATOR_WEIGHTS: dict[str, float] = {
    "crest_factor": 0.2,
    "segmented": 0.3,
    "loudness_variation": 0.2,
    "frequency_based": 0.15,
    "ebu": 0.15,
}
_COMBINED_MAX_DB = 60.0

# High-shelf pre-filter of the EBU-style estimator
_SHELF_FREQ_HZ = 1681.0
_SHELF_GAIN_DB = 3.99


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _to_db(value: float) -> float:
    return float(20.0 * np.log10(max(value, _EPS)))


def _percentile(sorted_values: np.ndarray, fraction: float) -> float:
    """Value at index int(fraction × n) of an already sorted array."""
    return float(sorted_values[int(fraction * sorted_values.size)])


def _window_rms(y: np.ndarray, window: int, hop: int) -> np.ndarray:
    """RMS of every full window starting strictly before len(y) − window."""
    n = y.shape[0]
    if window <= 0 or hop <= 0 or n <= window:
        return np.zeros(0, dtype=np.float64)
    starts = np.arange(0, n - window, hop)
    cumulative = np.concatenate(([0.0], np.cumsum(y**2)))
    ms = (cumulative[starts + window] - cumulative[starts]) / window
    return np.sqrt(np.maximum(ms, 0.0))


def _downmix(left: np.ndarray, right: np.ndarray | None) -> np.ndarray:
    lch = np.asarray(left, dtype=np.float64)
    if right is None:
        return lch
    return (lch + np.asarray(right, dtype=np.float64)) / 2.0


def _envelope(left: np.ndarray, right: np.ndarray | None) -> np.ndarray:
    env = np.abs(np.asarray(left, dtype=np.float64))
    if right is None:
        return env
    return np.maximum(env, np.abs(np.asarray(right, dtype=np.float64)))


def _design_high_shelf(
    sr: int, f0: float = _SHELF_FREQ_HZ, gain_db: float = _SHELF_GAIN_DB
) -> tuple[np.ndarray, np.ndarray]:
    """RBJ Audio EQ Cookbook high shelf with alpha = sin(w0) / 2.

    Args:
        sr:      Sample rate in Hz.
        f0:      Shelf midpoint frequency.
        gain_db: Shelf gain in dB.

    Returns:
        (b, a) coefficients normalised so a[0] == 1.
    """
    A = 10.0 ** (gain_db / 40.0)
    w0 = 2.0 * np.pi * f0 / sr
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / 2.0
    sqrt_a = np.sqrt(A)

    b0 = A * ((A + 1.0) + (A - 1.0) * cos_w0 + 2.0 * sqrt_a * alpha)
    b1 = -2.0 * A * ((A - 1.0) + (A + 1.0) * cos_w0)
    b2 = A * ((A + 1.0) + (A - 1.0) * cos_w0 - 2.0 * sqrt_a * alpha)
    a0 = (A + 1.0) - (A - 1.0) * cos_w0 + 2.0 * sqrt_a * alpha
    a1 = 2.0 * ((A - 1.0) - (A + 1.0) * cos_w0)
    a2 = (A + 1.0) - (A - 1.0) * cos_w0 - 2.0 * sqrt_a * alpha

    return np.array([b0, b1, b2]) / a0, np.array([1.0, a1 / a0, a2 / a0])


# ---------------------------------------------------------------------------
# DynamicRangeAnalysis
# ---------------------------------------------------------------------------


def _dynamic_range_recommendations(
    lufs_range: float, crest_factor: float, breathing_room: float, compression_ratio: float
) -> list[str]:
    recs: list[str] = []
    if lufs_range < 6.0:
        recs.append("Very low dynamic range - consider less aggressive compression")
    elif lufs_range > 20.0:
        recs.append("Very high dynamic range - may need gentle compression for consistency")
    if crest_factor < 8.0:
        recs.append("Low crest factor indicates heavy compression/limiting")
    elif crest_factor > 16.0:
        recs.append("High crest factor - consider gentle compression for cohesion")
    if breathing_room < 1.0:
        recs.append("Insufficient headroom - reduce peak levels")
    if compression_ratio > 8.0:
        recs.append("High compression ratio detected - check for over-compression")
    return recs


def analyze_dynamic_range(
    left: np.ndarray, right: np.ndarray | None, sample_rate: int
) -> DynamicRangeAnalysis:
    """Windowed RMS statistics of the (L + R) / 2 downmix.

    Windows are 100 ms long with a 25 ms hop.

    Args:
        left:        Left (or only) channel.
        right:       Right channel, or None for mono input.
        sample_rate: Sample rate in Hz.

    Returns:
        DynamicRangeAnalysis. Neutral when the signal is shorter than one window.

    Raises:
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    mono = _downmix(left, right)
    window = int(0.1 * sample_rate)
    rms = _window_rms(mono, window, window // 4)
    if rms.size == 0:
        return DynamicRangeAnalysis.neutral()

    levels = 20.0 * np.log10(np.maximum(rms, _EPS))
    ordered = np.sort(levels)
    p95 = _percentile(ordered, 0.95)
    p5 = _percentile(ordered, 0.05)
    lufs_range = p95 - p5

    peak = float(np.max(np.abs(mono)))
    mean_rms = float(np.mean(rms))
    crest_factor = float(20.0 * np.log10(peak / mean_rms)) if mean_rms > 0.0 and peak > 0.0 else 12.0

    if levels.size >= 2:
        variation = float(np.mean(np.abs(np.diff(levels))))
    else:
        variation = 2.0

    momentary = tuple(float(v) for v in levels if v > p95 - 3.0)
    compression_ratio = _REFERENCE_RANGE_DB / max(lufs_range, 1.0)
    breathing_room = _HEADROOM_CEILING_DB - _to_db(peak)

    return DynamicRangeAnalysis(
        lufs_range=lufs_range,
        short_term_variation=variation,
        momentary_peaks=momentary,
        crest_factor=crest_factor,
        percentile_95=p95,
        percentile_5=p5,
        compression_ratio=compression_ratio,
        breathing_room=breathing_room,
        recommendations=tuple(
            _dynamic_range_recommendations(lufs_range, crest_factor, breathing_room, compression_ratio)
        ),
    )


# ---------------------------------------------------------------------------
# PeakToAverageResult
# ---------------------------------------------------------------------------


def _peak_to_average_recommendations(
    peak_to_rms: float, true_peak_db: float, integrated: float, punchiness: float
) -> list[str]:
    recs: list[str] = []
    if peak_to_rms < 6.0:
        recs.append("Very low peak-to-average ratio - heavily compressed/limited")
    elif peak_to_rms > 20.0:
        recs.append("High peak-to-average ratio - very dynamic, may need gentle compression")
    if true_peak_db > -1.0:
        recs.append("True peaks above -1dBFS - reduce levels to prevent clipping")
    elif true_peak_db < -6.0:
        recs.append("Conservative peak levels - could be louder if needed")
    if integrated < -23.0:
        recs.append("Below broadcast standard (-23 LUFS) - consider increasing level")
    elif integrated > -14.0:
        recs.append("Above streaming standard (-14 LUFS) - may be too loud")
    if punchiness < 30.0:
        recs.append("Low punchiness - enhance transients or reduce compression")
    elif punchiness > 90.0:
        recs.append("Very punchy - may be too aggressive for some playback systems")
    return recs


def _loudness_range(env: np.ndarray, sample_rate: int) -> float:
    """95th − 10th percentile of non-overlapping 100 ms window loudness; 7.0 if none."""
    window = int(0.1 * sample_rate)
    rms = _window_rms(env, window, window)
    if rms.size == 0:
        return 7.0
    levels = np.sort(20.0 * np.log10(np.maximum(rms, _EPS)) + _LOUDNESS_OFFSET_DB)
    return _percentile(levels, 0.95) - _percentile(levels, 0.10)


def _punchiness(env: np.ndarray, mean_square: float) -> float:
    """First-difference energy relative to signal energy, scaled to 0–100."""
    if mean_square == 0.0:
        return 50.0
    diffs = np.diff(env)
    diff_energy = float(np.mean(diffs**2)) if diffs.size else 0.0
    return min(100.0, diff_energy / mean_square * 50.0)


def analyze_peak_to_average(
    left: np.ndarray, right: np.ndarray | None, sample_rate: int
) -> PeakToAverageResult:
    """Peak versus average level of the per-sample max(|L|, |R|) envelope.

    Args:
        left:        Left (or only) channel.
        right:       Right channel, or None for mono input.
        sample_rate: Sample rate in Hz.

    Returns:
        PeakToAverageResult. Neutral for empty input.

    Raises:
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    env = _envelope(left, right)
    if env.size == 0:
        return PeakToAverageResult.neutral()

    true_peak_db = _to_db(float(np.max(env)))
    mean_square = float(np.mean(env**2))
    average_level_db = _to_db(float(np.sqrt(mean_square)))
    peak_to_rms = true_peak_db - average_level_db

    integrated = average_level_db + _LOUDNESS_OFFSET_DB
    momentary = integrated + 2.0
    punchiness = _punchiness(env, mean_square)

    return PeakToAverageResult(
        peak_to_rms=peak_to_rms,
        peak_to_lufs=true_peak_db - integrated,
        true_peak_db=true_peak_db,
        average_level_db=average_level_db,
        momentary_loudness=momentary,
        integrated_loudness=integrated,
        loudness_range=_loudness_range(env, sample_rate),
        punchiness=punchiness,
        recommendations=tuple(
            _peak_to_average_recommendations(peak_to_rms, true_peak_db, integrated, punchiness)
        ),
    )


# ---------------------------------------------------------------------------
# DynamicRangeEstimate: five estimators
# ---------------------------------------------------------------------------


def _crest_factor_estimate(y: np.ndarray) -> float:
    rms = float(np.sqrt(np.mean(y**2)))
    if rms == 0.0:
        return 0.0
    return float(20.0 * np.log10(float(np.max(np.abs(y))) / rms))


def _segmented_estimate(y: np.ndarray) -> float:
    """Median crest factor over ~20 segments (at least 1024 samples each)."""
    n = y.shape[0]
    segment = max(1024, n // 20)
    crests: list[float] = []
    for start in range(0, n, segment):
        chunk = y[start : start + segment]
        rms = float(np.sqrt(np.mean(chunk**2)))
        if rms > 0.001:
            crests.append(float(20.0 * np.log10(float(np.max(np.abs(chunk))) / rms)))
    if not crests:
        return 0.0
    return sorted(crests)[len(crests) // 2]


def _loudness_variation_estimate(y: np.ndarray) -> float:
    """95th − 10th percentile of 1024-sample block levels."""
    block = 1024
    levels: list[float] = []
    for start in range(0, y.shape[0], block):
        chunk = y[start : start + block]
        rms = float(np.sqrt(np.mean(chunk**2)))
        if rms > 0.0001:
            levels.append(float(20.0 * np.log10(rms)) - _LOUDNESS_OFFSET_DB)
    if not levels:
        return 0.0
    ordered = np.sort(np.array(levels))
    return _percentile(ordered, 0.95) - _percentile(ordered, 0.10)


def _band_spread_db(mags: np.ndarray) -> float:
    audible = np.sort(mags[mags > 0.001])
    if audible.size <= 2:
        return 0.0
    p95 = _percentile(audible, 0.95)
    p10 = _percentile(audible, 0.10)
    if p95 <= p10:
        return 0.0
    return float(20.0 * np.log10(p95 / p10))


def _frequency_estimate(
    y: np.ndarray, sample_rate: int, fft_size: int, min_fft_size: int
) -> float:
    """0.3 × low-band (20–500 Hz) + 0.7 × mid-band (500–5 000 Hz) magnitude spread."""
    spectrum = compute_spectrum(y, sample_rate, max_size=fft_size, min_size=min_fft_size)
    if spectrum.is_empty:
        return 0.0
    width = spectrum.bin_width
    mags = spectrum.magnitudes
    low = _band_spread_db(mags[int(20.0 / width) : int(500.0 / width)])
    mid = _band_spread_db(mags[int(500.0 / width) : int(5000.0 / width)])
    return 0.3 * low + 0.7 * mid


def _ebu_estimate(y: np.ndarray, sample_rate: int) -> float:
    """Loudness range of high-shelf-weighted 400 ms blocks, gated 70 LU below the loudest.

    Returns 0.0 when the shelf frequency is at or above Nyquist.
    """
    if _SHELF_FREQ_HZ >= sample_rate / 2.0:
        return 0.0
    b, a = _design_high_shelf(sample_rate)
    weighted = scipy_signal.lfilter(b, a, y)

    block = max(1, int(0.4 * sample_rate))
    levels: list[float] = []
    for start in range(0, weighted.shape[0], block):
        ms = float(np.mean(weighted[start : start + block] ** 2))
        if ms > 0.0001:
            levels.append(-0.691 + 10.0 * float(np.log10(ms)))
    if not levels:
        return 0.0

    gate = max(levels) - 70.0
    gated = np.sort(np.array([v for v in levels if v > gate]))
    if gated.size <= 1:
        return 0.0
    return _percentile(gated, 0.95) - _percentile(gated, 0.10)


def combine_estimates(estimates: dict[str, float]) -> float:
    """Weighted mean of the estimators whose value lies strictly inside (0, 100).

    Returns 0.0 when no estimator is usable; the result is clamped to [0, 60].
    """
    weighted = 0.0
    total_weight = 0.0
    for name, weight in _ESTIMATOR_WEIGHTS.items():
        value = estimates[name]
        if 0.0 < value < 100.0:
            weighted += value * weight
            total_weight += weight
    if total_weight == 0.0:
        return 0.0
    return float(np.clip(weighted / total_weight, 0.0, _COMBINED_MAX_DB))


def estimate_dynamic_range(
    samples: np.ndarray,
    sample_rate: int,
    *,
    fft_size: int = 2048,
    min_fft_size: int = 512,
) -> DynamicRangeEstimate:
    """Run the five dynamic range estimators on one channel and blend them.

    Estimators:
        crest_factor:       whole-signal peak-to-RMS, dB
        segmented:          median per-segment crest factor
        loudness_variation: spread of 1024-sample block levels
        frequency_based:    spectral magnitude spread in low and mid bands
        ebu:                spread of shelf-weighted 400 ms block loudness

    Args:
        samples:      1-D sample array (primary channel).
        sample_rate:  Sample rate in Hz.
        fft_size:     FFT size cap for the frequency-based estimator.
        min_fft_size: Minimum FFT size for the frequency-based estimator.

    Returns:
        DynamicRangeEstimate with ``combined`` in [0, 60].

    Raises:
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    y = np.asarray(samples, dtype=np.float64)
    if y.size == 0:
        return DynamicRangeEstimate.neutral()

    estimates = {
        "crest_factor": _crest_factor_estimate(y),
        "segmented": _segmented_estimate(y),
        "loudness_variation": _loudness_variation_estimate(y),
        "frequency_based": _frequency_estimate(y, sample_rate, fft_size, min_fft_size),
        "ebu": _ebu_estimate(y, sample_rate),
    }
    return DynamicRangeEstimate(**estimates, combined=combine_estimates(estimates))
