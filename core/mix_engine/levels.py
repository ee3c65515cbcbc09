"""
core/mix_engine/levels.py — Peak, RMS, gated loudness and clipping detection.

Implements:
    - Sample peak and RMS in dBFS with a −100 dB floor for silence
    - Clipping (any |x| >= 0.99) and sustained clipping (runs of 3+ samples
      near the threshold on more than 0.1% of the signal)
    - Gated loudness: first-order 38 Hz high-pass, 400 ms blocks at 25% hop,
      absolute gate at −70 LU, relative gate 10 LU below the surviving mean
    - Perceived loudness from an amplitude histogram (reported separately)

Design:
    - Pure: numpy arrays in, LevelResult out.
    - Gate decisions and the relative-gate mean work in the dB domain.
    - The high-pass is applied with scipy.signal.lfilter (b=[α, −α], a=[1, −α]).
"""

from __future__ import annotations

import numpy as np
from scipy import signal as scipy_signal

from core.mix_engine.types import LevelResult

SILENCE_DB = -100.0

CLIP_THRESHOLD = 0.99
_SUSTAIN_FACTOR = 0.97
_SUSTAIN_RUN = 3

_HIGHPASS_CUTOFF_HZ = 38.0
_BLOCK_SECONDS = 0.4
_HOP_FRACTION = 0.25
_LOUDNESS_OFFSET = -0.691
_ABSOLUTE_GATE_LU = -70.0
_RELATIVE_GATE_LU = -10.0

_HISTOGRAM_BINS = 100
_PERCEPTUAL_EXPONENT = 0.67
_PERCEPTUAL_OFFSET_DB = -23.0


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def amplitude_to_db(value: float) -> float:
    """20·log10(value), floored at −100 dB for zero or negative input."""
    if value <= 0.0:
        return SILENCE_DB
    return max(SILENCE_DB, float(20.0 * np.log10(value)))


def _first_order_highpass(y: np.ndarray, sr: int, cutoff_hz: float) -> np.ndarray:
    """One-pole RC high-pass: y[n] = α·(y[n−1] + x[n] − x[n−1])."""
    alpha = 1.0 / (1.0 + 2.0 * np.pi * cutoff_hz / sr)
    return scipy_signal.lfilter([alpha, -alpha], [1.0, -alpha], y)


def _block_mean_squares(y: np.ndarray, block: int, hop: int) -> np.ndarray:
    """Mean square of every full block starting at multiples of ``hop``."""
    n = y.shape[0]
    if block <= 0 or hop <= 0 or n < block:
        return np.zeros(0, dtype=np.float64)
    starts = np.arange(0, n - block + 1, hop)
    cumulative = np.concatenate(([0.0], np.cumsum(y**2)))
    return (cumulative[starts + block] - cumulative[starts]) / block


def gated_loudness(samples: np.ndarray, sample_rate: int) -> float:
    """Two-stage gated loudness of a mono signal.

    Algorithm:
        1. High-pass at 38 Hz.
        2. Mean square per 400 ms block, 100 ms hop.
        3. Block loudness = −0.691 + 10·log10(ms).
        4. Keep blocks above −70 LU (absolute gate).
        5. Keep blocks above mean(surviving) − 10 LU (relative gate).
        6. Return the mean of what remains.

    Returns:
        Loudness in LUFS-like units, −100.0 if no block survives.
    """
    y = _first_order_highpass(np.asarray(samples, dtype=np.float64), sample_rate, _HIGHPASS_CUTOFF_HZ)
    block = int(_BLOCK_SECONDS * sample_rate)
    hop = int(block * _HOP_FRACTION)

    ms = _block_mean_squares(y, block, hop)
    ms = ms[ms > 0.0]
    if ms.size == 0:
        return SILENCE_DB

    loudness = _LOUDNESS_OFFSET + 10.0 * np.log10(ms)
    gated = loudness[loudness > _ABSOLUTE_GATE_LU]
    if gated.size == 0:
        return SILENCE_DB

    relative_gate = float(np.mean(gated)) + _RELATIVE_GATE_LU
    final = gated[gated > relative_gate]
    if final.size == 0:
        return SILENCE_DB
    return float(np.mean(final))


def sustained_clip_count(samples: np.ndarray, threshold: float = CLIP_THRESHOLD) -> int:
    """Count clipped samples that start a run of 3+ samples at >= 0.97 × threshold."""
    mags = np.abs(np.asarray(samples, dtype=np.float64))
    n = mags.shape[0]
    if n < _SUSTAIN_RUN:
        return 0
    near = mags >= threshold * _SUSTAIN_FACTOR
    run = near[: n - _SUSTAIN_RUN + 1].copy()
    for offset in range(1, _SUSTAIN_RUN):
        run &= near[offset : n - _SUSTAIN_RUN + 1 + offset]
    clipped = mags[: n - _SUSTAIN_RUN + 1] >= threshold
    return int(np.count_nonzero(clipped & run))


def perceived_loudness(samples: np.ndarray) -> float:
    """Histogram-based loudness: mean of |x|^0.67 over 100 amplitude bins, −23 dB.

    Returns −100.0 for silence.
    """
    mags = np.abs(np.asarray(samples, dtype=np.float64))
    if mags.size == 0:
        return SILENCE_DB
    bins = np.minimum((mags * (_HISTOGRAM_BINS - 1)).astype(np.int64), _HISTOGRAM_BINS - 1)
    counts = np.bincount(bins, minlength=_HISTOGRAM_BINS)
    amplitudes = np.arange(_HISTOGRAM_BINS, dtype=np.float64) / (_HISTOGRAM_BINS - 1)
    weighted = float(np.sum(amplitudes**_PERCEPTUAL_EXPONENT * counts)) / mags.size
    if weighted <= 0.0:
        return SILENCE_DB
    return float(20.0 * np.log10(weighted)) + _PERCEPTUAL_OFFSET_DB


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_levels(samples: np.ndarray, sample_rate: int) -> LevelResult:
    """Measure peak, RMS, gated loudness and clipping of a mono signal.

    Args:
        samples:     1-D sample array (primary channel).
        sample_rate: Sample rate in Hz.

    Returns:
        LevelResult. ``LevelResult.silent()`` for empty input.

    Raises:
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    y = np.asarray(samples, dtype=np.float64)
    n = y.shape[0]
    if n == 0:
        return LevelResult.silent()

    peak = float(np.max(np.abs(y)))
    rms = float(np.sqrt(np.mean(y**2)))

    has_clipping = peak >= CLIP_THRESHOLD
    has_sustained = sustained_clip_count(y) > n // 1000

    return LevelResult(
        peak_db=amplitude_to_db(peak),
        rms_db=amplitude_to_db(rms),
        loudness_lufs=gated_loudness(y, sample_rate),
        perceived_loudness=perceived_loudness(y),
        has_clipping=has_clipping or has_sustained,
        has_sustained_clipping=has_sustained,
    )
