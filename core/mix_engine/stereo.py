"""
core/mix_engine/stereo.py — Stereo field analysis from L/R and Mid/Side energy.

Implements:
    - Pearson correlation of L and R
    - Width from the side-energy ratio, scaled to match professional meters
    - Mono compatibility (energy kept by the L+R fold-down)
    - Phase coherence: time-domain (from correlation) blended with
      frequency-domain (per-bin magnitude similarity)
    - Center image, side energy and L/R balance
    - Advisory recommendations

Design:
    - Pure: two numpy arrays in, StereoCorrelationResult out.
    - Mono input (right is None) returns ``StereoCorrelationResult.neutral()``.
    - Mid = (L + R) / 2, Side = (L − R) / 2.
"""

from __future__ import annotations

import numpy as np

from core.mix_engine.fft import compute_spectrum
from core.mix_engine.types import StereoCorrelationResult

# Correlation reported when either channel has zero variance
_FLAT_CORRELATION = 0.7

# Fallbacks for all-zero input
_SILENT_SIDE_ENERGY = 0.3
_SILENT_CENTER_IMAGE = 0.7
_SILENT_MONO_COMPAT = 85.0

# Spectral bins below this magnitude are ignored by frequency coherence
_COHERENCE_FLOOR = 0.001


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _correlation(left: np.ndarray, right: np.ndarray) -> float:
    dl = left - np.mean(left)
    dr = right - np.mean(right)
    denominator = float(np.sqrt(np.sum(dl**2) * np.sum(dr**2)))
    if denominator == 0.0:
        return _FLAT_CORRELATION
    return float(np.clip(np.sum(dl * dr) / denominator, -1.0, 1.0))


def width_from_side_ratio(side_ratio: float) -> float:
    """Map the raw side-energy ratio onto a 0–1 width scale.

    Piecewise linear: below 0.25 the ratio is expanded (×1.6), between 0.25
    and 0.40 it rises from 0.40 to 0.65, above 0.40 it approaches 1.0.
    """
    if side_ratio < 0.25:
        return side_ratio * 1.6
    if side_ratio < 0.40:
        return 0.4 + (side_ratio - 0.25) * 1.67
    return 0.65 + (side_ratio - 0.40) * 0.583


def _time_coherence(correlation: float) -> float:
    c = abs(correlation)
    if c > 0.8:
        return 0.85 + (c - 0.8) * 0.5
    if c > 0.3:
        return 0.5 + (c - 0.3) * 0.7
    return c * 1.67


def _frequency_coherence(
    left: np.ndarray,
    right: np.ndarray,
    sample_rate: int,
    fft_size: int,
    min_fft_size: int,
) -> float | None:
    """Mean min/max magnitude ratio over bins where both channels are audible.

    Returns None when the input is too short for an FFT, 0.0 when no bin
    clears the floor in both channels.
    """
    spec_l = compute_spectrum(left, sample_rate, max_size=fft_size, min_size=min_fft_size)
    spec_r = compute_spectrum(right, sample_rate, max_size=fft_size, min_size=min_fft_size)
    if spec_l.is_empty or spec_r.is_empty:
        return None

    mags_l = spec_l.magnitudes
    mags_r = spec_r.magnitudes
    mask = (mags_l > _COHERENCE_FLOOR) & (mags_r > _COHERENCE_FLOOR)
    if not np.any(mask):
        return 0.0
    lo = np.minimum(mags_l[mask], mags_r[mask])
    hi = np.maximum(mags_l[mask], mags_r[mask])
    return float(np.mean(lo / hi))


def _stereo_recommendations(
    correlation: float,
    mono_compatibility: float,
    width: float,
    center_image: float,
    phase_coherence: float,
) -> list[str]:
    recs: list[str] = []
    if correlation < 0.3:
        recs.append("Poor stereo correlation - check for phase issues")
    if mono_compatibility < 70.0:
        recs.append("Poor mono compatibility - fix phase relationships")
    if width < 0.5:
        recs.append("Stereo image is too narrow - add stereo width")
    elif width > 1.8:
        recs.append("Stereo image too wide - may cause phase issues")
    if center_image < 0.5:
        recs.append("Weak center image - ensure key elements are centered")
    if phase_coherence < 0.7:
        recs.append("Phase coherence issues detected")
    return recs


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_stereo(
    left: np.ndarray,
    right: np.ndarray | None,
    sample_rate: int,
    *,
    coherence_fft_size: int = 1024,
    min_fft_size: int = 512,
) -> StereoCorrelationResult:
    """Measure the stereo field of a two-channel signal.

    Args:
        left:               Left channel samples.
        right:              Right channel samples, or None for mono input.
        sample_rate:        Sample rate in Hz.
        coherence_fft_size: FFT size cap for frequency-domain coherence.
        min_fft_size:       Minimum FFT size for frequency-domain coherence.

    Returns:
        StereoCorrelationResult. Neutral (is_mono=True) for mono input.

    Raises:
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    if right is None:
        return StereoCorrelationResult.neutral()

    lch = np.asarray(left, dtype=np.float64)
    rch = np.asarray(right, dtype=np.float64)
    if lch.shape != rch.shape:
        raise ValueError(f"channel lengths differ: {lch.shape[0]} vs {rch.shape[0]}")
    if lch.size == 0:
        return StereoCorrelationResult.neutral()

    correlation = _correlation(lch, rch)

    mid_energy = float(np.sum(((lch + rch) / 2.0) ** 2))
    side_energy_raw = float(np.sum(((lch - rch) / 2.0) ** 2))
    ms_total = mid_energy + side_energy_raw
    if ms_total > 0.0:
        side_ratio = side_energy_raw / ms_total
        side_energy = side_ratio
        center_image = mid_energy / ms_total
    else:
        # No signal: no width; the reported energy split keeps its defaults
        side_ratio = 0.0
        side_energy = _SILENT_SIDE_ENERGY
        center_image = _SILENT_CENTER_IMAGE
    width = width_from_side_ratio(side_ratio)

    energy_l = float(np.sum(lch**2))
    energy_r = float(np.sum(rch**2))
    lr_total = energy_l + energy_r
    if lr_total > 0.0:
        balance = float(np.clip((energy_r - energy_l) / lr_total, -1.0, 1.0))
        folded = float(np.sum((lch + rch) ** 2))
        mono_compatibility = min(100.0, folded / (2.0 * lr_total) * 100.0)
    else:
        balance = 0.0
        mono_compatibility = _SILENT_MONO_COMPAT

    time_coherence = _time_coherence(correlation)
    freq_coherence = _frequency_coherence(lch, rch, sample_rate, coherence_fft_size, min_fft_size)
    if freq_coherence is None:
        phase_coherence = time_coherence
    else:
        phase_coherence = (time_coherence + freq_coherence) / 2.0
    phase_coherence = float(np.clip(phase_coherence, 0.0, 1.0))

    return StereoCorrelationResult(
        correlation=correlation,
        width=width,
        mono_compatibility=mono_compatibility,
        phase_coherence=phase_coherence,
        center_image=center_image,
        side_energy=side_energy,
        balance=balance,
        is_mono=False,
        recommendations=tuple(
            _stereo_recommendations(
                correlation, mono_compatibility, width, center_image, phase_coherence
            )
        ),
    )
