"""
core/mix_engine/fft.py — Windowed FFT core shared by every frequency-domain analyzer.

Implements:
    - Power-of-two FFT sizing with a per-call cap and a minimum size
    - Hann-windowed real FFT magnitudes, scaled by 1/N only
    - Band energy over a frequency range (sum of squared magnitudes)
    - Loudest-window selection (max Σ|x| with 50% overlap)
    - A-weighting approximation for perceptual band weighting

Design:
    - Pure: numpy arrays in, MagnitudeSpectrum / floats out.
    - Too-short input is not an error: it yields an empty spectrum and every
      helper treats an empty spectrum as zero energy.
    - Magnitudes are deliberately left unnormalised beyond 1/N; downstream
      consumers only use relative band energies.
"""

from __future__ import annotations

import numpy as np
from scipy import signal as scipy_signal

from core.mix_engine.types import MagnitudeSpectrum

DEFAULT_MAX_FFT_SIZE = 2048
DEFAULT_MIN_FFT_SIZE = 512

# A-weighting pole frequencies (Hz)
_A_F1 = 20.6
_A_F2 = 107.7
_A_F3 = 737.9
_A_F4 = 12194.0


def fft_size_for(n_samples: int, max_size: int, min_size: int = DEFAULT_MIN_FFT_SIZE) -> int:
    """Return the FFT size for an input of ``n_samples``.

    The size is the largest power of two <= n_samples, capped at max_size.
    Returns 0 when that size is below min_size.
    """
    if n_samples <= 0:
        return 0
    size = min(1 << (int(n_samples).bit_length() - 1), max_size)
    return size if size >= min_size else 0


def compute_spectrum(
    samples: np.ndarray,
    sample_rate: float,
    *,
    max_size: int = DEFAULT_MAX_FFT_SIZE,
    min_size: int = DEFAULT_MIN_FFT_SIZE,
) -> MagnitudeSpectrum:
    """Compute the magnitude spectrum of the start of ``samples``.

    The first ``fft_size`` samples are multiplied by a Hann window, transformed
    with a real FFT and scaled: ``|X[k]| / fft_size`` for ``k < fft_size / 2``.

    Args:
        samples:     1-D sample array.
        sample_rate: Sample rate in Hz (> 0).
        max_size:    FFT size cap (power of two).
        min_size:    Minimum FFT size; shorter inputs give an empty spectrum.

    Returns:
        MagnitudeSpectrum with ``fft_size // 2`` bins, or an empty spectrum.

    Raises:
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    y = np.asarray(samples, dtype=np.float64)
    size = fft_size_for(y.shape[0], max_size, min_size)
    if size == 0:
        return MagnitudeSpectrum.empty(sample_rate)

    window = scipy_signal.get_window("hann", size)
    spectrum = np.fft.rfft(y[:size] * window)
    magnitudes = np.abs(spectrum[: size // 2]) / size
    return MagnitudeSpectrum(magnitudes=magnitudes, fft_size=size, sample_rate=float(sample_rate))


def _bin_range(spectrum: MagnitudeSpectrum, low_hz: float, high_hz: float) -> tuple[int, int]:
    """Bins [start, end) covering low_hz..high_hz, clamped to the spectrum."""
    width = spectrum.bin_width
    start = max(0, int(low_hz / width))
    end = min(spectrum.magnitudes.size, int(high_hz / width))
    return start, end


def band_energy(
    spectrum: MagnitudeSpectrum,
    low_hz: float,
    high_hz: float,
    weights: np.ndarray | None = None,
) -> float:
    """Sum of squared magnitudes between low_hz (inclusive) and high_hz (exclusive).

    Args:
        spectrum: Magnitude spectrum.
        low_hz:   Lower edge in Hz.
        high_hz:  Upper edge in Hz.
        weights:  Optional per-bin linear weights applied to magnitudes.

    Returns:
        Band energy, 0.0 for an empty spectrum or an empty bin range.
    """
    if spectrum.is_empty:
        return 0.0
    start, end = _bin_range(spectrum, low_hz, high_hz)
    if start >= end:
        return 0.0
    mags = spectrum.magnitudes[start:end]
    if weights is not None:
        mags = mags * weights[start:end]
    return float(np.sum(mags**2))


def total_energy(spectrum: MagnitudeSpectrum, weights: np.ndarray | None = None) -> float:
    """Sum of squared magnitudes over the whole spectrum."""
    if spectrum.is_empty:
        return 0.0
    mags = spectrum.magnitudes if weights is None else spectrum.magnitudes * weights
    return float(np.sum(mags**2))


def spectral_centroid(spectrum: MagnitudeSpectrum, *, floor: float = 0.001) -> float:
    """Magnitude-weighted mean frequency over bins above 20 Hz and above ``floor``."""
    if spectrum.is_empty:
        return 0.0
    freqs = spectrum.frequencies()
    mags = spectrum.magnitudes
    mask = (freqs > 20.0) & (mags > floor)
    total = float(np.sum(mags[mask]))
    if total <= 0.0:
        return 0.0
    return float(np.sum(freqs[mask] * mags[mask]) / total)


def loudest_window_start(samples: np.ndarray, window_size: int) -> int:
    """Start index of the window with the largest Σ|x|.

    Candidate windows start every ``window_size // 2`` samples, strictly before
    ``len(samples) − window_size``. Returns 0 when the input is no longer than
    one window or entirely silent.
    """
    y = np.abs(np.asarray(samples, dtype=np.float64))
    n = y.shape[0]
    step = max(1, window_size // 2)
    if n <= window_size:
        return 0

    starts = np.arange(0, n - window_size, step)
    cumulative = np.concatenate(([0.0], np.cumsum(y)))
    energies = cumulative[starts + window_size] - cumulative[starts]
    return int(starts[int(np.argmax(energies))])


def loudest_window(samples: np.ndarray, window_size: int) -> np.ndarray:
    """Return the loudest ``window_size`` slice of ``samples`` (shorter if the input is)."""
    y = np.asarray(samples, dtype=np.float64)
    start = loudest_window_start(y, window_size)
    return y[start : start + window_size]


# ---------------------------------------------------------------------------
# Perceptual weighting
# ---------------------------------------------------------------------------


def a_weighting_db(freq_hz: np.ndarray | float) -> np.ndarray:
    """A-weighting gain in dB (IEC 61672 approximation, +2 dB normalisation).

    Frequencies <= 0 map to −100 dB.
    """
    f = np.atleast_1d(np.asarray(freq_hz, dtype=np.float64))
    out = np.full(f.shape, -100.0)
    pos = f > 0
    f2 = f[pos] ** 2
    numerator = (_A_F4**2) * f2**2
    denominator = (
        (f2 + _A_F1**2)
        * np.sqrt((f2 + _A_F2**2) * (f2 + _A_F3**2))
        * (f2 + _A_F4**2)
    )
    out[pos] = 20.0 * np.log10(numerator / denominator) + 2.0
    return out


def perceptual_weights(spectrum: MagnitudeSpectrum) -> np.ndarray:
    """Linear A-weighting per bin, clamped to [0.001, 10]; 0.01 below 1 Hz."""
    if spectrum.is_empty:
        return np.zeros(0, dtype=np.float64)
    freqs = spectrum.frequencies()
    weights = np.clip(10.0 ** (a_weighting_db(freqs) / 20.0), 0.001, 10.0)
    weights[freqs < 1.0] = 0.01
    return weights
