"""
tests/test_levels.py — Peak, RMS, gated loudness and clipping detection.
"""

from __future__ import annotations

import numpy as np
import pytest

from core.mix_engine.levels import (
    amplitude_to_db,
    analyze_levels,
    gated_loudness,
    perceived_loudness,
    sustained_clip_count,
)

SR = 44100
DURATION = 2.0
N = int(SR * DURATION)


def _sine(freq_hz: float, amplitude: float = 0.5, sr: int = SR, n: int = N) -> np.ndarray:
    t = np.linspace(0, n / sr, n, endpoint=False)
    return amplitude * np.sin(2.0 * np.pi * freq_hz * t)


def _white_noise(amplitude: float = 0.3, n: int = N, seed: int = 42) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return amplitude * rng.standard_normal(n)


# ---------------------------------------------------------------------------
# dB conversion
# ---------------------------------------------------------------------------


class TestAmplitudeToDb:
    def test_unity_is_zero(self) -> None:
        assert amplitude_to_db(1.0) == pytest.approx(0.0)

    def test_half_is_minus_six(self) -> None:
        assert amplitude_to_db(0.5) == pytest.approx(-6.0206, abs=1e-3)

    def test_zero_floors(self) -> None:
        assert amplitude_to_db(0.0) == -100.0

    def test_tiny_value_floors(self) -> None:
        assert amplitude_to_db(1e-9) == -100.0


# ---------------------------------------------------------------------------
# Peak / RMS
# ---------------------------------------------------------------------------


class TestPeakAndRms:
    def test_silence(self) -> None:
        result = analyze_levels(np.zeros(N), SR)
        assert result.peak_db == -100.0
        assert result.rms_db == -100.0
        assert result.loudness_lufs == -100.0
        assert result.perceived_loudness == -100.0
        assert result.has_clipping is False

    def test_minus_six_dbfs_sine(self) -> None:
        result = analyze_levels(_sine(1000.0, 0.5), SR)
        assert result.peak_db == pytest.approx(-6.02, abs=0.05)
        assert result.rms_db == pytest.approx(-9.03, abs=0.05)
        assert result.crest_factor_db == pytest.approx(3.01, abs=0.1)

    def test_full_scale_sine_peak(self) -> None:
        result = analyze_levels(_sine(1000.0, 1.0), SR)
        assert result.peak_db == pytest.approx(0.0, abs=0.05)

    def test_empty_input_is_silent(self) -> None:
        result = analyze_levels(np.zeros(0), SR)
        assert result.peak_db == -100.0

    def test_invalid_sample_rate_raises(self) -> None:
        with pytest.raises(ValueError, match="sample_rate must be positive"):
            analyze_levels(_sine(1000.0), 0)


# ---------------------------------------------------------------------------
# Clipping
# ---------------------------------------------------------------------------


class TestClipping:
    def test_full_scale_sine_clips(self) -> None:
        assert analyze_levels(_sine(1000.0, 1.0), SR).has_clipping is True

    def test_quiet_sine_does_not_clip(self) -> None:
        result = analyze_levels(_sine(1000.0, 0.5), SR)
        assert result.has_clipping is False
        assert result.has_sustained_clipping is False

    def test_single_spike_is_not_sustained(self) -> None:
        y = np.zeros(N)
        y[1000] = 1.0
        result = analyze_levels(y, SR)
        assert result.has_clipping is True
        assert result.has_sustained_clipping is False

    def test_hard_clipped_sine_is_sustained(self) -> None:
        y = np.clip(_sine(100.0, 2.0), -1.0, 1.0)
        result = analyze_levels(y, SR)
        assert result.has_sustained_clipping is True
        assert result.has_clipping is True

    def test_run_count(self) -> None:
        assert sustained_clip_count(np.array([1.0, 1.0, 1.0, 0.0, 0.0])) == 1
        assert sustained_clip_count(np.array([1.0, 1.0, 1.0, 1.0, 0.0])) == 2

    def test_run_needs_three_samples(self) -> None:
        assert sustained_clip_count(np.array([0.0, 1.0, 1.0, 0.0, 1.0])) == 0

    def test_near_threshold_neighbours_extend_run(self) -> None:
        # 0.97 × 0.99 ≈ 0.9603: 0.965 counts as "near" but not as clipped
        assert sustained_clip_count(np.array([1.0, 0.965, 0.965, 0.0])) == 1

    def test_too_short(self) -> None:
        assert sustained_clip_count(np.array([1.0, 1.0])) == 0


# ---------------------------------------------------------------------------
# Gated loudness
# ---------------------------------------------------------------------------


class TestGatedLoudness:
    def test_sine_loudness(self) -> None:
        # mean square 0.125 → −0.691 + 10·log10(0.125)
        assert gated_loudness(_sine(1000.0, 0.5), SR) == pytest.approx(-9.72, abs=0.1)

    def test_louder_signal_is_louder(self) -> None:
        quiet = gated_loudness(_sine(1000.0, 0.1), SR)
        loud = gated_loudness(_sine(1000.0, 0.5), SR)
        assert loud - quiet == pytest.approx(13.98, abs=0.1)

    def test_shorter_than_one_block(self) -> None:
        assert gated_loudness(_sine(1000.0, n=SR // 4), SR) == -100.0

    def test_silence(self) -> None:
        assert gated_loudness(np.zeros(N), SR) == -100.0

    def test_absolute_gate_ignores_near_silence(self) -> None:
        """Noise 90 dB down is gated out: same result as true silence."""
        tone = _sine(1000.0, 0.5)
        with_silence = np.concatenate([tone, np.zeros(N)])
        with_noise = np.concatenate([tone, _white_noise(1e-5)])
        assert gated_loudness(with_noise, SR) == pytest.approx(
            gated_loudness(with_silence, SR), abs=1e-3
        )


# ---------------------------------------------------------------------------
# Perceived loudness
# ---------------------------------------------------------------------------


class TestPerceivedLoudness:
    def test_silence(self) -> None:
        assert perceived_loudness(np.zeros(N)) == -100.0

    def test_monotonic_in_level(self) -> None:
        assert perceived_loudness(_sine(1000.0, 0.8)) > perceived_loudness(_sine(1000.0, 0.2))

    def test_empty(self) -> None:
        assert perceived_loudness(np.zeros(0)) == -100.0
