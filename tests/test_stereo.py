"""
tests/test_stereo.py — Stereo correlation, width, mono compatibility and coherence.
"""

from __future__ import annotations

import numpy as np
import pytest

from core.mix_engine.stereo import analyze_stereo, width_from_side_ratio

SR = 44100
DURATION = 1.0
N = int(SR * DURATION)


def _sine(freq_hz: float, amplitude: float = 0.5, sr: int = SR, n: int = N) -> np.ndarray:
    t = np.linspace(0, n / sr, n, endpoint=False)
    return amplitude * np.sin(2.0 * np.pi * freq_hz * t)


def _white_noise(amplitude: float = 0.3, n: int = N, seed: int = 42) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return amplitude * rng.standard_normal(n)


# ---------------------------------------------------------------------------
# Identical channels
# ---------------------------------------------------------------------------


class TestIdenticalChannels:
    def test_correlation_is_one(self) -> None:
        tone = _sine(1000.0)
        result = analyze_stereo(tone, tone.copy(), SR)
        assert result.correlation == pytest.approx(1.0)

    def test_full_mono_compatibility(self) -> None:
        tone = _sine(1000.0)
        result = analyze_stereo(tone, tone.copy(), SR)
        assert result.mono_compatibility == pytest.approx(100.0)

    def test_no_width(self) -> None:
        tone = _sine(1000.0)
        result = analyze_stereo(tone, tone.copy(), SR)
        assert result.width == pytest.approx(0.0)
        assert result.side_energy == pytest.approx(0.0)
        assert result.center_image == pytest.approx(1.0)
        assert result.balance == pytest.approx(0.0)

    def test_high_phase_coherence(self) -> None:
        tone = _sine(1000.0)
        result = analyze_stereo(tone, tone.copy(), SR)
        # time 0.95, frequency 1.0
        assert result.phase_coherence == pytest.approx(0.975, abs=1e-6)

    def test_narrow_image_recommended(self) -> None:
        tone = _sine(1000.0)
        result = analyze_stereo(tone, tone.copy(), SR)
        assert any("too narrow" in r for r in result.recommendations)
        assert result.is_mono is False


# ---------------------------------------------------------------------------
# Polarity-inverted channels
# ---------------------------------------------------------------------------


class TestInvertedChannels:
    def test_correlation_is_minus_one(self) -> None:
        tone = _sine(1000.0)
        result = analyze_stereo(tone, -tone, SR)
        assert result.correlation == pytest.approx(-1.0)

    def test_cancels_in_mono(self) -> None:
        tone = _sine(1000.0)
        result = analyze_stereo(tone, -tone, SR)
        assert result.mono_compatibility == pytest.approx(0.0, abs=1e-9)

    def test_all_side_energy(self) -> None:
        tone = _sine(1000.0)
        result = analyze_stereo(tone, -tone, SR)
        assert result.side_energy == pytest.approx(1.0)
        assert result.width == pytest.approx(1.0, abs=1e-3)

    def test_recommendations_flag_problems(self) -> None:
        tone = _sine(1000.0)
        recs = analyze_stereo(tone, -tone, SR).recommendations
        assert any("phase issues" in r for r in recs)
        assert any("mono compatibility" in r for r in recs)
        assert any("center image" in r for r in recs)


# ---------------------------------------------------------------------------
# Other field shapes
# ---------------------------------------------------------------------------


class TestFieldShapes:
    def test_uncorrelated_noise(self) -> None:
        result = analyze_stereo(_white_noise(seed=1), _white_noise(seed=2), SR)
        assert result.correlation == pytest.approx(0.0, abs=0.05)
        assert result.mono_compatibility == pytest.approx(50.0, abs=3.0)
        assert result.side_energy == pytest.approx(0.5, abs=0.03)

    def test_hard_left(self) -> None:
        result = analyze_stereo(_sine(1000.0), np.zeros(N), SR)
        assert result.balance == pytest.approx(-1.0)
        assert result.mono_compatibility == pytest.approx(50.0)

    def test_flat_channel_uses_fallback_correlation(self) -> None:
        result = analyze_stereo(np.full(N, 0.25), _sine(1000.0), SR)
        assert result.correlation == 0.7

    def test_center_plus_side_is_one(self) -> None:
        result = analyze_stereo(_sine(440.0), _sine(440.0, 0.3) + _white_noise(0.05), SR)
        assert result.center_image + result.side_energy == pytest.approx(1.0)

    def test_bounds(self) -> None:
        result = analyze_stereo(_white_noise(seed=3), _sine(200.0), SR)
        assert -1.0 <= result.correlation <= 1.0
        assert 0.0 <= result.width <= 1.0
        assert 0.0 <= result.mono_compatibility <= 100.0
        assert 0.0 <= result.phase_coherence <= 1.0


# ---------------------------------------------------------------------------
# Degenerate input
# ---------------------------------------------------------------------------


class TestDegenerateInput:
    def test_mono_input_is_neutral(self) -> None:
        result = analyze_stereo(_sine(1000.0), None, SR)
        assert result.is_mono is True
        assert result.width == 0.0
        assert result.phase_coherence == 1.0
        assert result.mono_compatibility == 100.0

    def test_silence_fallbacks(self) -> None:
        result = analyze_stereo(np.zeros(N), np.zeros(N), SR)
        assert result.correlation == 0.7
        assert result.side_energy == 0.3
        assert result.width == 0.0
        assert result.center_image == 0.7
        assert result.mono_compatibility == 85.0
        assert result.balance == 0.0

    def test_short_input_uses_time_coherence_only(self) -> None:
        tone = _sine(1000.0, n=300)
        result = analyze_stereo(tone, tone.copy(), SR)
        assert result.phase_coherence == pytest.approx(0.95)

    def test_length_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="channel lengths differ"):
            analyze_stereo(np.zeros(100), np.zeros(90), SR)

    def test_invalid_sample_rate_raises(self) -> None:
        with pytest.raises(ValueError, match="sample_rate"):
            analyze_stereo(np.zeros(100), np.zeros(100), -1)


# ---------------------------------------------------------------------------
# Width scaling
# ---------------------------------------------------------------------------


class TestWidthScaling:
    @pytest.mark.parametrize(
        ("ratio", "expected"),
        [(0.0, 0.0), (0.1, 0.16), (0.3, 0.4835), (0.5, 0.7083), (1.0, 0.9998)],
    )
    def test_piecewise_mapping(self, ratio: float, expected: float) -> None:
        assert width_from_side_ratio(ratio) == pytest.approx(expected, abs=1e-3)

    def test_monotonic(self) -> None:
        ratios = np.linspace(0.0, 1.0, 101)
        widths = [width_from_side_ratio(float(r)) for r in ratios]
        assert all(b >= a for a, b in zip(widths, widths[1:]))
