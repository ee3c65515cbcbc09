"""
tests/test_spectral.py — Seven-band spectral balance, genre guess and imbalance check.

All signals are synthetic sines; expectations follow from where the tone
energy lands in the band table.
"""

from __future__ import annotations

import numpy as np
import pytest

from core.mix_engine._genre_loader import available_genres, imbalance_limits, thresholds_for_genre
from core.mix_engine.spectral import (
    analyze_spectral_balance,
    check_frequency_imbalance,
    detect_genre,
)
from core.mix_engine.types import IDEAL_BAND_PERCENTAGES, SPECTRAL_BANDS

SR = 44100
DURATION = 1.0
N = int(SR * DURATION)


def _sine(freq_hz: float, amplitude: float = 0.5, sr: int = SR, n: int = N) -> np.ndarray:
    t = np.linspace(0, n / sr, n, endpoint=False)
    return amplitude * np.sin(2.0 * np.pi * freq_hz * t)


# ---------------------------------------------------------------------------
# Band percentages
# ---------------------------------------------------------------------------


class TestBandPercentages:
    def test_1khz_lands_in_mid(self) -> None:
        result = analyze_spectral_balance(_sine(1000.0), SR)
        assert result.mid > 95.0

    def test_multi_tone_band_sum_close_to_100(self) -> None:
        y = _sine(100.0, 0.3) + _sine(1000.0, 0.3) + _sine(4000.0, 0.3)
        result = analyze_spectral_balance(y, SR)
        assert 95.0 <= result.total <= 100.0 + 1e-9

    def test_multi_tone_energy_split_evenly(self) -> None:
        y = _sine(100.0, 0.3) + _sine(1000.0, 0.3) + _sine(4000.0, 0.3)
        result = analyze_spectral_balance(y, SR)
        for band in ("bass", "mid", "high_mid"):
            assert result.get(band) == pytest.approx(33.3, abs=3.0)

    def test_white_noise_band_sum_is_100(self) -> None:
        rng = np.random.default_rng(7)
        result = analyze_spectral_balance(rng.standard_normal(N) * 0.2, SR)
        assert result.total == pytest.approx(100.0)

    def test_percentages_non_negative(self) -> None:
        rng = np.random.default_rng(42)
        result = analyze_spectral_balance(rng.standard_normal(N) * 0.2, SR)
        assert all(v >= 0.0 for v in result.as_dict().values())

    def test_five_band_summary_consistent(self) -> None:
        y = _sine(40.0, 0.3) + _sine(150.0, 0.3) + _sine(9000.0, 0.2)
        result = analyze_spectral_balance(y, SR)
        five = result.five_band()
        assert five["low_end"] == pytest.approx(result.sub_bass + result.bass)
        assert five["high"] == pytest.approx(result.presence + result.air)

    def test_loudest_window_skips_leading_silence(self) -> None:
        y = np.concatenate([np.zeros(N), _sine(1000.0)])
        result = analyze_spectral_balance(y, SR)
        assert result.mid > 95.0

    def test_get_unknown_band_raises(self) -> None:
        result = analyze_spectral_balance(_sine(1000.0), SR)
        with pytest.raises(ValueError, match="Unknown band"):
            result.get("ultrasonic")


# ---------------------------------------------------------------------------
# Tilt, score, recommendations
# ---------------------------------------------------------------------------


class TestTiltAndScore:
    def test_bass_tone_is_dark(self) -> None:
        result = analyze_spectral_balance(_sine(120.0), SR)
        assert result.tilt < -0.9
        assert any("too dark" in r for r in result.recommendations)

    def test_high_tone_is_bright(self) -> None:
        result = analyze_spectral_balance(_sine(4000.0), SR)
        assert result.tilt > 0.9
        assert any("too bright" in r for r in result.recommendations)

    def test_tilt_bounded(self) -> None:
        result = analyze_spectral_balance(_sine(8000.0), SR)
        assert -1.0 <= result.tilt <= 1.0

    def test_single_tone_scores_zero(self) -> None:
        """A lone tone deviates from the ideal by far more than 20 points."""
        result = analyze_spectral_balance(_sine(1000.0), SR)
        assert result.balance_score == 0.0

    def test_bass_heavy_recommendation(self) -> None:
        result = analyze_spectral_balance(_sine(120.0), SR)
        assert any("100-200Hz" in r for r in result.recommendations)

    def test_centroid_tracks_tone(self) -> None:
        result = analyze_spectral_balance(_sine(2000.0), SR)
        assert result.spectral_centroid == pytest.approx(2000.0, rel=0.05)


# ---------------------------------------------------------------------------
# Degenerate input
# ---------------------------------------------------------------------------


class TestDegenerateInput:
    def test_short_input_returns_neutral(self) -> None:
        result = analyze_spectral_balance(_sine(1000.0, n=300), SR)
        assert result.balance_score == 85.0
        assert result.as_dict() == IDEAL_BAND_PERCENTAGES

    def test_silence_returns_zeros(self) -> None:
        result = analyze_spectral_balance(np.zeros(N), SR)
        assert all(result.get(b) == 0.0 for b in SPECTRAL_BANDS)
        assert result.tilt == 0.0
        assert result.balance_score == 0.0
        assert result.recommendations == ()

    def test_invalid_sample_rate_raises(self) -> None:
        with pytest.raises(ValueError, match="sample_rate"):
            analyze_spectral_balance(_sine(1000.0), 0)


# ---------------------------------------------------------------------------
# Perceptual weighting
# ---------------------------------------------------------------------------


class TestPerceptualWeighting:
    def test_a_weighting_suppresses_sub_bass(self) -> None:
        y = _sine(45.0, 0.4) + _sine(1000.0, 0.4)
        flat = analyze_spectral_balance(y, SR)
        weighted = analyze_spectral_balance(y, SR, perceptual=True)
        assert weighted.sub_bass < flat.sub_bass / 10.0
        assert weighted.mid > flat.mid


# ---------------------------------------------------------------------------
# Genre detection
# ---------------------------------------------------------------------------


class TestDetectGenre:
    def test_electronic(self) -> None:
        assert detect_genre(40.0, 10.0, 25.0, 10.0, 10.0) == "Electronic/EDM"

    def test_hip_hop(self) -> None:
        assert detect_genre(45.0, 20.0, 25.0, 3.0, 2.0) == "Hip-Hop"

    def test_rock(self) -> None:
        assert detect_genre(20.0, 15.0, 35.0, 15.0, 10.0) == "Rock/Metal"

    def test_pop(self) -> None:
        assert detect_genre(25.0, 15.0, 22.0, 7.0, 15.0) == "Pop"

    def test_dark_pop(self) -> None:
        assert detect_genre(40.0, 30.0, 22.0, 4.0, 4.0) == "Alternative/Dark Pop"

    def test_very_dull_is_dark_pop(self) -> None:
        assert detect_genre(30.0, 20.0, 15.0, 5.0, 3.0) == "Alternative/Dark Pop"

    def test_unknown(self) -> None:
        assert detect_genre(30.0, 20.0, 20.0, 15.0, 15.0) == "Unknown"


# ---------------------------------------------------------------------------
# Frequency imbalance
# ---------------------------------------------------------------------------


class TestFrequencyImbalance:
    def test_balanced_distribution(self) -> None:
        assert check_frequency_imbalance(30.0, 18.0, 22.0, 15.0, 11.0) is False

    def test_dull_mix_flagged_for_pop(self) -> None:
        assert check_frequency_imbalance(30.0, 18.0, 27.0, 16.0, 5.0, genre="Pop") is True

    def test_same_mix_fine_by_default(self) -> None:
        assert check_frequency_imbalance(30.0, 18.0, 27.0, 16.0, 5.0) is False

    def test_excess_low_end(self) -> None:
        assert check_frequency_imbalance(60.0, 10.0, 15.0, 10.0, 5.0) is True

    def test_missing_energy(self) -> None:
        assert check_frequency_imbalance(20.0, 10.0, 15.0, 10.0, 5.0) is True

    def test_harsh_high_mid(self) -> None:
        assert check_frequency_imbalance(15.0, 10.0, 20.0, 45.0, 10.0) is True


# ---------------------------------------------------------------------------
# YAML threshold loader
# ---------------------------------------------------------------------------


class TestGenreLoader:
    def test_rock_thresholds(self) -> None:
        assert thresholds_for_genre("Rock/Metal")["high_min"] == 6.0

    def test_unknown_genre_falls_back(self) -> None:
        thresholds = thresholds_for_genre("Polka")
        assert thresholds == {"high_min": 4.0, "low_end_max": 55.0, "combined_low_max": 75.0}

    def test_limits_loaded(self) -> None:
        limits = imbalance_limits()
        assert limits["total_min"] == 80.0
        assert limits["total_max"] == 120.0

    def test_available_genres_sorted(self) -> None:
        genres = available_genres()
        assert "Pop" in genres
        assert genres == sorted(genres)
