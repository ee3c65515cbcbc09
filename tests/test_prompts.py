"""
Tests for core/mix_engine/prompts.py — AI feedback prompt templates.

Validates that the system prompt carries the response contract, that the
mastered/pre-master variant and the genre guess follow the metric rules,
and that the rendered user prompt contains the metrics it was built from.
"""

import numpy as np
import pytest

from core.mix_engine import PcmBuffer, analyze, metrics_payload
from core.mix_engine.prompts import (
    MODEL_FREE,
    MODEL_PRO,
    SYSTEM_PROMPT,
    build_metrics_prompt,
    detect_prompt_genre,
    genre_guidelines,
    is_likely_mastered,
)


def _metrics(**overrides) -> dict:
    """A flat metrics payload describing an unremarkable pre-master mix."""
    metrics = {
        "peak_level": -6.0,
        "rms_level": -20.0,
        "loudness": -20.0,
        "dynamic_range": 16.0,
        "true_peak_level": -5.5,
        "stereo_width": 0.35,
        "phase_coherence": 0.8,
        "mono_compatibility": 92.0,
        "low_end": 30.0,
        "low_mid": 15.0,
        "mid": 20.0,
        "high_mid": 8.0,
        "high": 4.0,
        "has_clipping": False,
        "has_phase_issues": False,
        "has_stereo_issues": False,
        "has_frequency_imbalance": True,
        "has_dynamic_range_issues": False,
    }
    metrics.update(overrides)
    return metrics


MASTERED = {"peak_level": -0.5, "dynamic_range": 8.0, "loudness": -9.0, "rms_level": -11.0}


class TestSystemPrompt:
    """Test the system prompt content and structure."""

    def test_contains_engineer_persona(self) -> None:
        assert "mixing and mastering engineer" in SYSTEM_PROMPT

    def test_contains_grounding_constraint(self) -> None:
        """The model must only use the provided measurements."""
        assert "ONLY" in SYSTEM_PROMPT
        assert "do not invent" in SYSTEM_PROMPT

    def test_contains_response_format(self) -> None:
        assert "SCORE:" in SYSTEM_PROMPT
        assert "RECOMMENDATIONS:" in SYSTEM_PROMPT


class TestIsLikelyMastered:
    def test_all_indicators(self) -> None:
        assert is_likely_mastered(_metrics(**MASTERED)) is True

    def test_three_of_four_is_enough(self) -> None:
        assert is_likely_mastered(_metrics(**{**MASTERED, "dynamic_range": 20.0})) is True

    def test_two_of_four_is_not(self) -> None:
        metrics = _metrics(**{**MASTERED, "dynamic_range": 20.0, "rms_level": -20.0})
        assert is_likely_mastered(metrics) is False

    def test_pre_master(self) -> None:
        assert is_likely_mastered(_metrics()) is False


class TestDetectPromptGenre:
    @pytest.mark.parametrize(
        ("overrides", "expected"),
        [
            ({"low_end": 45.0, "dynamic_range": 8.0, "loudness": -9.0}, "Electronic/EDM"),
            ({"low_end": 38.0, "high": 2.0, "dynamic_range": 11.0, "loudness": -14.0}, "Hip-Hop"),
            (
                {"low_end": 25.0, "low_mid": 22.0, "mid": 25.0, "high_mid": 12.0, "high": 8.0,
                 "dynamic_range": 9.0},
                "Rock/Metal",
            ),
            ({"low_end": 25.0, "mid": 30.0, "high": 8.0, "dynamic_range": 7.0}, "Pop"),
            ({"low_end": 20.0, "mid": 22.0, "high": 3.0, "dynamic_range": 13.0}, "Acoustic/Folk"),
            ({"low_end": 20.0, "mid": 15.0, "high": 3.0, "dynamic_range": 16.0}, "Classical"),
            ({"low_end": 30.0, "mid": 18.0, "high": 9.0, "dynamic_range": 11.0}, "Jazz"),
            (
                {"low_end": 45.0, "high": 3.0, "dynamic_range": 11.0, "loudness": -14.0},
                "Alternative/Dark Pop",
            ),
            ({"dynamic_range": 8.0, "loudness": -14.0}, "Alternative/Indie"),
        ],
    )
    def test_rules(self, overrides: dict, expected: str) -> None:
        assert detect_prompt_genre(_metrics(**overrides)) == expected


class TestGenreGuidelines:
    def test_known_genre_ranges(self) -> None:
        text = genre_guidelines("Pop", _metrics())
        assert "(good: 28-45%)" in text

    def test_unknown_genre_uses_defaults(self) -> None:
        text = genre_guidelines("Polka", _metrics())
        assert "(good: 15-30%)" in text

    def test_values_rendered(self) -> None:
        text = genre_guidelines("Pop", _metrics(low_end=31.25))
        assert "Low End (20-250Hz): 31.2%" in text or "Low End (20-250Hz): 31.3%" in text


class TestBuildMetricsPrompt:
    def test_pre_master_variant(self) -> None:
        prompt = build_metrics_prompt(_metrics())
        assert prompt["variant"] == "pre_master"
        assert "PRE-MASTERED MIX" in prompt["user"]
        assert prompt["system"] == SYSTEM_PROMPT

    def test_mastered_variant(self) -> None:
        prompt = build_metrics_prompt(_metrics(**MASTERED))
        assert prompt["variant"] == "mastered"
        assert "MASTERED TRACK" in prompt["user"]

    def test_model_selection(self) -> None:
        assert build_metrics_prompt(_metrics())["model"] == MODEL_FREE
        assert build_metrics_prompt(_metrics(), is_pro_user=True)["model"] == MODEL_PRO

    def test_genre_in_prompt(self) -> None:
        prompt = build_metrics_prompt(_metrics())
        assert f"likely genre: {prompt['genre']}" in prompt["user"]

    def test_issue_flags_rendered(self) -> None:
        user = build_metrics_prompt(_metrics())["user"]
        assert "- Frequency Imbalance: YES" in user
        assert "- Clipping: No" in user

    def test_ratios_rendered_as_percent(self) -> None:
        user = build_metrics_prompt(_metrics())["user"]
        assert "Stereo Width: 35.0%" in user
        assert "Mono Compatibility: 92.0%" in user

    def test_missing_metric_raises(self) -> None:
        metrics = _metrics()
        del metrics["loudness"]
        with pytest.raises(KeyError):
            build_metrics_prompt(metrics)

    def test_accepts_engine_payload(self) -> None:
        t = np.arange(44100) / 44100
        tone = 0.5 * np.sin(2.0 * np.pi * 1000.0 * t)
        payload = metrics_payload(analyze(PcmBuffer.from_samples([tone, tone], 44100)))
        prompt = build_metrics_prompt(payload)
        assert prompt["variant"] in ("mastered", "pre_master")
        assert prompt["user"]
