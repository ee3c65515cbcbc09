"""
Prompt templates for AI mix feedback built from an analysis metrics payload.

Pure functions that turn the flat dict from ``report.metrics_payload()`` into
a system prompt and a user prompt. No I/O, no network calls: sending the
prompt and parsing the reply belong to the caller.

Two user prompt variants exist. Tracks that look mastered are scored
against mastering thresholds; everything else is scored as a pre-master
mix. A coarse genre guess selects the frequency guidelines that are
included in either variant.
"""

from __future__ import annotations

from typing import Any

SYSTEM_PROMPT = """\
You are an expert mixing and mastering engineer reviewing objective audio \
measurements of a single track.

## Your Role
Score the track from 0 to 100 and explain the score in plain language. \
Base every statement ONLY on the metrics provided; do not invent measurements.

## Response Format
SCORE: <integer 0-100>
ANALYSIS: <2-3 sentences>
RECOMMENDATIONS:
- <one specific, actionable fix per bullet>

## Style
- Use bullet points, NOT numbered lists.
- Treat genre-typical frequency balance as a creative choice, not a fault.
- Be realistic: professional masters score 85-100, good pre-masters 75-84.\
"""

MODEL_PRO = "claude-sonnet-4-5"
MODEL_FREE = "claude-haiku-4-5"

_GENRE_GUIDELINES: dict[str, tuple[str, str, str, str, str]] = {
    "Electronic/EDM": ("35-50%", "15-25%", "15-30%", "10-20%", "8-18%"),
    "Hip-Hop": ("30-45%", "20-35%", "20-35%", "8-20%", "2-12%"),
    "Alternative/Dark Pop": ("35-50%", "18-30%", "20-35%", "5-15%", "1-8%"),
    "Rock/Metal": ("15-25%", "20-30%", "25-40%", "15-28%", "8-18%"),
    "Pop": ("15-25%", "18-28%", "28-45%", "15-25%", "8-15%"),
}
_DEFAULT_GUIDELINES = ("15-30%", "18-30%", "25-40%", "15-25%", "8-18%")


# ---------------------------------------------------------------------------
# Classification helpers
# ---------------------------------------------------------------------------


def is_likely_mastered(metrics: dict[str, Any]) -> bool:
    """Return True when at least 3 of 4 mastering indicators are present.

    Indicators: peak above −3 dB, dynamic range below 15 dB, loudness
    between −25 and −6 LUFS, RMS above −16 dB.
    """
    indicators = [
        metrics["peak_level"] > -3.0,
        metrics["dynamic_range"] < 15.0,
        -25.0 < metrics["loudness"] < -6.0,
        metrics["rms_level"] > -16.0,
    ]
    return sum(indicators) >= 3


def detect_prompt_genre(metrics: dict[str, Any]) -> str:
    """Guess a genre from the five-band summary, dynamics and loudness.

    Rules are evaluated in order; falls back to 'Alternative/Indie'.
    """
    low_end = metrics["low_end"]
    low_mid = metrics["low_mid"]
    mid = metrics["mid"]
    high_mid = metrics["high_mid"]
    high = metrics["high"]
    dr = metrics["dynamic_range"]
    loudness = metrics["loudness"]

    if low_end > 40.0 and dr < 10.0 and loudness > -12.0:
        return "Electronic/EDM"
    if low_end > 35.0 and high < 3.0 and dr < 12.0:
        return "Hip-Hop"
    if low_mid > 20.0 and high_mid > 10.0 and dr > 8.0 and high > 5.0:
        return "Rock/Metal"
    if mid > 25.0 and high > 5.0 and low_end < 35.0:
        return "Pop"
    if dr > 12.0 and low_end < 30.0 and mid > 20.0:
        return "Acoustic/Folk"
    if dr > 15.0 and low_end < 25.0:
        return "Classical"
    if dr > 10.0 and high > 8.0 and low_end < 35.0:
        return "Jazz"
    if low_end > 40.0 and high < 5.0 and dr > 10.0:
        return "Alternative/Dark Pop"
    return "Alternative/Indie"


def model_for(is_pro_user: bool) -> str:
    """Pro users get the larger model, free users the faster one."""
    return MODEL_PRO if is_pro_user else MODEL_FREE


# ---------------------------------------------------------------------------
# Prompt sections
# ---------------------------------------------------------------------------


def _yes_no(flag: bool) -> str:
    return "YES" if flag else "No"


def genre_guidelines(genre: str, metrics: dict[str, Any]) -> str:
    """Five-band frequency lines annotated with the genre's good ranges."""
    low, low_mid, mid, high_mid, high = _GENRE_GUIDELINES.get(genre, _DEFAULT_GUIDELINES)
    return (
        f"- Low End (20-250Hz): {metrics['low_end']:.1f}% (good: {low})\n"
        f"- Low Mid (250-500Hz): {metrics['low_mid']:.1f}% (good: {low_mid})\n"
        f"- Mid (500Hz-2kHz): {metrics['mid']:.1f}% (good: {mid})\n"
        f"- High Mid (2-6kHz): {metrics['high_mid']:.1f}% (good: {high_mid})\n"
        f"- High (6-20kHz): {metrics['high']:.1f}% (good: {high})"
    )


def _issues_block(metrics: dict[str, Any]) -> str:
    return (
        f"- Clipping: {_yes_no(metrics['has_clipping'])}\n"
        f"- Phase Issues: {_yes_no(metrics['has_phase_issues'])}\n"
        f"- Stereo Issues: {_yes_no(metrics['has_stereo_issues'])}\n"
        f"- Frequency Imbalance: {_yes_no(metrics['has_frequency_imbalance'])}\n"
        f"- Dynamic Range Issues: {_yes_no(metrics['has_dynamic_range_issues'])}"
    )


def _mastered_prompt(metrics: dict[str, Any], genre: str) -> str:
    crest = metrics["true_peak_level"] - metrics["rms_level"]
    return f"""\
You are analyzing a MASTERED TRACK (likely genre: {genre}).

## Core Metrics
- Stereo Width: {metrics['stereo_width'] * 100:.1f}% (warn: <20% or >90%)
- Phase Coherence: {metrics['phase_coherence'] * 100:.1f}% (warn: <50%)
- Mono Compatibility: {metrics['mono_compatibility']:.1f}%
- Peak Level: {metrics['peak_level']:.1f} dBFS (warn: >-0.1 dBFS)
- Loudness: {metrics['loudness']:.1f} LUFS (streaming: -14, too loud: >-6)
- Dynamic Range: {metrics['dynamic_range']:.1f} dB (warn: <6)
- Crest Factor: {crest:.1f} dB (warn: <6)

## Frequency Balance
{genre_guidelines(genre, metrics)}

## Detected Issues
{_issues_block(metrics)}

## Scoring
Start at 75. Peak <=-0.1 dBFS: +5, above: -25. Loudness -10 to -6 LUFS: +10, \
-16 to -10: +5, below -16: -5, above -6: -10. Dynamic range >=6 dB: +5, below: -15. \
Crest factor >=6 dB: +5, below: -15. Width outside 20-90%: -10. \
Phase coherence 30-40%: -5, below 30%: -15. Only penalize SEVERE frequency \
imbalances (>70% low end, <2% highs). Clamp to 0-100.

Respond with SCORE, ANALYSIS, RECOMMENDATIONS and READY FOR MASTERING (yes/no)."""


def _pre_master_prompt(metrics: dict[str, Any], genre: str) -> str:
    return f"""\
You are analyzing a PRE-MASTERED MIX (likely genre: {genre}). This is NOT a final master.

## Levels and Dynamics
- Peak Level: {metrics['peak_level']:.1f} dB (target: -3 to -6 dB)
- RMS Level: {metrics['rms_level']:.1f} dB (target: -12 to -18 dB)
- Loudness: {metrics['loudness']:.1f} LUFS (target: -16 to -23 LUFS)
- Dynamic Range: {metrics['dynamic_range']:.1f} dB (excellent: >15, poor: <6)
- True Peak: {metrics['true_peak_level']:.1f} dBFS (good: <-3, acceptable: <-1)

## Stereo and Phase
- Stereo Width: {metrics['stereo_width'] * 100:.1f}% (excellent: 25-45%)
- Phase Coherence: {metrics['phase_coherence'] * 100:.1f}% (good: >60%, poor: <30%)
- Mono Compatibility: {metrics['mono_compatibility']:.1f}% (good: >70%)

## Frequency Balance
{genre_guidelines(genre, metrics)}

## Detected Issues
{_issues_block(metrics)}

## Scoring
Start at 75. Penalties: peak >0 dB -15, peak >-1 dB -5, width <15% or >85% -5, \
phase coherence <30% -15, 30-40% -10, 40-60% -5, low end >70% -15, 60-70% -10, \
50-60% -5, frequency imbalance -5, dynamic range <6 dB -10. Bonuses: peak -3 to \
-6 dB +5, dynamic range >15 dB +5, balanced spectrum +5, coherence >75% +5, \
width 25-45% +5. Minor issues should not heavily impact the score.

Respond with SCORE, ANALYSIS and RECOMMENDATIONS (or "Ready for mastering")."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_metrics_prompt(metrics: dict[str, Any], *, is_pro_user: bool = False) -> dict[str, str]:
    """Build the full prompt for one analysed track.

    Args:
        metrics:     Flat payload from ``report.metrics_payload()``.
        is_pro_user: Selects the model name returned with the prompt.

    Returns:
        Dict with keys ``system``, ``user``, ``model``, ``genre`` and
        ``variant`` ('mastered' or 'pre_master').

    Raises:
        KeyError: If a required metric is missing from the payload.
    """
    genre = detect_prompt_genre(metrics)
    if is_likely_mastered(metrics):
        variant = "mastered"
        user = _mastered_prompt(metrics, genre)
    else:
        variant = "pre_master"
        user = _pre_master_prompt(metrics, genre)

    return {
        "system": SYSTEM_PROMPT,
        "user": user,
        "model": model_for(is_pro_user),
        "genre": genre,
        "variant": variant,
    }
