"""
core/mix_engine/instruments.py — Instrument-range energy shares and balance rules.

Implements:
    - Energy share of ten overlapping instrument ranges (kick, bass, vocals,
      guitars, cymbals, ...) in the loudest window
    - A fixed rule table that flags named InstrumentIssue values
    - One or more recommendation strings per flagged issue

Design:
    - Pure: numpy array in, InstrumentBalanceResult out.
    - Shares are percentages of total spectral energy; ranges overlap, so
      the shares do not sum to 100.
    - Rules are evaluated in a fixed order and produce issues in that order.
"""

from __future__ import annotations

import numpy as np

from core.mix_engine.fft import band_energy, compute_spectrum, loudest_window, total_energy
from core.mix_engine.types import (
    INSTRUMENT_RANGES,
    InstrumentBalanceResult,
    InstrumentIssue,
)

ISSUE_RECOMMENDATIONS: dict[InstrumentIssue, tuple[str, ...]] = {
    InstrumentIssue.BASS_OVERPOWERING: (
        "Reduce bass guitar level by 2-4 dB or apply high-pass filter around 80-100 Hz",
    ),
    InstrumentIssue.KICK_OVERPOWERING: (
        "Reduce kick drum level or apply EQ cut around 60-80 Hz",
    ),
    InstrumentIssue.VOCALS_RECESSED: (
        "Boost vocal presence around 2-4 kHz by 2-3 dB",
        "Consider de-essing other instruments in vocal frequency range",
    ),
    InstrumentIssue.VOCALS_OVERPOWERING: (
        "Reduce vocal level by 1-2 dB or apply gentle compression",
    ),
    InstrumentIssue.GUITARS_OVERPOWERING: (
        "Reduce guitar levels or apply mid-frequency cut around 400-800 Hz",
    ),
    InstrumentIssue.GUITARS_RECESSED: (
        "Boost guitar presence around 2-5 kHz or increase overall level",
    ),
    InstrumentIssue.LACK_OF_AIR: (
        "Add high-frequency sparkle with shelf EQ around 10-12 kHz",
        "Consider adding subtle saturation or harmonic excitement",
    ),
    InstrumentIssue.CYMBALS_HARSH: (
        "Reduce cymbal harshness with EQ cut around 6-8 kHz",
    ),
    InstrumentIssue.BASS_MASKING_VOCALS: (
        "Create space for vocals by cutting bass around 200-400 Hz",
        "Use sidechain compression or multiband processing",
    ),
    InstrumentIssue.GUITARS_MASKING_VOCALS: (
        "Cut guitar mids around 1-3 kHz to create vocal space",
    ),
    InstrumentIssue.BOTTOM_HEAVY: (
        "High-pass non-bass instruments more aggressively",
        "Check room acoustics and monitoring setup",
    ),
    InstrumentIssue.LACK_OF_BRIGHTNESS: (
        "Add high-frequency content with air band EQ (10+ kHz)",
    ),
    InstrumentIssue.HOLLOW_MIDRANGE: (
        "Boost midrange presence around 1-3 kHz",
        "Check for phase cancellation in mid frequencies",
    ),
}

BALANCED_RECOMMENDATIONS: tuple[str, ...] = (
    "Instrument balance appears good for the genre",
    "Consider reference mixing against similar professional tracks",
)


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


def detect_instrument_issues(energies: dict[str, float]) -> list[InstrumentIssue]:
    """Apply the balance rules to per-instrument energy percentages.

    Missing instruments count as 0%.

    Args:
        energies: Instrument name → % of total spectral energy.

    Returns:
        Flagged issues in rule order (possibly empty).
    """
    kick = energies.get("kick", 0.0)
    bass = energies.get("bass", 0.0)
    low_mids = energies.get("low_mids", 0.0)
    vocals = energies.get("vocals", 0.0)
    guitars = energies.get("guitars", 0.0)
    cymbals = energies.get("cymbals", 0.0)
    presence = energies.get("presence", 0.0)
    air = energies.get("air", 0.0)

    issues: list[InstrumentIssue] = []

    if bass > kick * 3.0:
        issues.append(InstrumentIssue.BASS_OVERPOWERING)
    elif kick > bass * 2.0 and bass > 5.0:
        issues.append(InstrumentIssue.KICK_OVERPOWERING)

    if vocals < 15.0 and presence < 10.0:
        issues.append(InstrumentIssue.VOCALS_RECESSED)
    elif vocals > 35.0:
        issues.append(InstrumentIssue.VOCALS_OVERPOWERING)

    if guitars > 40.0:
        issues.append(InstrumentIssue.GUITARS_OVERPOWERING)
    elif guitars < 8.0 and vocals > 20.0:
        issues.append(InstrumentIssue.GUITARS_RECESSED)

    if air < 2.0 and cymbals < 3.0:
        issues.append(InstrumentIssue.LACK_OF_AIR)
    elif cymbals > 15.0:
        issues.append(InstrumentIssue.CYMBALS_HARSH)

    # Masking between overlapping ranges
    if bass > 25.0 and vocals < 20.0:
        issues.append(InstrumentIssue.BASS_MASKING_VOCALS)
    if guitars > 30.0 and vocals < 18.0:
        issues.append(InstrumentIssue.GUITARS_MASKING_VOCALS)

    # Overall tonal shape
    if kick + bass > 50.0:
        issues.append(InstrumentIssue.BOTTOM_HEAVY)
    if cymbals + air < 8.0:
        issues.append(InstrumentIssue.LACK_OF_BRIGHTNESS)
    if vocals + low_mids < 25.0:
        issues.append(InstrumentIssue.HOLLOW_MIDRANGE)

    return issues


def recommendations_for(issues: list[InstrumentIssue]) -> list[str]:
    """Map issues to recommendation strings; a clean result gets the balanced advice."""
    if not issues:
        return list(BALANCED_RECOMMENDATIONS)
    recs: list[str] = []
    for issue in issues:
        recs.extend(ISSUE_RECOMMENDATIONS[issue])
    return recs


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_instrument_balance(
    samples: np.ndarray,
    sample_rate: int,
    *,
    window_size: int = 2048,
    max_fft_size: int = 2048,
    min_fft_size: int = 512,
) -> InstrumentBalanceResult:
    """Measure instrument-range energy shares in the loudest window and flag imbalances.

    Args:
        samples:      1-D sample array (primary channel).
        sample_rate:  Sample rate in Hz.
        window_size:  Length of the loudest-window search.
        max_fft_size: FFT size cap.
        min_fft_size: Minimum FFT size; shorter input returns the neutral result.

    Returns:
        InstrumentBalanceResult. Neutral when the input is too short or silent.

    Raises:
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    window = loudest_window(np.asarray(samples, dtype=np.float64), window_size)
    spectrum = compute_spectrum(window, sample_rate, max_size=max_fft_size, min_size=min_fft_size)
    total = total_energy(spectrum)
    if total <= 0.0:
        return InstrumentBalanceResult.neutral()

    energies = {
        name: band_energy(spectrum, lo, hi) / total * 100.0
        for name, (lo, hi) in INSTRUMENT_RANGES.items()
    }
    issues = detect_instrument_issues(energies)

    return InstrumentBalanceResult(
        energies=tuple(energies.items()),
        issues=tuple(issues),
        recommendations=tuple(recommendations_for(issues)),
    )
