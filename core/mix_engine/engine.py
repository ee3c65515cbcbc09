"""
core/mix_engine/engine.py — Mix analysis orchestrator.

MixAnalysisEngine wires the analyzers together:

    PcmBuffer
        │
        ├─ analyze_spectral_balance()     [spectral.py — loudest 4096 window]
        ├─ analyze_instrument_balance()   [instruments.py — loudest 2048 window]
        ├─ analyze_levels()               [levels.py — primary channel]
        ├─ analyze_stereo()               [stereo.py — L/R]
        ├─ analyze_dynamic_range()        [dynamics.py — (L + R) / 2]
        ├─ analyze_peak_to_average()      [dynamics.py — max(|L|, |R|)]
        ├─ estimate_dynamic_range()       [dynamics.py — primary channel]
        │       ↓
        ├─ detect_unmixed()               [unmixed.py]
        │       ↓
        └─ assemble_report()              [report.py] → AnalysisReport

Design:
    - Stateless and synchronous: every call works on its own buffer and
      returns a freshly built AnalysisReport. There is no shared instance.
    - No I/O. Decoding audio into a PcmBuffer is the caller's job.
    - Mono input passes the single channel wherever a right channel is
      optional; the stereo analyzer returns its neutral result.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from core.config import DEFAULT_CONFIG, EngineConfig
from core.mix_engine.dynamics import (
    analyze_dynamic_range,
    analyze_peak_to_average,
    estimate_dynamic_range,
)
from core.mix_engine.instruments import analyze_instrument_balance
from core.mix_engine.levels import analyze_levels
from core.mix_engine.report import assemble_report
from core.mix_engine.spectral import analyze_spectral_balance
from core.mix_engine.stereo import analyze_stereo
from core.mix_engine.types import AnalysisReport, PcmBuffer
from core.mix_engine.unmixed import DetectorInputs, detect_unmixed

logger = logging.getLogger(__name__)


@dataclass
class MixAnalysisEngine:
    """Runs the full analysis pipeline with a fixed configuration.

    Attributes:
        config: Window and FFT sizes plus the version tag stamped on reports.
    """

    config: EngineConfig = field(default_factory=lambda: DEFAULT_CONFIG)

    def analyze(self, buffer: PcmBuffer) -> AnalysisReport:
        """Analyse a decoded PCM buffer.

        Steps:
            1. Frequency-domain analysis of the primary channel.
            2. Levels and loudness of the primary channel.
            3. Stereo field (neutral for mono input).
            4. Dynamics on the downmix and the peak envelope.
            5. Combined dynamic range estimate.
            6. Unmixed-audio classification from all of the above.
            7. Issue flags, overall advice and report assembly.

        Args:
            buffer: Validated PcmBuffer.

        Returns:
            AnalysisReport.
        """
        cfg = self.config
        sr = buffer.sample_rate
        primary = buffer.left
        right = buffer.right

        spectral = analyze_spectral_balance(
            primary,
            sr,
            window_size=cfg.spectral_window,
            max_fft_size=cfg.spectral_fft_size,
            min_fft_size=cfg.min_fft_size,
            perceptual=cfg.perceptual_weighting,
        )
        logger.debug(
            "spectral: score=%.1f tilt=%.2f genre=%s",
            spectral.balance_score,
            spectral.tilt,
            spectral.detected_genre,
        )

        instruments = analyze_instrument_balance(
            primary,
            sr,
            window_size=cfg.instrument_window,
            max_fft_size=cfg.instrument_fft_size,
            min_fft_size=cfg.min_fft_size,
        )
        logger.debug("instruments: %d issue(s)", len(instruments.issues))

        levels = analyze_levels(primary, sr)
        logger.debug(
            "levels: peak=%.1f dB rms=%.1f dB loudness=%.1f LUFS",
            levels.peak_db,
            levels.rms_db,
            levels.loudness_lufs,
        )

        stereo = analyze_stereo(
            primary,
            right,
            sr,
            coherence_fft_size=cfg.coherence_fft_size,
            min_fft_size=cfg.min_fft_size,
        )
        logger.debug(
            "stereo: corr=%.2f width=%.2f mono=%.1f%%",
            stereo.correlation,
            stereo.width,
            stereo.mono_compatibility,
        )

        dynamics = analyze_dynamic_range(primary, right, sr)
        peak_to_average = analyze_peak_to_average(primary, right, sr)
        estimate = estimate_dynamic_range(
            primary, sr, fft_size=cfg.instrument_fft_size, min_fft_size=cfg.min_fft_size
        )
        logger.debug(
            "dynamics: range=%.1f dB crest=%.1f dB combined_dr=%.1f dB",
            dynamics.lufs_range,
            peak_to_average.peak_to_rms,
            estimate.combined,
        )

        unmixed = detect_unmixed(
            DetectorInputs.from_results(
                dynamic_range=dynamics.lufs_range,
                loudness=levels.loudness_lufs,
                peak_db=levels.peak_db,
                rms_db=levels.rms_db,
                peak_to_average=peak_to_average,
                spectral=spectral,
                mono_compatibility_pct=stereo.mono_compatibility,
                phase_coherence=stereo.phase_coherence,
                stereo_width=stereo.width,
                stereo_balance=stereo.balance,
            )
        )

        report = assemble_report(
            levels=levels,
            spectral=spectral,
            stereo=stereo,
            dynamics=dynamics,
            peak_to_average=peak_to_average,
            dynamic_range_estimate=estimate,
            instruments=instruments,
            unmixed=unmixed,
            duration_sec=buffer.duration_sec,
            sample_rate=sr,
            channel_count=buffer.channel_count,
            analysis_version=cfg.analysis_version,
        )
        logger.info(
            "Analysed %.2fs @ %d Hz (%d ch): loudness=%.1f LUFS unmixed=%s points=%d",
            report.duration_sec,
            sr,
            report.channel_count,
            report.loudness_lufs,
            unmixed.is_likely_unmixed,
            unmixed.failed_points,
        )
        return report


# ---------------------------------------------------------------------------
# Functional entry points
# ---------------------------------------------------------------------------


def analyze(buffer: PcmBuffer, *, config: EngineConfig = DEFAULT_CONFIG) -> AnalysisReport:
    """Analyse a PcmBuffer with the given configuration."""
    return MixAnalysisEngine(config=config).analyze(buffer)


def analyze_samples(
    channels: Sequence,
    sample_rate: int,
    frame_count: int | None = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> AnalysisReport:
    """Validate raw per-channel samples and analyse them.

    Args:
        channels:    One or two sample sequences of equal length.
        sample_rate: Sample rate in Hz.
        frame_count: Optional number of valid frames per channel.
        config:      Engine configuration.

    Returns:
        AnalysisReport.

    Raises:
        InvalidBufferError: If the samples do not form a valid buffer.
    """
    buffer = PcmBuffer.from_samples(channels, sample_rate, frame_count)
    return analyze(buffer, config=config)
