"""
core/mix_engine — Objective mix analysis of decoded PCM audio.

Measures spectral balance, levels and loudness, stereo field, dynamics and
instrument-range balance, then classifies likely-unmixed material and
produces advisory recommendations.

All analyzers are pure: numpy arrays in → frozen dataclasses out.
No file I/O in this package; decoding audio into a PcmBuffer is the caller's job.

Public API:
    Engine:       analyze, analyze_samples, MixAnalysisEngine
    Types:        PcmBuffer, AnalysisReport, SpectralBalanceResult, LevelResult,
                  StereoCorrelationResult, DynamicRangeAnalysis,
                  PeakToAverageResult, DynamicRangeEstimate,
                  InstrumentBalanceResult, InstrumentIssue,
                  UnmixedDetectionResult, IssueFlags
    Analyzers:    analyze_spectral_balance, analyze_levels, analyze_stereo,
                  analyze_dynamic_range, analyze_peak_to_average,
                  estimate_dynamic_range, analyze_instrument_balance
    Detector:     DetectorInputs, detect_unmixed
    Reporting:    metrics_payload, report_sections, build_metrics_prompt
    Errors:       MixEngineError, InvalidBufferError
    Genres:       available_genres
"""

from core.mix_engine._genre_loader import available_genres
from core.mix_engine.dynamics import (
    analyze_dynamic_range,
    analyze_peak_to_average,
    estimate_dynamic_range,
)
from core.mix_engine.engine import MixAnalysisEngine, analyze, analyze_samples
from core.mix_engine.errors import InvalidBufferError, MixEngineError
from core.mix_engine.instruments import analyze_instrument_balance
from core.mix_engine.levels import analyze_levels
from core.mix_engine.prompts import build_metrics_prompt
from core.mix_engine.report import metrics_payload, report_sections
from core.mix_engine.spectral import analyze_spectral_balance
from core.mix_engine.stereo import analyze_stereo
from core.mix_engine.types import (
    INSTRUMENT_RANGES,
    SPECTRAL_BAND_EDGES,
    SPECTRAL_BANDS,
    AnalysisReport,
    DynamicRangeAnalysis,
    DynamicRangeEstimate,
    InstrumentBalanceResult,
    InstrumentIssue,
    IssueFlags,
    LevelResult,
    PcmBuffer,
    PeakToAverageResult,
    SpectralBalanceResult,
    StereoCorrelationResult,
    UnmixedDetectionResult,
)
from core.mix_engine.unmixed import DetectorInputs, detect_unmixed

__all__ = [
    # Engine
    "analyze",
    "analyze_samples",
    "MixAnalysisEngine",
    # Types
    "PcmBuffer",
    "AnalysisReport",
    "SpectralBalanceResult",
    "LevelResult",
    "StereoCorrelationResult",
    "DynamicRangeAnalysis",
    "PeakToAverageResult",
    "DynamicRangeEstimate",
    "InstrumentBalanceResult",
    "InstrumentIssue",
    "UnmixedDetectionResult",
    "IssueFlags",
    "SPECTRAL_BANDS",
    "SPECTRAL_BAND_EDGES",
    "INSTRUMENT_RANGES",
    # Analyzers
    "analyze_spectral_balance",
    "analyze_levels",
    "analyze_stereo",
    "analyze_dynamic_range",
    "analyze_peak_to_average",
    "estimate_dynamic_range",
    "analyze_instrument_balance",
    # Detector
    "DetectorInputs",
    "detect_unmixed",
    # Reporting
    "metrics_payload",
    "report_sections",
    "build_metrics_prompt",
    # Errors
    "MixEngineError",
    "InvalidBufferError",
    # Helpers
    "available_genres",
]
