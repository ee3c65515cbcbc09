"""
core/mix_engine/types.py — Frozen data types for the mix analysis engine.

All result types are frozen dataclasses: immutable value objects produced
once per analysis run and safe to share by reference afterwards.

Design:
    - No I/O, no side effects, no state.
    - Every result type that can be produced from insufficient data has a
      ``neutral()`` factory. Neutral values bias downstream consumers towards
      "nothing wrong" rather than false alarms.
    - Mappings are stored as tuples of ``(name, value)`` pairs so instances stay
      hashable; ``as_dict()`` helpers give the dict view.
    - Band percentages are 0–100 floats, ratios are 0–1 floats, levels are dB.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from core.mix_engine.errors import InvalidBufferError

# ---------------------------------------------------------------------------
# Spectral band constants, in the order every module uses
# ---------------------------------------------------------------------------

SPECTRAL_BANDS: tuple[str, ...] = (
    "sub_bass",  # 20–60 Hz
    "bass",  # 60–250 Hz
    "low_mid",  # 250–500 Hz
    "mid",  # 500–2 000 Hz
    "high_mid",  # 2 000–6 000 Hz
    "presence",  # 6 000–12 000 Hz
    "air",  # 12 000–20 000 Hz
)

# Hz boundaries for each band (inclusive lower, exclusive upper)
SPECTRAL_BAND_EDGES: dict[str, tuple[float, float]] = {
    "sub_bass": (20.0, 60.0),
    "bass": (60.0, 250.0),
    "low_mid": (250.0, 500.0),
    "mid": (500.0, 2000.0),
    "high_mid": (2000.0, 6000.0),
    "presence": (6000.0, 12000.0),
    "air": (12000.0, 20000.0),
}

# Reference distribution (% of energy) of a balanced modern master
IDEAL_BAND_PERCENTAGES: dict[str, float] = {
    "sub_bass": 14.0,
    "bass": 20.0,
    "low_mid": 18.0,
    "mid": 22.0,
    "high_mid": 15.0,
    "presence": 8.0,
    "air": 3.0,
}

BAND_LABELS: dict[str, str] = {
    "sub_bass": "Sub-bass (20-60Hz)",
    "bass": "Bass (60-250Hz)",
    "low_mid": "Low-mid (250-500Hz)",
    "mid": "Midrange (500Hz-2kHz)",
    "high_mid": "High-mid (2-6kHz)",
    "presence": "Presence (6-12kHz)",
    "air": "Air (12-20kHz)",
}

# ---------------------------------------------------------------------------
# Instrument ranges (they overlap)
# ---------------------------------------------------------------------------

INSTRUMENT_RANGES: dict[str, tuple[float, float]] = {
    "kick": (20.0, 80.0),
    "bass": (40.0, 250.0),
    "low_mids": (200.0, 500.0),
    "vocals": (300.0, 3000.0),
    "guitars": (80.0, 5000.0),
    "snare": (150.0, 250.0),
    "snare_attack": (2000.0, 8000.0),
    "cymbals": (4000.0, 16000.0),
    "presence": (2000.0, 6000.0),
    "air": (8000.0, 20000.0),
}

INSTRUMENT_NAMES: tuple[str, ...] = tuple(INSTRUMENT_RANGES)


# ---------------------------------------------------------------------------
# Input buffer
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class PcmBuffer:
    """Decoded PCM audio: one or two equal-length float channels.

    Construct through ``from_samples`` to coerce arbitrary sequences into
    float64 arrays. Direct construction validates but does not convert.

    Invariants:
        1 <= len(channels) <= 2
        all channels are 1-D and share the same length > 0
        sample_rate > 0
        every sample is finite
    """

    channels: tuple[np.ndarray, ...]
    """Per-channel samples, nominally in [-1, 1]."""

    sample_rate: int
    """Sample rate in Hz."""

    def __post_init__(self) -> None:
        """Validate structural invariants before any analysis runs."""
        if self.sample_rate <= 0:
            raise InvalidBufferError(f"sample_rate must be positive, got {self.sample_rate}")
        if len(self.channels) not in (1, 2):
            raise InvalidBufferError(f"expected 1 or 2 channels, got {len(self.channels)}")
        lengths = []
        for idx, channel in enumerate(self.channels):
            if channel.ndim != 1:
                raise InvalidBufferError(f"channel {idx} must be 1-D, got shape {channel.shape}")
            lengths.append(channel.shape[0])
        if len(set(lengths)) != 1:
            raise InvalidBufferError(f"channel lengths differ: {lengths}")
        if lengths[0] == 0:
            raise InvalidBufferError("frame count must be positive, got 0")
        for idx, channel in enumerate(self.channels):
            if not np.all(np.isfinite(channel)):
                raise InvalidBufferError(f"channel {idx} contains NaN or infinite samples")

    @classmethod
    def from_samples(
        cls,
        channels: list | tuple,
        sample_rate: int,
        frame_count: int | None = None,
    ) -> PcmBuffer:
        """Build a buffer from per-channel sample sequences.

        Args:
            channels:    One or two sample sequences (lists, arrays).
            sample_rate: Sample rate in Hz.
            frame_count: Optional number of valid frames. When given, the
                         channels must be of equal length and are truncated
                         to it.

        Returns:
            Validated PcmBuffer with float64 channels.

        Raises:
            InvalidBufferError: If any invariant is violated.
        """
        arrays = tuple(np.asarray(ch, dtype=np.float64) for ch in channels)
        if frame_count is not None:
            # Unequal channels are rejected before truncation can hide it
            lengths = [arr.shape[0] for arr in arrays if arr.ndim == 1]
            if len(set(lengths)) > 1:
                raise InvalidBufferError(f"channel lengths differ: {lengths}")
            if frame_count <= 0:
                raise InvalidBufferError(f"frame_count must be positive, got {frame_count}")
            for idx, arr in enumerate(arrays):
                if arr.ndim == 1 and arr.shape[0] < frame_count:
                    raise InvalidBufferError(
                        f"frame_count ({frame_count}) exceeds channel {idx} length ({arr.shape[0]})"
                    )
            arrays = tuple(arr[:frame_count] if arr.ndim == 1 else arr for arr in arrays)
        return cls(channels=arrays, sample_rate=int(sample_rate))

    @property
    def frame_count(self) -> int:
        """Number of samples per channel."""
        return int(self.channels[0].shape[0])

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    @property
    def is_stereo(self) -> bool:
        return len(self.channels) == 2

    @property
    def left(self) -> np.ndarray:
        """First (primary) channel."""
        return self.channels[0]

    @property
    def right(self) -> np.ndarray | None:
        """Second channel, or None for mono buffers."""
        return self.channels[1] if self.is_stereo else None

    @property
    def duration_sec(self) -> float:
        return self.frame_count / self.sample_rate


# ---------------------------------------------------------------------------
# MagnitudeSpectrum
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class MagnitudeSpectrum:
    """Linear magnitudes of the useful half of a real FFT.

    Invariants:
        len(magnitudes) == fft_size // 2
        all magnitudes >= 0
        empty spectrum (fft_size == 0) means "insufficient data"
    """

    magnitudes: np.ndarray
    """|X[k]| / fft_size for k in [0, fft_size/2)."""

    fft_size: int
    """Transform length (power of two), 0 when empty."""

    sample_rate: float
    """Sample rate of the analysed signal in Hz."""

    @classmethod
    def empty(cls, sample_rate: float) -> MagnitudeSpectrum:
        """Return the empty spectrum used for too-short inputs."""
        return cls(magnitudes=np.zeros(0, dtype=np.float64), fft_size=0, sample_rate=sample_rate)

    @property
    def is_empty(self) -> bool:
        return self.magnitudes.size == 0

    @property
    def bin_width(self) -> float:
        """Frequency spacing in Hz: (sample_rate / 2) / len(magnitudes)."""
        if self.is_empty:
            return 0.0
        return (self.sample_rate / 2.0) / self.magnitudes.size

    def frequencies(self) -> np.ndarray:
        """Return the centre frequency in Hz of every bin."""
        return np.arange(self.magnitudes.size, dtype=np.float64) * self.bin_width


# ---------------------------------------------------------------------------
# SpectralBalanceResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpectralBalanceResult:
    """Seven-band energy distribution of the loudest section of a mix.

    Invariants:
        each band percentage >= 0
        sum of band percentages <= 100 (energy outside 20 Hz–20 kHz is excluded)
        -1.0 <= tilt <= 1.0
        0.0 <= balance_score <= 100.0
    """

    sub_bass: float
    """20–60 Hz, % of total spectral energy."""

    bass: float
    """60–250 Hz, %."""

    low_mid: float
    """250–500 Hz, %."""

    mid: float
    """500–2 000 Hz, %."""

    high_mid: float
    """2 000–6 000 Hz, %."""

    presence: float
    """6 000–12 000 Hz, %."""

    air: float
    """12 000–20 000 Hz, %."""

    tilt: float
    """(high3 − low3) / (high3 + low3). Negative = dark, positive = bright."""

    balance_score: float
    """100 − 5 × total absolute deviation from the ideal distribution, clamped."""

    recommendations: tuple[str, ...] = ()

    spectrum: tuple[float, ...] = ()
    """Raw magnitudes of the measured window, for display."""

    spectral_centroid: float = 0.0
    """Magnitude-weighted mean frequency in Hz (bins above 20 Hz)."""

    detected_genre: str = "Unknown"
    """Genre family guessed from the five-band summary."""

    has_imbalance: bool = False
    """True when the genre-aware imbalance checks fire."""

    @classmethod
    def neutral(cls) -> SpectralBalanceResult:
        """Ideal distribution returned when there is too little audio to measure."""
        return cls(
            **IDEAL_BAND_PERCENTAGES,
            tilt=0.0,
            balance_score=85.0,
        )

    @property
    def low_end(self) -> float:
        """Five-band summary: sub-bass + bass."""
        return self.sub_bass + self.bass

    @property
    def high(self) -> float:
        """Five-band summary: presence + air."""
        return self.presence + self.air

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())

    def as_dict(self) -> dict[str, float]:
        """Return band percentages keyed by canonical band name."""
        return {
            "sub_bass": self.sub_bass,
            "bass": self.bass,
            "low_mid": self.low_mid,
            "mid": self.mid,
            "high_mid": self.high_mid,
            "presence": self.presence,
            "air": self.air,
        }

    def energy_distribution(self) -> dict[str, float]:
        """Return band percentages keyed by human-readable band label."""
        return {BAND_LABELS[name]: value for name, value in self.as_dict().items()}

    def five_band(self) -> dict[str, float]:
        """Return the coarse five-band summary used by genre detection."""
        return {
            "low_end": self.low_end,
            "low_mid": self.low_mid,
            "mid": self.mid,
            "high_mid": self.high_mid,
            "high": self.high,
        }

    def get(self, band: str) -> float:
        """Return the percentage for a named band.

        Raises:
            ValueError: If band is not one of the 7 canonical bands.
        """
        d = self.as_dict()
        if band not in d:
            raise ValueError(f"Unknown band: {band!r}. Valid: {list(d)}")
        return d[band]


# ---------------------------------------------------------------------------
# LevelResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LevelResult:
    """Peak, RMS, gated loudness and clipping of the primary channel.

    Invariants:
        every dB value >= -100.0 (floor for digital silence)
        has_sustained_clipping implies has_clipping
    """

    peak_db: float
    """20·log10(max |x|), dBFS."""

    rms_db: float
    """20·log10(sqrt(mean x²)), dBFS."""

    loudness_lufs: float
    """Two-stage gated loudness (LUFS-like). −100 when no block survives."""

    perceived_loudness: float
    """Amplitude-histogram loudness estimate on a LUFS-like scale."""

    has_clipping: bool
    """Any sample at or above the clip threshold."""

    has_sustained_clipping: bool = False
    """More than 0.1% of samples start a run of near-threshold samples."""

    @classmethod
    def silent(cls) -> LevelResult:
        return cls(
            peak_db=-100.0,
            rms_db=-100.0,
            loudness_lufs=-100.0,
            perceived_loudness=-100.0,
            has_clipping=False,
            has_sustained_clipping=False,
        )

    @property
    def crest_factor_db(self) -> float:
        """Peak-to-RMS ratio in dB."""
        return self.peak_db - self.rms_db


# ---------------------------------------------------------------------------
# StereoCorrelationResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StereoCorrelationResult:
    """Stereo field measurements from Mid/Side and L/R correlation.

    Invariants:
        -1.0 <= correlation <= 1.0
        0.0 <= width <= 1.0 (piecewise-scaled side ratio)
        0.0 <= mono_compatibility <= 100.0
        0.0 <= phase_coherence <= 1.0
        center_image + side_energy == 1.0 for non-silent input
        is_mono=True implies width=0.0, phase_coherence=1.0, mono_compatibility=100.0
    """

    correlation: float
    """Pearson correlation of L and R. 0.7 when either channel is flat."""

    width: float
    """Side-energy ratio run through the professional meter scaling."""

    mono_compatibility: float
    """% of the in-phase maximum energy retained by the L+R fold-down."""

    phase_coherence: float
    """Mean of time-domain and frequency-domain coherence."""

    center_image: float
    """Mid energy / (mid + side) energy."""

    side_energy: float
    """Side energy / (mid + side) energy."""

    balance: float
    """(E_R − E_L) / (E_L + E_R). Positive = leaning right."""

    is_mono: bool = False

    recommendations: tuple[str, ...] = ()

    @classmethod
    def neutral(cls) -> StereoCorrelationResult:
        """Result for single-channel input."""
        return cls(
            correlation=1.0,
            width=0.0,
            mono_compatibility=100.0,
            phase_coherence=1.0,
            center_image=1.0,
            side_energy=0.0,
            balance=0.0,
            is_mono=True,
        )


# ---------------------------------------------------------------------------
# DynamicRangeAnalysis / PeakToAverageResult / DynamicRangeEstimate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DynamicRangeAnalysis:
    """Windowed RMS statistics of the L/R downmix.

    Invariants:
        lufs_range == percentile_95 − percentile_5 >= 0.0
        compression_ratio == 20 / max(lufs_range, 1)
    """

    lufs_range: float
    """95th − 5th percentile of 100 ms RMS levels, dB."""

    short_term_variation: float
    """Mean absolute change between consecutive windows, dB."""

    momentary_peaks: tuple[float, ...]
    """Window levels within 3 dB of the 95th percentile."""

    crest_factor: float
    """20·log10(peak / mean window RMS), dB."""

    percentile_95: float
    percentile_5: float

    compression_ratio: float
    """Expected uncompressed range (20 dB) over the measured range."""

    breathing_room: float
    """Headroom to a −1 dBFS ceiling, dB."""

    recommendations: tuple[str, ...] = ()

    @classmethod
    def neutral(cls) -> DynamicRangeAnalysis:
        return cls(
            lufs_range=12.0,
            short_term_variation=3.0,
            momentary_peaks=(),
            crest_factor=12.0,
            percentile_95=-6.0,
            percentile_5=-18.0,
            compression_ratio=3.0,
            breathing_room=3.0,
        )


@dataclass(frozen=True)
class PeakToAverageResult:
    """Peak versus average level of the per-sample max(|L|, |R|) envelope.

    Invariants:
        peak_to_rms == true_peak_db − average_level_db
        0.0 <= punchiness <= 100.0
    """

    peak_to_rms: float
    peak_to_lufs: float
    true_peak_db: float
    average_level_db: float
    momentary_loudness: float
    integrated_loudness: float
    loudness_range: float
    """95th − 10th percentile of 100 ms window loudness, LU."""

    punchiness: float
    """First-difference energy relative to signal energy, 0–100."""

    recommendations: tuple[str, ...] = ()

    @classmethod
    def neutral(cls) -> PeakToAverageResult:
        return cls(
            peak_to_rms=12.0,
            peak_to_lufs=18.0,
            true_peak_db=-1.0,
            average_level_db=-18.0,
            momentary_loudness=-14.0,
            integrated_loudness=-14.0,
            loudness_range=7.0,
            punchiness=75.0,
        )


@dataclass(frozen=True)
class DynamicRangeEstimate:
    """Five independent dynamic range estimates and their weighted blend.

    Invariants:
        0.0 <= combined <= 60.0
    """

    crest_factor: float
    segmented: float
    loudness_variation: float
    frequency_based: float
    ebu: float
    combined: float

    @classmethod
    def neutral(cls) -> DynamicRangeEstimate:
        return cls(
            crest_factor=0.0,
            segmented=0.0,
            loudness_variation=0.0,
            frequency_based=0.0,
            ebu=0.0,
            combined=0.0,
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "crest_factor": self.crest_factor,
            "segmented": self.segmented,
            "loudness_variation": self.loudness_variation,
            "frequency_based": self.frequency_based,
            "ebu": self.ebu,
            "combined": self.combined,
        }


# ---------------------------------------------------------------------------
# Instrument balance
# ---------------------------------------------------------------------------


class InstrumentIssue(str, Enum):
    """Named instrument balance problems."""

    BASS_OVERPOWERING = "bass_overpowering"
    KICK_OVERPOWERING = "kick_overpowering"
    VOCALS_RECESSED = "vocals_recessed"
    VOCALS_OVERPOWERING = "vocals_overpowering"
    GUITARS_OVERPOWERING = "guitars_overpowering"
    GUITARS_RECESSED = "guitars_recessed"
    LACK_OF_AIR = "lack_of_air"
    CYMBALS_HARSH = "cymbals_harsh"
    BASS_MASKING_VOCALS = "bass_masking_vocals"
    GUITARS_MASKING_VOCALS = "guitars_masking_vocals"
    BOTTOM_HEAVY = "bottom_heavy"
    LACK_OF_BRIGHTNESS = "lack_of_brightness"
    HOLLOW_MIDRANGE = "hollow_midrange"


@dataclass(frozen=True)
class InstrumentBalanceResult:
    """Per-instrument energy shares and rule-based imbalance flags.

    Invariants:
        is_balanced == (len(issues) == 0)
        balance_score == 100 if balanced else 100 − 10 × len(issues)
    """

    energies: tuple[tuple[str, float], ...]
    """(instrument, % of total spectral energy) in INSTRUMENT_NAMES order."""

    issues: tuple[InstrumentIssue, ...] = ()
    recommendations: tuple[str, ...] = ()

    @classmethod
    def neutral(cls) -> InstrumentBalanceResult:
        return cls(energies=())

    @property
    def is_balanced(self) -> bool:
        return not self.issues

    @property
    def balance_score(self) -> float:
        if self.is_balanced:
            return 100.0
        return float(100 - 10 * len(self.issues))

    def as_dict(self) -> dict[str, float]:
        return dict(self.energies)

    def get(self, instrument: str) -> float:
        """Return the energy share for a named instrument (0.0 if unmeasured).

        Raises:
            ValueError: If instrument is not one of INSTRUMENT_NAMES.
        """
        if instrument not in INSTRUMENT_RANGES:
            raise ValueError(f"Unknown instrument: {instrument!r}. Valid: {list(INSTRUMENT_NAMES)}")
        return self.as_dict().get(instrument, 0.0)


# ---------------------------------------------------------------------------
# UnmixedDetectionResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UnmixedDetectionResult:
    """Outcome of the weighted unmixed-audio rule set.

    Invariants:
        0 <= failed_points <= 29
        confidence_score == failed_points / 29 × 100
        mixing_quality_score == max(0, 100 − confidence_score)
    """

    is_likely_unmixed: bool
    confidence_score: float
    failed_points: int
    criteria: tuple[tuple[str, bool], ...]
    """(criterion name, fired) for every weighted test, in evaluation order."""

    patterns: tuple[tuple[str, bool], ...]
    """(pattern name, matched) for the seven conjunctive patterns."""

    mixing_quality_score: float
    recommendations: tuple[str, ...] = ()

    # Sub-tests kept for reporting, independent of the classification
    dynamic_range_test: bool = False
    peak_to_loudness_ratio_test: bool = False
    transient_analysis: bool = False
    rms_vs_peak_test: bool = False
    frequency_masking_test: bool = False
    loudness_test: bool = False
    crest_factor_test: bool = False

    @classmethod
    def neutral(cls) -> UnmixedDetectionResult:
        return cls(
            is_likely_unmixed=False,
            confidence_score=0.0,
            failed_points=0,
            criteria=(),
            patterns=(),
            mixing_quality_score=80.0,
        )

    def criteria_dict(self) -> dict[str, bool]:
        return dict(self.criteria)

    def patterns_dict(self) -> dict[str, bool]:
        return dict(self.patterns)

    def sub_tests(self) -> dict[str, bool]:
        return {
            "dynamic_range_test": self.dynamic_range_test,
            "peak_to_loudness_ratio_test": self.peak_to_loudness_ratio_test,
            "transient_analysis": self.transient_analysis,
            "rms_vs_peak_test": self.rms_vs_peak_test,
            "frequency_masking_test": self.frequency_masking_test,
            "loudness_test": self.loudness_test,
            "crest_factor_test": self.crest_factor_test,
        }


# ---------------------------------------------------------------------------
# Issue flags and the root report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IssueFlags:
    """Coarse yes/no problem flags shown to users and fed to the prompt."""

    phase_issues: bool
    stereo_issues: bool
    frequency_imbalance: bool
    dynamic_range_issues: bool
    instrument_balance_issues: bool

    @property
    def any(self) -> bool:
        return any(self.as_dict().values())

    def as_dict(self) -> dict[str, bool]:
        return {
            "phase_issues": self.phase_issues,
            "stereo_issues": self.stereo_issues,
            "frequency_imbalance": self.frequency_imbalance,
            "dynamic_range_issues": self.dynamic_range_issues,
            "instrument_balance_issues": self.instrument_balance_issues,
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Complete result of one ``analyze()`` call.

    Top-level scalars (peak, RMS, loudness, dynamic range, clipping) are the
    numeric contract consumed by persistence, UI and prompt building; they
    are read straight from the component results.
    """

    levels: LevelResult
    spectral: SpectralBalanceResult
    stereo: StereoCorrelationResult
    dynamics: DynamicRangeAnalysis
    peak_to_average: PeakToAverageResult
    dynamic_range_estimate: DynamicRangeEstimate
    instruments: InstrumentBalanceResult
    unmixed: UnmixedDetectionResult
    issues: IssueFlags
    recommendations: tuple[str, ...]
    duration_sec: float
    sample_rate: int
    channel_count: int
    analysis_version: str

    @property
    def peak_db(self) -> float:
        return self.levels.peak_db

    @property
    def rms_db(self) -> float:
        return self.levels.rms_db

    @property
    def loudness_lufs(self) -> float:
        return self.levels.loudness_lufs

    @property
    def dynamic_range(self) -> float:
        """Combined five-way dynamic range estimate, dB."""
        return self.dynamic_range_estimate.combined

    @property
    def has_clipping(self) -> bool:
        return self.levels.has_clipping
