"""
Configuration dataclasses for the mix analysis engine.

These immutable config objects decouple analysis parameters from function
signatures, making it easy to define standard configurations and reuse them
across engine instances. Calibration constants (band edges, rescaling
breakpoints, detector weights) are deliberately NOT configurable: they live
as module constants next to the code that uses them.
"""

from dataclasses import dataclass

ANALYSIS_VERSION = "3.4"
"""Version of the analysis algorithms; stored results are keyed by it."""


def _is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for a mix analysis run.

    Attributes:
        analysis_version: Version tag stamped on every report. Defaults to
            ``"AudioKit-3.4"`` so stored results stay comparable.
        spectral_window: Length in samples of the loudest-window search used
            for spectral balance. Defaults to 4096.
        spectral_fft_size: FFT size cap for spectral balance. Defaults to 4096
            so the whole selected window is transformed.
        instrument_window: Length of the loudest-window search used for
            instrument balance. Defaults to 2048.
        instrument_fft_size: FFT size cap for instrument balance and the
            frequency-specific dynamic range estimate. Defaults to 2048.
        coherence_fft_size: FFT size cap for frequency-domain phase coherence.
            Defaults to 1024.
        min_fft_size: Inputs shorter than this yield an empty spectrum.
            Defaults to 512.
        perceptual_weighting: Apply A-weighting to spectral band energies.
            Defaults to False (flat energy, as stored historically).

    Example:
        >>> config = EngineConfig(spectral_fft_size=2048)
        >>> report = analyze(buffer, config=config)
    """

    analysis_version: str = f"AudioKit-{ANALYSIS_VERSION}"
    spectral_window: int = 4096
    spectral_fft_size: int = 4096
    instrument_window: int = 2048
    instrument_fft_size: int = 2048
    coherence_fft_size: int = 1024
    min_fft_size: int = 512
    perceptual_weighting: bool = False

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not self.analysis_version.strip():
            raise ValueError("analysis_version must be a non-empty string")
        for name in ("spectral_fft_size", "instrument_fft_size", "coherence_fft_size", "min_fft_size"):
            value = getattr(self, name)
            if not _is_power_of_two(value):
                raise ValueError(f"{name} must be a positive power of two, got {value}")
        for name in ("spectral_fft_size", "instrument_fft_size", "coherence_fft_size"):
            value = getattr(self, name)
            if value < self.min_fft_size:
                raise ValueError(
                    f"{name} ({value}) must be >= min_fft_size ({self.min_fft_size})"
                )
        if self.spectral_window < self.min_fft_size:
            raise ValueError(
                f"spectral_window ({self.spectral_window}) must be >= "
                f"min_fft_size ({self.min_fft_size})"
            )
        if self.instrument_window < self.min_fft_size:
            raise ValueError(
                f"instrument_window ({self.instrument_window}) must be >= "
                f"min_fft_size ({self.min_fft_size})"
            )


# Pre-defined configurations for common use cases

DEFAULT_CONFIG = EngineConfig()
"""Default configuration: 4096-sample spectral window, 2048 instruments, 1024 coherence."""

HIGH_RESOLUTION_CONFIG = EngineConfig(
    spectral_window=8192,
    spectral_fft_size=8192,
    instrument_window=4096,
    instrument_fft_size=4096,
    coherence_fft_size=2048,
)
"""Finer frequency resolution for long, dense material."""

FAST_CONFIG = EngineConfig(
    spectral_window=2048,
    spectral_fft_size=2048,
    instrument_window=1024,
    instrument_fft_size=1024,
    coherence_fft_size=512,
)
"""Smaller transforms for previews and batch triage."""

PERCEPTUAL_CONFIG = EngineConfig(perceptual_weighting=True)
"""A-weighted spectral balance for listening-oriented summaries."""
