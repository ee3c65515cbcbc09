"""
core/mix_engine/errors.py — Exceptions raised at the engine boundary.

Only caller errors raise. Insufficient or degenerate audio never raises:
the analyzers return neutral results instead.
"""

from __future__ import annotations


class MixEngineError(Exception):
    """Base class for all mix engine errors."""


class InvalidBufferError(MixEngineError, ValueError):
    """Raised when a PCM buffer violates its structural invariants.

    Subclasses ValueError so HTTP controllers can map it to 422 alongside
    other validation failures.

    Args:
        reason: Human-readable description of the violated invariant.
    """

    def __init__(self, reason: str) -> None:
        """Initialize with the violated invariant."""
        self.reason = reason
        super().__init__(f"Invalid PCM buffer: {reason}")
