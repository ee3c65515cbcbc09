"""
api/schemas/mix.py — Pydantic request models for the /mix endpoints.

All fields use snake_case. Structural buffer checks (equal channel lengths,
finite samples) happen in PcmBuffer, not here, so the engine enforces them
for every caller.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MixAnalyzeRequest(BaseModel):
    """POST /mix/analyze — analyse decoded PCM samples."""

    sample_rate: int = Field(..., gt=0, description="Sample rate in Hz")
    channels: list[list[float]] = Field(
        ...,
        min_length=1,
        max_length=2,
        description="One (mono) or two (L, R) equal-length sample arrays, nominally in [-1, 1]",
    )
    frame_count: int | None = Field(
        None, gt=0, description="Number of valid frames per channel (default: full length)"
    )
    include_sections: bool = Field(
        True, description="Include the nested per-component sections in the response"
    )
    include_prompt: bool = Field(
        False, description="Include the AI feedback prompt built from the metrics"
    )
    is_pro_user: bool = Field(False, description="Select the larger model for the prompt")
