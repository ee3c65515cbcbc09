"""
core/mix_engine/_genre_loader.py — Load genre imbalance thresholds from YAML.

Uses importlib.resources (stdlib) to read the YAML table bundled in the
core/mix_engine/genre_profiles/ package. The parsed table is cached in a
module-level dict so the file is read only once per process.

Private module — import only from spectral.py.
"""

from __future__ import annotations

import importlib.resources
from typing import Any

import yaml  # PyYAML

_PROFILE_PACKAGE = "core.mix_engine.genre_profiles"
_IMBALANCE_FILE = "imbalance.yaml"

_CACHE: dict[str, dict[str, Any]] = {}


def _load_table() -> dict[str, Any]:
    if _IMBALANCE_FILE in _CACHE:
        return _CACHE[_IMBALANCE_FILE]

    pkg = importlib.resources.files(_PROFILE_PACKAGE)
    text = (pkg / _IMBALANCE_FILE).read_text(encoding="utf-8")
    data: dict[str, Any] = yaml.safe_load(text)
    _CACHE[_IMBALANCE_FILE] = data
    return data


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def thresholds_for_genre(genre: str) -> dict[str, float]:
    """Return the imbalance thresholds that apply to ``genre``.

    Genres not listed in any profile fall back to the default thresholds;
    an unknown genre is never an error.

    Args:
        genre: Genre label, e.g. 'Rock/Metal' or 'Unknown'.

    Returns:
        Dict with keys: high_min, low_end_max, combined_low_max.
    """
    table = _load_table()
    for profile in table["profiles"].values():
        if genre in profile["genres"]:
            return {
                "high_min": float(profile["high_min"]),
                "low_end_max": float(profile["low_end_max"]),
                "combined_low_max": float(profile["combined_low_max"]),
            }
    default = table["default"]
    return {key: float(value) for key, value in default.items()}


def imbalance_limits() -> dict[str, float]:
    """Return the genre-independent imbalance limits."""
    return {key: float(value) for key, value in _load_table()["limits"].items()}


def available_genres() -> list[str]:
    """Return sorted list of genres that have dedicated thresholds."""
    table = _load_table()
    return sorted(g for profile in table["profiles"].values() for g in profile["genres"])
