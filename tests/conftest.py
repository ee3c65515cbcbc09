"""
Shared fixtures for the test suite.

Centralizes reusable test infrastructure so individual test files
don't need to repeat signal-generation and client boilerplate.
"""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from api.main import app

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SR = 44100
"""Standard sample rate for synthetic test signals."""


# ---------------------------------------------------------------------------
# Signal fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tone_1k() -> np.ndarray:
    """Two seconds of a 1 kHz sine at −6 dBFS (amplitude 0.5)."""
    t = np.arange(2 * SR) / SR
    return 0.5 * np.sin(2.0 * np.pi * 1000.0 * t)


@pytest.fixture()
def silence() -> np.ndarray:
    """Two seconds of digital silence."""
    return np.zeros(2 * SR, dtype=np.float64)


# ---------------------------------------------------------------------------
# FastAPI test client fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client():
    """FastAPI ``TestClient`` for the mix engine app."""
    with TestClient(app) as client:
        yield client
