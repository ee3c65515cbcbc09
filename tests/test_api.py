"""
tests/test_api.py — HTTP surface: /mix/analyze, /health and /metrics.

Uses the ``api_client`` fixture from conftest.py. Payloads are kept short
(0.5 s at 8 kHz) so request bodies stay small.
"""

from __future__ import annotations

import numpy as np

SR = 8000
N = SR // 2


def _tone(freq_hz: float = 440.0, amplitude: float = 0.5) -> list[float]:
    t = np.linspace(0, N / SR, N, endpoint=False)
    return (amplitude * np.sin(2.0 * np.pi * freq_hz * t)).tolist()


# ---------------------------------------------------------------------------
# POST /mix/analyze
# ---------------------------------------------------------------------------


class TestAnalyzeEndpoint:
    def test_stereo_happy_path(self, api_client) -> None:
        response = api_client.post(
            "/mix/analyze", json={"sample_rate": SR, "channels": [_tone(), _tone()]}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["metrics"]["channel_count"] == 2
        assert body["metrics"]["sample_rate"] == SR
        assert body["metrics"]["is_likely_unmixed"] is False
        assert "sections" in body
        assert "prompt" not in body

    def test_mono_request(self, api_client) -> None:
        response = api_client.post("/mix/analyze", json={"sample_rate": SR, "channels": [_tone()]})
        assert response.status_code == 200
        assert response.json()["metrics"]["mono_compatibility"] == 100.0

    def test_sections_can_be_omitted(self, api_client) -> None:
        response = api_client.post(
            "/mix/analyze",
            json={"sample_rate": SR, "channels": [_tone()], "include_sections": False},
        )
        assert "sections" not in response.json()

    def test_prompt_included_on_request(self, api_client) -> None:
        response = api_client.post(
            "/mix/analyze",
            json={
                "sample_rate": SR,
                "channels": [_tone(), _tone()],
                "include_prompt": True,
                "is_pro_user": True,
            },
        )
        prompt = response.json()["prompt"]
        assert prompt["variant"] in ("mastered", "pre_master")
        assert prompt["model"] == "claude-sonnet-4-5"

    def test_frame_count_truncates(self, api_client) -> None:
        response = api_client.post(
            "/mix/analyze",
            json={"sample_rate": SR, "channels": [_tone()], "frame_count": SR // 4},
        )
        assert response.status_code == 200
        assert response.json()["metrics"]["duration_sec"] == 0.25

    def test_mismatched_lengths_422(self, api_client) -> None:
        response = api_client.post(
            "/mix/analyze", json={"sample_rate": SR, "channels": [_tone(), _tone()[:-10]]}
        )
        assert response.status_code == 422
        assert "channel lengths differ" in response.json()["detail"]

    def test_frame_count_too_large_422(self, api_client) -> None:
        response = api_client.post(
            "/mix/analyze",
            json={"sample_rate": SR, "channels": [_tone()], "frame_count": N + 1},
        )
        assert response.status_code == 422

    def test_three_channels_rejected(self, api_client) -> None:
        response = api_client.post(
            "/mix/analyze", json={"sample_rate": SR, "channels": [_tone(), _tone(), _tone()]}
        )
        assert response.status_code == 422

    def test_non_positive_sample_rate_rejected(self, api_client) -> None:
        response = api_client.post("/mix/analyze", json={"sample_rate": 0, "channels": [_tone()]})
        assert response.status_code == 422

    def test_empty_channel_rejected(self, api_client) -> None:
        response = api_client.post("/mix/analyze", json={"sample_rate": SR, "channels": [[]]})
        assert response.status_code == 422
        assert "frame count must be positive" in response.json()["detail"]


# ---------------------------------------------------------------------------
# Operational endpoints
# ---------------------------------------------------------------------------


class TestOperationalEndpoints:
    def test_health(self, api_client) -> None:
        response = api_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_metrics_after_analysis(self, api_client) -> None:
        api_client.post("/mix/analyze", json={"sample_rate": SR, "channels": [_tone()]})
        response = api_client.get("/metrics")
        assert response.status_code == 200
        assert "mde_analyses_total" in response.text
