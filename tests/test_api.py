"""Tests for the FastAPI surface."""

import json

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi.testclient import TestClient

import api.main as api_main
from lungcat.orchestrator import AIOrchestrator
from lungcat.providers import MockGenerator


MISSIONS_JSON = json.dumps([
    {"title": "Walk", "description": "Walk 10 min", "xpReward": 20, "difficulty": "easy"},
])


@pytest.fixture
def client(monkeypatch, clock):
    orchestrator = AIOrchestrator(
        generator=MockGenerator(lambda prompt: MISSIONS_JSON if "JSON" in prompt else "Keep going!"),
        clock=clock,
    )
    monkeypatch.setattr(api_main, "_orchestrator", orchestrator)
    return TestClient(api_main.app)


def user_payload(**overrides):
    payload = {"id": "user_1", "display_name": "Sari", "streak": 12, "total_days": 12}
    payload.update(overrides)
    return payload


class TestEndpoints:
    """Test request/response handling."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_motivation_then_cache(self, client):
        body = {"user": user_payload(), "language": "en"}
        first = client.post("/motivation", json=body).json()
        second = client.post("/motivation", json=body).json()

        assert first["text"] == "Keep going!"
        assert first["source"] == "ai"
        assert second["source"] == "cache"

    def test_milestone(self, client):
        body = {"user": user_payload(), "trigger_type": "milestone", "milestone_days": 30, "language": "en"}
        response = client.post("/motivation", json=body)

        assert response.status_code == 200
        assert response.json()["source"] == "ai"

    def test_missions(self, client):
        response = client.post("/missions", json={"user": user_payload(), "language": "en"})

        data = response.json()
        assert data["source"] == "ai"
        assert data["missions"][0]["title"] == "Walk"
        assert data["missions"][0]["isAIGenerated"] is True

    def test_tip(self, client):
        response = client.post("/tip", json={"user": user_payload(), "language": "id"})
        assert response.status_code == 200
        assert response.json()["text"]

    def test_usage(self, client):
        client.post("/motivation", json={"user": user_payload(), "language": "en"})
        stats = client.get("/usage/user_1").json()

        assert stats["monthlyCallsUsed"] == 1
        assert stats["monthlyCallsRemaining"] == 1

    def test_validation(self, client):
        response = client.post("/motivation", json={"user": user_payload(streak=-1)})
        assert response.status_code == 422

        response = client.post("/tip", json={"user": user_payload(), "language": "fr"})
        assert response.status_code == 422


class TestAdmin:
    """Test the API key guard and admin reset."""

    def test_reset_monthly(self, client):
        api_main._orchestrator.budget.record_cost(9.0)
        data = client.post("/admin/reset-monthly").json()

        assert data["emergencyStopActive"] is False
        assert data["totalCostThisMonth"] == 0.0

    def test_api_key_required_when_configured(self, client, monkeypatch):
        monkeypatch.setenv("LUNGCAT_API_KEY", "secret")

        assert client.post("/admin/reset-monthly").status_code == 401
        assert client.post("/admin/reset-monthly", headers={"X-API-Key": "secret"}).status_code == 200
        assert client.get("/health").status_code == 200
