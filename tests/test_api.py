"""Tests for the FastAPI API endpoints."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from pilot_engine.api.app import create_app
from pilot_engine.engine.factory import create_engine


@pytest.fixture
def engine():
    """A fresh engine with the bundled analyzers."""
    engine = create_engine()
    yield engine
    engine.shutdown()


@pytest.fixture
def client(engine):
    return TestClient(create_app(engine))


def _make_record_payload(user_id: str = "alice", success: bool = True) -> dict:
    now = datetime.now(timezone.utc).isoformat()
    return {
        "user_id": user_id,
        "session_id": "session_1",
        "request_id": "req_abc",
        "decision": {"action": "EXECUTE", "confidence": 80},
        "actual_outcome": {"success": success, "errors": [] if success else ["reverted"], "timestamp": now},
        "user_feedback": {"rating": 4, "correctness": "correct", "helpfulness": "helpful"},
        "timestamp": now,
    }


class TestAnalyzeEndpoints:
    def test_analyze_sentiment(self, client):
        response = client.post("/analyze", json={
            "type": "sentiment",
            "input": {"text": "This is an excellent and amazing proposal"},
        })
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["provider"] == "nlp-analyzer"
        assert data["decision"]["action"] == "EXECUTE"
        assert data["metadata"]["request_id"].startswith("req_")

    def test_analyze_proposal_with_context(self, client):
        response = client.post("/analyze", json={
            "type": "proposal",
            "input": {"proposal_text": "Host community education events", "dao_name": "ENS"},
            "context": {"blockchain": "ethereum"},
        })
        data = response.json()
        assert data["success"] is True
        assert data["provider"] == "proposal-analyzer"

    def test_invalid_request_is_a_failed_result(self, client):
        response = client.post("/analyze", json={"type": "", "input": {"text": "hi"}})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "invalid request"
        assert data["decision"] is None

    def test_unknown_type_with_fallback(self, client):
        response = client.post("/analyze", json={
            "type": "weather",
            "input": {"text": "sunny"},
            "options": {"fallback_strategy": "basic"},
        })
        data = response.json()
        assert data["success"] is True
        assert data["provider"] == "fallback"
        assert data["decision"]["action"] == "DELEGATE"

    def test_rules(self, client):
        response = client.post("/analyze/rules", json={
            "input": {"text": "This proposal will fund developer grants for ecosystem growth"},
            "rules": [{
                "id": "fund-devs",
                "name": "Fund developers",
                "condition": {"type": "natural_language", "expression": "developer grants ecosystem funding"},
                "action": {"type": "vote", "parameters": {"vote": "YES"}},
            }],
        })
        data = response.json()
        assert data["success"] is True
        assert data["provider"] == "rule-engine"
        assert data["decision"]["action"] == "EXECUTE"
        assert data["decision"]["confidence"] == 75

    def test_rules_invalid(self, client):
        response = client.post("/analyze/rules", json={"input": {"text": "x"}, "rules": [{"id": "r"}]})
        assert response.json()["error"] == "invalid request"


class TestPluginEndpoints:
    def test_list_plugins(self, client):
        response = client.get("/plugins")
        assert response.status_code == 200
        names = [p["name"] for p in response.json()]
        assert names == ["nlp-analyzer", "proposal-analyzer"]

    def test_unload_plugin(self, client):
        response = client.delete("/plugins/nlp-analyzer")
        assert response.status_code == 200
        assert response.json() == {"name": "nlp-analyzer", "removed": True}

        response = client.delete("/plugins/nlp-analyzer")
        assert response.status_code == 404


class TestLearningEndpoints:
    def test_record_and_read_back(self, client):
        response = client.post("/learning", json=_make_record_payload())
        assert response.status_code == 200
        assert response.json() == {"recorded": True, "learning_data_points": 1}

        records = client.get("/learning/users/alice").json()
        assert len(records) == 1
        assert records[0]["request_id"] == "req_abc"
        assert client.get("/learning/users/nobody").json() == []

    def test_insights(self, client):
        client.post("/learning", json=_make_record_payload("a", success=True))
        client.post("/learning", json=_make_record_payload("b", success=False))

        insights = client.get("/learning/insights").json()
        assert insights["total_sessions"] == 2
        assert insights["success_rate"] == pytest.approx(0.5)
        assert insights["top_failure_reasons"] == {"reverted": 1}
        assert insights["user_feedback_stats"]["total_feedbacks"] == 2

    def test_invalid_record(self, client):
        payload = _make_record_payload()
        payload["user_feedback"]["rating"] = 9
        response = client.post("/learning", json=payload)
        assert response.status_code == 422


class TestStatusEndpoints:
    def test_status(self, client):
        client.post("/analyze", json={"type": "sentiment", "input": {"text": "good"}})
        status = client.get("/status").json()
        assert status["initialized"] is True
        assert status["plugins_loaded"] == 2
        assert status["cache_size"]["keys"] == 1
        assert status["performance"]["total_analyses"] == 1

    def test_metrics(self, client):
        client.post("/analyze", json={"type": "sentiment", "input": {"text": "good"}})
        data = client.get("/metrics").json()
        assert data["metrics"]["total_analyses"] == 1
        assert "report" in data

    def test_clear_cache(self, client, engine):
        client.post("/analyze", json={"type": "sentiment", "input": {"text": "good"}})
        response = client.delete("/cache")
        assert response.json() == {"cleared": True}
        assert engine.get_status()["cache_size"]["keys"] == 0
