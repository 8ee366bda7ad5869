"""Tests for the HealthGuard HTTP API."""

import pytest
from fastapi.testclient import TestClient

from healthguard.config import settings
from healthguard.api.main import app, get_history, get_orchestrator, get_rate_limiter
from healthguard.graph.orchestrator import ClaimAnalysisGraph
from healthguard.models.errors import TransportError
from healthguard.models.schemas import InferenceResponse
from healthguard.services.history_service import AnalysisHistory
from healthguard.services.rate_limiter import SlidingWindowRateLimiter
from healthguard.services.inference_service import BaseInferenceClient


class StubClient(BaseInferenceClient):
    """Inference client returning a fixed completion or raising an error."""

    def __init__(self, completion="", error=None):
        self.completion = completion
        self.error = error

    def complete(self, messages, schema):
        if self.error is not None:
            raise self.error
        return InferenceResponse(payload={"completion": self.completion})


@pytest.fixture
def history():
    return AnalysisHistory(max_entries=10)


@pytest.fixture
def make_client(history):
    """Build a TestClient whose orchestrator uses the given stub."""

    def _make(stub, limiter=None):
        limiter = limiter or SlidingWindowRateLimiter(max_requests=100, window_seconds=60)
        orchestrator = ClaimAnalysisGraph(inference_client=stub, reject_empty_input=True)
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        app.dependency_overrides[get_history] = lambda: history
        app.dependency_overrides[get_rate_limiter] = lambda: limiter
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


class TestAnalyzeEndpoint:
    """Test POST /analyze."""

    def test_returns_camel_case_result(self, make_client):
        """Test a degraded analysis over HTTP."""
        client = make_client(StubClient("This supplement claim is harmful."))

        response = client.post("/analyze", json={"text": "  Megadoses of vitamin A are safe. "})

        assert response.status_code == 200
        body = response.json()
        assert body["verdict"] == "harmful"
        assert body["confidence"] == 0.5
        assert body["inputEcho"]["text"] == "Megadoses of vitamin A are safe."
        assert isinstance(body["analyzedAt"], int)
        assert len(body["citations"]) == 1

    def test_failure_becomes_conservative_verdict(self, make_client):
        """Test that a transport failure is rendered as a verdict, not an error."""
        client = make_client(StubClient(error=TransportError("AI request could not be sent: refused")))

        response = client.post("/analyze", json={"url": "https://example.com/cure"})

        assert response.status_code == 200
        body = response.json()
        assert body["verdict"] == "misinformation"
        assert body["confidence"] == pytest.approx(0.2)
        assert body["reasoning"] == "AI request could not be sent: refused"
        assert body["citations"][0]["url"] == "https://www.cdc.gov/"

    def test_empty_submission_rejected(self, make_client):
        """Test that blank fields are rejected with 400."""
        client = make_client(StubClient("fine"))

        response = client.post("/analyze", json={"url": " ", "text": ""})

        assert response.status_code == 400

    def test_text_too_long(self, make_client):
        """Test the text length limit."""
        client = make_client(StubClient("fine"))

        response = client.post("/analyze", json={"text": "x" * 20000})

        assert response.status_code == 400

    def test_pdf_metadata_only(self, make_client):
        """Test a submission carrying only PDF metadata."""
        client = make_client(StubClient("Cannot verify; likely false."))

        response = client.post(
            "/analyze",
            json={"pdf": {"name": "detox.pdf", "size": 1024, "type": "application/pdf"}}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["verdict"] == "misinformation"
        assert body["inputEcho"]["pdf"]["name"] == "detox.pdf"

    def test_rate_limit_per_client(self, make_client):
        """Test that requests beyond the limit are refused with 429."""
        limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60)
        client = make_client(StubClient("fine"), limiter=limiter)

        statuses = [client.post("/analyze", json={"text": "Claim"}).status_code for _ in range(3)]

        assert statuses == [200, 200, 429]


class TestApiKey:
    """Test API key enforcement."""

    def test_key_required_when_configured(self, make_client, monkeypatch):
        """Test that a configured key must be presented."""
        monkeypatch.setattr(settings, "API_KEY", "s3cret")
        client = make_client(StubClient("fine"))

        assert client.get("/dashboard").status_code == 401
        assert client.get("/dashboard", headers={"X-API-Key": "wrong"}).status_code == 401
        assert client.get("/dashboard", headers={"X-API-Key": "s3cret"}).status_code == 200

    def test_open_when_unconfigured(self, make_client, monkeypatch):
        """Test that no key is needed when none is configured."""
        monkeypatch.setattr(settings, "API_KEY", "")
        client = make_client(StubClient("fine"))

        assert client.get("/dashboard").status_code == 200


class TestHistoryEndpoints:
    """Test history and dashboard endpoints."""

    def test_history_and_dashboard(self, make_client):
        """Test that analyses are recorded and counted per submitter."""
        client = make_client(StubClient("This is inaccurate."))

        client.post("/analyze", json={"text": "Claim one", "submitted_by": "a@example.com"})
        client.post("/analyze", json={"text": "Claim two", "submitted_by": "b@example.com"})

        entries = client.get("/history", params={"submitted_by": "a@example.com"}).json()
        assert len(entries) == 1
        assert entries[0]["result"]["inputEcho"]["text"] == "Claim one"

        stats = client.get("/dashboard").json()
        assert stats == {"total": 2, "truth": 0, "harmful": 0, "misinformation": 2}

    def test_clear_history(self, make_client):
        """Test clearing one submitter's history."""
        client = make_client(StubClient("fine"))
        client.post("/analyze", json={"text": "Claim", "submitted_by": "a@example.com"})
        client.post("/analyze", json={"text": "Claim", "submitted_by": "b@example.com"})

        response = client.delete("/history", params={"submitted_by": "a@example.com"})

        assert response.json()["removed"] == 1
        assert client.get("/dashboard").json()["total"] == 1


class TestHealth:
    """Test the health endpoint."""

    def test_health(self, make_client):
        """Test that the service reports healthy."""
        client = make_client(StubClient())

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
