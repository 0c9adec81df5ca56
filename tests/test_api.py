"""
Tests for the HTTP chat endpoint.
"""

from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from dashai.api.app import CALLER_HEADER, app, get_pipeline
from dashai.core.errors import (
    AuthenticationRequired,
    InvalidInput,
    ModelInvocationFailure,
    RateLimited,
)
from dashai.core.pipeline import ChatResult


@pytest.fixture
def pipeline():
    mock_pipeline = Mock()
    app.dependency_overrides[get_pipeline] = lambda: mock_pipeline
    yield mock_pipeline
    app.dependency_overrides.clear()


@pytest.fixture
def client(pipeline):
    return TestClient(app)


class TestChatEndpoint:
    """Test status codes and bodies for /api/chat."""

    def test_success(self, client, pipeline):
        pipeline.handle.return_value = ChatResult(reply="Hi Sam", tokens_used=150, cost=Decimal("0.0003"))

        response = client.post("/api/chat", json={"message": "hi"}, headers={CALLER_HEADER: "u1"})

        assert response.status_code == 200
        assert response.json() == {"reply": "Hi Sam", "tokensUsed": 150, "cost": 0.0003}
        pipeline.handle.assert_called_once_with("u1", {"message": "hi"})

    def test_missing_caller_header(self, client, pipeline):
        pipeline.handle.side_effect = AuthenticationRequired()

        response = client.post("/api/chat", json={"message": "hi"})

        assert response.status_code == 401
        assert response.json() == {"error": "User must be authenticated to use AI chat."}
        pipeline.handle.assert_called_once_with(None, {"message": "hi"})

    def test_invalid_input(self, client, pipeline):
        pipeline.handle.side_effect = InvalidInput("Message is required and must be a non-empty string.")

        response = client.post("/api/chat", json={"message": ""}, headers={CALLER_HEADER: "u1"})

        assert response.status_code == 400
        assert "Message is required" in response.json()["error"]

    def test_rate_limited(self, client, pipeline):
        pipeline.handle.side_effect = RateLimited(2000)

        response = client.post("/api/chat", json={"message": "hi"}, headers={CALLER_HEADER: "u1"})

        assert response.status_code == 429
        body = response.json()
        assert body["limit"] == 2000
        assert "daily usage limit of 2000 requests" in body["error"]

    def test_model_failure(self, client, pipeline):
        pipeline.handle.side_effect = ModelInvocationFailure("Connection issue. Please check your internet and try again.")

        response = client.post("/api/chat", json={"message": "hi"}, headers={CALLER_HEADER: "u1"})

        assert response.status_code == 502
        assert response.json() == {"error": "Connection issue. Please check your internet and try again."}

    def test_empty_body_reaches_validation(self, client, pipeline):
        pipeline.handle.side_effect = InvalidInput("Request body must be an object.")

        response = client.post("/api/chat", headers={CALLER_HEADER: "u1"})

        assert response.status_code == 400
        pipeline.handle.assert_called_once_with("u1", None)


class TestHealthEndpoint:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
