"""
Tests for health probes, metrics exposition and request tracing.
"""

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.storage import Base, engine


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    Base.metadata.drop_all(bind=engine)


class TestHealth:
    """Test liveness and readiness probes."""

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_ready_when_schema_applied(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_messages_table(self, client):
        Base.metadata.drop_all(bind=engine)

        response = client.get("/health/ready")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        assert body["reason"]


class TestMetrics:
    """Test the Prometheus endpoint."""

    def test_metrics_exposes_message_outcomes(self, client):
        organization_id = str(uuid.uuid4())
        client.post(
            f"/organizations/{organization_id}/messages",
            json={"title": "Metric title", "content": "x" * 20},
        )
        client.post(
            f"/organizations/{organization_id}/messages",
            json={"title": "Metric title", "content": "x" * 20},
        )

        response = client.get("/metrics")

        assert response.status_code == 200
        text = response.text
        assert 'message_operations_total{operation="create",result="created"}' in text
        assert 'message_operations_total{operation="create",result="conflict"}' in text

    def test_http_metrics_use_route_template(self, client):
        organization_id = str(uuid.uuid4())
        client.get(f"/organizations/{organization_id}/messages")

        text = client.get("/metrics").text

        assert 'path="/organizations/{organization_id}/messages"' in text
        assert organization_id not in text


class TestRequestTracing:
    """Test request id propagation."""

    def test_response_includes_request_id_header(self, client):
        response = client.get("/health/live")

        assert "x-request-id" in response.headers
        assert uuid.UUID(response.headers["x-request-id"])

    def test_request_log_carries_message_outcome(self, client, caplog):
        organization_id = str(uuid.uuid4())
        body = {"title": "Logged title", "content": "x" * 20}
        client.post(f"/organizations/{organization_id}/messages", json=body)

        with caplog.at_level(logging.INFO, logger="app.requests"):
            response = client.post(f"/organizations/{organization_id}/messages", json=body)

        records = [r for r in caplog.records if r.name == "app.requests"]
        assert records
        record = records[-1]
        assert record.levelno == logging.WARNING
        assert record.status == 409
        assert record.operation == "create"
        assert record.result == "conflict"
        assert record.organization_id == organization_id
        assert record.request_id == response.headers["x-request-id"]
