"""
Tests for the health, readiness and metrics endpoints.
"""

from prometheus_client import REGISTRY

from app.config import Settings, get_settings
from app.main import app
from app.metrics import record_webhook_outcome


class TestHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.text == "Sasyam WhatsApp bot server is running ✅"

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_ready_when_configured(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_verify_token(self, client, settings):
        unconfigured = settings.model_copy(update={"WHATSAPP_VERIFY_TOKEN": ""})
        app.dependency_overrides[get_settings] = lambda: unconfigured

        response = client.get("/health/ready")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        assert "WHATSAPP_VERIFY_TOKEN" in body["reason"]


class TestUnsetVerifyToken:

    def test_handshake_rejected_when_secret_unset(self, client):
        app.dependency_overrides[get_settings] = lambda: Settings(WHATSAPP_VERIFY_TOKEN="")

        response = client.get("/webhook", params={"hub.mode": "subscribe", "hub.challenge": "abc"})

        assert response.status_code == 403


class TestMetrics:

    def test_metrics_exposed(self, client):
        client.post("/api/message", json={"phone": "919999999999", "message": "hi"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "order_flow_replies_total" in response.text
        assert 'step="greeting"' in response.text
        assert "http_requests_total" in response.text

    def test_webhook_outcome_without_category(self):
        before = REGISTRY.get_sample_value("webhook_requests_total", {"result": "ignored"}) or 0.0
        categories = REGISTRY.get_sample_value("webhook_category_total", {"category": "order"}) or 0.0

        record_webhook_outcome("ignored")

        assert REGISTRY.get_sample_value("webhook_requests_total", {"result": "ignored"}) == before + 1
        assert (REGISTRY.get_sample_value("webhook_category_total", {"category": "order"}) or 0.0) == categories

    def test_webhook_outcome_with_category(self):
        before = REGISTRY.get_sample_value("webhook_category_total", {"category": "other"}) or 0.0

        record_webhook_outcome("replied", "other")

        assert REGISTRY.get_sample_value("webhook_category_total", {"category": "other"}) == before + 1
