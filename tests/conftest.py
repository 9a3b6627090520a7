"""
Pytest configuration and shared fixtures.

Test environment variables are set here before the app is imported, so
settings are built from them rather than from a developer's .env file.
"""

import os

import pytest

TEST_ENV = {
    "WHATSAPP_TOKEN": "test-access-token",
    "WHATSAPP_PHONE_NUMBER_ID": "1234567890",
    "WHATSAPP_VERIFY_TOKEN": "test-verify-token",
    "SASYAM_SUPPORT_NUMBER": "+91 90000 00000",
    "LOG_LEVEL": "DEBUG",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value

# Clear settings cache before any app imports to ensure test env vars are used
from app.config import get_settings  # noqa: E402
get_settings.cache_clear()

from fastapi.testclient import TestClient  # noqa: E402

from app.main import app, get_whatsapp_client  # noqa: E402
from app.whatsapp import WhatsAppSendError  # noqa: E402


class FakeWhatsAppClient:
    """Records outbound messages instead of calling the send-message API."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send_text(self, to: str, body: str) -> None:
        if self.fail:
            raise WhatsAppSendError("send-message API returned 500", 500)
        self.sent.append((to, body))


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def whatsapp_client():
    return FakeWhatsAppClient()


@pytest.fixture(scope="function")
def client(whatsapp_client):
    """Test client with the outbound WhatsApp client replaced."""
    app.dependency_overrides[get_whatsapp_client] = lambda: whatsapp_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
