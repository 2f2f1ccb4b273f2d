"""
Tests for the webhook API
"""
import pytest
from fastapi.testclient import TestClient

from conftest import (
    RECOMMENDATIONS, FakeAnalyst, FakeDeliverer, FakeIntentDetector, FakeReportService, FakeVesselData, intent
)
from vesselbot.application.api.api_server import create_app
from vesselbot.application.runtime import BotRuntime
from vesselbot.domain.composer import messages
from vesselbot.domain.directory.vessel_directory import VesselDirectory
from vesselbot.domain.models.conversation import Intent
from vesselbot.infrastructure.config.settings import Settings


@pytest.fixture
def settings():
    return Settings(_env_file=None, log_format="console", rate_limit_max_requests=3)


@pytest.fixture
def runtime(settings, vessel_records):
    return BotRuntime(
        settings,
        directory=VesselDirectory(records=vessel_records),
        intent_detector=FakeIntentDetector({
            "Risk score for GCL YAMUNA": intent(Intent.RISK_SCORE, "GCL YAMUNA"),
            "Recommendations for GCL YAMUNA": intent(Intent.RECOMMENDATIONS, "GCL YAMUNA"),
        }),
        analyst=FakeAnalyst(),
        vessel_data=FakeVesselData(recommendations=RECOMMENDATIONS),
        report_service=FakeReportService(),
        deliverer=FakeDeliverer(),
    )


@pytest.fixture
def client(settings, runtime):
    app = create_app(settings=settings, runtime=runtime)
    with TestClient(app) as test_client:
        yield test_client


def send(client, body, sender="whatsapp:+15551234567"):
    return client.post("/webhook/whatsapp", data={"Body": body, "From": sender})


def test_webhook_replies_with_twiml(client):
    response = send(client, "Risk score for GCL YAMUNA")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")
    assert response.text == messages.to_twiml("*GCL YAMUNA*\n\n📊 Risk Score: *72* (High)")


def test_webhook_follow_up_flow(client, runtime):
    reply = send(client, "Recommendations for GCL YAMUNA").text
    assert "Reply with &apos;1&apos; or &apos;2&apos;" in reply
    assert client.get("/health").json()["active_sessions"] == 1

    reply = send(client, "1").text
    assert "https://reports.example.com/r/abc.xlsx" in reply
    assert runtime.session_store.active_count() == 0


def test_webhook_missing_sender(client):
    response = client.post("/webhook/whatsapp", data={"Body": "hello"})

    assert response.status_code == 200
    assert response.text == messages.to_twiml(messages.MISSING_SENDER)


def test_webhook_rate_limit(client):
    for _ in range(3):
        send(client, "hello")

    assert send(client, "hello").text == messages.to_twiml(messages.rate_limited(3))


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["active_sessions"] == 0
    assert body["sweeper_running"] is True
    assert {h["name"] for h in body["handlers"]} == {
        "risk_score", "risk_level", "recommendations", "vessel_info", "download", "email"
    }
    assert "timestamp" in body


def test_shutdown_stops_sweeper(settings, runtime):
    app = create_app(settings=settings, runtime=runtime)
    with TestClient(app):
        assert runtime.sweeper.running

    assert not runtime.sweeper.running
