"""
Pytest configuration and fixtures
"""
import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pytest

from vesselbot.domain.context import RateLimiter, SessionStore
from vesselbot.domain.directory.vessel_directory import VesselDirectory
from vesselbot.domain.models.conversation import Confidence, Intent, IntentResult, VesselRecord
from vesselbot.domain.orchestration.core.dialogue_router import DialogueRouter
from vesselbot.domain.orchestration.handlers.base_handler import HandlerDependencies

SENDER = "whatsapp:+1 555-123-4567"
OWNER_KEY = "15551234567"

YAMUNA_DATA = {"imo": "9481219", "name": "GCL YAMUNA", "riskScore": 72, "riskLevel": "High", "flag": "India"}
TAPI_DATA = {"imo": "9481221", "name": "GCL TAPI", "riskScore": 35, "riskLevel": "Low"}

RECOMMENDATIONS = {
    "CRITICAL": [{"title": "Fire dampers inoperative"}],
    "MODERATE": [{"title": "Logbook incomplete"}, {"title": "Oily water separator"}],
    "RECOMMENDED": [{"title": "Crew drill"}],
}


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


class FakeIntentDetector:
    """Returns a canned result per message text, UNKNOWN otherwise"""

    def __init__(self, results: Optional[Dict[str, Any]] = None):
        self.results = results or {}
        self.calls: List[str] = []

    async def detect_intent(self, text: str) -> IntentResult:
        self.calls.append(text)
        result = self.results.get(text)
        if isinstance(result, Exception):
            raise result
        return result or IntentResult(intent=Intent.UNKNOWN, confidence=Confidence.LOW)


class FakeAnalyst:
    def __init__(self, reply: Optional[str] = None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    async def analyze(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


class FakeVesselData:
    def __init__(self, records: Optional[Dict[str, Dict[str, Any]]] = None, recommendations: Any = None):
        self.records = records if records is not None else {"9481219": YAMUNA_DATA, "9481221": TAPI_DATA}
        # list of results/exceptions handed out in order; the last one repeats
        self.recommendations = recommendations if isinstance(recommendations, list) else [recommendations]
        self.record_calls: List[str] = []
        self.recommendation_calls: List[Tuple[str, Optional[float]]] = []
        self.record_error: Optional[Exception] = None

    async def fetch_vessel_record(self, name_or_id: str) -> Optional[Dict[str, Any]]:
        self.record_calls.append(name_or_id)
        if self.record_error:
            raise self.record_error
        return self.records.get(name_or_id)

    async def fetch_recommendations(self, identifier: str, timeout: Optional[float] = None):
        self.recommendation_calls.append((identifier, timeout))
        index = min(len(self.recommendation_calls), len(self.recommendations)) - 1
        result = self.recommendations[index]
        if isinstance(result, Exception):
            raise result
        return result


class FakeReportService:
    def __init__(self, url: str = "https://reports.example.com/r/abc.xlsx", error: Optional[Exception] = None, delay: float = 0):
        self.url = url
        self.error = error
        self.delay = delay
        self.downloads: List[Dict[str, Any]] = []
        self.emails: List[Tuple[str, Dict[str, Any], Dict[str, Any]]] = []

    async def create_download_link(self, payload: Dict[str, Any]) -> str:
        if self.error:
            raise self.error
        self.downloads.append(payload)
        return self.url

    async def email_report(self, recipient: str, payload: Dict[str, Any], summary: Dict[str, Any]) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        self.emails.append((recipient, payload, summary))


class FakeDeliverer:
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    async def deliver_message(self, owner_key: str, text: str) -> None:
        self.sent.append((owner_key, text))


def intent(kind: Intent, vessel: Optional[str], confidence: Confidence = Confidence.HIGH) -> IntentResult:
    return IntentResult(intent=kind, vessel_identifier=vessel, confidence=confidence)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def vessel_records():
    return [
        VesselRecord(canonical_name="GCL YAMUNA", identifier="9481219"),
        VesselRecord(canonical_name="GCL TAPI", identifier="9481221"),
        VesselRecord(canonical_name="GCL GANGA", identifier="9481233"),
    ]


@pytest.fixture
def directory(vessel_records):
    return VesselDirectory(records=vessel_records)


@pytest.fixture
def session_store(clock):
    return SessionStore(default_ttl=300, clock=clock)


@pytest.fixture
def rate_limiter(clock):
    return RateLimiter(max_requests=50, window_seconds=3600, clock=clock)


@pytest.fixture
def detector():
    return FakeIntentDetector({
        "Risk score for GCL YAMUNA": intent(Intent.RISK_SCORE, "GCL YAMUNA"),
        "Risk score for 9481219": intent(Intent.RISK_SCORE, "9481219"),
        "Risk level of GCL TAPI": intent(Intent.RISK_LEVEL, "GCL TAPI"),
        "Tell me about GCL YAMUNA": intent(Intent.VESSEL_INFO, "GCL YAMUNA"),
        "Recommendations for GCL YAMUNA": intent(Intent.RECOMMENDATIONS, "GCL YAMUNA"),
        "Recommendations for GCL GANGA": intent(Intent.RECOMMENDATIONS, "GCL GANGA"),
        "Risk score for XYZ": intent(Intent.RISK_SCORE, "XYZ"),
        "What is the risk score?": intent(Intent.RISK_SCORE, None),
        "maybe risk for GCL TAPI": intent(Intent.RISK_SCORE, "GCL TAPI", Confidence.LOW),
    })


@pytest.fixture
def vessel_data():
    return FakeVesselData(recommendations=RECOMMENDATIONS)


@pytest.fixture
def report_service():
    return FakeReportService()


@pytest.fixture
def deliverer():
    return FakeDeliverer()


@pytest.fixture
def deps(session_store, vessel_data, report_service, deliverer):
    return HandlerDependencies(
        session_store=session_store,
        vessel_data=vessel_data,
        analyst=None,
        report_service=report_service,
        deliverer=deliverer,
        session_ttl=300,
        recipient_emails={OWNER_KEY: "ops@example.com"},
        background_timeout=240.0,
    )


@pytest.fixture
def router(session_store, rate_limiter, directory, detector, deps):
    return DialogueRouter(
        session_store=session_store,
        rate_limiter=rate_limiter,
        directory=directory,
        intent_detector=detector,
        deps=deps,
    )
