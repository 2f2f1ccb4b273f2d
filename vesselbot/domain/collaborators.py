"""Boundaries to the external systems the assistant talks to.

Adapters live in ``vesselbot.infrastructure``; tests swap in fakes.
"""

from typing import Any, Dict, Optional, Protocol

from vesselbot.domain.models.conversation import IntentResult


class IntentDetector(Protocol):
    async def detect_intent(self, text: str) -> IntentResult:
        """Classify a message.

        Raises IntentDetectionError when the reply cannot be parsed and
        CollaboratorError when the model cannot be reached.
        """
        ...


class VesselAnalyst(Protocol):
    async def analyze(self, prompt: str) -> Optional[str]:
        """Free-text analysis for a prompt, or None when unavailable"""
        ...


class VesselDataProvider(Protocol):
    async def fetch_vessel_record(self, name_or_id: str) -> Optional[Dict[str, Any]]:
        """Dashboard entry for a vessel, None when the vessel is unknown"""
        ...

    async def fetch_recommendations(
        self, identifier: str, timeout: Optional[float] = None
    ) -> Optional[Dict[str, Any]]:
        """Recommendations for an IMO number, None when there are none"""
        ...


class ReportService(Protocol):
    async def create_download_link(self, payload: Dict[str, Any]) -> str:
        ...

    async def email_report(self, recipient: str, payload: Dict[str, Any], summary: Dict[str, Any]) -> None:
        ...


class MessageDeliverer(Protocol):
    async def deliver_message(self, owner_key: str, text: str) -> None:
        """Push a message outside the request/response cycle"""
        ...
