from typing import Optional, Callable, List, Any
from datetime import datetime
import structlog

from vesselbot.domain.collaborators import (
    IntentDetector, VesselAnalyst, VesselDataProvider, ReportService, MessageDeliverer
)
from vesselbot.domain.context import RateLimiter, SessionStore, SessionSweeper
from vesselbot.domain.directory.vessel_directory import VesselDirectory
from vesselbot.domain.orchestration.core.dialogue_router import DialogueRouter
from vesselbot.domain.orchestration.handlers.base_handler import HandlerDependencies
from vesselbot.infrastructure.clients.report_service import HttpReportService
from vesselbot.infrastructure.clients.twilio_delivery import TwilioMessageDeliverer
from vesselbot.infrastructure.clients.vessel_api import DashboardVesselClient
from vesselbot.infrastructure.config.settings import Settings
from vesselbot.infrastructure.llm.anthropic_assistant import AnthropicAssistant

logger = structlog.get_logger(__name__)


class BotRuntime:
    """Process-wide state and collaborators, built once at startup.

    Any collaborator can be passed in; the rest are built from settings.
    """

    def __init__(
        self,
        settings: Settings,
        directory: Optional[VesselDirectory] = None,
        intent_detector: Optional[IntentDetector] = None,
        analyst: Optional[VesselAnalyst] = None,
        vessel_data: Optional[VesselDataProvider] = None,
        report_service: Optional[ReportService] = None,
        deliverer: Optional[MessageDeliverer] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self._owned: List[Any] = []

        self.session_store = SessionStore(default_ttl=settings.session_ttl_seconds, clock=clock)
        self.rate_limiter = RateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            clock=clock,
        )
        self.sweeper = SessionSweeper(
            self.session_store,
            self.rate_limiter,
            interval_seconds=settings.sweep_interval_seconds,
        )
        self.directory = directory or VesselDirectory(settings.vessel_mappings_path)

        if intent_detector is None or analyst is None:
            assistant = AnthropicAssistant(
                api_key=settings.anthropic_api_key,
                model=settings.anthropic_model,
                intent_max_tokens=settings.intent_max_tokens,
                analysis_max_tokens=settings.analysis_max_tokens,
                analysis_temperature=settings.analysis_temperature,
            )
            intent_detector = intent_detector or assistant
            analyst = analyst or assistant

        if vessel_data is None:
            vessel_data = self._own(DashboardVesselClient(
                dashboard_url=settings.dashboard_api_url,
                recommendations_url=settings.recommendations_api_url,
                cache_seconds=settings.dashboard_cache_seconds,
                dashboard_timeout=settings.dashboard_timeout_seconds,
                recommendations_timeout=settings.recommendations_timeout_seconds,
            ))

        if report_service is None and settings.report_service_url:
            report_service = self._own(HttpReportService(
                settings.report_service_url, timeout=settings.report_timeout_seconds
            ))

        if deliverer is None and settings.twilio_configured:
            deliverer = self._own(TwilioMessageDeliverer(
                settings.twilio_account_sid,
                settings.twilio_auth_token,
                settings.twilio_whatsapp_from,
            ))

        self.deps = HandlerDependencies(
            session_store=self.session_store,
            vessel_data=vessel_data,
            analyst=analyst,
            report_service=report_service,
            deliverer=deliverer,
            session_ttl=settings.session_ttl_seconds,
            recipient_emails=settings.recipient_emails,
            default_recipient=settings.default_recipient_email,
            background_timeout=settings.background_recommendations_timeout_seconds,
        )
        self.router = DialogueRouter(
            session_store=self.session_store,
            rate_limiter=self.rate_limiter,
            directory=self.directory,
            intent_detector=intent_detector,
            deps=self.deps,
        )

    def _own(self, client):
        self._owned.append(client)
        return client

    async def start(self):
        self.directory.load()
        self.sweeper.start()
        logger.info("Vessel bot runtime started")

    async def stop(self):
        await self.sweeper.stop()
        await self.deps.cancel_background()
        for client in self._owned:
            await client.aclose()
        logger.info("Vessel bot runtime stopped")

    async def handle_inbound_message(self, sender_raw: str, text: str) -> str:
        return await self.router.handle_inbound_message(sender_raw, text)
