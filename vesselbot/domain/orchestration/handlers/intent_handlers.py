from typing import Dict, Any, Optional, Callable
import structlog

from vesselbot.domain.composer import messages
from vesselbot.domain.context.owner_key import mask_owner_key
from vesselbot.domain.errors import CollaboratorError, RecommendationsTimeout, VesselDataError
from vesselbot.domain.models.conversation import Intent, VesselRecord
from vesselbot.domain.models.recommendations import count_recommendations, recommendation_items
from vesselbot.domain.orchestration import prompts
from .base_handler import BaseHandler, HandlerDependencies

logger = structlog.get_logger(__name__)


class VesselQueryHandler(BaseHandler):
    """Intent handler for a vessel already resolved through the directory.

    ``request`` carries ``vessel`` (the VesselRecord) and ``requested`` (the
    identifier text the user gave).
    """

    failure_message = messages.DATA_UNAVAILABLE

    async def fetch_vessel_data(self, owner_key: str, vessel: VesselRecord) -> Optional[Dict[str, Any]]:
        vessel_data = await self.deps.vessel_data.fetch_vessel_record(vessel.identifier)
        if not vessel_data:
            logger.warning(
                "Vessel data not found in API",
                owner=mask_owner_key(owner_key),
                vessel=vessel.canonical_name,
            )
            return None

        logger.info(
            "Vessel data fetched",
            owner=mask_owner_key(owner_key),
            vessel=vessel.canonical_name,
            imo=vessel.identifier,
        )
        return vessel_data


class RiskAnalysisHandler(VesselQueryHandler):
    """Risk score and risk level replies"""

    def __init__(
        self,
        intent: Intent,
        prompt_builder: Callable[[Dict[str, Any]], str],
        deps: HandlerDependencies,
    ):
        super().__init__(intent.value, f"Explain the vessel's {intent.value.replace('_', ' ')}", deps)
        self.intent = intent
        self.prompt_builder = prompt_builder

    async def process(self, owner_key: str, request: Dict[str, Any]) -> str:
        vessel: VesselRecord = request["vessel"]
        vessel_data = await self.fetch_vessel_data(owner_key, vessel)
        if vessel_data is None:
            return messages.vessel_not_found(request.get("requested") or vessel.canonical_name)

        analysis = await self.analyze(self.prompt_builder(vessel_data))
        if analysis:
            logger.info("Risk analysis completed", intent=self.intent.value, vessel=vessel.canonical_name)
            return analysis

        return messages.risk_fallback(self.intent, vessel.canonical_name, vessel_data)


class VesselInfoHandler(VesselQueryHandler):
    def __init__(self, deps: HandlerDependencies):
        super().__init__(Intent.VESSEL_INFO.value, "General vessel information", deps)

    async def process(self, owner_key: str, request: Dict[str, Any]) -> str:
        vessel: VesselRecord = request["vessel"]
        vessel_data = await self.fetch_vessel_data(owner_key, vessel)
        if vessel_data is None:
            return messages.vessel_not_found(request.get("requested") or vessel.canonical_name)

        return messages.vessel_info(vessel.canonical_name, vessel.identifier, vessel_data)


class RecommendationsHandler(VesselQueryHandler):
    """Summarize recommendations and ask how the report should be delivered.

    Saves a session so the next message can pick download or email.
    """

    def __init__(self, deps: HandlerDependencies):
        super().__init__(Intent.RECOMMENDATIONS.value, "Vessel recommendations with report follow-up", deps)

    async def process(self, owner_key: str, request: Dict[str, Any]) -> str:
        vessel: VesselRecord = request["vessel"]
        vessel_data = await self.fetch_vessel_data(owner_key, vessel)
        if vessel_data is None:
            return messages.vessel_not_found(request.get("requested") or vessel.canonical_name)

        try:
            recommendations = await self.deps.vessel_data.fetch_recommendations(vessel.identifier)
        except RecommendationsTimeout:
            logger.info("Recommendations slow, continuing in background", owner=mask_owner_key(owner_key), imo=vessel.identifier)
            self.deps.spawn(self.deliver_later(owner_key, vessel, vessel_data))
            return messages.recommendations_pending(vessel.canonical_name)
        except VesselDataError as e:
            logger.error("Recommendations API failed", owner=mask_owner_key(owner_key), imo=vessel.identifier, error=str(e))
            return messages.RECOMMENDATIONS_UNAVAILABLE

        if not recommendations:
            logger.warning("Recommendations data not found", owner=mask_owner_key(owner_key), imo=vessel.identifier)
            return messages.RECOMMENDATIONS_UNAVAILABLE

        summary = await self.summarize(recommendations)
        await self.remember(owner_key, vessel, vessel_data, recommendations)
        return messages.recommendations_ready(vessel.canonical_name, summary)

    async def summarize(self, recommendations: Dict[str, Any]) -> str:
        summary = await self.analyze(prompts.recommendations_summary(recommendations))
        if summary:
            return summary.strip()
        return messages.recommendations_summary(
            count_recommendations(recommendations),
            len(recommendation_items(recommendations)),
        )

    async def remember(
        self,
        owner_key: str,
        vessel: VesselRecord,
        vessel_data: Dict[str, Any],
        recommendations: Dict[str, Any],
    ):
        await self.deps.session_store.save(
            owner_key,
            {
                "intent": Intent.RECOMMENDATIONS.value,
                "vessel_name": vessel.canonical_name,
                "vessel_identifier": vessel.identifier,
                "vessel_data": vessel_data,
                "recommendations_data": recommendations,
            },
            self.deps.session_ttl,
        )
        logger.info("Session saved for recommendations follow-up", owner=mask_owner_key(owner_key), vessel=vessel.canonical_name)

    async def deliver_later(self, owner_key: str, vessel: VesselRecord, vessel_data: Dict[str, Any]):
        """Fetch recommendations with a long timeout and push the outcome"""
        try:
            recommendations = await self.deps.vessel_data.fetch_recommendations(
                vessel.identifier, timeout=self.deps.background_timeout
            )
        except CollaboratorError as e:
            logger.error("Background recommendations fetch failed", imo=vessel.identifier, error=str(e))
            recommendations = None

        if recommendations:
            summary = await self.summarize(recommendations)
            await self.remember(owner_key, vessel, vessel_data, recommendations)
            text = messages.recommendations_ready(vessel.canonical_name, summary)
        else:
            text = messages.recommendations_delivery_failed(vessel.canonical_name, vessel.identifier)

        await self.push(owner_key, text)

    async def push(self, owner_key: str, text: str):
        if self.deps.deliverer is None:
            logger.warning("No outbound channel configured, dropping message", owner=mask_owner_key(owner_key))
            return
        try:
            await self.deps.deliverer.deliver_message(owner_key, text)
        except CollaboratorError as e:
            logger.error("Outbound delivery failed", owner=mask_owner_key(owner_key), error=str(e))


def build_intent_handlers(deps: HandlerDependencies) -> Dict[Intent, BaseHandler]:
    return {
        Intent.RISK_SCORE: RiskAnalysisHandler(Intent.RISK_SCORE, prompts.risk_score_analysis, deps),
        Intent.RISK_LEVEL: RiskAnalysisHandler(Intent.RISK_LEVEL, prompts.risk_level_analysis, deps),
        Intent.RECOMMENDATIONS: RecommendationsHandler(deps),
        Intent.VESSEL_INFO: VesselInfoHandler(deps),
    }
