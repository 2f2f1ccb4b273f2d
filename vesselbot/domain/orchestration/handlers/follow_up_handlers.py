from typing import Dict, Any
import structlog

from vesselbot.domain.composer import messages
from vesselbot.domain.context.owner_key import mask_owner_key
from vesselbot.domain.errors import ReportError
from vesselbot.domain.models.conversation import FollowUpChoice
from vesselbot.domain.models.recommendations import count_recommendations
from .base_handler import BaseHandler, HandlerDependencies

logger = structlog.get_logger(__name__)


class ReportFollowUpHandler(BaseHandler):
    """Follow-up to a recommendations reply; ``request["payload"]`` is the stored session"""

    failure_message = messages.REPORT_FAILED

    def report_service(self):
        if self.deps.report_service is None:
            raise ReportError("Report service is not configured")
        return self.deps.report_service

    @staticmethod
    def vessel_name(payload: Dict[str, Any]) -> str:
        vessel_data = payload.get("vessel_data") or {}
        return (
            payload.get("vessel_name")
            or vessel_data.get("name")
            or vessel_data.get("vesselName")
            or "Unknown Vessel"
        )


class DownloadHandler(ReportFollowUpHandler):
    def __init__(self, deps: HandlerDependencies):
        super().__init__(FollowUpChoice.DOWNLOAD.value, "Excel report download link", deps)

    async def process(self, owner_key: str, request: Dict[str, Any]) -> str:
        payload = request.get("payload") or {}
        if not payload.get("vessel_data"):
            return messages.MISSING_VESSEL_DATA

        url = await self.report_service().create_download_link(payload)
        vessel_name = self.vessel_name(payload)
        logger.info("Report download link created", owner=mask_owner_key(owner_key), vessel=vessel_name)
        return messages.download_link(vessel_name, url)


class EmailHandler(ReportFollowUpHandler):
    def __init__(self, deps: HandlerDependencies):
        super().__init__(FollowUpChoice.EMAIL.value, "Excel report by email", deps)

    async def process(self, owner_key: str, request: Dict[str, Any]) -> str:
        payload = request.get("payload") or {}
        vessel_data = payload.get("vessel_data")
        if not vessel_data:
            return messages.MISSING_VESSEL_DATA

        recipient = self.deps.recipient_for(owner_key)
        if not recipient:
            # keep the choice open so the user can still reply '1'
            await self.deps.session_store.save(owner_key, payload, self.deps.session_ttl)
            logger.info("No email on file, offering download", owner=mask_owner_key(owner_key))
            return messages.EMAIL_MISSING

        vessel_name = self.vessel_name(payload)
        summary = {
            "vessel_name": vessel_name,
            "vessel_identifier": payload.get("vessel_identifier")
            or vessel_data.get("imo")
            or vessel_data.get("imoNumber")
            or "N/A",
            "recommendations_counts": count_recommendations(payload.get("recommendations_data") or {}),
            "risk_score": messages.risk_score_of(vessel_data),
            "risk_level": messages.risk_level_of(vessel_data),
        }
        await self.report_service().email_report(recipient, payload, summary)

        logger.info("Report emailed", owner=mask_owner_key(owner_key), vessel=vessel_name)
        return messages.email_sent(vessel_name, recipient)


def build_follow_up_handlers(deps: HandlerDependencies) -> Dict[FollowUpChoice, BaseHandler]:
    return {
        FollowUpChoice.DOWNLOAD: DownloadHandler(deps),
        FollowUpChoice.EMAIL: EmailHandler(deps),
    }
