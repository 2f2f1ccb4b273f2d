from datetime import datetime
import uuid
from fastapi import APIRouter, Form, Request
from fastapi.responses import Response
import structlog

from vesselbot.application.runtime import BotRuntime
from vesselbot.domain.composer.messages import to_twiml
from vesselbot.domain.context.owner_key import normalize_owner_key, mask_owner_key
from vesselbot.infrastructure.observability.logging import bind_request_context, clear_request_context

logger = structlog.get_logger(__name__)

router = APIRouter()


def get_runtime(request: Request) -> BotRuntime:
    return request.app.state.runtime


@router.post("/webhook/whatsapp")
async def whatsapp_webhook(
    request: Request,
    body: str = Form(default="", alias="Body"),
    sender: str = Form(default="", alias="From"),
):
    """Twilio WhatsApp webhook, answered with TwiML"""

    bind_request_context(
        request_id=request.headers.get("X-Twilio-Request-Id") or str(uuid.uuid4()),
        owner=mask_owner_key(normalize_owner_key(sender)),
    )
    try:
        logger.info("WhatsApp webhook received", message_length=len(body))
        reply = await get_runtime(request).handle_inbound_message(sender, body)
        return Response(content=to_twiml(reply), media_type="text/xml")
    finally:
        clear_request_context()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    runtime = get_runtime(request)
    return {
        "status": "healthy",
        "active_sessions": runtime.session_store.active_count(),
        "sweeper_running": runtime.sweeper.running,
        "handlers": runtime.router.handler_info(),
        "timestamp": datetime.utcnow().isoformat()
    }
