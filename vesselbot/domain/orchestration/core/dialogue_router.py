from typing import TypedDict, Dict, Any, List, Optional, Literal
from langgraph.graph import StateGraph, END
import structlog

from vesselbot.domain.collaborators import IntentDetector
from vesselbot.domain.composer import messages
from vesselbot.domain.context.memory.session_store import SessionStore
from vesselbot.domain.context.owner_key import normalize_owner_key, mask_owner_key
from vesselbot.domain.context.state.rate_limiter import RateLimiter
from vesselbot.domain.directory.vessel_directory import VesselDirectory
from vesselbot.domain.errors import CollaboratorError, IntentDetectionError
from vesselbot.domain.models.conversation import FollowUpChoice, Intent, SessionState
from vesselbot.domain.orchestration.handlers.base_handler import BaseHandler, HandlerDependencies
from vesselbot.domain.orchestration.handlers.intent_handlers import build_intent_handlers
from vesselbot.domain.orchestration.handlers.follow_up_handlers import build_follow_up_handlers

logger = structlog.get_logger(__name__)


class RouterState(TypedDict, total=False):
    """State carried through the routing graph for one inbound message"""
    sender_raw: str
    text: str
    owner_key: str
    session_state: str
    payload: Optional[Dict[str, Any]]
    choice: str
    reply: str


def classify_follow_up(text: str) -> FollowUpChoice:
    """Read a reply to the download-or-email question"""
    normalized = (text or "").strip().lower()
    if normalized == "1" or "download" in normalized:
        return FollowUpChoice.DOWNLOAD
    if normalized == "2" or "email" in normalized:
        return FollowUpChoice.EMAIL
    return FollowUpChoice.OTHER


class DialogueRouter:
    """Turns each inbound message into exactly one reply.

    The graph runs: validate input -> rate limit -> take the session, then
    either the follow-up branch (active session) or the new-query branch.
    A follow-up the user didn't answer with a valid choice drops the session
    and is handled again as a new query.
    """

    def __init__(
        self,
        session_store: SessionStore,
        rate_limiter: RateLimiter,
        directory: VesselDirectory,
        intent_detector: IntentDetector,
        deps: HandlerDependencies,
        intent_handlers: Optional[Dict[Intent, BaseHandler]] = None,
        follow_up_handlers: Optional[Dict[FollowUpChoice, BaseHandler]] = None,
    ):
        self.session_store = session_store
        self.rate_limiter = rate_limiter
        self.directory = directory
        self.intent_detector = intent_detector
        self.deps = deps
        self.intent_handlers = intent_handlers or build_intent_handlers(deps)
        self.follow_up_handlers = follow_up_handlers or build_follow_up_handlers(deps)
        self.workflow = self._create_workflow()

    def _create_workflow(self):
        """Create the routing graph"""

        workflow = StateGraph(RouterState)

        workflow.add_node("input_validator", self.input_validation_node)
        workflow.add_node("rate_limiter", self.rate_limit_node)
        workflow.add_node("session_loader", self.session_node)
        workflow.add_node("follow_up_classifier", self.follow_up_classification_node)
        workflow.add_node("follow_up_handler", self.follow_up_node)
        workflow.add_node("new_query_handler", self.new_query_node)

        workflow.set_entry_point("input_validator")

        workflow.add_conditional_edges(
            "input_validator",
            self.stop_if_replied,
            {"reply": END, "continue": "rate_limiter"}
        )
        workflow.add_conditional_edges(
            "rate_limiter",
            self.stop_if_replied,
            {"reply": END, "continue": "session_loader"}
        )
        workflow.add_conditional_edges(
            "session_loader",
            self.route_on_session,
            {
                "expired": END,
                "active": "follow_up_classifier",
                "none": "new_query_handler"
            }
        )
        workflow.add_conditional_edges(
            "follow_up_classifier",
            self.route_on_choice,
            {
                "selection": "follow_up_handler",
                "other": "new_query_handler"
            }
        )
        workflow.add_edge("follow_up_handler", END)
        workflow.add_edge("new_query_handler", END)

        return workflow.compile()

    async def handle_inbound_message(self, sender_raw: str, text: str) -> str:
        """Single entry point: one inbound message in, one reply out. Never raises."""

        try:
            final_state = await self.workflow.ainvoke({
                "sender_raw": sender_raw or "",
                "text": text or "",
            })
            return final_state.get("reply") or messages.GENERIC_FAILURE
        except Exception as e:
            owner_key = normalize_owner_key(sender_raw)
            logger.exception("Unhandled error while routing message", owner=mask_owner_key(owner_key), error=str(e))
            if owner_key:
                await self.session_store.clear(owner_key)
            return messages.GENERIC_FAILURE

    def handler_info(self) -> List[Dict[str, Any]]:
        handlers = list(self.intent_handlers.values()) + list(self.follow_up_handlers.values())
        return [handler.get_info() for handler in handlers]

    async def input_validation_node(self, state: RouterState) -> Dict[str, Any]:
        owner_key = normalize_owner_key(state.get("sender_raw"))
        if not owner_key:
            logger.error("Missing sender in inbound message")
            return {"owner_key": "", "reply": messages.MISSING_SENDER}

        if not state.get("text", "").strip():
            logger.info("Empty message received", owner=mask_owner_key(owner_key))
            return {"owner_key": owner_key, "reply": messages.EMPTY_MESSAGE}

        return {"owner_key": owner_key}

    async def rate_limit_node(self, state: RouterState) -> Dict[str, Any]:
        status = await self.rate_limiter.check(state["owner_key"])
        if not status.allowed:
            return {"reply": messages.rate_limited(self.rate_limiter.max_requests)}
        return {}

    async def session_node(self, state: RouterState) -> Dict[str, Any]:
        # the pending step is consumed whatever the answer turns out to be
        found = await self.session_store.take(state["owner_key"])
        update: Dict[str, Any] = {"session_state": found.state.value, "payload": found.payload}
        if found.state == SessionState.EXPIRED:
            update["reply"] = messages.SESSION_EXPIRED
        return update

    async def follow_up_classification_node(self, state: RouterState) -> Dict[str, Any]:
        owner_key = state["owner_key"]
        choice = classify_follow_up(state["text"])

        if choice == FollowUpChoice.OTHER:
            logger.info("Unrecognized follow-up, treating as new query", owner=mask_owner_key(owner_key))
        else:
            logger.info("Follow-up selected", owner=mask_owner_key(owner_key), choice=choice.value)
        return {"choice": choice.value}

    async def follow_up_node(self, state: RouterState) -> Dict[str, Any]:
        handler = self.follow_up_handlers[FollowUpChoice(state["choice"])]
        reply = await handler.run(state["owner_key"], {"payload": state.get("payload") or {}})
        return {"reply": reply}

    async def new_query_node(self, state: RouterState) -> Dict[str, Any]:
        owner_key = state["owner_key"]
        text = state["text"]
        logger.info("Processing new query", owner=mask_owner_key(owner_key), message_length=len(text))

        try:
            result = await self.intent_detector.detect_intent(text)
        except IntentDetectionError as e:
            logger.warning("Unparseable intent detection result", owner=mask_owner_key(owner_key), error=str(e))
            return {"reply": messages.unclear_intent()}
        except CollaboratorError as e:
            logger.error("Intent detection unavailable", owner=mask_owner_key(owner_key), error=str(e))
            return {"reply": messages.GENERIC_FAILURE}

        logger.info(
            "Intent detected",
            owner=mask_owner_key(owner_key),
            intent=result.intent.value,
            confidence=result.confidence.value,
            vessel_identifier=result.vessel_identifier,
        )

        if not result.is_actionable:
            logger.warning("Unclear or unsupported intent", owner=mask_owner_key(owner_key), intent=result.intent.value)
            return {"reply": messages.unclear_intent()}

        requested = (result.vessel_identifier or "").strip()
        if not requested:
            logger.warning("Missing vessel identifier", owner=mask_owner_key(owner_key), intent=result.intent.value)
            return {"reply": messages.MISSING_VESSEL}

        vessel = self.directory.resolve(requested)
        if vessel is None:
            logger.warning("Vessel not found in directory", owner=mask_owner_key(owner_key), vessel_identifier=requested)
            return {"reply": messages.vessel_not_found(requested)}

        handler = self.intent_handlers[result.intent]
        reply = await handler.run(owner_key, {"vessel": vessel, "requested": requested})
        return {"reply": reply}

    def stop_if_replied(self, state: RouterState) -> Literal["reply", "continue"]:
        return "reply" if state.get("reply") else "continue"

    def route_on_session(self, state: RouterState) -> Literal["expired", "active", "none"]:
        return state.get("session_state", SessionState.NONE.value)

    def route_on_choice(self, state: RouterState) -> Literal["selection", "other"]:
        return "other" if state.get("choice") == FollowUpChoice.OTHER.value else "selection"
