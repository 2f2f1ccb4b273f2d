from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Set, Coroutine
from datetime import datetime
import asyncio
import structlog

from vesselbot.domain.collaborators import (
    VesselAnalyst, VesselDataProvider, ReportService, MessageDeliverer
)
from vesselbot.domain.composer import messages
from vesselbot.domain.context.memory.session_store import SessionStore
from vesselbot.domain.context.owner_key import mask_owner_key
from vesselbot.domain.errors import CollaboratorError

logger = structlog.get_logger(__name__)


class HandlerDependencies:
    """Shared collaborators and settings handed to every handler"""

    def __init__(
        self,
        session_store: SessionStore,
        vessel_data: VesselDataProvider,
        analyst: Optional[VesselAnalyst] = None,
        report_service: Optional[ReportService] = None,
        deliverer: Optional[MessageDeliverer] = None,
        session_ttl: int = 300,
        recipient_emails: Optional[Dict[str, str]] = None,
        default_recipient: Optional[str] = None,
        background_timeout: float = 240.0,
    ):
        self.session_store = session_store
        self.vessel_data = vessel_data
        self.analyst = analyst
        self.report_service = report_service
        self.deliverer = deliverer
        self.session_ttl = session_ttl
        self.recipient_emails = recipient_emails or {}
        self.default_recipient = default_recipient
        self.background_timeout = background_timeout
        self.background_tasks: Set[asyncio.Task] = set()

    def recipient_for(self, owner_key: str) -> Optional[str]:
        """Email on file for an owner key, else the configured default"""
        return self.recipient_emails.get(owner_key) or self.default_recipient

    def spawn(self, coro: Coroutine) -> asyncio.Task:
        """Run work after the reply has been sent, keeping a reference to the task"""
        task = asyncio.create_task(coro)
        self.background_tasks.add(task)
        task.add_done_callback(self._background_done)
        return task

    def _background_done(self, task: asyncio.Task) -> None:
        self.background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background task failed", error=str(error), error_type=type(error).__name__)

    async def cancel_background(self):
        tasks = list(self.background_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class BaseHandler(ABC):
    """Base class for intent and follow-up handlers"""

    failure_message = messages.GENERIC_FAILURE

    def __init__(self, name: str, description: str, deps: HandlerDependencies):
        self.name = name
        self.description = description
        self.deps = deps
        self.created_at = datetime.utcnow()
        self.last_active = datetime.utcnow()

    @abstractmethod
    async def process(self, owner_key: str, request: Dict[str, Any]) -> str:
        """Build the reply for one message"""
        pass

    async def run(self, owner_key: str, request: Dict[str, Any]) -> str:
        """Process a request, turning collaborator failures into a reply.

        A pending session is dropped on failure so the user is never stuck
        in a step that can't be completed.
        """
        self.update_activity()
        try:
            return await self.process(owner_key, request)
        except CollaboratorError as e:
            logger.error(
                "Handler collaborator failure",
                handler=self.name,
                owner=mask_owner_key(owner_key),
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.deps.session_store.clear(owner_key)
            return self.failure_message

    async def analyze(self, prompt: str) -> Optional[str]:
        """Ask the analyst for text, None if it is missing or failing"""
        if self.deps.analyst is None:
            return None
        try:
            return await self.deps.analyst.analyze(prompt)
        except CollaboratorError as e:
            logger.warning("Analyst unavailable, using fallback", handler=self.name, error=str(e))
            return None

    def update_activity(self):
        self.last_active = datetime.utcnow()

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "last_active": self.last_active.isoformat()
        }
