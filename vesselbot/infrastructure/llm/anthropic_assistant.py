from typing import Any, Dict, Optional
import json
import re
import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage

from vesselbot.domain.errors import CollaboratorError, IntentDetectionError
from vesselbot.domain.models.conversation import Confidence, Intent, IntentResult
from vesselbot.domain.orchestration import prompts

logger = structlog.get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def message_text(message: BaseMessage) -> str:
    """Plain text of a chat model reply, whether content is a string or blocks"""
    content = message.content
    if isinstance(content, str):
        return content.strip()
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts).strip()


def parse_intent_response(text: str) -> IntentResult:
    """Parse the classifier's JSON reply, tolerating markdown fences around it.

    Unknown intent or confidence values degrade to ``unknown`` / ``low``.
    """
    match = _JSON_OBJECT.search(text or "")
    try:
        data = json.loads(match.group(0) if match else text)
    except (TypeError, ValueError) as e:
        raise IntentDetectionError(f"Unparseable intent response: {(text or '')[:200]!r}") from e

    if not isinstance(data, dict):
        raise IntentDetectionError("Intent response is not a JSON object")

    try:
        intent = Intent(str(data.get("intent") or "unknown").lower())
    except ValueError:
        intent = Intent.UNKNOWN

    try:
        confidence = Confidence(str(data.get("confidence") or "low").lower())
    except ValueError:
        confidence = Confidence.LOW

    identifier = data.get("vessel_identifier")
    if identifier is not None:
        identifier = str(identifier).strip()
        if not identifier or identifier.lower() == "null":
            identifier = None

    return IntentResult(intent=intent, vessel_identifier=identifier, confidence=confidence)


class AnthropicAssistant:
    """Intent detection and vessel analysis through a LangChain chat model"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-sonnet-4-20250514",
        intent_max_tokens: int = 200,
        analysis_max_tokens: int = 1000,
        analysis_temperature: float = 0.7,
        intent_model: Optional[BaseChatModel] = None,
        analysis_model: Optional[BaseChatModel] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.intent_max_tokens = intent_max_tokens
        self.analysis_max_tokens = analysis_max_tokens
        self.analysis_temperature = analysis_temperature
        self._intent_model = intent_model
        self._analysis_model = analysis_model

    def _build_model(self, temperature: float, max_tokens: int) -> BaseChatModel:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return ChatAnthropic(**kwargs)

    @property
    def intent_model(self) -> BaseChatModel:
        if self._intent_model is None:
            self._intent_model = self._build_model(0, self.intent_max_tokens)
        return self._intent_model

    @property
    def analysis_model(self) -> BaseChatModel:
        if self._analysis_model is None:
            self._analysis_model = self._build_model(self.analysis_temperature, self.analysis_max_tokens)
        return self._analysis_model

    async def detect_intent(self, text: str) -> IntentResult:
        try:
            model = self.intent_model
            response = await model.ainvoke([HumanMessage(content=prompts.intent_detection(text))])
        except Exception as e:
            raise CollaboratorError(f"Intent model call failed: {e}") from e

        content = message_text(response)
        logger.debug("Intent model replied", response_length=len(content), preview=content[:200])
        return parse_intent_response(content)

    async def analyze(self, prompt: str) -> Optional[str]:
        try:
            model = self.analysis_model
            response = await model.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            raise CollaboratorError(f"Analysis model call failed: {e}") from e

        content = message_text(response)
        if not content:
            logger.warning("Analysis model returned empty response")
            return None
        return content
