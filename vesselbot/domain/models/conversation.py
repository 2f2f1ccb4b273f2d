from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from enum import Enum


class Intent(str, Enum):
    """Query intents understood by the assistant"""
    RISK_SCORE = "risk_score"
    RISK_LEVEL = "risk_level"
    RECOMMENDATIONS = "recommendations"
    VESSEL_INFO = "vessel_info"
    UNKNOWN = "unknown"


SUPPORTED_INTENTS = (
    Intent.RISK_SCORE,
    Intent.RISK_LEVEL,
    Intent.RECOMMENDATIONS,
    Intent.VESSEL_INFO,
)


class Confidence(str, Enum):
    """Classifier confidence"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FollowUpChoice(str, Enum):
    """Answers to the 'how would you like to receive this?' question"""
    DOWNLOAD = "download"
    EMAIL = "email"
    OTHER = "other"


class SessionState(str, Enum):
    """Outcome of a session lookup"""
    NONE = "none"
    ACTIVE = "active"
    EXPIRED = "expired"


class VesselRecord(BaseModel):
    """Directory entry mapping a canonical vessel name to its IMO number"""
    model_config = ConfigDict(frozen=True)

    canonical_name: str = Field(min_length=1)
    identifier: str = Field(min_length=1)

    @property
    def normalized_name(self) -> str:
        return self.canonical_name.strip().upper()


class IntentResult(BaseModel):
    """Parsed result of intent detection"""
    intent: Intent = Field(default=Intent.UNKNOWN)
    vessel_identifier: Optional[str] = None
    confidence: Confidence = Field(default=Confidence.LOW)

    @property
    def is_actionable(self) -> bool:
        """Low confidence and unsupported intents are treated as unknown"""
        return (
            self.intent in SUPPORTED_INTENTS
            and self.confidence != Confidence.LOW
        )


class Session(BaseModel):
    """A pending multi-step conversation for one owner key"""
    owner_key: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class SessionLookup(BaseModel):
    """Session payload together with the state it was found in"""
    state: SessionState = SessionState.NONE
    payload: Optional[Dict[str, Any]] = None


class RateRecord(BaseModel):
    """Fixed-window request counter for one owner key"""
    owner_key: str
    count: int = 0
    window_reset_at: datetime


class RateLimitStatus(BaseModel):
    """Result of a rate limit check"""
    allowed: bool
    remaining: int
    reset_at: datetime
