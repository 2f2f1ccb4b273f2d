"""
Configuration management using Pydantic Settings
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vesselbot.domain.context.owner_key import normalize_owner_key


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    service_name: str = Field(default="vessel-bot", description="Service name bound to every log line")
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="'json' or 'console'")

    # Language model
    anthropic_api_key: Optional[str] = Field(default=None)
    anthropic_model: str = Field(default="claude-sonnet-4-20250514")
    intent_max_tokens: int = Field(default=200, ge=1)
    analysis_max_tokens: int = Field(default=1000, ge=1)
    analysis_temperature: float = Field(default=0.7, ge=0.0, le=1.0)

    # Vessel data
    vessel_mappings_path: Path = Field(default=Path("data/vessel-mappings.csv"))
    dashboard_api_url: str = Field(default="https://psc.ocean-eye.io/api/v1/vessels/dashboard/")
    recommendations_api_url: str = Field(
        default="https://psc.ocean-eye.io/api/v1/vessels/{IMO}/amsa/recommendations",
        description="URL template, {IMO} is replaced with the vessel identifier"
    )
    dashboard_cache_seconds: int = Field(default=3600, ge=0)
    dashboard_timeout_seconds: float = Field(default=10.0, gt=0)
    recommendations_timeout_seconds: float = Field(default=8.0, gt=0)
    background_recommendations_timeout_seconds: float = Field(default=240.0, gt=0)

    # Reports
    report_service_url: Optional[str] = Field(default=None, description="Base URL of the report service")
    report_timeout_seconds: float = Field(default=20.0, gt=0)
    default_recipient_email: Optional[str] = Field(default=None)
    recipient_emails: Dict[str, str] = Field(
        default_factory=dict,
        description="Phone number to email map (JSON object)"
    )

    # Outbound WhatsApp
    twilio_account_sid: Optional[str] = Field(default=None)
    twilio_auth_token: Optional[str] = Field(default=None)
    twilio_whatsapp_from: Optional[str] = Field(default=None, description="e.g. whatsapp:+14155238886")

    # Conversation state
    rate_limit_max_requests: int = Field(default=50, ge=1)
    rate_limit_window_seconds: int = Field(default=3600, ge=1)
    session_ttl_seconds: int = Field(default=300, ge=1)
    sweep_interval_seconds: float = Field(default=60.0, gt=0)

    @field_validator("recipient_emails", mode="before")
    @classmethod
    def parse_recipient_emails(cls, v):
        """Accept a JSON string and key it by owner key"""
        if isinstance(v, str):
            v = json.loads(v) if v.strip() else {}
        return {
            normalize_owner_key(str(phone)): email
            for phone, email in (v or {}).items()
        }

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_whatsapp_from)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
