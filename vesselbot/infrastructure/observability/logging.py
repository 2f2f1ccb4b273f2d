import structlog
import logging
import sys
from typing import Dict, Any, List
from datetime import datetime

from vesselbot.domain.context.owner_key import normalize_owner_key, mask_owner_key

# event keys that may carry a raw phone number
PHONE_FIELDS = ("sender", "sender_raw", "from_number", "to_number", "phone")


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "vessel-bot",
    environment: str = "development",
) -> None:
    """Route structlog through stdlib logging with JSON or console output"""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO)
    )

    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=shared_processors() + [renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=service_name, environment=environment)


def shared_processors() -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        mask_phone_numbers,
        add_service_context,
    ]


def mask_phone_numbers(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Replace raw phone numbers with their masked owner key"""

    for field in PHONE_FIELDS:
        value = event_dict.get(field)
        if isinstance(value, str):
            event_dict[field] = mask_owner_key(normalize_owner_key(value))
    return event_dict


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add request context to all log entries"""

    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.utcnow().isoformat()

    # id of the inbound webhook call, when bound
    request_id = structlog.contextvars.get_contextvars().get("request_id")
    if request_id:
        event_dict["request_id"] = request_id

    return event_dict


def bind_request_context(request_id: str, **extra: Any) -> None:
    """Bind per-request values for every log line emitted while handling it"""
    structlog.contextvars.bind_contextvars(request_id=request_id, **extra)


def clear_request_context() -> None:
    structlog.contextvars.unbind_contextvars("request_id", "owner")
