"""User-facing WhatsApp replies.

Everything here is formatting only: no I/O, no state.
"""

from typing import Dict, Any, Optional
from xml.sax.saxutils import escape

from vesselbot.domain.models.conversation import Intent

GENERIC_FAILURE = (
    "Sorry, something went wrong while processing your request. "
    "Please try again in a moment."
)
MISSING_SENDER = "Error: Missing sender information."
EMPTY_MESSAGE = "Please send a vessel name or IMO to begin."
SESSION_EXPIRED = "Your session expired. Please send your request again."
DATA_UNAVAILABLE = (
    "Sorry, I'm having trouble accessing vessel data right now. "
    "Please try again in a moment."
)
MISSING_VESSEL = (
    "I need a vessel name or IMO number to help you.\n\n"
    "Please include the vessel name or IMO in your message.\n\n"
    'Example: "What is the risk score for GCL YAMUNA?"'
)
MISSING_VESSEL_DATA = "❌ Error: Vessel data not found. Please start a new query."
RECOMMENDATIONS_UNAVAILABLE = (
    "I found the vessel but couldn't retrieve recommendations. Please try again."
)
REPORT_FAILED = (
    "❌ Sorry, I encountered an error preparing your report.\n\n"
    "Please try again in a moment."
)
EMAIL_MISSING = (
    "❌ Email address not found for your phone number.\n\n"
    "Please use the download option instead. Reply '1' to download."
)


def rate_limited(max_requests: int) -> str:
    return (
        "⚠️ You've reached the rate limit. Please try again later.\n\n"
        f"Limit: {max_requests} requests per hour."
    )


def unclear_intent() -> str:
    return (
        "I'm not sure what you're asking. Try:\n"
        "• 'Risk score for GCL YAMUNA'\n"
        "• 'Risk level of GCL TAPI'\n"
        "• 'Recommendations for GCL GANGA'"
    )


def vessel_not_found(vessel_identifier: str) -> str:
    return (
        f"I couldn't find a vessel named '{vessel_identifier}'. "
        "Please check the spelling or try using the IMO number.\n\n"
        "Try: 'Risk score for GCL YAMUNA' or 'Vessel 9481219'"
    )


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return default


def risk_score_of(vessel_data: Dict[str, Any]) -> Any:
    return _first(vessel_data, "riskScore", "risk_score", default="N/A")


def risk_level_of(vessel_data: Dict[str, Any]) -> Any:
    return _first(vessel_data, "riskLevel", "risk_level", default="N/A")


def risk_fallback(intent: Intent, vessel_name: str, vessel_data: Dict[str, Any]) -> str:
    """Plain risk reply used when the analyst is unavailable"""
    score = risk_score_of(vessel_data)
    level = risk_level_of(vessel_data)
    if intent == Intent.RISK_LEVEL:
        headline = f"🔍 Risk Level: *{level}*"
    else:
        headline = f"📊 Risk Score: *{score}* ({level})"
    return f"*{vessel_name}*\n\n{headline}"


def vessel_info(vessel_name: str, identifier: str, vessel_data: Dict[str, Any]) -> str:
    lines = [f"🚢 *{vessel_name}*", f"IMO: {identifier}"]
    fields = (
        ("Type", ("vesselType", "vessel_type", "type")),
        ("Flag", ("flag", "flagState", "flag_state")),
        ("Risk score", ("riskScore", "risk_score")),
        ("Risk level", ("riskLevel", "risk_level")),
    )
    for label, keys in fields:
        value = _first(vessel_data, *keys)
        if value is not None:
            lines.append(f"{label}: {value}")
    return "\n".join(lines)


def recommendations_summary(counts: Dict[str, int], total: int) -> str:
    return (
        f"📋 Found {total} recommendations:\n"
        f"• {counts['critical']} critical\n"
        f"• {counts['moderate']} moderate\n"
        f"• {counts['recommended']} recommended"
    )


def recommendations_ready(vessel_name: str, summary: str) -> str:
    return (
        f"📋 *Recommendations for {vessel_name}*\n\n{summary}\n\n"
        "How would you like to receive this?\n\n"
        "1️⃣ Download Excel file\n"
        "2️⃣ Email to your registered address\n\n"
        "Reply with '1' or '2'"
    )


def recommendations_pending(vessel_name: str) -> str:
    return (
        f"⏳ Recommendations for {vessel_name} are taking longer than usual. "
        "I'll message you here as soon as they are ready."
    )


def recommendations_delivery_failed(vessel_name: str, identifier: str) -> str:
    return (
        f"📋 Recommendations for {vessel_name} (IMO {identifier}) are unavailable "
        "right now. Please try again later."
    )


def download_link(vessel_name: str, url: str) -> str:
    return (
        f"📊 Here's your recommendations report for {vessel_name}:\n\n{url}\n\n"
        "⚠️ Link expires in 10 minutes."
    )


def email_sent(vessel_name: str, recipient: str) -> str:
    return (
        f"✅ Recommendations report for {vessel_name} has been sent to {recipient}. "
        "Please check your inbox."
    )


def to_twiml(message: Optional[str]) -> str:
    """Wrap a reply in a TwiML <Message> envelope"""
    safe = escape(message or "", {'"': "&quot;", "'": "&apos;"})
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<Response><Message>{safe}</Message></Response>"
    )
