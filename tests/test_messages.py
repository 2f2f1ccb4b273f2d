"""
Tests for reply formatting and recommendation counting
"""
from vesselbot.domain.composer import messages
from vesselbot.domain.models.conversation import Intent
from vesselbot.domain.models.recommendations import count_recommendations, recommendation_items


def test_count_grouped_recommendations():
    data = {
        "CRITICAL": [{"id": 1}, {"id": 2}],
        "moderate": [{"id": 3}],
        "RECOMMENDED": [],
    }
    assert count_recommendations(data) == {"critical": 2, "moderate": 1, "recommended": 0}
    assert len(recommendation_items(data)) == 3


def test_count_flat_recommendations_by_priority():
    data = {"recommendations": [
        {"priority": "high"},
        {"severity": "CRITICAL"},
        {"priority": "Medium"},
        {"severity": "low"},
        {"priority": "unknown"},
        "not a dict",
    ]}
    assert count_recommendations(data) == {"critical": 2, "moderate": 1, "recommended": 1}
    assert len(recommendation_items(data)) == 6


def test_count_empty_recommendations():
    assert count_recommendations({}) == {"critical": 0, "moderate": 0, "recommended": 0}
    assert recommendation_items({"data": "oops"}) == []


def test_risk_fallback_uses_either_key_style():
    assert messages.risk_fallback(Intent.RISK_SCORE, "GCL TAPI", {"risk_score": 40, "risk_level": "Medium"}) == (
        "*GCL TAPI*\n\n📊 Risk Score: *40* (Medium)"
    )
    assert messages.risk_fallback(Intent.RISK_LEVEL, "GCL TAPI", {}) == "*GCL TAPI*\n\n🔍 Risk Level: *N/A*"


def test_vessel_info_skips_missing_fields():
    reply = messages.vessel_info("GCL TAPI", "9481221", {"vesselType": "Bulk Carrier"})

    assert reply == "🚢 *GCL TAPI*\nIMO: 9481221\nType: Bulk Carrier"


def test_rate_limited_mentions_limit():
    assert "Limit: 50 requests per hour." in messages.rate_limited(50)


def test_to_twiml_escapes_markup():
    xml = messages.to_twiml('Risk <high> & "rising" for O\'Neil')

    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?><Response><Message>')
    assert xml.endswith("</Message></Response>")
    assert "Risk &lt;high&gt; &amp; &quot;rising&quot; for O&apos;Neil" in xml


def test_to_twiml_empty_message():
    assert messages.to_twiml(None).endswith("<Response><Message></Message></Response>")
