"""
Tests for logging processors
"""
import structlog

from vesselbot.infrastructure.observability.logging import (
    add_service_context, bind_request_context, clear_request_context, mask_phone_numbers
)


def test_mask_phone_numbers():
    event = mask_phone_numbers(None, "info", {
        "event": "Inbound message",
        "sender": "whatsapp:+15551234567",
        "to_number": "+44 20 7946 0958",
        "count": 3,
    })

    assert event["sender"] == "1555****"
    assert event["to_number"] == "4420****"
    assert event["count"] == 3


def test_request_context_is_added_and_cleared():
    bind_request_context("req-1", owner="1555****")
    try:
        event = add_service_context(None, "info", {"event": "x"})
        assert event["request_id"] == "req-1"
        assert "timestamp" in event
    finally:
        clear_request_context()

    assert "request_id" not in structlog.contextvars.get_contextvars()
    assert "owner" not in structlog.contextvars.get_contextvars()
