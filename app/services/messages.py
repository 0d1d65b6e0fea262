"""Caller-facing speech and SMS templates.

Everything the voice assistant says back is a plain sentence built here; it
never hears raw errors or status codes.
"""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.schemas.intent import BookingParams, EmergencyParams

logger = logging.getLogger(__name__)

MISSING_BOOKING_DETAILS = (
    "I need a few more details before booking. "
    "Could you confirm your name, number, and preferred time?"
)


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC."""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_time_label(value: str, tz_name: str) -> str:
    """Render an ISO timestamp as 'Monday, Oct 20 at 9:00 AM' in the given zone.

    Unparseable input is returned unchanged so the sentence still reads.
    """
    try:
        dt = parse_iso(value).astimezone(ZoneInfo(tz_name))
    except ValueError:
        logger.warning("Unparseable timestamp: %r", value)
        return value
    clock = dt.strftime("%I:%M %p").lstrip("0")
    return f"{dt:%A, %b} {dt.day} at {clock}"


def format_clock(dt: datetime, tz_name: str) -> str:
    return dt.astimezone(ZoneInfo(tz_name)).strftime("%I:%M %p")


# --- Availability ---


def format_calendar_unavailable(owner_name: str) -> str:
    return (
        "I'm having trouble checking the calendar right now. "
        f"Let me have {owner_name} call you back to schedule."
    )


def format_no_openings(owner_name: str) -> str:
    return f"No openings this week. I'll have {owner_name} call you to find a time."


def format_slots_offer(labels: list[str]) -> str:
    return f"I've got: {', '.join(labels)}. Which works best?"


# --- Booking ---


def format_booked(time_label: str, customer_sent: bool, owner_name: str) -> str:
    if customer_sent:
        return f"Booked for {time_label}. Confirmation texts sent."
    return f"Booked for {time_label}. I sent {owner_name} the details — they'll confirm with you directly."


def format_booking_failed(owner_name: str) -> str:
    return f"The booking didn't go through. I'll have {owner_name} call you back to schedule."


def format_booking_hiccup(owner_name: str) -> str:
    return f"The booking system had a hiccup. I'll have {owner_name} call you to confirm."


def format_customer_confirmation(params: BookingParams, business_name: str, time_label: str) -> str:
    return (
        f"Hi {params.caller_name}! Your estimate with {business_name} is confirmed for {time_label}. "
        "Reply to this text if you need to reschedule."
    )


def format_owner_booking_alert(params: BookingParams, time_label: str, booking_id: str) -> str:
    lines = [
        "📋 NEW BOOKING",
        f"{params.caller_name} — {params.phone}",
        params.job_description or "",
        f"📍 {params.address or 'N/A'}",
        f"📅 {time_label}",
        "",
        f"Booking #{booking_id}",
    ]
    return "\n".join(lines)


# --- Emergency ---


def format_emergency_alert(params: EmergencyParams) -> str:
    lines = [
        "🚨 EMERGENCY CALL",
        f"{params.caller_name or 'Caller'} — {params.phone or 'No number given'}",
        params.issue or "No details given",
        f"📍 {params.address or 'No address given'}",
        "",
        "Call back ASAP!",
    ]
    return "\n".join(lines)


def format_emergency_ack(owner_name: str) -> str:
    return f"I've sent an urgent alert to {owner_name}. They'll call you right back."
