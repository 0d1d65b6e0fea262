"""Routes classified Vapi events to intent handlers and shapes the replies."""

import logging
import time
from datetime import datetime, timezone

from app.config import Settings
from app.schemas.records import CallReportRecord
from app.schemas.vapi import (
    EndOfCallReportEvent,
    FunctionCallEvent,
    StatusUpdateEvent,
    ToolCallsEvent,
    VapiMessage,
    WebhookEvent,
)
from app.services.call_store import CallStore
from app.services.intent import IntentDispatcher
from app.services.messages import format_clock

logger = logging.getLogger(__name__)

BOOKED_KEYWORDS = ("booked", "confirmed", "scheduled")
EMERGENCY_KEYWORDS = ("emergency", "urgent")


def classify_summary(summary: str) -> tuple[bool, bool]:
    """Guess (was_booked, was_emergency) from the call summary text.

    This is a keyword heuristic on Vapi's free-text summary, nothing more: a
    summary phrased differently ("set up a visit") is reported as a plain call.
    """
    text = summary.lower()
    was_booked = any(word in text for word in BOOKED_KEYWORDS)
    was_emergency = any(word in text for word in EMERGENCY_KEYWORDS)
    return was_booked, was_emergency


def build_call_record(report: VapiMessage, tz_name: str) -> CallReportRecord:
    summary = report.summary or ""
    was_booked, was_emergency = classify_summary(summary)
    if was_emergency:
        status = "Emergency"
    elif was_booked:
        status = "Booked"
    else:
        status = "Completed"

    call = report.call
    customer = call.customer if call else None
    now = datetime.now(timezone.utc)
    created = {"created_at": call.created_at} if call and call.created_at else {}
    return CallReportRecord(
        id=(call.id if call else None) or f"call-{int(time.time() * 1000)}",
        customerName=(customer.name if customer else None) or "Unknown Caller",
        phoneNumber=(customer.number if customer else None) or "unknown",
        status=status,
        estimateBooked=was_booked,
        duration=report.duration_seconds or 0,
        summary=summary,
        transcript=report.transcript or "",
        recording_url=report.recording_url or "",
        ended_reason=report.ended_reason or "",
        cost=report.cost or 0,
        timestamp=format_clock(now, tz_name),
        **created,
    )


class WebhookHandler:
    def __init__(self, settings: Settings, dispatcher: IntentDispatcher, store: CallStore):
        self._settings = settings
        self._dispatcher = dispatcher
        self._store = store

    async def handle(self, event: WebhookEvent) -> tuple[dict, int]:
        """Process one event. Returns (response body, HTTP status)."""
        if isinstance(event, ToolCallsEvent):
            return await self._handle_tool_calls(event), 200

        if isinstance(event, FunctionCallEvent):
            return await self._handle_function_call(event)

        if isinstance(event, EndOfCallReportEvent):
            record = build_call_record(event.report, self._settings.timezone)
            await self._store.persist(record)
            return {"received": True}, 200

        if isinstance(event, StatusUpdateEvent):
            logger.info("Call status: %s", event.status)
            return {"ok": True}, 200

        logger.info("Ignoring webhook event type %s", event.type)
        return {"ok": True}, 200

    async def _handle_tool_calls(self, event: ToolCallsEvent) -> dict:
        # One at a time, in input order
        results = []
        for call in event.calls:
            outcome = await self._dispatcher.dispatch(call.function_name, call.arguments)
            message = outcome.message if outcome else f"Unknown function: {call.function_name}"
            results.append({"toolCallId": call.id, "result": message})
        return {"results": results}

    async def _handle_function_call(self, event: FunctionCallEvent) -> tuple[dict, int]:
        fn = event.function_call
        if not fn or not fn.name:
            return {"error": "Missing function name"}, 400

        outcome = await self._dispatcher.dispatch(fn.name, fn.parameters)
        if outcome is None:
            return {"result": {"error": f"Unknown function: {fn.name}"}}, 200
        return {"result": outcome.model_dump(exclude_none=True)}, 200
