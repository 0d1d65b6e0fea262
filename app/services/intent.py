import logging
from typing import Any

import httpx
from pydantic import ValidationError

from app.config import Settings
from app.schemas.intent import (
    AvailabilityQuery,
    BookingParams,
    BookingResult,
    EmergencyParams,
    IntentName,
    IntentOutcome,
)
from app.services.availability import AvailabilityResolver
from app.services.booking import BookingExecutor
from app.services.calcom import SchedulingClient
from app.services.call_store import CallStore
from app.services.emergency import EmergencyHandler
from app.services.messages import MISSING_BOOKING_DETAILS
from app.services.twilio import SmsSender

logger = logging.getLogger(__name__)


class IntentDispatcher:
    """Maps a Vapi function name and its arguments to the matching handler."""

    def __init__(
        self,
        availability: AvailabilityResolver,
        booking: BookingExecutor,
        emergency: EmergencyHandler,
    ):
        self._availability = availability
        self._booking = booking
        self._emergency = emergency

    async def dispatch(self, name: str | None, arguments: dict[str, Any]) -> IntentOutcome | None:
        """Run one intent. Returns None for function names we don't serve."""
        logger.info("Dispatching %s", name)

        if name == IntentName.CHECK_AVAILABILITY:
            query = AvailabilityQuery.model_validate(arguments)
            return await self._availability.resolve(query.urgency, query.preferred_date)

        if name == IntentName.BOOK_APPOINTMENT:
            try:
                params = BookingParams.model_validate(arguments)
            except ValidationError as exc:
                missing = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
                logger.info("book_appointment missing details: %s", missing)
                return BookingResult(success=False, message=MISSING_BOOKING_DETAILS)
            return await self._booking.book(params)

        if name == IntentName.SEND_EMERGENCY_ALERT:
            params = EmergencyParams.model_validate(arguments)
            return await self._emergency.raise_alert(params)

        logger.warning("Unknown function: %s", name)
        return None


def build_dispatcher(settings: Settings, client: httpx.AsyncClient, store: CallStore) -> IntentDispatcher:
    scheduler = SchedulingClient.from_settings(settings, client)
    sms = SmsSender(settings, client)
    return IntentDispatcher(
        availability=AvailabilityResolver(settings, scheduler),
        booking=BookingExecutor(settings, scheduler, sms, store),
        emergency=EmergencyHandler(settings, sms, store),
    )
