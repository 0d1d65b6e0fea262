import asyncio
import logging

from app.config import Settings
from app.schemas.intent import BookingParams, BookingResult
from app.schemas.records import BookingRecord
from app.services.calcom import SchedulingClient, SchedulingError
from app.services.call_store import CallStore
from app.services.messages import (
    format_booked,
    format_booking_failed,
    format_booking_hiccup,
    format_customer_confirmation,
    format_owner_booking_alert,
    format_time_label,
)
from app.services.twilio import SmsSender

logger = logging.getLogger(__name__)


class BookingExecutor:
    def __init__(
        self,
        settings: Settings,
        scheduler: SchedulingClient,
        sms: SmsSender,
        store: CallStore,
    ):
        self._settings = settings
        self._scheduler = scheduler
        self._sms = sms
        self._store = store

    async def book(self, params: BookingParams) -> BookingResult:
        """Create the appointment, text both parties, and record it.

        Required fields are validated by the caller. Bookings are not
        deduplicated: a retried request with the same details can book twice.
        """
        owner = self._settings.owner_name
        time_label = format_time_label(params.appointment_time, self._settings.timezone)

        try:
            booking_id = await self._scheduler.create_booking(params)
        except SchedulingError:
            return BookingResult(success=False, message=format_booking_hiccup(owner))

        if not booking_id:
            logger.warning("No booking id for %s at %s", params.caller_name, params.appointment_time)
            return BookingResult(success=False, message=format_booking_failed(owner))

        customer_sent, owner_sent = await asyncio.gather(
            self._sms.send(
                params.phone,
                format_customer_confirmation(params, self._settings.business_name, time_label),
            ),
            self._sms.send(
                self._settings.owner_phone_number,
                format_owner_booking_alert(params, time_label, booking_id),
            ),
        )

        await self._store.persist(
            BookingRecord(
                id=f"booking-{booking_id}",
                caller_name=params.caller_name,
                phone=params.phone,
                job=params.job_description,
                address=params.address,
                time=params.appointment_time,
                sms_customer=customer_sent,
                sms_owner=owner_sent,
            )
        )

        return BookingResult(success=True, message=format_booked(time_label, customer_sent, owner))
