from unittest.mock import AsyncMock, MagicMock

import pytest

from app.schemas.intent import AlertResult, AvailabilityResult, BookingParams, BookingResult, EmergencyParams
from app.services.availability import AvailabilityResolver
from app.services.booking import BookingExecutor
from app.services.emergency import EmergencyHandler
from app.services.intent import IntentDispatcher
from app.services.messages import MISSING_BOOKING_DETAILS

FULL_BOOKING = {
    "caller_name": "Sarah M.",
    "phone": "2815550142",
    "appointment_time": "2026-10-20T14:00:00Z",
    "job_description": "Kitchen faucet leak",
}


@pytest.fixture
def handlers():
    availability = MagicMock(spec=AvailabilityResolver)
    availability.resolve = AsyncMock(return_value=AvailabilityResult(available=False, message="none"))
    booking = MagicMock(spec=BookingExecutor)
    booking.book = AsyncMock(return_value=BookingResult(success=True, message="booked"))
    emergency = MagicMock(spec=EmergencyHandler)
    emergency.raise_alert = AsyncMock(return_value=AlertResult(message="alerted"))
    return availability, booking, emergency


@pytest.fixture
def dispatcher(handlers):
    return IntentDispatcher(*handlers)


@pytest.mark.asyncio
async def test_check_availability_defaults_to_flexible(dispatcher, handlers):
    availability, _, _ = handlers

    await dispatcher.dispatch("check_availability", {"urgency": None})

    availability.resolve.assert_awaited_once_with("flexible", None)


@pytest.mark.asyncio
async def test_check_availability_passes_urgency_and_date(dispatcher, handlers):
    availability, _, _ = handlers

    await dispatcher.dispatch("check_availability", {"urgency": "emergency", "preferred_date": "2026-10-20"})

    availability.resolve.assert_awaited_once_with("emergency", "2026-10-20")


@pytest.mark.asyncio
async def test_book_appointment_with_all_details(dispatcher, handlers):
    _, booking, _ = handlers

    result = await dispatcher.dispatch("book_appointment", FULL_BOOKING)

    assert result.message == "booked"
    params = booking.book.await_args.args[0]
    assert isinstance(params, BookingParams)
    assert params.phone == "2815550142"


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["caller_name", "phone", "appointment_time"])
async def test_book_appointment_missing_detail_asks_again(dispatcher, handlers, missing):
    _, booking, _ = handlers
    args = {k: v for k, v in FULL_BOOKING.items() if k != missing}

    result = await dispatcher.dispatch("book_appointment", args)

    assert result.success is False
    assert result.message == MISSING_BOOKING_DETAILS
    booking.book.assert_not_awaited()


@pytest.mark.asyncio
async def test_book_appointment_empty_string_counts_as_missing(dispatcher, handlers):
    _, booking, _ = handlers

    result = await dispatcher.dispatch("book_appointment", {**FULL_BOOKING, "phone": ""})

    assert result.message == MISSING_BOOKING_DETAILS
    booking.book.assert_not_awaited()


@pytest.mark.asyncio
async def test_numeric_phone_is_accepted(dispatcher, handlers):
    _, booking, _ = handlers

    await dispatcher.dispatch("book_appointment", {**FULL_BOOKING, "phone": 2815550142})

    assert booking.book.await_args.args[0].phone == "2815550142"


@pytest.mark.asyncio
async def test_emergency_alert(dispatcher, handlers):
    _, _, emergency = handlers

    result = await dispatcher.dispatch("send_emergency_alert", {"issue": "Pipe burst", "phone": "2815550234"})

    assert result.message == "alerted"
    params = emergency.raise_alert.await_args.args[0]
    assert params == EmergencyParams(issue="Pipe burst", phone="2815550234")


@pytest.mark.asyncio
async def test_unknown_function_returns_none(dispatcher):
    assert await dispatcher.dispatch("transfer_call", {}) is None
    assert await dispatcher.dispatch(None, {}) is None
