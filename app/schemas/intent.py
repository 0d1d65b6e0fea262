from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IntentName(StrEnum):
    CHECK_AVAILABILITY = "check_availability"
    BOOK_APPOINTMENT = "book_appointment"
    SEND_EMERGENCY_ALERT = "send_emergency_alert"


class _IntentArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class AvailabilityQuery(_IntentArguments):
    preferred_date: str | None = None
    urgency: str = "flexible"

    @field_validator("urgency", mode="before")
    @classmethod
    def _default_urgency(cls, value):
        return value or "flexible"


class BookingParams(_IntentArguments):
    caller_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    appointment_time: str = Field(min_length=1)
    job_description: str | None = None
    address: str | None = None
    urgency: str | None = None


class EmergencyParams(_IntentArguments):
    caller_name: str | None = None
    phone: str | None = None
    issue: str | None = None
    address: str | None = None


class Slot(BaseModel):
    iso: str
    display: str


class AvailabilityResult(BaseModel):
    available: bool
    message: str
    slots: list[Slot] | None = None


class BookingResult(BaseModel):
    success: bool
    message: str


class AlertResult(BaseModel):
    success: bool = True
    message: str


IntentOutcome = AvailabilityResult | BookingResult | AlertResult
