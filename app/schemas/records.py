"""Call records persisted for the dashboard.

Field names match what the dashboard already reads, which is why the ``call``
variant is camelCase and the others are snake_case.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    return to_iso_z(datetime.now(timezone.utc))


def to_iso_z(dt: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class BookingRecord(_Record):
    type: Literal["booking"] = "booking"
    id: str
    caller_name: str
    phone: str
    job: str | None = None
    address: str | None = None
    time: str
    sms_customer: bool
    sms_owner: bool
    created_at: str = Field(default_factory=utc_now_iso)


class EmergencyRecord(_Record):
    type: Literal["emergency"] = "emergency"
    id: str
    caller_name: str | None = None
    phone: str | None = None
    issue: str | None = None
    address: str | None = None
    alert_sent: bool
    created_at: str = Field(default_factory=utc_now_iso)


class CallReportRecord(_Record):
    type: Literal["call"] = "call"
    id: str
    customerName: str = "Unknown Caller"
    phoneNumber: str = "unknown"
    status: Literal["Emergency", "Booked", "Completed"] = "Completed"
    jobType: str = "Inbound Call"
    estimateBooked: bool = False
    duration: int | float = 0
    summary: str = ""
    transcript: str = ""
    recording_url: str = ""
    ended_reason: str = ""
    cost: int | float = 0
    timestamp: str = ""
    created_at: str = Field(default_factory=utc_now_iso)


CallRecord = Annotated[BookingRecord | EmergencyRecord | CallReportRecord, Field(discriminator="type")]
