"""Cal.com scheduling integration.

Cal.com exposes two incompatible API generations. Each one is wrapped in its
own strategy class with the same two methods (``fetch_slots`` and
``create_booking``); ``SchedulingClient`` tries them in order and stops at the
first usable answer. Response parsing lives in module-level helpers so it does
not depend on which generation answered.
"""

import logging
import re
from datetime import datetime
from typing import Any

import httpx

from app.config import Settings
from app.schemas.intent import BookingParams
from app.schemas.records import to_iso_z

logger = logging.getLogger(__name__)

CALCOM_API_URL = "https://api.cal.com"
BOOKING_SOURCE = "ai-answering-service"


class SchedulingError(Exception):
    """Cal.com could not be reached or answered with something unparseable."""


def extract_slot_groups(data: Any) -> dict:
    """Return the ``{date: [slot, ...]}`` mapping from either response shape."""
    if not isinstance(data, dict):
        return {}
    inner = data.get("data")
    groups = inner.get("slots") if isinstance(inner, dict) else None
    if not groups:
        groups = data.get("slots")
    return groups if isinstance(groups, dict) else {}


def flatten_slots(groups: dict) -> list[str]:
    """Flatten grouped slots into ISO timestamps, keeping upstream order."""
    timestamps = []
    for entries in groups.values():
        if not isinstance(entries, list):
            continue
        for entry in entries:
            value = entry.get("time") if isinstance(entry, dict) else entry
            if value:
                timestamps.append(str(value))
    return timestamps


def extract_booking_id(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    inner = data.get("data")
    if isinstance(inner, dict) and inner.get("id"):
        return str(inner["id"])
    if data.get("id"):
        return str(data["id"])
    return None


class _CalcomApi:
    version = ""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self._settings = settings
        self._client = client

    def _event_type_id(self) -> int | None:
        try:
            return int(self._settings.calcom_event_type_id)
        except ValueError:
            logger.error("CALCOM_EVENT_TYPE_ID is not an integer: %r", self._settings.calcom_event_type_id)
            return None

    def _attendee_email(self, phone: str) -> str:
        digits = re.sub(r"\D", "", phone)
        return f"{digits}@{self._settings.lead_email_domain}"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise SchedulingError(f"Cal.com {self.version} {method} failed: {exc}") from exc

    def _json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise SchedulingError(f"Cal.com {self.version} returned invalid JSON") from exc

    async def fetch_slots(self, start: datetime, end: datetime) -> dict | None:
        raise NotImplementedError

    async def create_booking(self, params: BookingParams) -> str | None:
        raise NotImplementedError


class CalcomV2Api(_CalcomApi):
    """Bearer-token API, slots grouped under ``data.slots``."""

    version = "v2"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.calcom_api_key}",
            "cal-api-version": self._settings.calcom_api_version,
        }

    async def fetch_slots(self, start: datetime, end: datetime) -> dict | None:
        resp = await self._request(
            "GET",
            f"{CALCOM_API_URL}/v2/slots/available",
            params={
                "startTime": to_iso_z(start),
                "endTime": to_iso_z(end),
                "eventTypeId": self._settings.calcom_event_type_id,
            },
            headers=self._headers(),
        )
        if resp.is_error:
            logger.warning("Cal.com v2 slots returned %s", resp.status_code)
            return None
        data = self._json(resp)
        if not isinstance(data, dict) or not data.get("data"):
            return None
        return data

    async def create_booking(self, params: BookingParams) -> str | None:
        body = {
            "eventTypeId": self._event_type_id(),
            "start": params.appointment_time,
            "attendee": {
                "name": params.caller_name,
                "email": self._attendee_email(params.phone),
                "phoneNumber": params.phone,
                "timeZone": self._settings.timezone,
            },
            "metadata": {
                "source": BOOKING_SOURCE,
                "jobDescription": params.job_description,
                "address": params.address or "TBD",
                "urgency": params.urgency or "normal",
            },
        }
        resp = await self._request("POST", f"{CALCOM_API_URL}/v2/bookings", json=body, headers=self._headers())
        if resp.is_error:
            logger.warning("Cal.com v2 booking returned %s: %s", resp.status_code, resp.text)
            return None
        return extract_booking_id(self._json(resp))


class CalcomV1Api(_CalcomApi):
    """Legacy API-key-in-query API, slots at the top level."""

    version = "v1"

    async def fetch_slots(self, start: datetime, end: datetime) -> dict | None:
        resp = await self._request(
            "GET",
            f"{CALCOM_API_URL}/v1/availability",
            params={
                "apiKey": self._settings.calcom_api_key,
                "eventTypeId": self._settings.calcom_event_type_id,
                "startTime": to_iso_z(start),
                "endTime": to_iso_z(end),
            },
        )
        if resp.is_error:
            logger.warning("Cal.com v1 availability returned %s", resp.status_code)
            return None
        data = self._json(resp)
        return data if isinstance(data, dict) else None

    async def create_booking(self, params: BookingParams) -> str | None:
        notes = (
            f"Job: {params.job_description}\n"
            f"Address: {params.address or 'TBD'}\n"
            f"Urgency: {params.urgency or 'normal'}"
        )
        body = {
            "eventTypeId": self._event_type_id(),
            "start": params.appointment_time,
            "responses": {
                "name": params.caller_name,
                "email": self._attendee_email(params.phone),
                "phone": params.phone,
                "notes": notes,
            },
            "metadata": {"source": BOOKING_SOURCE},
        }
        resp = await self._request(
            "POST",
            f"{CALCOM_API_URL}/v1/bookings",
            params={"apiKey": self._settings.calcom_api_key},
            json=body,
        )
        if resp.is_error:
            logger.warning("Cal.com v1 booking returned %s: %s", resp.status_code, resp.text)
        return extract_booking_id(self._json(resp))


class SchedulingClient:
    """Tries each API generation in order; the first usable answer wins.

    This is a semantic fallback between schemas, not a retry: each generation
    is called at most once per operation.
    """

    def __init__(self, apis: list[_CalcomApi]):
        self._apis = apis

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> "SchedulingClient":
        return cls([CalcomV2Api(settings, client), CalcomV1Api(settings, client)])

    async def fetch_slots(self, start: datetime, end: datetime) -> dict | None:
        """Raw slot response from the first generation that answers, else None."""
        for api in self._apis:
            try:
                data = await api.fetch_slots(start, end)
            except SchedulingError as exc:
                logger.error("Cal.com availability error: %s", exc)
                continue
            if data is not None:
                logger.info("Slots fetched via Cal.com %s", api.version)
                return data
        return None

    async def create_booking(self, params: BookingParams) -> str | None:
        """Booking id from the first generation that yields one.

        Raises SchedulingError only when the last generation tried could not be
        reached at all; a reachable API that gives no id yields None.
        """
        last_error: SchedulingError | None = None
        for api in self._apis:
            try:
                booking_id = await api.create_booking(params)
            except SchedulingError as exc:
                logger.error("Cal.com booking error: %s", exc)
                last_error = exc
                continue
            last_error = None
            if booking_id:
                logger.info("Booking %s created via Cal.com %s", booking_id, api.version)
                return booking_id
        if last_error is not None:
            raise last_error
        return None
