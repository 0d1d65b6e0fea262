import logging
from datetime import datetime, timedelta, timezone

from app.config import Settings
from app.schemas.intent import AvailabilityResult, Slot
from app.services.calcom import SchedulingClient, extract_slot_groups, flatten_slots
from app.services.messages import (
    format_calendar_unavailable,
    format_no_openings,
    format_slots_offer,
    format_time_label,
)

logger = logging.getLogger(__name__)

# Keep the spoken list short
MAX_SLOTS = 3


class AvailabilityResolver:
    def __init__(self, settings: Settings, scheduler: SchedulingClient):
        self._settings = settings
        self._scheduler = scheduler

    async def resolve(self, urgency: str = "flexible", preferred_date: str | None = None) -> AvailabilityResult:
        """Look up open slots and phrase up to three of them for the caller.

        The search window starts now and spans 2 days for emergencies, 7
        otherwise. ``preferred_date`` is only logged; Cal.com is asked for the
        whole window.
        """
        owner = self._settings.owner_name
        days = 2 if urgency == "emergency" else 7
        start = datetime.now(timezone.utc)
        end = start + timedelta(days=days)
        logger.info("check_availability: urgency=%s preferred=%s window=%sd", urgency, preferred_date, days)

        data = await self._scheduler.fetch_slots(start, end)
        if data is None:
            return AvailabilityResult(available=False, message=format_calendar_unavailable(owner))

        timestamps = flatten_slots(extract_slot_groups(data))
        if not timestamps:
            return AvailabilityResult(available=False, message=format_no_openings(owner))

        slots = [
            Slot(iso=ts, display=format_time_label(ts, self._settings.timezone))
            for ts in timestamps[:MAX_SLOTS]
        ]
        return AvailabilityResult(
            available=True,
            slots=slots,
            message=format_slots_offer([s.display for s in slots]),
        )
