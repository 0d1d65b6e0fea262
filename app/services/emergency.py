import logging
import time

from app.config import Settings
from app.schemas.intent import AlertResult, EmergencyParams
from app.schemas.records import EmergencyRecord
from app.services.call_store import CallStore
from app.services.messages import format_emergency_ack, format_emergency_alert
from app.services.twilio import SmsSender

logger = logging.getLogger(__name__)


class EmergencyHandler:
    def __init__(self, settings: Settings, sms: SmsSender, store: CallStore):
        self._settings = settings
        self._sms = sms
        self._store = store

    async def raise_alert(self, params: EmergencyParams) -> AlertResult:
        """Text the owner and record the emergency.

        The caller always hears that help is on the way; a failed SMS only
        shows up as ``alert_sent=False`` on the stored record.
        """
        alert_sent = await self._sms.send(
            self._settings.owner_phone_number,
            format_emergency_alert(params),
        )
        if not alert_sent:
            logger.error("Emergency alert for %s was not delivered", params.phone)

        await self._store.persist(
            EmergencyRecord(
                id=f"emergency-{int(time.time() * 1000)}",
                caller_name=params.caller_name,
                phone=params.phone,
                issue=params.issue,
                address=params.address,
                alert_sent=alert_sent,
            )
        )
        return AlertResult(success=True, message=format_emergency_ack(self._settings.owner_name))
