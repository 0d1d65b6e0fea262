import logging
import re

import httpx

from app.config import Settings

logger = logging.getLogger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"


def normalize_phone(raw: str | None) -> str:
    """Strip to digits, assume US for bare 10-digit numbers, prefix '+'."""
    digits = re.sub(r"\D", "", str(raw or ""))
    if len(digits) == 10:
        digits = "1" + digits
    if not digits.startswith("+"):
        digits = "+" + digits
    return digits


class SmsSender:
    """Sends SMS through the Twilio Messages API. Never raises."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self._settings = settings
        self._client = client

    async def send(self, to: str | None, body: str) -> bool:
        """Send an SMS. Returns True once Twilio has accepted the message."""
        if not self._settings.twilio_configured:
            logger.warning("Twilio not configured — SMS to %s dropped", to)
            return False

        to = normalize_phone(to)
        sid = self._settings.twilio_account_sid
        url = f"{TWILIO_API_URL}/Accounts/{sid}/Messages.json"
        payload = {
            "Body": body,
            "From": self._settings.twilio_phone_number,
            "To": to,
        }
        try:
            resp = await self._client.post(
                url,
                data=payload,
                auth=(sid, self._settings.twilio_auth_token),
            )
            resp.raise_for_status()
            data = resp.json()
            msg_sid = data.get("sid", "") if isinstance(data, dict) else ""
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("SMS failed to %s: %s", to, exc)
            return False

        logger.info("SMS sent to %s: %s", to, msg_sid)
        return True
