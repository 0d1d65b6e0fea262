from unittest.mock import AsyncMock, MagicMock

import pytest

from app.schemas.intent import EmergencyParams
from app.schemas.records import EmergencyRecord
from app.services.call_store import CallStore
from app.services.emergency import EmergencyHandler
from app.services.twilio import SmsSender


def _handler(settings, sent: bool):
    sms = MagicMock(spec=SmsSender)
    sms.send = AsyncMock(return_value=sent)
    store = MagicMock(spec=CallStore)
    store.persist = AsyncMock(return_value=True)
    return EmergencyHandler(settings, sms, store), sms, store


@pytest.mark.asyncio
async def test_raise_alert_texts_owner_and_records(settings):
    handler, sms, store = _handler(settings, sent=True)
    params = EmergencyParams(caller_name="Maria G.", phone="2815550234", issue="Basement flooding", address="4 Oak Ln")

    result = await handler.raise_alert(params)

    assert result.success is True
    assert result.message == "I've sent an urgent alert to Mike. They'll call you right back."
    to, body = sms.send.await_args.args
    assert to == "+15551112222"
    assert body.startswith("🚨 EMERGENCY CALL\nMaria G. — 2815550234\nBasement flooding\n📍 4 Oak Ln")

    record = store.persist.await_args.args[0]
    assert isinstance(record, EmergencyRecord)
    assert record.id.startswith("emergency-")
    assert record.alert_sent is True


@pytest.mark.asyncio
async def test_raise_alert_sounds_successful_even_when_sms_fails(settings):
    handler, _, store = _handler(settings, sent=False)

    result = await handler.raise_alert(EmergencyParams(phone="2815550234", issue="No heat"))

    assert result.success is True
    assert "urgent alert" in result.message
    assert store.persist.await_args.args[0].alert_sent is False


@pytest.mark.asyncio
async def test_raise_alert_defaults_missing_fields(settings):
    handler, sms, _ = _handler(settings, sent=True)

    await handler.raise_alert(EmergencyParams(issue="Gas smell"))

    body = sms.send.await_args.args[1]
    assert "Caller — No number given" in body
    assert "📍 No address given" in body
