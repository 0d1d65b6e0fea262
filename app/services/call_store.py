"""Best-effort call history in Vercel KV (Upstash Redis REST API).

Records are written under ``call:<id>`` with a TTL and their keys pushed onto a
bounded ``recent_calls`` list the dashboard reads back through ``recent``.
Persisting is advisory: any failure is logged and reported as "not stored",
never raised.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from pydantic import TypeAdapter

from app.config import Settings
from app.schemas.records import (
    BookingRecord,
    CallRecord,
    CallReportRecord,
    EmergencyRecord,
    to_iso_z,
)

logger = logging.getLogger(__name__)

RECENT_CALLS_KEY = "recent_calls"

_record_adapter = TypeAdapter(CallRecord)


class CallStoreError(Exception):
    """The KV REST API answered with an error reply."""


class CallStore:
    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self._settings = settings
        self._client = client

    async def _command(self, *args: Any) -> Any:
        resp = await self._client.post(
            self._settings.kv_rest_api_url,
            json=[str(a) for a in args],
            headers={"Authorization": f"Bearer {self._settings.kv_rest_api_token}"},
        )
        resp.raise_for_status()
        data = resp.json()
        if isinstance(data, dict) and data.get("error"):
            raise CallStoreError(data["error"])
        return data.get("result") if isinstance(data, dict) else None

    async def persist(self, record: CallRecord) -> bool:
        """Store a record and index it as recent. Returns whether it was stored."""
        payload = record.model_dump_json()
        if not self._settings.kv_configured:
            logger.info("CALL_DATA: %s", payload)
            return False

        key = f"call:{record.id}"
        try:
            await self._command("SET", key, payload, "EX", self._settings.record_ttl_seconds)
            await self._command("LPUSH", RECENT_CALLS_KEY, key)
            await self._command("LTRIM", RECENT_CALLS_KEY, 0, self._settings.recent_calls_limit - 1)
        except (httpx.HTTPError, ValueError, CallStoreError) as exc:
            logger.error("KV store error for %s: %s", key, exc)
            logger.info("CALL_DATA: %s", payload)
            return False

        logger.info("Stored %s record %s", record.type, key)
        return True

    async def recent(self, limit: int) -> list[CallRecord] | None:
        """Newest-first records from the recent list, or None if KV is unavailable.

        Keys whose value is missing, expired or unparseable are skipped.
        """
        if not self._settings.kv_configured:
            return None

        try:
            keys = await self._command("LRANGE", RECENT_CALLS_KEY, 0, limit - 1)
        except (httpx.HTTPError, ValueError, CallStoreError) as exc:
            logger.error("KV read error for %s: %s", RECENT_CALLS_KEY, exc)
            return None

        records = []
        for key in keys if isinstance(keys, list) else []:
            try:
                raw = await self._command("GET", key)
                if isinstance(raw, str) and raw:
                    records.append(_record_adapter.validate_json(raw))
            except (httpx.HTTPError, ValueError, CallStoreError) as exc:
                logger.warning("Skipping call record %s: %s", key, exc)
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records


def demo_records() -> list[CallRecord]:
    """Sample history shown by the dashboard when KV is not available."""
    now = datetime.now(timezone.utc)

    def ago(**delta) -> str:
        return to_iso_z(now - timedelta(**delta))

    def ahead(days: int) -> str:
        return to_iso_z(now + timedelta(days=days))

    return [
        BookingRecord(
            id="demo-1", caller_name="Sarah M.", phone="+12815550142",
            job="Kitchen faucet leak, dripping under sink", time=ahead(3),
            sms_customer=True, sms_owner=True, created_at=ago(),
        ),
        BookingRecord(
            id="demo-2", caller_name="James R.", phone="+18325550198",
            job="Water heater not producing hot water", time=ahead(4),
            sms_customer=True, sms_owner=True, created_at=ago(hours=1),
        ),
        CallReportRecord(
            id="demo-3", phoneNumber="+19365550077", duration=105,
            summary="Pricing question, toilet replacement", created_at=ago(hours=2),
        ),
        EmergencyRecord(
            id="demo-4", caller_name="Maria G.", phone="+12815550234",
            issue="Basement flooding, water coming through wall", alert_sent=True,
            created_at=ago(hours=14),
        ),
        BookingRecord(
            id="demo-5", caller_name="David K.", phone="+18325550311",
            job="Garbage disposal making grinding noise", time=ahead(5),
            sms_customer=True, sms_owner=True, created_at=ago(hours=16),
        ),
    ]
