"""Shared fixtures. All upstream HTTP is served by an in-process fake."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_http_client
from app.config import Settings, get_settings
from app.main import app

TWILIO_PATH = "/2010-04-01/Accounts/AC123/Messages.json"
KV_HOST = "kv.example.com"
CAL_HOST = "api.cal.com"


class FakeUpstream:
    """Routes requests by (method, host, path) to canned responses.

    A route holds a queue; the last entry is reused once the queue drains.
    Entries may be an httpx.Response, an exception instance to raise, or a
    callable taking the request.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str, str], list] = {}

    def on(self, method: str, host: str, path: str, *responses) -> None:
        self._routes[(method, host, path)] = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.host, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "no route"})
        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(entry, Exception):
            raise entry
        if callable(entry):
            return entry(request)
        return entry

    def calls(self, host: str, path: str | None = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.host == host and (path is None or r.url.path == path)
        ]

    def kv_commands(self) -> list[list]:
        return [json.loads(r.content) for r in self.calls(KV_HOST)]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        twilio_account_sid="AC123",
        twilio_auth_token="twilio-token",
        twilio_phone_number="+15550000000",
        calcom_api_key="cal_live_key",
        calcom_event_type_id="42",
        owner_phone_number="+15551112222",
        owner_name="Mike",
        business_name="Mike's Plumbing",
        vapi_secret="",
        kv_rest_api_url=f"https://{KV_HOST}",
        kv_rest_api_token="kv-token",
        timezone="America/Chicago",
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    fake = FakeUpstream()
    fake.on("POST", "api.twilio.com", TWILIO_PATH, httpx.Response(201, json={"sid": "SM100"}))
    fake.on("POST", KV_HOST, "/", httpx.Response(200, json={"result": "OK"}))
    return fake


@pytest.fixture
def http_client(upstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def client(settings, upstream):
    """TestClient with settings and upstream HTTP swapped for the fakes."""
    async def _http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as http:
            yield http

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = _http_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def slots_response(timestamps_by_date: dict[str, list[str]], nested: bool = True) -> dict:
    """Cal.com slot payload; v2 nests under ``data``, v1 does not."""
    groups = {day: [{"time": ts} for ts in times] for day, times in timestamps_by_date.items()}
    if nested:
        return {"status": "success", "data": {"slots": groups}}
    return {"slots": groups}
