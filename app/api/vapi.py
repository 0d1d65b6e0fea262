"""Vapi server webhook.

Vapi calls this mid-conversation for tool calls and again when the call ends.
Whatever happens inside, the assistant gets back a sentence it can speak; only
genuine faults surface as a generic 500.
"""

import logging
import secrets

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.api.deps import get_http_client
from app.config import Settings, get_settings
from app.schemas.vapi import WebhookPayload, classify_event
from app.services.call_store import CallStore
from app.services.intent import build_dispatcher
from app.services.webhook import WebhookHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vapi", tags=["vapi"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

SECRET_HEADERS = ("x-vapi-secret", "x-vapi-signature")


def _json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers=CORS_HEADERS)


def _is_authorized(request: Request, settings: Settings) -> bool:
    if not settings.vapi_secret:
        return True
    incoming = next((request.headers[h] for h in SECRET_HEADERS if request.headers.get(h)), "")
    return secrets.compare_digest(incoming.encode(), settings.vapi_secret.encode())


@router.options("/webhook")
async def webhook_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.api_route("/webhook", methods=["GET", "PUT", "PATCH", "DELETE"])
async def webhook_wrong_method():
    return _json({"error": "POST only"}, 405)


@router.post("/webhook")
async def vapi_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Classify the event, run it, and answer in the shape Vapi expects."""
    if not _is_authorized(request, settings):
        logger.warning(
            "Unauthorized webhook attempt from: %s",
            request.headers.get("x-forwarded-for", "unknown"),
        )
        return _json({"error": "Unauthorized"}, 401)

    try:
        body = await request.json()
        logger.info("WEBHOOK_RAW: %s", sorted(body) if isinstance(body, dict) else type(body).__name__)
        event = classify_event(WebhookPayload.model_validate(body))

        store = CallStore(settings, client)
        handler = WebhookHandler(settings, build_dispatcher(settings, client, store), store)
        content, status_code = await handler.handle(event)
    except Exception:
        logger.exception("Webhook error")
        return _json({"error": "Internal server error"}, 500)

    return _json(content, status_code)
