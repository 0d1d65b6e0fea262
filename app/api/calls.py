"""Dashboard read endpoint: recent call history, newest first."""

import logging

import httpx
from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from app.api.deps import get_http_client
from app.config import Settings, get_settings
from app.services.call_store import CallStore, demo_records

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calls", tags=["calls"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
}

DEFAULT_LIMIT = 50


def _json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers=CORS_HEADERS)


@router.options("")
async def calls_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.api_route("", methods=["POST", "PUT", "PATCH", "DELETE"])
async def calls_wrong_method():
    return _json({"error": "GET only"}, 405)


@router.get("")
async def list_calls(
    limit: int = Query(DEFAULT_LIMIT, ge=1),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    limit = min(limit, settings.recent_calls_limit)
    records = await CallStore(settings, client).recent(limit)
    if records is None:
        records, source = demo_records(), "demo"
    else:
        source = "kv"

    return _json({
        "calls": [record.model_dump(mode="json") for record in records],
        "source": source,
        "count": len(records),
    })
