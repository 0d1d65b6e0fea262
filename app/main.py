import logging

from fastapi import FastAPI

logging.basicConfig(level=logging.INFO)

from app.api.calls import router as calls_router
from app.api.vapi import router as vapi_router

app = FastAPI(title="AI Answering Service", version="0.1.0")

app.include_router(vapi_router)
app.include_router(calls_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
