import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from garmin_mcp.core.config import settings
from garmin_mcp.core.db import get_db
from garmin_mcp.core.ingest import InvalidIngestBody, ingest_events
from garmin_mcp.core.security import SIGNATURE_HEADER, verify_garmin_signature
from garmin_mcp.rate_limiters.webhook_rate_limiter import (
    WebhookRateLimiter,
    get_webhook_rate_limiter,
)

router = APIRouter(tags=["garmin"])
logger = logging.getLogger(__name__)


@router.post("/garmin/webhook", response_class=PlainTextResponse)
async def garmin_webhook(
    request: Request,
    db: Session = Depends(get_db),
    limiter: WebhookRateLimiter = Depends(get_webhook_rate_limiter),
):
    """
    Receive a Garmin push: one event object or an array of them.

    Every event is normalized and upserted by (user_id, day). Returns "ok" once
    all events are stored.
    """
    client_ip = request.client.host if request.client else "unknown"
    decision = limiter.check(client_ip)
    if not decision.allowed:
        logger.warning("webhook.rate_limited: ip=%s wait=%ds", client_ip, decision.wait_seconds)
        raise HTTPException(
            status_code=429,
            detail="Too many webhook requests from this IP",
            headers={"Retry-After": str(decision.wait_seconds)},
        )

    raw = await request.body()
    if len(raw) > settings.MAX_WEBHOOK_BODY_BYTES:
        raise HTTPException(status_code=413, detail="request body too large")

    if not verify_garmin_signature(raw, request.headers.get(SIGNATURE_HEADER), settings.GARMIN_WEBHOOK_SECRET):
        logger.warning("webhook.bad_signature: ip=%s", client_ip)
        return PlainTextResponse("bad signature", status_code=401)

    try:
        body = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid JSON body")

    try:
        result = await run_in_threadpool(ingest_events, db, body)
    except InvalidIngestBody as e:
        raise HTTPException(status_code=400, detail=f"Invalid webhook body: {e}")

    if not result.ok:
        return PlainTextResponse(
            f"failed to store {result.failed} of {result.received} events",
            status_code=500,
        )

    return PlainTextResponse("ok")
