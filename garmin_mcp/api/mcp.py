import asyncio
import json
import logging
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from garmin_mcp.core.config import settings
from garmin_mcp.core.db import get_db
from garmin_mcp.core.security import require_mcp_token
from garmin_mcp.core.tools import TOOLS, ToolCallError, call_tool
from garmin_mcp.schemas.mcp import ToolCallRequest

router = APIRouter(prefix="/mcp", tags=["mcp"], dependencies=[Depends(require_mcp_token)])
logger = logging.getLogger(__name__)


@router.get("/tools")
def list_tools():
    return {"tools": TOOLS}


@router.post("/tools/call")
def call(payload: ToolCallRequest, db: Session = Depends(get_db)):
    try:
        return call_tool(db, payload.name, payload.arguments)
    except ToolCallError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except SQLAlchemyError:
        logger.exception("tool.error: name=%s", payload.name)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def sse_event(data: dict[str, Any]) -> str:
    return f"data: {json.dumps(data)}\n\n"


async def keepalive_events(interval: float) -> AsyncIterator[str]:
    yield sse_event({"type": "connection", "status": "connected"})
    while True:
        await asyncio.sleep(interval)
        yield sse_event({"type": "ping"})


@router.get("/sse")
def sse():
    return StreamingResponse(
        keepalive_events(settings.SSE_PING_INTERVAL_SECONDS),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
