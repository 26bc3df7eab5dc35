import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from garmin_mcp.core.config import settings
from garmin_mcp.core.store import get_health_record, get_recent_health_records
from garmin_mcp.schemas.health import HealthRecordOut

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "no data available"
DEFAULT_RECENT_DAYS = 7

DAILY_SUMMARY = "garmin.getDailySummary"
RECENT_DAYS = "garmin.getRecentDays"

TOOLS: list[dict[str, Any]] = [
    {
        "name": DAILY_SUMMARY,
        "description": "Get daily summary for a user and date",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user_id": {"type": "string"},
                "date": {"type": "string", "description": "YYYY-MM-DD; defaults to today"},
            },
            "required": ["user_id"],
        },
    },
    {
        "name": RECENT_DAYS,
        "description": "Get last N days of summaries for a user",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user_id": {"type": "string"},
                "days": {"type": "number", "default": DEFAULT_RECENT_DAYS},
            },
            "required": ["user_id"],
        },
    },
]


class ToolCallError(Exception):
    """Caller-side error in a tool invocation (maps to HTTP 400)."""


class UnknownToolError(ToolCallError):
    def __init__(self, name: Any):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class MissingArgumentError(ToolCallError):
    def __init__(self, argument: str):
        super().__init__(f"Missing required argument: {argument}")
        self.argument = argument


class InvalidArgumentError(ToolCallError):
    pass


def json_content(value: Any) -> dict[str, Any]:
    return {"content": [{"type": "json", "json": value}]}


def text_content(text: str) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _require_user_id(args: Mapping) -> str:
    user_id = args.get("user_id")
    if user_id is None or user_id == "":
        raise MissingArgumentError("user_id")
    return str(user_id)


def _parse_days(value: Any) -> int:
    if value is None or value == "":
        return DEFAULT_RECENT_DAYS
    if isinstance(value, bool):
        raise InvalidArgumentError("Invalid argument: days must be a positive integer")
    try:
        days = int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise InvalidArgumentError("Invalid argument: days must be a positive integer")
    if days < 1:
        raise InvalidArgumentError("Invalid argument: days must be a positive integer")
    return min(days, settings.MCP_MAX_RECENT_DAYS)


def _record_json(row) -> dict[str, Any]:
    return HealthRecordOut.model_validate(row).model_dump(mode="json")


def get_daily_summary(db: Session, args: Mapping) -> dict[str, Any]:
    user_id = _require_user_id(args)
    day = args.get("date") or _today()

    row = get_health_record(db, user_id, str(day))
    if row is None:
        return text_content(NO_DATA_MESSAGE)
    return json_content(_record_json(row))


def get_recent_days(db: Session, args: Mapping) -> dict[str, Any]:
    user_id = _require_user_id(args)
    days = _parse_days(args.get("days"))

    rows = get_recent_health_records(db, user_id, days)
    return json_content([_record_json(r) for r in rows])


HANDLERS: dict[str, Callable[[Session, Mapping], dict[str, Any]]] = {
    DAILY_SUMMARY: get_daily_summary,
    RECENT_DAYS: get_recent_days,
}


def call_tool(db: Session, name: Any, arguments: Any) -> dict[str, Any]:
    """
    Dispatch a tool invocation to its store lookup and wrap the result.

    Raises a ToolCallError subclass for unknown tools and bad arguments;
    database errors propagate unchanged.
    """
    handler = HANDLERS.get(name) if isinstance(name, str) else None
    if handler is None:
        raise UnknownToolError(name)

    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidArgumentError("Invalid arguments: expected an object")

    logger.info("tool.call: name=%s user_id=%s", name, arguments.get("user_id"))
    return handler(db, arguments)
