import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from garmin_mcp.core.normalize import normalize_event
from garmin_mcp.core.store import upsert_health_record

logger = logging.getLogger(__name__)


class InvalidIngestBody(ValueError):
    pass


@dataclass(frozen=True)
class IngestResult:
    received: int
    stored: int
    failed: int

    @property
    def ok(self) -> bool:
        return self.failed == 0


def split_events(body: Any) -> list[Mapping]:
    """A webhook body is one event object or a list of them."""
    if isinstance(body, Mapping):
        return [body]
    if isinstance(body, list):
        for index, event in enumerate(body):
            if not isinstance(event, Mapping):
                raise InvalidIngestBody(f"event at index {index} is not a JSON object")
        return body
    raise InvalidIngestBody("expected a JSON object or an array of objects")


def ingest_events(db: Session, body: Any) -> IngestResult:
    """
    Normalize and upsert every event in `body`, in order, one transaction each.

    A database failure on one event is logged and rolled back and the
    remaining events are still attempted.
    """
    events = split_events(body)

    stored = 0
    failed = 0
    for index, event in enumerate(events):
        record = normalize_event(event)
        try:
            upsert_health_record(db, record)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            failed += 1
            logger.exception(
                "ingest.event_failed: index=%d user_id=%s day=%s",
                index,
                record.user_id,
                record.day,
            )
            continue
        stored += 1

    result = IngestResult(received=len(events), stored=stored, failed=failed)
    logger.info(
        "ingest.done: received=%d stored=%d failed=%d",
        result.received,
        result.stored,
        result.failed,
    )
    return result
