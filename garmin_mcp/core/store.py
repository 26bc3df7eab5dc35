from datetime import datetime
from typing import Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from garmin_mcp.models.health import HealthData, utcnow
from garmin_mcp.schemas.health import HealthRecordIn, MEASUREMENT_FIELDS

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    try:
        return _INSERTS[dialect]
    except KeyError:
        raise RuntimeError(f"upsert is not supported on database dialect {dialect!r}")


def upsert_health_record(db: Session, record: HealthRecordIn, now: Optional[datetime] = None) -> None:
    """
    Insert or update the row for (user_id, day) in a single statement.

    New keys get created_at = updated_at = now. Existing keys get every
    measurement, payload and updated_at overwritten; created_at is left alone.
    The caller commits.
    """
    ts = now or utcnow()
    insert = _insert_for(db)

    values = {field: getattr(record, field) for field in MEASUREMENT_FIELDS}
    stmt = insert(HealthData).values(
        user_id=record.user_id,
        day=record.day,
        payload=record.payload,
        created_at=ts,
        updated_at=ts,
        **values,
    )

    update_cols = {field: stmt.excluded[field] for field in MEASUREMENT_FIELDS}
    update_cols["payload"] = stmt.excluded.payload
    update_cols["updated_at"] = stmt.excluded.updated_at

    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "day"],
        set_=update_cols,
    )
    db.execute(stmt)


def get_health_record(db: Session, user_id: str, day: str) -> Optional[HealthData]:
    return (
        db.query(HealthData)
        .filter(HealthData.user_id == user_id, HealthData.day == day)
        .one_or_none()
    )


def get_recent_health_records(db: Session, user_id: str, limit: int) -> list[HealthData]:
    """Up to `limit` records for the user, most recent day first."""
    if limit <= 0:
        return []
    return (
        db.query(HealthData)
        .filter(HealthData.user_id == user_id)
        .order_by(HealthData.day.desc())
        .limit(limit)
        .all()
    )
