from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint

from garmin_mcp.core.db import Base


def utcnow() -> datetime:
    # naive UTC, same representation on SQLite and Postgres
    return datetime.now(timezone.utc).replace(tzinfo=None)


class HealthData(Base):
    __tablename__ = "health_data"
    __table_args__ = (UniqueConstraint("user_id", "day", name="uq_health_data_user_day"),)

    id = Column(Integer, primary_key=True)

    user_id = Column(String(255), nullable=False, index=True)
    day = Column(String(10), nullable=False)  # YYYY-MM-DD

    # canonical daily measurements, each independently nullable
    steps = Column(Integer)
    resting_hr = Column(Integer)
    calories = Column(Integer)
    sleep_seconds = Column(Integer)
    body_battery_min = Column(Integer)
    body_battery_max = Column(Integer)

    # Raw webhook event exactly as received
    payload = Column(JSON)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
