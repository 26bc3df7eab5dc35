from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


# Canonical record produced by the normalizer, before the store stamps timestamps
class HealthRecordIn(BaseModel):
    user_id: str
    day: str
    steps: int | None = None
    resting_hr: int | None = None
    calories: int | None = None
    sleep_seconds: int | None = None
    body_battery_min: int | None = None
    body_battery_max: int | None = None
    payload: dict[str, Any]


# Stored record as returned to tool callers
class HealthRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    day: str
    steps: int | None
    resting_hr: int | None
    calories: int | None
    sleep_seconds: int | None
    body_battery_min: int | None
    body_battery_max: int | None
    payload: Any
    created_at: datetime
    updated_at: datetime


MEASUREMENT_FIELDS = (
    "steps",
    "resting_hr",
    "calories",
    "sleep_seconds",
    "body_battery_min",
    "body_battery_max",
)
