import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from garmin_mcp.schemas.health import HealthRecordIn

logger = logging.getLogger(__name__)

UNKNOWN_USER = "unknown"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

Rule = Callable[[Mapping], Any]


def path(*keys: str) -> Rule:
    """
    Accessor rule: walk `keys` into a raw event and return the value found there.

    Returns None when a key is missing, the value is null, or an intermediate
    step is not a mapping.
    """

    def rule(event: Mapping) -> Any:
        value: Any = event
        for key in keys:
            if not isinstance(value, Mapping):
                return None
            value = value.get(key)
        return value

    rule.__name__ = ".".join(keys)
    return rule


# Known field names across Garmin push variants, most specific first.
USER_ID_RULES: list[Rule] = [path("userId"), path("user_id")]
DAY_RULES: list[Rule] = [path("calendarDate"), path("date")]

MEASUREMENT_RULES: dict[str, list[Rule]] = {
    "steps": [path("steps"), path("summary", "steps")],
    "resting_hr": [path("restingHeartRate"), path("summary", "restingHeartRate")],
    "calories": [path("activeKilocalories"), path("summary", "calories")],
    "sleep_seconds": [path("sleepDurationInSeconds"), path("summary", "sleepSeconds")],
    "body_battery_min": [path("bodyBatteryMin")],
    "body_battery_max": [path("bodyBatteryMax"), path("bodyBattery", "max")],
}


def first_match(event: Mapping, rules: list[Rule], allow_empty: bool = True) -> Any:
    for rule in rules:
        value = rule(event)
        if value is None:
            continue
        if not allow_empty and value == "":
            continue
        return value
    return None


def _coerce_int(value: Any) -> Optional[int]:
    # bool is an int subclass; a flag is never a measurement
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        return int(round(value)) if math.isfinite(value) else None

    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(round(number)) if math.isfinite(number) else None

    return None


def _as_int(field: str, value: Any) -> Optional[int]:
    if value is None:
        return None

    number = _coerce_int(value)
    # measurement columns are signed 64-bit
    if number is None or not INT64_MIN <= number <= INT64_MAX:
        logger.warning("normalize.unusable: field=%s value=%r", field, value)
        return None
    return number


def normalize_event(event: Mapping, now: Optional[datetime] = None) -> HealthRecordIn:
    """
    Map one raw webhook event onto the canonical per-user per-day record.

    Each canonical field takes the first non-null value among its known
    aliases. A missing identifier becomes "unknown"; a missing day becomes the
    current UTC date. `payload` keeps the whole original event.
    """
    if not isinstance(event, Mapping):
        raise TypeError(f"expected a mapping event, got {type(event).__name__}")

    user = first_match(event, USER_ID_RULES, allow_empty=False)
    user_id = str(user) if user is not None else UNKNOWN_USER

    day_value = first_match(event, DAY_RULES, allow_empty=False)
    if day_value is None:
        day_value = (now or datetime.now(timezone.utc)).isoformat()
    day = str(day_value)[:10]

    measurements = {
        field: _as_int(field, first_match(event, rules))
        for field, rules in MEASUREMENT_RULES.items()
    }

    return HealthRecordIn(
        user_id=user_id,
        day=day,
        payload=dict(event),
        **measurements,
    )
