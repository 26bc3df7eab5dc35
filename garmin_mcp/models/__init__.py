from garmin_mcp.models.health import HealthData

__all__ = [
    "HealthData",
]
