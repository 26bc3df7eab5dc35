from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./garmin_health.db"
    ENVIRONMENT: str = "local"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # Bearer token the agent client sends on /mcp/*; unset means every call is rejected
    MCP_API_TOKEN: str | None = None

    # Shared secret for X-Garmin-Signature; unset disables verification
    GARMIN_WEBHOOK_SECRET: str | None = None

    # Webhook limits (per client IP)
    WEBHOOK_RATE_LIMIT_MAX: int = 100
    WEBHOOK_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    # limits storage URI, e.g. redis://localhost:6379/0 when running several workers
    WEBHOOK_RATE_LIMIT_STORAGE_URI: str = "memory://"
    MAX_WEBHOOK_BODY_BYTES: int = 2 * 1024 * 1024

    SSE_PING_INTERVAL_SECONDS: float = 30.0

    # Upper bound for garmin.getRecentDays `days`
    MCP_MAX_RECENT_DAYS: int = 366


settings = Settings()
