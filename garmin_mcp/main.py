import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from garmin_mcp.core.config import settings
from garmin_mcp.core.db import Base, engine
from garmin_mcp.api.health import router as health_router
from garmin_mcp.api.garmin import router as garmin_router
from garmin_mcp.api.mcp import router as mcp_router

import garmin_mcp.models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(_app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("startup: environment=%s db=%s", settings.ENVIRONMENT, engine.url.render_as_string(hide_password=True))
    yield


_configure_logging()

app = FastAPI(title="Garmin MCP", version="1.0.0", lifespan=lifespan)

app.include_router(health_router)
app.include_router(garmin_router)
app.include_router(mcp_router)


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
