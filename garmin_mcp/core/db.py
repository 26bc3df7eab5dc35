from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from garmin_mcp.core.config import settings

Base = declarative_base()


def _normalize_url(url: str) -> str:
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


DATABASE_URL = _normalize_url(settings.DATABASE_URL)

# SQLite connections are handed across FastAPI's threadpool workers
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, future=True, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
