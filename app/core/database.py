import importlib.util
import logging
from urllib.parse import urlparse

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.core.config import get_settings


class Base(DeclarativeBase):
    pass


settings = get_settings()
logger = logging.getLogger(__name__)

# Approvals hold row locks on wallets while they run; below these floors lock
# waits start surfacing as pool timeouts.
MIN_POOL_SIZE = 5
MIN_MAX_OVERFLOW = 5
MIN_POOL_TIMEOUT = 8


def _resolve_database_url(database_url: str) -> str:
    if not database_url.startswith("postgresql://"):
        return database_url
    if importlib.util.find_spec("psycopg2") is None and importlib.util.find_spec("psycopg") is not None:
        return database_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return database_url


def _connect_args(database_url: str) -> dict:
    parsed = urlparse(database_url)
    if parsed.scheme.startswith("sqlite"):
        # Request sessions may hop threads under the threadpool executor.
        return {"check_same_thread": False}
    if not parsed.scheme.startswith("postgresql"):
        return {}

    args = {"keepalives": 1, "keepalives_idle": 30, "keepalives_interval": 10, "keepalives_count": 5}
    if parsed.hostname not in {"localhost", "127.0.0.1", "db"}:
        args["sslmode"] = "require"
    return args


def _pool_kwargs(database_url: str) -> dict:
    if not database_url.startswith("postgresql"):
        return {}

    configured = (int(settings.db_pool_size), int(settings.db_max_overflow), int(settings.db_pool_timeout))
    pool_size, max_overflow, pool_timeout = (
        max(MIN_POOL_SIZE, configured[0]),
        max(MIN_MAX_OVERFLOW, configured[1]),
        max(MIN_POOL_TIMEOUT, configured[2]),
    )
    if (pool_size, max_overflow, pool_timeout) != configured:
        logger.warning(
            "Raised DB pool settings to the lock-safe floor: size=%s overflow=%s timeout=%s (configured %s)",
            pool_size,
            max_overflow,
            pool_timeout,
            configured,
        )
    return {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": settings.db_pool_recycle,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_timeout": pool_timeout,
        "pool_use_lifo": True,
    }


database_url = _resolve_database_url(str(settings.database_url))
engine = create_engine(database_url, **_pool_kwargs(database_url), connect_args=_connect_args(database_url))

if database_url.startswith("sqlite"):

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
