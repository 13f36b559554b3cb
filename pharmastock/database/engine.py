import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from pharmastock.config import Settings, get_settings


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _is_memory_url(url) -> bool:
    if url.get_backend_name() != "sqlite":
        return False
    if url.database in (None, "", ":memory:"):
        return True
    return url.query.get("mode") == "memory"


def build_engine(database_url: str, *, busy_timeout: int = _SQLITE_BUSY_TIMEOUT_SECONDS) -> Engine:
    """Create an engine with the pragmas the ledger relies on for SQLite."""
    url = make_url(database_url)
    sqlite_backend = url.get_backend_name() == "sqlite"
    memory = _is_memory_url(url)

    connect_args = {}
    engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)
    if sqlite_backend:
        connect_args = {"check_same_thread": False, "timeout": busy_timeout}
        if memory:
            engine_kwargs.update(poolclass=StaticPool)

    new_engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

    if sqlite_backend:
        @event.listens_for(new_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute(f"PRAGMA busy_timeout={busy_timeout * 1000}")
                if not memory:
                    try:
                        cursor.execute("PRAGMA journal_mode=WAL")
                        cursor.execute("PRAGMA synchronous=NORMAL")
                    except sqlite3.DatabaseError as exc:
                        logger.warning("Unable to enable WAL journal mode: %s", exc)
            finally:
                cursor.close()

    return new_engine


engine = build_engine(app_settings.DATABASE_URL)


def is_sqlite_lock_error(exc: SQLAlchemyError) -> bool:
    """True when SQLite refused a write because another connection holds the lock."""
    if not isinstance(exc, OperationalError):
        return False
    orig = getattr(exc, "orig", None)
    if not isinstance(orig, sqlite3.OperationalError):
        return False
    message = str(orig).lower()
    return "database is locked" in message or "database is busy" in message
