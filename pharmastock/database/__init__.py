from pharmastock.database.base import Base
from pharmastock.database.engine import engine, is_sqlite_lock_error
from pharmastock.database.session import SessionLocal, get_db, make_session_factory

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "is_sqlite_lock_error",
    "make_session_factory",
]
