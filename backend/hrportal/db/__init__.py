from hrportal.db.base import Base, IDMixin, TimestampMixin, utcnow, utctoday
from hrportal.db.session import SessionLocal, engine, get_db, session_scope

__all__ = [
    "Base",
    "IDMixin",
    "TimestampMixin",
    "utcnow",
    "utctoday",
    "engine",
    "SessionLocal",
    "get_db",
    "session_scope",
]
