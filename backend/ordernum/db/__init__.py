"""Database package with session management."""

from ordernum.db.session import async_session_maker, dispose_engine, engine, get_session, script_db_session

__all__ = [
    "async_session_maker",
    "dispose_engine",
    "engine",
    "get_session",
    "script_db_session",
]
