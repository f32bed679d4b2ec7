"""Database engine setup for SQLite with WAL mode.

SQLAlchemy Core (not ORM): layouts are loaded and saved whole, so there
is no benefit from session management or identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from userlayout.infrastructure.database.schema import metadata


def create_db_engine(db_path: Path | str) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    ``":memory:"`` yields a private in-memory database.
    """
    url = "sqlite://" if str(db_path) == ":memory:" else f"sqlite:///{db_path}"
    engine = create_engine(url, echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(db_path: Path | str) -> Engine:
    """Create the database file (and parent directory) with all tables.

    Idempotent — safe to call on an existing store.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
