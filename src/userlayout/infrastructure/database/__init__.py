"""SQLite layout database via SQLAlchemy Core."""

from userlayout.infrastructure.database.engine import create_db_engine, init_database
from userlayout.infrastructure.database.schema import layout_nodes, layouts, metadata

__all__ = [
    "create_db_engine",
    "init_database",
    "layout_nodes",
    "layouts",
    "metadata",
]
