"""SQLAlchemy Core table definitions for the layout store.

One row per layout (owned by one user) and one row per node. Node
attributes are stored as a JSON payload of the node description; the
structural columns (parent, position) are what the tree is rebuilt from.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

layouts = Table(
    "layouts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner", Text, nullable=False, unique=True),
    Column("sequences", Text, nullable=False, server_default="{}"),  # JSON object
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
)

layout_nodes = Table(
    "layout_nodes",
    metadata,
    Column("layout_id", Integer, ForeignKey("layouts.id"), nullable=False),
    Column("node_id", Text, nullable=False),
    Column("parent_id", Text),  # NULL for the root folder
    Column("position", Integer, nullable=False),
    Column("node_type", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    UniqueConstraint("layout_id", "node_id"),
)

Index("ix_layout_nodes_layout", layout_nodes.c.layout_id)
