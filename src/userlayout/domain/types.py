"""Node types and classification enums.

The node type set is closed: a layout holds folders and channels only.
"""

from __future__ import annotations

from enum import StrEnum


class NodeType(StrEnum):
    """Kinds of node that can appear in a user layout."""

    FOLDER = "folder"
    CHANNEL = "channel"


class FolderType(StrEnum):
    """Presentation role of a folder."""

    REGULAR = "regular"
    HEADER = "header"
    FOOTER = "footer"


class MarkingType(StrEnum):
    """Drop-target annotations emitted with a serialized layout."""

    ADD = "add"
    MOVE = "move"


class EventKind(StrEnum):
    """Layout lifecycle events. Values double as listener hook names."""

    NODE_ADDED = "node_added"
    NODE_MOVED = "node_moved"
    NODE_UPDATED = "node_updated"
    NODE_DELETED = "node_deleted"
    LAYOUT_LOADED = "layout_loaded"
    LAYOUT_SAVED = "layout_saved"
