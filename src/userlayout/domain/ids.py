"""Node ID patterns, validation, and generation.

Portal convention:
- Folders: ``s<N>`` (structure nodes).
- Channels: ``n<N>``.
- The root folder always has the reserved ID :data:`ROOT_FOLDER_ID`.

INVARIANT: IDs are never reused within one layout. Sequences only grow,
even when the node holding the highest ID is deleted.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Final, TypeAlias

NodeId: TypeAlias = str

ROOT_FOLDER_ID: Final[NodeId] = "root"

ID_PATTERNS: dict[str, re.Pattern[str]] = {
    "folder": re.compile(r"^s(\d+)$"),
    "channel": re.compile(r"^n(\d+)$"),
}

TYPE_PREFIXES: dict[str, str] = {
    "folder": "s",
    "channel": "n",
}


def validate_id(node_id: str, node_type: str) -> bool:
    """Check whether *node_id* matches the expected pattern for *node_type*.

    The root ID is a valid folder ID.
    """
    if node_type == "folder" and node_id == ROOT_FOLDER_ID:
        return True
    pattern = ID_PATTERNS.get(node_type)
    if pattern is None:
        return False
    return pattern.match(node_id) is not None


def id_sequence(node_id: str, node_type: str) -> int | None:
    """Return the numeric part of a generated ID, or None if it has none."""
    pattern = ID_PATTERNS.get(node_type)
    if pattern is None:
        return None
    match = pattern.match(node_id)
    if match is None:
        return None
    return int(match.group(1))


def highest_sequence(node_ids: Iterable[str], node_type: str) -> int:
    """Largest sequence number among *node_ids* for *node_type* (0 if none)."""
    highest = 0
    for node_id in node_ids:
        seq = id_sequence(node_id, node_type)
        if seq is not None and seq > highest:
            highest = seq
    return highest


def format_node_id(node_type: str, sequence: int) -> NodeId:
    """Build an ID like ``s12`` or ``n4``."""
    try:
        prefix = TYPE_PREFIXES[node_type]
    except KeyError:
        msg = f"No ID prefix for node type: {node_type!r}"
        raise ValueError(msg) from None
    return f"{prefix}{sequence}"


def next_node_id(existing: Iterable[str], node_type: str, *, floor: int = 0) -> NodeId:
    """Next free ID of *node_type* after everything in *existing*.

    *floor* is the last sequence already issued, so IDs of deleted nodes
    are not handed out again.
    """
    return format_node_id(node_type, max(floor, highest_sequence(existing, node_type)) + 1)
