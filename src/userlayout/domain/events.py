"""LayoutEvent — payload delivered to layout event listeners."""

from __future__ import annotations

from pydantic import BaseModel

from userlayout.domain.descriptions import ChannelDescription, FolderDescription
from userlayout.domain.types import EventKind


class LayoutEvent(BaseModel):
    """A layout changed (or was loaded or saved).

    Attributes:
        kind: What happened; also the listener hook that receives it.
        layout_id: Layout the event belongs to.
        node_id: Affected node, if the event concerns one node.
        parent_id: Parent of the node after the change.
        previous_parent_id: Parent before a move or delete.
        description: Node description after the change (before, for deletes).
    """

    model_config = {"frozen": True}

    kind: EventKind
    layout_id: int
    node_id: str | None = None
    parent_id: str | None = None
    previous_parent_id: str | None = None
    description: FolderDescription | ChannelDescription | None = None
