"""Permission rules for layout mutations and drop-target discovery.

Each ``can_*`` function is a pure predicate over the current tree:
- Unknown node IDs raise ``LayoutError(NOT_FOUND)``.
- An ordinary denial returns False.

Rules:
- Only folders accept children; an ``immutable`` folder accepts no
  additions, removals, or reordering of its children.
- The root can never be moved or deleted.
- An ``unremovable`` node (or a subtree containing one) cannot be deleted
  and may only be reordered within its current parent.
- A node cannot be moved into its own subtree.
- ``immutable`` and ``unremovable`` flags can be raised but never cleared.
- No node may sit deeper than *max_depth* (the root is depth 0).
- An explicit ID on an added node must fit its type and never have been
  issued before in this layout.
"""

from __future__ import annotations

from userlayout.domain.descriptions import FolderDescription, NodeDescription, require_description
from userlayout.domain.ids import ROOT_FOLDER_ID, NodeId
from userlayout.domain.layout import Marking, UserLayout
from userlayout.domain.types import MarkingType

DEFAULT_MAX_DEPTH = 8


def _accepts_children(layout: UserLayout, parent_id: NodeId) -> bool:
    parent = layout.get(parent_id)
    return isinstance(parent, FolderDescription) and not parent.immutable


def _sibling_under(layout: UserLayout, next_sibling_id: NodeId | None, parent_id: NodeId) -> bool:
    if next_sibling_id is None:
        return True
    return layout.parent_id(next_sibling_id) == parent_id


def can_add(
    layout: UserLayout,
    description: NodeDescription,
    parent_id: NodeId,
    next_sibling_id: NodeId | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """Whether *description* may be inserted under *parent_id* before *next_sibling_id*."""
    description = require_description(description)
    layout.get(parent_id)
    if next_sibling_id is not None:
        layout.get(next_sibling_id)

    if not _accepts_children(layout, parent_id):
        return False
    if not _sibling_under(layout, next_sibling_id, parent_id):
        return False
    if description.id is not None and not layout.is_fresh_id(description.id, description.node_type):
        return False
    return layout.depth(parent_id) + 1 <= max_depth


def can_move(
    layout: UserLayout,
    node_id: NodeId,
    parent_id: NodeId,
    next_sibling_id: NodeId | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """Whether *node_id* may be moved under *parent_id* before *next_sibling_id*."""
    description = layout.get(node_id)
    layout.get(parent_id)
    if next_sibling_id is not None:
        layout.get(next_sibling_id)

    if node_id == ROOT_FOLDER_ID:
        return False
    if not _accepts_children(layout, parent_id):
        return False
    source_parent = layout.parent_id(node_id)
    assert source_parent is not None
    if layout.get(source_parent).immutable:
        return False
    if parent_id == node_id or layout.is_ancestor(node_id, parent_id):
        return False
    if description.unremovable and parent_id != source_parent:
        return False
    if not _sibling_under(layout, next_sibling_id, parent_id):
        return False
    return layout.depth(parent_id) + 1 + layout.subtree_height(node_id) <= max_depth


def can_delete(layout: UserLayout, node_id: NodeId) -> bool:
    """Whether *node_id* and its subtree may be removed."""
    layout.get(node_id)
    if node_id == ROOT_FOLDER_ID:
        return False
    if any(layout.get(n).unremovable for n in layout.subtree_ids(node_id)):
        return False
    parent_id = layout.parent_id(node_id)
    assert parent_id is not None
    return not layout.get(parent_id).immutable


def can_update(layout: UserLayout, node_id: NodeId, description: NodeDescription) -> bool:
    """Whether *node_id* may take on *description*."""
    current = layout.get(node_id)
    description = require_description(description)

    if type(description) is not type(current):
        return False
    if description.id is not None and description.id != node_id:
        return False
    candidate = description.with_id(node_id)
    if candidate == current:
        return True
    if current.immutable:
        return False
    return not (current.unremovable and not candidate.unremovable)


# ---------------------------------------------------------------------------
# Drop targets
# ---------------------------------------------------------------------------


def _positions(layout: UserLayout, parent_id: NodeId) -> list[NodeId | None]:
    return [*layout.child_ids(parent_id), None]


def add_targets(
    layout: UserLayout,
    description: NodeDescription,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[Marking]:
    """Every location where *description* could be added."""
    targets: list[Marking] = []
    for folder_id in layout.folder_ids():
        for next_id in _positions(layout, folder_id):
            if can_add(layout, description, folder_id, next_id, max_depth=max_depth):
                targets.append(Marking(MarkingType.ADD, folder_id, next_id))
    return targets


def move_targets(
    layout: UserLayout,
    node_id: NodeId,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[Marking]:
    """Every location *node_id* could move to, excluding its current slot."""
    current_parent = layout.parent_id(node_id)
    current_next = layout.next_sibling_id(node_id)
    targets: list[Marking] = []
    for folder_id in layout.folder_ids():
        for next_id in _positions(layout, folder_id):
            if folder_id == current_parent and next_id in (node_id, current_next):
                continue
            if can_move(layout, node_id, folder_id, next_id, max_depth=max_depth):
                targets.append(Marking(MarkingType.MOVE, folder_id, next_id))
    return targets
