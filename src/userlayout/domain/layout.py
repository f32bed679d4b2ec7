"""UserLayout — the ordered node tree for one user.

The tree is held as three maps keyed by node ID: descriptions, ordered
child lists, and parent links. Structure primitives (insert, relocate,
remove, replace) perform no permission checks; the layout manager
consults :mod:`userlayout.domain.rules` before calling them.

INVARIANT: A validated layout has exactly one root (:data:`ROOT_FOLDER_ID`),
every node is reachable from it, and only folders have children.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from userlayout.domain.descriptions import ChannelDescription, FolderDescription, NodeDescription
from userlayout.domain.errors import LayoutError
from userlayout.domain.ids import (
    ID_PATTERNS,
    ROOT_FOLDER_ID,
    NodeId,
    highest_sequence,
    id_sequence,
    next_node_id,
    validate_id,
)
from userlayout.domain.types import MarkingType

DEFAULT_ROOT_NAME = "Root folder"


@dataclass(frozen=True)
class Marking:
    """A valid drop location for a pending add or move.

    ``next_sibling_id`` of None means "append as the last child".
    """

    kind: MarkingType
    parent_id: NodeId
    next_sibling_id: NodeId | None = None


class UserLayout:
    """Ordered, addressable tree of folders and channels.

    Attributes:
        layout_id: Identifier of the stored layout (0 when unsaved).
        markings: Add/move target annotations carried by a snapshot.
    """

    def __init__(
        self,
        root: FolderDescription | None = None,
        *,
        layout_id: int = 0,
    ) -> None:
        root_desc = (root or FolderDescription(name=DEFAULT_ROOT_NAME)).with_id(ROOT_FOLDER_ID)
        self.layout_id = layout_id
        self.markings: tuple[Marking, ...] = ()
        self._descriptions: dict[NodeId, NodeDescription] = {ROOT_FOLDER_ID: root_desc}
        self._children: dict[NodeId, list[NodeId]] = {ROOT_FOLDER_ID: []}
        self._parents: dict[NodeId, NodeId | None] = {ROOT_FOLDER_ID: None}
        self._sequences: dict[str, int] = {}

    @classmethod
    def from_nodes(
        cls,
        nodes: Iterable[tuple[NodeId | None, NodeDescription]],
        *,
        layout_id: int = 0,
        sequences: dict[str, int] | None = None,
    ) -> UserLayout:
        """Build a layout from ``(parent_id, description)`` pairs and validate it.

        Pairs must list siblings in order; parents may appear after their
        children. The root is the pair whose parent is None.

        Raises:
            LayoutError: ``MALFORMED_LAYOUT`` if the pairs do not form a
                valid tree.
        """
        layout = cls.__new__(cls)
        layout.layout_id = layout_id
        layout.markings = ()
        layout._descriptions = {}
        layout._children = {}
        layout._parents = {}
        layout._sequences = dict(sequences or {})

        for parent_id, description in nodes:
            node_id = description.id
            if node_id is None:
                raise LayoutError.malformed("Node description without an ID")
            if node_id in layout._descriptions:
                raise LayoutError.malformed(f"Duplicate node ID: {node_id}", node_id=node_id)
            layout._descriptions[node_id] = description
            layout._parents[node_id] = parent_id
            layout._children.setdefault(node_id, [])
            if parent_id is not None:
                layout._children.setdefault(parent_id, []).append(node_id)

        layout.validate()
        return layout

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Check structural integrity.

        Raises:
            LayoutError: ``MALFORMED_LAYOUT`` describing the first problem found.
        """
        root = self._descriptions.get(ROOT_FOLDER_ID)
        if root is None:
            raise LayoutError.malformed("Layout has no root folder")
        if not isinstance(root, FolderDescription):
            raise LayoutError.malformed("Layout root is not a folder")
        if self._parents.get(ROOT_FOLDER_ID) is not None:
            raise LayoutError.malformed("Layout root has a parent")

        for node_id, description in self._descriptions.items():
            if description.id != node_id:
                raise LayoutError.malformed(
                    f"Description ID {description.id!r} stored under {node_id!r}",
                    node_id=node_id,
                )
            parent_id = self._parents.get(node_id)
            if node_id != ROOT_FOLDER_ID:
                if parent_id is None:
                    raise LayoutError.malformed(f"Second root node: {node_id}", node_id=node_id)
                if parent_id not in self._descriptions:
                    raise LayoutError.malformed(
                        f"Node {node_id} references missing parent {parent_id}",
                        node_id=node_id,
                    )
                if self._children.get(parent_id, []).count(node_id) != 1:
                    raise LayoutError.malformed(
                        f"Node {node_id} is not listed once under its parent",
                        node_id=node_id,
                    )

        for parent_id, child_ids in self._children.items():
            if not child_ids:
                continue
            parent = self._descriptions.get(parent_id)
            if parent is None:
                raise LayoutError.malformed(
                    f"Children listed under missing node {parent_id}",
                    node_id=parent_id,
                )
            if not isinstance(parent, FolderDescription):
                raise LayoutError.malformed(
                    f"Non-folder node {parent_id} has children",
                    node_id=parent_id,
                )
            for child_id in child_ids:
                if self._parents.get(child_id) != parent_id:
                    raise LayoutError.malformed(
                        f"Child {child_id} does not point back to {parent_id}",
                        node_id=child_id,
                    )

        reachable = sum(1 for _ in self.walk())
        if reachable != len(self._descriptions):
            raise LayoutError.malformed(
                f"{len(self._descriptions) - reachable} node(s) unreachable from the root"
            )

    # ------------------------------------------------------------------
    # Lookup and navigation
    # ------------------------------------------------------------------

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._descriptions

    def __len__(self) -> int:
        return len(self._descriptions)

    def get(self, node_id: NodeId | None) -> NodeDescription:
        """Return the description of *node_id*.

        Raises:
            LayoutError: ``NOT_FOUND`` if the node does not exist.
        """
        if node_id is None or node_id not in self._descriptions:
            raise LayoutError.not_found(node_id)
        return self._descriptions[node_id]

    def parent_id(self, node_id: NodeId) -> NodeId | None:
        """Parent of *node_id*; None for the root."""
        self.get(node_id)
        return self._parents[node_id]

    def child_ids(self, node_id: NodeId) -> list[NodeId]:
        """Ordered children of *node_id* (empty for channels)."""
        self.get(node_id)
        return list(self._children.get(node_id, []))

    def next_sibling_id(self, node_id: NodeId) -> NodeId | None:
        siblings, index = self._position(node_id)
        if index is None or index + 1 >= len(siblings):
            return None
        return siblings[index + 1]

    def previous_sibling_id(self, node_id: NodeId) -> NodeId | None:
        siblings, index = self._position(node_id)
        if index is None or index == 0:
            return None
        return siblings[index - 1]

    def depth(self, node_id: NodeId) -> int:
        """Number of ancestors of *node_id* (the root has depth 0)."""
        self.get(node_id)
        depth = 0
        parent_id = self._parents[node_id]
        while parent_id is not None:
            depth += 1
            parent_id = self._parents[parent_id]
        return depth

    def walk(self, start: NodeId = ROOT_FOLDER_ID) -> Iterator[NodeId]:
        """Yield *start* and its descendants in document order."""
        if start not in self._descriptions:
            return
        stack = [start]
        seen: set[NodeId] = set()
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            yield node_id
            stack.extend(reversed(self._children.get(node_id, [])))

    def subtree_ids(self, node_id: NodeId) -> list[NodeId]:
        """*node_id* followed by all of its descendants."""
        self.get(node_id)
        return list(self.walk(node_id))

    def subtree_height(self, node_id: NodeId) -> int:
        """Levels below *node_id* (0 for a leaf)."""
        self.get(node_id)
        base = self.depth(node_id)
        return max(self.depth(n) for n in self.walk(node_id)) - base

    def is_ancestor(self, ancestor_id: NodeId, node_id: NodeId) -> bool:
        """True if *ancestor_id* lies strictly above *node_id*."""
        self.get(ancestor_id)
        parent_id = self.parent_id(node_id)
        while parent_id is not None:
            if parent_id == ancestor_id:
                return True
            parent_id = self._parents[parent_id]
        return False

    def folder_ids(self) -> list[NodeId]:
        """All folders in document order."""
        return [n for n in self.walk() if isinstance(self._descriptions[n], FolderDescription)]

    def find_channel(self, fname: str) -> NodeId | None:
        """First channel (document order) subscribed under functional name *fname*."""
        for node_id in self.walk():
            description = self._descriptions[node_id]
            if isinstance(description, ChannelDescription) and description.fname == fname:
                return node_id
        return None

    @property
    def sequences(self) -> dict[str, int]:
        """Last issued sequence number per node type."""
        return dict(self._sequences)

    def merge_sequences(self, sequences: dict[str, int]) -> None:
        """Raise the issued sequences to at least *sequences*; they never drop."""
        for key, value in sequences.items():
            self._sequences[key] = max(self._sequences.get(key, 0), value)

    def is_fresh_id(self, node_id: NodeId, node_type: str) -> bool:
        """True if *node_id* fits *node_type* and lies above every sequence issued so far."""
        key = str(node_type)
        if not validate_id(node_id, key):
            return False
        sequence = id_sequence(node_id, key)
        if sequence is None:
            return False
        floor = max(self._sequences.get(key, 0), highest_sequence(self._descriptions, key))
        return sequence > floor

    # ------------------------------------------------------------------
    # Structure primitives (no permission checks)
    # ------------------------------------------------------------------

    def allocate_id(self, node_type: str) -> NodeId:
        """Issue a fresh, never-used ID for a node of *node_type*."""
        key = str(node_type)
        node_id = next_node_id(self._descriptions, key, floor=self._sequences.get(key, 0))
        self._sequences[key] = id_sequence(node_id, key) or 0
        return node_id

    def insert(
        self,
        description: NodeDescription,
        parent_id: NodeId,
        next_sibling_id: NodeId | None = None,
    ) -> None:
        """Place *description* under *parent_id*, before *next_sibling_id*."""
        node_id = description.id
        if node_id is None:
            raise LayoutError.malformed("Cannot insert a node without an ID")
        self.get(parent_id)
        self._descriptions[node_id] = description
        self._children[node_id] = []
        self._parents[node_id] = parent_id
        self._attach(node_id, parent_id, next_sibling_id)
        key = str(description.node_type)
        sequence = id_sequence(node_id, key)
        if sequence is not None:
            self.merge_sequences({key: sequence})

    def relocate(
        self,
        node_id: NodeId,
        parent_id: NodeId,
        next_sibling_id: NodeId | None = None,
    ) -> None:
        """Move *node_id* (with its subtree) under *parent_id*."""
        self.get(parent_id)
        if next_sibling_id == node_id:
            return
        old_parent = self.parent_id(node_id)
        if old_parent is not None:
            self._children[old_parent].remove(node_id)
        self._parents[node_id] = parent_id
        self._attach(node_id, parent_id, next_sibling_id)

    def remove(self, node_id: NodeId) -> list[NodeId]:
        """Detach *node_id* and drop its whole subtree. Returns removed IDs."""
        removed = self.subtree_ids(node_id)
        parent_id = self._parents[node_id]
        if parent_id is not None:
            self._children[parent_id].remove(node_id)
        for key in ID_PATTERNS:
            highest = highest_sequence(removed, key)
            if highest:
                self.merge_sequences({key: highest})
        for gone in removed:
            del self._descriptions[gone]
            del self._parents[gone]
            self._children.pop(gone, None)
        return removed

    def replace(self, description: NodeDescription) -> NodeDescription:
        """Swap in a new description for an existing node. Returns the old one."""
        previous = self.get(description.id)
        self._descriptions[previous.id] = description  # type: ignore[index]
        return previous

    def _attach(self, node_id: NodeId, parent_id: NodeId, next_sibling_id: NodeId | None) -> None:
        siblings = self._children.setdefault(parent_id, [])
        if next_sibling_id is None or next_sibling_id not in siblings:
            siblings.append(node_id)
        else:
            siblings.insert(siblings.index(next_sibling_id), node_id)

    def _position(self, node_id: NodeId) -> tuple[list[NodeId], int | None]:
        parent_id = self.parent_id(node_id)
        if parent_id is None:
            return [], None
        siblings = self._children[parent_id]
        return siblings, siblings.index(node_id)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def nodes(self) -> Iterator[tuple[NodeId | None, NodeDescription]]:
        """``(parent_id, description)`` pairs in document order."""
        for node_id in self.walk():
            yield self._parents[node_id], self._descriptions[node_id]

    def structure_digest(self) -> str:
        """SHA-256 over the ordered structure and every description."""
        digest = hashlib.sha256()
        for node_id in self.walk():
            description = self._descriptions[node_id]
            record = {
                "id": node_id,
                "parent": self._parents[node_id],
                "type": str(description.node_type),
                "attrs": description.model_dump(mode="json"),
            }
            digest.update(json.dumps(record, sort_keys=True).encode("utf-8"))
            digest.update(b"\n")
        return digest.hexdigest()

    def copy(self) -> UserLayout:
        """Independent copy. Descriptions are frozen and shared."""
        clone = UserLayout.__new__(UserLayout)
        clone.layout_id = self.layout_id
        clone.markings = self.markings
        clone._descriptions = dict(self._descriptions)
        clone._children = {k: list(v) for k, v in self._children.items()}
        clone._parents = dict(self._parents)
        clone._sequences = dict(self._sequences)
        return clone

    def __repr__(self) -> str:
        return f"UserLayout(layout_id={self.layout_id}, nodes={len(self._descriptions)})"
