"""LayoutManager — mediates every read and mutation of one user's layout.

One manager instance belongs to one user session. It owns:

- the mutable :class:`~userlayout.domain.layout.UserLayout`,
- session-scoped add/move target markings,
- the registered layout event listeners,
- a lazily computed cache key.

Concurrency: every read and every check-then-apply mutation runs under a
per-instance re-entrant lock, so a ``can_*`` check and the change it
guards are never interleaved with another mutation. Listeners are
notified after the lock is released, so a listener may call back into
the manager.

Errors: unknown node IDs, unsupported node types, malformed layouts and
sink failures raise :class:`~userlayout.domain.errors.LayoutError`.
Permission predicates return False for an ordinary denial.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from userlayout.domain import rules
from userlayout.domain.cache import CacheEntryTag, layout_tag
from userlayout.domain.descriptions import (
    NodeDescription,
    create_node_description,
    require_description,
)
from userlayout.domain.errors import ErrorCode, LayoutError
from userlayout.domain.events import LayoutEvent
from userlayout.domain.ids import ROOT_FOLDER_ID, NodeId
from userlayout.domain.layout import Marking, UserLayout
from userlayout.domain.types import EventKind
from userlayout.infrastructure.xml_stream import build_dom, write_layout
from userlayout.plugins.event_bus import EventBus
from userlayout.plugins.manager import ListenerRegistry

if TYPE_CHECKING:
    from xml.dom.minidom import Document
    from xml.sax.handler import ContentHandler

    from userlayout.infrastructure.store import LayoutStore

logger = logging.getLogger(__name__)


class LayoutManager:
    """Validated access to a single user layout.

    Parameters:
        layout: Initial tree. Defaults to an empty layout (root folder only).
        store: Persistence collaborator for :meth:`load_user_layout` and
            :meth:`save_user_layout`. Optional for in-memory use.
        max_depth: Deepest level a node may occupy (the root is 0).
        listeners: Listener registry; a fresh one is created if omitted.
    """

    def __init__(
        self,
        layout: UserLayout | None = None,
        *,
        store: LayoutStore | None = None,
        max_depth: int = rules.DEFAULT_MAX_DEPTH,
        listeners: ListenerRegistry | None = None,
    ) -> None:
        self._layout = layout.copy() if layout is not None else UserLayout()
        self._layout.markings = ()
        self._layout.validate()
        self._store = store
        self._max_depth = max_depth
        self._listeners = listeners or ListenerRegistry()
        self._bus = EventBus(self._listeners)
        self._lock = threading.RLock()
        self._revision = 0
        self._cache_key: str | None = None
        self._add_candidate: NodeDescription | None = None
        self._move_candidate: NodeId | None = None

    @classmethod
    def for_owner(
        cls,
        store: LayoutStore,
        owner: str,
        *,
        root_name: str | None = None,
        max_depth: int = rules.DEFAULT_MAX_DEPTH,
        listeners: ListenerRegistry | None = None,
    ) -> LayoutManager:
        """Load *owner*'s stored layout, creating an empty one on first use."""
        if root_name is None:
            layout_id = store.ensure_layout(owner)
        else:
            layout_id = store.ensure_layout(owner, root_name=root_name)
        return cls(
            store.load(layout_id),
            store=store,
            max_depth=max_depth,
            listeners=listeners,
        )

    # ------------------------------------------------------------------
    # Whole-layout access
    # ------------------------------------------------------------------

    def get_user_layout(self) -> UserLayout:
        """Snapshot of the layout carrying the current add/move markings."""
        with self._lock:
            snapshot = self._layout.copy()
            snapshot.markings = tuple(self._current_markings())
            return snapshot

    def set_user_layout(self, layout: UserLayout) -> None:
        """Replace the whole tree.

        The layout keeps this manager's layout id. Markings stay in place
        and are recomputed against the new tree.

        Raises:
            LayoutError: ``MALFORMED_LAYOUT`` if *layout* is not a valid tree.
        """
        if not isinstance(layout, UserLayout):
            raise LayoutError.malformed(f"Expected a UserLayout, got {type(layout).__name__}")
        layout.validate()
        with self._lock:
            replacement = layout.copy()
            replacement.layout_id = self._layout.layout_id
            replacement.markings = ()
            replacement.merge_sequences(self._layout.sequences)
            if not self._replace_layout(replacement):
                return
            event = LayoutEvent(kind=EventKind.LAYOUT_LOADED, layout_id=replacement.layout_id)
        self._notify(event)

    def write_user_layout(self, handler: ContentHandler, node_id: NodeId | None = None) -> None:
        """Stream the layout, or the subtree at *node_id*, into a SAX *handler*.

        Raises:
            LayoutError: ``NOT_FOUND`` for an unknown *node_id*,
                ``SERIALIZATION_FAILED`` if the handler raises.
        """
        snapshot, cache_key = self._snapshot_with_key()
        write_layout(snapshot, handler, node_id=node_id, cache_key=cache_key)

    def get_user_layout_dom(self) -> Document:
        """The layout (with markings) as a ``xml.dom.minidom`` document."""
        snapshot, cache_key = self._snapshot_with_key()
        return build_dom(snapshot, cache_key=cache_key)

    def _snapshot_with_key(self) -> tuple[UserLayout, str]:
        with self._lock:
            return self.get_user_layout(), self.get_cache_key()

    # ------------------------------------------------------------------
    # Node queries
    # ------------------------------------------------------------------

    def get_node(self, node_id: NodeId) -> NodeDescription:
        with self._lock:
            return self._layout.get(node_id)

    def get_parent_id(self, node_id: NodeId) -> NodeId | None:
        """Parent of *node_id*; None for the root."""
        with self._lock:
            return self._layout.parent_id(node_id)

    def get_child_ids(self, node_id: NodeId) -> list[NodeId]:
        with self._lock:
            return self._layout.child_ids(node_id)

    def get_next_sibling_id(self, node_id: NodeId) -> NodeId | None:
        """Next sibling, or None if *node_id* is the last child (or the root)."""
        with self._lock:
            return self._layout.next_sibling_id(node_id)

    def get_previous_sibling_id(self, node_id: NodeId) -> NodeId | None:
        """Previous sibling, or None if *node_id* is the first child (or the root)."""
        with self._lock:
            return self._layout.previous_sibling_id(node_id)

    def get_depth(self, node_id: NodeId) -> int:
        with self._lock:
            return self._layout.depth(node_id)

    def get_subscribe_id(self, fname: str) -> NodeId:
        """ID of the channel the user subscribes to under functional name *fname*.

        Raises:
            LayoutError: ``NOT_FOUND`` if no channel has that fname.
        """
        with self._lock:
            node_id = self._layout.find_channel(fname)
        if node_id is None:
            raise LayoutError(
                ErrorCode.NOT_FOUND,
                f"No channel subscribed with fname: {fname}",
                detail={"fname": fname},
            )
        return node_id

    @property
    def store(self) -> LayoutStore | None:
        return self._store

    def get_root_folder_id(self) -> NodeId:
        return ROOT_FOLDER_ID

    def get_layout_id(self) -> int:
        return self._layout.layout_id

    def create_node_description(self, node_type: object) -> NodeDescription:
        """Empty, valid description for *node_type* (``UNSUPPORTED_TYPE`` otherwise)."""
        return create_node_description(node_type)

    # ------------------------------------------------------------------
    # Permission predicates
    # ------------------------------------------------------------------

    def can_add_node(
        self,
        node: NodeDescription,
        parent_id: NodeId,
        next_sibling_id: NodeId | None = None,
    ) -> bool:
        with self._lock:
            return rules.can_add(
                self._layout, node, parent_id, next_sibling_id, max_depth=self._max_depth
            )

    def can_move_node(
        self,
        node_id: NodeId,
        parent_id: NodeId,
        next_sibling_id: NodeId | None = None,
    ) -> bool:
        with self._lock:
            return rules.can_move(
                self._layout, node_id, parent_id, next_sibling_id, max_depth=self._max_depth
            )

    def can_delete_node(self, node_id: NodeId) -> bool:
        with self._lock:
            return rules.can_delete(self._layout, node_id)

    def can_update_node(self, node_id: NodeId, node_description: NodeDescription) -> bool:
        with self._lock:
            return rules.can_update(self._layout, node_id, node_description)

    # ------------------------------------------------------------------
    # Mutations (check and apply under one lock)
    # ------------------------------------------------------------------

    def add_node(
        self,
        node: NodeDescription,
        parent_id: NodeId,
        next_sibling_id: NodeId | None = None,
    ) -> NodeDescription | None:
        """Insert *node* under *parent_id* before *next_sibling_id* (None appends).

        Returns the stored description (with its assigned ID), or None if
        the addition is not permitted.
        """
        with self._lock:
            if not self.can_add_node(node, parent_id, next_sibling_id):
                logger.debug("Add denied under %s", parent_id)
                return None
            node_id = node.id or self._layout.allocate_id(node.node_type)
            stored = node.frozen_copy(node_id)
            self._layout.insert(stored, parent_id, next_sibling_id)
            self._touch()
            event = self._event(EventKind.NODE_ADDED, stored, parent_id=parent_id)
        self._notify(event)
        return stored

    def move_node(
        self,
        node_id: NodeId,
        parent_id: NodeId,
        next_sibling_id: NodeId | None = None,
    ) -> bool:
        """Move *node_id* (with its subtree). Returns False if not permitted."""
        with self._lock:
            if not self.can_move_node(node_id, parent_id, next_sibling_id):
                logger.debug("Move of %s under %s denied", node_id, parent_id)
                return False
            previous_parent = self._layout.parent_id(node_id)
            if previous_parent == parent_id and next_sibling_id in (
                node_id,
                self._layout.next_sibling_id(node_id),
            ):
                return True
            self._layout.relocate(node_id, parent_id, next_sibling_id)
            self._touch()
            event = self._event(
                EventKind.NODE_MOVED,
                self._layout.get(node_id),
                parent_id=parent_id,
                previous_parent_id=previous_parent,
            )
        self._notify(event)
        return True

    def delete_node(self, node_id: NodeId) -> bool:
        """Remove *node_id* and its subtree. Returns False if not permitted."""
        with self._lock:
            if not self.can_delete_node(node_id):
                logger.debug("Delete of %s denied", node_id)
                return False
            description = self._layout.get(node_id)
            previous_parent = self._layout.parent_id(node_id)
            self._layout.remove(node_id)
            self._touch()
            event = self._event(
                EventKind.NODE_DELETED,
                description,
                previous_parent_id=previous_parent,
            )
        self._notify(event)
        return True

    def update_node(self, node_id: NodeId, node_description: NodeDescription) -> bool:
        """Replace the description of *node_id*. Returns False if not permitted."""
        with self._lock:
            if not self.can_update_node(node_id, node_description):
                logger.debug("Update of %s denied", node_id)
                return False
            updated = node_description.frozen_copy(node_id)
            if updated == self._layout.get(node_id):
                return True
            self._layout.replace(updated)
            self._touch()
            event = self._event(
                EventKind.NODE_UPDATED,
                updated,
                parent_id=self._layout.parent_id(node_id),
            )
        self._notify(event)
        return True

    # ------------------------------------------------------------------
    # Markings
    # ------------------------------------------------------------------

    def mark_add_targets(self, node: NodeDescription | None) -> None:
        """Mark every location where *node* could be added; None clears the marks."""
        if node is not None:
            require_description(node)
        with self._lock:
            self._add_candidate = node

    def mark_move_targets(self, node_id: NodeId | None) -> None:
        """Mark every location *node_id* could move to; None clears the marks.

        Raises:
            LayoutError: ``NOT_FOUND`` for an unknown *node_id*.
        """
        with self._lock:
            if node_id is not None:
                self._layout.get(node_id)
            self._move_candidate = node_id

    def _current_markings(self) -> list[Marking]:
        markings: list[Marking] = []
        if self._add_candidate is not None:
            markings.extend(
                rules.add_targets(self._layout, self._add_candidate, max_depth=self._max_depth)
            )
        if self._move_candidate is not None and self._move_candidate in self._layout:
            markings.extend(
                rules.move_targets(self._layout, self._move_candidate, max_depth=self._max_depth)
            )
        return markings

    # ------------------------------------------------------------------
    # Cache key
    # ------------------------------------------------------------------

    def get_cache_key(self) -> str:
        """Key that changes whenever the layout's composition or structure changes.

        Format: ``<layout_id>:<revision>:<digest>`` where the revision
        counts changes to the tree and the digest covers it. Approved
        no-op mutations leave the key as it was.
        """
        with self._lock:
            if self._cache_key is None:
                digest = self._layout.structure_digest()[:12]
                self._cache_key = f"{self._layout.layout_id}:{self._revision}:{digest}"
            return self._cache_key

    def cache_tag(self) -> CacheEntryTag:
        """Tag for cache entries derived from this layout."""
        return layout_tag(self._layout.layout_id)

    def has_markings(self) -> bool:
        with self._lock:
            return self._add_candidate is not None or self._move_candidate is not None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_layout_event_listener(self, listener: object) -> bool:
        """Register *listener*. False if it was already registered."""
        return self._listeners.register(listener)

    def remove_layout_event_listener(self, listener: object) -> bool:
        """Unregister *listener*. False if it was not registered."""
        return self._listeners.unregister(listener)

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_user_layout(self) -> None:
        """Reload this manager's layout from the store.

        Raises:
            LayoutError: ``NO_STORE`` without a store, or any store error.
        """
        store = self._require_store()
        layout = store.load(self.get_layout_id())
        with self._lock:
            layout.merge_sequences(self._layout.sequences)
            if not self._replace_layout(layout):
                return
            event = LayoutEvent(kind=EventKind.LAYOUT_LOADED, layout_id=layout.layout_id)
        self._notify(event)

    def save_user_layout(self) -> None:
        """Persist the current layout through the store."""
        store = self._require_store()
        with self._lock:
            snapshot = self._layout.copy()
        store.save(snapshot.layout_id, snapshot)
        self._notify(LayoutEvent(kind=EventKind.LAYOUT_SAVED, layout_id=snapshot.layout_id))

    def _require_store(self) -> LayoutStore:
        if self._store is None:
            raise LayoutError(ErrorCode.NO_STORE, "No layout store configured")
        return self._store

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _touch(self) -> None:
        """Record a structural change. Caller holds the lock."""
        self._revision += 1
        self._cache_key = None

    def _replace_layout(self, layout: UserLayout) -> bool:
        """Swap in *layout*; False (and no revision bump) if the tree is unchanged."""
        unchanged = layout.structure_digest() == self._layout.structure_digest()
        self._layout = layout
        if unchanged:
            return False
        self._touch()
        return True

    def _event(
        self,
        kind: EventKind,
        description: NodeDescription,
        *,
        parent_id: NodeId | None = None,
        previous_parent_id: NodeId | None = None,
    ) -> LayoutEvent:
        return LayoutEvent(
            kind=kind,
            layout_id=self._layout.layout_id,
            node_id=description.id,
            parent_id=parent_id,
            previous_parent_id=previous_parent_id,
            description=description,
        )

    def _notify(self, event: LayoutEvent) -> list[str]:
        """Dispatch *event* outside the lock. Returns listener failure warnings."""
        return self._bus.dispatch(event)
