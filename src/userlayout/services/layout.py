"""LayoutService — ServiceResult facade over the LayoutManager.

Each public method runs one manager operation, persists successful
mutations, and reports the outcome as a :class:`ServiceResult`. The CLI
consumes only this class.

Rendered layouts are cached in a :class:`TaggedCache` keyed by the
manager's cache key and tagged with the layout's CacheEntryTag, so a
structural change (which changes the key and fires the invalidation
listener) never serves stale XML.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from userlayout.domain.descriptions import (
    ChannelDescription,
    NodeDescription,
    description_from_payload,
)
from userlayout.domain.errors import ErrorCode, LayoutError
from userlayout.infrastructure.xml_stream import parse_layout, render_layout
from userlayout.plugins.builtins.cache_invalidation import CacheInvalidationListener
from userlayout.services.base import BaseService
from userlayout.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from userlayout.infrastructure.cache import TaggedCache
    from userlayout.services.manager import LayoutManager


def describe(description: NodeDescription) -> dict[str, Any]:
    """Flatten a description for output."""
    return {
        "id": description.id,
        "type": str(description.node_type),
        **description.model_dump(mode="json", exclude={"id"}),
    }


class LayoutService(BaseService):
    """Layout operations for the CLI and other adapters.

    Parameters:
        manager: The session's layout manager.
        cache: Optional render cache. When given, a
            :class:`CacheInvalidationListener` is registered on *manager*.
    """

    def __init__(self, manager: LayoutManager, *, cache: TaggedCache | None = None) -> None:
        super().__init__(manager)
        self._cache = cache
        if cache is not None:
            manager.add_layout_event_listener(
                CacheInvalidationListener(cache, manager.cache_tag())
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def show(self, node_id: str | None = None) -> ServiceResult:
        """Render the layout (or the subtree at *node_id*) as XML."""
        op = "show"
        try:
            xml, cached = self._render(node_id)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"layout_id": self._manager.get_layout_id(), "xml": xml},
            meta={"cache_key": self._manager.get_cache_key(), "cached": cached},
        )

    def get_node(self, node_id: str) -> ServiceResult:
        """Description plus position of one node."""
        op = "get_node"
        mgr = self._manager
        try:
            data = describe(mgr.get_node(node_id))
            data.update(
                parent_id=mgr.get_parent_id(node_id),
                depth=mgr.get_depth(node_id),
                previous_sibling_id=mgr.get_previous_sibling_id(node_id),
                next_sibling_id=mgr.get_next_sibling_id(node_id),
            )
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=data)

    def children(self, node_id: str) -> ServiceResult:
        op = "children"
        try:
            child_ids = self._manager.get_child_ids(node_id)
            items = [describe(self._manager.get_node(c)) for c in child_ids]
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": node_id, "count": len(items), "items": items},
        )

    def subscribe_id(self, fname: str) -> ServiceResult:
        op = "subscribe_id"
        try:
            node_id = self._manager.get_subscribe_id(fname)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"fname": fname, "id": node_id})

    def cache_key(self) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op="cache_key",
            data={
                "layout_id": self._manager.get_layout_id(),
                "cache_key": self._manager.get_cache_key(),
                "tag": str(self._manager.cache_tag()),
            },
        )

    # ------------------------------------------------------------------
    # Permission checks
    # ------------------------------------------------------------------

    def can_add(
        self,
        node_type: str,
        parent_id: str,
        *,
        before: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> ServiceResult:
        op = "can_add"
        try:
            node = description_from_payload(node_type, attributes or {})
            allowed = self._manager.can_add_node(node, parent_id, before)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"allowed": allowed, "parent_id": parent_id})

    def can_move(self, node_id: str, parent_id: str, *, before: str | None = None) -> ServiceResult:
        op = "can_move"
        try:
            allowed = self._manager.can_move_node(node_id, parent_id, before)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"allowed": allowed, "id": node_id, "parent_id": parent_id},
        )

    def can_delete(self, node_id: str) -> ServiceResult:
        op = "can_delete"
        try:
            allowed = self._manager.can_delete_node(node_id)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"allowed": allowed, "id": node_id})

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_node(
        self,
        node_type: str,
        parent_id: str,
        *,
        before: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Create a node of *node_type* under *parent_id* and persist the layout."""
        op = "add_node"
        warnings: list[str] = []
        try:
            node = description_from_payload(node_type, attributes or {})
            stored = self._manager.add_node(node, parent_id, before)
            if stored is None:
                return self._denied(op, f"Cannot add {node_type} under {parent_id}")
            self._persist(warnings)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={**describe(stored), "parent_id": parent_id},
            warnings=warnings,
            meta={"cache_key": self._manager.get_cache_key()},
        )

    def move_node(
        self, node_id: str, parent_id: str, *, before: str | None = None
    ) -> ServiceResult:
        op = "move_node"
        warnings: list[str] = []
        try:
            if not self._manager.move_node(node_id, parent_id, before):
                return self._denied(op, f"Cannot move {node_id} under {parent_id}")
            self._persist(warnings)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": node_id, "parent_id": parent_id, "before": before},
            warnings=warnings,
            meta={"cache_key": self._manager.get_cache_key()},
        )

    def delete_node(self, node_id: str) -> ServiceResult:
        op = "delete_node"
        warnings: list[str] = []
        try:
            if not self._manager.delete_node(node_id):
                return self._denied(op, f"Cannot delete {node_id}")
            self._persist(warnings)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": node_id},
            warnings=warnings,
            meta={"cache_key": self._manager.get_cache_key()},
        )

    def update_node(self, node_id: str, *, changes: dict[str, Any]) -> ServiceResult:
        """Apply attribute *changes* to *node_id*.

        ``parameters`` (channels only) is merged into the existing
        parameters rather than replacing them.
        """
        op = "update_node"
        warnings: list[str] = []
        try:
            current = self._manager.get_node(node_id)
            payload = current.model_dump()
            updates = dict(changes)
            if isinstance(current, ChannelDescription) and "parameters" in updates:
                updates["parameters"] = {**current.parameters, **updates["parameters"]}
            payload.update(updates)
            candidate = description_from_payload(current.node_type, payload)
            if not self._manager.update_node(node_id, candidate):
                return self._denied(op, f"Cannot update {node_id}")
            self._persist(warnings)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": node_id, "fields_changed": sorted(changes)},
            warnings=warnings,
            meta={"cache_key": self._manager.get_cache_key()},
        )

    # ------------------------------------------------------------------
    # Drop targets
    # ------------------------------------------------------------------

    def add_targets(
        self,
        node_type: str,
        *,
        attributes: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Locations where a new node of *node_type* could be added."""
        op = "add_targets"
        try:
            node = description_from_payload(node_type, attributes or {})
            self._manager.mark_add_targets(node)
            return self._targets(op)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        finally:
            self._manager.mark_add_targets(None)

    def move_targets(self, node_id: str) -> ServiceResult:
        """Locations *node_id* could be moved to."""
        op = "move_targets"
        try:
            self._manager.mark_move_targets(node_id)
            return self._targets(op)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        finally:
            self._manager.mark_move_targets(None)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def import_layout(self, xml_text: str) -> ServiceResult:
        """Replace the whole layout with the one described by *xml_text*."""
        op = "import_layout"
        warnings: list[str] = []
        try:
            layout = parse_layout(xml_text)
            self._manager.set_user_layout(layout)
            self._persist(warnings)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"layout_id": self._manager.get_layout_id(), "nodes": len(layout)},
            warnings=warnings,
            meta={"cache_key": self._manager.get_cache_key()},
        )

    def export_layout(self, node_id: str | None = None) -> ServiceResult:
        op = "export_layout"
        try:
            xml, _ = self._render(node_id)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"xml": xml})

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _render(self, node_id: str | None) -> tuple[str, bool]:
        """Render XML, using the cache when no markings are active."""
        mgr = self._manager
        use_cache = self._cache is not None and not mgr.has_markings()
        key = f"{mgr.get_cache_key()}@{node_id or mgr.get_root_folder_id()}"
        if use_cache:
            assert self._cache is not None
            hit = self._cache.get(key)
            if hit is not None:
                return hit, True
        snapshot = mgr.get_user_layout()
        xml = render_layout(snapshot, node_id=node_id, cache_key=mgr.get_cache_key())
        if use_cache:
            assert self._cache is not None
            self._cache.put(key, xml, tags=[mgr.cache_tag()])
        return xml, False

    def _targets(self, op: str) -> ServiceResult:
        snapshot = self._manager.get_user_layout()
        targets = [
            {"parent_id": m.parent_id, "before": m.next_sibling_id} for m in snapshot.markings
        ]
        xml = render_layout(snapshot, cache_key=self._manager.get_cache_key())
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(targets), "targets": targets, "xml": xml},
        )

    @staticmethod
    def _denied(op: str, message: str) -> ServiceResult:
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code=str(ErrorCode.NOT_PERMITTED), message=message),
        )
