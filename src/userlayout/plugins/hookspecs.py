"""Pluggy hook specifications for layout lifecycle events.

One hook per :class:`~userlayout.domain.types.EventKind`. Hooks are
dispatched synchronously after the mutation that caused them completes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from userlayout.domain.events import LayoutEvent

PROJECT_NAME = "userlayout"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class LayoutEventSpec:
    """Hook specifications implemented by layout event listeners."""

    @hookspec
    def node_added(self, event: LayoutEvent) -> None:
        """Called after a folder or channel is added."""

    @hookspec
    def node_moved(self, event: LayoutEvent) -> None:
        """Called after a node changes parent or position."""

    @hookspec
    def node_updated(self, event: LayoutEvent) -> None:
        """Called after a node description is replaced."""

    @hookspec
    def node_deleted(self, event: LayoutEvent) -> None:
        """Called after a node and its subtree are removed."""

    @hookspec
    def layout_loaded(self, event: LayoutEvent) -> None:
        """Called after the whole layout is loaded or replaced."""

    @hookspec
    def layout_saved(self, event: LayoutEvent) -> None:
        """Called after the layout is persisted."""
