"""Built-in listener that evicts cached layout derivations on change.

Every entry derived from a layout is tagged with that layout's
:class:`~userlayout.domain.cache.CacheEntryTag`; any structural event
evicts all of them at once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from userlayout.plugins.hookspecs import hookimpl

if TYPE_CHECKING:
    from userlayout.domain.cache import CacheEntryTag
    from userlayout.domain.events import LayoutEvent
    from userlayout.infrastructure.cache import TaggedCache

logger = logging.getLogger(__name__)


class CacheInvalidationListener:
    """Evict entries tagged with *tag* from *cache* whenever the layout changes."""

    def __init__(self, cache: TaggedCache, tag: CacheEntryTag) -> None:
        self._cache = cache
        self._tag = tag

    def _evict(self, event: LayoutEvent) -> None:
        evicted = self._cache.invalidate_tag(self._tag)
        logger.debug("Evicted %d cache entries after %s", evicted, event.kind)

    @hookimpl
    def node_added(self, event: LayoutEvent) -> None:
        self._evict(event)

    @hookimpl
    def node_moved(self, event: LayoutEvent) -> None:
        self._evict(event)

    @hookimpl
    def node_updated(self, event: LayoutEvent) -> None:
        self._evict(event)

    @hookimpl
    def node_deleted(self, event: LayoutEvent) -> None:
        self._evict(event)

    @hookimpl
    def layout_loaded(self, event: LayoutEvent) -> None:
        self._evict(event)
