"""BaseService — foundation for services built on a LayoutManager.

Every service receives the session's :class:`LayoutManager` at
construction time and persists through it after successful mutations.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from userlayout.domain.errors import LayoutError

if TYPE_CHECKING:
    from userlayout.services.manager import LayoutManager

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class LayoutService(BaseService):
            def delete_node(self, node_id: str) -> ServiceResult:
                ...
                self._persist(warnings)
    """

    def __init__(self, manager: LayoutManager) -> None:
        self._manager = manager

    @property
    def manager(self) -> LayoutManager:
        return self._manager

    def _persist(self, warnings: list[str]) -> bool:
        """Save the layout if the manager has a store.

        Returns False (with a warning) when there is nothing to save to.
        On a store failure the manager is reloaded from the store, so the
        unsaved change is rolled back, and the LayoutError propagates.
        """
        if self._manager.store is None:
            warnings.append("No layout store configured; change kept in memory only")
            return False
        try:
            self._manager.save_user_layout()
        except LayoutError:
            logger.warning(
                "Saving layout %s failed; reloading the stored copy",
                self._manager.get_layout_id(),
                exc_info=True,
            )
            self._manager.load_user_layout()
            raise
        return True
