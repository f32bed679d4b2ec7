"""Synchronous layout event dispatch over pluggy.

The bus calls every listener implementing the event's hook, in
registration order, on the caller's thread. A listener that raises is
logged and skipped; the remaining listeners still run.

INVARIANT: Listener failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from userlayout.domain.events import LayoutEvent
    from userlayout.plugins.manager import ListenerRegistry

logger = logging.getLogger(__name__)


class EventBus:
    """Deliver :class:`LayoutEvent` instances to registered listeners.

    Parameters:
        registry: Listener set to dispatch to.
    """

    def __init__(self, registry: ListenerRegistry) -> None:
        self._registry = registry

    def dispatch(self, event: LayoutEvent) -> list[str]:
        """Call every listener of ``event.kind``.

        Returns a warning message for each listener that failed.
        """
        hook_name = str(event.kind)
        hook = getattr(self._registry.hook, hook_name, None)
        if hook is None:
            return []

        warnings: list[str] = []
        kwargs = {"event": event}
        for impl in hook.get_hookimpls():
            try:
                impl.function(*[kwargs[arg] for arg in impl.argnames])
            except Exception:
                logger.warning(
                    "Listener %s failed on %s",
                    impl.plugin_name,
                    hook_name,
                    exc_info=True,
                )
                warnings.append(f"Listener {impl.plugin_name} failed on {hook_name}")
        return warnings
