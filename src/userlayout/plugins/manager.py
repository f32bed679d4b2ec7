"""Listener registration and discovery.

Each layout manager owns one :class:`ListenerRegistry`, a thin wrapper
around a pluggy PluginManager. Registration is idempotent: adding a
registered listener or removing an unknown one reports False.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from userlayout.plugins.hookspecs import PROJECT_NAME, LayoutEventSpec

ENTRY_POINT_GROUP = "userlayout.listeners"

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """Set of layout event listeners backed by pluggy."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(LayoutEventSpec)

    def register(self, listener: object, name: str | None = None) -> bool:
        """Register *listener*. Returns False if it is already registered."""
        if self._pm.is_registered(listener):
            return False
        self._pm.register(listener, name=name)
        logger.debug("Registered listener: %s", self._pm.get_name(listener))
        return True

    def unregister(self, listener: object) -> bool:
        """Unregister *listener*. Returns False if it was not registered."""
        if not self._pm.is_registered(listener):
            return False
        self._pm.unregister(listener)
        return True

    def is_registered(self, listener: object) -> bool:
        return self._pm.is_registered(listener)

    def discover(self) -> list[str]:
        """Load listeners advertised under the ``userlayout.listeners`` entry point group.

        Entry points may name a class or an instance; classes are
        instantiated with no arguments. Returns the names of all
        registered listeners.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_listener_classes()
        return self.listener_names()

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def listeners(self) -> list[object]:
        return list(self._pm.get_plugins())

    def listener_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def _normalize_listener_classes(self) -> None:
        """Replace registered listener classes with instances.

        Hook dispatch against a class leaves ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point listener %s",
                    plugin_name,
                    exc_info=True,
                )
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point listener: %s", plugin_name)
