"""Extension layer — layout event listeners via pluggy.

Listeners are plain objects whose methods carry the ``userlayout``
hookimpl marker. Discovery: entry_points (pip-installed) via pluggy.
INVARIANT: Listener failures are warnings, never errors.
"""

from userlayout.plugins.event_bus import EventBus
from userlayout.plugins.hookspecs import hookimpl
from userlayout.plugins.manager import ListenerRegistry

__all__ = ["EventBus", "ListenerRegistry", "hookimpl"]
