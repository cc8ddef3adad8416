import itertools
import logging
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from .control.window import BrowserWindow

logger = logging.getLogger(__name__)

_window_ids = itertools.count(1)


def next_window_id() -> int:
    """Allocate a window id. Ids are never reused while the process lives."""
    return next(_window_ids)


class WindowRegistry:
    """
    Directory of live windows keyed by id.

    Entries are added when a window is constructed and removed once,
    when its host window reports ``closed``.
    """

    def __init__(self):
        self._windows: Dict[int, "BrowserWindow"] = {}

    def add(self, window: "BrowserWindow") -> None:
        self._windows[window.id] = window
        logger.debug("Registered window %s (%d live)", window.id, len(self._windows))

    def remove(self, window_id: int) -> bool:
        """
        Remove a window.

        :param window_id: Id of the window to drop.
        :return: ``True`` only when this call emptied the registry.
            Removing an unknown id is a no-op returning ``False``.
        """
        if self._windows.pop(window_id, None) is None:
            return False
        logger.debug("Removed window %s (%d live)", window_id, len(self._windows))
        return not self._windows

    def get(self, window_id: int) -> Optional["BrowserWindow"]:
        return self._windows.get(window_id)

    def all(self) -> List["BrowserWindow"]:
        return list(self._windows.values())

    def __len__(self) -> int:
        return len(self._windows)

    def __contains__(self, window_id: object) -> bool:
        return window_id in self._windows


_registry: Optional[WindowRegistry] = None


def get_registry() -> WindowRegistry:
    """Return the process registry, creating it on first use."""
    global _registry
    if _registry is None:
        _registry = WindowRegistry()
    return _registry


def set_registry(registry: Optional[WindowRegistry]) -> None:
    """Install ``registry`` as the process registry (``None`` resets it)."""
    global _registry
    _registry = registry
