import logging
from abc import ABC, abstractmethod
from typing import Callable, List

from ..events import call_listener
from .models import HostWindowOptions, ScreenInfo, ZoomChange
from .window import HostWindow

logger = logging.getLogger(__name__)

ZoomListener = Callable[[ZoomChange], object]


class HostRuntime(ABC):
    """
    The native windowing runtime the facades run on.

    Implementations create windows on request and report zoom changes
    of any page they host through :meth:`dispatch_zoom_change`.
    """

    def __init__(self):
        self._zoom_listeners: List[ZoomListener] = []

    @abstractmethod
    async def open_window(self, url: str, options: HostWindowOptions) -> HostWindow:
        """Create a window showing ``url`` and return its handle once it exists."""

    @abstractmethod
    async def screens(self) -> List[ScreenInfo]:
        """List the screens known to the host."""

    @abstractmethod
    async def set_zoom(self, tab_id: int, factor: float) -> None:
        """Set the zoom factor of the page identified by ``tab_id``."""

    def on_zoom_change(self, listener: ZoomListener) -> Callable[[], None]:
        """
        Subscribe to zoom changes of every hosted page.

        :return: A callable removing the subscription.
        """
        self._zoom_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._zoom_listeners:
                self._zoom_listeners.remove(listener)

        return unsubscribe

    def dispatch_zoom_change(self, change: ZoomChange) -> None:
        logger.debug("Zoom of tab %s changed to %s", change.tab_id, change.new_zoom_factor)
        for listener in list(self._zoom_listeners):
            try:
                call_listener(listener, change)
            except Exception:
                logger.exception("Zoom listener %r failed", listener)
