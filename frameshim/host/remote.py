import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..runtime_handle import HostChannel
from .models import HostEventModel, HostWindowOptions, HostWindowState, ScreenInfo, ZoomChange
from .runtime import HostRuntime
from .window import HostWindow

logger = logging.getLogger(__name__)

ZOOM_EVENT = "zoom-changed"


def _screen_list(raw: Any) -> List[ScreenInfo]:
    return [ScreenInfo.model_validate(screen) for screen in raw or []]


class RemoteHostWindow(HostWindow):
    """Window handle whose requests travel over a :class:`HostChannel`."""

    def __init__(self, channel: HostChannel, label: str, state: Optional[HostWindowState] = None):
        super().__init__(label, state)
        self._channel = channel

    async def _invoke(self, method: str, **params: Any) -> Any:
        return await self._channel.request(method, {"label": self.label, **params})


class RemoteHostRuntime(HostRuntime):
    """
    Host runtime living in a separate process.

    Requests go out through the channel; events come back through
    :meth:`dispatch_event`, fed by the event websocket server.
    """

    def __init__(self, channel: HostChannel):
        super().__init__()
        self.channel = channel
        self._windows: Dict[str, RemoteHostWindow] = {}

    async def open_window(self, url: str, options: HostWindowOptions) -> HostWindow:
        state = await self.channel.request(
            "window.open",
            {"url": url, "options": options},
            result_type=HostWindowState,
        )
        window = RemoteHostWindow(self.channel, options.id, state)
        self._windows[options.id] = window
        logger.debug("Host opened window %s at %s", options.id, url)
        return window

    async def screens(self) -> List[ScreenInfo]:
        return await self.channel.request("screen.list", result_type=_screen_list)

    async def set_zoom(self, tab_id: int, factor: float) -> None:
        await self.channel.request("tabs.setZoom", {"tabId": tab_id, "zoomFactor": factor})

    def window(self, label: str) -> Optional[RemoteHostWindow]:
        return self._windows.get(label)

    def dispatch_event(self, payload: HostEventModel) -> None:
        """Route an event pushed by the host to its window or zoom listeners."""
        if payload.event == ZOOM_EVENT:
            try:
                change = ZoomChange.model_validate(payload.args[0] if payload.args else {})
            except ValidationError as e:
                logger.warning("Ignoring malformed zoom event: %s", e)
                return
            self.dispatch_zoom_change(change)
            return

        window = self._windows.get(payload.label or "")
        if window is None:
            logger.warning("Event %r for unknown window %r", payload.event, payload.label)
            return
        window.dispatch(payload.event, *payload.args)
        if payload.event == "closed":
            self._windows.pop(window.label, None)
