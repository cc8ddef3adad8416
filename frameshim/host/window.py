import base64
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..events import call_listener
from .models import HostWindowState

logger = logging.getLogger(__name__)


def _as_bytes(raw: Any) -> bytes:
    """Accept raw bytes or a base64 string as sent over JSON."""
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw)
    return base64.b64decode(raw or b"")


class HostWindow(ABC):
    """
    Asynchronous handle on a window owned by the host runtime.

    Every operation is a request sent through :meth:`_invoke` and
    awaited until the host answers. The handle keeps the host's last
    reported :class:`HostWindowState`, updated from successful calls and
    from events the host raises.
    """

    def __init__(self, label: str, state: Optional[HostWindowState] = None):
        self.label = label
        self.state = state or HostWindowState()
        self._listeners: Dict[str, List[Callable[..., Any]]] = {}

    @abstractmethod
    async def _invoke(self, method: str, **params: Any) -> Any:
        """Send ``method`` for this window to the host and return its result."""

    # -- events -----------------------------------------------------------

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Subscribe ``callback`` to a host event name."""
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable[..., Any]) -> None:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def dispatch(self, event: str, *args: Any) -> None:
        """
        Deliver a host event to the subscribed callbacks.

        Called by the host runtime when the window raises ``event``. A
        failing callback is logged and does not stop the others.
        """
        self._apply_event(event, args)
        for callback in list(self._listeners.get(event, [])):
            try:
                call_listener(callback, *args)
            except Exception:
                logger.exception("Listener %r for %r of window %s failed", callback, event, self.label)

    def _apply_event(self, event: str, args: Sequence[Any]) -> None:
        if event == "resize" and len(args) >= 2:
            self.state.width, self.state.height = args[0], args[1]
        elif event == "move" and len(args) >= 2:
            self.state.x, self.state.y = args[0], args[1]
        elif event == "enter-fullscreen":
            self.state.fullscreen = True
        elif event == "leave-fullscreen":
            self.state.fullscreen = False
        elif event == "closed":
            self.state.closed = True

    # -- lifecycle --------------------------------------------------------

    async def show(self) -> None:
        await self._invoke("window.show")

    async def hide(self) -> None:
        await self._invoke("window.hide")

    async def close(self, force: bool = False) -> None:
        """Close the window; ``force`` skips the host's ``close`` veto."""
        await self._invoke("window.close", force=force)

    async def focus(self) -> None:
        await self._invoke("window.focus")

    async def blur(self) -> None:
        await self._invoke("window.blur")

    async def maximize(self) -> None:
        await self._invoke("window.maximize")

    async def unmaximize(self) -> None:
        await self._invoke("window.unmaximize")

    async def minimize(self) -> None:
        await self._invoke("window.minimize")

    async def restore(self) -> None:
        await self._invoke("window.restore")

    async def reload(self) -> None:
        await self._invoke("window.reload")

    async def navigate(self, url: str) -> None:
        """Point the window's content at ``url``."""
        await self._invoke("window.navigate", url=url)
        self.state.url = url
        self.state.loading = True

    # -- geometry ---------------------------------------------------------

    async def resize_to(self, width: int, height: int) -> None:
        await self._invoke("window.resizeTo", width=width, height=height)
        self.state.width, self.state.height = width, height

    async def move_to(self, x: Optional[int], y: Optional[int]) -> None:
        await self._invoke("window.moveTo", x=x, y=y)
        self.state.x, self.state.y = x, y

    async def set_position(self, position: str) -> None:
        """Place the window by keyword, e.g. ``"center"``."""
        await self._invoke("window.setPosition", position=position)

    async def set_minimum_size(self, width: int, height: int) -> None:
        await self._invoke("window.setMinimumSize", width=width, height=height)

    async def set_maximum_size(self, width: Optional[int], height: Optional[int]) -> None:
        await self._invoke("window.setMaximumSize", width=width, height=height)

    # -- flags ------------------------------------------------------------

    async def set_resizable(self, resizable: bool) -> None:
        await self._invoke("window.setResizable", resizable=resizable)

    async def set_always_on_top(self, always: bool) -> None:
        await self._invoke("window.setAlwaysOnTop", alwaysOnTop=always)
        self.state.always_on_top = always

    async def set_shadow(self, shadow: bool) -> None:
        await self._invoke("window.setShadow", shadow=shadow)

    async def enter_fullscreen(self) -> None:
        await self._invoke("window.enterFullscreen")
        self.state.fullscreen = True

    async def leave_fullscreen(self) -> None:
        await self._invoke("window.leaveFullscreen")
        self.state.fullscreen = False

    async def enter_kiosk_mode(self) -> None:
        await self._invoke("window.enterKioskMode")

    async def leave_kiosk_mode(self) -> None:
        await self._invoke("window.leaveKioskMode")

    async def set_visible_on_all_workspaces(self, visible: bool) -> None:
        await self._invoke("window.setVisibleOnAllWorkspaces", visible=visible)

    async def set_show_in_taskbar(self, show: bool) -> None:
        await self._invoke("window.setShowInTaskbar", show=show)

    async def request_attention(self, attention: bool) -> None:
        await self._invoke("window.requestAttention", attention=attention)

    # -- content ----------------------------------------------------------

    async def set_title(self, title: str) -> None:
        await self._invoke("window.setTitle", title=title)
        self.state.title = title

    async def set_menu(self, menu: Any) -> None:
        """Install ``menu`` in the window; ``None`` removes the menu bar."""
        await self._invoke("window.setMenu", menu=menu)

    async def eval_script(self, script: str) -> Any:
        """Evaluate ``script`` in the window's page and return its result."""
        return await self._invoke("window.eval", script=script)

    async def capture_page(self, image_format: str = "png") -> bytes:
        """Capture the whole window as encoded image bytes."""
        return _as_bytes(await self._invoke("window.capturePage", format=image_format))

    async def show_dev_tools(self) -> None:
        await self._invoke("window.showDevTools")

    async def close_dev_tools(self) -> None:
        await self._invoke("window.closeDevTools")
