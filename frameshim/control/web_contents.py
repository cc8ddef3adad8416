import asyncio
import itertools
import math
import weakref
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

from ..errors import FrameshimError, throw_unsupported
from ..events import Event, call_listener
from ..host.models import ZoomChange
from ..host.runtime import HostRuntime
from ..host.window import HostWindow
from ..registry import get_registry
from ..session import DownloadItem, Session
from .mailbox import MessageMailbox

if TYPE_CHECKING:
    from .window import BrowserWindow

#: Each zoom level step scales the page by this factor.
ZOOM_LEVEL_BASE = 1.2

_contents_ids = itertools.count(1)


def zoom_factor_to_level(factor: float) -> float:
    # rounded so exact powers of the base give whole levels
    return round(math.log(factor) / math.log(ZOOM_LEVEL_BASE), 10)


def zoom_level_to_factor(level: float) -> float:
    return ZOOM_LEVEL_BASE ** level


class WebContents:
    """
    Content side of a window: navigation, zoom, dev tools and messaging.

    The host runtime has a single page per window, so every operation
    goes through the owning window's host handle.
    """

    def __init__(self, window: "BrowserWindow", zoom_factor: float = 1.0, session: Optional[Session] = None):
        self._id = next(_contents_ids)
        self._window_ref = weakref.ref(window)
        self.session = session or Session.default_session()
        self._zoom_factor = zoom_factor
        self._tab_id: Optional[int] = None
        self._dev_tools_open = False
        self._handlers: Dict[str, Callable[..., Any]] = {}
        self._mailbox = MessageMailbox()
        self._unsubscribe_zoom: Optional[Callable[[], None]] = None

    @staticmethod
    def get_all_web_contents() -> List["WebContents"]:
        return [window.web_contents for window in get_registry().all()]

    @staticmethod
    def get_focused_web_contents() -> Optional["WebContents"]:
        from .window import BrowserWindow

        window = BrowserWindow.get_focused_window()
        return window.web_contents if window else None

    @staticmethod
    def from_id(contents_id: int) -> Optional["WebContents"]:
        for contents in WebContents.get_all_web_contents():
            if contents.id == contents_id:
                return contents
        return None

    @property
    def id(self) -> int:
        return self._id

    @property
    def owner(self) -> Optional["BrowserWindow"]:
        """The window this content belongs to, if it still exists."""
        return self._window_ref()

    def _host(self) -> Optional[HostWindow]:
        window = self.owner
        return window.host_window if window else None

    def _require_owner(self) -> "BrowserWindow":
        window = self.owner
        if window is None:
            raise FrameshimError(f"WebContents {self._id} has no window any more")
        return window

    def _defer(self, operation: Callable[[HostWindow], Awaitable[Any]]) -> Optional[asyncio.Task]:
        window = self.owner
        if window is None:
            return None
        return window._defer(operation)

    # -- attach -----------------------------------------------------------

    async def _attach(self, host: HostWindow, runtime: HostRuntime) -> None:
        self._tab_id = host.state.tab_id
        self._unsubscribe_zoom = runtime.on_zoom_change(self._on_zoom_change)
        if self._zoom_factor != 1.0 and self._tab_id is not None:
            await runtime.set_zoom(self._tab_id, self._zoom_factor)

    def _detach(self) -> None:
        if self._unsubscribe_zoom is not None:
            self._unsubscribe_zoom()
            self._unsubscribe_zoom = None

    def _on_zoom_change(self, change: ZoomChange) -> None:
        if self._tab_id is not None and change.tab_id == self._tab_id:
            self._zoom_factor = change.new_zoom_factor

    # -- page state -------------------------------------------------------

    def get_url(self) -> str:
        host = self._host()
        return host.state.url if host else ""

    def get_title(self) -> str:
        host = self._host()
        return host.state.tab_title if host else ""

    def is_loading(self) -> bool:
        host = self._host()
        return host.state.loading if host else False

    def load_url(self, url: str, options: Optional[Dict[str, Any]] = None) -> Awaitable[None]:
        if options is not None:
            throw_unsupported("WebContents.load_url", "can't support the 'options' argument")
        return self._require_owner().load_url(url)

    def load_file(self, file_path: str, options: Optional[Dict[str, Any]] = None) -> Awaitable[None]:
        if options is not None:
            throw_unsupported("WebContents.load_file", "can't support the 'options' argument")
        return self._require_owner().load_file(file_path)

    def reload(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.reload())

    def download_url(self, url: str) -> None:
        """Announce a download of ``url`` through the session's ``will-download`` event."""
        self.session.emit("will-download", DownloadItem(url, self), self, sender=self.session)

    # -- zoom -------------------------------------------------------------

    def set_zoom_factor(self, factor: float) -> Optional[asyncio.Task]:
        """
        Zoom the page by ``factor``.

        The cached factor is updated at once; the host applies it to the
        page's tab once attached.

        :raises ValueError: If ``factor`` is not positive.
        """
        if not factor > 0:
            raise ValueError(f"Zoom factor must be positive, got {factor!r}")
        self._zoom_factor = factor

        async def push(host: HostWindow) -> None:
            window = self.owner
            if self._tab_id is None or window is None or window.host_runtime is None:
                return
            await window.host_runtime.set_zoom(self._tab_id, factor)

        return self._defer(push)

    def get_zoom_factor(self) -> float:
        return self._zoom_factor

    def set_zoom_level(self, level: float) -> Optional[asyncio.Task]:
        return self.set_zoom_factor(zoom_level_to_factor(level))

    def get_zoom_level(self) -> float:
        return zoom_factor_to_level(self._zoom_factor)

    # -- dev tools --------------------------------------------------------

    def open_dev_tools(self, options: Optional[Dict[str, Any]] = None) -> Optional[asyncio.Task]:
        if options is not None:
            throw_unsupported("WebContents.open_dev_tools", "can't support the 'options' argument")
        return self._defer(lambda host: host.show_dev_tools())

    def close_dev_tools(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.close_dev_tools())

    def is_dev_tools_opened(self) -> bool:
        return self._dev_tools_open

    def toggle_dev_tools(self) -> Optional[asyncio.Task]:
        if self.is_dev_tools_opened():
            return self.close_dev_tools()
        return self.open_dev_tools()

    # -- messaging --------------------------------------------------------

    def on(self, channel: str, handler: Callable[..., Any]) -> "WebContents":
        """
        Make ``handler`` the receiver of ``channel``.

        A previous handler for the channel is replaced. Messages buffered
        while the channel had no receiver are replayed first, in the
        order they were sent.
        """
        self._handlers[channel] = handler
        for message in self._mailbox.drain(channel):
            call_listener(handler, *message)
        return self

    def remove_listener(self, channel: str) -> "WebContents":
        self._handlers.pop(channel, None)
        return self

    def send(self, channel: str, *args: Any) -> None:
        """
        Deliver ``args`` on ``channel``.

        The receiver is called as ``handler(event, *args)``; without a
        receiver the message is buffered until one registers.
        """
        message = (Event(channel, sender=self),) + args
        handler = self._handlers.get(channel)
        if handler is None:
            self._mailbox.post(channel, message)
            return
        call_listener(handler, *message)

    def pending_messages(self, channel: str) -> int:
        return self._mailbox.pending(channel)
