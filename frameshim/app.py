import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from .errors import FrameshimError
from .events import EventEmitter

if TYPE_CHECKING:
    from .host.runtime import HostRuntime

logger = logging.getLogger(__name__)


class Application(EventEmitter):
    """
    Process-wide application object.

    Emits ``ready``, ``window-all-closed``, ``before-quit`` and
    ``quit``, holds the application menu and the host runtime every
    window is created on.
    """

    def __init__(self):
        super().__init__()
        self._menu: Any = None
        self._host_runtime: Optional["HostRuntime"] = None
        self._ready: Optional[asyncio.Event] = None
        self._quit: Optional[asyncio.Event] = None

    def _ready_event(self) -> asyncio.Event:
        if self._ready is None:
            self._ready = asyncio.Event()
        return self._ready

    def _quit_event(self) -> asyncio.Event:
        if self._quit is None:
            self._quit = asyncio.Event()
        return self._quit

    def set_application_menu(self, menu: Any) -> None:
        self._menu = menu

    def get_application_menu(self) -> Any:
        return self._menu

    def set_host_runtime(self, runtime: Optional["HostRuntime"]) -> None:
        self._host_runtime = runtime

    @property
    def host_runtime(self) -> Optional["HostRuntime"]:
        return self._host_runtime

    def require_host_runtime(self) -> "HostRuntime":
        """
        Return the bound host runtime.

        :raises FrameshimError: If no runtime was bound.
        """
        if self._host_runtime is None:
            raise FrameshimError("No host runtime bound; call launch() or app.set_host_runtime() first")
        return self._host_runtime

    def mark_ready(self) -> None:
        if self.is_ready():
            return
        self._ready_event().set()
        self.emit("ready")

    def is_ready(self) -> bool:
        return self._ready is not None and self._ready.is_set()

    async def when_ready(self) -> None:
        await self._ready_event().wait()

    def quit(self) -> None:
        """Request application shutdown; :meth:`wait_for_quit` returns afterwards."""
        if self._quit is not None and self._quit.is_set():
            return
        logger.info("Application quit requested")
        self.emit("before-quit")
        self._quit_event().set()
        self.emit("quit")

    async def wait_for_quit(self) -> None:
        await self._quit_event().wait()


_app: Optional[Application] = None


def get_app() -> Application:
    """Return the process application object, creating it on first use."""
    global _app
    if _app is None:
        _app = Application()
    return _app


def set_app(application: Optional[Application]) -> None:
    """Install ``application`` as the process application (``None`` resets it)."""
    global _app
    _app = application
