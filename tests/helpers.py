"""In-memory host runtime and helpers shared by the tests."""

import asyncio
import itertools
import struct
from typing import Any, List, Optional, Set, Tuple

from frameshim.errors import ApiError
from frameshim.host.models import HostWindowOptions, HostWindowState, ScreenInfo, ZoomChange
from frameshim.host.runtime import HostRuntime
from frameshim.host.window import HostWindow

#: Minimal PNG header for a 4x3 image.
FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + struct.pack(">II", 4, 3) + b"\x08\x06\x00\x00\x00"


class FakeHostWindow(HostWindow):
    """Records every request and raises the events a real host would."""

    def __init__(self, label: str, state: HostWindowState, options: HostWindowOptions):
        super().__init__(label, state)
        self.options = options
        self.calls: List[Tuple[str, dict]] = []
        self.fail_methods: Set[str] = set()

    async def _invoke(self, method: str, **params: Any) -> Any:
        self.calls.append((method, params))
        await asyncio.sleep(0)
        if method in self.fail_methods:
            raise ApiError(7, f"{method} refused")
        if method == "window.capturePage":
            return FAKE_PNG
        if method == "window.eval":
            return None
        if method == "window.close":
            self.dispatch("close")
            self.dispatch("closed")
        elif method == "window.showDevTools":
            self.dispatch("devtools-opened")
        elif method == "window.closeDevTools":
            self.dispatch("devtools-closed")
        elif method == "window.focus":
            self.dispatch("focus")
        elif method == "window.blur":
            self.dispatch("blur")
        return True

    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    def params_of(self, method: str) -> List[dict]:
        return [params for name, params in self.calls if name == method]


class FakeHostRuntime(HostRuntime):
    def __init__(self, screens: Optional[List[ScreenInfo]] = None):
        super().__init__()
        self.windows: List[FakeHostWindow] = []
        self.zoom_requests: List[Tuple[int, float]] = []
        self.open_gate: Optional[asyncio.Event] = None
        self._screens = screens if screens is not None else [ScreenInfo(width=1920, height=1080)]
        self._tab_ids = itertools.count(100)

    async def open_window(self, url: str, options: HostWindowOptions) -> HostWindow:
        if self.open_gate is not None:
            await self.open_gate.wait()
        state = HostWindowState(
            title=options.title,
            width=options.width,
            height=options.height,
            fullscreen=options.fullscreen,
            always_on_top=options.always_on_top,
            tab_id=next(self._tab_ids),
            url=url,
        )
        window = FakeHostWindow(options.id, state, options)
        self.windows.append(window)
        return window

    async def screens(self) -> List[ScreenInfo]:
        return list(self._screens)

    async def set_zoom(self, tab_id: int, factor: float) -> None:
        self.zoom_requests.append((tab_id, factor))
        self.dispatch_zoom_change(ZoomChange(tab_id=tab_id, new_zoom_factor=factor))


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


