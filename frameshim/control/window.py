import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

from ..app import get_app
from ..core import start_tracked_task_soon
from ..errors import throw_unsupported
from ..events import Event, EventEmitter, translate_event_name
from ..host.models import HostWindowOptions
from ..host.runtime import HostRuntime
from ..host.window import HostWindow
from ..native_image import NativeImage
from ..registry import get_registry, next_window_id
from ..session import Session
from ..utils import to_file_url
from .options import WindowOptions
from .properties import ApplyPolicy, MirroredProperty
from .web_contents import WebContents

logger = logging.getLogger(__name__)

#: Tags the page so content-side code can find its window id.
WINDOW_TAG_SCRIPT = "window.__frameshim_window_id = {window_id};"

#: The host has no window alpha; opacity is a CSS style on the page root.
OPACITY_SCRIPT = "document.documentElement.style.opacity = '{opacity}';"

#: Events raised by the facade itself rather than by the host window.
LOCAL_EVENTS = frozenset({"attached"})

#: Marks a window that shows the application menu.
_APPLICATION_MENU = object()

Size = Tuple[Optional[int], Optional[int]]


def _apply_fullscreen(window: "BrowserWindow", host: HostWindow, flag: bool) -> Awaitable[None]:
    return host.enter_fullscreen() if flag else host.leave_fullscreen()


def _apply_kiosk(window: "BrowserWindow", host: HostWindow, flag: bool) -> Awaitable[None]:
    return host.enter_kiosk_mode() if flag else host.leave_kiosk_mode()


def _apply_opacity(window: "BrowserWindow", host: HostWindow, opacity: float) -> Awaitable[Any]:
    return host.eval_script(OPACITY_SCRIPT.format(opacity=float(opacity)))


def _rejected(getter: str, setter: str, default: Any, accepted: Optional[tuple] = None) -> MirroredProperty:
    return MirroredProperty(ApplyPolicy.REJECTED_UNLESS_DEFAULT, getter, setter, default=default, accepted=accepted)


class _Binding(NamedTuple):
    event: str
    host_event: str
    handler: Callable[..., Any]
    bridge: Callable[..., Any]


class BrowserWindow:
    """
    Facade for a window of the emulated API.

    Construction is synchronous and total: the window gets an id and a
    registry entry at once, while the host window only comes into
    existence when content is first loaded. Until then property writes
    land in shadow state and every host operation waits for the attach
    future (see :meth:`wait_attached`).

    Host-touching operations return the :class:`asyncio.Task` performing
    them, or ``None`` when called without a running event loop; in that
    case the shadow state still reaches the host when the window is
    created.
    """

    # Deferred: shadow state now, host once attached.
    title = MirroredProperty(
        ApplyPolicy.DEFERRED, "get_title", "set_title",
        apply=lambda window, host, value: host.set_title(value),
        read=lambda state: state.title,
    )
    resizable = MirroredProperty(
        ApplyPolicy.DEFERRED, "is_resizable", "set_resizable",
        apply=lambda window, host, value: host.set_resizable(value),
    )
    always_on_top = MirroredProperty(
        ApplyPolicy.DEFERRED, "is_always_on_top", "set_always_on_top",
        apply=lambda window, host, value: host.set_always_on_top(value),
        read=lambda state: state.always_on_top,
    )
    fullscreen = MirroredProperty(
        ApplyPolicy.DEFERRED, "is_full_screen", "set_full_screen",
        apply=_apply_fullscreen,
        read=lambda state: state.fullscreen,
    )
    kiosk = MirroredProperty(ApplyPolicy.DEFERRED, "is_kiosk", "set_kiosk", apply=_apply_kiosk)
    shadow = MirroredProperty(
        ApplyPolicy.DEFERRED, "has_shadow", "set_has_shadow",
        apply=lambda window, host, value: host.set_shadow(value),
    )
    opacity = MirroredProperty(ApplyPolicy.DEFERRED, "get_opacity", "set_opacity", apply=_apply_opacity)
    visible_on_all_workspaces = MirroredProperty(
        ApplyPolicy.DEFERRED, "is_visible_on_all_workspaces", "set_visible_on_all_workspaces",
        apply=lambda window, host, value: host.set_visible_on_all_workspaces(value),
    )

    # Local only: the facade composes the menu bar itself.
    menu_bar_visible = MirroredProperty(ApplyPolicy.LOCAL_ONLY, "is_menu_bar_visible", "set_menu_bar_visibility")
    auto_hide_menu_bar = MirroredProperty(ApplyPolicy.LOCAL_ONLY, "is_menu_bar_auto_hide", "set_auto_hide_menu_bar")
    background_color = MirroredProperty(ApplyPolicy.LOCAL_ONLY, "get_background_color", "set_background_color")

    # Not expressible by the host: only the default is accepted.
    movable = _rejected("is_movable", "set_movable", True)
    minimizable = _rejected("is_minimizable", "set_minimizable", True)
    maximizable = _rejected("is_maximizable", "set_maximizable", True)
    fullscreenable = _rejected("is_full_screenable", "set_full_screenable", True)
    closable = _rejected("is_closable", "set_closable", True)
    focusable = _rejected("is_focusable", "set_focusable", True)
    enabled = _rejected("is_enabled", "set_enabled", True)
    document_edited = _rejected("is_document_edited", "set_document_edited", False)
    simple_fullscreen = _rejected("is_simple_full_screen", "set_simple_full_screen", False)
    excluded_from_shown_windows_menu = _rejected(
        "is_excluded_from_shown_windows_menu", "set_excluded_from_shown_windows_menu", False
    )
    represented_filename = _rejected("get_represented_filename", "set_represented_filename", "", ("", None))
    accessible_title = _rejected("get_accessible_title", "set_accessible_title", "", ("", None))

    _mirrored: Dict[str, MirroredProperty]

    def __init__(self, options: Union[None, WindowOptions, Mapping[str, Any]] = None):
        self._options = WindowOptions.coerce(options)
        opts = self._options

        self._id = next_window_id()
        self._shadow: Dict[str, Any] = {
            "title": opts.title,
            "resizable": opts.resizable,
            "always_on_top": opts.always_on_top,
            "fullscreen": opts.fullscreen,
            "kiosk": opts.kiosk,
            "shadow": opts.has_shadow,
            "opacity": opts.opacity,
            "visible_on_all_workspaces": opts.visible_on_all_workspaces,
            "menu_bar_visible": opts.initial_menu_bar_visible,
            "auto_hide_menu_bar": opts.auto_hide_menu_bar,
            "background_color": opts.background_color,
        }
        self._width, self._height = opts.width, opts.height
        self._x, self._y = opts.x, opts.y
        self._min_size: Size = (opts.min_width, opts.min_height)
        self._max_size: Size = (opts.max_width, opts.max_height)
        self._skip_taskbar = opts.skip_taskbar
        self._visible = opts.show
        self._focused = False
        self._menu: Any = _APPLICATION_MENU
        self._closed = False

        self._host: Optional[HostWindow] = None
        self._host_runtime: Optional[HostRuntime] = None
        self._opening = False
        self._attached = asyncio.Event()
        self._bindings: List[_Binding] = []
        self._local = EventEmitter()

        partition = opts.web_preferences.partition
        self.web_contents = WebContents(
            self,
            zoom_factor=opts.web_preferences.zoom_factor,
            session=Session.from_partition(partition) if partition is not None else None,
        )

        self._registry = get_registry()
        self._registry.add(self)
        self.on("closed", self._handle_closed)

    def __repr__(self) -> str:
        return f"<BrowserWindow id={self._id} attached={self.is_attached()}>"

    # -- directory --------------------------------------------------------

    @staticmethod
    def get_all_windows() -> List["BrowserWindow"]:
        return get_registry().all()

    @staticmethod
    def get_focused_window() -> Optional["BrowserWindow"]:
        return next((w for w in BrowserWindow.get_all_windows() if w.is_focused()), None)

    @staticmethod
    def from_id(window_id: int) -> Optional["BrowserWindow"]:
        return get_registry().get(window_id)

    @staticmethod
    def from_web_contents(contents: WebContents) -> Optional["BrowserWindow"]:
        owner = contents.owner
        return BrowserWindow.from_id(owner.id) if owner is not None else None

    # -- identity ---------------------------------------------------------

    @property
    def id(self) -> int:
        return self._id

    @property
    def options(self) -> WindowOptions:
        """Frozen snapshot of the constructor options."""
        return self._options

    @property
    def host_window(self) -> Optional[HostWindow]:
        return self._host

    @property
    def host_runtime(self) -> Optional[HostRuntime]:
        return self._host_runtime

    # -- deferred attach --------------------------------------------------

    def is_attached(self) -> bool:
        return self._attached.is_set()

    async def wait_attached(self) -> HostWindow:
        """
        Wait until the host window exists and is initialized.

        There is no timeout; wrap the call in :func:`asyncio.wait_for` to
        bound the wait.
        """
        await self._attached.wait()
        return self._host

    def _defer(self, operation: Callable[[HostWindow], Awaitable[Any]]) -> Optional[asyncio.Task]:
        async def run() -> Any:
            host = await self.wait_attached()
            return await operation(host)

        task = start_tracked_task_soon(run())
        if task is None:
            logger.debug("No running loop; host call for window %s dropped", self._id)
        return task

    def _creation_options(self) -> HostWindowOptions:
        opts = self._options
        return HostWindowOptions(
            id=str(self._id),
            title=self._shadow["title"],
            width=self._width,
            height=self._height,
            icon=opts.icon,
            position="center" if opts.center else None,
            min_width=self._min_size[0],
            min_height=self._min_size[1],
            max_width=self._max_size[0],
            max_height=self._max_size[1],
            resizable=self._shadow["resizable"],
            always_on_top=self._shadow["always_on_top"],
            visible_on_all_workspaces=self._shadow["visible_on_all_workspaces"],
            fullscreen=self._shadow["fullscreen"],
            show_in_taskbar=not self._skip_taskbar,
            frame=opts.frame,
            show=self._visible,
            kiosk=self._shadow["kiosk"],
            transparent=opts.transparent,
        )

    async def _load(self, url: str) -> None:
        if self._opening:
            host = await self.wait_attached()
            await host.navigate(url)
            return

        runtime = get_app().require_host_runtime()
        self._opening = True
        try:
            host = await runtime.open_window(url, self._creation_options())
        except BaseException:
            self._opening = False
            raise
        await self._attach(host, runtime)

    async def _attach(self, host: HostWindow, runtime: HostRuntime) -> None:
        self._host = host
        self._host_runtime = runtime
        logger.debug("Window %s attached to host window %r", self._id, host.label)

        for binding in self._bindings:
            host.on(binding.host_event, binding.bridge)
        host.on("focus", self._on_host_focus)
        host.on("blur", self._on_host_blur)
        host.on("devtools-opened", self._on_host_dev_tools_opened)
        host.on("devtools-closed", self._on_host_dev_tools_closed)
        self._focused = self._visible

        try:
            await host.eval_script(WINDOW_TAG_SCRIPT.format(window_id=self._id))
            await host.set_menu(self._menu_for_host())
            await _apply_opacity(self, host, self._shadow["opacity"])
            if not self._shadow["shadow"]:
                await host.set_shadow(False)
            if self._options.center:
                await self._center_on(host, runtime)
            elif self._x is not None and self._y is not None:
                await host.move_to(self._x, self._y)
            await self.web_contents._attach(host, runtime)
        finally:
            self._attached.set()
            self._local.emit("attached", host, sender=self)

    # -- host event bookkeeping -------------------------------------------

    def _on_host_focus(self, *args: Any) -> None:
        self._focused = True

    def _on_host_blur(self, *args: Any) -> None:
        self._focused = False

    def _on_host_dev_tools_opened(self, *args: Any) -> None:
        if not self._options.web_preferences.dev_tools:
            logger.debug("Dev tools disabled for window %s; closing them", self._id)
            start_tracked_task_soon(self._host.close_dev_tools())
            return
        self.web_contents._dev_tools_open = True

    def _on_host_dev_tools_closed(self, *args: Any) -> None:
        self.web_contents._dev_tools_open = False

    def _handle_closed(self, event: Event, *args: Any) -> None:
        self._closed = True
        self.web_contents._detach()
        if self._registry.remove(self._id):
            get_app().emit("window-all-closed")

    # -- events -----------------------------------------------------------

    def on(self, event: str, handler: Callable[..., Any]) -> "BrowserWindow":
        """
        Subscribe ``handler`` to ``event``.

        The handler is called as ``handler(Event(event), *host_args)``
        whenever the host raises the translated event. Events the host
        never raises are accepted and never fire.
        """
        if event in LOCAL_EVENTS:
            self._local.on(event, handler)
            return self

        def bridge(*args: Any) -> Any:
            return handler(Event(event, sender=self), *args)

        binding = _Binding(event, translate_event_name(event), handler, bridge)
        self._bindings.append(binding)
        if self._host is not None:
            self._host.on(binding.host_event, bridge)
        return self

    def once(self, event: str, handler: Callable[..., Any]) -> "BrowserWindow":
        def wrapper(*args: Any) -> Any:
            self.remove_listener(event, wrapper)
            return handler(*args)

        return self.on(event, wrapper)

    def remove_listener(self, event: str, handler: Callable[..., Any]) -> "BrowserWindow":
        if event in LOCAL_EVENTS:
            self._local.remove_listener(event, handler)
            return self
        for binding in [b for b in self._bindings if b.event == event and b.handler is handler]:
            self._bindings.remove(binding)
            if self._host is not None:
                self._host.off(binding.host_event, binding.bridge)
        return self

    # -- mirrored properties ----------------------------------------------

    def _get_mirrored(self, name: str) -> Any:
        prop = self._mirrored[name]
        if prop.policy is ApplyPolicy.REJECTED_UNLESS_DEFAULT:
            return prop.default
        if self._host is not None and prop.read is not None:
            return prop.read(self._host.state)
        return self._shadow[name]

    def _set_mirrored(self, name: str, value: Any) -> Optional[asyncio.Task]:
        prop = self._mirrored[name]
        if prop.policy is ApplyPolicy.REJECTED_UNLESS_DEFAULT:
            if not prop.accepts(value):
                throw_unsupported(f"BrowserWindow.{prop.setter}", f"can't accept the value {value!r}")
            return None
        self._shadow[name] = value
        if prop.policy is ApplyPolicy.LOCAL_ONLY:
            return None
        return self._defer(lambda host: prop.apply(self, host, value))

    def set_auto_hide_menu_bar(self, hide: bool) -> None:
        """Auto-hiding hides the menu bar until :meth:`toggle_menu_bar` shows it."""
        self._shadow["auto_hide_menu_bar"] = bool(hide)
        self._shadow["menu_bar_visible"] = not hide

    # -- menu -------------------------------------------------------------

    def _effective_menu(self) -> Any:
        if self._menu is _APPLICATION_MENU:
            return get_app().get_application_menu()
        return self._menu

    def _menu_for_host(self) -> Any:
        return self._effective_menu() if self._shadow["menu_bar_visible"] else None

    def set_menu(self, menu: Any) -> Optional[asyncio.Task]:
        self._menu = menu
        return self._defer(lambda host: host.set_menu(self._menu_for_host()))

    def remove_menu(self) -> Optional[asyncio.Task]:
        return self.set_menu(None)

    def toggle_menu_bar(self) -> Optional[asyncio.Task]:
        """
        Show or hide an auto-hiding menu bar.

        Does nothing unless ``auto_hide_menu_bar`` is enabled.
        """
        if not self._shadow["auto_hide_menu_bar"]:
            return None
        visible = not self._shadow["menu_bar_visible"]
        self._shadow["menu_bar_visible"] = visible
        menu = self._effective_menu() if visible else None
        return self._defer(lambda host: host.set_menu(menu))

    # -- geometry ---------------------------------------------------------

    def set_size(self, width: int, height: int, animate: bool = False) -> Optional[asyncio.Task]:
        if animate:
            throw_unsupported("BrowserWindow.set_size", "can't support the 'animate' argument")
        self._width, self._height = width, height
        return self._defer(lambda host: host.resize_to(width, height))

    def get_size(self) -> Tuple[int, int]:
        state = self._host.state if self._host is not None else None
        width = state.width if state and state.width else self._width
        height = state.height if state and state.height else self._height
        return (width, height)

    def set_content_size(self, width: int, height: int, animate: bool = False) -> None:
        throw_unsupported("BrowserWindow.set_content_size", "isn't implemented")

    def get_content_size(self) -> Size:
        if self._host is None:
            return (None, None)
        return (self._host.state.content_width, self._host.state.content_height)

    def set_minimum_size(self, width: int, height: int) -> Optional[asyncio.Task]:
        self._min_size = (width, height)
        return self._defer(lambda host: host.set_minimum_size(width, height))

    def get_minimum_size(self) -> Size:
        return self._min_size

    def set_maximum_size(self, width: int, height: int) -> Optional[asyncio.Task]:
        self._max_size = (width, height)
        return self._defer(lambda host: host.set_maximum_size(width, height))

    def get_maximum_size(self) -> Size:
        return self._max_size

    def set_position(self, x: int, y: int, animate: bool = False) -> Optional[asyncio.Task]:
        if animate:
            throw_unsupported("BrowserWindow.set_position", "can't support the 'animate' argument")
        self._x, self._y = x, y
        return self._defer(lambda host: host.move_to(x, y))

    def get_position(self) -> Size:
        state = self._host.state if self._host is not None else None
        x = state.x if state and state.x is not None else self._x
        y = state.y if state and state.y is not None else self._y
        return (x, y)

    async def _center_on(self, host: HostWindow, runtime: HostRuntime) -> None:
        screens = await runtime.screens()
        if len(screens) != 1:
            await host.set_position("center")
            return
        # Keyword positioning is unreliable on a single screen; compute it.
        screen = screens[0]
        width, height = self.get_size()
        self._x = screen.x + (screen.width - width) // 2
        self._y = screen.y + (screen.height - height) // 2
        await host.move_to(self._x, self._y)

    def center(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: self._center_on(host, self._host_runtime))

    # -- window state -----------------------------------------------------

    def show(self) -> Optional[asyncio.Task]:
        self._visible = True
        return self._defer(lambda host: host.show())

    def hide(self) -> Optional[asyncio.Task]:
        self._visible = False
        return self._defer(lambda host: host.hide())

    def is_visible(self) -> bool:
        return self._visible

    def focus(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.focus())

    def blur(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.blur())

    def is_focused(self) -> bool:
        return self._focused

    def maximize(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.maximize())

    def unmaximize(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.unmaximize())

    def minimize(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.minimize())

    def restore(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.restore())

    def close(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.close())

    def destroy(self) -> Optional[asyncio.Task]:
        """Close the window without giving ``close`` listeners a veto."""
        return self._defer(lambda host: host.close(force=True))

    def is_destroyed(self) -> bool:
        return self._closed

    def flash_frame(self, flag: bool) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.request_attention(flag))

    def set_skip_taskbar(self, skip: bool) -> Optional[asyncio.Task]:
        self._skip_taskbar = skip
        return self._defer(lambda host: host.set_show_in_taskbar(not skip))

    # -- content ----------------------------------------------------------

    def load_url(self, url: str, options: Optional[Dict[str, Any]] = None) -> Awaitable[None]:
        """
        Load ``url``; the first load creates the host window.

        :return: Awaitable resolving once the window is attached and
            initialized (first load) or navigated (later loads).
        """
        if options is not None:
            throw_unsupported("BrowserWindow.load_url", "can't support the 'options' argument")
        return self._load(url)

    def load_file(self, file_path: str, options: Optional[Dict[str, Any]] = None) -> Awaitable[None]:
        if options is not None:
            throw_unsupported("BrowserWindow.load_file", "can't support the 'options' argument")
        return self._load(to_file_url(file_path))

    def reload(self) -> Optional[asyncio.Task]:
        return self._defer(lambda host: host.reload())

    def capture_page(self, rect: Any = None) -> Awaitable[NativeImage]:
        """Capture the whole window; capturing a region is unsupported."""
        if rect is not None:
            throw_unsupported("BrowserWindow.capture_page", "can't support the 'rect' argument")
        return self._capture()

    async def _capture(self) -> NativeImage:
        host = await self.wait_attached()
        return NativeImage.create_from_buffer(await host.capture_page("png"))
