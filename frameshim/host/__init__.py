"""
Host runtime side of the bridge.

  * :class:`HostRuntime` / :class:`HostWindow` → interface the facades drive
  * :class:`RemoteHostRuntime` → implementation speaking to a host process
"""

from .models import HostEventModel, HostWindowOptions, HostWindowState, ScreenInfo, ZoomChange
from .remote import RemoteHostRuntime, RemoteHostWindow
from .runtime import HostRuntime
from .window import HostWindow

__all__ = [
    "HostEventModel",
    "HostRuntime",
    "HostWindow",
    "HostWindowOptions",
    "HostWindowState",
    "RemoteHostRuntime",
    "RemoteHostWindow",
    "ScreenInfo",
    "ZoomChange",
]
