"""
Event vocabulary shared by the facades.

Holds the static translation table between the emulated API's window
event names and the host runtime's names, the :class:`Event` envelope
passed as first argument to every facade listener, and a small
:class:`EventEmitter` for objects that raise events locally.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from .core import has_running_loop, start_tracked_task

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]

#: Emulated event name -> host event name. Unlisted names pass through.
EVENT_NAME_MAP: Mapping[str, str] = MappingProxyType({
    "close": "close",
    "closed": "closed",
    "blur": "blur",
    "focus": "focus",
    "maximize": "maximize",
    "minimize": "minimize",
    "restore": "restore",
    "resized": "resize",
    "moved": "move",
    "enter-full-screen": "enter-fullscreen",
    "leave-full-screen": "leave-fullscreen",
})


def translate_event_name(name: str) -> str:
    """
    Map an emulated event name to the host runtime's name.

    Names without an entry are returned unchanged, including names the
    host never raises; listeners for those simply never fire.
    """
    return EVENT_NAME_MAP.get(name, name)


async def _run_listener(listener: Listener, coro: Any) -> Any:
    try:
        return await coro
    except Exception:
        logger.exception("Listener %r failed", listener)
        return None


def call_listener(listener: Listener, *args: Any) -> Any:
    """
    Invoke a listener that may be a plain function or a coroutine function.

    Coroutine results run as tracked tasks; nobody awaits those, so
    their failures are logged.
    """
    result = listener(*args)
    if asyncio.iscoroutine(result):
        if not has_running_loop():
            result.close()
            return None
        return start_tracked_task(_run_listener(listener, result))
    return result


class Event:
    """Envelope describing a single event delivery."""

    def __init__(self, type: str, sender: Any = None):
        self.type = type
        self.sender = sender
        self.default_prevented = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def __repr__(self) -> str:
        return f"Event({self.type!r})"


class EventEmitter:
    """Minimal multi-listener emitter."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, listener: Listener) -> "EventEmitter":
        self._listeners.setdefault(event, []).append(listener)
        return self

    def once(self, event: str, listener: Listener) -> "EventEmitter":
        def wrapper(*args: Any) -> Any:
            self.remove_listener(event, wrapper)
            return listener(*args)

        return self.on(event, wrapper)

    def remove_listener(self, event: str, listener: Listener) -> "EventEmitter":
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)
        return self

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any, sender: Optional[Any] = None) -> bool:
        """
        Call every listener of ``event`` with an :class:`Event` envelope
        followed by ``args``.

        :return: ``True`` if at least one listener was called.
        """
        listeners = list(self._listeners.get(event, []))
        envelope = Event(event, sender=self if sender is None else sender)
        for listener in listeners:
            call_listener(listener, envelope, *args)
        return bool(listeners)
