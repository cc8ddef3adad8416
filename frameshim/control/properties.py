"""
Declarative description of the window properties mirrored by the facade.

Each :class:`MirroredProperty` names its getter/setter method pair and an
:class:`ApplyPolicy`; the owning class routes both methods and the Python
attribute through one generic accessor pair (``_get_mirrored`` /
``_set_mirrored``).
"""

import enum
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from ..host.models import HostWindowState
from ..host.window import HostWindow

HostApply = Callable[[Any, HostWindow, Any], Awaitable[Any]]
HostRead = Callable[[HostWindowState], Any]


class ApplyPolicy(enum.Enum):
    #: Update shadow state now, push to the host once attached.
    DEFERRED = "deferred"
    #: Update shadow state only; the host has no equivalent.
    LOCAL_ONLY = "local-only"
    #: Only the default is accepted; anything else is unsupported.
    REJECTED_UNLESS_DEFAULT = "rejected-unless-default"


class MirroredProperty:
    """
    Descriptor for one mirrored window property.

    :param policy: How writes are applied.
    :param getter: Name of the getter method, e.g. ``is_resizable``.
    :param setter: Name of the setter method, e.g. ``set_resizable``.
    :param default: Value reported by rejected properties.
    :param accepted: Values a rejected property still accepts; defaults
        to ``(default,)``.
    :param apply: Coroutine function ``(window, host, value)`` pushing a
        deferred value to the host window.
    :param read: Reads the live value from the host's reported state,
        used once the window is attached.

    When the owning class does not define the named getter or setter,
    a generic one is installed for it.
    """

    def __init__(
        self,
        policy: ApplyPolicy,
        getter: str,
        setter: str,
        default: Any = None,
        accepted: Optional[Sequence[Any]] = None,
        apply: Optional[HostApply] = None,
        read: Optional[HostRead] = None,
    ):
        if policy is ApplyPolicy.DEFERRED and apply is None:
            raise TypeError(f"Deferred property {setter} needs an apply function")
        self.policy = policy
        self.getter = getter
        self.setter = setter
        self.default = default
        self.accepted = tuple(accepted) if accepted is not None else (default,)
        self.apply = apply
        self.read = read
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        registry: Dict[str, MirroredProperty] = dict(getattr(owner, "_mirrored", {}))
        registry[name] = self
        owner._mirrored = registry

        if self.getter not in owner.__dict__:
            def getter(window: Any, _name: str = name) -> Any:
                return window._get_mirrored(_name)

            getter.__name__ = self.getter
            getter.__doc__ = f"Return the ``{name}`` property."
            setattr(owner, self.getter, getter)

        if self.setter not in owner.__dict__:
            def setter(window: Any, value: Any, _name: str = name) -> Any:
                return window._set_mirrored(_name, value)

            setter.__name__ = self.setter
            setter.__doc__ = f"Set the ``{name}`` property."
            setattr(owner, self.setter, setter)

    def __get__(self, window: Any, owner: Optional[type] = None) -> Any:
        if window is None:
            return self
        return getattr(window, self.getter)()

    def __set__(self, window: Any, value: Any) -> None:
        getattr(window, self.setter)(value)

    def accepts(self, value: Any) -> bool:
        return value in self.accepted
