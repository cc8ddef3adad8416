from typing import NoReturn


class FrameshimError(Exception):
    """Base class for every error raised by the package."""


class UnsupportedFeatureError(FrameshimError):
    """
    Raised when a feature of the emulated API cannot be expressed by the
    host runtime.

    The error is raised synchronously, before any host interaction, so a
    rejected request is never partially applied.

    :param feature: Qualified operation name, e.g. ``BrowserWindow.set_movable``.
    :param reason: What about the call cannot be emulated.
    """

    def __init__(self, feature: str, reason: str):
        super().__init__(f"{feature} {reason}")
        self.feature = feature
        self.reason = reason


class HostCommunicationFailure(FrameshimError):
    """Raised when a call forwarded to the host runtime fails."""


class ApiError(HostCommunicationFailure):
    """Raised for errors reported by the host runtime itself."""

    def __init__(self, code: int, msg: str):
        super().__init__(f"[API-{code}] {msg}")
        self.code = code
        self.msg = msg


class ConfigurationError(FrameshimError, ValueError):
    """Raised for malformed runtime configuration."""


def throw_unsupported(feature: str, reason: str) -> NoReturn:
    """
    Signal that ``feature`` cannot be emulated.

    :param feature: Qualified operation name.
    :param reason: Description of the offending argument or value.
    :raises UnsupportedFeatureError: Always.
    """
    raise UnsupportedFeatureError(feature, reason)
