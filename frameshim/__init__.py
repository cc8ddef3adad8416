"""
Public API entry point for the package.

Exports the main building blocks:
  * :class:`BrowserWindow` / :class:`WebContents` → window and content facades
  * :func:`get_app` → process-wide application object
  * :func:`launch` → connect to the host runtime and serve
  * :class:`UnsupportedFeatureError` → raised for features the host lacks
"""

from .app import get_app
from .control.web_contents import WebContents
from .control.window import BrowserWindow
from .errors import (
    ApiError,
    ConfigurationError,
    FrameshimError,
    HostCommunicationFailure,
    UnsupportedFeatureError,
)
from .native_image import NativeImage
from .runtime import launch
from .session import Session

__all__ = [
    "ApiError",
    "BrowserWindow",
    "ConfigurationError",
    "FrameshimError",
    "HostCommunicationFailure",
    "NativeImage",
    "Session",
    "UnsupportedFeatureError",
    "WebContents",
    "get_app",
    "launch",
]
