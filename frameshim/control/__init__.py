from .options import WebPreferences, WindowOptions
from .web_contents import WebContents
from .window import BrowserWindow

__all__ = ["BrowserWindow", "WebContents", "WebPreferences", "WindowOptions"]
