from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HostModel(BaseModel):
    """Base for payloads exchanged with the host; camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HostWindowOptions(HostModel):
    """Window creation request understood by the host runtime."""

    id: str
    title: str
    width: int
    height: int
    icon: Optional[str] = None
    position: Optional[str] = None
    min_width: int = 0
    min_height: int = 0
    max_width: Optional[int] = None
    max_height: Optional[int] = None
    resizable: bool = True
    always_on_top: bool = False
    visible_on_all_workspaces: bool = False
    fullscreen: bool = False
    show_in_taskbar: bool = True
    frame: bool = True
    show: bool = True
    kiosk: bool = False
    transparent: bool = False


class HostWindowState(HostModel):
    """Window state as last reported by the host."""

    title: str = ""
    x: Optional[int] = None
    y: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    content_width: Optional[int] = None
    content_height: Optional[int] = None
    fullscreen: bool = False
    always_on_top: bool = False
    tab_id: Optional[int] = None
    url: str = ""
    tab_title: str = ""
    loading: bool = False
    closed: bool = False


class ScreenInfo(HostModel):
    x: int = 0
    y: int = 0
    width: int
    height: int


class ZoomChange(HostModel):
    tab_id: int
    new_zoom_factor: float = Field(gt=0)
    old_zoom_factor: float = Field(1.0, gt=0)


class HostEventModel(BaseModel):
    """Event pushed by the host runtime over the event websocket."""

    event: str
    label: Optional[str] = None
    args: List[Any] = Field(default_factory=list)
