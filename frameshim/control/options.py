import copy
import logging
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel, to_snake

logger = logging.getLogger(__name__)

#: Give up coercing after this many validation rounds.
MAX_COERCE_ROUNDS = 8


class OptionsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class WebPreferences(OptionsModel):
    dev_tools: bool = True
    zoom_factor: float = Field(1.0, gt=0)
    partition: Optional[str] = None


class WindowOptions(OptionsModel):
    """
    Constructor options of a window.

    Keys are accepted in camelCase (``alwaysOnTop``) or snake_case
    (``always_on_top``). Values that fail validation fall back to their
    defaults instead of being rejected, see :meth:`coerce`.
    """

    width: int = Field(800, gt=0)
    height: int = Field(600, gt=0)
    x: Optional[int] = None
    y: Optional[int] = None
    use_content_size: bool = False
    center: bool = False
    min_width: int = Field(0, ge=0)
    min_height: int = Field(0, ge=0)
    max_width: Optional[int] = Field(None, gt=0)
    max_height: Optional[int] = Field(None, gt=0)
    resizable: bool = True
    movable: bool = True
    minimizable: bool = True
    maximizable: bool = True
    closable: bool = True
    focusable: bool = True
    always_on_top: bool = False
    fullscreen: bool = False
    fullscreenable: bool = True
    simple_fullscreen: bool = False
    skip_taskbar: bool = False
    kiosk: bool = False
    title: str = "frameshim"
    icon: Optional[str] = None
    show: bool = True
    paint_when_initially_hidden: bool = True
    frame: bool = True
    modal: bool = False
    accept_first_mouse: bool = False
    disable_auto_hide_cursor: bool = False
    auto_hide_menu_bar: bool = False
    menu_bar_visible: Optional[bool] = None
    enable_larger_than_screen: bool = False
    background_color: str = "#FFF"
    has_shadow: bool = True
    opacity: float = Field(1.0, ge=0.0, le=1.0)
    dark_theme: bool = False
    transparent: bool = False
    visible_on_all_workspaces: bool = False
    document_edited: bool = False
    represented_filename: Optional[str] = None
    excluded_from_shown_windows_menu: bool = False
    accessible_title: Optional[str] = None
    rounded_corners: bool = True
    web_preferences: WebPreferences = Field(default_factory=WebPreferences)

    @property
    def initial_menu_bar_visible(self) -> bool:
        """The menu bar starts visible unless it auto-hides."""
        return bool(self.menu_bar_visible) or not self.auto_hide_menu_bar

    @classmethod
    def coerce(cls, options: Union[None, "WindowOptions", Mapping[str, Any]]) -> "WindowOptions":
        """
        Build options from a caller-supplied mapping.

        The mapping is deep-copied first, so later mutation by the caller
        has no effect. Every invalid value is dropped and replaced by its
        default; this never raises.
        """
        if isinstance(options, WindowOptions):
            return options
        if not isinstance(options, Mapping):
            return cls()

        data = _plain_copy(options)
        for _ in range(MAX_COERCE_ROUNDS):
            try:
                return cls.model_validate(data)
            except ValidationError as e:
                for error in e.errors():
                    logger.debug("Ignoring window option %s: %s", ".".join(map(str, error["loc"])), error["msg"])
                    _drop_path(data, error["loc"])
        return cls()


def _plain_copy(options: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        return copy.deepcopy(dict(options))
    except (TypeError, copy.Error):
        return {k: v for k, v in options.items() if isinstance(v, (str, int, float, bool, type(None)))}


def _drop_path(data: Any, loc: tuple) -> None:
    """Remove the value at ``loc`` whichever key spelling the caller used."""
    if not loc or not isinstance(data, dict):
        return
    head, rest = loc[0], loc[1:]
    for key in {head, to_camel(str(head)), to_snake(str(head))}:
        if key not in data:
            continue
        if rest and isinstance(data[key], dict):
            _drop_path(data[key], rest)
        else:
            del data[key]
