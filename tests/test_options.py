import pytest

from frameshim.control.options import WindowOptions


def test_defaults():
    options = WindowOptions.coerce(None)

    assert (options.width, options.height) == (800, 600)
    assert options.background_color == "#FFF"
    assert options.opacity == 1.0
    assert options.resizable is True
    assert options.has_shadow is True
    assert options.always_on_top is False
    assert options.kiosk is False
    assert options.web_preferences.dev_tools is True
    assert options.web_preferences.zoom_factor == 1.0
    assert options.initial_menu_bar_visible is True


def test_camel_and_snake_case_keys():
    camel = WindowOptions.coerce({"alwaysOnTop": True, "minWidth": 200, "webPreferences": {"devTools": False}})
    snake = WindowOptions.coerce({"always_on_top": True, "min_width": 200, "web_preferences": {"dev_tools": False}})

    assert camel == snake
    assert camel.always_on_top is True
    assert camel.min_width == 200
    assert camel.web_preferences.dev_tools is False


@pytest.mark.parametrize(
    "raw, field, expected",
    [
        ({"width": "wide"}, "width", 800),
        ({"height": -5}, "height", 600),
        ({"opacity": 1.5}, "opacity", 1.0),
        ({"title": 12}, "title", "frameshim"),
        ({"resizable": "maybe"}, "resizable", True),
    ],
)
def test_invalid_values_fall_back_to_defaults(raw, field, expected):
    options = WindowOptions.coerce(raw)

    assert getattr(options, field) == expected


def test_invalid_nested_value_keeps_valid_siblings():
    options = WindowOptions.coerce({"title": "Kept", "webPreferences": {"devTools": False, "zoomFactor": -1}})

    assert options.title == "Kept"
    assert options.web_preferences.dev_tools is False
    assert options.web_preferences.zoom_factor == 1.0


def test_unknown_keys_and_non_mappings_are_ignored():
    assert WindowOptions.coerce({"vibrancy": "sidebar"}) == WindowOptions()
    assert WindowOptions.coerce("not options") == WindowOptions()


def test_menu_bar_visibility_follows_auto_hide():
    assert WindowOptions.coerce({"autoHideMenuBar": True}).initial_menu_bar_visible is False
    assert WindowOptions.coerce({"autoHideMenuBar": True, "menuBarVisible": True}).initial_menu_bar_visible is True


def test_options_are_frozen():
    options = WindowOptions.coerce({})

    with pytest.raises(Exception):
        options.width = 10
