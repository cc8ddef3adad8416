from frameshim import BrowserWindow
from frameshim.registry import WindowRegistry, get_registry, next_window_id, set_registry


def test_window_ids_increase():
    first = next_window_id()
    second = next_window_id()

    assert second > first


def test_remove_reports_transition_to_empty():
    registry = WindowRegistry()
    set_registry(registry)
    first, second = BrowserWindow(), BrowserWindow()

    assert registry.remove(first.id) is False
    assert registry.remove(first.id) is False
    assert registry.remove(second.id) is True
    assert registry.remove(second.id) is False
    assert len(registry) == 0


def test_registry_is_created_on_first_use():
    set_registry(None)

    registry = get_registry()

    assert isinstance(registry, WindowRegistry)
    assert get_registry() is registry


def test_windows_register_with_the_installed_registry(registry):
    win = BrowserWindow()

    assert win.id in registry
    assert registry.get(win.id) is win
    assert registry.all() == [win]


def test_ids_are_not_reused_after_removal(registry):
    win = BrowserWindow()
    registry.remove(win.id)

    assert BrowserWindow().id != win.id
