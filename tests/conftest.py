"""Shared pytest fixtures."""

import pytest

from frameshim.app import Application, set_app
from frameshim.registry import WindowRegistry, set_registry
from helpers import FakeHostRuntime


@pytest.fixture(autouse=True)
def registry():
    registry = WindowRegistry()
    set_registry(registry)
    yield registry
    set_registry(None)


@pytest.fixture
def fake_runtime() -> FakeHostRuntime:
    return FakeHostRuntime()


@pytest.fixture(autouse=True)
def app(fake_runtime):
    application = Application()
    application.set_host_runtime(fake_runtime)
    set_app(application)
    yield application
    set_app(None)
