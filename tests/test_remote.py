import json

import pytest
from pydantic import BaseModel

from frameshim.connections import handle_host_connection, parse_host_event
from frameshim.host.models import HostEventModel, HostWindowOptions
from frameshim.host.remote import RemoteHostRuntime
from helpers import settle


class StubChannel:
    """Answers requests locally, the way a host would on success."""

    def __init__(self):
        self.requests = []

    async def request(self, method, args=None, result_type=None, timeout=None):
        self.requests.append((method, args))
        result = {"tabId": 3, "title": "Stub"} if method == "window.open" else None
        if isinstance(result_type, type) and issubclass(result_type, BaseModel):
            return result_type.model_validate(result)
        if result_type is not None:
            return result_type(result)
        return result


async def open_remote(runtime, label="1"):
    return await runtime.open_window("about:blank", HostWindowOptions(id=label, title="Stub", width=10, height=10))


def test_parse_plain_event():
    event = parse_host_event('{"event": "resize", "label": "1", "args": [640, 480]}')

    assert event == HostEventModel(event="resize", label="1", args=[640, 480])


def test_parse_double_encoded_event():
    inner = json.dumps({"event": "focus", "label": "2"})

    event = parse_host_event(json.dumps(inner))

    assert event.event == "focus"
    assert event.label == "2"
    assert event.args == []


def test_parse_bytes_event():
    assert parse_host_event(b'{"event": "blur"}').event == "blur"


@pytest.mark.parametrize("message", ["not json", "[1, 2]", '{"label": "1"}'])
def test_malformed_events_are_dropped(message, caplog):
    assert parse_host_event(message) is None
    assert "Malformed host event" in caplog.text


@pytest.mark.asyncio
async def test_events_are_routed_by_label():
    runtime = RemoteHostRuntime(StubChannel())
    first = await open_remote(runtime, "1")
    second = await open_remote(runtime, "2")
    received = []
    first.on("resize", lambda w, h: received.append(("1", w, h)))
    second.on("resize", lambda w, h: received.append(("2", w, h)))

    runtime.dispatch_event(HostEventModel(event="resize", label="2", args=[300, 200]))

    assert received == [("2", 300, 200)]
    assert (second.state.width, second.state.height) == (300, 200)
    assert first.state.width is None


@pytest.mark.asyncio
async def test_unknown_labels_are_logged(caplog):
    runtime = RemoteHostRuntime(StubChannel())

    runtime.dispatch_event(HostEventModel(event="focus", label="missing"))

    assert "unknown window" in caplog.text


@pytest.mark.asyncio
async def test_closed_window_is_forgotten():
    runtime = RemoteHostRuntime(StubChannel())
    window = await open_remote(runtime, "5")

    runtime.dispatch_event(HostEventModel(event="closed", label="5"))

    assert window.state.closed is True
    assert runtime.window("5") is None


@pytest.mark.asyncio
async def test_zoom_events_reach_subscribers():
    runtime = RemoteHostRuntime(StubChannel())
    changes = []
    unsubscribe = runtime.on_zoom_change(changes.append)

    runtime.dispatch_event(
        HostEventModel(event="zoom-changed", args=[{"tabId": 3, "newZoomFactor": 1.5, "oldZoomFactor": 1.0}])
    )
    unsubscribe()
    runtime.dispatch_event(HostEventModel(event="zoom-changed", args=[{"tabId": 3, "newZoomFactor": 2.0}]))
    await settle()

    assert [(c.tab_id, c.new_zoom_factor) for c in changes] == [(3, 1.5)]


@pytest.mark.asyncio
async def test_malformed_zoom_event_is_ignored(caplog):
    runtime = RemoteHostRuntime(StubChannel())
    changes = []
    runtime.on_zoom_change(changes.append)

    runtime.dispatch_event(HostEventModel(event="zoom-changed", args=[{"tabId": 3, "newZoomFactor": 0}]))

    assert changes == []
    assert "malformed zoom event" in caplog.text


@pytest.mark.asyncio
async def test_window_requests_carry_the_label():
    channel = StubChannel()
    runtime = RemoteHostRuntime(channel)
    window = await open_remote(runtime, "8")

    await window.set_resizable(False)
    await window.move_to(10, 20)

    assert channel.requests[1] == ("window.setResizable", {"label": "8", "resizable": False})
    assert channel.requests[2] == ("window.moveTo", {"label": "8", "x": 10, "y": 20})
    assert (window.state.x, window.state.y) == (10, 20)


def test_non_utf8_bytes_event_is_dropped(caplog):
    assert parse_host_event(b'{"event": "\xff"}') is None
    assert "Malformed host event" in caplog.text


class FakeSocket:
    """Yields the queued frames, then ends like a closed connection."""

    remote_address = ("127.0.0.1", 50000)

    def __init__(self, frames):
        self._frames = list(frames)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._frames:
            raise StopAsyncIteration
        return self._frames.pop(0)


@pytest.mark.asyncio
async def test_connection_survives_bad_frames_and_failing_listeners(caplog):
    runtime = RemoteHostRuntime(StubChannel())
    window = await open_remote(runtime, "1")
    seen = []

    def broken(width, height):
        raise TypeError("listener bug")

    window.on("resize", broken)
    window.on("resize", lambda width, height: seen.append(("resize", width, height)))
    window.on("move", lambda x, y: seen.append(("move", x, y)))

    await handle_host_connection(
        FakeSocket([
            b'{"event": "\xff"}',
            '{"event": "resize", "label": "1", "args": [640, 480]}',
            '{"event": "move", "label": "1", "args": [5, 6]}',
        ]),
        runtime,
    )

    assert seen == [("resize", 640, 480), ("move", 5, 6)]
    assert "listener bug" in caplog.text
    assert (window.state.x, window.state.y) == (5, 6)


@pytest.mark.asyncio
async def test_failing_zoom_listener_does_not_block_others(caplog):
    runtime = RemoteHostRuntime(StubChannel())
    changes = []

    def broken(change):
        raise RuntimeError("zoom bug")

    runtime.on_zoom_change(broken)
    runtime.on_zoom_change(changes.append)
    runtime.dispatch_event(HostEventModel(event="zoom-changed", args=[{"tabId": 3, "newZoomFactor": 1.5}]))

    assert [c.new_zoom_factor for c in changes] == [1.5]
    assert "zoom bug" in caplog.text
