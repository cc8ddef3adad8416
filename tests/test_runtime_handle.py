import asyncio
from contextlib import suppress
from pathlib import Path

import pytest
from pydantic import BaseModel

from frameshim.config import RuntimeConfig
from frameshim.errors import ApiError, HostCommunicationFailure
from frameshim.host.models import HostWindowOptions
from frameshim.host.remote import RemoteHostRuntime
from frameshim.runtime_handle import (
    HostChannel,
    HostResponse,
    RequestTable,
    encode_frame,
    read_frame,
    to_wire,
    wire_args,
)


class Point(BaseModel):
    x: int
    y: int


async def start_host(responder):
    """Serve length-prefixed JSON frames, answering each request with ``responder``."""
    requests = []

    async def handle(reader, writer):
        request = await read_frame(reader)
        requests.append(request)
        writer.write(encode_frame(responder(request)))
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port, requests


async def stop(server, loop_task):
    loop_task.cancel()
    with suppress(asyncio.CancelledError):
        await loop_task
    server.close()
    await server.wait_closed()


def ok(result):
    return lambda request: [request[0], 0, "", result]


def test_to_wire_handles_nested_values():
    value = {"path": Path("/tmp/x"), "point": Point(x=1, y=2), "items": (1, {2}), 3: None}

    assert to_wire(value) == {
        "path": "/tmp/x",
        "point": {"x": 1, "y": 2},
        "items": [1, [2]],
        "3": None,
    }


def test_to_wire_uses_camel_case_aliases():
    options = HostWindowOptions(id="1", title="t", width=1, height=2, always_on_top=True)

    dumped = to_wire(options)

    assert dumped["alwaysOnTop"] is True
    assert dumped["showInTaskbar"] is True


def test_wire_args():
    assert wire_args(None) == []
    assert wire_args({"label": "1"}) == [{"label": "1"}]
    assert wire_args([1, Path("a")]) == [1, "a"]


def test_response_frame_parsing():
    response = HostResponse.from_frame([3, 2, "nope", None])

    assert response.id == 3
    assert isinstance(response.error(), ApiError)
    assert response.error().code == 2
    with pytest.raises(ValueError):
        HostResponse.from_frame([1, 2])


@pytest.mark.asyncio
async def test_request_table_ids_and_settling():
    table = RequestTable(max_id=2)
    loop = asyncio.get_running_loop()
    futures = {}
    for _ in range(2):
        request_id = table.next_id()
        futures[request_id] = loop.create_future()
        table.add(request_id, futures[request_id])

    assert len(futures) == 2
    with pytest.raises(HostCommunicationFailure):
        table.next_id()

    first, second = futures
    table.settle(first, HostResponse(id=first, code=0, msg="", result="done"))
    table.settle(second, HostResponse(id=second, code=1, msg="bad", result=None))

    assert futures[first].result() == "done"
    with pytest.raises(ApiError):
        futures[second].result()
    assert len(table) == 0


@pytest.mark.asyncio
async def test_fail_all_fails_waiting_futures():
    table = RequestTable()
    future = asyncio.get_running_loop().create_future()
    table.add(table.next_id(), future)

    table.fail_all(HostCommunicationFailure("gone"))

    with pytest.raises(HostCommunicationFailure):
        future.result()
    assert len(table) == 0


@pytest.mark.asyncio
async def test_request_round_trip_over_tcp():
    server, port, requests = await start_host(ok({"x": 4, "y": 5}))
    channel = HostChannel(RuntimeConfig(host_port=port))
    loop_task = asyncio.create_task(channel.serve())
    try:
        result = await channel.request("window.position", {"label": "7"}, result_type=Point)
    finally:
        await stop(server, loop_task)

    assert result == Point(x=4, y=5)
    assert requests[0][1:] == ["window.position", [{"label": "7"}]]


@pytest.mark.asyncio
async def test_error_response_raises_api_error():
    server, port, _ = await start_host(lambda request: [request[0], 5, "no such window", None])
    channel = HostChannel(RuntimeConfig(host_port=port))
    loop_task = asyncio.create_task(channel.serve())
    try:
        with pytest.raises(ApiError) as info:
            await channel.request("window.show", {"label": "x"})
    finally:
        await stop(server, loop_task)

    assert info.value.code == 5
    assert info.value.msg == "no such window"


@pytest.mark.asyncio
async def test_malformed_result_is_a_host_failure():
    server, port, _ = await start_host(ok("not a point"))
    channel = HostChannel(RuntimeConfig(host_port=port))
    loop_task = asyncio.create_task(channel.serve())
    try:
        with pytest.raises(HostCommunicationFailure):
            await channel.request("window.position", result_type=Point)
    finally:
        await stop(server, loop_task)


@pytest.mark.asyncio
async def test_unreachable_host_is_a_host_failure():
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    channel = HostChannel(RuntimeConfig(host_port=port))
    loop_task = asyncio.create_task(channel.serve())
    try:
        with pytest.raises(HostCommunicationFailure):
            await channel.request("window.show")
    finally:
        loop_task.cancel()
        with suppress(asyncio.CancelledError):
            await loop_task


@pytest.mark.asyncio
async def test_request_times_out_without_request_loop():
    channel = HostChannel(RuntimeConfig())

    with pytest.raises(HostCommunicationFailure, match="within"):
        await channel.request("window.show", timeout=0.05)


@pytest.mark.asyncio
async def test_remote_runtime_opens_and_drives_window():
    def responder(request):
        if request[1] == "window.open":
            return [request[0], 0, "", {"title": "Remote", "width": 800, "height": 600, "tabId": 9}]
        return [request[0], 0, "", True]

    server, port, requests = await start_host(responder)
    channel = HostChannel(RuntimeConfig(host_port=port))
    loop_task = asyncio.create_task(channel.serve())
    runtime = RemoteHostRuntime(channel)
    try:
        window = await runtime.open_window(
            "https://example.com/", HostWindowOptions(id="12", title="Remote", width=800, height=600)
        )
        await window.set_title("Renamed")
    finally:
        await stop(server, loop_task)

    assert window.label == "12"
    assert window.state.tab_id == 9
    assert window.state.title == "Renamed"
    assert runtime.window("12") is window
    open_args = requests[0][2][0]
    assert open_args["url"] == "https://example.com/"
    assert open_args["options"]["id"] == "12"
    assert requests[1][1:] == ["window.setTitle", [{"label": "12", "title": "Renamed"}]]
