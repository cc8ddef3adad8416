import asyncio
import functools
import json
import logging
from typing import Any, Optional

import websockets
from pydantic import ValidationError
from websockets import ServerConnection

from .host.models import HostEventModel
from .host.remote import RemoteHostRuntime

logger = logging.getLogger(__name__)


def parse_host_event(message: Any) -> Optional[HostEventModel]:
    """
    Decode one websocket message into a host event.

    Messages double-encoded as a JSON string are unwrapped once. Bytes
    frames must be UTF-8.

    :param message: Raw text or bytes frame.
    :return: The event, or ``None`` if the message is malformed.
    """
    try:
        payload = json.loads(message.strip())
        if isinstance(payload, str):
            payload = json.loads(payload)
        return HostEventModel.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.warning("Malformed host event %r: %s", message, e)
        return None


async def handle_host_connection(websocket: ServerConnection, runtime: RemoteHostRuntime) -> None:
    """
    Receive events pushed by the host runtime.

    Each valid message is routed to ``runtime``; malformed ones are
    logged and skipped.

    :param websocket: The host's websocket connection.
    :param runtime: Runtime owning the windows the events belong to.
    """
    logger.info("Host connected from %s", websocket.remote_address)
    try:
        async for message in websocket:
            event = parse_host_event(message)
            if event is not None:
                runtime.dispatch_event(event)
    except websockets.ConnectionClosed:
        pass
    finally:
        logger.info("Host disconnected: %s", websocket.remote_address)


async def create_event_server(runtime: RemoteHostRuntime, host: str = "localhost", port: int = 8765) -> None:
    """
    Serve the websocket the host runtime pushes its events to.

    :param runtime: Runtime receiving the events.
    :param host: The host address to bind the server. Defaults to ``"localhost"``.
    :param port: The port to bind the server. Defaults to ``8765``.
    """
    handler = functools.partial(handle_host_connection, runtime=runtime)
    async with websockets.serve(handler, host, port):
        await asyncio.Future()
