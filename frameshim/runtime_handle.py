import asyncio
import dataclasses
import json
import logging
import struct
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .config import RuntimeConfig
from .errors import ApiError, HostCommunicationFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Seconds between two frames sent by the request loop.
SEND_PAUSE = 0.01

#: Big-endian payload length in front of every frame.
FRAME_HEADER = struct.Struct(">I")


def to_wire(value: Any) -> Any:
    """
    Reduce ``value`` to something ``json.dumps`` accepts.

    Host models are dumped with their camelCase aliases; paths and
    unknown objects become strings, containers are converted
    recursively (mapping keys as strings).
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_wire(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(key): to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_wire(item) for item in value]
    # paths and anything else
    return str(value)


def wire_args(args: Optional[Any]) -> List[Any]:
    """Wrap request arguments into the list the host expects; ``None`` sends none."""
    if args is None:
        return []
    items = args if isinstance(args, list) else [args]
    return [to_wire(item) for item in items]


def encode_frame(data: Any) -> bytes:
    """Encode ``data`` as JSON behind a 4-byte big-endian length prefix."""
    payload = json.dumps(data).encode("utf-8")
    return FRAME_HEADER.pack(len(payload)) + payload


async def read_frame(reader: asyncio.StreamReader) -> Any:
    """Read one length-prefixed JSON frame from ``reader``."""
    (length,) = FRAME_HEADER.unpack(await reader.readexactly(FRAME_HEADER.size))
    return json.loads((await reader.readexactly(length)).decode("utf-8"))


class HostRequest(BaseModel):
    """A call into the host: ``[id, method, args]`` on the wire."""
    id: int
    method: str
    args: List[Any]

    def to_frame(self) -> list:
        return [self.id, self.method, wire_args(self.args)]


class HostResponse(BaseModel):
    """The host's answer: ``[id, code, msg, result]``; ``code == 0`` is success."""
    id: int
    code: int
    msg: str
    result: Any

    @classmethod
    def from_frame(cls, frame: Any) -> "HostResponse":
        """
        :raises ValueError: If ``frame`` is not a four-element list.
        """
        if not isinstance(frame, list) or len(frame) != 4:
            raise ValueError(f"Malformed host response frame: {frame!r}")
        request_id, code, msg, result = frame
        return cls(id=request_id, code=code, msg=msg, result=result)

    def error(self) -> Optional[ApiError]:
        return None if self.code == 0 else ApiError(self.code, self.msg)


class RequestTable:
    """
    Futures of the requests still waiting for an answer, by request id.

    Ids are small integers handed out round-robin below ``max_id`` and
    reused once their request settled.
    """

    def __init__(self, max_id: int = 255):
        self._waiting: Dict[int, asyncio.Future] = {}
        self._last = 0
        self._max_id = max_id

    def next_id(self) -> int:
        """
        :raises HostCommunicationFailure: If every id is in use.
        """
        for step in range(1, self._max_id + 1):
            candidate = (self._last + step) % self._max_id
            if candidate not in self._waiting:
                self._last = candidate
                return candidate
        raise HostCommunicationFailure(f"All {self._max_id} request ids are in flight")

    def add(self, request_id: int, future: asyncio.Future) -> None:
        self._waiting[request_id] = future

    def discard(self, request_id: int) -> None:
        self._waiting.pop(request_id, None)

    def settle(self, request_id: int, response: HostResponse) -> None:
        """Complete the future of ``request_id`` from the host's ``response``."""
        future = self._waiting.pop(request_id, None)
        if future is None or future.done():
            return
        error = response.error()
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(response.result)

    def fail(self, request_id: int, error: Exception) -> None:
        future = self._waiting.pop(request_id, None)
        if future is not None and not future.done():
            future.set_exception(error)

    def fail_all(self, error: Exception) -> None:
        """Fail every waiting request with ``error`` and forget them."""
        waiting, self._waiting = self._waiting, {}
        for future in waiting.values():
            if not future.done():
                future.set_exception(error)

    def __len__(self) -> int:
        return len(self._waiting)


class HostChannel:
    """
    Request/response channel to the host runtime process.

    Requests are queued by :meth:`request` and written one at a time by
    :meth:`serve`, each over its own TCP connection, using
    length-prefixed JSON frames.
    """

    def __init__(self, config: Optional[RuntimeConfig] = None):
        self.config = config or RuntimeConfig()
        self.requests = RequestTable()
        self._outbox: Optional[asyncio.Queue] = None

    @property
    def outbox(self) -> "asyncio.Queue[HostRequest]":
        # created lazily so the channel can be built outside a loop
        if self._outbox is None:
            self._outbox = asyncio.Queue()
        return self._outbox

    async def exchange(self, request: HostRequest) -> HostResponse:
        """Send ``request`` on a fresh connection and read the host's answer."""
        reader, writer = await asyncio.open_connection(self.config.host_address, self.config.host_port)
        try:
            writer.write(encode_frame(request.to_frame()))
            await writer.drain()
            frame = await read_frame(reader)
        finally:
            writer.close()
            await writer.wait_closed()
        return HostResponse.from_frame(frame)

    async def serve(self) -> None:
        """
        Forward queued requests to the host until cancelled.

        Transport failures reach the waiting caller as
        :class:`HostCommunicationFailure`; requests still waiting when
        the loop stops fail the same way.
        """
        logger.info("Host request loop started (%s:%s)", self.config.host_address, self.config.host_port)
        try:
            while True:
                request = await self.outbox.get()
                try:
                    self.requests.settle(request.id, await self.exchange(request))
                except (OSError, asyncio.IncompleteReadError, ValueError) as e:
                    logger.debug("Request %s %r failed: %s", request.id, request.method, e)
                    failure = HostCommunicationFailure(f"Host request {request.method!r} failed: {e}")
                    self.requests.fail(request.id, failure)
                await asyncio.sleep(SEND_PAUSE)
        finally:
            logger.info("Host request loop terminated.")
            self.requests.fail_all(HostCommunicationFailure("Host request loop terminated"))

    async def request(
        self,
        method: str,
        args: Optional[Any] = None,
        result_type: Union[Type[BaseModel], Callable[[Any], T], None] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Call ``method`` on the host and wait for its result.

        :param args: A single argument or a list of them.
        :param result_type: Pydantic model or callable the raw result is
            passed through; ``None`` returns it unchanged.
        :param timeout: Seconds to wait; defaults to the configured timeout.
        :raises ApiError: If the host answers with an error code.
        :raises HostCommunicationFailure: On transport failure, timeout or
            a malformed result.
        """
        request = HostRequest(id=self.requests.next_id(), method=method, args=wire_args(args))
        future = asyncio.get_running_loop().create_future()
        self.requests.add(request.id, future)
        await self.outbox.put(request)

        timeout = self.config.request_timeout if timeout is None else timeout
        try:
            raw = await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise HostCommunicationFailure(f"Host did not answer {method!r} within {timeout}s") from None
        finally:
            self.requests.discard(request.id)

        if result_type is None:
            return raw
        try:
            if isinstance(result_type, type) and issubclass(result_type, BaseModel):
                return result_type.model_validate(raw)
            return result_type(raw)
        except (ValidationError, TypeError, ValueError) as e:
            raise HostCommunicationFailure(f"Malformed result for {method!r}: {e}") from e
