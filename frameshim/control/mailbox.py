from collections import deque
from typing import Any, Deque, Dict, List, Tuple

Message = Tuple[Any, ...]


class MessageMailbox:
    """
    Per-channel buffer for messages sent before a receiver exists.

    Queues grow without bound until the channel is drained.
    """

    def __init__(self):
        self._queues: Dict[str, Deque[Message]] = {}

    def post(self, channel: str, message: Message) -> None:
        self._queues.setdefault(channel, deque()).append(message)

    def drain(self, channel: str) -> List[Message]:
        """Remove and return every message buffered for ``channel``, oldest first."""
        return list(self._queues.pop(channel, ()))

    def pending(self, channel: str) -> int:
        return len(self._queues.get(channel, ()))

    def channels(self) -> List[str]:
        return list(self._queues)

    def __len__(self) -> int:
        return sum(len(queue) for queue in self._queues.values())
