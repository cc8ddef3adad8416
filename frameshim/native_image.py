import base64
import struct
from typing import Tuple

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class NativeImage:
    """Immutable wrapper around encoded image bytes captured from a window."""

    def __init__(self, data: bytes = b""):
        self._data = bytes(data)

    @classmethod
    def create_from_buffer(cls, buffer: bytes) -> "NativeImage":
        return cls(buffer)

    @classmethod
    def create_empty(cls) -> "NativeImage":
        return cls()

    def is_empty(self) -> bool:
        return not self._data

    def to_png(self) -> bytes:
        return self._data

    def to_data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self._data).decode("ascii")

    def get_size(self) -> Tuple[int, int]:
        """
        Read ``(width, height)`` from the PNG header.

        :return: The size, or ``(0, 0)`` for empty or non-PNG data.
        """
        # signature (8) + IHDR length/type (8) + width/height (8)
        if len(self._data) < 24 or not self._data.startswith(PNG_SIGNATURE):
            return (0, 0)
        return struct.unpack(">II", self._data[16:24])
