"""
line_framer.py

Splits a raw byte stream into complete reply lines, keeping partial data
between reads.
"""

from typing import Iterator

from sensor_communication.config import LINE_TERMINATOR


class LineFramer:
    """
    Accumulates received bytes and yields one payload per line terminator.
    """

    def __init__(self, terminator: bytes = LINE_TERMINATOR, encoding: str = "latin-1"):
        if len(terminator) != 1:
            raise ValueError("Line terminator must be a single byte")
        self.terminator = terminator
        self.encoding = encoding
        self._buffer = bytearray()

    def feed(self, data: bytes) -> Iterator[str]:
        """
        Appends data to the buffer and lazily yields every line it completes.

        Null bytes are removed and surrounding whitespace trimmed. An empty line
        is yielded as "" rather than dropped. Bytes after the last terminator
        stay buffered for the next call.

        Args:
            data: Bytes just read from the transport.

        Yields:
            The decoded line payloads, in arrival order.
        """
        self._buffer.extend(data)
        return self._drain()

    def _drain(self) -> Iterator[str]:
        while True:
            index = self._buffer.find(self.terminator)
            if index < 0:
                return
            packet = bytes(self._buffer[:index])
            del self._buffer[:index + 1]
            yield packet.replace(b"\x00", b"").decode(self.encoding).strip()

    def clear(self) -> None:
        self._buffer.clear()

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet terminated."""
        return bytes(self._buffer)
