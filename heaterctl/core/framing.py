"""Line framing for the inbound byte stream.

The heater terminates every message with ``\\r``, ``\\n`` or both. Chunks
arrive with arbitrary boundaries, so a frame may span several reads and one
read may carry several frames.
"""

from __future__ import annotations

from collections.abc import Iterator

_DELIMITERS = (0x0D, 0x0A)


class FrameDecoder:
    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes received after the last delimiter."""
        return bytes(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()

    def feed(self, chunk: bytes | str) -> Iterator[str]:
        """Buffer ``chunk`` and return an iterator over the completed frames.

        The chunk is buffered immediately; frames are extracted as the
        returned iterator is consumed. Empty frames are dropped.
        """
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._buffer.extend(chunk)
        return self._drain()

    def _drain(self) -> Iterator[str]:
        while True:
            index = self._next_delimiter()
            if index < 0:
                return
            raw = bytes(self._buffer[:index])
            del self._buffer[: index + 1]
            frame = raw.decode("utf-8", errors="replace").strip()
            if frame:
                yield frame

    def _next_delimiter(self) -> int:
        positions = [p for p in (self._buffer.find(d) for d in _DELIMITERS) if p >= 0]
        return min(positions) if positions else -1
