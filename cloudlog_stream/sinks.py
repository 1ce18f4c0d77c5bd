"""Output sinks shaped like ``asyncio.StreamWriter``.

A sink needs ``write(data: bytes)``, ``async drain()``, ``close()`` and
``async wait_closed()``; a real ``StreamWriter`` (socket or pipe) works as-is.
"""

import sys
from typing import BinaryIO


class StdoutSink:
    """Writes lines to a binary stream, stdout by default.

    ``close()`` only flushes: the process keeps ownership of its stdout.
    """

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout.buffer
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> None:
        if self._closed:
            raise ValueError("write to closed sink")
        self._stream.write(data)

    async def drain(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        if not self._closed:
            self._stream.flush()
            self._closed = True

    async def wait_closed(self) -> None:
        pass


class MemorySink:
    """Collects written chunks in memory."""

    def __init__(self) -> None:
        self.chunks: list[bytes] = []
        self.drains = 0
        self.closed = False

    def write(self, data: bytes) -> None:
        if self.closed:
            raise ValueError("write to closed sink")
        self.chunks.append(data)

    async def drain(self) -> None:
        self.drains += 1

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass

    @property
    def lines(self) -> list[str]:
        """Written output decoded and split into lines, without terminators."""
        return b"".join(self.chunks).decode("utf-8").splitlines()
