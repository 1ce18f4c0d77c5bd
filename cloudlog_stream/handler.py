"""Bridge from the stdlib ``logging`` module to a registered log stream."""

import asyncio
import logging
import os
import socket
import threading
from datetime import datetime, timezone

from cloudlog_stream.models import format_timestamp
from cloudlog_stream.severity import level_from_logging, logging_level_for
from cloudlog_stream.stream import RAW_MODE, StreamDescriptor, current_loop

RECORD_VERSION = 0
CLOSE_TIMEOUT = 5.0

# Attributes every LogRecord carries; anything else came in through `extra=`.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


def record_from_logging(record: logging.LogRecord, hostname: str | None = None) -> dict:
    """Convert a stdlib LogRecord into an input record dict."""
    data = {
        "v": RECORD_VERSION,
        "level": level_from_logging(record.levelno),
        "name": record.name,
        "hostname": hostname or socket.gethostname(),
        "pid": record.process if record.process is not None else os.getpid(),
        "time": format_timestamp(datetime.fromtimestamp(record.created, tz=timezone.utc)),
        "msg": record.getMessage(),
    }

    if record.exc_info and record.exc_info[1] is not None:
        exc = record.exc_info[1]
        data["err"] = {
            "message": str(exc),
            "name": type(exc).__name__,
            "stack": logging.Formatter().formatException(record.exc_info),
        }

    for key, value in record.__dict__.items():
        if key not in _STANDARD_ATTRS and not key.startswith("_") and key not in data:
            data[key] = value
    return data


class CloudLoggingHandler(logging.Handler):
    """Hands log records to the stage of a :class:`StreamDescriptor`.

    Raw-mode descriptors receive input record dicts; any other mode receives
    the handler's formatted text, which the stage rejects. Records refused
    because the stage queue is full are counted in ``dropped``.

    Records logged on the thread running the stage's event loop are queued
    directly. Records from other threads are handed to that loop with
    ``call_soon_threadsafe``. When no loop is running anywhere, the handler
    starts one on a daemon thread and ends the stage from :meth:`close`.
    """

    def __init__(self, descriptor: StreamDescriptor, hostname: str | None = None):
        super().__init__(level=logging_level_for(descriptor.level))
        self.descriptor = descriptor
        self.hostname = hostname or socket.gethostname()
        self.dropped = 0
        self._owned_loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: threading.Thread | None = None

    def _start_loop(self) -> asyncio.AbstractEventLoop:
        loop = asyncio.new_event_loop()
        thread = threading.Thread(target=loop.run_forever, name="cloudlog-stream", daemon=True)
        thread.start()
        self._owned_loop = loop
        self._loop_thread = thread
        return loop

    def _target_loop(self, current):
        loop = self.descriptor.stage.loop or self._owned_loop
        if loop is None:
            loop = current if current is not None else self._start_loop()
        return loop

    def _deliver(self, chunk) -> None:
        if not self.descriptor.stage.write_nowait(chunk):
            self.dropped += 1

    def _deliver_from_thread(self, chunk, record: logging.LogRecord) -> None:
        try:
            self._deliver(chunk)
        except Exception:
            self.handleError(record)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if self.descriptor.mode == RAW_MODE:
                chunk = record_from_logging(record, self.hostname)
            else:
                chunk = self.format(record)
            current = current_loop()
            loop = self._target_loop(current)
            if loop is current:
                self._deliver(chunk)
            else:
                loop.call_soon_threadsafe(self._deliver_from_thread, chunk, record)
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Detach the handler; end the stage if it runs on the handler's own loop."""
        loop, thread = self._owned_loop, self._loop_thread
        self._owned_loop = self._loop_thread = None
        try:
            if loop is not None:
                try:
                    asyncio.run_coroutine_threadsafe(
                        self.descriptor.stage.end(), loop
                    ).result(timeout=CLOSE_TIMEOUT)
                finally:
                    loop.call_soon_threadsafe(loop.stop)
                    thread.join(timeout=CLOSE_TIMEOUT)
                    if not thread.is_alive():
                        loop.close()
        finally:
            super().close()
