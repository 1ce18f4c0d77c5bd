"""Streaming stage: input records in, Cloud Logging JSON lines out.

Records are pushed onto a bounded queue and a single worker task turns them
into lines, one at a time and in arrival order. The worker awaits
``sink.drain()`` after every line, so a slow sink stops the worker, the queue
fills up and producers awaiting :meth:`CloudLoggingTransformer.write` are
held back.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from cloudlog_stream.errors import ConfigurationError, FormatError
from cloudlog_stream.formatter import format_entry
from cloudlog_stream.schema import EntryValidator
from cloudlog_stream.serializer import format_line
from cloudlog_stream.severity import INFO, resolve_level
from cloudlog_stream.sinks import StdoutSink

logger = logging.getLogger(__name__)

RAW_MODE = "raw"
TEXT_INPUT_ERROR = "Bad configuration: raw structured input expected"
DEFAULT_HIGH_WATER_MARK = 16

_END = object()


def current_loop() -> asyncio.AbstractEventLoop | None:
    """The event loop running in this thread, or None."""
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _log_format_error(exc: FormatError, chunk: Any) -> None:
    logger.warning("Dropping unformattable log record: %s", exc)


class CloudLoggingTransformer:
    """Formats records into Cloud Logging entries and writes them to a sink.

    Text chunks mean the upstream logger was not set up for raw records; that
    is a :class:`ConfigurationError` and halts the stage. A record that cannot
    be formatted is reported to *on_error* and skipped, unless
    *halt_on_format_error* is set.
    """

    def __init__(
        self,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
        service_version: str | None = None,
        halt_on_format_error: bool = False,
        on_error: Callable[[FormatError, Any], None] | None = None,
        validate_entries: bool = False,
    ) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=high_water_mark)
        self._service_version = service_version
        self._halt_on_format_error = halt_on_format_error
        self._on_error = on_error or _log_format_error
        self._validator = EntryValidator() if validate_entries else None
        self._sink = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._worker: asyncio.Task | None = None
        self._fatal: BaseException | None = None
        self._ending = False
        self._sink_closed = False
        self.emitted = 0
        self.failed = 0

    @property
    def error(self) -> BaseException | None:
        """The error that halted the stage, if any."""
        return self._fatal

    @property
    def halted(self) -> bool:
        return self._fatal is not None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        """The event loop the stage is bound to, once piped or written to on one."""
        return self._loop

    @property
    def schema_stats(self) -> dict | None:
        """Schema check counts, or None when entries are not validated."""
        if self._validator is None:
            return None
        return self._validator.get_stats()

    def pipe(self, sink):
        """Connect the stage's output to *sink* and return the sink."""
        if self._sink is not None:
            raise RuntimeError("stage is already connected to a sink")
        self._sink = sink
        if self._loop is None:
            self._loop = current_loop()
        return sink

    def transform(self, chunk: Any) -> str:
        """Turn one record into a newline-terminated JSON line.

        Raises:
            ConfigurationError: *chunk* is already text.
            FormatError: *chunk* is not a usable record.
        """
        if isinstance(chunk, (str, bytes, bytearray)):
            raise ConfigurationError(TEXT_INPUT_ERROR)
        entry = format_entry(chunk, service_version=self._service_version)
        if self._validator is not None:
            self._check_schema(entry)
        return format_line(entry)

    def _check_schema(self, entry: dict) -> None:
        try:
            valid, errors = self._validator.validate(entry)
        except Exception as exc:
            logger.warning("Schema check failed for %s: %s", entry.get("logName"), exc)
            return
        if not valid:
            logger.warning(
                "Entry for %s does not match the Cloud Logging schema: %s",
                entry.get("logName"), "; ".join(errors),
            )

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def _check_writable(self) -> None:
        if self._fatal is not None:
            raise self._fatal
        if self._ending:
            raise RuntimeError("write after end")
        if self._sink is None:
            raise RuntimeError("stage has no sink; call pipe() first")

    def _ensure_worker(self) -> None:
        if self._worker is None:
            loop = asyncio.get_running_loop()
            if self._loop is None:
                self._loop = loop
            self._worker = loop.create_task(self._run())

    async def write(self, chunk: Any) -> None:
        """Queue one record, waiting while the queue is full."""
        self._check_writable()
        self._ensure_worker()
        await self._queue.put(chunk)

    def write_nowait(self, chunk: Any) -> bool:
        """Queue one record without waiting.

        Returns False when the queue is full and the record was not accepted.
        Must be called from the thread running the stage's event loop; other
        threads hand records over with ``loop.call_soon_threadsafe``.
        """
        if self._loop is not None and current_loop() is not self._loop:
            raise RuntimeError("write_nowait called outside the stage's event loop")
        self._check_writable()
        self._ensure_worker()
        try:
            self._queue.put_nowait(chunk)
        except asyncio.QueueFull:
            return False
        return True

    async def end(self) -> None:
        """Process everything queued, then drain and close the sink.

        Re-raises the error that halted the stage, if there was one.
        """
        if not self._ending:
            self._ending = True
            if self._worker is not None and not self._worker.done():
                await self._queue.put(_END)
            if self._worker is not None:
                await self._worker
            await self._close_sink()
        if self._fatal is not None:
            raise self._fatal

    async def abort(self, exc: BaseException) -> None:
        """Upstream failure: halt with *exc*, drop queued records, close the sink."""
        self._ending = True
        if self._fatal is None:
            self._halt(exc)
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        await self._close_sink()

    async def __aenter__(self) -> "CloudLoggingTransformer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            await self.abort(exc)
        else:
            await self.end()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _halt(self, exc: BaseException) -> None:
        self._fatal = exc
        logger.error("Log stream halted: %s", exc)
        # Release producers blocked on a full queue; their records are dropped.
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break

    async def _run(self) -> None:
        while True:
            chunk = await self._queue.get()
            if chunk is _END:
                return

            try:
                line = self.transform(chunk)
            except ConfigurationError as exc:
                self._halt(exc)
                return
            except FormatError as exc:
                self.failed += 1
                self._on_error(exc, chunk)
                if self._halt_on_format_error:
                    self._halt(exc)
                    return
                continue

            data = line.encode("utf-8", errors="backslashreplace")
            try:
                self._sink.write(data)
                await self._sink.drain()
            except Exception as exc:
                self._halt(exc)
                return
            self.emitted += 1

    async def _close_sink(self) -> None:
        if self._sink is None or self._sink_closed:
            return
        self._sink_closed = True
        try:
            if self._fatal is None:
                await self._sink.drain()
        finally:
            self._sink.close()
            await self._sink.wait_closed()


@dataclass(frozen=True)
class StreamDescriptor:
    """What a logger registers: minimum level, input mode and the stage."""

    level: int
    stage: CloudLoggingTransformer
    mode: str = RAW_MODE


def create_stream(level=INFO, sink=None, **options) -> StreamDescriptor:
    """Build a stage piped into *sink* (stdout by default).

    *level* accepts a record level or a level name. Extra keyword arguments
    are passed to :class:`CloudLoggingTransformer`.
    """
    stage = CloudLoggingTransformer(**options)
    stage.pipe(sink if sink is not None else StdoutSink())
    return StreamDescriptor(level=resolve_level(level), stage=stage)
