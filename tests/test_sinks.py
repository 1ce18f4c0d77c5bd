"""Tests for sinks module."""

import io

import pytest

from cloudlog_stream.sinks import MemorySink, StdoutSink


class TestStdoutSink:
    @pytest.mark.asyncio
    async def test_write_and_drain(self):
        stream = io.BytesIO()
        sink = StdoutSink(stream)
        sink.write(b'{"a":1}\n')
        await sink.drain()
        assert stream.getvalue() == b'{"a":1}\n'

    @pytest.mark.asyncio
    async def test_close_leaves_stream_open(self):
        stream = io.BytesIO()
        sink = StdoutSink(stream)
        sink.close()
        await sink.wait_closed()
        assert sink.closed is True
        assert stream.closed is False

    def test_write_after_close(self):
        sink = StdoutSink(io.BytesIO())
        sink.close()
        with pytest.raises(ValueError):
            sink.write(b"x\n")


class TestMemorySink:
    @pytest.mark.asyncio
    async def test_collects_lines(self):
        sink = MemorySink()
        sink.write(b'{"a":1}\n')
        sink.write('{"b":"café"}\n'.encode("utf-8"))
        await sink.drain()
        assert sink.lines == ['{"a":1}', '{"b":"café"}']
        assert sink.drains == 1

    def test_write_after_close(self):
        sink = MemorySink()
        sink.close()
        with pytest.raises(ValueError):
            sink.write(b"x\n")
