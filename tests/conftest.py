"""Shared pytest fixtures for the cloud-logging-stream test suite."""

import pytest

from cloudlog_stream.sinks import MemorySink


@pytest.fixture
def base_record() -> dict:
    """A record as the upstream logger produces it for ``log.info("hello")``."""
    return {
        "v": 0,
        "level": 30,
        "name": "mylog",
        "hostname": "h",
        "pid": 1,
        "time": "2024-01-01T00:00:00.000Z",
        "msg": "hello",
    }


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()
