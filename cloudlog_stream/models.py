"""Input record and output entry models."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from cloudlog_stream.errors import FormatError

logger = logging.getLogger(__name__)

# Keys owned by the producing logger. Everything else is an extension field.
RESERVED_KEYS = ("v", "level", "name", "hostname", "pid", "time", "msg", "message")

# Output keys that extension fields are never allowed to replace.
CORE_KEYS = ("logName", "timestamp", "message", "severity")


def format_timestamp(value) -> Any:
    """Render a datetime as ISO-8601 UTC with millisecond precision.

    Strings and any other values are returned untouched.
    """
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class InputRecord:
    """One structured log event, split into reserved keys and extension fields."""

    schema_version: Any = None
    level: Any = None
    logger_name: Any = None
    hostname: Any = None
    pid: Any = None
    time: Any = None
    msg: Any = None
    message: Any = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data) -> "InputRecord":
        if not isinstance(data, Mapping):
            raise FormatError(
                f"Expected a mapping log record, got {type(data).__name__}"
            )
        return cls(
            schema_version=data.get("v"),
            level=data.get("level"),
            logger_name=data.get("name"),
            hostname=data.get("hostname"),
            pid=data.get("pid"),
            time=data.get("time"),
            msg=data.get("msg"),
            message=data.get("message"),
            extra={k: v for k, v in data.items() if k not in RESERVED_KEYS},
        )

    @property
    def text(self):
        """The explicit ``message`` when set, otherwise ``msg``."""
        return self.message if self.message is not None else self.msg


@dataclass
class LogEntry:
    """One Cloud Logging entry.

    Extension fields named like a core key (``logName``, ``timestamp``,
    ``message``, ``severity``) are left out of :meth:`to_dict` and reported
    at debug level.
    """

    log_name: Any
    severity: str | None
    timestamp: Any
    message: Any = None
    http_request: dict | None = None
    service_context: dict | None = None
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        entry: dict = {}
        if self.log_name is not None:
            entry["logName"] = self.log_name
        if self.timestamp is not None:
            entry["timestamp"] = self.timestamp
        if self.message is not None:
            entry["message"] = self.message
        entry["severity"] = self.severity

        for key, value in self.extra.items():
            if key in CORE_KEYS:
                logger.debug(
                    "Dropping extension field %r of %s: it names a core key",
                    key, self.log_name,
                )
                continue
            entry[key] = value

        if self.service_context is not None:
            entry["serviceContext"] = self.service_context
        if self.http_request is not None:
            entry["httpRequest"] = self.http_request
        return entry
