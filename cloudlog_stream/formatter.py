"""Turn one input log record into a Cloud Logging entry."""

import traceback
from collections.abc import Mapping

from cloudlog_stream.errors import FormatError
from cloudlog_stream.http_request import format_http_request
from cloudlog_stream.models import InputRecord, LogEntry, format_timestamp
from cloudlog_stream.severity import map_severity

# Checked in this order; the first one carrying a stack is promoted.
ERROR_KEYS = ("err", "error")
HTTP_KEYS = ("httpRequest", "req")


def stack_of(error) -> str | None:
    """Return the stack text of an error-like value, or None if it has none.

    Accepts a mapping with a ``stack`` key (serialized errors), any object with
    a ``stack`` attribute, and Python exceptions.
    """
    if error is None:
        return None
    if isinstance(error, Mapping):
        stack = error.get("stack")
    elif isinstance(error, BaseException):
        stack = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ).rstrip("\n")
    else:
        stack = getattr(error, "stack", None)
    return stack or None


def _promoted_error(extra: dict) -> tuple[str | None, str | None]:
    # Only the first present error key is considered; `error` is a fallback for `err`.
    for key in ERROR_KEYS:
        if extra.get(key) is not None:
            return key, stack_of(extra[key])
    return None, None


def _http_source(extra: dict):
    for key in HTTP_KEYS:
        if extra.get(key) is not None:
            return extra[key]
    return None


def build_entry(record, service_version: str | None = None) -> LogEntry:
    """Format *record* into a :class:`LogEntry`.

    Raises:
        FormatError: *record* is not a mapping or could not be read.
    """
    try:
        parsed = InputRecord.from_mapping(record)
        extra = dict(parsed.extra)
        entry = LogEntry(
            log_name=parsed.logger_name,
            severity=map_severity(parsed.level),
            timestamp=format_timestamp(parsed.time),
            message=parsed.text,
        )

        # Error Reporting picks up entries whose message is a stack trace.
        error_key, stack = _promoted_error(extra)
        if stack is not None:
            del extra[error_key]
            entry.message = stack
            entry.service_context = {"service": parsed.logger_name}
            if service_version:
                entry.service_context["version"] = service_version

        request = _http_source(extra)
        if isinstance(request, Mapping):
            entry.http_request = format_http_request(request)

        entry.extra = extra
    except FormatError:
        raise
    except Exception as exc:
        raise FormatError(f"Could not format log record: {exc}") from exc
    return entry


def format_entry(record, service_version: str | None = None) -> dict:
    """Format *record* into a Cloud Logging entry dict, ready for serialization."""
    return build_entry(record, service_version=service_version).to_dict()
