"""Record level -> Cloud Logging severity lookup."""

import logging

TRACE = 10
DEBUG = 20
INFO = 30
WARN = 40
ERROR = 50
FATAL = 60

LEVEL_NAMES: dict[str, int] = {
    "trace": TRACE,
    "debug": DEBUG,
    "info": INFO,
    "warn": WARN,
    "warning": WARN,
    "error": ERROR,
    "fatal": FATAL,
    "critical": FATAL,
}

# Read-only for the life of the process.
SEVERITY_BY_LEVEL: dict[int, str] = {
    FATAL: "CRITICAL",
    ERROR: "ERROR",
    WARN: "WARNING",
    INFO: "INFO",
    DEBUG: "DEBUG",
    TRACE: "DEBUG",
}

# Emitted as JSON null so an unknown level stays visible in the output.
UNKNOWN_SEVERITY = None


def _coerce_level(level) -> int | None:
    if isinstance(level, bool):
        return None
    if isinstance(level, int):
        return level
    if isinstance(level, float):
        return int(level) if level.is_integer() else None
    if isinstance(level, (str, bytes)):
        # int() would also take digit-group underscores such as "3_0".
        if ("_" if isinstance(level, str) else b"_") in level:
            return None
        try:
            return int(level.strip())
        except ValueError:
            return None
    return None


def map_severity(level) -> str | None:
    """Return the Cloud Logging severity for a record level.

    Numeric strings are accepted. Anything that is not one of the six
    known levels maps to ``UNKNOWN_SEVERITY``.
    """
    numeric = _coerce_level(level)
    if numeric is None:
        return UNKNOWN_SEVERITY
    return SEVERITY_BY_LEVEL.get(numeric, UNKNOWN_SEVERITY)


def resolve_level(value) -> int:
    """Turn an int, numeric string or level name ("info") into a record level."""
    numeric = _coerce_level(value)
    if numeric is not None:
        return numeric
    if isinstance(value, str) and value.strip().lower() in LEVEL_NAMES:
        return LEVEL_NAMES[value.strip().lower()]
    raise ValueError(f"Unknown log level: {value!r}")


def level_from_logging(levelno: int) -> int:
    """Map a stdlib ``logging`` level number onto the record level scale."""
    if levelno >= logging.CRITICAL:
        return FATAL
    if levelno >= logging.ERROR:
        return ERROR
    if levelno >= logging.WARNING:
        return WARN
    if levelno >= logging.INFO:
        return INFO
    if levelno >= logging.DEBUG:
        return DEBUG
    return TRACE


def logging_level_for(level: int) -> int:
    """Inverse of :func:`level_from_logging`, used to set handler thresholds."""
    if level <= TRACE:
        return logging.NOTSET
    if level <= DEBUG:
        return logging.DEBUG
    if level <= INFO:
        return logging.INFO
    if level <= WARN:
        return logging.WARNING
    if level <= ERROR:
        return logging.ERROR
    return logging.CRITICAL
