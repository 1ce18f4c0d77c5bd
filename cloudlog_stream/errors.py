"""Exceptions raised by the record pipeline."""


class CloudLogStreamError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(CloudLogStreamError):
    """Raised when the stage receives pre-formatted text instead of a record."""


class FormatError(CloudLogStreamError):
    """Raised when a record cannot be interpreted as a log record."""
