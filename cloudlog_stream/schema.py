"""JSON schema for Cloud Logging entries and a validator with running stats."""

from collections import defaultdict

import jsonschema

from cloudlog_stream.severity import SEVERITY_BY_LEVEL

ENTRY_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["logName", "severity", "timestamp"],
    "properties": {
        "logName": {"type": "string"},
        "severity": {"enum": sorted(set(SEVERITY_BY_LEVEL.values()))},
        "timestamp": {"type": "string"},
        "message": {"type": "string"},
        "serviceContext": {
            "type": "object",
            "required": ["service"],
            "properties": {
                "service": {"type": ["string", "null"]},
                "version": {"type": "string"},
            },
        },
        "httpRequest": {
            "type": "object",
            "properties": {
                "requestMethod": {"type": "string"},
                "requestUrl": {"type": "string"},
                "remoteIp": {"type": "string"},
                "status": {"type": "integer"},
                "userAgent": {"type": "string"},
            },
        },
    },
    "additionalProperties": True,
}


def _empty_stats() -> dict:
    return {
        "total": 0,
        "valid": 0,
        "invalid": 0,
        "error_types": defaultdict(int),
    }


class EntryValidator:
    """Validates formatted entries against :data:`ENTRY_SCHEMA`."""

    def __init__(self, schema: dict | None = None):
        self._validator = jsonschema.Draft202012Validator(schema or ENTRY_SCHEMA)
        self._stats = _empty_stats()

    def validate(self, entry):
        """Validate an entry dict.

        Returns:
            tuple: (is_valid: bool, errors: list[str])
        """
        self._stats["total"] += 1
        errors = list(self._validator.iter_errors(entry))

        if not errors:
            self._stats["valid"] += 1
            return True, []

        self._stats["invalid"] += 1
        messages = []
        for error in errors:
            self._stats["error_types"][error.validator] += 1
            path = ".".join(str(p) for p in error.absolute_path)
            messages.append(f"{path}: {error.message}" if path else error.message)
        return False, messages

    def get_stats(self):
        """Return a copy of the stats dict."""
        stats = dict(self._stats)
        stats["error_types"] = dict(stats["error_types"])
        return stats
