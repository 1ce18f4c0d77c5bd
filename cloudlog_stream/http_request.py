"""Map an HTTP request sub-record onto the Cloud Logging HttpRequest shape."""

from collections.abc import Mapping


def _or_empty(value) -> str:
    return "" if value is None else value


def format_http_request(request: Mapping) -> dict:
    """Build a Cloud Logging ``httpRequest`` object from a request sub-record.

    ``requestMethod``, ``requestUrl`` and ``remoteIp`` are taken from
    ``method``, ``url`` and ``remoteAddress`` (empty string when absent).
    Every field of *request* is then copied on top, so fields already named
    after the Cloud Logging schema win over the computed values.
    """
    http_request = {
        "requestMethod": _or_empty(request.get("method")),
        "requestUrl": _or_empty(request.get("url")),
        "remoteIp": _or_empty(request.get("remoteAddress")),
    }
    http_request.update(request)
    return http_request
