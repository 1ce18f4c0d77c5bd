"""JSON serialization for log entries that never raises.

Encoding is tried in order, each attempt reporting its own outcome:

1. strict compact ``json.dumps``;
2. a cycle-tolerant pass that replaces references back to an enclosing
   container with ``CIRCULAR_MARKER``, writes NaN and infinities as null and
   stringifies any other value JSON cannot hold;
3. a plain-text diagnostic line carrying the last failure's message.

The JSON tiers never write NaN or Infinity and their output always encodes
as UTF-8. A malformed record degrades to one of the later tiers instead of
breaking the logging path.
"""

import json
import math
from collections.abc import Mapping
from typing import Any, Callable

CIRCULAR_MARKER = "[Circular]"

_SEPARATORS = (",", ":")


def _strict_dumps(entry: Any) -> str:
    text = json.dumps(entry, separators=_SEPARATORS, ensure_ascii=False, allow_nan=False)
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates cannot be written as UTF-8; keep them as \u escapes.
        text = json.dumps(entry, separators=_SEPARATORS, allow_nan=False)
    return text


def _break_cycles(value: Any, ancestors: set[int]) -> Any:
    """Return a JSON-safe copy of *value*; the input is left untouched."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        marker = id(value)
        if marker in ancestors:
            return CIRCULAR_MARKER
        ancestors.add(marker)
        if isinstance(value, Mapping):
            copy: Any = {
                (key if isinstance(key, str) else str(key)): _break_cycles(item, ancestors)
                for key, item in value.items()
            }
        else:
            copy = [_break_cycles(item, ancestors) for item in value]
        ancestors.discard(marker)
        return copy

    return str(value)


def _cycle_safe_dumps(entry: Any) -> str:
    return _strict_dumps(_break_cycles(entry, set()))


def _attempt(encode: Callable[[Any], str], entry: Any) -> tuple[str | None, Exception | None]:
    try:
        return encode(entry), None
    except Exception as exc:  # any failure moves on to the next tier
        return None, exc


def _describe(exc: Exception | None) -> str:
    if exc is None:
        return "unknown error"
    try:
        return str(exc)
    except Exception:
        return type(exc).__name__


def _diagnostic(exc: Exception | None) -> str:
    return "(Exception in JSON serialization of log entry: %s. " % json.dumps(_describe(exc))


def safe_dumps(entry: Any) -> str:
    """Serialize *entry* to a JSON string; never raises."""
    text, _ = _attempt(_strict_dumps, entry)
    if text is not None:
        return text

    text, error = _attempt(_cycle_safe_dumps, entry)
    if text is not None:
        return text

    return _diagnostic(error)


def format_line(entry: Any) -> str:
    """Serialize *entry* and terminate it with a single newline."""
    return safe_dumps(entry) + "\n"
