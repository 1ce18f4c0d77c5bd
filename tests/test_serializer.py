"""Tests for serializer module."""

import json
import math
from datetime import datetime, timezone

from cloudlog_stream.formatter import format_entry
from cloudlog_stream.serializer import CIRCULAR_MARKER, format_line, safe_dumps


def _strict_loads(text):
    def reject(token):
        raise ValueError(f"non-standard JSON token {token}")

    return json.loads(text, parse_constant=reject)


class Unprintable:
    def __str__(self):
        raise RuntimeError("str exploded")

    __repr__ = __str__


class TestStrictEncoding:
    def test_compact_json(self):
        result = safe_dumps({"severity": "INFO", "message": "test"})
        assert result == '{"severity":"INFO","message":"test"}'

    def test_utf8_kept(self):
        result = safe_dumps({"message": "café ☃"})
        assert "café ☃" in result

    def test_lone_surrogate_escaped(self):
        result = safe_dumps({"path": "/tmp/caf\udce9", "message": "café"})
        result.encode("utf-8")
        assert "\\udce9" in result
        assert json.loads(result) == {"path": "/tmp/caf\udce9", "message": "café"}

    def test_round_trip(self, base_record):
        base_record["data"] = {"ids": [1, 2, 3], "ok": True, "none": None}
        base_record["req"] = {"method": "GET", "url": "/x", "headers": {"a": "b"}}
        entry = format_entry(base_record)
        assert json.loads(safe_dumps(entry)) == entry


class TestNonFiniteNumbers:
    def test_nan_written_as_null(self):
        assert format_line({"value": math.nan}) == '{"value":null}\n'

    def test_infinities_written_as_null(self):
        result = _strict_loads(safe_dumps({"up": math.inf, "down": -math.inf, "ok": 1.5}))
        assert result == {"up": None, "down": None, "ok": 1.5}

    def test_nested_nan(self, base_record):
        base_record["metrics"] = {"latency": [0.5, float("nan")]}
        result = _strict_loads(safe_dumps(format_entry(base_record)))
        assert result["metrics"] == {"latency": [0.5, None]}


class TestCycleTolerantEncoding:
    def test_self_reference(self):
        entry = {"message": "loop"}
        entry["self"] = entry
        result = safe_dumps(entry)
        assert CIRCULAR_MARKER in result
        assert json.loads(result) == {"message": "loop", "self": CIRCULAR_MARKER}

    def test_cycle_through_list(self):
        items = []
        items.append(items)
        result = json.loads(safe_dumps({"items": items}))
        assert result == {"items": [CIRCULAR_MARKER]}

    def test_shared_reference_is_not_a_cycle(self):
        shared = {"id": 1}
        entry = {"a": shared, "b": shared, "loop": None}
        entry["loop"] = entry
        result = json.loads(safe_dumps(entry))
        assert result["a"] == {"id": 1}
        assert result["b"] == {"id": 1}
        assert result["loop"] == CIRCULAR_MARKER

    def test_non_json_values_stringified(self):
        when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        result = json.loads(safe_dumps({"when": when, "tags": {"x"}, (1, 2): "tuple-key"}))
        assert result["when"] == str(when)
        assert result["tags"] == ["x"]
        assert result["(1, 2)"] == "tuple-key"

    def test_input_not_mutated(self):
        entry = {"message": "loop"}
        entry["self"] = entry
        safe_dumps(entry)
        assert entry["self"] is entry

    def test_formatted_entry_with_cycle(self, base_record):
        base_record["ctx"] = {}
        base_record["ctx"]["parent"] = base_record["ctx"]
        result = json.loads(safe_dumps(format_entry(base_record)))
        assert result["severity"] == "INFO"
        assert result["ctx"] == {"parent": CIRCULAR_MARKER}


class TestDiagnosticFallback:
    def test_hostile_value_never_raises(self):
        result = safe_dumps({"message": "x", "bad": Unprintable()})
        assert isinstance(result, str)
        assert result.startswith("(Exception in JSON serialization of log entry:")
        assert "str exploded" in result

    def test_deep_nesting(self):
        entry: dict = {}
        node = entry
        for _ in range(100000):
            node["n"] = {}
            node = node["n"]
        assert isinstance(safe_dumps(entry), str)


class TestFormatLine:
    def test_single_newline(self):
        line = format_line({"message": "hello"})
        assert line.endswith("\n")
        assert line.count("\n") == 1

    def test_message_newlines_escaped(self):
        line = format_line({"message": "a\nb"})
        assert line.count("\n") == 1
        assert json.loads(line)["message"] == "a\nb"

    def test_fallback_line_terminated(self):
        line = format_line({"bad": Unprintable()})
        assert line.endswith("\n")
