"""Tests for value-level constraint checks."""

from __future__ import annotations

from typing import Any

import pytest

from csapi_formats.swe.constraints import significant_figures, to_timestamp, validate_value
from csapi_formats.swe.parser import parse_data_component


def _component(kind: str, **extra: Any) -> Any:
    data: dict[str, Any] = {"type": kind, "definition": "http://example.org/def/x", "label": "X", **extra}
    if kind in ("Quantity", "QuantityRange"):
        data.setdefault("uom", {"code": "m"})
    if kind in ("Time", "TimeRange"):
        data.setdefault("uom", {"href": "http://www.opengis.net/def/uom/ISO-8601/0/Gregorian"})
    return parse_data_component(data)


def _messages(component: Any, value: Any) -> list[str]:
    return [issue.message for issue in validate_value(component, value)]


class TestSignificantFigures:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0, 1), (123, 3), (0.00123, 3), (1.5, 2), (-42.125, 5), (100, 3), (1.5e-7, 2)],
    )
    def test_counts(self, value: float, expected: int) -> None:
        assert significant_figures(value) == expected

    def test_rejects_nan(self) -> None:
        with pytest.raises(ValueError):
            significant_figures(float("nan"))


class TestToTimestamp:
    def test_zulu_and_offset_agree(self) -> None:
        assert to_timestamp("2024-01-01T00:00:00Z") == to_timestamp("2024-01-01T01:00:00+01:00")

    def test_naive_is_utc(self) -> None:
        assert to_timestamp("1970-01-01T00:00:01") == 1000.0

    def test_numbers_pass_through(self) -> None:
        assert to_timestamp(1500) == 1500.0

    def test_garbage(self) -> None:
        assert to_timestamp("yesterday") is None


class TestQuantity:
    def test_no_constraint_accepts_anything(self) -> None:
        assert _messages(_component("Quantity"), 1e9) == []

    def test_interval(self) -> None:
        q = _component("Quantity", constraint={"intervals": [[-40, 60]]})
        assert _messages(q, 20.5) == []
        assert _messages(q, 61) == ["Value 61 is outside allowed intervals: [[-40, 60]]"]

    def test_allowed_values(self) -> None:
        q = _component("Quantity", constraint={"values": [1, 2.5]})
        assert _messages(q, 2.5) == []
        assert _messages(q, 3) == ["Value 3 is not in allowed values list"]

    def test_significant_figures(self) -> None:
        q = _component("Quantity", constraint={"significantFigures": 3})
        assert _messages(q, 12.3) == []
        assert _messages(q, 12.34) == ["Value 12.34 has 4 significant figures, maximum allowed is 3"]

    def test_non_number(self) -> None:
        q = _component("Quantity", constraint={"intervals": [[0, 1]]})
        assert _messages(q, "high") == ["Value 'high' is not a number"]

    def test_absent_value_is_valid(self) -> None:
        assert _messages(_component("Quantity", constraint={"intervals": [[0, 1]]}), None) == []


class TestCount:
    def test_integer_required_without_constraint(self) -> None:
        assert _messages(_component("Count"), 2.5) == ["Count value 2.5 must be an integer"]

    def test_integral_float_accepted(self) -> None:
        assert _messages(_component("Count"), 3.0) == []

    def test_interval(self) -> None:
        c = _component("Count", constraint={"intervals": [[0, 10]]})
        assert _messages(c, 11) == ["Value 11 is outside allowed intervals: [[0, 10]]"]


class TestTokens:
    def test_text_pattern(self) -> None:
        t = _component("Text", constraint={"pattern": "^[A-Z]{3}$"})
        assert _messages(t, "ABC") == []
        assert _messages(t, "abc") == ["Text value 'abc' does not match required pattern: ^[A-Z]{3}$"]

    def test_text_bad_pattern_is_reported(self) -> None:
        t = _component("Text", constraint={"pattern": "(["})
        issues = validate_value(t, "x")
        assert issues[0].path == "constraint.pattern"

    def test_category_tokens(self) -> None:
        c = _component("Category", constraint={"values": ["ok", "offline"]})
        assert _messages(c, "ok") == []
        assert _messages(c, "broken") == ["Category value 'broken' is not in allowed tokens: ok, offline"]


class TestTime:
    def test_interval(self) -> None:
        t = _component("Time", constraint={"intervals": [["2024-01-01T00:00:00Z", "2024-12-31T23:59:59Z"]]})
        assert _messages(t, "2024-06-01T12:00:00Z") == []
        assert len(_messages(t, "2025-01-01T00:00:00Z")) == 1

    def test_invalid_time(self) -> None:
        t = _component("Time", constraint={"intervals": [["2024-01-01", "2024-12-31"]]})
        assert _messages(t, "not-a-time") == ["Invalid time value: not-a-time"]


class TestRanges:
    def test_min_greater_than_max_rejected(self) -> None:
        r = _component("QuantityRange")
        messages = _messages(r, [10, 5])
        assert len(messages) == 1
        assert "minimum must be less than or equal to maximum" in messages[0]

    def test_ordered_range_accepted(self) -> None:
        assert _messages(_component("QuantityRange"), [5, 10]) == []

    def test_endpoints_checked_against_constraint(self) -> None:
        r = _component("CountRange", constraint={"intervals": [[0, 100]]})
        issues = validate_value(r, [50, 150])
        assert [i.path for i in issues] == ["value[1]"]
        assert issues[0].message.startswith("Max ")

    def test_time_range_order(self) -> None:
        r = _component("TimeRange")
        messages = _messages(r, ["2024-02-01T00:00:00Z", "2024-01-01T00:00:00Z"])
        assert "minimum must be less than or equal to maximum" in messages[0]

    def test_range_shape(self) -> None:
        assert _messages(_component("QuantityRange"), [1]) == ["Range value must be a [min, max] array"]
