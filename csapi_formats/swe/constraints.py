"""Value-level constraint checks for simple and range components.

Each ``validate_*_constraint`` function takes a structurally valid
component and a candidate value and returns a list of ``ValidationIssue``
(empty when the value is acceptable).  Issue paths are relative to the
component: ``value``, ``value[0]`` / ``value[1]`` for range endpoints, or
``constraint.pattern`` for an unusable regular expression.

A missing constraint object accepts any value, with one exception: Count
values must always be integers.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from csapi_formats.models.components import (
    CategoryComponent,
    CategoryRangeComponent,
    ComponentKind,
    CountComponent,
    CountRangeComponent,
    DataComponent,
    QuantityComponent,
    QuantityRangeComponent,
    RangeComponent,
    TextComponent,
    TimeComponent,
    TimeRangeComponent,
)
from csapi_formats.models.issues import ValidationIssue

_VALUE = "value"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numeric_values(values: Sequence[Any]) -> list[float]:
    out: list[float] = []
    for v in values:
        try:
            out.append(float(v))
        except (TypeError, ValueError):
            continue
    return out


def _format_intervals(intervals: Sequence[Sequence[Any]]) -> str:
    return json.dumps([list(pair) for pair in intervals])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def significant_figures(value: float) -> int:
    """Count significant digits the way a decimal literal would show them.

    The sign, leading zeros and the decimal point are ignored; trailing
    zeros of an integral value count.  Exponent notation counts only the
    mantissa digits.
    """
    if not math.isfinite(value):
        msg = f"Cannot count significant figures of {value}"
        raise ValueError(msg)
    if value == 0:
        return 1
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        value = int(value)
    text = repr(abs(value)).lower()
    mantissa = text.split("e", 1)[0]
    digits = mantissa.replace(".", "").lstrip("0")
    return len(digits) or 1


def to_timestamp(value: Any) -> float | None:
    """Normalise a time value to epoch milliseconds.

    Numbers pass through unchanged.  Strings are parsed as ISO 8601;
    values without an offset are read as UTC.  Returns ``None`` when the
    value cannot be parsed.
    """
    if _is_number(value):
        return float(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp() * 1000.0


# ---------------------------------------------------------------------------
# Simple components
# ---------------------------------------------------------------------------


def validate_quantity_constraint(
    component: QuantityComponent | QuantityRangeComponent,
    value: Any,
) -> list[ValidationIssue]:
    """Check interval, allowed-value and significant-figure rules."""
    constraint = component.constraint
    if constraint is None:
        return []
    if not _is_number(value):
        return [ValidationIssue(f"Value {value!r} is not a number", _VALUE)]

    issues: list[ValidationIssue] = []
    if constraint.intervals and not any(lo <= value <= hi for lo, hi in constraint.intervals):
        issues.append(
            ValidationIssue(
                f"Value {value} is outside allowed intervals: {_format_intervals(constraint.intervals)}",
                _VALUE,
            )
        )

    if constraint.values:
        allowed = _numeric_values(constraint.values)
        if float(value) not in allowed:
            issues.append(ValidationIssue(f"Value {value} is not in allowed values list", _VALUE))

    if constraint.significant_figures and math.isfinite(value):
        actual = significant_figures(value)
        if actual > constraint.significant_figures:
            issues.append(
                ValidationIssue(
                    f"Value {value} has {actual} significant figures, "
                    f"maximum allowed is {constraint.significant_figures}",
                    _VALUE,
                )
            )
    return issues


def validate_count_constraint(
    component: CountComponent | CountRangeComponent,
    value: Any,
) -> list[ValidationIssue]:
    """Reject non-integers, then check interval and allowed-value rules."""
    if not _is_number(value) or (isinstance(value, float) and not value.is_integer()):
        return [ValidationIssue(f"Count value {value} must be an integer", _VALUE)]
    constraint = component.constraint
    if constraint is None:
        return []

    issues: list[ValidationIssue] = []
    if constraint.intervals and not any(lo <= value <= hi for lo, hi in constraint.intervals):
        issues.append(
            ValidationIssue(
                f"Value {value} is outside allowed intervals: {_format_intervals(constraint.intervals)}",
                _VALUE,
            )
        )
    if constraint.values:
        if value not in _numeric_values(constraint.values):
            issues.append(ValidationIssue(f"Value {value} is not in allowed values list", _VALUE))
    return issues


def validate_text_constraint(component: TextComponent, value: Any) -> list[ValidationIssue]:
    """Check token membership and the regular-expression pattern."""
    constraint = component.constraint
    if constraint is None:
        return []
    if not isinstance(value, str):
        return [ValidationIssue(f"Text value {value!r} must be a string", _VALUE)]

    issues: list[ValidationIssue] = []
    if constraint.values and value not in constraint.values:
        issues.append(
            ValidationIssue(
                f"Text value '{value}' is not in allowed tokens: {', '.join(constraint.values)}",
                _VALUE,
            )
        )
    if constraint.pattern:
        try:
            regex = re.compile(constraint.pattern)
        except re.error:
            issues.append(ValidationIssue(f"Invalid regex pattern: {constraint.pattern}", "constraint.pattern"))
        else:
            if regex.search(value) is None:
                issues.append(
                    ValidationIssue(
                        f"Text value '{value}' does not match required pattern: {constraint.pattern}",
                        _VALUE,
                    )
                )
    return issues


def validate_category_constraint(
    component: CategoryComponent | CategoryRangeComponent,
    value: Any,
) -> list[ValidationIssue]:
    constraint = component.constraint
    if constraint is None or not constraint.values:
        return []
    if value not in constraint.values:
        return [
            ValidationIssue(
                f"Category value '{value}' is not in allowed tokens: {', '.join(constraint.values)}",
                _VALUE,
            )
        ]
    return []


def validate_time_constraint(
    component: TimeComponent | TimeRangeComponent,
    value: Any,
) -> list[ValidationIssue]:
    """Normalise *value* to a timestamp and check intervals and allowed instants."""
    constraint = component.constraint
    if constraint is None:
        return []

    timestamp = to_timestamp(value)
    if timestamp is None:
        return [ValidationIssue(f"Invalid time value: {value}", _VALUE)]

    issues: list[ValidationIssue] = []
    if constraint.intervals:
        bounds = [(to_timestamp(lo), to_timestamp(hi)) for lo, hi in constraint.intervals]
        inside = any(
            lo is not None and hi is not None and lo <= timestamp <= hi for lo, hi in bounds
        )
        if not inside:
            issues.append(
                ValidationIssue(
                    f"Time value {value} is outside allowed intervals: "
                    f"{_format_intervals(constraint.intervals)}",
                    _VALUE,
                )
            )
    if constraint.values:
        allowed = [to_timestamp(v) for v in constraint.values]
        if timestamp not in allowed:
            issues.append(
                ValidationIssue(
                    f"Time value {value} is not in allowed values: "
                    f"{', '.join(str(v) for v in constraint.values)}",
                    _VALUE,
                )
            )
    return issues


# ---------------------------------------------------------------------------
# Range components
# ---------------------------------------------------------------------------

def validate_range_constraint(component: RangeComponent, value: Any) -> list[ValidationIssue]:
    """Validate both endpoints with the simple rule and enforce ``min <= max``."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return [ValidationIssue("Range value must be a [min, max] array", _VALUE)]

    low, high = value
    check = _ENDPOINT_CHECKS[component.kind]
    issues: list[ValidationIssue] = []
    for index, (label, endpoint) in enumerate((("Min", low), ("Max", high))):
        for issue in check(component, endpoint):
            issues.append(ValidationIssue(f"{label} {issue.message}", f"value[{index}]"))

    if component.kind is ComponentKind.TIME_RANGE:
        low_key, high_key = to_timestamp(low), to_timestamp(high)
    else:
        low_key = low if _is_number(low) else None
        high_key = high if _is_number(high) else None
    if low_key is not None and high_key is not None and low_key > high_key:
        issues.append(
            ValidationIssue(
                f"Range minimum must be less than or equal to maximum (got [{low}, {high}])",
                _VALUE,
            )
        )
    return issues


_ENDPOINT_CHECKS = {
    ComponentKind.QUANTITY_RANGE: validate_quantity_constraint,
    ComponentKind.COUNT_RANGE: validate_count_constraint,
    ComponentKind.TIME_RANGE: validate_time_constraint,
    ComponentKind.CATEGORY_RANGE: validate_category_constraint,
}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_SIMPLE_CHECKS = {
    ComponentKind.QUANTITY: validate_quantity_constraint,
    ComponentKind.COUNT: validate_count_constraint,
    ComponentKind.TEXT: validate_text_constraint,
    ComponentKind.CATEGORY: validate_category_constraint,
    ComponentKind.TIME: validate_time_constraint,
}


def validate_value(component: DataComponent, value: Any) -> list[ValidationIssue]:
    """Run the constraint check matching *component*'s kind.

    An absent value is always valid.  Kinds without value-level rules
    (Boolean, aggregates, blocks, Geometry) return no issues here.
    """
    if value is None:
        return []
    if component.kind in _ENDPOINT_CHECKS:
        return validate_range_constraint(component, value)  # type: ignore[arg-type]
    check = _SIMPLE_CHECKS.get(component.kind)
    if check is None:
        return []
    return check(component, value)  # type: ignore[arg-type]
