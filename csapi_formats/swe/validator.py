"""Recursive constraint validation over SWE Common component trees.

- ``validate_component`` walks a parsed schema and checks every inline
  ``value`` (and inline JSON ``values`` of block components) against the
  constraints declared next to it.  Paths follow the same scheme as the
  structural parser: ``fields[0].component.value``.
- ``validate_values`` checks a separate value tree (decoded observation
  results, decoded binary/text blocks) against a schema.  Paths use field
  names and element indices: ``location.lat``, ``[3].temperature``.

Both return ``list[ValidationIssue]``; an empty list means valid.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from csapi_formats.models.components import (
    BLOCK_KINDS,
    ComponentKind,
    DataArrayComponent,
    DataComponent,
    NamedComponent,
)
from csapi_formats.models.issues import ValidationIssue
from csapi_formats.swe.constraints import validate_value

logger = logging.getLogger("csapi_formats.swe.validator")


def _children(component: DataComponent) -> list[tuple[str, NamedComponent]]:
    """Named children of an aggregate or block component, with their slot."""
    kind = component.kind
    if kind is ComponentKind.DATA_RECORD:
        return [(f"fields[{i}]", f) for i, f in enumerate(component.fields)]  # type: ignore[union-attr]
    if kind is ComponentKind.VECTOR:
        return [(f"coordinates[{i}]", c) for i, c in enumerate(component.coordinates)]  # type: ignore[union-attr]
    if kind is ComponentKind.DATA_CHOICE:
        return [(f"items[{i}]", item) for i, item in enumerate(component.items)]  # type: ignore[union-attr]
    if kind in BLOCK_KINDS:
        return [("elementType", component.element_type)]  # type: ignore[union-attr]
    return []


def _slot_path(slot: str, named: NamedComponent) -> str:
    return slot if named.flat else f"{slot}.component"


# ---------------------------------------------------------------------------
# Schema walk
# ---------------------------------------------------------------------------


def validate_component(
    component: DataComponent,
    *,
    decode_values: Callable[[DataComponent], Any] | None = None,
) -> list[ValidationIssue]:
    """Validate every inline value in a parsed component tree.

    Args:
        component: Root of a structurally valid tree.
        decode_values: Called for block components whose ``values`` are
            still an encoded string; its result is validated like inline
            JSON values.  Without it, encoded values are skipped.

    Returns:
        All constraint violations found, in document order.
    """
    issues = list(validate_value(component, getattr(component, "value", None)))

    for slot, named in _children(component):
        if named.component is None:
            continue
        prefix = _slot_path(slot, named)
        nested = validate_component(named.component, decode_values=decode_values)
        issues.extend(issue.prefixed(prefix) for issue in nested)

    values = getattr(component, "values", None) if component.kind in BLOCK_KINDS else None
    if decode_values is not None and isinstance(values, (str, bytes)):
        values = decode_values(component)
    if isinstance(values, list):
        block_issues = _validate_block(component, values)
        issues.extend(issue.prefixed("values") for issue in block_issues)

    if issues:
        logger.debug("Component validation found %d issue(s) | kind=%s", len(issues), component.kind.value)
    return issues


# ---------------------------------------------------------------------------
# Value-tree walk
# ---------------------------------------------------------------------------


def _rebase(issue: ValidationIssue) -> ValidationIssue:
    """Drop the leading ``value`` segment of a constraint issue path."""
    if issue.path == "value":
        return ValidationIssue(issue.message)
    if issue.path and issue.path.startswith("value["):
        return ValidationIssue(issue.message, issue.path[len("value") :])
    return issue


def validate_values(component: DataComponent, values: Any) -> list[ValidationIssue]:
    """Validate a value tree against *component*.

    Records are mappings keyed by field name (Vectors may also be ordered
    lists), blocks are lists, DataChoice values are single-key mappings
    naming the selected item.  Fields absent from a record are skipped.
    """
    if values is None:
        return []
    kind = component.kind

    if kind is ComponentKind.DATA_RECORD:
        return _validate_record(component.fields, values, "DataRecord")  # type: ignore[union-attr]
    if kind is ComponentKind.VECTOR:
        coordinates = component.coordinates  # type: ignore[union-attr]
        if isinstance(values, (list, tuple)):
            values = {c.name: v for c, v in zip(coordinates, values)}
        return _validate_record(coordinates, values, "Vector")
    if kind is ComponentKind.DATA_CHOICE:
        return _validate_choice(component.items, values)  # type: ignore[union-attr]
    if kind in BLOCK_KINDS:
        return _validate_block(component, values)
    if kind is ComponentKind.GEOMETRY:
        if not (isinstance(values, Mapping) and isinstance(values.get("type"), str)):
            return [ValidationIssue("Geometry value must be a GeoJSON geometry")]
        return []
    if kind is ComponentKind.BOOLEAN:
        if not isinstance(values, bool):
            return [ValidationIssue(f"Boolean value {values!r} must be true or false")]
        return []
    return [_rebase(issue) for issue in validate_value(component, values)]


def _validate_record(children: tuple[NamedComponent, ...], values: Any, what: str) -> list[ValidationIssue]:
    if not isinstance(values, Mapping):
        return [ValidationIssue(f"Expected an object for {what}, got {type(values).__name__}")]
    issues: list[ValidationIssue] = []
    for child in children:
        if child.component is None or child.name not in values:
            continue
        issues.extend(
            issue.prefixed(child.name) for issue in validate_values(child.component, values[child.name])
        )
    return issues


def _validate_choice(items: tuple[NamedComponent, ...], values: Any) -> list[ValidationIssue]:
    if not isinstance(values, Mapping) or len(values) != 1:
        return [ValidationIssue("DataChoice value must name exactly one item")]
    name, value = next(iter(values.items()))
    for item in items:
        if item.name == name:
            if item.component is None:
                return []
            return [issue.prefixed(name) for issue in validate_values(item.component, value)]
    return [ValidationIssue(f"'{name}' is not a DataChoice item")]


def _validate_block(component: DataComponent, values: Any) -> list[ValidationIssue]:
    if not isinstance(values, (list, tuple)):
        return [ValidationIssue(f"Expected an array for {component.kind.value}, got {type(values).__name__}")]
    issues: list[ValidationIssue] = []
    if isinstance(component, DataArrayComponent):
        expected = component.element_count.value
        if expected is not None and expected != len(values):
            issues.append(ValidationIssue(f"DataArray has {len(values)} values but elementCount is {expected}"))
    element = component.element_type.component  # type: ignore[union-attr]
    if element is None:
        return issues
    for index, item in enumerate(values):
        issues.extend(issue.prefixed(f"[{index}]") for issue in validate_values(element, item))
    return issues

