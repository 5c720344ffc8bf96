"""Flattening of datastream and control-stream schemas.

CSAPI serves a datastream schema as ``{"obsFormat", "resultSchema" or
"recordSchema", "encoding"?}`` and a control-stream schema as
``{"commandFormat", "parametersSchema" or "recordSchema", "encoding"?}``.
A bare data component is accepted too.  ``schema_fields`` lists the leaf
components with dotted paths, which is what a table or chart consumer
needs to lay out columns.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from csapi_formats.core.exceptions import ComponentParseError
from csapi_formats.models.components import (
    BLOCK_KINDS,
    ComponentKind,
    DataComponent,
    NamedComponent,
)

SCHEMA_KEYS = ("resultSchema", "parametersSchema", "recordSchema")

_TIME_DEFINITION_SUFFIXES = ("/SamplingTime", "/PhenomenonTime", "/IssueTime", "/ResultTime")


def schema_document_parts(data: Mapping[str, Any]) -> tuple[str | None, Any, Any, dict[str, Any]]:
    """Split a schema document into (schema key, component, encoding, other members).

    A mapping with a component ``type`` is itself the component; its
    schema key is ``None``.

    Raises:
        ComponentParseError: If no schema member is present.
    """
    if "type" in data and not any(key in data for key in SCHEMA_KEYS):
        return None, data, None, {}
    for key in SCHEMA_KEYS:
        if key in data:
            rest = {k: v for k, v in data.items() if k not in (key, "encoding")}
            return key, data[key], data.get("encoding"), rest
    raise ComponentParseError(f"Schema document must contain one of: {', '.join(SCHEMA_KEYS)}")


def _children(component: DataComponent) -> tuple[NamedComponent, ...]:
    kind = component.kind
    if kind is ComponentKind.DATA_RECORD:
        return component.fields  # type: ignore[union-attr]
    if kind is ComponentKind.VECTOR:
        return component.coordinates  # type: ignore[union-attr]
    if kind is ComponentKind.DATA_CHOICE:
        return component.items  # type: ignore[union-attr]
    return ()


def schema_fields(component: DataComponent, prefix: str = "") -> list[dict[str, Any]]:
    """Leaf components of *component*, depth first.

    Each entry has ``path``, ``type``, ``definition`` and ``label``, plus
    ``uom`` when the leaf has a unit.  Block components contribute the
    leaves of their element type; references contribute an ``href`` entry.
    """
    if component.kind in BLOCK_KINDS:
        element = component.element_type  # type: ignore[union-attr]
        if element.component is None:
            return [{"path": prefix, "href": element.href}]
        return schema_fields(element.component, prefix)

    children = _children(component)
    if not children:
        entry: dict[str, Any] = {
            "path": prefix,
            "type": component.kind.value,
            "definition": component.definition,
            "label": component.label,
        }
        uom = getattr(component, "uom", None)
        if uom is not None:
            entry["uom"] = uom.to_dict()
        return [entry]

    out: list[dict[str, Any]] = []
    for child in children:
        path = f"{prefix}.{child.name}" if prefix else str(child.name)
        if child.component is None:
            out.append({"path": path, "href": child.href})
        else:
            out.extend(schema_fields(child.component, path))
    return out


def observed_definitions(fields: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Property references for every non-time leaf, in schema order."""
    seen: set[str] = set()
    refs: list[dict[str, Any]] = []
    for entry in fields:
        definition = entry.get("definition")
        if not definition or entry.get("type") == "Time" or definition.endswith(_TIME_DEFINITION_SUFFIXES):
            continue
        if definition in seen:
            continue
        seen.add(definition)
        refs.append({"definition": definition, "label": entry.get("label")})
    return refs
