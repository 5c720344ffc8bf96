"""Structural parser for SWE Common data components.

Every component kind has one ``parse_<kind>_component(data)`` function
that turns an untyped JSON value into the matching frozen dataclass, or
raises ``ComponentParseError``.  Each function checks, in order:

1. the input is a JSON object;
2. its ``type`` matches the expected kind;
3. the kind-specific required members (``uom``, ``fields`` …);
4. the common ``definition`` / ``label`` strings;
5. inline children, recursively.

A child failure is re-raised with the child's slot prefixed to its path,
so an error deep inside a schema reports the full route from the root,
e.g. ``fields[0].component.elementType.component``.

``parse_data_component`` dispatches on ``type`` through a table keyed by
``ComponentKind``; the module refuses to import if a kind has no parser.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from csapi_formats.core.exceptions import ComponentParseError
from csapi_formats.models.components import (
    SIMPLE_KINDS,
    AllowedTimes,
    AllowedTokens,
    AllowedValues,
    BooleanComponent,
    CategoryComponent,
    CategoryRangeComponent,
    ComponentKind,
    CountComponent,
    CountRangeComponent,
    DataArrayComponent,
    DataChoiceComponent,
    DataComponent,
    DataRecordComponent,
    DataStreamComponent,
    ElementCount,
    GeometryComponent,
    MatrixComponent,
    NamedComponent,
    QuantityComponent,
    QuantityRangeComponent,
    TextComponent,
    TimeComponent,
    TimeRangeComponent,
    UnitReference,
    VectorComponent,
)
from csapi_formats.models.encodings import Encoding, parse_encoding

logger = logging.getLogger("csapi_formats.swe.parser")

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_\-]*$")

_COMMON_KEYS = frozenset({"type", "id", "definition", "label", "description"})


# ---------------------------------------------------------------------------
# Shared checks
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _expect(data: Any, kind: ComponentKind) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ComponentParseError(f"{kind.value} must be an object")
    if data.get("type") != kind.value:
        raise ComponentParseError(f"Expected type '{kind.value}', got '{data.get('type')}'")
    return data


def _common(data: Mapping[str, Any], kind: ComponentKind) -> dict[str, Any]:
    """Validate and collect the attributes every component carries."""
    for key in ("definition", "label"):
        if not isinstance(data.get(key), str):
            raise ComponentParseError(f"{kind.value} must have a {key} string")
    description = data.get("description")
    if description is not None and not isinstance(description, str):
        raise ComponentParseError(f"{kind.value} description must be a string")
    return {
        "definition": data["definition"],
        "label": data["label"],
        "description": description,
        "id": data.get("id"),
    }


def _extras(data: Mapping[str, Any], known: frozenset[str] | set[str]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in _COMMON_KEYS and k not in known}


def _parse_uom(data: Mapping[str, Any], kind: ComponentKind) -> UnitReference:
    uom = data.get("uom")
    if not isinstance(uom, Mapping):
        raise ComponentParseError(f"{kind.value} requires uom with code or href")
    code, href = uom.get("code"), uom.get("href")
    if not (isinstance(code, str) and code) and not (isinstance(href, str) and href):
        raise ComponentParseError(f"{kind.value} uom must have code or href property")
    return UnitReference(
        code=code or None,
        href=href or None,
        symbol=uom.get("symbol"),
        label=uom.get("label"),
    )


def _parse_code_space(data: Mapping[str, Any]) -> str | None:
    code_space = data.get("codeSpace")
    if code_space is None:
        return None
    if isinstance(code_space, Mapping) and isinstance(code_space.get("href"), str):
        return code_space["href"]
    if isinstance(code_space, str):
        return code_space
    raise ComponentParseError("codeSpace must be an href object", "codeSpace")


def _parse_pair(raw: Any, accept: Callable[[Any], bool], path: str) -> tuple[Any, Any]:
    if not isinstance(raw, list) or len(raw) != 2 or not all(accept(v) for v in raw):
        raise ComponentParseError("Interval must be a [min, max] pair", path)
    return raw[0], raw[1]


def _significant_figures(constraint: Mapping[str, Any]) -> int | None:
    figures = constraint.get("significantFigures")
    if figures is not None and (not isinstance(figures, int) or isinstance(figures, bool) or figures < 1):
        raise ComponentParseError(
            "significantFigures must be a positive integer", "constraint.significantFigures"
        )
    return figures


def _parse_allowed_values(data: Mapping[str, Any]) -> AllowedValues | None:
    constraint = data.get("constraint")
    if constraint is None:
        return None
    if not isinstance(constraint, Mapping):
        raise ComponentParseError("constraint must be an object", "constraint")
    values = constraint.get("values", [])
    if not isinstance(values, list) or not all(_is_number(v) or isinstance(v, str) for v in values):
        raise ComponentParseError("constraint values must be numbers or strings", "constraint.values")
    intervals = constraint.get("intervals", [])
    if not isinstance(intervals, list):
        raise ComponentParseError("constraint intervals must be an array", "constraint.intervals")
    figures = _significant_figures(constraint)
    return AllowedValues(
        values=tuple(values),
        intervals=tuple(
            _parse_pair(pair, _is_number, f"constraint.intervals[{i}]")
            for i, pair in enumerate(intervals)
        ),
        significant_figures=figures,
    )


def _parse_allowed_tokens(data: Mapping[str, Any]) -> AllowedTokens | None:
    constraint = data.get("constraint")
    if constraint is None:
        return None
    if not isinstance(constraint, Mapping):
        raise ComponentParseError("constraint must be an object", "constraint")
    values = constraint.get("values", [])
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ComponentParseError("constraint values must be strings", "constraint.values")
    pattern = constraint.get("pattern")
    if pattern is not None and not isinstance(pattern, str):
        raise ComponentParseError("constraint pattern must be a string", "constraint.pattern")
    return AllowedTokens(values=tuple(values), pattern=pattern)


def _parse_allowed_times(data: Mapping[str, Any]) -> AllowedTimes | None:
    constraint = data.get("constraint")
    if constraint is None:
        return None
    if not isinstance(constraint, Mapping):
        raise ComponentParseError("constraint must be an object", "constraint")

    def is_time(value: Any) -> bool:
        return isinstance(value, str) or _is_number(value)

    values = constraint.get("values", [])
    if not isinstance(values, list) or not all(is_time(v) for v in values):
        raise ComponentParseError("constraint values must be times", "constraint.values")
    intervals = constraint.get("intervals", [])
    if not isinstance(intervals, list):
        raise ComponentParseError("constraint intervals must be an array", "constraint.intervals")
    figures = _significant_figures(constraint)
    return AllowedTimes(
        values=tuple(values),
        intervals=tuple(
            _parse_pair(pair, is_time, f"constraint.intervals[{i}]") for i, pair in enumerate(intervals)
        ),
        significant_figures=figures,
    )


def _child(segment: str, parse: Callable[[Any], Any], data: Any) -> Any:
    """Parse a child value, re-rooting any structural error at *segment*."""
    try:
        return parse(data)
    except ComponentParseError as exc:
        raise exc.prefixed(segment) from exc


def _parse_named(
    item: Any,
    owner: ComponentKind,
    segment: str,
    *,
    name_required: bool = True,
) -> NamedComponent:
    """Parse one ``{name, component|href}`` slot.

    A component object that carries ``name`` itself (the flat form some
    servers emit) is accepted too.
    """
    if not isinstance(item, Mapping):
        raise ComponentParseError(f"{owner.value}.{segment} must be an object", segment)
    name = item.get("name")
    if (name is not None or name_required) and not (isinstance(name, str) and name):
        raise ComponentParseError(f"{owner.value}.{segment} must have a name property", segment)

    extras = {k: v for k, v in item.items() if k not in {"name", "component", "href"}}
    if item.get("component") is not None:
        component = _child(f"{segment}.component", parse_data_component, item["component"])
        return NamedComponent(name=name, component=component, extras=extras)
    if isinstance(item.get("href"), str) and item["href"]:
        return NamedComponent(name=name, href=item["href"], extras=extras)
    if isinstance(item.get("type"), str):
        inline = {k: v for k, v in item.items() if k != "name"}
        component = _child(segment, parse_data_component, inline)
        return NamedComponent(name=name, component=component, flat=True)
    raise ComponentParseError(f"{owner.value}.{segment} must have either component or href", segment)


def _named_list(data: Mapping[str, Any], key: str, owner: ComponentKind, noun: str) -> list[Any]:
    items = data.get(key)
    if not isinstance(items, list):
        raise ComponentParseError(f"{owner.value}.{key} must be an array")
    if not items:
        raise ComponentParseError(f"{owner.value} must have at least one {noun}")
    return items


def _parse_element_count(data: Mapping[str, Any], kind: ComponentKind) -> ElementCount:
    raw = data.get("elementCount")
    if raw is None:
        raise ComponentParseError(f"{kind.value} requires elementCount property")
    return _element_count(raw, "elementCount")


def _element_count(raw: Any, key: str) -> ElementCount:
    if isinstance(raw, int) and not isinstance(raw, bool):
        if raw < 0:
            raise ComponentParseError(f"{key} must not be negative", key)
        return ElementCount(value=raw, source=raw)
    if isinstance(raw, Mapping):
        value = raw.get("value")
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return ElementCount(value=value, source=raw)
        if isinstance(raw.get("href"), str):
            return ElementCount(href=raw["href"], source=raw)
        if value is None and raw.get("type") == ComponentKind.COUNT.value:
            # Count without a fixed value: size comes with the data.
            return ElementCount(source=raw)
    raise ComponentParseError(f"{key} must be a non-negative integer, a Count or an href", key)


def _parse_element_type(data: Mapping[str, Any], kind: ComponentKind) -> NamedComponent:
    raw = data.get("elementType")
    if raw is None:
        raise ComponentParseError(f"{kind.value} requires elementType property")
    if not isinstance(raw, Mapping):
        raise ComponentParseError(f"{kind.value}.elementType must be an object", "elementType")
    # elementType names are optional on the wire.
    return _parse_named(raw, kind, "elementType", name_required=False)


def _parse_block_encoding(data: Mapping[str, Any]) -> Encoding | None:
    if data.get("encoding") is None:
        return None
    return _child("encoding", parse_encoding, data["encoding"])


# ---------------------------------------------------------------------------
# Simple components
# ---------------------------------------------------------------------------


def parse_boolean_component(data: Any) -> BooleanComponent:
    data = _expect(data, ComponentKind.BOOLEAN)
    value = data.get("value")
    if value is not None and not isinstance(value, bool):
        raise ComponentParseError("Boolean value must be true or false", "value")
    return BooleanComponent(
        **_common(data, ComponentKind.BOOLEAN),
        value=value,
        extras=_extras(data, {"value"}),
    )


def parse_text_component(data: Any) -> TextComponent:
    data = _expect(data, ComponentKind.TEXT)
    constraint = _parse_allowed_tokens(data)
    return TextComponent(
        **_common(data, ComponentKind.TEXT),
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"constraint", "value"}),
    )


def parse_category_component(data: Any) -> CategoryComponent:
    data = _expect(data, ComponentKind.CATEGORY)
    code_space = _parse_code_space(data)
    constraint = _parse_allowed_tokens(data)
    return CategoryComponent(
        **_common(data, ComponentKind.CATEGORY),
        code_space=code_space,
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"codeSpace", "constraint", "value"}),
    )


def parse_count_component(data: Any) -> CountComponent:
    data = _expect(data, ComponentKind.COUNT)
    constraint = _parse_allowed_values(data)
    return CountComponent(
        **_common(data, ComponentKind.COUNT),
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"constraint", "value"}),
    )


def parse_quantity_component(data: Any) -> QuantityComponent:
    data = _expect(data, ComponentKind.QUANTITY)
    uom = _parse_uom(data, ComponentKind.QUANTITY)
    constraint = _parse_allowed_values(data)
    return QuantityComponent(
        **_common(data, ComponentKind.QUANTITY),
        uom=uom,
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"uom", "constraint", "value"}),
    )


def parse_time_component(data: Any) -> TimeComponent:
    data = _expect(data, ComponentKind.TIME)
    uom = _parse_uom(data, ComponentKind.TIME)
    constraint = _parse_allowed_times(data)
    return TimeComponent(
        **_common(data, ComponentKind.TIME),
        uom=uom,
        reference_time=data.get("referenceTime"),
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"uom", "referenceTime", "constraint", "value"}),
    )


# ---------------------------------------------------------------------------
# Range components
# ---------------------------------------------------------------------------


def parse_category_range_component(data: Any) -> CategoryRangeComponent:
    data = _expect(data, ComponentKind.CATEGORY_RANGE)
    code_space = _parse_code_space(data)
    constraint = _parse_allowed_tokens(data)
    return CategoryRangeComponent(
        **_common(data, ComponentKind.CATEGORY_RANGE),
        code_space=code_space,
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"codeSpace", "constraint", "value"}),
    )


def parse_count_range_component(data: Any) -> CountRangeComponent:
    data = _expect(data, ComponentKind.COUNT_RANGE)
    constraint = _parse_allowed_values(data)
    return CountRangeComponent(
        **_common(data, ComponentKind.COUNT_RANGE),
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"constraint", "value"}),
    )


def parse_quantity_range_component(data: Any) -> QuantityRangeComponent:
    data = _expect(data, ComponentKind.QUANTITY_RANGE)
    uom = _parse_uom(data, ComponentKind.QUANTITY_RANGE)
    constraint = _parse_allowed_values(data)
    return QuantityRangeComponent(
        **_common(data, ComponentKind.QUANTITY_RANGE),
        uom=uom,
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"uom", "constraint", "value"}),
    )


def parse_time_range_component(data: Any) -> TimeRangeComponent:
    data = _expect(data, ComponentKind.TIME_RANGE)
    uom = _parse_uom(data, ComponentKind.TIME_RANGE)
    constraint = _parse_allowed_times(data)
    return TimeRangeComponent(
        **_common(data, ComponentKind.TIME_RANGE),
        uom=uom,
        reference_time=data.get("referenceTime"),
        constraint=constraint,
        value=data.get("value"),
        extras=_extras(data, {"uom", "referenceTime", "constraint", "value"}),
    )


# ---------------------------------------------------------------------------
# Aggregate components
# ---------------------------------------------------------------------------


def parse_data_record_component(data: Any) -> DataRecordComponent:
    kind = ComponentKind.DATA_RECORD
    data = _expect(data, kind)
    raw_fields = _named_list(data, "fields", kind, "field")
    common = _common(data, kind)

    fields: list[NamedComponent] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_fields):
        segment = f"fields[{index}]"
        named = _parse_named(raw, kind, segment)
        if not FIELD_NAME_PATTERN.match(named.name):
            raise ComponentParseError(f"Invalid field name '{named.name}'", segment)
        if named.name in seen:
            raise ComponentParseError(f"Duplicate field name '{named.name}'", segment)
        seen.add(named.name)
        fields.append(named)

    return DataRecordComponent(**common, fields=tuple(fields), extras=_extras(data, {"fields"}))


def parse_vector_component(data: Any) -> VectorComponent:
    kind = ComponentKind.VECTOR
    data = _expect(data, kind)
    raw_coordinates = _named_list(data, "coordinates", kind, "coordinate")
    common = _common(data, kind)

    coordinates: list[NamedComponent] = []
    for index, raw in enumerate(raw_coordinates):
        segment = f"coordinates[{index}]"
        named = _parse_named(raw, kind, segment)
        if named.component is not None and named.component.kind not in SIMPLE_KINDS:
            raise ComponentParseError(
                f"Vector coordinates must be simple components, got {named.component.kind.value}",
                segment,
            )
        coordinates.append(named)

    return VectorComponent(
        **common,
        reference_frame=data.get("referenceFrame"),
        local_frame=data.get("localFrame"),
        coordinates=tuple(coordinates),
        extras=_extras(data, {"referenceFrame", "localFrame", "coordinates"}),
    )


def parse_data_choice_component(data: Any) -> DataChoiceComponent:
    kind = ComponentKind.DATA_CHOICE
    data = _expect(data, kind)
    raw_items = _named_list(data, "items", kind, "item")
    common = _common(data, kind)
    items = tuple(_parse_named(raw, kind, f"items[{i}]") for i, raw in enumerate(raw_items))
    return DataChoiceComponent(**common, items=items, extras=_extras(data, {"items"}))


# ---------------------------------------------------------------------------
# Block components
# ---------------------------------------------------------------------------


def parse_data_array_component(data: Any) -> DataArrayComponent:
    kind = ComponentKind.DATA_ARRAY
    data = _expect(data, kind)
    element_count = _parse_element_count(data, kind)
    if data.get("elementType") is None:
        raise ComponentParseError(f"{kind.value} requires elementType property")
    common = _common(data, kind)
    element_type = _parse_element_type(data, kind)
    return DataArrayComponent(
        **common,
        element_count=element_count,
        element_type=element_type,
        encoding=_parse_block_encoding(data),
        values=data.get("values"),
        extras=_extras(data, {"elementCount", "elementType", "encoding", "values"}),
    )


def parse_matrix_component(data: Any) -> MatrixComponent:
    kind = ComponentKind.MATRIX
    data = _expect(data, kind)
    element_count = _parse_element_count(data, kind)
    if data.get("elementType") is None:
        raise ComponentParseError(f"{kind.value} requires elementType property")
    common = _common(data, kind)
    row_count = _element_count(data["rowCount"], "rowCount") if "rowCount" in data else None
    column_count = (
        _element_count(data["columnCount"], "columnCount") if "columnCount" in data else None
    )
    element_type = _parse_element_type(data, kind)
    return MatrixComponent(
        **common,
        row_count=row_count,
        column_count=column_count,
        element_count=element_count,
        element_type=element_type,
        encoding=_parse_block_encoding(data),
        values=data.get("values"),
        reference_frame=data.get("referenceFrame"),
        local_frame=data.get("localFrame"),
        extras=_extras(
            data,
            {
                "rowCount",
                "columnCount",
                "elementCount",
                "elementType",
                "encoding",
                "values",
                "referenceFrame",
                "localFrame",
            },
        ),
    )


def parse_data_stream_component(data: Any) -> DataStreamComponent:
    kind = ComponentKind.DATA_STREAM
    data = _expect(data, kind)
    if data.get("elementType") is None:
        raise ComponentParseError(f"{kind.value} requires elementType property")
    common = _common(data, kind)
    element_type = _parse_element_type(data, kind)
    return DataStreamComponent(
        **common,
        element_type=element_type,
        encoding=_parse_block_encoding(data),
        values=data.get("values"),
        extras=_extras(data, {"elementType", "encoding", "values"}),
    )


# ---------------------------------------------------------------------------
# Geometry component
# ---------------------------------------------------------------------------


def parse_geometry_component(data: Any) -> GeometryComponent:
    data = _expect(data, ComponentKind.GEOMETRY)
    value = data.get("value")
    if value is not None and not (isinstance(value, Mapping) and isinstance(value.get("type"), str)):
        raise ComponentParseError("Geometry value must be a GeoJSON geometry", "value")
    return GeometryComponent(
        **_common(data, ComponentKind.GEOMETRY),
        value=dict(value) if value is not None else None,
        reference_frame=data.get("srs"),
        extras=_extras(data, {"value", "srs"}),
    )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_PARSERS: dict[ComponentKind, Callable[[Any], DataComponent]] = {
    ComponentKind.BOOLEAN: parse_boolean_component,
    ComponentKind.TEXT: parse_text_component,
    ComponentKind.CATEGORY: parse_category_component,
    ComponentKind.COUNT: parse_count_component,
    ComponentKind.QUANTITY: parse_quantity_component,
    ComponentKind.TIME: parse_time_component,
    ComponentKind.CATEGORY_RANGE: parse_category_range_component,
    ComponentKind.COUNT_RANGE: parse_count_range_component,
    ComponentKind.QUANTITY_RANGE: parse_quantity_range_component,
    ComponentKind.TIME_RANGE: parse_time_range_component,
    ComponentKind.DATA_RECORD: parse_data_record_component,
    ComponentKind.VECTOR: parse_vector_component,
    ComponentKind.DATA_CHOICE: parse_data_choice_component,
    ComponentKind.DATA_ARRAY: parse_data_array_component,
    ComponentKind.MATRIX: parse_matrix_component,
    ComponentKind.DATA_STREAM: parse_data_stream_component,
    ComponentKind.GEOMETRY: parse_geometry_component,
}

_unhandled = set(ComponentKind) - set(_PARSERS)
if _unhandled:
    raise RuntimeError(f"No parser registered for component kinds: {sorted(k.value for k in _unhandled)}")


def parse_data_component(data: Any) -> DataComponent:
    """Parse any data component, dispatching on its ``type``.

    Raises:
        ComponentParseError: If the value is not an object, has no
            ``type``, names an unknown kind, or violates a structural rule
            anywhere in its tree.
    """
    if not isinstance(data, Mapping):
        raise ComponentParseError("Data component must be an object")
    type_name = data.get("type")
    if not isinstance(type_name, str) or not type_name:
        raise ComponentParseError("Data component must have a type property")
    try:
        kind = ComponentKind(type_name)
    except ValueError:
        raise ComponentParseError(f"Unknown or unsupported component type: {type_name}") from None
    logger.debug("Parsing component | kind=%s", kind.value)
    return _PARSERS[kind](data)
