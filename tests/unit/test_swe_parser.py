"""Tests for the SWE Common structural parser.

Covers:
- Dispatch on ``type`` for every component family
- Structural rules (required attributes, names, counts)
- Error paths at depths 1 to 4
- Re-serialisation to the source shape
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from csapi_formats.core.exceptions import ComponentParseError
from csapi_formats.models.components import (
    ComponentKind,
    DataArrayComponent,
    DataRecordComponent,
    QuantityComponent,
)
from csapi_formats.models.encodings import BinaryEncoding
from csapi_formats.swe.parser import parse_data_component


def _quantity(**extra: Any) -> dict[str, Any]:
    return {
        "type": "Quantity",
        "definition": "http://example.org/def/q",
        "label": "Q",
        "uom": {"code": "m"},
        **extra,
    }


def _record(*fields: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "DataRecord",
        "definition": "http://example.org/def/r",
        "label": "R",
        "fields": list(fields),
    }


class TestDispatch:
    def test_quantity(self, quantity: dict[str, Any]) -> None:
        component = parse_data_component(quantity)
        assert isinstance(component, QuantityComponent)
        assert component.kind is ComponentKind.QUANTITY
        assert component.uom.code == "Cel"

    def test_record_children(self, weather_record: dict[str, Any]) -> None:
        component = parse_data_component(weather_record)
        assert isinstance(component, DataRecordComponent)
        assert [f.name for f in component.fields] == ["time", "temperature", "status"]
        status = component.field_named("status")
        assert status is not None and status.component is not None
        assert status.component.constraint.values == ("ok", "degraded", "offline")  # type: ignore[union-attr]

    def test_unknown_type(self) -> None:
        with pytest.raises(ComponentParseError, match="Unknown or unsupported component type: Blob"):
            parse_data_component({"type": "Blob", "definition": "d", "label": "l"})

    def test_missing_type(self) -> None:
        with pytest.raises(ComponentParseError, match="must have a type property"):
            parse_data_component({"definition": "d", "label": "l"})

    def test_not_an_object(self) -> None:
        with pytest.raises(ComponentParseError, match="must be an object"):
            parse_data_component(["Quantity"])

    def test_flat_named_field(self) -> None:
        record = _record({"name": "depth", **_quantity()})
        component = parse_data_component(record)
        named = component.fields[0]  # type: ignore[union-attr]
        assert named.flat is True
        assert named.component.kind is ComponentKind.QUANTITY

    def test_href_field(self) -> None:
        record = _record({"name": "ext", "href": "http://example.org/schemas/ext.json"})
        named = parse_data_component(record).fields[0]  # type: ignore[union-attr]
        assert named.is_reference
        assert named.href == "http://example.org/schemas/ext.json"

    def test_block_with_encoding(self, temperature_binary_encoding: dict[str, Any]) -> None:
        array = {
            "type": "DataArray",
            "definition": "http://example.org/def/a",
            "label": "A",
            "elementCount": {"type": "Count", "value": 2},
            "elementType": {"name": "t", "component": _quantity()},
            "encoding": temperature_binary_encoding,
            "values": "QbwAAEG8AAA=",
        }
        component = parse_data_component(array)
        assert isinstance(component, DataArrayComponent)
        assert component.element_count.value == 2
        assert isinstance(component.encoding, BinaryEncoding)
        assert component.values == "QbwAAEG8AAA="


class TestStructuralRules:
    def test_empty_fields_rejected(self) -> None:
        with pytest.raises(ComponentParseError, match="at least one field"):
            parse_data_component(_record())

    def test_quantity_requires_uom(self) -> None:
        data = _quantity()
        del data["uom"]
        with pytest.raises(ComponentParseError, match="requires uom"):
            parse_data_component(data)

    def test_uom_needs_code_or_href(self) -> None:
        with pytest.raises(ComponentParseError, match="uom must have code or href"):
            parse_data_component(_quantity(uom={"symbol": "m"}))

    def test_label_required(self) -> None:
        data = _quantity()
        del data["label"]
        with pytest.raises(ComponentParseError, match="must have a label string"):
            parse_data_component(data)

    def test_duplicate_field_names(self) -> None:
        record = _record(
            {"name": "a", "component": _quantity()},
            {"name": "a", "component": _quantity()},
        )
        with pytest.raises(ComponentParseError, match="Duplicate field name 'a'") as exc_info:
            parse_data_component(record)
        assert exc_info.value.path == "fields[1]"

    def test_invalid_field_name(self) -> None:
        with pytest.raises(ComponentParseError, match="Invalid field name '1st'"):
            parse_data_component(_record({"name": "1st", "component": _quantity()}))

    def test_field_without_component_or_href(self) -> None:
        with pytest.raises(ComponentParseError, match="either component or href"):
            parse_data_component(_record({"name": "a"}))

    def test_vector_rejects_aggregate_coordinates(self) -> None:
        vector = {
            "type": "Vector",
            "definition": "d",
            "label": "V",
            "coordinates": [{"name": "x", "component": _record({"name": "q", "component": _quantity()})}],
        }
        with pytest.raises(ComponentParseError, match="simple components"):
            parse_data_component(vector)

    def test_array_requires_element_count(self) -> None:
        array = {"type": "DataArray", "definition": "d", "label": "A", "elementType": {"name": "x", **_quantity()}}
        with pytest.raises(ComponentParseError, match="requires elementCount"):
            parse_data_component(array)

    def test_negative_element_count(self) -> None:
        array = {
            "type": "DataArray",
            "definition": "d",
            "label": "A",
            "elementCount": -1,
            "elementType": {"name": "x", **_quantity()},
        }
        with pytest.raises(ComponentParseError, match="must not be negative"):
            parse_data_component(array)

    def test_constraint_interval_shape(self) -> None:
        with pytest.raises(ComponentParseError, match=r"\[min, max\] pair") as exc_info:
            parse_data_component(_quantity(constraint={"intervals": [[1, 2, 3]]}))
        assert exc_info.value.path == "constraint.intervals[0]"

    def test_boolean_value_type(self) -> None:
        with pytest.raises(ComponentParseError, match="true or false"):
            parse_data_component({"type": "Boolean", "definition": "d", "label": "B", "value": "yes"})

    def test_unknown_encoding_type(self) -> None:
        stream = {
            "type": "DataStream",
            "definition": "d",
            "label": "S",
            "elementType": {"name": "x", **_quantity()},
            "encoding": {"type": "YamlEncoding"},
        }
        with pytest.raises(ComponentParseError) as exc_info:
            parse_data_component(stream)
        assert exc_info.value.path is not None
        assert exc_info.value.path.startswith("encoding")


class TestErrorPaths:
    """The path names the first offending node, however deep."""

    def test_depth_one(self) -> None:
        bad = _quantity()
        del bad["uom"]
        with pytest.raises(ComponentParseError) as exc_info:
            parse_data_component(_record({"name": "a", "component": bad}))
        assert exc_info.value.path == "fields[0].component"

    def test_depth_two(self) -> None:
        bad = _quantity()
        del bad["uom"]
        inner = _record({"name": "ok", "component": _quantity()}, {"name": "bad", "component": bad})
        with pytest.raises(ComponentParseError) as exc_info:
            parse_data_component(_record({"name": "inner", "component": inner}))
        assert exc_info.value.path == "fields[0].component.fields[1].component"

    def test_depth_three_through_array(self) -> None:
        array = {
            "type": "DataArray",
            "definition": "d",
            "label": "A",
            "elementCount": 3,
            "elementType": {"name": "row", "component": _record()},
        }
        with pytest.raises(ComponentParseError, match="at least one field") as exc_info:
            parse_data_component(_record({"name": "a", "component": _record({"name": "arr", "component": array})}))
        assert exc_info.value.path == "fields[0].component.fields[0].component.elementType.component"

    def test_depth_four_constraint(self) -> None:
        leaf = _quantity(constraint={"intervals": "wide"})
        level3 = _record({"name": "c", "component": leaf})
        level2 = _record({"name": "b", "component": level3})
        level1 = _record({"name": "a", "component": level2})
        with pytest.raises(ComponentParseError) as exc_info:
            parse_data_component(level1)
        assert exc_info.value.path == (
            "fields[0].component.fields[0].component.fields[0].component.constraint.intervals"
        )

    def test_path_in_message(self) -> None:
        with pytest.raises(ComponentParseError, match=r"\(at fields\[0\]\)"):
            parse_data_component(_record({"component": _quantity()}))


class TestRoundTrip:
    def test_record_round_trip(self, weather_record: dict[str, Any]) -> None:
        original = copy.deepcopy(weather_record)
        assert parse_data_component(weather_record).to_dict() == original

    def test_vector_round_trip(self, location_vector: dict[str, Any]) -> None:
        assert parse_data_component(location_vector).to_dict() == location_vector

    def test_reparse_is_stable(self, weather_record: dict[str, Any]) -> None:
        once = parse_data_component(weather_record)
        assert parse_data_component(once.to_dict()) == once

    def test_unknown_attributes_survive(self) -> None:
        data = _quantity(updatable=False, nilValues=[{"reason": "missing", "value": -999}])
        assert parse_data_component(data).to_dict() == data

    def test_array_round_trip(self) -> None:
        array = {
            "type": "DataArray",
            "definition": "d",
            "label": "A",
            "elementCount": {"type": "Count", "value": 2},
            "elementType": {"name": "depth", "component": _quantity()},
            "values": [1.5, 2.5],
        }
        assert parse_data_component(array).to_dict() == array


_ISO = {"href": "http://www.opengis.net/def/uom/ISO-8601/0/Gregorian"}


def _simple(kind: str, **extra: Any) -> dict[str, Any]:
    return {"type": kind, "definition": f"http://example.org/def/{kind.lower()}", "label": kind, **extra}


ONE_PER_KIND: dict[ComponentKind, dict[str, Any]] = {
    ComponentKind.BOOLEAN: _simple("Boolean", value=True),
    ComponentKind.TEXT: _simple("Text", constraint={"pattern": "^[A-Z]{3}$"}, value="ABC"),
    ComponentKind.CATEGORY: _simple("Category", codeSpace="http://example.org/codes", value="ok"),
    ComponentKind.COUNT: _simple("Count", constraint={"intervals": [[0, 10]]}, value=3),
    ComponentKind.QUANTITY: _simple(
        "Quantity", uom={"code": "m"}, constraint={"values": [1.5, 2.5], "significantFigures": 2}
    ),
    ComponentKind.TIME: _simple("Time", uom=_ISO, referenceTime="2024-01-01T00:00:00Z", value="2024-06-01T00:00:00Z"),
    ComponentKind.CATEGORY_RANGE: _simple(
        "CategoryRange", codeSpace={"href": "http://example.org/codes"}, constraint={"values": ["a", "b"]}, value=["a", "b"]
    ),
    ComponentKind.COUNT_RANGE: _simple("CountRange", value=[1, 5]),
    ComponentKind.QUANTITY_RANGE: _simple("QuantityRange", uom={"code": "Cel"}, value=[-5.0, 30.0]),
    ComponentKind.TIME_RANGE: _simple(
        "TimeRange",
        uom=_ISO,
        constraint={"intervals": [["2024-01-01T00:00:00Z", "2025-01-01T00:00:00Z"]]},
        value=["2024-02-01T00:00:00Z", "2024-03-01T00:00:00Z"],
    ),
    ComponentKind.DATA_RECORD: _record({"name": "depth", "component": _quantity()}),
    ComponentKind.VECTOR: _simple(
        "Vector",
        referenceFrame="http://www.opengis.net/def/crs/EPSG/0/4979",
        coordinates=[{"name": "lat", "component": _quantity()}, {"name": "lon", "component": _quantity()}],
    ),
    ComponentKind.DATA_CHOICE: _simple(
        "DataChoice",
        items=[{"name": "depth", "component": _quantity()}, {"name": "note", "component": _simple("Text")}],
    ),
    ComponentKind.DATA_ARRAY: _simple(
        "DataArray",
        elementCount={"type": "Count", "value": 2},
        elementType={"name": "depth", "component": _quantity()},
        values=[1.0, 2.0],
    ),
    ComponentKind.MATRIX: _simple(
        "Matrix",
        rowCount=2,
        columnCount=2,
        elementCount=4,
        elementType={"name": "cell", "component": _quantity()},
        values=[1.0, 0.0, 0.0, 1.0],
    ),
    ComponentKind.DATA_STREAM: _simple(
        "DataStream",
        elementType={"name": "depth", "component": _quantity()},
        encoding={"type": "TextEncoding", "tokenSeparator": ",", "blockSeparator": "\n"},
    ),
    ComponentKind.GEOMETRY: _simple(
        "Geometry",
        srs="http://www.opengis.net/def/crs/EPSG/0/4326",
        value={"type": "Point", "coordinates": [5.0, 45.0]},
    ),
}


class TestRoundTripEveryKind:
    def test_table_covers_every_kind(self) -> None:
        assert set(ONE_PER_KIND) == set(ComponentKind)

    @pytest.mark.parametrize("kind", list(ComponentKind), ids=lambda k: k.value)
    def test_reparse_equals(self, kind: ComponentKind) -> None:
        component = parse_data_component(copy.deepcopy(ONE_PER_KIND[kind]))
        assert component.kind is kind
        assert parse_data_component(component.to_dict()) == component

    def test_string_code_space_is_kept(self) -> None:
        component = parse_data_component(ONE_PER_KIND[ComponentKind.CATEGORY])
        assert component.code_space == "http://example.org/codes"  # type: ignore[union-attr]
        assert parse_data_component(component.to_dict()).code_space == "http://example.org/codes"  # type: ignore[union-attr]


class TestConstraintShapes:
    def test_numeric_values_message(self) -> None:
        with pytest.raises(ComponentParseError, match="constraint values must be numbers or strings") as exc_info:
            parse_data_component(_quantity(constraint={"values": [1, None]}))
        assert exc_info.value.path == "constraint.values"

    @pytest.mark.parametrize("figures", [0, -2, 1.5, True, "3"])
    def test_time_significant_figures(self, figures: Any) -> None:
        time = _simple("Time", uom=_ISO, constraint={"significantFigures": figures})
        with pytest.raises(ComponentParseError, match="significantFigures must be a positive integer") as exc_info:
            parse_data_component(time)
        assert exc_info.value.path == "constraint.significantFigures"

    def test_time_significant_figures_kept(self) -> None:
        time = parse_data_component(_simple("Time", uom=_ISO, constraint={"significantFigures": 4}))
        assert time.constraint.significant_figures == 4  # type: ignore[union-attr]
