"""Tests for SensorML validation and conversion to canonical records."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from csapi_formats.sensorml import (
    flatten_properties,
    sensorml_to_record,
    validate_deployment,
    validate_derived_property,
    validate_sensorml_process,
)


class TestProcessValidation:
    def test_valid_physical_system(self, physical_system: dict[str, Any]) -> None:
        result = validate_sensorml_process(physical_system)
        assert result.valid
        assert result.warnings == []

    def test_missing_type(self) -> None:
        result = validate_sensorml_process({"id": "p", "label": "P"})
        assert result.errors == ["Missing required property: type"]

    def test_unknown_type(self) -> None:
        result = validate_sensorml_process({"type": "Sensor", "id": "p", "label": "P"})
        assert result.errors == ["Unknown process type: Sensor"]

    def test_identification_warnings(self) -> None:
        result = validate_sensorml_process({"type": "SimpleProcess"})
        assert result.valid
        assert result.warnings == [
            "Object should have uniqueId or id for identification",
            "Object should have label or description for clarity",
        ]

    def test_array_members(self, physical_system: dict[str, Any]) -> None:
        physical_system["keywords"] = "buoy"
        physical_system["outputs"] = {"name": "x"}
        result = validate_sensorml_process(physical_system)
        assert "keywords must be an array" in result.errors
        assert "outputs must be an array" in result.errors

    def test_position_must_be_object(self, physical_system: dict[str, Any]) -> None:
        physical_system["position"] = "rooftop"
        assert validate_sensorml_process(physical_system).errors == ["position must be an object"]

    def test_empty_aggregate_warns(self) -> None:
        doc = {"type": "AggregateProcess", "id": "a", "label": "A", "components": []}
        assert validate_sensorml_process(doc).warnings == ["AggregateProcess has no components"]

    def test_not_an_object(self) -> None:
        assert validate_sensorml_process([]).errors == ["SensorML process must be an object"]


class TestDeploymentValidation:
    def test_valid(self, deployment_doc: dict[str, Any]) -> None:
        assert validate_deployment(deployment_doc).valid

    def test_no_time_or_location(self, deployment_doc: dict[str, Any]) -> None:
        del deployment_doc["validTime"]
        del deployment_doc["location"]
        assert validate_deployment(deployment_doc).warnings == ["Deployment should have validTime or location"]

    def test_deployed_systems_shape(self, deployment_doc: dict[str, Any]) -> None:
        deployment_doc["deployedSystems"] = {"system": "x"}
        assert validate_deployment(deployment_doc).errors == ["deployedSystems must be an array"]

    def test_no_deployed_systems(self, deployment_doc: dict[str, Any]) -> None:
        deployment_doc["deployedSystems"] = []
        assert validate_deployment(deployment_doc).warnings == ["Deployment has no deployed systems"]


class TestDerivedPropertyValidation:
    def test_valid(self) -> None:
        doc = {"type": "DerivedProperty", "label": "Max temp", "baseProperty": "http://qudt.org/vocab/quantitykind/Temperature"}
        assert validate_derived_property(doc).valid

    def test_missing_base(self) -> None:
        assert validate_derived_property({"label": "x"}).errors == ["Missing required property: baseProperty"]

    def test_base_not_a_uri(self) -> None:
        result = validate_derived_property({"baseProperty": "temperature"})
        assert result.valid
        assert result.warnings == ["baseProperty should be a valid URI"]

    def test_urn_base(self) -> None:
        assert validate_derived_property({"baseProperty": "urn:ogc:def:property:temperature"}).warnings == []


class TestFlattenProperties:
    def test_slots_and_order(self, physical_system: dict[str, Any]) -> None:
        props = flatten_properties(physical_system).to_dict()
        assert props["featureType"] == "PhysicalSystem"
        assert props["uid"] == "urn:x-example:system:buoy-7"
        assert props["name"] == "Buoy 7"
        assert props["keywords"] == ["buoy", "waves"]
        assert "position" not in props
        assert "id" not in props

    def test_derived_property_definition(self) -> None:
        doc = {"type": "DerivedProperty", "baseProperty": "http://example.org/p"}
        assert flatten_properties(doc).definition == "http://example.org/p"


class TestSensorMLToRecord:
    def test_position_resolved(self, physical_system: dict[str, Any]) -> None:
        record = sensorml_to_record(physical_system, "System")
        assert record.id == "sys-002"
        assert record.geometry == {"type": "Point", "coordinates": [5.0, 45.0]}
        assert record.geometry_resolved

    def test_no_position_is_explicit_none(self, physical_system: dict[str, Any]) -> None:
        del physical_system["position"]
        record = sensorml_to_record(physical_system, "System")
        assert record.geometry is None
        assert record.geometry_resolved
        assert record.to_dict()["geometry"] is None

    def test_unresolved_position_is_unset(
        self, physical_system: dict[str, Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        physical_system["position"] = {"href": "http://example.org/positions/7"}
        with caplog.at_level(logging.WARNING, logger="csapi_formats.sensorml.conversion"):
            record = sensorml_to_record(physical_system, "System")
        assert not record.geometry_resolved
        assert "geometry" not in record.to_dict()
        assert "Geometry unresolved" in caplog.text

    def test_deployment_location(self, deployment_doc: dict[str, Any]) -> None:
        record = sensorml_to_record(deployment_doc, "Deployment")
        assert record.geometry == {"type": "Point", "coordinates": [10.0, 20.0]}
        assert record.properties.valid_time == ["2024-06-01T00:00:00Z", "2024-09-01T00:00:00Z"]

    def test_simple_process_has_no_location(self) -> None:
        doc = {"type": "SimpleProcess", "id": "proc-1", "position": {"type": "Point", "coordinates": [1, 2]}}
        record = sensorml_to_record(doc, "Procedure")
        assert record.geometry is None
        assert record.geometry_resolved

    def test_numeric_id_becomes_string(self) -> None:
        record = sensorml_to_record({"type": "SimpleProcess", "id": 12}, "Procedure")
        assert record.id == "12"
