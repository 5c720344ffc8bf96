"""Shared pytest fixtures for the csapi-formats test suite."""

from __future__ import annotations

import copy
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# SWE Common components
# ---------------------------------------------------------------------------

TEMPERATURE: dict[str, Any] = {
    "type": "Quantity",
    "definition": "http://mmisw.org/ont/cf/parameter/air_temperature",
    "label": "Air Temperature",
    "uom": {"code": "Cel"},
}

PHENOMENON_TIME: dict[str, Any] = {
    "type": "Time",
    "definition": "http://www.opengis.net/def/property/OGC/0/SamplingTime",
    "label": "Sampling Time",
    "uom": {"href": "http://www.opengis.net/def/uom/ISO-8601/0/Gregorian"},
}


@pytest.fixture()
def quantity() -> dict[str, Any]:
    """A plain Quantity with a unit code."""
    return copy.deepcopy(TEMPERATURE)


@pytest.fixture()
def weather_record() -> dict[str, Any]:
    """DataRecord of time, temperature and a constrained station status."""
    return {
        "type": "DataRecord",
        "definition": "http://example.org/def/weather",
        "label": "Weather",
        "fields": [
            {"name": "time", "component": copy.deepcopy(PHENOMENON_TIME)},
            {"name": "temperature", "component": copy.deepcopy(TEMPERATURE)},
            {
                "name": "status",
                "component": {
                    "type": "Category",
                    "definition": "http://example.org/def/status",
                    "label": "Status",
                    "constraint": {"values": ["ok", "degraded", "offline"]},
                },
            },
        ],
    }


@pytest.fixture()
def location_vector() -> dict[str, Any]:
    """Lat/lon Vector in EPSG:4326 axis order."""
    return {
        "type": "Vector",
        "definition": "http://www.opengis.net/def/property/OGC/0/SensorLocation",
        "label": "Location",
        "referenceFrame": "http://www.opengis.net/def/crs/EPSG/0/4326",
        "coordinates": [
            {
                "name": "lon",
                "component": {
                    "type": "Quantity",
                    "definition": "http://example.org/def/lon",
                    "label": "Longitude",
                    "uom": {"code": "deg"},
                    "value": 5.0,
                },
            },
            {
                "name": "lat",
                "component": {
                    "type": "Quantity",
                    "definition": "http://example.org/def/lat",
                    "label": "Latitude",
                    "uom": {"code": "deg"},
                    "value": 45.0,
                },
            },
        ],
    }


@pytest.fixture()
def temperature_binary_encoding() -> dict[str, Any]:
    """Single big-endian float32 member."""
    return {
        "type": "BinaryEncoding",
        "byteOrder": "bigEndian",
        "byteEncoding": "base64",
        "members": [{"ref": "temperature", "dataType": "float"}],
    }


@pytest.fixture()
def csv_encoding() -> dict[str, Any]:
    return {
        "type": "TextEncoding",
        "tokenSeparator": ",",
        "blockSeparator": "\n",
        "decimalSeparator": ".",
    }


# ---------------------------------------------------------------------------
# GeoJSON features
# ---------------------------------------------------------------------------


@pytest.fixture()
def system_feature() -> dict[str, Any]:
    """A System published as a GeoJSON Feature."""
    return {
        "type": "Feature",
        "id": "sys-001",
        "geometry": {"type": "Point", "coordinates": [-117.1625, 32.7157]},
        "properties": {
            "featureType": "http://www.w3.org/ns/sosa/System",
            "uid": "urn:x-example:system:weather-001",
            "name": "Harbour Weather Station",
            "description": "Rooftop station",
        },
    }


@pytest.fixture()
def datastream_feature() -> dict[str, Any]:
    return {
        "type": "Feature",
        "id": "ds-42",
        "geometry": None,
        "properties": {
            "featureType": "Datastream",
            "uid": "urn:x-example:ds:42",
            "name": "Air temperature",
            "system": "sys-001",
            "observedProperty": [{"definition": TEMPERATURE["definition"]}],
        },
    }


# ---------------------------------------------------------------------------
# SensorML documents
# ---------------------------------------------------------------------------


@pytest.fixture()
def physical_system() -> dict[str, Any]:
    """PhysicalSystem located by a SWE Vector."""
    return {
        "type": "PhysicalSystem",
        "id": "sys-002",
        "uniqueId": "urn:x-example:system:buoy-7",
        "label": "Buoy 7",
        "description": "Moored wave buoy",
        "definition": "http://www.w3.org/ns/sosa/Platform",
        "keywords": ["buoy", "waves"],
        "position": {
            "type": "Vector",
            "referenceFrame": "http://www.opengis.net/def/crs/EPSG/0/4326",
            "coordinates": [
                {"name": "lon", "value": 5.0},
                {"name": "lat", "value": 45.0},
            ],
        },
    }


@pytest.fixture()
def deployment_doc() -> dict[str, Any]:
    return {
        "type": "Deployment",
        "id": "dep-1",
        "uniqueId": "urn:x-example:deployment:survey-2024",
        "label": "Summer survey",
        "validTime": ["2024-06-01T00:00:00Z", "2024-09-01T00:00:00Z"],
        "location": {"type": "Point", "coordinates": [10.0, 20.0]},
        "deployedSystems": [{"name": "buoy", "system": {"href": "systems/sys-002"}}],
    }
