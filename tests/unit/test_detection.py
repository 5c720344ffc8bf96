"""Tests for wire-format detection and its precedence rules."""

from __future__ import annotations

from typing import Any

import pytest

from csapi_formats.detection import (
    detect_format,
    detect_format_from_body,
    detect_format_from_content_type,
    normalise_media_type,
)


class TestNormaliseMediaType:
    def test_strips_parameters_and_case(self) -> None:
        assert normalise_media_type("Application/GEO+JSON; charset=utf-8") == "application/geo+json"

    @pytest.mark.parametrize("value", [None, "", " ; q=1"])
    def test_empty_values(self, value: str | None) -> None:
        assert normalise_media_type(value) is None


class TestContentTypeSignal:
    @pytest.mark.parametrize(
        ("content_type", "fmt"),
        [
            ("application/geo+json", "geojson"),
            ("application/sml+json", "sensorml"),
            ("application/swe+json", "swe"),
            ("application/swe+csv", "swe"),
            ("application/swe+text", "swe"),
            ("application/swe+binary", "swe"),
        ],
    )
    def test_csapi_media_types_are_high_confidence(self, content_type: str, fmt: str) -> None:
        detection = detect_format_from_content_type(content_type)
        assert detection is not None
        assert detection.format == fmt
        assert detection.confidence == "high"

    def test_plain_json_is_low_confidence(self) -> None:
        detection = detect_format_from_content_type("application/json")
        assert detection is not None
        assert detection.format == "json"
        assert detection.confidence == "low"

    def test_vendor_json_is_low_confidence(self) -> None:
        detection = detect_format_from_content_type("application/vnd.example+json")
        assert detection is not None
        assert detection.confidence == "low"

    def test_unrelated_media_type_says_nothing(self) -> None:
        assert detect_format_from_content_type("text/html") is None


class TestBodySignal:
    @pytest.mark.parametrize(
        ("body", "fmt", "confidence"),
        [
            ({"type": "Feature"}, "geojson", "high"),
            ({"type": "FeatureCollection"}, "geojson", "high"),
            ({"type": "PhysicalSystem"}, "sensorml", "high"),
            ({"type": "Deployment"}, "sensorml", "high"),
            ({"type": "DataRecord"}, "swe", "medium"),
            ({"type": "Quantity"}, "swe", "medium"),
            ({"type": "QuantityRange"}, "json", "low"),
            ({"type": "Unknown"}, "json", "low"),
            ({"no": "type"}, "json", "low"),
            ([{"type": "Feature"}], "json", "low"),
            ("a,b,c", "json", "low"),
        ],
    )
    def test_body_discriminant(self, body: Any, fmt: str, confidence: str) -> None:
        detection = detect_format_from_body(body)
        assert detection.format == fmt
        assert detection.confidence == confidence


class TestPrecedence:
    def test_high_confidence_header_beats_body(self) -> None:
        detection = detect_format("application/sml+json", {"type": "Feature"})
        assert detection.format == "sensorml"
        assert detection.media_type == "application/sml+json"

    def test_high_confidence_body_beats_weak_header(self) -> None:
        detection = detect_format("application/json", {"type": "Feature"})
        assert detection.format == "geojson"
        assert detection.confidence == "high"

    def test_weak_header_beats_medium_body(self) -> None:
        detection = detect_format("application/json", {"type": "DataRecord"})
        assert detection.format == "json"

    def test_medium_body_used_without_header(self) -> None:
        detection = detect_format(None, {"type": "DataRecord"})
        assert detection.format == "swe"
        assert detection.confidence == "medium"

    def test_nothing_recognised_is_generic_json(self) -> None:
        detection = detect_format("text/plain", {"foo": 1})
        assert detection.format == "json"
        assert detection.confidence == "low"
