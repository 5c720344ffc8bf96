"""Tests for the parser factory."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from csapi_formats.core.config import ParserConfig
from csapi_formats.core.exceptions import CsapiParseError
from csapi_formats.models.issues import ValidationResult
from csapi_formats.models.records import ResourceKind
from csapi_formats.parsers import (
    CollectionParser,
    ControlStreamParser,
    ObservationParser,
    SystemParser,
    get_parser,
    list_parsers,
    register_parser,
    reset_parsers,
    resolve_kind,
)


@pytest.fixture(autouse=True)
def _restore_registry() -> Iterator[None]:
    yield
    reset_parsers()


class TestResolveKind:
    @pytest.mark.parametrize("kind", [ResourceKind.CONTROL_STREAM, "ControlStream", "CONTROL_STREAM", "control_stream"])
    def test_spellings(self, kind: Any) -> None:
        assert resolve_kind(kind) is ResourceKind.CONTROL_STREAM

    def test_unknown(self) -> None:
        with pytest.raises(CsapiParseError, match="Unknown resource kind: 'Sensor'. Available: System, Deployment"):
            resolve_kind("Sensor")


class TestGetParser:
    def test_every_kind_has_a_parser(self) -> None:
        for kind in ResourceKind:
            assert get_parser(kind).kind is kind

    def test_by_name(self) -> None:
        assert isinstance(get_parser("ControlStream"), ControlStreamParser)

    def test_config_is_passed(self) -> None:
        config = ParserConfig(validate=True, strict=True)
        assert get_parser("System", config=config).config is config

    def test_collection_wrapper(self) -> None:
        parser = get_parser("System", collection=True)
        assert isinstance(parser, CollectionParser)
        assert isinstance(parser.item_parser, SystemParser)

    def test_options_reach_values_parser(self, quantity: dict[str, Any]) -> None:
        parser = get_parser("Observation", schema=quantity)
        assert isinstance(parser, ObservationParser)
        assert parser.schema is not None
        assert parser.schema.label == "Air Temperature"

    def test_unknown_kind(self) -> None:
        with pytest.raises(CsapiParseError, match="Unknown resource kind"):
            get_parser("Sensor")


class TestRegistry:
    def test_list_parsers(self) -> None:
        assert list_parsers() == sorted(kind.value for kind in ResourceKind)

    def test_register_and_reset(self, system_feature: dict[str, Any]) -> None:
        class NamedSystemParser(SystemParser):
            def validate_geojson(self, data: Any) -> ValidationResult:
                result = super().validate_geojson(data)
                if not data["properties"].get("name"):
                    return result.merged(ValidationResult(["System must have a name"]))
                return result

        register_parser("system", NamedSystemParser)
        del system_feature["properties"]["name"]
        result = get_parser("System").parse(system_feature, validate=True)
        assert result.errors == ["System must have a name"]

        reset_parsers()
        assert type(get_parser("System")) is SystemParser
