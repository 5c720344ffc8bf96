"""Resource parsers for the nine CSAPI resource kinds.

Which format branch means what, per kind:

    kind             geojson   sensorml            swe
    System           Feature   process types       -
    Deployment       Feature   Deployment          -
    Procedure        Feature   process types       -
    SamplingFeature  Feature   -                   -
    Property         Feature   DerivedProperty     -
    Datastream       Feature   -                   schema flattening
    ControlStream    Feature   -                   schema flattening
    Observation      -         -                   values (+codec)
    Command          -         -                   values (+codec)

A ``-`` branch raises ``CsapiParseError`` with a kind-specific message.
``CollectionParser`` wraps any of them for list endpoints.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from csapi_formats.core.constants import (
    FORMAT_GEOJSON,
    FORMAT_SENSORML,
    FORMAT_SWE,
    SENSORML_DEPLOYMENT_TYPE,
    SENSORML_DERIVED_PROPERTY_TYPE,
    SENSORML_PROCESS_TYPES,
)
from csapi_formats.core.exceptions import ComponentParseError, CsapiParseError
from csapi_formats.geojson.validator import validate_feature
from csapi_formats.models.components import ComponentKind, DataComponent
from csapi_formats.models.encodings import TextEncoding, parse_encoding
from csapi_formats.models.issues import ValidationIssue, ValidationResult
from csapi_formats.models.records import ResourceKind, ResourceProperties, ResourceRecord
from csapi_formats.parsers.base import Parsed, ResourceParser, feature_to_record
from csapi_formats.sensorml.conversion import sensorml_to_record
from csapi_formats.sensorml.validator import (
    validate_deployment,
    validate_derived_property,
    validate_sensorml_process,
)
from csapi_formats.swe.blocks import decode_block_values, decode_records
from csapi_formats.swe.parser import parse_data_component
from csapi_formats.swe.schema import observed_definitions, schema_document_parts, schema_fields
from csapi_formats.swe.validator import validate_component, validate_values

if TYPE_CHECKING:
    from csapi_formats.core.config import ParserConfig
    from csapi_formats.models.encodings import Encoding

logger = logging.getLogger("csapi_formats.parsers")

_COMPONENT_TYPES = frozenset(kind.value for kind in ComponentKind)


def _type_name(data: Any) -> str:
    if isinstance(data, Mapping):
        return repr(data.get("type"))
    return type(data).__name__


def _is_typed_component(value: Any) -> bool:
    return isinstance(value, Mapping) and value.get("type") in _COMPONENT_TYPES


def _as_result(issues: list[ValidationIssue]) -> ValidationResult:
    return ValidationResult([str(issue) for issue in issues])


def _optional_id(value: Any) -> str | None:
    return None if value is None else str(value)


# ---------------------------------------------------------------------------
# Feature-shaped kinds
# ---------------------------------------------------------------------------


class FeatureResourceParser(ResourceParser):
    """Kinds published as GeoJSON Features.

    Subclasses list the SensorML document types they accept (none means
    the SensorML branch always fails) and the messages for the branches
    that do not apply.
    """

    sensorml_types: ClassVar[frozenset[str]] = frozenset()
    sensorml_unsupported: ClassVar[str] = ""
    swe_unsupported: ClassVar[str] = ""

    def parse_geojson(self, data: Any) -> Parsed:
        if isinstance(data, Mapping) and data.get("type") == "FeatureCollection":
            raise CsapiParseError("Expected single Feature, got FeatureCollection", FORMAT_GEOJSON)
        if not isinstance(data, Mapping) or data.get("type") != "Feature":
            raise CsapiParseError(f"Expected a GeoJSON Feature, got {_type_name(data)}", FORMAT_GEOJSON)
        return feature_to_record(data, self.kind.value)

    def _accepts_sensorml(self, data: Mapping[str, Any]) -> bool:
        return data.get("type") in self.sensorml_types

    def parse_sensorml(self, data: Any) -> Parsed:
        if not self.sensorml_types:
            raise CsapiParseError(self.sensorml_unsupported, FORMAT_SENSORML)
        if not isinstance(data, Mapping) or not self._accepts_sensorml(data):
            expected = ", ".join(sorted(self.sensorml_types))
            msg = f"Expected SensorML {expected} for {self.kind.value} resources, got {_type_name(data)}"
            raise CsapiParseError(msg, FORMAT_SENSORML)
        return sensorml_to_record(data, self.kind.value)

    def parse_swe(self, data: Any) -> Parsed:
        raise CsapiParseError(self.swe_unsupported, FORMAT_SWE)

    def validate_geojson(self, data: Any) -> ValidationResult:
        return validate_feature(data, self.kind)


class SystemParser(FeatureResourceParser):
    kind = ResourceKind.SYSTEM
    sensorml_types = SENSORML_PROCESS_TYPES
    swe_unsupported = "SWE format not applicable for System resources"

    def validate_sensorml(self, data: Any) -> ValidationResult:
        return validate_sensorml_process(data)


class DeploymentParser(FeatureResourceParser):
    kind = ResourceKind.DEPLOYMENT
    sensorml_types = frozenset({SENSORML_DEPLOYMENT_TYPE})
    swe_unsupported = "SWE format not applicable for Deployment resources"

    def validate_sensorml(self, data: Any) -> ValidationResult:
        return validate_deployment(data)


class ProcedureParser(FeatureResourceParser):
    kind = ResourceKind.PROCEDURE
    sensorml_types = SENSORML_PROCESS_TYPES
    swe_unsupported = "SWE format not applicable for Procedure resources"

    def validate_sensorml(self, data: Any) -> ValidationResult:
        return validate_sensorml_process(data)


class SamplingFeatureParser(FeatureResourceParser):
    kind = ResourceKind.SAMPLING_FEATURE
    sensorml_unsupported = "SensorML format not applicable for Sampling Features"
    swe_unsupported = "SWE format not applicable for Sampling Features"


class PropertyParser(FeatureResourceParser):
    kind = ResourceKind.PROPERTY
    sensorml_types = frozenset({SENSORML_DERIVED_PROPERTY_TYPE})
    swe_unsupported = "SWE format not applicable for Property resources"

    def _accepts_sensorml(self, data: Mapping[str, Any]) -> bool:
        # DerivedProperty documents are often served without a type.
        return data.get("type") == SENSORML_DERIVED_PROPERTY_TYPE or (
            "type" not in data and "baseProperty" in data
        )

    def validate_sensorml(self, data: Any) -> ValidationResult:
        return validate_derived_property(data)


# ---------------------------------------------------------------------------
# Schema-carrying kinds
# ---------------------------------------------------------------------------


class SchemaStreamParser(FeatureResourceParser):
    """Datastreams and control streams: a Feature, or a SWE schema document.

    The SWE branch parses the schema, flattens its leaves into
    ``properties.fields`` and lists their definitions in the property slot
    named by ``property_slot``.
    """

    property_slot: ClassVar[str] = ""

    def _decode(self, component: DataComponent) -> Any:
        return decode_block_values(
            component,
            byte_decoder=self._byte_decoder,
            default_byte_order=self.config.default_byte_order,
        )

    def _schema(self, data: Any) -> tuple[DataComponent, Encoding | None, dict[str, Any]]:
        if not isinstance(data, Mapping):
            raise CsapiParseError(f"Expected a SWE schema object, got {_type_name(data)}", FORMAT_SWE)
        key, raw_component, raw_encoding, rest = schema_document_parts(data)
        try:
            component = parse_data_component(raw_component)
        except ComponentParseError as exc:
            raise (exc.prefixed(key) if key else exc) from exc
        encoding = None
        if raw_encoding is not None:
            try:
                encoding = parse_encoding(raw_encoding)
            except ComponentParseError as exc:
                raise exc.prefixed("encoding") from exc
        return component, encoding, rest

    def parse_swe(self, data: Any) -> Parsed:
        component, encoding, rest = self._schema(data)
        # Encoded block values must decode even when validation is off.
        validate_component(component, decode_values=self._decode)

        fields = schema_fields(component)
        values: dict[str, Any] = {
            "featureType": self.kind.value,
            "name": component.label,
            "description": component.description,
            "definition": component.definition,
            self.property_slot: observed_definitions(fields),
        }
        values.update({k: v for k, v in rest.items() if k != "id"})
        values["schema"] = component.to_dict()
        values["fields"] = fields
        if encoding is not None:
            values["encoding"] = encoding.to_dict()

        logger.debug("Flattened %s schema | fields=%d", self.kind.value, len(fields))
        return ResourceRecord(
            kind=self.kind.value,
            id=_optional_id(rest.get("id")),
            geometry=None,
            properties=ResourceProperties.model_validate(values),
        )

    def validate_swe(self, data: Any) -> ValidationResult:
        component, _, _ = self._schema(data)
        return _as_result(validate_component(component, decode_values=self._decode))


class DatastreamParser(SchemaStreamParser):
    kind = ResourceKind.DATASTREAM
    sensorml_unsupported = "Datastreams not defined in SensorML format"
    property_slot = "observedProperty"


class ControlStreamParser(SchemaStreamParser):
    kind = ResourceKind.CONTROL_STREAM
    sensorml_unsupported = "ControlStreams not defined in SensorML format"
    property_slot = "controlledProperty"


# ---------------------------------------------------------------------------
# Value-carrying kinds
# ---------------------------------------------------------------------------


class ValuesParser(ResourceParser):
    """Observations and commands: JSON objects, or encoded values plus a schema.

    Args:
        config: Parser configuration.
        schema: Datastream result schema (or control-stream parameters
            schema) as a parsed component or its wire dict.  Needed to
            decode text/binary bodies and to validate plain values.
        encoding: Encoding of raw bodies; defaults to the schema's own
            encoding, then to comma/newline text.
    """

    payload_key: ClassVar[str] = ""
    geojson_unsupported: ClassVar[str] = ""
    sensorml_unsupported: ClassVar[str] = ""

    def __init__(
        self,
        config: ParserConfig | None = None,
        *,
        schema: DataComponent | Mapping[str, Any] | None = None,
        encoding: Encoding | Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(config)
        if isinstance(schema, Mapping):
            schema = parse_data_component(schema)
        if isinstance(encoding, Mapping):
            encoding = parse_encoding(encoding)
        if encoding is None and schema is not None:
            encoding = getattr(schema, "encoding", None)
        self._schema: DataComponent | None = schema
        self._encoding: Encoding | None = encoding

    @property
    def schema(self) -> DataComponent | None:
        return self._schema

    def candidates(self) -> list[tuple[str, Callable[[Any], Parsed]]]:
        return [(FORMAT_SWE, self.parse_swe)]

    def parse_geojson(self, data: Any) -> Parsed:
        raise CsapiParseError(self.geojson_unsupported, FORMAT_GEOJSON)

    def parse_sensorml(self, data: Any) -> Parsed:
        raise CsapiParseError(self.sensorml_unsupported, FORMAT_SENSORML)

    # -- decoding ------------------------------------------------------

    def _decode_raw(self, data: str | bytes) -> list[Any]:
        if self._schema is None:
            msg = f"Cannot decode raw {self.kind.value} values without a schema"
            raise CsapiParseError(msg, FORMAT_SWE)
        encoding = self._encoding
        if encoding is None and isinstance(data, str):
            encoding = TextEncoding()
        return decode_records(
            data,
            self._schema,
            encoding,
            byte_decoder=self._byte_decoder,
            default_byte_order=self.config.default_byte_order,
        )

    def _record(self, properties: Mapping[str, Any], record_id: Any = None) -> ResourceRecord:
        return ResourceRecord(
            kind=self.kind.value,
            id=_optional_id(record_id),
            geometry=None,
            properties=ResourceProperties.model_validate(dict(properties)),
        )

    def _item(self, data: Any) -> ResourceRecord:
        if not isinstance(data, Mapping):
            raise CsapiParseError(f"Expected a {self.kind.value} object, got {_type_name(data)}", FORMAT_SWE)
        if _is_typed_component(data):
            component = parse_data_component(data)
            return self._record({self.payload_key: component.to_dict()})
        if self.payload_key in data:
            payload = data[self.payload_key]
            if _is_typed_component(payload):
                try:
                    parse_data_component(payload)
                except ComponentParseError as exc:
                    raise exc.prefixed(self.payload_key) from exc
            return self._record({k: v for k, v in data.items() if k != "id"}, data.get("id"))
        return self._record({self.payload_key: dict(data)})

    def parse_swe(self, data: Any) -> Parsed:
        if isinstance(data, (str, bytes)):
            return [self._record({self.payload_key: value}) for value in self._decode_raw(data)]
        if isinstance(data, list):
            return [self._item(item) for item in data]
        return self._item(data)

    # -- validation ----------------------------------------------------

    def _payload_issues(self, payload: Any) -> list[ValidationIssue]:
        if _is_typed_component(payload):
            return validate_component(parse_data_component(payload))
        if self._schema is not None:
            return validate_values(self._schema, payload)
        return []

    def _item_issues(self, data: Any) -> list[ValidationIssue]:
        if _is_typed_component(data):
            return validate_component(parse_data_component(data))
        if isinstance(data, Mapping) and self.payload_key in data:
            return [i.prefixed(self.payload_key) for i in self._payload_issues(data[self.payload_key])]
        return self._payload_issues(data)

    def validate_swe(self, data: Any) -> ValidationResult:
        if isinstance(data, (str, bytes)):
            items: list[Any] = self._decode_raw(data)
            issues = [
                issue.prefixed(f"[{index}]")
                for index, value in enumerate(items)
                for issue in self._payload_issues(value)
            ]
        elif isinstance(data, list):
            issues = [
                issue.prefixed(f"[{index}]")
                for index, item in enumerate(data)
                for issue in self._item_issues(item)
            ]
        else:
            issues = self._item_issues(data)
        return _as_result(issues)


class ObservationParser(ValuesParser):
    kind = ResourceKind.OBSERVATION
    payload_key = "result"
    geojson_unsupported = "Observations are not GeoJSON features"
    sensorml_unsupported = "Observations not defined in SensorML format"


class CommandParser(ValuesParser):
    kind = ResourceKind.COMMAND
    payload_key = "parameters"
    geojson_unsupported = "Commands are not GeoJSON features"
    sensorml_unsupported = "Commands not defined in SensorML format"


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def _flatten(parsed: list[Parsed]) -> list[ResourceRecord]:
    out: list[ResourceRecord] = []
    for item in parsed:
        if isinstance(item, list):
            out.extend(item)
        else:
            out.append(item)
    return out


class CollectionParser(ResourceParser):
    """Wrap a single-item parser for collection responses.

    GeoJSON FeatureCollections and SensorML/SWE arrays become lists; a
    single item becomes a one-element list.  Failures name the index of
    the offending item.
    """

    def __init__(self, item_parser: ResourceParser) -> None:
        super().__init__(item_parser.config)
        self._item_parser = item_parser

    @property
    def kind(self) -> ResourceKind:  # type: ignore[override]
        return self._item_parser.kind

    @property
    def item_parser(self) -> ResourceParser:
        return self._item_parser

    def candidates(self) -> list[tuple[str, Callable[[Any], Parsed]]]:
        branches = {
            FORMAT_GEOJSON: self.parse_geojson,
            FORMAT_SENSORML: self.parse_sensorml,
            FORMAT_SWE: self.parse_swe,
        }
        return [(fmt, branches[fmt]) for fmt, _ in self._item_parser.candidates()]

    def _each(self, items: list[Any], branch: Callable[[Any], Parsed], label: str, fmt: str) -> list[ResourceRecord]:
        parsed: list[Parsed] = []
        for index, item in enumerate(items):
            try:
                parsed.append(branch(item))
            except CsapiParseError as exc:
                raise CsapiParseError(f"{label} at index {index}: {exc.message}", fmt, exc) from exc
        return _flatten(parsed)

    def parse_geojson(self, data: Any) -> Parsed:
        if isinstance(data, Mapping) and data.get("type") == "FeatureCollection":
            features = data.get("features")
            if not isinstance(features, list):
                raise CsapiParseError("FeatureCollection must have a features array", FORMAT_GEOJSON)
            return self._each(features, self._item_parser.parse_geojson, "Feature", FORMAT_GEOJSON)
        return _flatten([self._item_parser.parse_geojson(data)])

    def parse_sensorml(self, data: Any) -> Parsed:
        items = data if isinstance(data, list) else [data]
        return self._each(items, self._item_parser.parse_sensorml, "Item", FORMAT_SENSORML)

    def parse_swe(self, data: Any) -> Parsed:
        if isinstance(self._item_parser, ValuesParser):
            return _flatten([self._item_parser.parse_swe(data)])
        items = data if isinstance(data, list) else [data]
        return self._each(items, self._item_parser.parse_swe, "Item", FORMAT_SWE)

    def _validate_each(self, items: list[Any], check: Callable[[Any], ValidationResult], label: str) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        for index, item in enumerate(items):
            result = check(item)
            if result.errors:
                errors.append(f"{label} at index {index}: {', '.join(result.errors)}")
            warnings.extend(f"{label} at index {index}: {w}" for w in result.warnings)
        return ValidationResult(errors, warnings)

    def validate_geojson(self, data: Any) -> ValidationResult:
        if isinstance(data, Mapping) and data.get("type") == "FeatureCollection":
            return self._validate_each(data.get("features") or [], self._item_parser.validate_geojson, "Feature")
        return self._item_parser.validate_geojson(data)

    def validate_sensorml(self, data: Any) -> ValidationResult:
        items = data if isinstance(data, list) else [data]
        return self._validate_each(items, self._item_parser.validate_sensorml, "Item")

    def validate_swe(self, data: Any) -> ValidationResult:
        if isinstance(self._item_parser, ValuesParser):
            return self._item_parser.validate_swe(data)
        items = data if isinstance(data, list) else [data]
        return self._validate_each(items, self._item_parser.validate_swe, "Item")
