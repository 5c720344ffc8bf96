"""Resource parsers.

One parser per CSAPI resource kind, each converting the GeoJSON, SensorML
and SWE Common encodings of that kind to canonical records:

- ResourceParser: abstract base class defining the parse flow
- FeatureResourceParser / SchemaStreamParser / ValuesParser: kind families
- CollectionParser: wraps a parser for list endpoints
- get_parser: kind-name factory
"""

from csapi_formats.parsers.base import ResourceParser, feature_to_record
from csapi_formats.parsers.factory import get_parser, list_parsers, register_parser, reset_parsers, resolve_kind
from csapi_formats.parsers.resources import (
    CollectionParser,
    CommandParser,
    ControlStreamParser,
    DatastreamParser,
    DeploymentParser,
    FeatureResourceParser,
    ObservationParser,
    ProcedureParser,
    PropertyParser,
    SamplingFeatureParser,
    SchemaStreamParser,
    SystemParser,
    ValuesParser,
)

__all__ = [
    "CollectionParser",
    "CommandParser",
    "ControlStreamParser",
    "DatastreamParser",
    "DeploymentParser",
    "FeatureResourceParser",
    "ObservationParser",
    "ProcedureParser",
    "PropertyParser",
    "ResourceParser",
    "SamplingFeatureParser",
    "SchemaStreamParser",
    "SystemParser",
    "ValuesParser",
    "feature_to_record",
    "get_parser",
    "list_parsers",
    "register_parser",
    "reset_parsers",
    "resolve_kind",
]
