"""Shared engine constants: single source of truth.

Centralises media types, type-name vocabularies and primitive widths that
the detector, the parsers and the codecs all need to agree on.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Media types
# ---------------------------------------------------------------------------

MEDIA_TYPE_GEOJSON = "application/geo+json"
MEDIA_TYPE_SENSORML_JSON = "application/sml+json"
MEDIA_TYPE_SWE_JSON = "application/swe+json"
MEDIA_TYPE_SWE_CSV = "application/swe+csv"
MEDIA_TYPE_SWE_TEXT = "application/swe+text"
MEDIA_TYPE_SWE_BINARY = "application/swe+binary"
MEDIA_TYPE_JSON = "application/json"

# ---------------------------------------------------------------------------
# Format tags
# ---------------------------------------------------------------------------

FORMAT_GEOJSON = "geojson"
FORMAT_SENSORML = "sensorml"
FORMAT_SWE = "swe"
FORMAT_JSON = "json"

# ---------------------------------------------------------------------------
# Body discriminants
# ---------------------------------------------------------------------------

GEOJSON_TYPES = frozenset({"Feature", "FeatureCollection"})

GEOJSON_GEOMETRY_TYPES = frozenset(
    {
        "Point",
        "MultiPoint",
        "LineString",
        "MultiLineString",
        "Polygon",
        "MultiPolygon",
        "GeometryCollection",
    }
)

SENSORML_PROCESS_TYPES = frozenset(
    {"PhysicalSystem", "PhysicalComponent", "SimpleProcess", "AggregateProcess"}
)
SENSORML_PHYSICAL_TYPES = frozenset({"PhysicalSystem", "PhysicalComponent"})
SENSORML_DEPLOYMENT_TYPE = "Deployment"
SENSORML_DERIVED_PROPERTY_TYPE = "DerivedProperty"
SENSORML_TYPES = SENSORML_PROCESS_TYPES | {SENSORML_DEPLOYMENT_TYPE}

# Detection vocabulary for SWE bodies (ranges and Geometry are parsed but
# never used for sniffing).
SWE_DETECTION_TYPES = frozenset(
    {
        "Boolean",
        "Text",
        "Category",
        "Count",
        "Quantity",
        "Time",
        "DataRecord",
        "Vector",
        "DataChoice",
        "DataArray",
        "Matrix",
        "DataStream",
    }
)

# ---------------------------------------------------------------------------
# Binary encoding
# ---------------------------------------------------------------------------

BIG_ENDIAN = "bigEndian"
LITTLE_ENDIAN = "littleEndian"
BYTE_ORDERS = frozenset({BIG_ENDIAN, LITTLE_ENDIAN})

# Fixed primitive widths in bytes.
PRIMITIVE_WIDTHS: dict[str, int] = {
    "boolean": 1,
    "byte": 1,
    "ubyte": 1,
    "short": 2,
    "ushort": 2,
    "int": 4,
    "uint": 4,
    "float": 4,
    "long": 8,
    "ulong": 8,
    "double": 8,
}

FIXED_STRING = "string"
UTF8_STRING = "utf8"
STRING_DATA_TYPES = frozenset({FIXED_STRING, UTF8_STRING})
BINARY_DATA_TYPES = frozenset(PRIMITIVE_WIDTHS) | STRING_DATA_TYPES

# Width of the little-endian length header in front of ``utf8`` strings.
UTF8_LENGTH_PREFIX_BYTES = 4

# OGC data-type URIs that map onto the short names above.
OGC_DATA_TYPE_PREFIX = "http://www.opengis.net/def/dataType/OGC/0/"
OGC_DATA_TYPE_ALIASES: dict[str, str] = {
    "boolean": "boolean",
    "signedByte": "byte",
    "unsignedByte": "ubyte",
    "signedShort": "short",
    "unsignedShort": "ushort",
    "signedInt": "int",
    "unsignedInt": "uint",
    "signedLong": "long",
    "unsignedLong": "ulong",
    "float32": "float",
    "float64": "double",
    "double": "double",
    "string-utf-8": "utf8",
}

# ---------------------------------------------------------------------------
# Byte encodings for packed values carried as text
# ---------------------------------------------------------------------------

BYTE_ENCODING_BASE64 = "base64"
BYTE_ENCODING_BASE64URL = "base64url"
BYTE_ENCODING_HEX = "hex"
BYTE_ENCODINGS = frozenset({BYTE_ENCODING_BASE64, BYTE_ENCODING_BASE64URL, BYTE_ENCODING_HEX})
