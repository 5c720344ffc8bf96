"""SWE Common data components.

- parser: structural parser building the typed component tree
- constraints / validator: value checks against a parsed tree
- binary_codec / text_codec: packed and delimited value encodings
- text_validation: lint checks for TextEncoding payloads
- blocks: decoding of encoded block values and raw bodies
- schema: flattening of datastream and control-stream schemas
"""

from csapi_formats.swe.binary_codec import (
    calculate_record_size,
    decode_binary,
    decode_binary_stream,
    encode_binary,
)
from csapi_formats.swe.blocks import decode_block_values, decode_encoded, decode_records
from csapi_formats.swe.parser import parse_data_component
from csapi_formats.swe.schema import schema_fields
from csapi_formats.swe.text_codec import decode_text, encode_text
from csapi_formats.swe.validator import validate_component, validate_values

__all__ = [
    "calculate_record_size",
    "decode_binary",
    "decode_binary_stream",
    "decode_block_values",
    "decode_encoded",
    "decode_records",
    "decode_text",
    "encode_binary",
    "encode_text",
    "parse_data_component",
    "schema_fields",
    "validate_component",
    "validate_values",
]
