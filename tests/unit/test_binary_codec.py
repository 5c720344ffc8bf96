"""Tests for the packed binary codec.

Covers:
- Primitive decoding in both byte orders
- Fixed and length-prefixed strings
- Bit fields and padded slots
- Arrays (numpy fast path and struct fallback) and streams
- Encode/decode symmetry for the documented float example
- Error messages naming the offending member
"""

from __future__ import annotations

import base64
import struct
from typing import Any

import pytest

from csapi_formats.core.exceptions import BinaryCodecError
from csapi_formats.models.encodings import BinaryMember
from csapi_formats.swe.binary_codec import (
    calculate_record_size,
    decode_binary,
    decode_binary_stream,
    encode_binary,
    fixed_width,
    member_width,
)


def _layout(*members: dict[str, Any], byte_order: str | None = "bigEndian") -> dict[str, Any]:
    data: dict[str, Any] = {"type": "BinaryEncoding", "members": list(members)}
    if byte_order is not None:
        data["byteOrder"] = byte_order
    return data


class TestRecordSize:
    def test_primitive_widths(self) -> None:
        layout = _layout(
            {"ref": "a", "dataType": "double"},
            {"ref": "b", "dataType": "int"},
            {"ref": "c", "dataType": "ubyte"},
        )
        assert calculate_record_size(layout) == 13

    def test_byte_length_overrides_width(self) -> None:
        layout = _layout({"ref": "s", "dataType": "string", "byteLength": 10}, {"ref": "n", "dataType": "short"})
        assert calculate_record_size(layout) == 12

    def test_utf8_is_variable(self) -> None:
        assert calculate_record_size(_layout({"ref": "s", "dataType": "utf8"})) is None

    def test_ogc_uri_data_type(self) -> None:
        layout = _layout({"ref": "v", "dataType": "http://www.opengis.net/def/dataType/OGC/0/float64"})
        assert calculate_record_size(layout) == 8


class TestDecode:
    def test_float_big_endian(self, temperature_binary_encoding: dict[str, Any]) -> None:
        assert decode_binary(struct.pack(">f", 23.5), temperature_binary_encoding) == 23.5

    def test_float_from_base64(self, temperature_binary_encoding: dict[str, Any]) -> None:
        assert decode_binary("QbwAAA==", temperature_binary_encoding) == 23.5

    def test_little_endian_record(self) -> None:
        layout = _layout(
            {"ref": "id", "dataType": "uint"},
            {"ref": "temp", "dataType": "double"},
            byte_order="littleEndian",
        )
        data = struct.pack("<Id", 7, -3.25)
        assert decode_binary(data, layout) == {"id": 7, "temp": -3.25}

    def test_default_byte_order_applies_when_omitted(self) -> None:
        layout = _layout({"ref": "n", "dataType": "short"}, byte_order=None)
        data = struct.pack("<h", -2)
        assert decode_binary(data, layout, default_byte_order="littleEndian") == -2

    def test_member_byte_order_override(self) -> None:
        layout = _layout(
            {"ref": "a", "dataType": "ushort"},
            {"ref": "b", "dataType": "ushort", "byteOrder": "littleEndian"},
        )
        assert decode_binary(b"\x01\x02\x01\x02", layout) == {"a": 0x0102, "b": 0x0201}

    def test_boolean(self) -> None:
        layout = _layout({"ref": "on", "dataType": "boolean"}, {"ref": "off", "dataType": "boolean"})
        assert decode_binary(b"\x01\x00", layout) == {"on": True, "off": False}

    def test_fixed_string_strips_padding(self) -> None:
        layout = _layout({"ref": "code", "dataType": "string", "byteLength": 6})
        assert decode_binary(b"ABC\x00\x00\x00", layout) == "ABC"

    def test_utf8_length_prefix_is_little_endian(self) -> None:
        text = "température".encode()
        layout = _layout({"ref": "name", "dataType": "utf8"}, {"ref": "n", "dataType": "ubyte"})
        data = struct.pack("<I", len(text)) + text + b"\x05"
        assert decode_binary(data, layout) == {"name": "température", "n": 5}

    def test_bit_field(self) -> None:
        layout = _layout({"ref": "flags", "dataType": "ubyte", "bitLength": 3, "bitOffset": 2})
        assert decode_binary(bytes([0b00010100]), layout) == 0b101

    def test_significant_bits(self) -> None:
        layout = _layout({"ref": "v", "dataType": "ushort", "significantBits": 12})
        assert decode_binary(b"\xff\xff", layout) == 0x0FFF

    def test_padded_primitive(self) -> None:
        layout = _layout({"ref": "v", "dataType": "short", "byteLength": 4}, {"ref": "w", "dataType": "ubyte"})
        assert decode_binary(b"\x00\x05\x00\x00\x09", layout) == {"v": 5, "w": 9}

    def test_hex_byte_decoder(self, temperature_binary_encoding: dict[str, Any]) -> None:
        from csapi_formats.core.payload import resolve_byte_decoder

        value = decode_binary("41bc0000", temperature_binary_encoding, byte_decoder=resolve_byte_decoder("hex"))
        assert value == 23.5


class TestDecodeArrays:
    def test_numpy_path(self) -> None:
        layout = _layout({"ref": "x", "dataType": "int"}, {"ref": "y", "dataType": "float"})
        data = struct.pack(">if", 1, 0.5) + struct.pack(">if", 2, 1.5)
        assert decode_binary(data, layout, 2) == [{"x": 1, "y": 0.5}, {"x": 2, "y": 1.5}]

    def test_single_member_array(self, temperature_binary_encoding: dict[str, Any]) -> None:
        data = struct.pack(">3f", 1.0, 2.0, 23.5)
        assert decode_binary(data, temperature_binary_encoding, 3) == [1.0, 2.0, 23.5]

    def test_numpy_path_applies_bit_fields(self) -> None:
        layout = _layout({"ref": "b", "dataType": "ubyte", "bitLength": 4})
        assert decode_binary(b"\xf3\xa7", layout, 2) == [3, 7]

    def test_struct_path_for_strings(self) -> None:
        layout = _layout({"ref": "s", "dataType": "string", "byteLength": 2}, {"ref": "n", "dataType": "ubyte"})
        assert decode_binary(b"ab\x01cd\x02", layout, 2) == [{"s": "ab", "n": 1}, {"s": "cd", "n": 2}]

    def test_truncated_array(self, temperature_binary_encoding: dict[str, Any]) -> None:
        with pytest.raises(BinaryCodecError, match="Member 'temperature': Buffer too short"):
            decode_binary(struct.pack(">f", 1.0), temperature_binary_encoding, 2)


class TestDecodeStream:
    def test_fixed_records(self, temperature_binary_encoding: dict[str, Any]) -> None:
        data = struct.pack(">2f", 1.5, 2.5)
        assert decode_binary_stream(data, temperature_binary_encoding) == [1.5, 2.5]

    def test_partial_record_rejected(self, temperature_binary_encoding: dict[str, Any]) -> None:
        with pytest.raises(BinaryCodecError, match="not a multiple of the 4-byte record size"):
            decode_binary_stream(b"\x00" * 6, temperature_binary_encoding)

    def test_variable_records(self) -> None:
        layout = _layout({"ref": "s", "dataType": "utf8"})
        data = struct.pack("<I", 2) + b"hi" + struct.pack("<I", 0)
        assert decode_binary_stream(data, layout) == ["hi", ""]

    def test_empty_buffer(self, temperature_binary_encoding: dict[str, Any]) -> None:
        assert decode_binary_stream(b"", temperature_binary_encoding) == []


class TestEncode:
    def test_documented_float_round_trip(self, temperature_binary_encoding: dict[str, Any]) -> None:
        encoded = encode_binary({"temperature": 23.5}, temperature_binary_encoding)
        assert encoded == "QbwAAA=="
        assert decode_binary(encoded, temperature_binary_encoding) == 23.5

    def test_bytes_output(self) -> None:
        layout = _layout({"ref": "a", "dataType": "short"}, {"ref": "b", "dataType": "boolean"})
        assert encode_binary({"a": -1, "b": True}, layout, "bytes") == b"\xff\xff\x01"

    def test_list_of_records(self) -> None:
        layout = _layout({"ref": "n", "dataType": "ubyte"}, byte_order=None)
        assert encode_binary([1, 2, 3], layout, "bytes") == b"\x01\x02\x03"

    def test_utf8_and_fixed_string(self) -> None:
        layout = _layout({"ref": "s", "dataType": "utf8"}, {"ref": "c", "dataType": "string", "byteLength": 4})
        raw = encode_binary({"s": "ok", "c": "AB"}, layout, "bytes")
        assert raw == b"\x02\x00\x00\x00okAB\x00\x00"
        assert decode_binary(raw, layout) == {"s": "ok", "c": "AB"}

    def test_bit_field_packing(self) -> None:
        layout = _layout({"ref": "f", "dataType": "ubyte", "bitLength": 3, "bitOffset": 2})
        assert encode_binary(0b101, layout, "bytes") == bytes([0b00010100])

    def test_base64_is_default(self) -> None:
        layout = _layout({"ref": "n", "dataType": "uint"})
        assert base64.b64decode(encode_binary(1, layout)) == b"\x00\x00\x00\x01"


class TestErrors:
    def test_unsupported_data_type(self) -> None:
        with pytest.raises(BinaryCodecError, match="Member 'x': Unsupported data type: quad"):
            decode_binary(b"\x00" * 16, _layout({"ref": "x", "dataType": "quad"}))

    def test_fixed_string_needs_byte_length(self) -> None:
        with pytest.raises(BinaryCodecError, match="requires byteLength"):
            calculate_record_size(_layout({"ref": "s", "dataType": "string"}))

    def test_byte_length_too_small(self) -> None:
        with pytest.raises(BinaryCodecError, match="smaller than the int width"):
            calculate_record_size(_layout({"ref": "n", "dataType": "int", "byteLength": 2}))

    def test_length_prefix_overflow(self) -> None:
        layout = _layout({"ref": "s", "dataType": "utf8"})
        with pytest.raises(BinaryCodecError, match="Length prefix 10 exceeds"):
            decode_binary(struct.pack("<I", 10) + b"abc", layout)

    def test_missing_member_on_encode(self) -> None:
        layout = _layout({"ref": "a", "dataType": "int"}, {"ref": "b", "dataType": "int"})
        with pytest.raises(BinaryCodecError, match="Member 'b': Missing value"):
            encode_binary({"a": 1}, layout)

    def test_value_out_of_range(self) -> None:
        with pytest.raises(BinaryCodecError, match="does not fit ubyte"):
            encode_binary(300, _layout({"ref": "n", "dataType": "ubyte"}))

    def test_string_too_long(self) -> None:
        with pytest.raises(BinaryCodecError, match="exceeds byteLength 2"):
            encode_binary("abc", _layout({"ref": "s", "dataType": "string", "byteLength": 2}))

    def test_invalid_encoding_dict(self) -> None:
        with pytest.raises(BinaryCodecError, match="Invalid binary encoding"):
            decode_binary(b"", {"type": "BinaryEncoding", "members": []})

    def test_unknown_output(self) -> None:
        with pytest.raises(BinaryCodecError, match="Unknown output format"):
            encode_binary(1, _layout({"ref": "n", "dataType": "int"}), "hex")  # type: ignore[arg-type]


class TestFixedWidth:
    @pytest.mark.parametrize(
        ("member", "width"),
        [
            (BinaryMember(ref="t", data_type="double"), 8),
            (BinaryMember(ref="n", data_type="short", byte_length=4), 4),
            (BinaryMember(ref="s", data_type="string", byte_length=6), 6),
        ],
    )
    def test_fixed_members(self, member: BinaryMember, width: int) -> None:
        assert fixed_width(member) == width == member_width(member)

    def test_utf8_has_no_fixed_width(self) -> None:
        member = BinaryMember(ref="label", data_type="utf8")
        assert member_width(member) is None
        with pytest.raises(BinaryCodecError, match="Member 'label': Member of type utf8 has no fixed width") as exc_info:
            fixed_width(member)
        assert exc_info.value.member == "label"

    def test_unsupported_type_still_reported(self) -> None:
        with pytest.raises(BinaryCodecError, match="Unsupported data type: quad"):
            fixed_width(BinaryMember(ref="x", data_type="quad"))
