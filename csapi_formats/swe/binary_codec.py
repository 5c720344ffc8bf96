"""Packed binary codec for SWE Common ``BinaryEncoding``.

Layout rules:
- Members are read in declaration order; each advances the offset by its
  resolved width.
- Widths: boolean/byte/ubyte 1, short/ushort 2, int/uint/float 4,
  long/ulong/double 8.  A ``byteLength`` on a primitive declares a padded
  slot (value first, zero padding after).
- ``string`` is a fixed ``byteLength`` slot, trailing NULs stripped.
- ``utf8`` is a 4-byte little-endian length header followed by that many
  UTF-8 bytes, independent of the block byte order.
- ``bitLength`` and ``significantBits`` post-process integer members only.

Shape of decoded values: one member and no element count gives a scalar,
several members give a dict keyed by ``ref``, and an element count
greater than one gives a list of either.

Arrays whose members are all fixed-width primitives are decoded in one
pass with a numpy structured dtype; anything else is walked member by
member with ``struct``.
"""

from __future__ import annotations

import base64
import logging
import struct
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal

import numpy as np

from csapi_formats.core.constants import (
    BIG_ENDIAN,
    BYTE_ENCODINGS,
    FIXED_STRING,
    PRIMITIVE_WIDTHS,
    UTF8_LENGTH_PREFIX_BYTES,
    UTF8_STRING,
)
from csapi_formats.core.exceptions import BinaryCodecError, ComponentParseError
from csapi_formats.core.payload import resolve_byte_decoder
from csapi_formats.models.encodings import BinaryEncoding, BinaryMember

if TYPE_CHECKING:
    from csapi_formats.core.payload import ByteDecoder
    from csapi_formats.models.contracts import BinaryEncodingDict

logger = logging.getLogger("csapi_formats.swe.binary_codec")

_STRUCT_CODES: dict[str, str] = {
    "boolean": "B",
    "byte": "b",
    "ubyte": "B",
    "short": "h",
    "ushort": "H",
    "int": "i",
    "uint": "I",
    "long": "q",
    "ulong": "Q",
    "float": "f",
    "double": "d",
}

_NUMPY_CODES: dict[str, str] = {
    "boolean": "u1",
    "byte": "i1",
    "ubyte": "u1",
    "short": "i2",
    "ushort": "u2",
    "int": "i4",
    "uint": "u4",
    "long": "i8",
    "ulong": "u8",
    "float": "f4",
    "double": "f8",
}

_INTEGER_TYPES = frozenset({"byte", "ubyte", "short", "ushort", "int", "uint", "long", "ulong"})

_UTF8_HEADER = struct.Struct("<I")


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def coerce_encoding(encoding: BinaryEncoding | BinaryEncodingDict | Mapping[str, Any]) -> BinaryEncoding:
    """Accept a typed encoding or its wire dict.

    Raises:
        BinaryCodecError: If the wire dict is not a valid encoding.
    """
    if isinstance(encoding, BinaryEncoding):
        return encoding
    try:
        return BinaryEncoding.from_dict(encoding)
    except ComponentParseError as exc:
        msg = f"Invalid binary encoding: {exc}"
        raise BinaryCodecError(msg) from exc


def member_width(member: BinaryMember) -> int | None:
    """Byte width of *member*, or ``None`` for variable-length ``utf8``.

    Raises:
        BinaryCodecError: For an unsupported data type or an inconsistent
            ``byteLength``.
    """
    data_type = member.data_type
    if data_type == UTF8_STRING:
        return None
    if data_type == FIXED_STRING:
        if member.byte_length is None:
            raise BinaryCodecError("Fixed-length string requires byteLength", member.ref)
        return member.byte_length
    width = PRIMITIVE_WIDTHS.get(data_type)
    if width is None:
        raise BinaryCodecError(f"Unsupported data type: {data_type}", member.ref)
    if member.byte_length is not None:
        if member.byte_length < width:
            msg = f"byteLength {member.byte_length} is smaller than the {data_type} width ({width})"
            raise BinaryCodecError(msg, member.ref)
        return member.byte_length
    return width


def fixed_width(member: BinaryMember) -> int:
    """Byte width of a fixed-width *member*.

    Raises:
        BinaryCodecError: When the member is variable-length ``utf8``, or
            for the same reasons as ``member_width``.
    """
    width = member_width(member)
    if width is None:
        raise BinaryCodecError(f"Member of type {member.data_type} has no fixed width", member.ref)
    return width


def calculate_record_size(encoding: BinaryEncoding | Mapping[str, Any]) -> int | None:
    """Sum of member widths, or ``None`` when a member is variable-length."""
    layout = coerce_encoding(encoding)
    total = 0
    for member in layout.members:
        width = member_width(member)
        if width is None:
            return None
        total += width
    return total


def _struct_prefix(byte_order: str) -> str:
    return ">" if byte_order == BIG_ENDIAN else "<"


def _mask(bits: int) -> int:
    return (1 << bits) - 1


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _to_bytes(data: Any, layout: BinaryEncoding, byte_decoder: ByteDecoder | None) -> bytes:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        if byte_decoder is None:
            encoding_name = (layout.byte_encoding or "").lower()
            byte_decoder = resolve_byte_decoder(encoding_name if encoding_name in BYTE_ENCODINGS else "base64")
        return byte_decoder(data)
    msg = f"Binary data must be bytes or encoded text, got {type(data).__name__}"
    raise BinaryCodecError(msg)


def _require(buffer: bytes, offset: int, size: int, member: BinaryMember) -> None:
    if offset + size > len(buffer):
        available = max(len(buffer) - offset, 0)
        msg = f"Buffer too short: need {size} byte(s) at offset {offset}, {available} available"
        raise BinaryCodecError(msg, member.ref)


def _post_decode(value: Any, member: BinaryMember) -> Any:
    if member.data_type == "boolean":
        return value != 0
    if member.data_type in _INTEGER_TYPES:
        if member.bit_length is not None:
            value = (value >> member.bit_offset) & _mask(member.bit_length)
        if member.significant_bits is not None:
            value &= _mask(member.significant_bits)
    return value


def _decode_text(raw: bytes, member: BinaryMember) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BinaryCodecError(f"Invalid UTF-8 string: {exc}", member.ref) from exc


def _decode_member(buffer: bytes, offset: int, member: BinaryMember, byte_order: str) -> tuple[Any, int]:
    """Decode one member at *offset*; return the value and bytes consumed."""
    if member.data_type == UTF8_STRING:
        _require(buffer, offset, UTF8_LENGTH_PREFIX_BYTES, member)
        (length,) = _UTF8_HEADER.unpack_from(buffer, offset)
        start = offset + UTF8_LENGTH_PREFIX_BYTES
        if start + length > len(buffer):
            msg = f"Length prefix {length} exceeds the {len(buffer) - start} byte(s) remaining"
            raise BinaryCodecError(msg, member.ref)
        return _decode_text(buffer[start : start + length], member), UTF8_LENGTH_PREFIX_BYTES + length

    width = fixed_width(member)
    _require(buffer, offset, width, member)
    if member.data_type == FIXED_STRING:
        return _decode_text(buffer[offset : offset + width], member).rstrip("\x00"), width

    fmt = _struct_prefix(member.byte_order or byte_order) + _STRUCT_CODES[member.data_type]
    (value,) = struct.unpack_from(fmt, buffer, offset)
    return _post_decode(value, member), width


def _decode_record(
    buffer: bytes,
    offset: int,
    members: tuple[BinaryMember, ...],
    byte_order: str,
) -> tuple[dict[str, Any], int]:
    record: dict[str, Any] = {}
    for member in members:
        value, consumed = _decode_member(buffer, offset, member, byte_order)
        record[member.ref] = value
        offset += consumed
    return record, offset


def _numpy_dtype(members: tuple[BinaryMember, ...], byte_order: str) -> np.dtype | None:
    """Structured dtype for an all-primitive layout, else ``None``."""
    if len({m.ref for m in members}) != len(members):
        return None
    names: list[str] = []
    formats: list[str] = []
    offsets: list[int] = []
    offset = 0
    for member in members:
        code = _NUMPY_CODES.get(member.data_type)
        if code is None:
            return None
        width = fixed_width(member)
        names.append(member.ref)
        formats.append(_struct_prefix(member.byte_order or byte_order) + code)
        offsets.append(offset)
        offset += width
    return np.dtype({"names": names, "formats": formats, "offsets": offsets, "itemsize": offset})


def _decode_array(
    buffer: bytes,
    members: tuple[BinaryMember, ...],
    byte_order: str,
    element_count: int,
) -> list[Any]:
    single = len(members) == 1
    dtype = _numpy_dtype(members, byte_order)
    if dtype is not None and len(buffer) >= dtype.itemsize * element_count:
        rows = np.frombuffer(buffer, dtype=dtype, count=element_count).tolist()
        if single:
            return [_post_decode(row[0], members[0]) for row in rows]
        return [
            {m.ref: _post_decode(v, m) for m, v in zip(members, row)}
            for row in rows
        ]

    values: list[Any] = []
    offset = 0
    for _ in range(element_count):
        record, offset = _decode_record(buffer, offset, members, byte_order)
        values.append(record[members[0].ref] if single else record)
    return values


def decode_binary(
    data: bytes | bytearray | memoryview | str,
    encoding: BinaryEncoding | BinaryEncodingDict | Mapping[str, Any],
    element_count: int | None = None,
    *,
    byte_decoder: ByteDecoder | None = None,
    default_byte_order: str = BIG_ENDIAN,
) -> Any:
    """Decode packed binary into Python values.

    Args:
        data: Raw bytes, or text decoded with *byte_decoder* (default:
            the encoding's ``byteEncoding`` when recognised, else base64).
        encoding: ``BinaryEncoding`` or its wire dict.
        element_count: Number of consecutive records; a list is returned
            when greater than one.
        byte_decoder: Text-to-bytes function, usually resolved once from
            ``ParserConfig.byte_encoding``.
        default_byte_order: Byte order when the encoding omits it.

    Returns:
        A scalar, a dict keyed by member ``ref``, or a list of either.

    Raises:
        BinaryCodecError: On an unsupported data type, a truncated buffer
            or a malformed length prefix.  The message names the member.
    """
    layout = coerce_encoding(encoding)
    buffer = _to_bytes(data, layout, byte_decoder)
    byte_order = layout.byte_order or default_byte_order
    members = layout.members

    if element_count is not None and element_count > 1:
        values = _decode_array(buffer, members, byte_order, element_count)
        logger.debug("Decoded binary array | elements=%d bytes=%d", element_count, len(buffer))
        return values

    record, _ = _decode_record(buffer, 0, members, byte_order)
    if len(members) == 1:
        return record[members[0].ref]
    return record


def decode_binary_stream(
    data: bytes | bytearray | memoryview | str,
    encoding: BinaryEncoding | BinaryEncodingDict | Mapping[str, Any],
    *,
    byte_decoder: ByteDecoder | None = None,
    default_byte_order: str = BIG_ENDIAN,
) -> list[Any]:
    """Decode records until the buffer is exhausted.

    Used for DataStream payloads and arrays whose count is given by
    reference.  A trailing partial record is an error.
    """
    layout = coerce_encoding(encoding)
    buffer = _to_bytes(data, layout, byte_decoder)
    byte_order = layout.byte_order or default_byte_order
    members = layout.members

    size = calculate_record_size(layout)
    if size:
        if len(buffer) % size:
            msg = f"Buffer length {len(buffer)} is not a multiple of the {size}-byte record size"
            raise BinaryCodecError(msg)
        count = len(buffer) // size
        return _decode_array(buffer, members, byte_order, count) if count else []

    values: list[Any] = []
    offset = 0
    while offset < len(buffer):
        record, offset = _decode_record(buffer, offset, members, byte_order)
        values.append(record[members[0].ref] if len(members) == 1 else record)
    logger.debug("Decoded binary stream | elements=%d bytes=%d", len(values), len(buffer))
    return values


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def _encode_text(value: Any, member: BinaryMember) -> bytes:
    if not isinstance(value, str):
        raise BinaryCodecError(f"Expected a string, got {type(value).__name__}", member.ref)
    return value.encode("utf-8")


def _encode_member(value: Any, member: BinaryMember, byte_order: str) -> bytes:
    if member.data_type == UTF8_STRING:
        raw = _encode_text(value, member)
        return _UTF8_HEADER.pack(len(raw)) + raw

    width = fixed_width(member)
    if member.data_type == FIXED_STRING:
        raw = _encode_text(value, member)
        if len(raw) > width:
            raise BinaryCodecError(f"String of {len(raw)} bytes exceeds byteLength {width}", member.ref)
        return raw.ljust(width, b"\x00")

    if isinstance(value, bool) or member.data_type == "boolean":
        packed: int | float = 1 if value else 0
    elif isinstance(value, (int, float)):
        packed = value
    else:
        raise BinaryCodecError(f"Expected a number, got {type(value).__name__}", member.ref)

    if member.data_type in _INTEGER_TYPES:
        if isinstance(packed, float):
            if not packed.is_integer():
                raise BinaryCodecError(f"Value {value} is not an integer", member.ref)
            packed = int(packed)
        if member.bit_length is not None:
            packed = (packed & _mask(member.bit_length)) << member.bit_offset
        if member.significant_bits is not None:
            packed &= _mask(member.significant_bits)

    fmt = _struct_prefix(member.byte_order or byte_order) + _STRUCT_CODES[member.data_type]
    try:
        raw = struct.pack(fmt, packed)
    except struct.error as exc:
        raise BinaryCodecError(f"Value {value!r} does not fit {member.data_type}: {exc}", member.ref) from exc
    return raw.ljust(width, b"\x00")


def _encode_element(element: Any, members: tuple[BinaryMember, ...], byte_order: str) -> bytes:
    if len(members) == 1:
        member = members[0]
        if isinstance(element, Mapping) and member.ref in element:
            element = element[member.ref]
        return _encode_member(element, member, byte_order)

    if not isinstance(element, Mapping):
        raise BinaryCodecError(f"Expected a record keyed by member ref, got {type(element).__name__}")
    chunks: list[bytes] = []
    for member in members:
        if member.ref not in element:
            raise BinaryCodecError("Missing value", member.ref)
        chunks.append(_encode_member(element[member.ref], member, byte_order))
    return b"".join(chunks)


def encode_binary(
    values: Any,
    encoding: BinaryEncoding | BinaryEncodingDict | Mapping[str, Any],
    output: Literal["base64", "bytes"] = "base64",
    *,
    default_byte_order: str = BIG_ENDIAN,
) -> str | bytes:
    """Pack values into the layout described by *encoding*.

    A list (or tuple) is encoded as consecutive elements; anything else as
    a single element.  Single-member layouts accept a bare scalar or a
    dict holding the member ``ref``.

    Raises:
        BinaryCodecError: For unsupported data types, missing record
            members or values that do not fit their declared type.
    """
    if output not in ("base64", "bytes"):
        raise BinaryCodecError(f"Unknown output format: {output}")
    layout = coerce_encoding(encoding)
    byte_order = layout.byte_order or default_byte_order
    elements = list(values) if isinstance(values, (list, tuple)) else [values]

    buffer = b"".join(_encode_element(e, layout.members, byte_order) for e in elements)
    logger.debug("Encoded binary | elements=%d bytes=%d", len(elements), len(buffer))
    if output == "bytes":
        return buffer
    return base64.b64encode(buffer).decode("ascii")
