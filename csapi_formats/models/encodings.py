"""SWE Common block encodings.

``BinaryEncoding`` and ``TextEncoding`` are the two encodings the engine
can actually encode and decode; ``JSONEncoding`` and ``XMLEncoding`` are
recognised so that a component carrying them still parses.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from csapi_formats.core.constants import (
    BYTE_ORDERS,
    OGC_DATA_TYPE_ALIASES,
    OGC_DATA_TYPE_PREFIX,
)
from csapi_formats.core.exceptions import ComponentParseError


def normalise_data_type(data_type: str) -> str:
    """Map an OGC data-type URI onto its short name; pass short names through."""
    if data_type.startswith(OGC_DATA_TYPE_PREFIX):
        suffix = data_type[len(OGC_DATA_TYPE_PREFIX) :]
        return OGC_DATA_TYPE_ALIASES.get(suffix, suffix)
    return data_type


def _optional_int(data: Mapping[str, Any], key: str, path: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ComponentParseError(f"{key} must be a positive integer", path)
    return value


# ---------------------------------------------------------------------------
# Binary
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BinaryMember:
    """One member of a packed binary record.

    Attributes:
        ref: Key of the decoded value in records.
        data_type: Short data-type name (``"float"``, ``"utf8"`` …).
        byte_length: Slot width for fixed strings or padded primitives.
        bit_length: Packed bit field width (integers only).
        significant_bits: Number of low bits kept (integers only).
        bit_offset: Shift applied before masking a ``bit_length`` field.
        byte_order: Per-member override of the block byte order.
    """

    ref: str
    data_type: str
    byte_length: int | None = None
    bit_length: int | None = None
    significant_bits: int | None = None
    bit_offset: int = 0
    byte_order: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> BinaryMember:
        if not isinstance(data, Mapping):
            raise ComponentParseError("Binary member must be an object", path or None)
        ref = data.get("ref")
        if not isinstance(ref, str) or not ref:
            raise ComponentParseError("Binary member must have a ref", path or None)
        data_type = data.get("dataType")
        if not isinstance(data_type, str) or not data_type:
            raise ComponentParseError(f"Binary member '{ref}' must have a dataType", path or None)
        byte_order = data.get("byteOrder")
        if byte_order is not None and byte_order not in BYTE_ORDERS:
            raise ComponentParseError(f"Unsupported byteOrder: {byte_order}", path or None)
        bit_offset = data.get("bitOffset", 0)
        if isinstance(bit_offset, bool) or not isinstance(bit_offset, int) or bit_offset < 0:
            raise ComponentParseError("bitOffset must be a non-negative integer", path or None)
        return cls(
            ref=ref,
            data_type=normalise_data_type(data_type),
            byte_length=_optional_int(data, "byteLength", path or None),
            bit_length=_optional_int(data, "bitLength", path or None),
            significant_bits=_optional_int(data, "significantBits", path or None),
            bit_offset=bit_offset,
            byte_order=byte_order,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"ref": self.ref, "dataType": self.data_type}
        if self.byte_length is not None:
            out["byteLength"] = self.byte_length
        if self.bit_length is not None:
            out["bitLength"] = self.bit_length
        if self.significant_bits is not None:
            out["significantBits"] = self.significant_bits
        if self.bit_offset:
            out["bitOffset"] = self.bit_offset
        if self.byte_order is not None:
            out["byteOrder"] = self.byte_order
        return out


@dataclass(frozen=True, slots=True)
class BinaryEncoding:
    """Packed binary layout: an ordered member list and an optional byte order.

    ``byte_order`` stays ``None`` when the wire form omits it; the codec
    then applies the configured default.
    """

    members: tuple[BinaryMember, ...]
    byte_order: str | None = None
    byte_encoding: str | None = None
    member_key: str = "members"
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BinaryEncoding:
        """Build from the wire shape; ``members`` and ``member`` are both accepted.

        Raises:
            ComponentParseError: If the member list is missing or malformed.
        """
        if not isinstance(data, Mapping):
            raise ComponentParseError("BinaryEncoding must be an object")
        key = "members" if "members" in data else "member"
        raw_members = data.get(key)
        if not isinstance(raw_members, list) or not raw_members:
            raise ComponentParseError("BinaryEncoding must have at least one member", key)
        members = tuple(
            BinaryMember.from_dict(m, f"{key}[{i}]") for i, m in enumerate(raw_members)
        )
        byte_order = data.get("byteOrder")
        if byte_order is not None and byte_order not in BYTE_ORDERS:
            raise ComponentParseError(f"Unsupported byteOrder: {byte_order}", "byteOrder")
        known = {"type", "byteOrder", "byteEncoding", "members", "member"}
        return cls(
            members=members,
            byte_order=byte_order,
            byte_encoding=data.get("byteEncoding"),
            member_key=key,
            extras={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "BinaryEncoding"}
        if self.byte_order is not None:
            out["byteOrder"] = self.byte_order
        if self.byte_encoding is not None:
            out["byteEncoding"] = self.byte_encoding
        out[self.member_key] = [m.to_dict() for m in self.members]
        return {**out, **self.extras}


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TextEncoding:
    """Delimited text layout."""

    token_separator: str = ","
    block_separator: str = "\n"
    decimal_separator: str = "."
    collapse_white_spaces: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TextEncoding:
        if not isinstance(data, Mapping):
            raise ComponentParseError("TextEncoding must be an object")
        for key in ("tokenSeparator", "blockSeparator"):
            value = data.get(key)
            if not isinstance(value, str) or not value:
                raise ComponentParseError(f"TextEncoding must have a non-empty {key}", key)
        decimal = data.get("decimalSeparator", ".")
        if not isinstance(decimal, str) or len(decimal) != 1:
            raise ComponentParseError("decimalSeparator must be a single character", "decimalSeparator")
        return cls(
            token_separator=data["tokenSeparator"],
            block_separator=data["blockSeparator"],
            decimal_separator=decimal,
            collapse_white_spaces=bool(data.get("collapseWhiteSpaces", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "TextEncoding",
            "tokenSeparator": self.token_separator,
            "blockSeparator": self.block_separator,
            "decimalSeparator": self.decimal_separator,
            "collapseWhiteSpaces": self.collapse_white_spaces,
        }


# ---------------------------------------------------------------------------
# Pass-through encodings
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class JSONEncoding:
    extras: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "JSONEncoding", **self.extras}


@dataclass(frozen=True, slots=True)
class XMLEncoding:
    extras: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "XMLEncoding", **self.extras}


Encoding = Union[BinaryEncoding, TextEncoding, JSONEncoding, XMLEncoding]


def parse_encoding(data: Any) -> Encoding:
    """Build a typed encoding from its wire shape, dispatching on ``type``.

    Raises:
        ComponentParseError: For non-mapping input or an unknown ``type``.
    """
    if not isinstance(data, Mapping):
        raise ComponentParseError("Encoding must be an object")
    encoding_type = data.get("type")
    if encoding_type == "BinaryEncoding":
        return BinaryEncoding.from_dict(data)
    if encoding_type == "TextEncoding":
        return TextEncoding.from_dict(data)
    rest = {k: v for k, v in data.items() if k != "type"}
    if encoding_type == "JSONEncoding":
        return JSONEncoding(extras=rest)
    if encoding_type == "XMLEncoding":
        return XMLEncoding(extras=rest)
    raise ComponentParseError(f"Unknown or unsupported encoding type: {encoding_type}", "type")
