"""Wire-shape contracts for raw payloads.

These ``TypedDict``s document the JSON the engine accepts before it is
turned into typed dataclasses or pydantic models.  Keys keep their wire
(camelCase) spelling.
"""

from __future__ import annotations

from typing import Any, TypedDict

# ---------------------------------------------------------------------------
# Encodings
# ---------------------------------------------------------------------------


class _BinaryMemberRequired(TypedDict):
    ref: str
    dataType: str


class BinaryMemberDict(_BinaryMemberRequired, total=False):
    """One member of a ``BinaryEncoding``."""

    byteLength: int
    bitLength: int
    significantBits: int
    bitOffset: int
    byteOrder: str


class BinaryEncodingDict(TypedDict, total=False):
    """``BinaryEncoding``; servers send the member list as ``members`` or ``member``."""

    type: str
    byteOrder: str
    byteEncoding: str
    members: list[BinaryMemberDict]
    member: list[BinaryMemberDict]


class TextEncodingDict(TypedDict, total=False):
    type: str
    tokenSeparator: str
    blockSeparator: str
    decimalSeparator: str
    collapseWhiteSpaces: bool


# ---------------------------------------------------------------------------
# GeoJSON
# ---------------------------------------------------------------------------


class GeometryDict(TypedDict):
    type: str
    coordinates: list[Any]


class FeatureDict(TypedDict, total=False):
    """A CSAPI GeoJSON Feature."""

    type: str
    id: str
    geometry: GeometryDict | None
    properties: dict[str, Any]
    links: list[dict[str, Any]]

