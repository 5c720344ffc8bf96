"""Decode the encoded ``values`` of block components and raw SWE bodies.

A DataArray, Matrix or DataStream may carry its values as one encoded
string next to a ``BinaryEncoding`` or ``TextEncoding``.  ``decode_encoded``
turns that string (or raw bytes received for a schema) into the same
value tree a JSON-encoded block would have produced, so the constraint
validator can treat both alike.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from csapi_formats.core.constants import BIG_ENDIAN
from csapi_formats.core.exceptions import BinaryCodecError
from csapi_formats.models.components import (
    BLOCK_KINDS,
    DataArrayComponent,
    DataComponent,
    MatrixComponent,
)
from csapi_formats.models.encodings import BinaryEncoding, TextEncoding
from csapi_formats.swe.binary_codec import decode_binary, decode_binary_stream
from csapi_formats.swe.text_codec import decode_text, split_blocks

if TYPE_CHECKING:
    from csapi_formats.core.payload import ByteDecoder
    from csapi_formats.models.encodings import Encoding

logger = logging.getLogger("csapi_formats.swe.blocks")


def _element_count(component: DataComponent) -> int | None:
    if isinstance(component, (DataArrayComponent, MatrixComponent)):
        return component.element_count.value
    return None


def has_encoded_values(component: DataComponent) -> bool:
    """True for a block component whose ``values`` still need decoding."""
    if component.kind not in BLOCK_KINDS:
        return False
    encoding = component.encoding  # type: ignore[union-attr]
    values = component.values  # type: ignore[union-attr]
    return isinstance(encoding, (BinaryEncoding, TextEncoding)) and isinstance(values, (str, bytes))


def decode_encoded(
    data: str | bytes,
    component: DataComponent,
    encoding: Encoding | None = None,
    *,
    byte_decoder: ByteDecoder | None = None,
    default_byte_order: str = BIG_ENDIAN,
) -> Any:
    """Decode *data* laid out by *encoding* (default: the component's own).

    Block components always yield a list.  Other components yield a single
    decoded value (scalar or record dict).

    Raises:
        BinaryCodecError: For binary layouts that do not fit *data*.
        TextCodecError: For text that does not fit the component.
    """
    if encoding is None and component.kind in BLOCK_KINDS:
        encoding = component.encoding  # type: ignore[union-attr]
    is_block = component.kind in BLOCK_KINDS
    count = _element_count(component)

    if isinstance(encoding, TextEncoding):
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return decode_text(data, encoding, component, count)

    if isinstance(encoding, BinaryEncoding):
        options: dict[str, Any] = {"byte_decoder": byte_decoder, "default_byte_order": default_byte_order}
        if not is_block:
            return decode_binary(data, encoding, **options)
        if count is None:
            return decode_binary_stream(data, encoding, **options)
        if count <= 1:
            return [decode_binary(data, encoding, **options)] if count == 1 else []
        return decode_binary(data, encoding, count, **options)

    kind = type(encoding).__name__ if encoding is not None else "no encoding"
    msg = f"Cannot decode {component.kind.value} values with {kind}"
    raise BinaryCodecError(msg)


def decode_block_values(
    component: DataComponent,
    *,
    byte_decoder: ByteDecoder | None = None,
    default_byte_order: str = BIG_ENDIAN,
) -> Any:
    """Return the block's values, decoding them first when they are encoded."""
    if not has_encoded_values(component):
        return getattr(component, "values", None)
    values = decode_encoded(
        component.values,  # type: ignore[union-attr]
        component,
        byte_decoder=byte_decoder,
        default_byte_order=default_byte_order,
    )
    logger.debug("Decoded block values | kind=%s count=%d", component.kind.value, len(values))
    return values


def decode_records(
    data: str | bytes,
    component: DataComponent,
    encoding: Encoding | None = None,
    *,
    byte_decoder: ByteDecoder | None = None,
    default_byte_order: str = BIG_ENDIAN,
) -> list[Any]:
    """Decode a raw body holding any number of elements of *component*.

    Unlike ``decode_encoded``, a non-block schema is treated as the type
    of each element: every text block or binary record becomes one item.
    """
    options: dict[str, Any] = {"byte_decoder": byte_decoder, "default_byte_order": default_byte_order}
    if component.kind in BLOCK_KINDS:
        return decode_encoded(data, component, encoding, **options)

    if isinstance(encoding, TextEncoding):
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        return [decode_text(block, encoding, component) for block in split_blocks(text, encoding.block_separator)]
    if isinstance(encoding, BinaryEncoding):
        return decode_binary_stream(data, encoding, **options)

    kind = type(encoding).__name__ if encoding is not None else "no encoding"
    msg = f"Cannot decode {component.kind.value} records with {kind}"
    raise BinaryCodecError(msg)
