"""Payload normalisation at the engine boundary.

Centralises the two transport-shaped concerns the engine has to absorb
before any parsing happens:

- **load_body**: normalises the body handed over by the transport layer.
  JSON text (``str`` or ``bytes``) is decoded; already-decoded values are
  returned unchanged; non-JSON text is kept as a raw string so that
  text-encoded SWE payloads survive.
- **resolve_byte_decoder**: selects, once, the function that turns packed
  binary values carried as text into bytes.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import TYPE_CHECKING, Any

from csapi_formats.core.constants import (
    BYTE_ENCODING_BASE64,
    BYTE_ENCODING_BASE64URL,
    BYTE_ENCODING_HEX,
)
from csapi_formats.core.exceptions import BinaryCodecError, CsapiParseError

if TYPE_CHECKING:
    from collections.abc import Callable

    ByteDecoder = Callable[[str], bytes]

logger = logging.getLogger("csapi_formats.core.payload")

_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Body normalisation
# ---------------------------------------------------------------------------


def load_body(raw: Any) -> Any:
    """Normalise a transport body to a decoded value.

    Args:
        raw: A decoded JSON value, JSON text, raw bytes or non-JSON text.

    Returns:
        The decoded JSON value when *raw* is JSON text, the text itself
        when it is not JSON, or *raw* unchanged for anything else.

    Raises:
        CsapiParseError: If *raw* is ``bytes`` that are not valid UTF-8
            and not valid JSON.
    """
    if isinstance(raw, (bytes, bytearray, memoryview)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"Body is not UTF-8 text: {exc}"
            raise CsapiParseError(msg, cause=exc) from exc

    if not isinstance(raw, str):
        return raw

    stripped = raw.strip()
    if not stripped or stripped[0] not in "{[":
        return raw
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        logger.debug("Body looks like JSON but does not decode; keeping raw text")
        return raw


# ---------------------------------------------------------------------------
# Byte decoders
# ---------------------------------------------------------------------------


def _decode_base64(text: str) -> bytes:
    try:
        return base64.b64decode(_WHITESPACE.sub("", text), validate=True)
    except binascii.Error as exc:
        msg = f"Invalid base64 payload: {exc}"
        raise BinaryCodecError(msg) from exc


def _decode_base64url(text: str) -> bytes:
    compact = _WHITESPACE.sub("", text)
    padded = compact + "=" * (-len(compact) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except binascii.Error as exc:
        msg = f"Invalid base64url payload: {exc}"
        raise BinaryCodecError(msg) from exc


def _decode_hex(text: str) -> bytes:
    try:
        return bytes.fromhex(_WHITESPACE.sub("", text))
    except ValueError as exc:
        msg = f"Invalid hex payload: {exc}"
        raise BinaryCodecError(msg) from exc


_BYTE_DECODERS: dict[str, ByteDecoder] = {
    BYTE_ENCODING_BASE64: _decode_base64,
    BYTE_ENCODING_BASE64URL: _decode_base64url,
    BYTE_ENCODING_HEX: _decode_hex,
}


def resolve_byte_decoder(name: str = BYTE_ENCODING_BASE64) -> ByteDecoder:
    """Return the byte decoder registered under *name*.

    Raises:
        BinaryCodecError: If *name* is not a known byte encoding.
    """
    try:
        return _BYTE_DECODERS[name.lower()]
    except KeyError:
        known = ", ".join(sorted(_BYTE_DECODERS))
        msg = f"Unknown byte encoding '{name}'. Known: {known}"
        raise BinaryCodecError(msg) from None
