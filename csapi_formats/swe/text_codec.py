"""Delimited text codec for SWE Common ``TextEncoding``.

A block (one array element or one record) is a run of tokens separated
by ``tokenSeparator``; blocks are separated by ``blockSeparator``.  Record
components are flattened depth-first, so a nested DataRecord or Vector
contributes one token per leaf field.

Token rules:
- Tokens may be double-quoted; ``""`` inside quotes is a literal quote.
- Empty tokens and ``null`` / ``nil`` (any case) decode to ``None``.
- Booleans accept ``true/false``, ``t/f``, ``yes/no`` and ``1/0``.
- Range values are two whitespace-separated values inside one token.
- Numbers use ``decimalSeparator``; it is rewritten only inside numeric
  tokens, never inside text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from csapi_formats.core.exceptions import ComponentParseError, TextCodecError
from csapi_formats.models.components import ComponentKind, DataComponent, NamedComponent
from csapi_formats.models.encodings import TextEncoding

if TYPE_CHECKING:
    from csapi_formats.models.contracts import TextEncodingDict

logger = logging.getLogger("csapi_formats.swe.text_codec")

NULL_TOKENS = frozenset({"", "null", "nil"})
TRUE_TOKENS = frozenset({"true", "t", "yes", "1"})
FALSE_TOKENS = frozenset({"false", "f", "no", "0"})

_RECORD_KINDS = frozenset({ComponentKind.DATA_RECORD, ComponentKind.VECTOR})
_BLOCK_KINDS = frozenset({ComponentKind.DATA_ARRAY, ComponentKind.DATA_STREAM, ComponentKind.MATRIX})
_NUMERIC_KINDS = frozenset(
    {
        ComponentKind.COUNT,
        ComponentKind.QUANTITY,
        ComponentKind.TIME,
        ComponentKind.COUNT_RANGE,
        ComponentKind.QUANTITY_RANGE,
        ComponentKind.TIME_RANGE,
    }
)


# ---------------------------------------------------------------------------
# Encoding checks
# ---------------------------------------------------------------------------


def coerce_text_encoding(encoding: TextEncoding | TextEncodingDict | Mapping[str, Any]) -> TextEncoding:
    """Accept a typed encoding or its wire dict, rejecting ambiguous separators.

    Raises:
        TextCodecError: If the encoding is malformed or its separators clash.
    """
    if not isinstance(encoding, TextEncoding):
        try:
            encoding = TextEncoding.from_dict(encoding)
        except ComponentParseError as exc:
            raise TextCodecError(f"Invalid text encoding: {exc}") from exc
    if encoding.token_separator == encoding.block_separator:
        raise TextCodecError("tokenSeparator and blockSeparator must be different")
    if encoding.decimal_separator in (encoding.token_separator, encoding.block_separator):
        raise TextCodecError("Decimal separator must be different from token and block separators")
    return encoding


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


def split_tokens(text: str, separator: str, *, collapse: bool = False) -> list[str]:
    """Split on *separator* outside double quotes, unescaping ``""``.

    With *collapse* and a whitespace separator, any whitespace run counts
    as a single separator.
    """
    whitespace_separator = collapse and separator.strip() == ""
    if whitespace_separator:
        text = text.strip()

    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(text):
        char = text[i]
        if char == '"':
            if in_quotes and text[i + 1 : i + 2] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
            i += 1
            continue
        if not in_quotes:
            if whitespace_separator and char.isspace():
                tokens.append("".join(current))
                current = []
                while i < len(text) and text[i].isspace():
                    i += 1
                continue
            if text.startswith(separator, i):
                tokens.append("".join(current))
                current = []
                i += len(separator)
                continue
        current.append(char)
        i += 1
    tokens.append("".join(current))
    return tokens


def split_blocks(text: str, separator: str) -> list[str]:
    """Split into blocks, dropping empty and whitespace-only blocks."""
    blocks: list[str] = []
    start = 0
    in_quotes = False
    i = 0
    while i < len(text):
        if text[i] == '"':
            in_quotes = not in_quotes
        elif not in_quotes and text.startswith(separator, i):
            blocks.append(text[start:i])
            i += len(separator)
            start = i
            continue
        i += 1
    blocks.append(text[start:])
    return [block for block in blocks if block.strip()]


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _label(component: DataComponent) -> str:
    return component.label or component.kind.value


def _number(token: str, decimal_separator: str) -> str:
    if decimal_separator != ".":
        return token.replace(decimal_separator, ".")
    return token


def _parse_int(token: str, component: DataComponent) -> int:
    try:
        return int(token)
    except ValueError:
        pass
    try:
        as_float = float(token)
    except ValueError:
        as_float = None
    if as_float is not None and as_float.is_integer():
        return int(as_float)
    raise TextCodecError(f"Invalid {component.kind.value} token '{token}' for '{_label(component)}'")


def _parse_float(token: str, component: DataComponent) -> float:
    try:
        return float(token)
    except ValueError as exc:
        msg = f"Invalid {component.kind.value} token '{token}' for '{_label(component)}'"
        raise TextCodecError(msg) from exc


def _parse_time(token: str) -> str | float:
    try:
        return float(token)
    except ValueError:
        return token


def parse_token(token: str, component: DataComponent, decimal_separator: str = ".") -> Any:
    """Convert one token to a Python value according to *component*.

    Raises:
        TextCodecError: If the token does not fit the component kind.
    """
    token = token.strip()
    if token.lower() in NULL_TOKENS:
        return None
    kind = component.kind

    if kind is ComponentKind.BOOLEAN:
        lowered = token.lower()
        if lowered in TRUE_TOKENS:
            return True
        if lowered in FALSE_TOKENS:
            return False
        raise TextCodecError(f"Invalid Boolean token '{token}' for '{_label(component)}'")
    if kind in (ComponentKind.TEXT, ComponentKind.CATEGORY):
        return token

    if kind in _NUMERIC_KINDS:
        token = _number(token, decimal_separator)
    if kind is ComponentKind.COUNT:
        return _parse_int(token, component)
    if kind is ComponentKind.QUANTITY:
        return _parse_float(token, component)
    if kind is ComponentKind.TIME:
        return _parse_time(token)

    if kind in (
        ComponentKind.QUANTITY_RANGE,
        ComponentKind.COUNT_RANGE,
        ComponentKind.TIME_RANGE,
        ComponentKind.CATEGORY_RANGE,
    ):
        parts = token.split()
        if len(parts) != 2:
            raise TextCodecError(f"Range token '{token}' for '{_label(component)}' must hold two values")
        if kind is ComponentKind.QUANTITY_RANGE:
            return [_parse_float(p, component) for p in parts]
        if kind is ComponentKind.COUNT_RANGE:
            return [_parse_int(p, component) for p in parts]
        if kind is ComponentKind.TIME_RANGE:
            return [_parse_time(p) for p in parts]
        return parts

    raise TextCodecError(f"{kind.value} components cannot be carried as a text token")


def _leaf_children(component: DataComponent) -> tuple[NamedComponent, ...]:
    if component.kind is ComponentKind.DATA_RECORD:
        return component.fields  # type: ignore[union-attr]
    return component.coordinates  # type: ignore[union-attr]


def _leaf_count(component: DataComponent) -> int:
    if component.kind not in _RECORD_KINDS:
        return 1
    return sum(_leaf_count(_resolved(child)) for child in _leaf_children(component))


def _resolved(child: NamedComponent) -> DataComponent:
    if child.component is None:
        raise TextCodecError(f"Field '{child.name}' is an external reference and cannot be decoded")
    if child.component.kind in _BLOCK_KINDS or child.component.kind is ComponentKind.DATA_CHOICE:
        raise TextCodecError(f"Field '{child.name}' has a variable-size {child.component.kind.value} layout")
    return child.component


def _assemble(component: DataComponent, tokens: Iterator[str], decimal_separator: str) -> Any:
    if component.kind in _RECORD_KINDS:
        return {
            child.name: _assemble(_resolved(child), tokens, decimal_separator)
            for child in _leaf_children(component)
        }
    return parse_token(next(tokens), component, decimal_separator)


def _decode_block(block: str, encoding: TextEncoding, component: DataComponent) -> Any:
    if component.kind not in _RECORD_KINDS:
        return parse_token(block, component, encoding.decimal_separator)
    tokens = split_tokens(block, encoding.token_separator, collapse=encoding.collapse_white_spaces)
    expected = _leaf_count(component)
    if len(tokens) != expected:
        raise TextCodecError(f"Token count mismatch: expected {expected} fields, got {len(tokens)} tokens")
    return _assemble(component, iter(tokens), encoding.decimal_separator)


def decode_text(
    text: str,
    encoding: TextEncoding | TextEncodingDict | Mapping[str, Any],
    component: DataComponent,
    element_count: int | None = None,
) -> Any:
    """Decode delimited text against *component*.

    Args:
        text: The encoded values.
        encoding: ``TextEncoding`` or its wire dict.
        component: Schema of the values: a block component (one element
            per block), a record, or a simple component.
        element_count: Maximum number of blocks to decode for arrays.

    Returns:
        A list for block components, a dict for records, a scalar otherwise.

    Raises:
        TextCodecError: On malformed tokens, token-count mismatches or
            element types that cannot be carried as text.
    """
    layout = coerce_text_encoding(encoding)

    if component.kind in _BLOCK_KINDS:
        element = component.element_type.component  # type: ignore[union-attr]
        if element is None:
            raise TextCodecError("Cannot decode an externally referenced elementType")
        blocks = split_blocks(text, layout.block_separator)
        if element_count is not None:
            blocks = blocks[:element_count]
        values = []
        for index, block in enumerate(blocks):
            try:
                values.append(_decode_block(block, layout, element))
            except TextCodecError as exc:
                raise TextCodecError(f"Block {index + 1}: {exc.message}") from exc
        logger.debug("Decoded text blocks | blocks=%d", len(values))
        return values

    blocks = split_blocks(text, layout.block_separator)
    return _decode_block(blocks[0] if blocks else "", layout, component)


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def _format_number(value: Any, decimal_separator: str) -> str:
    if isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value)
    if decimal_separator != ".":
        text = text.replace(".", decimal_separator)
    return text


def _quote(text: str, token_separator: str, block_separator: str) -> str:
    if any(s in text for s in (token_separator, block_separator, '"', "\n", "\r")):
        return '"' + text.replace('"', '""') + '"'
    return text


def format_token(value: Any, component: DataComponent, encoding: TextEncoding) -> str:
    """Render one value as a token, quoting it when it contains separators."""
    if value is None:
        return ""
    kind = component.kind
    decimal = encoding.decimal_separator
    if kind is ComponentKind.BOOLEAN:
        text = "true" if value else "false"
    elif kind in (ComponentKind.COUNT, ComponentKind.QUANTITY, ComponentKind.TIME):
        text = _format_number(value, decimal) if isinstance(value, (int, float)) else str(value)
    elif kind in (
        ComponentKind.QUANTITY_RANGE,
        ComponentKind.COUNT_RANGE,
        ComponentKind.TIME_RANGE,
        ComponentKind.CATEGORY_RANGE,
    ):
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise TextCodecError(f"Range value for '{_label(component)}' must be a [min, max] pair")
        text = " ".join(
            _format_number(v, decimal) if isinstance(v, (int, float)) and not isinstance(v, bool) else str(v)
            for v in value
        )
    elif kind in (ComponentKind.TEXT, ComponentKind.CATEGORY):
        text = str(value)
    else:
        raise TextCodecError(f"{kind.value} components cannot be carried as a text token")
    return _quote(text, encoding.token_separator, encoding.block_separator)


def _flatten(value: Any, component: DataComponent, encoding: TextEncoding) -> list[str]:
    if component.kind not in _RECORD_KINDS:
        return [format_token(value, component, encoding)]
    if value is None:
        value = {}
    if not isinstance(value, Mapping):
        raise TextCodecError(f"Expected a record for '{_label(component)}', got {type(value).__name__}")
    tokens: list[str] = []
    for child in _leaf_children(component):
        tokens.extend(_flatten(value.get(child.name), _resolved(child), encoding))
    return tokens


def encode_text(
    values: Any,
    encoding: TextEncoding | TextEncodingDict | Mapping[str, Any],
    component: DataComponent,
) -> str:
    """Encode values as delimited text, the inverse of ``decode_text``.

    Raises:
        TextCodecError: If a value does not fit its component.
    """
    layout = coerce_text_encoding(encoding)

    if component.kind in _BLOCK_KINDS:
        element = component.element_type.component  # type: ignore[union-attr]
        if element is None:
            raise TextCodecError("Cannot encode an externally referenced elementType")
        if not isinstance(values, (list, tuple)):
            raise TextCodecError(f"Expected a list for {component.kind.value}, got {type(values).__name__}")
        return layout.block_separator.join(
            layout.token_separator.join(_flatten(v, element, layout)) for v in values
        )

    return layout.token_separator.join(_flatten(values, component, layout))
