"""Pre-flight checks for ``TextEncoding`` layouts and delimited text data.

These never raise: each returns a ``ValidationResult`` listing errors
(the data will not decode as described) and warnings (it will, but the
result may surprise).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from csapi_formats.models.components import ComponentKind, DataComponent
from csapi_formats.models.encodings import TextEncoding
from csapi_formats.models.issues import ValidationResult
from csapi_formats.swe.text_codec import split_blocks, split_tokens


def _settings(encoding: TextEncoding | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(encoding, TextEncoding):
        return encoding.to_dict()
    return encoding


def validate_text_encoding(encoding: TextEncoding | Mapping[str, Any]) -> ValidationResult:
    """Check separators for presence, length and mutual ambiguity."""
    settings = _settings(encoding)
    errors: list[str] = []
    warnings: list[str] = []

    if settings.get("type") != "TextEncoding":
        errors.append(f"Invalid type: expected 'TextEncoding', got '{settings.get('type')}'")

    token = settings.get("tokenSeparator")
    block = settings.get("blockSeparator")
    if not isinstance(token, str) or not token:
        errors.append("tokenSeparator is required")
        token = None
    if not isinstance(block, str) or not block:
        errors.append("blockSeparator is required")
        block = None
    if token and block and token == block:
        errors.append("tokenSeparator and blockSeparator should be different to avoid ambiguity")

    decimal = settings.get("decimalSeparator")
    if decimal:
        if not isinstance(decimal, str) or len(decimal) != 1:
            errors.append(f"decimalSeparator must be single character, got '{decimal}'")
        if decimal == token:
            errors.append("decimalSeparator must be different from tokenSeparator")
        if decimal == block:
            errors.append("decimalSeparator must be different from blockSeparator")
        if decimal not in (".", ","):
            warnings.append(f"Non-standard decimal separator '{decimal}' (standard is '.' or ',')")

    if "." in (token, block):
        warnings.append("Using period (.) as separator may conflict with decimal numbers")

    return ValidationResult(errors, warnings)


def validate_text_data_length(text: str, encoding: TextEncoding, expected_count: int) -> ValidationResult:
    """Check the number of non-blank blocks against *expected_count*."""
    actual = len(split_blocks(text, encoding.block_separator))
    if actual != expected_count:
        return ValidationResult([f"Record count mismatch: expected {expected_count}, found {actual}"])
    return ValidationResult()


def _expected_tokens(component: DataComponent) -> int | None:
    if component.kind is ComponentKind.DATA_RECORD:
        children = component.fields  # type: ignore[union-attr]
    elif component.kind is ComponentKind.VECTOR:
        children = component.coordinates  # type: ignore[union-attr]
    else:
        return None
    total = 0
    for child in children:
        if child.component is None:
            return None
        nested = _expected_tokens(child.component)
        if nested is None and child.component.kind in (ComponentKind.DATA_RECORD, ComponentKind.VECTOR):
            return None
        total += nested or 1
    return total


def validate_text_data_structure(
    text: str,
    encoding: TextEncoding,
    component: DataComponent,
) -> ValidationResult:
    """Check every block of record-shaped data has one token per leaf field.

    Block components are checked against their element type.  Empty
    tokens are reported as warnings since they decode to ``None``.
    """
    if component.kind in (ComponentKind.DATA_ARRAY, ComponentKind.DATA_STREAM, ComponentKind.MATRIX):
        element = component.element_type.component  # type: ignore[union-attr]
        if element is None:
            return ValidationResult()
        component = element

    expected = _expected_tokens(component)
    if expected is None:
        return ValidationResult()

    errors: list[str] = []
    warnings: list[str] = []
    for number, block in enumerate(split_blocks(text, encoding.block_separator), start=1):
        tokens = split_tokens(block, encoding.token_separator, collapse=encoding.collapse_white_spaces)
        if len(tokens) != expected:
            errors.append(f"Record {number}: expected {expected} fields, found {len(tokens)}")
        empty = sum(1 for t in tokens if not t.strip())
        if empty:
            warnings.append(f"Record {number}: {empty} empty field(s) detected (will be parsed as null)")
    return ValidationResult(errors, warnings)


def validate_separator_compatibility(text: str, encoding: TextEncoding) -> ValidationResult:
    """Warn about quoting problems that would change how *text* splits."""
    warnings: list[str] = []
    if text.count('"') % 2:
        warnings.append("Data contains an unbalanced double quote; separators after it will not split")
    if encoding.token_separator in text and '"' not in text:
        warnings.append(
            f"Data contains token separator '{encoding.token_separator}' but no quotes detected. "
            "Values with separators should be quoted."
        )
    if encoding.decimal_separator != "." and any(
        a.isdigit() and b == "." and c.isdigit() for a, b, c in zip(text, text[1:], text[2:])
    ):
        warnings.append(
            f"Data contains '.' between digits but decimalSeparator is '{encoding.decimal_separator}'"
        )
    return ValidationResult(warnings=warnings)
