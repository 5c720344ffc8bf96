"""Engine configuration loaded from environment variables.

All configuration values have defaults that reproduce the engine's
documented behaviour; the environment only needs to set what differs.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out of
    its valid range, so a bad deployment is caught at startup rather than
    on the first payload.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from csapi_formats.core.constants import (
    BIG_ENDIAN,
    BYTE_ENCODING_BASE64,
    BYTE_ENCODINGS,
    BYTE_ORDERS,
)
from csapi_formats.core.exceptions import CsapiError

_TRUE_LITERALS = frozenset({"1", "true", "yes", "on"})
_FALSE_LITERALS = frozenset({"0", "false", "no", "off", ""})


class ConfigValidationError(CsapiError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class ParserConfig:
    """Immutable engine configuration.

    Loaded once at startup and handed to the resource parsers.

    Attributes:
        validate: Run validation after parsing by default.
        strict: Escalate validation errors to ``CsapiParseError`` by default.
        default_byte_order: Byte order assumed when a binary encoding
            omits ``byteOrder``.
        byte_encoding: How packed binary values carried as text are
            turned into bytes (``base64``, ``base64url`` or ``hex``).
    """

    validate: bool = False
    strict: bool = False
    default_byte_order: str = BIG_ENDIAN
    byte_encoding: str = BYTE_ENCODING_BASE64

    @classmethod
    def from_env(cls) -> ParserConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is not a recognised literal
                or the combination of values is inconsistent.
        """
        config = cls(
            validate=_env_bool("CSAPI_VALIDATE", default=False),
            strict=_env_bool("CSAPI_STRICT", default=False),
            default_byte_order=os.getenv("CSAPI_DEFAULT_BYTE_ORDER", BIG_ENDIAN),
            byte_encoding=os.getenv("CSAPI_BYTE_ENCODING", BYTE_ENCODING_BASE64).lower(),
        )
        _validate(config)
        return config


def _env_bool(key: str, *, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    normalised = raw.strip().lower()
    if normalised in _TRUE_LITERALS:
        return True
    if normalised in _FALSE_LITERALS:
        return False
    raise ConfigValidationError(key, raw, "must be a boolean literal (true/false, 1/0, yes/no)")


def _validate(config: ParserConfig) -> None:
    """Validate configuration values.  Raises ``ConfigValidationError``."""
    if config.strict and not config.validate:
        raise ConfigValidationError(
            "CSAPI_STRICT",
            config.strict,
            "strict mode requires CSAPI_VALIDATE to be enabled",
        )

    if config.default_byte_order not in BYTE_ORDERS:
        raise ConfigValidationError(
            "CSAPI_DEFAULT_BYTE_ORDER",
            config.default_byte_order,
            f"must be one of {sorted(BYTE_ORDERS)}",
        )

    if config.byte_encoding not in BYTE_ENCODINGS:
        raise ConfigValidationError(
            "CSAPI_BYTE_ENCODING",
            config.byte_encoding,
            f"must be one of {sorted(BYTE_ENCODINGS)}",
        )
