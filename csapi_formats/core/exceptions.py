"""Unified exception taxonomy for the format engine.

Every error raised by the engine inherits from ``CsapiError`` and carries
structured context fields so that callers can log, classify and report
failures consistently without string matching.

Taxonomy categories
-------------------
- ``CsapiParseError``      a payload cannot be turned into the requested
  resource (wrong top-level shape, format not applicable, strict-mode
  validation failure, wrapped lower-level failures).
- ``ComponentParseError``  a SWE Common component tree violates a
  structural rule; carries the path to the offending node.
- ``BinaryCodecError``     packed binary cannot be encoded or decoded.
- ``TextCodecError``       delimited text cannot be encoded or decoded.

Every exception exposes ``to_error_dict()`` for a stable structured error
payload suitable for logging and diagnostics.
"""

from __future__ import annotations


class CsapiError(Exception):
    """Base exception for all format-engine errors.

    Attributes:
        message: Human-readable error description.
        stage: Engine stage where the error occurred
            (e.g. ``"swe_parser"``, ``"binary_codec"``).
        code: Machine-readable error code (e.g. ``"COMPONENT_INVALID"``).
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ComponentParseError):
            return "structural"
        if isinstance(self, (BinaryCodecError, TextCodecError)):
            return "codec"
        if isinstance(self, CsapiParseError):
            return "format"
        return "engine"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
        }


# ---------------------------------------------------------------------------
# Category classes
# ---------------------------------------------------------------------------


class CsapiParseError(CsapiError):
    """A payload could not be parsed as the requested resource.

    Attributes:
        format: Detected wire format tag (``"geojson"``, ``"sensorml"``,
            ``"swe"``, ``"json"``) when known.
        cause: The wrapped lower-level exception, if any.
    """

    default_stage = "resource_parser"
    default_code = "PARSE_FAILED"

    def __init__(
        self,
        message: str = "",
        format: str | None = None,  # noqa: A002
        cause: BaseException | None = None,
        **kwargs: str,
    ) -> None:
        self.format = format
        self.cause = cause
        super().__init__(message, **kwargs)

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["format"] = self.format
        if self.cause is not None:
            payload["cause"] = str(self.cause)
        return payload


class ComponentParseError(CsapiError):
    """A SWE Common component violates a structural rule.

    Attributes:
        path: Dot/bracket route from the document root to the first
            offending node (e.g. ``"fields[0].component.elementType"``),
            or ``None`` when the root itself is at fault.
    """

    default_stage = "swe_parser"
    default_code = "COMPONENT_INVALID"

    def __init__(self, message: str = "", path: str | None = None) -> None:
        self.path = path
        super().__init__(message)

    def prefixed(self, segment: str) -> ComponentParseError:
        """Return a copy of this error re-rooted one level up at *segment*."""
        path = f"{segment}.{self.path}" if self.path else segment
        return ComponentParseError(self.message, path)

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (at {self.path})"
        return self.message

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["path"] = self.path
        return payload


class BinaryCodecError(CsapiError):
    """Packed binary data could not be encoded or decoded.

    Attributes:
        member: ``ref`` of the encoding member being processed, if any.
    """

    default_stage = "binary_codec"
    default_code = "BINARY_CODEC_FAILED"

    def __init__(self, message: str = "", member: str | None = None) -> None:
        self.member = member
        if member:
            message = f"Member '{member}': {message}"
        super().__init__(message)


class TextCodecError(CsapiError):
    """Delimited text data could not be encoded or decoded."""

    default_stage = "text_codec"
    default_code = "TEXT_CODEC_FAILED"
