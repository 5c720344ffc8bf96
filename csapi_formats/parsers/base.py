"""ResourceParser abstract base class.

Defines the parse flow every resource kind shares:

    1. ``load_body``      normalise the transport body.
    2. ``detect_format``  pick geojson / sensorml / swe / json.
    3. branch             ``parse_geojson``, ``parse_sensorml``,
                          ``parse_swe`` or the generic-json fold.
    4. validate           only when asked; errors escalate in strict mode.

Concrete parsers (``csapi_formats.parsers.resources``) fill in the three
format branches.  A branch that has no meaning for the kind raises
``CsapiParseError`` with a kind-specific message instead of attempting
the conversion.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Union

from pydantic import ValidationError

from csapi_formats.core.config import ParserConfig
from csapi_formats.core.constants import (
    FORMAT_GEOJSON,
    FORMAT_JSON,
    FORMAT_SENSORML,
    FORMAT_SWE,
    MEDIA_TYPE_SWE_BINARY,
)
from csapi_formats.core.exceptions import CsapiError, CsapiParseError
from csapi_formats.core.payload import load_body, resolve_byte_decoder
from csapi_formats.detection import detect_format, normalise_media_type
from csapi_formats.models.issues import ValidationResult
from csapi_formats.models.records import ParseResult, ResourceProperties, ResourceRecord

if TYPE_CHECKING:
    from csapi_formats.core.payload import ByteDecoder
    from csapi_formats.models.contracts import FeatureDict
    from csapi_formats.models.records import FormatDetection, ResourceKind

logger = logging.getLogger("csapi_formats.parsers")

Parsed = Union[ResourceRecord, list[ResourceRecord]]


def feature_to_record(feature: FeatureDict | Mapping[str, Any], kind: str) -> ResourceRecord:
    """Canonical record of a GeoJSON Feature; a missing geometry is ``None``."""
    properties = feature.get("properties") or {}
    if not isinstance(properties, Mapping):
        msg = f"Feature properties must be an object, got {type(properties).__name__}"
        raise CsapiParseError(msg, FORMAT_GEOJSON)
    feature_id = feature.get("id")
    return ResourceRecord(
        kind=kind,
        id=None if feature_id is None else str(feature_id),
        geometry=feature.get("geometry"),
        properties=ResourceProperties.model_validate(dict(properties)),
    )


class ResourceParser(abc.ABC):
    """Abstract base class for resource parsers.

    Subclasses set ``kind`` and implement the three format branches.  The
    constructor takes a ``ParserConfig``; ``parse`` keyword options
    override it per call.

    Example usage::

        parser = get_parser("System")
        result = parser.parse(body, content_type="application/geo+json", validate=True)
        record = result.data
    """

    kind: ClassVar[ResourceKind]

    def __init__(self, config: ParserConfig | None = None) -> None:
        self._config = config or ParserConfig()
        self._byte_decoder: ByteDecoder = resolve_byte_decoder(self._config.byte_encoding)

    @property
    def config(self) -> ParserConfig:
        """Return the parser configuration (read-only)."""
        return self._config

    # ------------------------------------------------------------------
    # Format branches
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def parse_geojson(self, data: Any) -> Parsed:
        """Convert a GeoJSON Feature (or collection) to canonical records."""

    @abc.abstractmethod
    def parse_sensorml(self, data: Any) -> Parsed:
        """Convert a SensorML document to canonical records."""

    @abc.abstractmethod
    def parse_swe(self, data: Any) -> Parsed:
        """Convert SWE Common schemas or values to canonical records."""

    def candidates(self) -> list[tuple[str, Callable[[Any], Parsed]]]:
        """Ordered branches tried for generic JSON; the first success wins."""
        return [
            (FORMAT_GEOJSON, self.parse_geojson),
            (FORMAT_SENSORML, self.parse_sensorml),
            (FORMAT_SWE, self.parse_swe),
        ]

    def parse_json(self, data: Any) -> tuple[Parsed, str]:
        """Fold over ``candidates()``; return the result and the winning format.

        Raises:
            CsapiParseError: Listing every candidate's failure when none
                succeeds.
        """
        reasons: list[str] = []
        for fmt, branch in self.candidates():
            try:
                parsed = branch(data)
            except CsapiError as exc:
                reasons.append(f"{fmt}: {exc}")
                continue
            except ValidationError as exc:
                reasons.append(f"{fmt}: {_pydantic_message(exc)}")
                continue
            if reasons:
                logger.warning("Generic JSON parsed as %s after %d failed candidate(s)", fmt, len(reasons))
            return parsed, fmt
        msg = f"Unable to parse data in any known format ({'; '.join(reasons)})"
        raise CsapiParseError(msg, FORMAT_JSON)

    # ------------------------------------------------------------------
    # Validation hooks
    # ------------------------------------------------------------------

    def validate_geojson(self, data: Any) -> ValidationResult:
        return ValidationResult()

    def validate_sensorml(self, data: Any) -> ValidationResult:
        return ValidationResult()

    def validate_swe(self, data: Any) -> ValidationResult:
        return ValidationResult()

    def validate(self, data: Any, fmt: str) -> ValidationResult:
        """Run the validator for *fmt* on the normalised body."""
        if fmt == FORMAT_GEOJSON:
            return self.validate_geojson(data)
        if fmt == FORMAT_SENSORML:
            return self.validate_sensorml(data)
        if fmt == FORMAT_SWE:
            return self.validate_swe(data)
        return ValidationResult()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def _load(self, body: Any, content_type: str | None) -> Any:
        is_bytes = isinstance(body, (bytes, bytearray, memoryview))
        if is_bytes and normalise_media_type(content_type) == MEDIA_TYPE_SWE_BINARY:
            return bytes(body)
        return load_body(body)

    def _branch(self, data: Any, detection: FormatDetection) -> tuple[Parsed, str]:
        fmt = detection.format
        if fmt == FORMAT_GEOJSON:
            return self.parse_geojson(data), fmt
        if fmt == FORMAT_SENSORML:
            return self.parse_sensorml(data), fmt
        if fmt == FORMAT_SWE:
            return self.parse_swe(data), fmt
        return self.parse_json(data)

    def parse(
        self,
        body: Any,
        *,
        content_type: str | None = None,
        validate: bool | None = None,
        strict: bool | None = None,
    ) -> ParseResult:
        """Parse *body* into canonical records.

        Args:
            body: Decoded JSON, JSON text, raw text or bytes.
            content_type: The response ``Content-Type``, if known.
            validate: Run validation (default: ``config.validate``).
            strict: Raise on validation errors (default: ``config.strict``).

        Returns:
            A ``ParseResult``; ``errors``/``warnings`` are ``None`` unless
            validation ran and reported something.

        Raises:
            CsapiParseError: On a format error, a wrapped structural or
                codec error, or validation errors in strict mode.
        """
        validate = self._config.validate if validate is None else validate
        strict = self._config.strict if strict is None else strict

        data = self._load(body, content_type)
        detection = detect_format(content_type, data)

        try:
            parsed, fmt = self._branch(data, detection)
        except CsapiParseError:
            raise
        except CsapiError as exc:
            msg = f"Failed to parse {detection.format} data: {exc}"
            raise CsapiParseError(msg, detection.format, exc) from exc
        except ValidationError as exc:
            msg = f"Failed to parse {detection.format} data: {_pydantic_message(exc)}"
            raise CsapiParseError(msg, detection.format, exc) from exc

        errors: list[str] | None = None
        warnings: list[str] | None = None
        if validate:
            result = self.validate(data, fmt)
            errors = list(result.errors) or None
            warnings = list(result.warnings) or None
            if errors and strict:
                msg = f"Validation failed: {'; '.join(errors)}"
                raise CsapiParseError(msg, fmt)

        logger.info(
            "Parsed payload | kind=%s format=%s confidence=%s records=%d",
            self.kind.value,
            fmt,
            detection.confidence,
            len(parsed) if isinstance(parsed, list) else 1,
        )
        return ParseResult(data=parsed, format=detection, errors=errors, warnings=warnings)


def _pydantic_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
