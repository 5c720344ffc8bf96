"""Wire-format detection for CSAPI payloads.

Two independent signals are combined:

1. The ``Content-Type`` header, which is authoritative for the three
   CSAPI media types and only a weak hint for plain JSON.
2. The body's top-level ``type`` discriminant.

Precedence: a high-confidence header wins; otherwise a high-confidence
body wins; otherwise the header (when one was recognised) wins over the
body.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from csapi_formats.core.constants import (
    FORMAT_GEOJSON,
    FORMAT_JSON,
    FORMAT_SENSORML,
    FORMAT_SWE,
    GEOJSON_TYPES,
    MEDIA_TYPE_GEOJSON,
    MEDIA_TYPE_JSON,
    MEDIA_TYPE_SENSORML_JSON,
    MEDIA_TYPE_SWE_BINARY,
    MEDIA_TYPE_SWE_CSV,
    MEDIA_TYPE_SWE_JSON,
    MEDIA_TYPE_SWE_TEXT,
    SENSORML_TYPES,
    SWE_DETECTION_TYPES,
)
from csapi_formats.models.records import FormatDetection

logger = logging.getLogger("csapi_formats.detection")

_HIGH_CONFIDENCE_MEDIA_TYPES: dict[str, str] = {
    MEDIA_TYPE_GEOJSON: FORMAT_GEOJSON,
    MEDIA_TYPE_SENSORML_JSON: FORMAT_SENSORML,
    MEDIA_TYPE_SWE_JSON: FORMAT_SWE,
    MEDIA_TYPE_SWE_CSV: FORMAT_SWE,
    MEDIA_TYPE_SWE_TEXT: FORMAT_SWE,
    MEDIA_TYPE_SWE_BINARY: FORMAT_SWE,
}

_GENERIC_JSON = FormatDetection(format=FORMAT_JSON, media_type=MEDIA_TYPE_JSON, confidence="low")


def normalise_media_type(content_type: str | None) -> str | None:
    """Strip parameters and case from a ``Content-Type`` value."""
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type or None


def detect_format_from_content_type(content_type: str | None) -> FormatDetection | None:
    """Classify a ``Content-Type`` header, or ``None`` if it says nothing useful."""
    media_type = normalise_media_type(content_type)
    if media_type is None:
        return None

    fmt = _HIGH_CONFIDENCE_MEDIA_TYPES.get(media_type)
    if fmt is not None:
        return FormatDetection(format=fmt, media_type=media_type, confidence="high")

    # Generic JSON and vendor +json types need body inspection.
    if media_type == MEDIA_TYPE_JSON or media_type.endswith("+json"):
        return FormatDetection(format=FORMAT_JSON, media_type=media_type, confidence="low")

    return None


def detect_format_from_body(body: Any) -> FormatDetection:
    """Classify a decoded body by its top-level ``type``."""
    if not isinstance(body, Mapping):
        return _GENERIC_JSON

    body_type = body.get("type")
    if not isinstance(body_type, str):
        return _GENERIC_JSON

    if body_type in GEOJSON_TYPES:
        return FormatDetection(format=FORMAT_GEOJSON, media_type=MEDIA_TYPE_GEOJSON, confidence="high")
    if body_type in SENSORML_TYPES:
        return FormatDetection(
            format=FORMAT_SENSORML, media_type=MEDIA_TYPE_SENSORML_JSON, confidence="high"
        )
    if body_type in SWE_DETECTION_TYPES:
        return FormatDetection(format=FORMAT_SWE, media_type=MEDIA_TYPE_SWE_JSON, confidence="medium")
    return _GENERIC_JSON


def detect_format(content_type: str | None, body: Any) -> FormatDetection:
    """Combine header and body signals into a single detection.

    Args:
        content_type: Raw ``Content-Type`` header value, or ``None``.
        body: Decoded response body.

    Returns:
        The winning ``FormatDetection``.
    """
    header = detect_format_from_content_type(content_type)
    if header is not None and header.confidence == "high":
        logger.debug("Format from header | format=%s media_type=%s", header.format, header.media_type)
        return header

    from_body = detect_format_from_body(body)
    if from_body.confidence == "high":
        logger.debug("Format from body | format=%s", from_body.format)
        return from_body

    return header or from_body
