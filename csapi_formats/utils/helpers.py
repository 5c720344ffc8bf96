"""Small helpers shared by the SensorML and GeoJSON validators."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

_URN = re.compile(r"^urn:[a-z0-9][a-z0-9-]{0,31}:[a-z0-9()+,\-.:=@;$_!*'%/?#]+$", re.IGNORECASE)


def is_valid_uri(value: Any) -> bool:
    """True for an absolute URL with scheme and host, or an RFC 8141 URN."""
    if not isinstance(value, str) or not value:
        return False
    if _URN.match(value):
        return True
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


def is_link(value: Any) -> bool:
    """True for a link object carrying a string ``href``."""
    return isinstance(value, Mapping) and isinstance(value.get("href"), str)


def check_array_members(doc: Mapping[str, Any], keys: tuple[str, ...], errors: list[str]) -> None:
    """Append "<key> must be an array" for every present, non-list member."""
    for key in keys:
        if doc.get(key) is not None and not isinstance(doc[key], list):
            errors.append(f"{key} must be an array")
