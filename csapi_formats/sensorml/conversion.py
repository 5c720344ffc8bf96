"""SensorML JSON to canonical ``ResourceRecord``.

Identification and description members map onto the known property
slots; every other member except the location is copied into the
property bag unchanged, in document order.

Geometry:
- Physical processes use ``position`` and Deployments use ``location``.
- A document without that member has no location (``geometry=None``).
- A member that cannot be resolved leaves ``geometry`` unset.
- Non-physical processes and DerivedProperty never have a location.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from csapi_formats.core.constants import (
    SENSORML_DEPLOYMENT_TYPE,
    SENSORML_PHYSICAL_TYPES,
)
from csapi_formats.geometry import extract_geometry
from csapi_formats.models.records import ResourceProperties, ResourceRecord

logger = logging.getLogger("csapi_formats.sensorml.conversion")

# SensorML member -> canonical property slot.
_SLOT_NAMES: dict[str, str] = {
    "uniqueId": "uid",
    "label": "name",
    "description": "description",
    "validTime": "validTime",
    "definition": "definition",
}

_DROPPED = frozenset({"type", "id", "position", "location"})


def _location_member(doc_type: str | None) -> str | None:
    if doc_type in SENSORML_PHYSICAL_TYPES:
        return "position"
    if doc_type == SENSORML_DEPLOYMENT_TYPE:
        return "location"
    return None


def flatten_properties(doc: Mapping[str, Any]) -> ResourceProperties:
    """Build the property bag of a SensorML document.

    ``featureType`` is the SensorML ``type``.  A DerivedProperty
    ``baseProperty`` also fills ``definition`` when that slot is empty.
    """
    values: dict[str, Any] = {"featureType": doc.get("type")}
    for key, value in doc.items():
        if key in _DROPPED:
            continue
        values[_SLOT_NAMES.get(key, key)] = value

    if "baseProperty" in doc and "definition" not in values:
        values["definition"] = doc.get("baseProperty")
    return ResourceProperties.model_validate(values)


def sensorml_to_record(doc: Mapping[str, Any], kind: str) -> ResourceRecord:
    """Convert one SensorML document to a canonical record of *kind*."""
    doc_type = doc.get("type")
    raw_id = doc.get("id")
    record_id = None if raw_id is None else str(raw_id)
    properties = flatten_properties(doc)

    member = _location_member(doc_type)
    if member is None or doc.get(member) is None:
        return ResourceRecord(kind=kind, id=record_id, geometry=None, properties=properties)

    geometry = extract_geometry(doc[member])
    if geometry is None:
        logger.warning("Geometry unresolved for %s %s | member=%s", kind, record_id, member)
        return ResourceRecord(kind=kind, id=record_id, properties=properties)
    return ResourceRecord(kind=kind, id=record_id, geometry=geometry, properties=properties)
