"""Position extraction: turn the many "where is this" shapes into GeoJSON.

SensorML and SWE Common describe a location in several ways.  This module
maps each of them onto one GeoJSON geometry dict, or ``None`` when the
position cannot be resolved without fetching something:

- GeoJSON geometry: passed through unchanged.
- Pose ``{"position": {"lat", "lon", "h"}}`` or ``{"x", "y", "z"}``:
  3D Point, a missing or null height defaults to 0.
- Vector: coordinate values mapped 1:1 onto Point ordinates (at least two;
  a coordinate without a value counts as 0; ordinates past the third are
  kept).
- DataRecord with lat/latitude and lon/longitude/long fields: 3D Point,
  altitude from alt/altitude/h (default 0).
- DataArray trajectory: the last sample, every ordinate kept (at least two).
- Text, external references and process descriptions: ``None``.

Unresolvable shapes never raise; they are logged at ``warning`` and
yield ``None``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from csapi_formats.core.constants import GEOJSON_GEOMETRY_TYPES, SENSORML_PROCESS_TYPES

logger = logging.getLogger("csapi_formats.geometry")

LATITUDE_NAMES = ("lat", "latitude")
LONGITUDE_NAMES = ("lon", "longitude", "long")
ALTITUDE_NAMES = ("alt", "altitude", "h")

_UNRESOLVABLE_TYPES = frozenset({"Text", "Category", "Link"})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def make_point(ordinates: Sequence[Any]) -> dict[str, Any] | None:
    """Build a GeoJSON Point from numeric ordinates via shapely.

    Shapely builds the point from the first two or three ordinates; any
    further ordinates (a measure, a time offset) are appended unchanged,
    as GeoJSON positions allow.  Returns ``None`` when fewer than two
    ordinates are given or any is not a finite number.
    """
    from shapely.geometry import Point, mapping

    if len(ordinates) < 2:
        return None
    if not all(_is_number(v) and math.isfinite(v) for v in ordinates):
        return None
    values = [float(v) for v in ordinates]
    geometry = mapping(Point(*values[:3]))
    return {"type": geometry["type"], "coordinates": [*geometry["coordinates"], *values[3:]]}


# ---------------------------------------------------------------------------
# Shape handlers
# ---------------------------------------------------------------------------


def _height(position: Mapping[str, Any], key: str) -> Any:
    value = position.get(key)
    return 0 if value is None else value


def _pose(position: Mapping[str, Any]) -> dict[str, Any] | None:
    if "lat" in position and "lon" in position:
        return make_point([position["lon"], position["lat"], _height(position, "h")])
    if "x" in position and "y" in position:
        return make_point([position["x"], position["y"], _height(position, "z")])
    return None


def _slot_value(slot: Any) -> Any:
    """Value of a named child in either its flat or ``component`` wire form."""
    if not isinstance(slot, Mapping):
        return None
    if "value" in slot:
        return slot["value"]
    inner = slot.get("component")
    if isinstance(inner, Mapping):
        return inner.get("value")
    return None


def _vector(data: Mapping[str, Any]) -> dict[str, Any] | None:
    coordinates = data.get("coordinates")
    if not isinstance(coordinates, list) or len(coordinates) < 2:
        return None
    ordinates = [_slot_value(c) for c in coordinates]
    return make_point([0 if v is None else v for v in ordinates])


def _record(data: Mapping[str, Any]) -> dict[str, Any] | None:
    fields = data.get("fields")
    if not isinstance(fields, list):
        return None
    by_name = {
        f["name"].lower(): _slot_value(f)
        for f in fields
        if isinstance(f, Mapping) and isinstance(f.get("name"), str)
    }
    lat = next((by_name[n] for n in LATITUDE_NAMES if n in by_name), None)
    lon = next((by_name[n] for n in LONGITUDE_NAMES if n in by_name), None)
    if lat is None or lon is None:
        return None
    alt = next((by_name[n] for n in ALTITUDE_NAMES if by_name.get(n) is not None), 0)
    return make_point([lon, lat, alt])


def _trajectory(data: Mapping[str, Any]) -> dict[str, Any] | None:
    values = data.get("values")
    if not isinstance(values, list) or not values:
        return None
    last = values[-1]
    if isinstance(last, Mapping):
        last = list(last.values())
    if not isinstance(last, (list, tuple)):
        return None
    return make_point(list(last))


_HANDLERS = {
    "Vector": _vector,
    "DataRecord": _record,
    "DataArray": _trajectory,
}


def extract_geometry(position: Any) -> dict[str, Any] | None:
    """Resolve *position* to a GeoJSON geometry, or ``None``.

    Args:
        position: A SensorML ``position`` value or any supported shape.

    Returns:
        A GeoJSON geometry dict, or ``None`` when the position is absent,
        only referenced, or not a location shape this module understands.
    """
    if not isinstance(position, Mapping):
        if position is not None:
            logger.warning("Unsupported position value | type=%s", type(position).__name__)
        return None

    position_type = position.get("type")
    if position_type in GEOJSON_GEOMETRY_TYPES:
        return dict(position)

    pose = position.get("position")
    if isinstance(pose, Mapping):
        return _resolved(_pose(pose), "Pose")
    if position_type == "Pose":
        return _resolved(None, "Pose")

    handler = _HANDLERS.get(position_type)  # type: ignore[arg-type]
    if handler is not None:
        return _resolved(handler(position), position_type)

    if "href" in position and position_type is None:
        logger.info("Position is an external reference; not resolved | href=%s", position["href"])
        return None
    if position_type in _UNRESOLVABLE_TYPES or position_type in SENSORML_PROCESS_TYPES:
        logger.info("Position of type %s cannot be resolved to a geometry", position_type)
        return None

    logger.warning("Unrecognised position shape | type=%s", position_type)
    return None


def _resolved(geometry: dict[str, Any] | None, shape: str) -> dict[str, Any] | None:
    if geometry is None:
        logger.warning("Could not extract a point from %s position", shape)
    return geometry
