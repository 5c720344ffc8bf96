"""Validation of CSAPI GeoJSON features and feature collections.

Every CSAPI feature must be a GeoJSON ``Feature`` whose ``properties``
carry a string ``featureType`` and a ``uid``.  Some kinds require more:

- Deployment: ``system``
- Datastream: ``system`` and ``observedProperty``
- ControlStream: ``system`` and ``controlledProperty``
- Property: ``definition``

Geometries are checked with shapely: one that cannot be built is an
error, one that builds but is not OGC-valid is a warning.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from csapi_formats.models.issues import ValidationResult
from csapi_formats.models.records import ResourceKind

logger = logging.getLogger("csapi_formats.geojson.validator")

FeatureValidator = Callable[[Any], ValidationResult]

REQUIRED_PROPERTIES: dict[ResourceKind, tuple[str, ...]] = {
    ResourceKind.SYSTEM: (),
    ResourceKind.DEPLOYMENT: ("system",),
    ResourceKind.PROCEDURE: (),
    ResourceKind.SAMPLING_FEATURE: (),
    ResourceKind.PROPERTY: ("definition",),
    ResourceKind.DATASTREAM: ("system", "observedProperty"),
    ResourceKind.CONTROL_STREAM: ("system", "controlledProperty"),
}

FEATURE_KINDS = tuple(REQUIRED_PROPERTIES)


def _is_feature(data: Any) -> bool:
    return isinstance(data, Mapping) and data.get("type") == "Feature" and "properties" in data


def _is_feature_collection(data: Any) -> bool:
    return (
        isinstance(data, Mapping)
        and data.get("type") == "FeatureCollection"
        and isinstance(data.get("features"), list)
    )


def feature_type_matches(feature_type: str, kind: ResourceKind) -> bool:
    """Compare a ``featureType`` to *kind*, accepting URI and CURIE spellings.

    ``System``, ``sosa:System`` and ``http://www.w3.org/ns/sosa/System``
    all match ``ResourceKind.SYSTEM``.
    """
    local = feature_type.rsplit("/", 1)[-1].rsplit("#", 1)[-1].rsplit(":", 1)[-1]
    return local == kind.value


def check_geometry(geometry: Any) -> ValidationResult:
    """Build *geometry* with shapely and report what is wrong with it.

    ``None`` is a valid (absent) geometry.
    """
    if geometry is None:
        return ValidationResult()
    from shapely.geometry import shape
    from shapely.validation import explain_validity

    if not isinstance(geometry, Mapping):
        return ValidationResult(["Geometry must be an object or null"])
    try:
        geom = shape(geometry)
    except Exception as exc:
        return ValidationResult([f"Invalid geometry: {exc}"])
    if geom.is_empty:
        return ValidationResult(warnings=[f"{geometry.get('type')} geometry is empty"])
    if not geom.is_valid:
        return ValidationResult(warnings=[f"Geometry is not valid: {explain_validity(geom)}"])
    return ValidationResult()


def validate_feature(data: Any, kind: ResourceKind) -> ValidationResult:
    """Validate one Feature as a CSAPI resource of *kind*."""
    if not _is_feature(data):
        return ValidationResult(["Object is not a valid GeoJSON Feature"])

    props = data["properties"]
    if not isinstance(props, Mapping) or not isinstance(props.get("featureType"), str) or "uid" not in props:
        return ValidationResult(["Missing required CSAPI properties (featureType, uid)"])

    errors: list[str] = []
    if not feature_type_matches(props["featureType"], kind):
        errors.append(f"Expected featureType '{kind.value}', got '{props['featureType']}'")
    for key in REQUIRED_PROPERTIES[kind]:
        if not props.get(key):
            errors.append(f"Missing required property: {key}")

    return ValidationResult(errors).merged(check_geometry(data.get("geometry")))


def validate_feature_collection(data: Any, kind: ResourceKind) -> ValidationResult:
    """Validate every Feature of a FeatureCollection, prefixing its index."""
    if not _is_feature_collection(data):
        return ValidationResult(["Object is not a valid GeoJSON FeatureCollection"])

    errors: list[str] = []
    warnings: list[str] = []
    for index, feature in enumerate(data["features"]):
        result = validate_feature(feature, kind)
        if result.errors:
            errors.append(f"Feature at index {index}: {', '.join(result.errors)}")
        warnings.extend(f"Feature at index {index}: {w}" for w in result.warnings)
    logger.debug("Feature collection checked | kind=%s features=%d", kind.value, len(data["features"]))
    return ValidationResult(errors, warnings)


def _feature_validator(kind: ResourceKind) -> FeatureValidator:
    def validator(data: Any) -> ValidationResult:
        return validate_feature(data, kind)

    validator.__name__ = f"validate_{kind.name.lower()}_feature"
    validator.__doc__ = f"Validate a {kind.value} Feature."
    return validator


def _collection_validator(kind: ResourceKind) -> FeatureValidator:
    def validator(data: Any) -> ValidationResult:
        return validate_feature_collection(data, kind)

    validator.__name__ = f"validate_{kind.name.lower()}_feature_collection"
    validator.__doc__ = f"Validate a FeatureCollection of {kind.value} Features."
    return validator


validate_system_feature = _feature_validator(ResourceKind.SYSTEM)
validate_deployment_feature = _feature_validator(ResourceKind.DEPLOYMENT)
validate_procedure_feature = _feature_validator(ResourceKind.PROCEDURE)
validate_sampling_feature = _feature_validator(ResourceKind.SAMPLING_FEATURE)
validate_property_feature = _feature_validator(ResourceKind.PROPERTY)
validate_datastream_feature = _feature_validator(ResourceKind.DATASTREAM)
validate_control_stream_feature = _feature_validator(ResourceKind.CONTROL_STREAM)

validate_system_feature_collection = _collection_validator(ResourceKind.SYSTEM)
validate_deployment_feature_collection = _collection_validator(ResourceKind.DEPLOYMENT)
validate_procedure_feature_collection = _collection_validator(ResourceKind.PROCEDURE)
validate_sampling_feature_collection = _collection_validator(ResourceKind.SAMPLING_FEATURE)
validate_property_feature_collection = _collection_validator(ResourceKind.PROPERTY)
validate_datastream_feature_collection = _collection_validator(ResourceKind.DATASTREAM)
validate_control_stream_feature_collection = _collection_validator(ResourceKind.CONTROL_STREAM)


def validate_csapi_feature(data: Any) -> ValidationResult:
    """Validate a Feature against the kind named by its ``featureType``."""
    if not _is_feature(data):
        return ValidationResult(["Object is not a valid GeoJSON Feature"])
    props = data["properties"]
    feature_type = props.get("featureType") if isinstance(props, Mapping) else None
    if isinstance(feature_type, str):
        for kind in FEATURE_KINDS:
            if feature_type_matches(feature_type, kind):
                return validate_feature(data, kind)
    return ValidationResult([f"Unknown or unsupported featureType: {feature_type}"])
