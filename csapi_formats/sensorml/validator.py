"""Structural validation of SensorML JSON documents.

Checks the member shapes that the SensorML 3.0 JSON schemas require
(array-valued lists, string references, object-valued methods) without
loading the schemas themselves.  Missing identification or description
is a warning, not an error.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from csapi_formats.core.constants import SENSORML_DEPLOYMENT_TYPE, SENSORML_DERIVED_PROPERTY_TYPE
from csapi_formats.models.issues import ValidationResult
from csapi_formats.utils.helpers import check_array_members, is_link, is_valid_uri

logger = logging.getLogger("csapi_formats.sensorml.validator")

_DESCRIBED_OBJECT_ARRAYS = ("keywords", "identifiers", "classifiers", "contacts", "documents")
_PROCESS_ARRAYS = ("inputs", "outputs", "parameters", "modes")
_AGGREGATE_ARRAYS = ("components", "connections")


def _is_reference(value: Any) -> bool:
    return isinstance(value, str) or is_link(value)


def _check_described_object(doc: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    for key in ("id", "uniqueId", "label", "description"):
        if doc.get(key) is not None and not isinstance(doc[key], str):
            errors.append(f"{key} must be a string")
    check_array_members(doc, _DESCRIBED_OBJECT_ARRAYS, errors)

    if not doc.get("uniqueId") and not doc.get("id"):
        warnings.append("Object should have uniqueId or id for identification")
    if not doc.get("label") and not doc.get("description"):
        warnings.append("Object should have label or description for clarity")


def _check_process(doc: Mapping[str, Any], errors: list[str]) -> None:
    check_array_members(doc, _PROCESS_ARRAYS, errors)
    if doc.get("typeOf") is not None and not _is_reference(doc["typeOf"]):
        errors.append("typeOf must be a string reference")


def _check_physical(doc: Mapping[str, Any], errors: list[str]) -> None:
    _check_process(doc, errors)
    if doc.get("position") is not None and not isinstance(doc["position"], Mapping):
        errors.append("position must be an object")
    check_array_members(doc, ("localReferenceFrames", "localTimeFrames"), errors)
    if doc.get("attachedTo") is not None and not _is_reference(doc["attachedTo"]):
        errors.append("attachedTo must be a string reference")


def _check_aggregate(doc: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    check_array_members(doc, _AGGREGATE_ARRAYS, errors)
    components = doc.get("components")
    if isinstance(components, list) and not components:
        warnings.append(f"{doc.get('type')} has no components")


def _check_method(doc: Mapping[str, Any], errors: list[str]) -> None:
    if doc.get("method") is not None and not isinstance(doc["method"], Mapping):
        errors.append("method must be an object")


def _physical_system(doc: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    _check_physical(doc, errors)
    _check_aggregate(doc, errors, warnings)


def _physical_component(doc: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    _check_physical(doc, errors)
    _check_method(doc, errors)


def _simple_process(doc: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    _check_process(doc, errors)
    _check_method(doc, errors)


def _aggregate_process(doc: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    _check_process(doc, errors)
    _check_aggregate(doc, errors, warnings)


_PROCESS_CHECKS = {
    "PhysicalSystem": _physical_system,
    "PhysicalComponent": _physical_component,
    "SimpleProcess": _simple_process,
    "AggregateProcess": _aggregate_process,
}


def validate_sensorml_process(doc: Any) -> ValidationResult:
    """Validate a PhysicalSystem, PhysicalComponent, SimpleProcess or AggregateProcess."""
    if not isinstance(doc, Mapping):
        return ValidationResult(["SensorML process must be an object"])
    errors: list[str] = []
    warnings: list[str] = []

    process_type = doc.get("type")
    if not process_type:
        errors.append("Missing required property: type")
    else:
        check = _PROCESS_CHECKS.get(process_type)
        if check is None:
            errors.append(f"Unknown process type: {process_type}")
        else:
            check(doc, errors, warnings)

    _check_described_object(doc, errors, warnings)
    logger.debug("SensorML process checked | type=%s errors=%d", process_type, len(errors))
    return ValidationResult(errors, warnings)


def validate_deployment(doc: Any) -> ValidationResult:
    """Validate a SensorML Deployment."""
    if not isinstance(doc, Mapping):
        return ValidationResult(["Deployment must be an object"])
    errors: list[str] = []
    warnings: list[str] = []

    if doc.get("type") != SENSORML_DEPLOYMENT_TYPE:
        errors.append(f"Expected type 'Deployment', got '{doc.get('type')}'")
    if not doc.get("validTime") and not doc.get("location"):
        warnings.append("Deployment should have validTime or location")

    deployed = doc.get("deployedSystems")
    if deployed is not None:
        if not isinstance(deployed, list):
            errors.append("deployedSystems must be an array")
        elif not deployed:
            warnings.append("Deployment has no deployed systems")
    if doc.get("platform") is not None and not isinstance(doc["platform"], Mapping):
        errors.append("platform must be an object")

    _check_described_object(doc, errors, warnings)
    return ValidationResult(errors, warnings)


def validate_derived_property(doc: Any) -> ValidationResult:
    """Validate a SensorML DerivedProperty."""
    if not isinstance(doc, Mapping):
        return ValidationResult(["DerivedProperty must be an object"])
    errors: list[str] = []
    warnings: list[str] = []

    if doc.get("type") not in (None, SENSORML_DERIVED_PROPERTY_TYPE):
        errors.append(f"Expected type 'DerivedProperty', got '{doc.get('type')}'")
    base = doc.get("baseProperty")
    if not base:
        errors.append("Missing required property: baseProperty")
    elif not is_valid_uri(base):
        warnings.append("baseProperty should be a valid URI")
    if doc.get("label") is not None and not isinstance(doc["label"], str):
        errors.append("label must be a string")
    return ValidationResult(errors, warnings)
