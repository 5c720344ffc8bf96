"""CSAPI GeoJSON feature validation."""

from csapi_formats.geojson.validator import (
    check_geometry,
    validate_control_stream_feature,
    validate_control_stream_feature_collection,
    validate_csapi_feature,
    validate_datastream_feature,
    validate_datastream_feature_collection,
    validate_deployment_feature,
    validate_deployment_feature_collection,
    validate_feature,
    validate_feature_collection,
    validate_procedure_feature,
    validate_procedure_feature_collection,
    validate_property_feature,
    validate_property_feature_collection,
    validate_sampling_feature,
    validate_sampling_feature_collection,
    validate_system_feature,
    validate_system_feature_collection,
)

__all__ = [
    "check_geometry",
    "validate_control_stream_feature",
    "validate_control_stream_feature_collection",
    "validate_csapi_feature",
    "validate_datastream_feature",
    "validate_datastream_feature_collection",
    "validate_deployment_feature",
    "validate_deployment_feature_collection",
    "validate_feature",
    "validate_feature_collection",
    "validate_procedure_feature",
    "validate_procedure_feature_collection",
    "validate_property_feature",
    "validate_property_feature_collection",
    "validate_sampling_feature",
    "validate_sampling_feature_collection",
    "validate_system_feature",
    "validate_system_feature_collection",
]
