"""SensorML JSON support.

- conversion: SensorML document to canonical ``ResourceRecord``
- validator: process, deployment and derived-property checks
"""

from csapi_formats.sensorml.conversion import flatten_properties, sensorml_to_record
from csapi_formats.sensorml.validator import (
    validate_deployment,
    validate_derived_property,
    validate_sensorml_process,
)

__all__ = [
    "flatten_properties",
    "sensorml_to_record",
    "validate_deployment",
    "validate_derived_property",
    "validate_sensorml_process",
]
