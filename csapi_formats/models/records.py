"""Pydantic output contract of the resource parsers.

Every resource parser, whatever the wire format, produces the same
canonical shape:

- **ResourceRecord**: ``kind`` + ``id`` + ``geometry`` + ``properties``
- **ParseResult**: the record (or list of records) with the detected
  format and any validation diagnostics

``geometry`` distinguishes three states.  A GeoJSON dict is a resolved
location; an explicit ``None`` means the resource legitimately has no
location; leaving the field unset means extraction was attempted and
could not resolve a geometry, so it is omitted from ``to_dict()``.
"""

from __future__ import annotations

import enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ResourceKind(enum.Enum):
    """The nine CSAPI resource kinds."""

    SYSTEM = "System"
    DEPLOYMENT = "Deployment"
    PROCEDURE = "Procedure"
    SAMPLING_FEATURE = "SamplingFeature"
    PROPERTY = "Property"
    DATASTREAM = "Datastream"
    CONTROL_STREAM = "ControlStream"
    OBSERVATION = "Observation"
    COMMAND = "Command"


class FormatDetection(BaseModel):
    """Result of format detection.

    Attributes:
        format: ``"geojson"``, ``"sensorml"``, ``"swe"`` or ``"json"``.
        media_type: Media type the decision was based on.
        confidence: ``"high"``, ``"medium"`` or ``"low"``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    format: str
    media_type: str = Field(alias="mediaType")
    confidence: Literal["high", "medium", "low"]


class ResourceProperties(BaseModel):
    """Ordered property bag with the slots the engine knows about.

    Unknown keys are accepted and kept in insertion order after the
    known slots.  Slot values are carried as received; content checks
    belong to the validators, not to this model.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    feature_type: Any = Field(default=None, alias="featureType")
    uid: Any = None
    name: Any = None
    description: Any = None
    valid_time: Any = Field(default=None, alias="validTime")
    system: Any = None
    observed_property: Any = Field(default=None, alias="observedProperty")
    controlled_property: Any = Field(default=None, alias="controlledProperty")
    definition: Any = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class ResourceRecord(BaseModel):
    """Canonical record for one resource.

    Attributes:
        kind: Resource kind name (``"System"``, ``"Observation"`` …).
        id: Server identifier, if the payload carried one.
        geometry: GeoJSON geometry, ``None``, or unset (see module docs).
        properties: Flattened resource properties.
    """

    kind: str
    id: str | None = None
    geometry: dict[str, Any] | None = None
    properties: ResourceProperties = Field(default_factory=ResourceProperties)

    @property
    def geometry_resolved(self) -> bool:
        """False when extraction ran but could not determine a geometry."""
        return "geometry" in self.model_fields_set

    def to_dict(self) -> dict[str, Any]:
        """Serialise with camelCase property keys, omitting unset slots."""
        out: dict[str, Any] = {"kind": self.kind, "id": self.id}
        if self.geometry_resolved:
            out["geometry"] = self.geometry
        out["properties"] = self.properties.to_dict()
        return out


class ParseResult(BaseModel):
    """What every parse call returns.

    ``errors`` and ``warnings`` stay ``None`` when validation did not run
    and when it ran without reporting anything; a list is never empty.
    """

    data: ResourceRecord | list[ResourceRecord]
    format: FormatDetection
    errors: list[str] | None = None
    warnings: list[str] | None = None

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.data, list):
            data: Any = [record.to_dict() for record in self.data]
        else:
            data = self.data.to_dict()
        out: dict[str, Any] = {"data": data, "format": self.format.model_dump(by_alias=True)}
        if self.errors is not None:
            out["errors"] = list(self.errors)
        if self.warnings is not None:
            out["warnings"] = list(self.warnings)
        return out
