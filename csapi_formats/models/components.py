"""Typed SWE Common data-component tree.

A ``DataComponent`` is a recursive tagged union: every node is a frozen
dataclass whose ``kind`` class attribute is the wire ``type`` discriminant.
Nodes are built by ``csapi_formats.swe.parser`` and never mutated; each
node re-serialises to the JSON shape it was parsed from via ``to_dict()``.

Families:
- Simple: Boolean, Text, Category, Count, Quantity, Time
- Range: CategoryRange, CountRange, QuantityRange, TimeRange
- Aggregate: DataRecord, Vector, DataChoice
- Block: DataArray, Matrix, DataStream
- Geometry

Attributes that the engine does not model (``updatable``, ``optional``,
``nilValues``, ``quality``, ``axisID`` …) are kept verbatim in ``extras``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Union

if TYPE_CHECKING:
    from csapi_formats.models.encodings import Encoding


class ComponentKind(enum.Enum):
    """Closed set of component kinds, valued by their wire ``type``."""

    BOOLEAN = "Boolean"
    TEXT = "Text"
    CATEGORY = "Category"
    COUNT = "Count"
    QUANTITY = "Quantity"
    TIME = "Time"
    CATEGORY_RANGE = "CategoryRange"
    COUNT_RANGE = "CountRange"
    QUANTITY_RANGE = "QuantityRange"
    TIME_RANGE = "TimeRange"
    DATA_RECORD = "DataRecord"
    VECTOR = "Vector"
    DATA_CHOICE = "DataChoice"
    DATA_ARRAY = "DataArray"
    MATRIX = "Matrix"
    DATA_STREAM = "DataStream"
    GEOMETRY = "Geometry"


SIMPLE_KINDS = frozenset(
    {
        ComponentKind.BOOLEAN,
        ComponentKind.TEXT,
        ComponentKind.CATEGORY,
        ComponentKind.COUNT,
        ComponentKind.QUANTITY,
        ComponentKind.TIME,
    }
)
RANGE_KINDS = frozenset(
    {
        ComponentKind.CATEGORY_RANGE,
        ComponentKind.COUNT_RANGE,
        ComponentKind.QUANTITY_RANGE,
        ComponentKind.TIME_RANGE,
    }
)
AGGREGATE_KINDS = frozenset({ComponentKind.DATA_RECORD, ComponentKind.VECTOR, ComponentKind.DATA_CHOICE})
BLOCK_KINDS = frozenset({ComponentKind.DATA_ARRAY, ComponentKind.MATRIX, ComponentKind.DATA_STREAM})


def _drop_none(mapping: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in mapping.items() if v is not None}


# ---------------------------------------------------------------------------
# Constraint and unit value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UnitReference:
    """Unit of measure, given by UCUM ``code`` or by ``href``."""

    code: str | None = None
    href: str | None = None
    symbol: str | None = None
    label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {"code": self.code, "href": self.href, "symbol": self.symbol, "label": self.label}
        )


@dataclass(frozen=True, slots=True)
class AllowedValues:
    """Numeric constraint: discrete values, inclusive intervals, precision."""

    values: tuple[float | str, ...] = ()
    intervals: tuple[tuple[float, float], ...] = ()
    significant_figures: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.values:
            out["values"] = list(self.values)
        if self.intervals:
            out["intervals"] = [list(pair) for pair in self.intervals]
        if self.significant_figures is not None:
            out["significantFigures"] = self.significant_figures
        return out


@dataclass(frozen=True, slots=True)
class AllowedTokens:
    """Token constraint: an enumerated token list and/or a regex pattern."""

    values: tuple[str, ...] = ()
    pattern: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.values:
            out["values"] = list(self.values)
        if self.pattern is not None:
            out["pattern"] = self.pattern
        return out


@dataclass(frozen=True, slots=True)
class AllowedTimes:
    """Time constraint: discrete instants and inclusive intervals."""

    values: tuple[str | float, ...] = ()
    intervals: tuple[tuple[str | float, str | float], ...] = ()
    significant_figures: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.values:
            out["values"] = list(self.values)
        if self.intervals:
            out["intervals"] = [list(pair) for pair in self.intervals]
        if self.significant_figures is not None:
            out["significantFigures"] = self.significant_figures
        return out


# ---------------------------------------------------------------------------
# Base node
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class ComponentBase:
    """Attributes shared by every component kind.

    Attributes:
        definition: Semantic definition URI.
        label: Human-readable label.
        description: Optional longer description.
        id: Optional local identifier.
        extras: Wire attributes not modelled explicitly, kept verbatim.
    """

    kind: ClassVar[ComponentKind]

    definition: str
    label: str
    description: str | None = None
    id: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def _head(self) -> dict[str, Any]:
        return _drop_none(
            {
                "type": self.kind.value,
                "id": self.id,
                "definition": self.definition,
                "label": self.label,
                "description": self.description,
            }
        )

    def _body(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Re-serialise to the JSON shape this node was parsed from."""
        return {**self._head(), **self._body(), **self.extras}


# ---------------------------------------------------------------------------
# Simple components
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class BooleanComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.BOOLEAN

    value: bool | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none({"value": self.value})


@dataclass(frozen=True, slots=True, kw_only=True)
class TextComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.TEXT

    constraint: AllowedTokens | None = None
    value: str | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CategoryComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.CATEGORY

    code_space: str | None = None
    constraint: AllowedTokens | None = None
    value: str | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "codeSpace": {"href": self.code_space} if self.code_space else None,
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CountComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.COUNT

    constraint: AllowedValues | None = None
    value: int | float | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class QuantityComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.QUANTITY

    uom: UnitReference
    constraint: AllowedValues | None = None
    value: float | int | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "uom": self.uom.to_dict(),
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class TimeComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.TIME

    uom: UnitReference
    reference_time: str | None = None
    constraint: AllowedTimes | None = None
    value: str | float | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "uom": self.uom.to_dict(),
                "referenceTime": self.reference_time,
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


# ---------------------------------------------------------------------------
# Range components
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class CategoryRangeComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.CATEGORY_RANGE

    code_space: str | None = None
    constraint: AllowedTokens | None = None
    value: list[str] | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "codeSpace": {"href": self.code_space} if self.code_space else None,
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CountRangeComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.COUNT_RANGE

    constraint: AllowedValues | None = None
    value: list[int] | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class QuantityRangeComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.QUANTITY_RANGE

    uom: UnitReference
    constraint: AllowedValues | None = None
    value: list[float] | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "uom": self.uom.to_dict(),
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class TimeRangeComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.TIME_RANGE

    uom: UnitReference
    reference_time: str | None = None
    constraint: AllowedTimes | None = None
    value: list[str | float] | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "uom": self.uom.to_dict(),
                "referenceTime": self.reference_time,
                "constraint": self.constraint.to_dict() if self.constraint else None,
                "value": self.value,
            }
        )


# ---------------------------------------------------------------------------
# Named children
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NamedComponent:
    """A named slot inside an aggregate or block component.

    Exactly one of ``component`` (inline) and ``href`` (external reference)
    is set.  ``flat`` records that the wire form carried the component
    attributes directly on the slot object rather than under ``component``.
    ``name`` is ``None`` only for an unnamed block ``elementType``.
    """

    name: str | None
    component: DataComponent | None = None
    href: str | None = None
    flat: bool = False
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def is_reference(self) -> bool:
        return self.component is None

    def to_dict(self) -> dict[str, Any]:
        head: dict[str, Any] = {} if self.name is None else {"name": self.name}
        if self.component is None:
            return {**head, "href": self.href, **self.extras}
        if self.flat:
            return {**head, **self.component.to_dict()}
        return {**head, "component": self.component.to_dict(), **self.extras}


@dataclass(frozen=True, slots=True)
class ElementCount:
    """Array size given as a bare integer, a Count object, or by reference.

    ``source`` is the wire value exactly as received.
    """

    value: int | None = None
    href: str | None = None
    source: Any = None

    def to_dict(self) -> Any:
        return self.source


# ---------------------------------------------------------------------------
# Aggregate components
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class DataRecordComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.DATA_RECORD

    fields: tuple[NamedComponent, ...]

    def _body(self) -> dict[str, Any]:
        return {"fields": [f.to_dict() for f in self.fields]}

    def field_named(self, name: str) -> NamedComponent | None:
        return next((f for f in self.fields if f.name == name), None)


@dataclass(frozen=True, slots=True, kw_only=True)
class VectorComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.VECTOR

    reference_frame: str | None = None
    local_frame: str | None = None
    coordinates: tuple[NamedComponent, ...]

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "referenceFrame": self.reference_frame,
                "localFrame": self.local_frame,
                "coordinates": [c.to_dict() for c in self.coordinates],
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class DataChoiceComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.DATA_CHOICE

    items: tuple[NamedComponent, ...]

    def _body(self) -> dict[str, Any]:
        return {"items": [i.to_dict() for i in self.items]}


# ---------------------------------------------------------------------------
# Block components
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class DataArrayComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.DATA_ARRAY

    element_count: ElementCount
    element_type: NamedComponent
    encoding: Encoding | None = None
    values: Any = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "elementCount": self.element_count.to_dict(),
                "elementType": self.element_type.to_dict(),
                "encoding": self.encoding.to_dict() if self.encoding else None,
                "values": self.values,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class MatrixComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.MATRIX

    row_count: ElementCount | None = None
    column_count: ElementCount | None = None
    element_count: ElementCount
    element_type: NamedComponent
    encoding: Encoding | None = None
    values: Any = None
    reference_frame: str | None = None
    local_frame: str | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "rowCount": self.row_count.to_dict() if self.row_count else None,
                "columnCount": self.column_count.to_dict() if self.column_count else None,
                "elementCount": self.element_count.to_dict(),
                "elementType": self.element_type.to_dict(),
                "encoding": self.encoding.to_dict() if self.encoding else None,
                "values": self.values,
                "referenceFrame": self.reference_frame,
                "localFrame": self.local_frame,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class DataStreamComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.DATA_STREAM

    element_type: NamedComponent
    encoding: Encoding | None = None
    values: Any = None

    def _body(self) -> dict[str, Any]:
        return _drop_none(
            {
                "elementType": self.element_type.to_dict(),
                "encoding": self.encoding.to_dict() if self.encoding else None,
                "values": self.values,
            }
        )


# ---------------------------------------------------------------------------
# Geometry component
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class GeometryComponent(ComponentBase):
    kind: ClassVar[ComponentKind] = ComponentKind.GEOMETRY

    value: dict[str, Any] | None = None
    reference_frame: str | None = None

    def _body(self) -> dict[str, Any]:
        return _drop_none({"srs": self.reference_frame, "value": self.value})


SimpleComponent = Union[
    BooleanComponent,
    TextComponent,
    CategoryComponent,
    CountComponent,
    QuantityComponent,
    TimeComponent,
]
RangeComponent = Union[
    CategoryRangeComponent,
    CountRangeComponent,
    QuantityRangeComponent,
    TimeRangeComponent,
]
AggregateComponent = Union[DataRecordComponent, VectorComponent, DataChoiceComponent]
BlockComponent = Union[DataArrayComponent, MatrixComponent, DataStreamComponent]
DataComponent = Union[SimpleComponent, RangeComponent, AggregateComponent, BlockComponent, GeometryComponent]
