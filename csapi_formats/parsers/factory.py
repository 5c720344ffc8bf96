"""Parser factory: selects the resource parser for a kind by name.

The factory keeps a registry mapping every ``ResourceKind`` to its parser
class.  The built-in table must cover the whole enum; a missing kind fails
at import rather than at the first request for it.

Usage::

    from csapi_formats.parsers.factory import get_parser

    parser = get_parser("Datastream", collection=True)
    result = parser.parse(body, content_type=content_type)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from csapi_formats.core.exceptions import CsapiParseError
from csapi_formats.models.records import ResourceKind
from csapi_formats.parsers.resources import (
    CollectionParser,
    CommandParser,
    ControlStreamParser,
    DatastreamParser,
    DeploymentParser,
    ObservationParser,
    ProcedureParser,
    PropertyParser,
    SamplingFeatureParser,
    SystemParser,
)

if TYPE_CHECKING:
    from csapi_formats.core.config import ParserConfig
    from csapi_formats.parsers.base import ResourceParser

logger = logging.getLogger("csapi_formats.parsers.factory")

_BUILTIN_PARSERS: dict[ResourceKind, type[ResourceParser]] = {
    ResourceKind.SYSTEM: SystemParser,
    ResourceKind.DEPLOYMENT: DeploymentParser,
    ResourceKind.PROCEDURE: ProcedureParser,
    ResourceKind.SAMPLING_FEATURE: SamplingFeatureParser,
    ResourceKind.PROPERTY: PropertyParser,
    ResourceKind.DATASTREAM: DatastreamParser,
    ResourceKind.CONTROL_STREAM: ControlStreamParser,
    ResourceKind.OBSERVATION: ObservationParser,
    ResourceKind.COMMAND: CommandParser,
}

_missing = set(ResourceKind) - set(_BUILTIN_PARSERS)
if _missing:
    raise RuntimeError(f"No parser registered for: {', '.join(sorted(k.value for k in _missing))}")

_PARSER_REGISTRY: dict[ResourceKind, type[ResourceParser]] = dict(_BUILTIN_PARSERS)


def resolve_kind(kind: ResourceKind | str) -> ResourceKind:
    """Accept an enum member, its value (``"ControlStream"``) or its name (``"CONTROL_STREAM"``).

    Raises:
        CsapiParseError: If *kind* names no resource kind.
    """
    if isinstance(kind, ResourceKind):
        return kind
    try:
        return ResourceKind(kind)
    except ValueError:
        pass
    member = ResourceKind.__members__.get(str(kind).upper())
    if member is None:
        available = ", ".join(k.value for k in ResourceKind)
        raise CsapiParseError(f"Unknown resource kind: {kind!r}. Available: {available}")
    return member


def register_parser(kind: ResourceKind | str, parser_cls: type[ResourceParser]) -> None:
    """Replace the parser class used for *kind*.

    Lets applications plug in a subclass (extra validation, custom
    property flattening) without modifying the factory.
    """
    resolved = resolve_kind(kind)
    _PARSER_REGISTRY[resolved] = parser_cls
    logger.debug("Registered parser: %s -> %s", resolved.value, parser_cls.__name__)


def reset_parsers() -> None:
    """Restore the built-in registry."""
    _PARSER_REGISTRY.clear()
    _PARSER_REGISTRY.update(_BUILTIN_PARSERS)


def get_parser(
    kind: ResourceKind | str,
    collection: bool = False,
    config: ParserConfig | None = None,
    **options: Any,
) -> ResourceParser:
    """Create a parser for *kind*.

    Args:
        kind: Resource kind (enum member, value or name).
        collection: Wrap the parser for collection responses.
        config: Optional ``ParserConfig``; defaults apply when ``None``.
        **options: Extra constructor arguments, e.g. ``schema=`` and
            ``encoding=`` for Observation and Command parsers.

    Returns:
        A configured ``ResourceParser``.

    Raises:
        CsapiParseError: If *kind* is unknown.
    """
    resolved = resolve_kind(kind)
    parser_cls = _PARSER_REGISTRY[resolved]
    parser = parser_cls(config, **options)
    logger.debug("Creating parser: %s collection=%s", resolved.value, collection)
    return CollectionParser(parser) if collection else parser


def list_parsers() -> list[str]:
    """Return the resource kinds that have a parser."""
    return sorted(kind.value for kind in _PARSER_REGISTRY)
