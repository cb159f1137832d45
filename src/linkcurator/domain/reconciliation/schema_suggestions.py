"""Mark descriptors required or optional from an entity-schema suggestion."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace

from linkcurator.domain.model import PropertyDescriptor

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class SchemaSuggestions:
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Iterable[object]]) -> SchemaSuggestions:
        return cls(
            required=tuple(_property_ids(payload.get("required", ()))),
            optional=tuple(_property_ids(payload.get("optional", ()))),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class SchemaSeedResult:
    descriptors: tuple[PropertyDescriptor, ...]
    missing_required: tuple[str, ...]


def apply_schema_suggestions(
    descriptors: Sequence[PropertyDescriptor],
    suggestions: SchemaSuggestions | Mapping[str, Iterable[object]],
) -> SchemaSeedResult:
    """Flag each descriptor whose property the schema names.

    Required wins when a property is listed in both groups. Descriptors the
    schema does not mention keep ``required=None``.
    """

    if not isinstance(suggestions, SchemaSuggestions):
        suggestions = SchemaSuggestions.from_mapping(suggestions)
    required = set(suggestions.required)
    optional = set(suggestions.optional) - required

    annotated: list[PropertyDescriptor] = []
    for descriptor in descriptors:
        if descriptor.property_id in required:
            annotated.append(replace(descriptor, required=True))
        elif descriptor.property_id in optional:
            annotated.append(replace(descriptor, required=False))
        else:
            annotated.append(descriptor)

    mapped = {d.property_id for d in descriptors if d.property_id is not None}
    missing = tuple(pid for pid in dict.fromkeys(suggestions.required) if pid not in mapped)
    if missing:
        log.info("Schema requires unmapped properties: %s", ", ".join(missing))
    return SchemaSeedResult(descriptors=tuple(annotated), missing_required=missing)


def _property_ids(raw: Iterable[object]) -> list[str]:
    ids: list[str] = []
    for entry in raw:
        if isinstance(entry, str):
            ids.append(entry)
        elif isinstance(entry, Mapping) and isinstance(entry.get("id"), str):
            ids.append(entry["id"])
    return ids
