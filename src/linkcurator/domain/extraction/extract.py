"""Normalise heterogeneous source values into canonical strings.

Omeka S style exports store a property either as a scalar or as a list of
JSON-LD value objects (``{"@value": ...}``, ``{"o:label": ..., "@id": ...}``).
Extraction flattens these into an ordered list of strings, one per source
element, optionally rewritten by the mapping's transformation chain.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from linkcurator.domain.model import PropertyDescriptor

from .transform import apply_transformation_chain, final_value

if TYPE_CHECKING:
    from .transform import TransformationLookup

log = logging.getLogger(__name__)

LABEL_FIELD: Final[str] = "o:label"
VALUE_FIELD: Final[str] = "@value"


class ExtractionWarning(UserWarning):
    """A transformation failed; the untransformed value was kept."""


@dataclass(frozen=True, slots=True)
class ExtractionContext:
    """Lookup context passed alongside a descriptor during extraction."""

    transformations: TransformationLookup | None = None


def extract_property_values(
    record: Mapping[str, Any],
    descriptor: PropertyDescriptor | str,
    *,
    context: ExtractionContext | None = None,
) -> list[str]:
    """Return the canonical values of one property on one record.

    >>> extract_property_values({"dcterms:subject": [{"@value": "Art"}, {"o:label": "History"}]},
    ...                         "dcterms:subject")
    ['Art', 'History']
    """

    if isinstance(descriptor, str):
        descriptor = PropertyDescriptor(key=descriptor)

    raw = record.get(descriptor.key)
    if _is_missing(raw):
        return []

    elements = raw if isinstance(raw, list | tuple) else [raw]
    values: list[str] = []
    for element in elements:
        extracted = _extract_element(element, descriptor.selected_at_field)
        if extracted is not None:
            values.append(extracted)

    if values and context is not None and context.transformations is not None:
        values = _apply_transformations(values, record, descriptor, context.transformations)
    return values


def _is_missing(raw: object) -> bool:
    return raw is None or raw == "" or raw == [] or raw == {}


def _extract_element(element: object, selected_at_field: str | None) -> str | None:
    if selected_at_field:
        # Elements lacking the requested field are dropped, never defaulted.
        if isinstance(element, Mapping) and element.get(selected_at_field) is not None:
            return _to_text(element[selected_at_field])
        return None

    if isinstance(element, Mapping):
        if _has_text(element.get(LABEL_FIELD)):
            return _to_text(element[LABEL_FIELD])
        if _has_text(element.get(VALUE_FIELD)):
            return _to_text(element[VALUE_FIELD])
    if isinstance(element, str):
        return element
    return _to_text(element)


def _has_text(value: object) -> bool:
    return value is not None and value != ""


def _to_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _apply_transformations(
    values: list[str],
    record: Mapping[str, Any],
    descriptor: PropertyDescriptor,
    lookup: TransformationLookup,
) -> list[str]:
    if descriptor.property_id is None:
        return values
    blocks = lookup.chain_for(descriptor.mapping_id)
    if not blocks:
        return values

    transformed: list[str] = []
    for value in values:
        try:
            steps = apply_transformation_chain(value, blocks, source_data=record)
        except (TypeError, ValueError) as exc:
            log.warning(
                "%s: transformation failed for mapping %s, keeping %r: %s",
                ExtractionWarning.__name__,
                descriptor.mapping_id,
                value,
                exc,
            )
            transformed.append(value)
            continue
        transformed.append(final_value(steps, value))
    return transformed
