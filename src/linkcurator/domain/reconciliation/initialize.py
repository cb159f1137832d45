"""Build the reconciliation store for a freshly loaded dataset.

Preconditions are checked before anything is built. A failed precondition is an
expected outcome, so it comes back as a ``PreconditionError`` value instead of
being raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

from linkcurator.domain.extraction import extract_property_values
from linkcurator.domain.model import (
    Item,
    PropertyEntry,
    ReconciledValue,
    ReconciliationStore,
)

if TYPE_CHECKING:
    from linkcurator.domain.extraction import ExtractionContext
    from linkcurator.domain.model import ManualProperty, PropertyDescriptor

log = logging.getLogger(__name__)

# Display order for well-known properties; everything else keeps mapping order.
_PRIORITY: Final[dict[str, int]] = {
    "label": 0,
    "description": 1,
    "aliases": 2,
    "P31": 3,
}


class PreconditionFailure(StrEnum):
    NO_DATA = "no-data"
    NO_MAPPED_PROPERTIES = "no-mapped-properties"
    NO_AVAILABLE_PROPERTIES = "no-available-properties"


@dataclass(frozen=True, slots=True, kw_only=True)
class PreconditionError:
    reason: PreconditionFailure
    message: str
    details: Mapping[str, Any] = field(default_factory=dict[str, Any])


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreReady:
    store: ReconciliationStore
    descriptors: tuple[PropertyDescriptor, ...]
    manual_properties: tuple[ManualProperty, ...]
    cell_count: int


type StoreInitialization = StoreReady | PreconditionError


def check_preconditions(
    records: Sequence[Mapping[str, Any]] | None,
    descriptors: Sequence[PropertyDescriptor],
) -> PreconditionError | tuple[PropertyDescriptor, ...]:
    """Return the descriptors available in this dataset, or why there are none."""

    if not records:
        return PreconditionError(
            reason=PreconditionFailure.NO_DATA,
            message="No data found. Please complete the previous steps first.",
        )
    if not descriptors:
        return PreconditionError(
            reason=PreconditionFailure.NO_MAPPED_PROPERTIES,
            message="No mapped properties found. Please complete the mapping step first.",
        )
    available = tuple(d for d in descriptors if not d.not_in_current_dataset)
    if not available:
        return PreconditionError(
            reason=PreconditionFailure.NO_AVAILABLE_PROPERTIES,
            message=(
                "All mapped properties are unavailable in the current dataset. "
                "Please check your mappings."
            ),
            details={"mapped": [d.key for d in descriptors]},
        )
    return available


def initialize_store(
    records: Sequence[Mapping[str, Any]] | None,
    descriptors: Sequence[PropertyDescriptor],
    manual_properties: Sequence[ManualProperty] = (),
    *,
    context: ExtractionContext | None = None,
) -> StoreInitialization:
    checked = check_preconditions(records, descriptors)
    if isinstance(checked, PreconditionError):
        log.warning("Cannot initialise reconciliation: %s", checked.message)
        return checked
    store = ReconciliationStore()
    for index, record in enumerate(records or ()):
        item = Item(id=f"item-{index}", original_data=record)
        for descriptor in checked:
            values = extract_property_values(record, descriptor, context=context)
            item.properties[descriptor.key] = PropertyEntry(
                original_values=values,
                reconciled=[ReconciledValue() for _ in values],
                property_metadata=descriptor,
            )
        for manual in manual_properties:
            key = manual.property_id
            if key in item.properties:
                log.warning(
                    "Manual property %s replaces mapped property with the same key on %s",
                    key,
                    item.id,
                )
            default = manual.default_value or ""
            item.properties[key] = PropertyEntry(
                original_values=[default],
                reconciled=[ReconciledValue(manual_value=manual.default_value)],
                property_metadata=manual.descriptor,
                is_manual_property=True,
                manual_property=manual,
            )
        store.add_item(item)

    store.validate_invariants()
    cell_count = sum(1 for _ in store.cells())
    log.info(
        "Initialised reconciliation for %d items, %d properties, %d cells",
        len(store.items),
        len(checked) + len(manual_properties),
        cell_count,
    )
    return StoreReady(
        store=store,
        descriptors=checked,
        manual_properties=tuple(manual_properties),
        cell_count=cell_count,
    )


def count_reconcilable_cells(
    records: Sequence[Mapping[str, Any]],
    descriptors: Sequence[PropertyDescriptor],
    manual_properties: Sequence[ManualProperty] = (),
    *,
    context: ExtractionContext | None = None,
) -> int:
    available = [d for d in descriptors if not d.not_in_current_dataset]
    mapped_keys = {d.key for d in available}
    shadowed = {m.property_id for m in manual_properties} & mapped_keys
    total = 0
    for record in records:
        for descriptor in available:
            if descriptor.key in shadowed:
                continue
            total += len(extract_property_values(record, descriptor, context=context))
    return total + len(records) * len(manual_properties)


def order_properties(
    descriptors: Sequence[PropertyDescriptor],
    manual_properties: Sequence[ManualProperty] = (),
) -> list[PropertyDescriptor]:
    """Mapped and manual descriptors in display order.

    Label, description, aliases and instance-of come first; the rest keep
    their original relative order, mapped before manual.
    """

    combined = [*descriptors, *(m.descriptor for m in manual_properties)]
    fallback = len(_PRIORITY)
    ranked = sorted(
        enumerate(combined),
        key=lambda pair: (_priority_of(pair[1], fallback), pair[0]),
    )
    return [descriptor for _, descriptor in ranked]


def _priority_of(descriptor: PropertyDescriptor, fallback: int) -> int:
    for candidate in (descriptor.property_id, descriptor.key):
        if candidate is not None and candidate in _PRIORITY:
            return _PRIORITY[candidate]
    return fallback
