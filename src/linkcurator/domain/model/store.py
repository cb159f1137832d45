"""Per-item/per-property/per-value reconciliation state.

The store is built once per dataset load and mutated in place by decisions.
A new dataset load builds a new store; stores are never merged.

Invariant: for every property entry ``len(original_values) == len(reconciled)``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .enums import CellStatus

if TYPE_CHECKING:
    from .candidates import Candidate
    from .property import ManualProperty, PropertyDescriptor
    from .selections import Selection


class UnknownCellError(KeyError):
    """Raised when a cell reference does not resolve to a stored value."""


@dataclass(frozen=True, slots=True)
class CellRef:
    """Address of one (item, property, value-index) reconciliation unit."""

    item_id: str
    property: str
    value_index: int

    def __str__(self) -> str:
        return f"{self.item_id}/{self.property}[{self.value_index}]"


@dataclass(slots=True, kw_only=True)
class ReconciledValue:
    status: CellStatus = CellStatus.PENDING
    matches: tuple[Candidate, ...] = ()
    selected_match: Selection | None = None
    confidence: float = 0.0
    qualifiers: dict[str, Any] = field(default_factory=dict[str, Any])
    manual_value: str | None = None


@dataclass(slots=True, kw_only=True)
class PropertyEntry:
    original_values: list[str]
    reconciled: list[ReconciledValue]
    property_metadata: PropertyDescriptor | None = None
    is_manual_property: bool = False
    manual_property: ManualProperty | None = None

    def __post_init__(self) -> None:
        if len(self.original_values) != len(self.reconciled):
            raise ValueError(
                "Property entry needs one reconciled value per original value "
                f"({len(self.original_values)} != {len(self.reconciled)})"
            )


@dataclass(slots=True, kw_only=True)
class Item:
    id: str
    original_data: Mapping[str, Any]
    properties: dict[str, PropertyEntry] = field(default_factory=dict[str, PropertyEntry])


@dataclass(slots=True)
class ReconciliationStore:
    """Authoritative cell table for one dataset-load session."""

    items: dict[str, Item] = field(default_factory=dict[str, Item])
    _generations: dict[CellRef, int] = field(default_factory=dict[CellRef, int], repr=False)

    def add_item(self, item: Item) -> None:
        if item.id in self.items:
            raise ValueError(f"Duplicate item id {item.id}")
        self.items[item.id] = item

    def entry(self, item_id: str, property_key: str) -> PropertyEntry:
        item = self.items.get(item_id)
        if item is None or property_key not in item.properties:
            raise UnknownCellError(f"{item_id}/{property_key}")
        return item.properties[property_key]

    def value_at(self, ref: CellRef) -> ReconciledValue:
        entry = self.entry(ref.item_id, ref.property)
        if not 0 <= ref.value_index < len(entry.reconciled):
            raise UnknownCellError(str(ref))
        return entry.reconciled[ref.value_index]

    def original_value(self, ref: CellRef) -> str:
        self.value_at(ref)
        return self.entry(ref.item_id, ref.property).original_values[ref.value_index]

    def replace_value(self, ref: CellRef, value: ReconciledValue) -> ReconciledValue:
        """Overwrite a cell, returning the previous value."""

        previous = self.value_at(ref)
        self.entry(ref.item_id, ref.property).reconciled[ref.value_index] = value
        return previous

    def cells(self) -> Iterator[tuple[CellRef, ReconciledValue]]:
        """Yield every cell in item order, then property order, then value order."""

        for item in self.items.values():
            for key, entry in item.properties.items():
                for index, value in enumerate(entry.reconciled):
                    yield CellRef(item.id, key, index), value

    def begin_request(self, ref: CellRef) -> int:
        """Issue the next request-generation tag for ``ref``."""

        self.value_at(ref)
        generation = self._generations.get(ref, 0) + 1
        self._generations[ref] = generation
        return generation

    def is_current_request(self, ref: CellRef, generation: int) -> bool:
        return self._generations.get(ref, 0) == generation

    def validate_invariants(self) -> None:
        for item in self.items.values():
            for key, entry in item.properties.items():
                if len(entry.original_values) != len(entry.reconciled):
                    raise ValueError(
                        f"Value count mismatch for {item.id}/{key}: "
                        f"{len(entry.original_values)} != {len(entry.reconciled)}"
                    )
                if entry.is_manual_property and len(entry.reconciled) != 1:
                    raise ValueError(f"Manual property {item.id}/{key} must hold one value")
