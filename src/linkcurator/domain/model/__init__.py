"""Domain model for cell-level reconciliation."""

from __future__ import annotations

from .candidates import Candidate
from .enums import (
    CellStatus,
    ConstraintSource,
    Datatype,
    SelectionKind,
    ValidationLevel,
    ValueKind,
)
from .property import (
    FormatConstraint,
    ManualProperty,
    PropertyDescriptor,
    PropertyMetadata,
    ValueTypeConstraint,
    mapping_id_for,
    value_kind_for,
    with_metadata,
)
from .selections import (
    CustomSelection,
    NoItemSelection,
    Selection,
    StringSelection,
    WikidataSelection,
)
from .store import (
    CellRef,
    Item,
    PropertyEntry,
    ReconciledValue,
    ReconciliationStore,
    UnknownCellError,
)

__all__ = [
    "Candidate",
    "CellRef",
    "CellStatus",
    "ConstraintSource",
    "CustomSelection",
    "Datatype",
    "FormatConstraint",
    "Item",
    "ManualProperty",
    "NoItemSelection",
    "PropertyDescriptor",
    "PropertyEntry",
    "PropertyMetadata",
    "ReconciledValue",
    "ReconciliationStore",
    "Selection",
    "SelectionKind",
    "StringSelection",
    "UnknownCellError",
    "ValidationLevel",
    "ValueKind",
    "ValueTypeConstraint",
    "WikidataSelection",
    "mapping_id_for",
    "value_kind_for",
    "with_metadata",
]
