"""Aggregate counters over all cells and the gate for moving past reconciliation."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from linkcurator.domain.model import CellStatus

if TYPE_CHECKING:
    from linkcurator.domain.model import ReconciliationStore


@dataclass(frozen=True, slots=True, kw_only=True)
class Progress:
    total: int
    pending: int
    reconciled: int
    no_item: int
    skipped: int
    errors: int

    @property
    def completed(self) -> int:
        return self.reconciled + self.no_item

    @property
    def can_advance(self) -> bool:
        """Every cell has been decided or skipped, and there is at least one cell."""

        return self.total > 0 and self.completed + self.skipped >= self.total


@dataclass(slots=True)
class ProgressTracker:
    """Incrementally maintained status counts.

    ``record`` is the fast path used on every transition; ``scan`` rebuilds
    from the store and is the reference the fast path must agree with.
    """

    counts: Counter[CellStatus] = field(default_factory=Counter[CellStatus])

    @classmethod
    def scan(cls, store: ReconciliationStore) -> ProgressTracker:
        return cls(Counter(value.status for _, value in store.cells()))

    def record(self, old: CellStatus, new: CellStatus) -> None:
        if old is new:
            return
        if self.counts[old] <= 0:
            raise ValueError(f"Progress underflow: no {old} cells to move to {new}")
        self.counts[old] -= 1
        self.counts[new] += 1

    def snapshot(self) -> Progress:
        return Progress(
            total=self.counts.total(),
            pending=self.counts[CellStatus.PENDING],
            reconciled=self.counts[CellStatus.RECONCILED],
            no_item=self.counts[CellStatus.NO_ITEM],
            skipped=self.counts[CellStatus.SKIPPED],
            errors=self.counts[CellStatus.ERROR],
        )


def scan(store: ReconciliationStore) -> Progress:
    return ProgressTracker.scan(store).snapshot()
