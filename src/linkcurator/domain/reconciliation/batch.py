"""Reconcile every pending cell with bounded concurrency."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from linkcurator.domain.model import CellStatus, Datatype

from .matching import MatchOutcomeKind
from .transitions import UseCustom

if TYPE_CHECKING:
    from linkcurator.domain.model import CellRef, ReconciliationStore

    from .matching import MatchingEngine, MatchOutcome
    from .session import ReconciliationSession

log = logging.getLogger(__name__)


@dataclass(slots=True)
class BatchReport:
    outcomes: Counter[MatchOutcomeKind] = field(default_factory=Counter[MatchOutcomeKind])
    dates_accepted: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.outcomes.total() + self.failed

    @property
    def auto_accepted(self) -> int:
        return self.outcomes[MatchOutcomeKind.AUTO_ACCEPTED] + self.dates_accepted


def pending_cells(store: ReconciliationStore) -> list[CellRef]:
    """Pending cells grouped by property, items in store order within a group.

    Groups follow first appearance of the property in the store, whether or not
    its first cells are still pending.
    """

    by_property: dict[str, list[CellRef]] = {}
    for ref, value in store.cells():
        group = by_property.setdefault(ref.property, [])
        if value.status is CellStatus.PENDING:
            group.append(ref)
    return [ref for refs in by_property.values() for ref in refs]


def next_pending_cell(store: ReconciliationStore) -> CellRef | None:
    for ref, value in store.cells():
        if value.status is CellStatus.PENDING:
            return ref
    return None


class BatchReconciler:
    def __init__(self, engine: MatchingEngine) -> None:
        self._engine = engine

    async def run(self, session: ReconciliationSession) -> BatchReport:
        cells = pending_cells(session.store)
        report = BatchReport()
        if not cells:
            return report

        semaphore = asyncio.Semaphore(session.settings.batch_concurrency)

        async def process(cell: CellRef) -> MatchOutcome:
            async with semaphore:
                return await self._engine.match_cell(session, cell)

        log.info("Batch reconciling %d pending cells", len(cells))
        results = await asyncio.gather(*(process(cell) for cell in cells), return_exceptions=True)
        for cell, result in zip(cells, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                report.failed += 1
                log.error("Reconciliation of %s failed", cell, exc_info=result)
                continue
            report.outcomes[result.kind] += 1
            if self._accept_date(session, result):
                report.dates_accepted += 1

        log.info(
            "Batch finished: %d processed, %d auto-accepted, %d failed",
            report.processed,
            report.auto_accepted,
            report.failed,
        )
        return report

    def _accept_date(self, session: ReconciliationSession, outcome: MatchOutcome) -> bool:
        if outcome.kind is not MatchOutcomeKind.LITERAL or outcome.date is None:
            return False
        if session.store.value_at(outcome.cell).status is not CellStatus.PENDING:
            return False
        date = outcome.date
        session.dispatch(
            UseCustom(
                cell=outcome.cell,
                value=date.value,
                datatype=Datatype.TIME,
                qualifiers={
                    "auto_accepted": True,
                    "reason": "Date value standardised",
                    "precision": int(date.precision),
                    "original": date.original,
                    "circa": date.circa,
                },
            )
        )
        return True
