"""Per-cell entity matching against the knowledge base.

``MatchingEngine.match_cell`` queries the search port for one cell, scores the
candidates and either auto-accepts the best one or stores them for review.
Every query takes a fresh generation tag for its cell, and a response whose tag
is no longer current is dropped without touching the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from linkcurator.domain.model import ValueKind, WikidataSelection
from linkcurator.domain.ports import MatchQueryFailure

from .dates import standardize_date
from .scoring import best_auto_accept, score_candidates
from .transitions import AcceptMatch, record_matches

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkcurator.domain.model import (
        Candidate,
        CellRef,
        PropertyDescriptor,
        ReconciledValue,
    )
    from linkcurator.domain.ports import EntitySearch

    from .dates import StandardizedDate
    from .session import ReconciliationSession
    from .transitions import TransitionResult
    from .validation import ValidationResult

log = logging.getLogger(__name__)


class MatchOutcomeKind(StrEnum):
    AUTO_ACCEPTED = "auto-accepted"
    CANDIDATES = "candidates"
    NO_MATCHES = "no-matches"
    QUERY_FAILED = "query-failed"
    STALE = "stale"
    LITERAL = "literal"


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchOutcome:
    kind: MatchOutcomeKind
    cell: CellRef
    query: str
    all_matches: tuple[Candidate, ...] = ()
    visible_matches: tuple[Candidate, ...] = ()
    transition: TransitionResult | None = None
    date: StandardizedDate | None = None
    validation: ValidationResult | None = None
    error: str | None = None

    @property
    def retryable(self) -> bool:
        return self.kind is MatchOutcomeKind.QUERY_FAILED

    @property
    def has_more(self) -> bool:
        return len(self.all_matches) > len(self.visible_matches)


class MatchingEngine:
    def __init__(self, search: EntitySearch) -> None:
        self._search = search

    async def match_cell(self, session: ReconciliationSession, cell: CellRef) -> MatchOutcome:
        """Find candidates for one cell.

        Literal cells (dates, external ids, strings and other non-entity
        datatypes) never reach the search port. A confident match auto-accepts
        whatever the cell held before the query, including earlier decisions;
        a decision made while the query was in flight is kept instead.
        """

        query = session.store.original_value(cell).strip()
        descriptor = session.descriptor_for(cell)
        kind = descriptor.value_kind if descriptor is not None else ValueKind.ENTITY

        literal = self._literal_outcome(session, cell, query, kind)
        if literal is not None:
            return literal
        if not query:
            record_matches(session, cell, ())
            return MatchOutcome(kind=MatchOutcomeKind.NO_MATCHES, cell=cell, query=query)

        settings = session.settings
        generation = session.store.begin_request(cell)
        snapshot = session.store.value_at(cell)
        try:
            raw = await self._search.search(
                query,
                limit=settings.search_limit,
                language=settings.language,
                descriptor=descriptor,
            )
        except MatchQueryFailure as exc:
            if not session.store.is_current_request(cell, generation):
                return MatchOutcome(kind=MatchOutcomeKind.STALE, cell=cell, query=query)
            log.warning("Entity search failed for %s (%r): %s", cell, query, exc)
            return MatchOutcome(
                kind=MatchOutcomeKind.QUERY_FAILED, cell=cell, query=query, error=str(exc)
            )

        if not session.store.is_current_request(cell, generation):
            log.info("Discarding stale search response for %s", cell)
            return MatchOutcome(kind=MatchOutcomeKind.STALE, cell=cell, query=query)

        return self._apply_results(
            session, cell, query, descriptor, raw[: settings.search_limit], snapshot
        )

    def _literal_outcome(
        self,
        session: ReconciliationSession,
        cell: CellRef,
        query: str,
        kind: ValueKind,
    ) -> MatchOutcome | None:
        date = standardize_date(query) if kind in {ValueKind.ENTITY, ValueKind.TIME} else None
        if date is not None:
            return MatchOutcome(
                kind=MatchOutcomeKind.LITERAL, cell=cell, query=query, date=date
            )
        if kind.requires_matching:
            return None
        return MatchOutcome(
            kind=MatchOutcomeKind.LITERAL,
            cell=cell,
            query=query,
            validation=session.validate_cell(cell, query),
        )

    def _apply_results(
        self,
        session: ReconciliationSession,
        cell: CellRef,
        query: str,
        descriptor: PropertyDescriptor | None,
        raw: Sequence[Candidate],
        snapshot: ReconciledValue,
    ) -> MatchOutcome:
        settings = session.settings
        if not raw:
            record_matches(session, cell, ())
            return MatchOutcome(kind=MatchOutcomeKind.NO_MATCHES, cell=cell, query=query)

        scored = score_candidates(
            raw,
            query=query,
            descriptor=descriptor,
            threshold=settings.auto_accept_threshold,
        )
        best = best_auto_accept(scored, settings.auto_accept_threshold)
        # A decision made while the query was in flight wins over auto-acceptance.
        if best is not None and session.store.value_at(cell) is snapshot:
            score = best.score or 0.0
            record_matches(session, cell, scored)
            transition = session.dispatch(
                AcceptMatch(
                    cell=cell,
                    selection=WikidataSelection(
                        id=best.id, label=best.label, description=best.description
                    ),
                    confidence=score,
                    qualifiers={
                        "auto_accepted": True,
                        "reason": f"High confidence match ({score:.0f}%)",
                        "score": score,
                    },
                )
            )
            log.info("Auto-accepted %s for %s (score %.1f)", best.id, cell, score)
            return MatchOutcome(
                kind=MatchOutcomeKind.AUTO_ACCEPTED,
                cell=cell,
                query=query,
                all_matches=scored,
                visible_matches=scored[: settings.visible_matches],
                transition=transition,
            )

        seeded = session.recency.seed(cell.property, scored)
        record_matches(session, cell, seeded)
        return MatchOutcome(
            kind=MatchOutcomeKind.CANDIDATES,
            cell=cell,
            query=query,
            all_matches=seeded,
            visible_matches=seeded[: settings.visible_matches],
        )
