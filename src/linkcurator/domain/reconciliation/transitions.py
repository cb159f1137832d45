"""Cell state machine: curator and engine decisions as commands.

Every command resolves to a new ``ReconciledValue`` for exactly one cell.
Applying a command to a cell that is already terminal overwrites the earlier
decision; there is no history.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import singledispatch
from typing import TYPE_CHECKING, Any, Final

from linkcurator.domain.model import (
    CellStatus,
    CustomSelection,
    NoItemSelection,
    ReconciledValue,
    StringSelection,
    WikidataSelection,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkcurator.domain.model import Candidate, CellRef

    from .session import ReconciliationSession

log = logging.getLogger(__name__)

ENTITY_CONFIDENCE: Final[float] = 95.0
LITERAL_CONFIDENCE: Final[float] = 80.0
NO_ITEM_REASON: Final[str] = "No appropriate Wikidata item exists"


@dataclass(frozen=True, slots=True, kw_only=True)
class AcceptMatch:
    cell: CellRef
    selection: WikidataSelection | CustomSelection | StringSelection
    confidence: float | None = None
    qualifiers: Mapping[str, Any] = field(default_factory=dict[str, Any])


@dataclass(frozen=True, slots=True, kw_only=True)
class UseString:
    """Keep the source value (or ``value``) verbatim."""

    cell: CellRef
    value: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class UseCustom:
    cell: CellRef
    value: str
    datatype: str
    qualifiers: Mapping[str, Any] = field(default_factory=dict[str, Any])


@dataclass(frozen=True, slots=True, kw_only=True)
class MarkNoItem:
    cell: CellRef
    reason: str = NO_ITEM_REASON


@dataclass(frozen=True, slots=True, kw_only=True)
class Skip:
    cell: CellRef


@dataclass(frozen=True, slots=True, kw_only=True)
class MarkError:
    cell: CellRef
    reason: str


type Command = AcceptMatch | UseString | UseCustom | MarkNoItem | Skip | MarkError


@dataclass(frozen=True, slots=True, kw_only=True)
class TransitionResult:
    cell: CellRef
    command: Command
    previous: ReconciledValue
    current: ReconciledValue

    @property
    def overwrote_decision(self) -> bool:
        return self.previous.status.is_terminal


def apply_command(session: ReconciliationSession, command: Command) -> TransitionResult:
    """Write the command's outcome, update progress and recency, notify listeners.

    Raises ``UnknownCellError`` when the cell does not exist.
    """

    store = session.store
    previous = store.value_at(command.cell)
    original = store.original_value(command.cell)
    current = _next_value(command, previous, original)

    store.replace_value(command.cell, current)
    session.tracker.record(previous.status, current.status)
    if isinstance(current.selected_match, WikidataSelection):
        session.recency.remember(command.cell.property, current.selected_match)

    if previous.status.is_terminal:
        log.info(
            "Overwriting %s decision on %s with %s",
            previous.status,
            command.cell,
            current.status,
        )
    result = TransitionResult(
        cell=command.cell, command=command, previous=previous, current=current
    )
    session.notify(result)
    return result


def record_matches(
    session: ReconciliationSession,
    cell: CellRef,
    matches: Sequence[Candidate],
) -> ReconciledValue:
    """Store candidates on a cell without changing its status."""

    previous = session.store.value_at(cell)
    best = max((c.score or 0.0 for c in matches), default=0.0)
    current = ReconciledValue(
        status=previous.status,
        matches=tuple(matches),
        selected_match=previous.selected_match,
        confidence=previous.confidence if previous.status.is_terminal else best,
        qualifiers=dict(previous.qualifiers),
        manual_value=previous.manual_value,
    )
    session.store.replace_value(cell, current)
    return current


@singledispatch
def _next_value(command: object, previous: ReconciledValue, original: str) -> ReconciledValue:
    raise TypeError(f"Unsupported reconciliation command: {type(command).__name__}")


@_next_value.register
def _(command: AcceptMatch, previous: ReconciledValue, original: str) -> ReconciledValue:  # noqa: ARG001
    default = (
        ENTITY_CONFIDENCE
        if isinstance(command.selection, WikidataSelection)
        else LITERAL_CONFIDENCE
    )
    return _decided(
        previous,
        status=CellStatus.RECONCILED,
        selection=command.selection,
        confidence=command.confidence if command.confidence is not None else default,
        qualifiers=command.qualifiers,
    )


@_next_value.register
def _(command: UseString, previous: ReconciledValue, original: str) -> ReconciledValue:
    value = command.value if command.value is not None else original
    return _decided(
        previous,
        status=CellStatus.RECONCILED,
        selection=StringSelection(value=value, label=value),
        confidence=LITERAL_CONFIDENCE,
    )


@_next_value.register
def _(command: UseCustom, previous: ReconciledValue, original: str) -> ReconciledValue:  # noqa: ARG001
    return _decided(
        previous,
        status=CellStatus.RECONCILED,
        selection=CustomSelection(value=command.value, datatype=command.datatype),
        confidence=LITERAL_CONFIDENCE,
        qualifiers=command.qualifiers,
    )


@_next_value.register
def _(command: MarkNoItem, previous: ReconciledValue, original: str) -> ReconciledValue:  # noqa: ARG001
    return _decided(
        previous,
        status=CellStatus.NO_ITEM,
        selection=NoItemSelection(reason=command.reason),
        confidence=0.0,
    )


@_next_value.register
def _(command: Skip, previous: ReconciledValue, original: str) -> ReconciledValue:  # noqa: ARG001
    return _decided(
        previous,
        status=CellStatus.SKIPPED,
        selection=previous.selected_match,
        confidence=previous.confidence,
        qualifiers=previous.qualifiers,
    )


@_next_value.register
def _(command: MarkError, previous: ReconciledValue, original: str) -> ReconciledValue:  # noqa: ARG001
    return _decided(
        previous,
        status=CellStatus.ERROR,
        selection=None,
        confidence=0.0,
        qualifiers={"error": command.reason},
    )


def _decided(
    previous: ReconciledValue,
    *,
    status: CellStatus,
    selection: WikidataSelection | CustomSelection | StringSelection | NoItemSelection | None,
    confidence: float,
    qualifiers: Mapping[str, Any] | None = None,
) -> ReconciledValue:
    return ReconciledValue(
        status=status,
        matches=previous.matches,
        selected_match=selection,
        confidence=confidence,
        qualifiers=dict(qualifiers or {}),
        manual_value=previous.manual_value,
    )
