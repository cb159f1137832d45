"""Explicit reconciliation context: one session per loaded dataset."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from linkcurator.config.reconciliation import ReconciliationSettings
from linkcurator.domain.model import Datatype, ValueKind

from .constraints import resolve_constraint
from .progress import ProgressTracker
from .recency import RecencyCache
from .transitions import UseCustom, apply_command
from .validation import (
    ConfirmationDecision,
    ConfirmationMode,
    ConfirmationPolicy,
    ConfirmationVerdict,
    ValidationResult,
    check_confirmation,
    validate_value,
)

if TYPE_CHECKING:
    from linkcurator.domain.model import CellRef, PropertyDescriptor, ReconciliationStore

    from .constraints import ResolvedConstraint
    from .progress import Progress
    from .transitions import Command, TransitionResult

log = logging.getLogger(__name__)

type TransitionListener = Callable[[TransitionResult], None]


@dataclass(frozen=True, slots=True, kw_only=True)
class ConfirmationRequest:
    cell: CellRef
    value: str
    kind: ValueKind
    constraint: ResolvedConstraint | None


class ConfirmationStrategy(Protocol):
    def confirm(self, request: ConfirmationRequest) -> ConfirmationDecision: ...


class AlwaysConfirm:
    """Accept any non-empty value; validation is reported but not enforced."""

    def confirm(self, request: ConfirmationRequest) -> ConfirmationDecision:
        return check_confirmation(
            request.value,
            request.constraint,
            request.kind,
            policy=ConfirmationPolicy(modes={}, default=ConfirmationMode.ALLOW),
        )


@dataclass(frozen=True, slots=True)
class PolicyConfirmation:
    """Apply a ``ConfirmationPolicy``, asking ``on_override`` when it allows one."""

    policy: ConfirmationPolicy = field(default_factory=ConfirmationPolicy)
    on_override: Callable[[ConfirmationRequest, ConfirmationDecision], bool] | None = None

    def confirm(self, request: ConfirmationRequest) -> ConfirmationDecision:
        decision = check_confirmation(
            request.value, request.constraint, request.kind, policy=self.policy
        )
        if (
            decision.verdict is ConfirmationVerdict.NEEDS_OVERRIDE
            and self.on_override is not None
            and self.on_override(request, decision)
        ):
            return check_confirmation(
                request.value,
                request.constraint,
                request.kind,
                policy=self.policy,
                override=True,
            )
        return decision


@dataclass(frozen=True, slots=True, kw_only=True)
class LiteralConfirmation:
    decision: ConfirmationDecision
    transition: TransitionResult | None = None


@dataclass(slots=True, kw_only=True)
class ReconciliationSession:
    """Store plus everything that reacts to its transitions.

    Engine functions take the session explicitly; loading a new dataset means
    building a new session.
    """

    store: ReconciliationStore
    settings: ReconciliationSettings = field(default_factory=ReconciliationSettings)
    confirmation: ConfirmationStrategy = field(default_factory=AlwaysConfirm)
    recency: RecencyCache = field(default_factory=RecencyCache)
    tracker: ProgressTracker = field(init=False)
    _listeners: list[TransitionListener] = field(default_factory=list[TransitionListener])

    def __post_init__(self) -> None:
        self.tracker = ProgressTracker.scan(self.store)

    @property
    def progress(self) -> Progress:
        return self.tracker.snapshot()

    def subscribe(self, listener: TransitionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, result: TransitionResult) -> None:
        for listener in list(self._listeners):
            listener(result)

    def dispatch(self, command: Command) -> TransitionResult:
        return apply_command(self, command)

    def descriptor_for(self, cell: CellRef) -> PropertyDescriptor | None:
        entry = self.store.entry(cell.item_id, cell.property)
        if entry.property_metadata is not None:
            return entry.property_metadata
        if entry.manual_property is not None:
            return entry.manual_property.descriptor
        return None

    def value_kind_for(self, cell: CellRef) -> ValueKind:
        descriptor = self.descriptor_for(cell)
        return descriptor.value_kind if descriptor is not None else ValueKind.ENTITY

    def constraint_for(self, cell: CellRef) -> ResolvedConstraint | None:
        descriptor = self.descriptor_for(cell)
        if descriptor is None:
            return resolve_constraint(cell.property)
        constraint = resolve_constraint(descriptor.key, descriptor)
        if constraint is None and descriptor.label:
            constraint = resolve_constraint(descriptor.label)
        return constraint

    def validate_cell(self, cell: CellRef, value: str | None = None) -> ValidationResult:
        text = value if value is not None else self.store.original_value(cell)
        return validate_value(text, self.constraint_for(cell))

    def confirm_literal(
        self,
        cell: CellRef,
        value: str,
        *,
        datatype: str | None = None,
    ) -> LiteralConfirmation:
        """Validate ``value`` and, if the strategy allows it, accept it on ``cell``."""

        descriptor = self.descriptor_for(cell)
        kind = self.value_kind_for(cell)
        request = ConfirmationRequest(
            cell=cell, value=value, kind=kind, constraint=self.constraint_for(cell)
        )
        decision = self.confirmation.confirm(request)
        if not decision.allowed:
            log.info("Literal %r for %s not confirmed: %s", value, cell, decision.verdict)
            return LiteralConfirmation(decision=decision)

        resolved_datatype = datatype or (
            descriptor.datatype if descriptor and descriptor.datatype else Datatype.STRING
        )
        qualifiers = {} if decision.validation.is_valid else {"validation_override": True}
        transition = self.dispatch(
            UseCustom(
                cell=cell,
                value=value.strip(),
                datatype=str(resolved_datatype),
                qualifiers=qualifiers,
            )
        )
        return LiteralConfirmation(decision=decision, transition=transition)
