from __future__ import annotations

from typing import TYPE_CHECKING, Any

from linkcurator.domain.model import CellRef, CellStatus, CustomSelection, ValueKind
from linkcurator.domain.reconciliation import (
    ConfirmationDecision,
    ConfirmationPolicy,
    ConfirmationRequest,
    ConfirmationVerdict,
    PolicyConfirmation,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from linkcurator.domain.model import ManualProperty, PropertyDescriptor
    from linkcurator.domain.reconciliation import ReconciliationSession

ISBN_ITEM_1 = CellRef("item-1", "bibo:isbn13", 0)


def test_descriptor_kind_and_constraint_follow_the_mapping(
    make_session: Callable[..., ReconciliationSession],
    records: list[dict[str, Any]],
    descriptors: list[PropertyDescriptor],
) -> None:
    session = make_session(records, descriptors)

    assert session.value_kind_for(ISBN_ITEM_1) is ValueKind.EXTERNAL_ID
    constraint = session.constraint_for(ISBN_ITEM_1)
    assert constraint is not None
    assert constraint.key == "isbn"
    assert not session.validate_cell(ISBN_ITEM_1).is_valid
    assert session.validate_cell(CellRef("item-0", "bibo:isbn13", 0)).is_valid


def test_manual_property_cells_use_their_descriptor(
    make_session: Callable[..., ReconciliationSession],
    records: list[dict[str, Any]],
    descriptors: list[PropertyDescriptor],
    manual_property: ManualProperty,
) -> None:
    session = make_session(records, descriptors, [manual_property])

    assert session.descriptor_for(CellRef("item-0", "P31", 0)) == manual_property.descriptor


def test_default_strategy_accepts_invalid_literals_with_override_marker(
    make_session: Callable[..., ReconciliationSession],
    records: list[dict[str, Any]],
    descriptors: list[PropertyDescriptor],
) -> None:
    session = make_session(records, descriptors)

    outcome = session.confirm_literal(ISBN_ITEM_1, " invalid-isbn ")

    assert outcome.decision.allowed
    assert outcome.transition is not None
    value = session.store.value_at(ISBN_ITEM_1)
    assert value.status is CellStatus.RECONCILED
    assert value.selected_match == CustomSelection(value="invalid-isbn", datatype="external-id")
    assert value.qualifiers == {"validation_override": True}


def test_policy_strategy_requires_override_for_external_ids(
    make_session: Callable[..., ReconciliationSession],
    records: list[dict[str, Any]],
    descriptors: list[PropertyDescriptor],
) -> None:
    session = make_session(
        records, descriptors, confirmation=PolicyConfirmation(ConfirmationPolicy())
    )

    outcome = session.confirm_literal(ISBN_ITEM_1, "invalid-isbn")

    assert outcome.decision.verdict is ConfirmationVerdict.NEEDS_OVERRIDE
    assert outcome.transition is None
    assert session.store.value_at(ISBN_ITEM_1).status is CellStatus.PENDING


def test_policy_strategy_asks_before_overriding(
    make_session: Callable[..., ReconciliationSession],
    records: list[dict[str, Any]],
    descriptors: list[PropertyDescriptor],
) -> None:
    asked: list[ConfirmationRequest] = []

    def approve(request: ConfirmationRequest, decision: ConfirmationDecision) -> bool:
        asked.append(request)
        return not decision.validation.is_valid

    session = make_session(
        records,
        descriptors,
        confirmation=PolicyConfirmation(ConfirmationPolicy(), on_override=approve),
    )

    outcome = session.confirm_literal(ISBN_ITEM_1, "invalid-isbn")

    assert outcome.decision.allowed
    assert [r.cell for r in asked] == [ISBN_ITEM_1]
    assert session.store.value_at(ISBN_ITEM_1).qualifiers == {"validation_override": True}


def test_valid_literal_has_no_override_marker(
    make_session: Callable[..., ReconciliationSession],
    records: list[dict[str, Any]],
    descriptors: list[PropertyDescriptor],
) -> None:
    session = make_session(
        records, descriptors, confirmation=PolicyConfirmation(ConfirmationPolicy())
    )

    outcome = session.confirm_literal(ISBN_ITEM_1, "9780141439518", datatype="string")

    assert outcome.transition is not None
    value = session.store.value_at(ISBN_ITEM_1)
    assert value.selected_match == CustomSelection(value="9780141439518", datatype="string")
    assert value.qualifiers == {}
