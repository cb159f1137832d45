"""Translate Wikidata payloads into domain candidates and property metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING

from linkcurator.domain.model import (
    Candidate,
    FormatConstraint,
    PropertyMetadata,
    ValueTypeConstraint,
)
from linkcurator.domain.reconciliation import parse_score

from .schema import (
    CONSTRAINT_CLASS,
    FORMAT_AS_REGEX,
    FORMAT_CONSTRAINT,
    PROPERTY_CONSTRAINT,
    SYNTAX_CLARIFICATION,
    VALUE_TYPE_CONSTRAINT,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .schema import (
        EntityDocument,
        GetClaimsResponse,
        ReconciliationResult,
        SearchEntitiesResponse,
        Snak,
        Statement,
    )

SEARCH_SOURCE = "search"
RECONCILIATION_SOURCE = "reconciliation"


def translate_search(payload: SearchEntitiesResponse) -> list[Candidate]:
    """``wbsearchentities`` reports no score; candidates keep ``score=None``."""

    return [
        Candidate(
            id=hit.id,
            label=hit.label or hit.id,
            description=hit.description or "",
            source=SEARCH_SOURCE,
        )
        for hit in payload.search
    ]


def translate_reconciliation(payload: ReconciliationResult) -> list[Candidate]:
    """Scores that are missing, non-numeric or not finite become ``None``."""

    return [
        Candidate(
            id=hit.id,
            label=hit.name,
            description=hit.description or "",
            score=parse_score(hit.score),
            types=tuple(t.id for t in hit.type),
            source=RECONCILIATION_SOURCE,
        )
        for hit in payload.result
    ]


def translate_property(
    property_id: str,
    document: EntityDocument | None,
    claims: GetClaimsResponse | None,
    *,
    language: str = "en",
) -> PropertyMetadata:
    statements = claims.claims.get(PROPERTY_CONSTRAINT, []) if claims is not None else []
    formats: list[FormatConstraint] = []
    value_types: list[ValueTypeConstraint] = []
    for statement in statements:
        constraint_type = statement.mainsnak.entity_id
        if constraint_type == FORMAT_CONSTRAINT:
            constraint = _format_constraint(statement, language)
            if constraint is not None:
                formats.append(constraint)
        elif constraint_type == VALUE_TYPE_CONSTRAINT:
            classes = tuple(
                entity
                for snak in statement.qualifiers.get(CONSTRAINT_CLASS, [])
                if (entity := snak.entity_id) is not None
            )
            if classes:
                value_types.append(ValueTypeConstraint(classes=classes, rank=statement.rank))

    return PropertyMetadata(
        property_id=property_id,
        datatype=document.datatype if document is not None else None,
        label=_localized(document.labels, language) if document is not None else None,
        description=(
            _localized(document.descriptions, language) if document is not None else None
        ),
        format_constraints=tuple(formats),
        value_type_constraints=tuple(value_types),
    )


def _format_constraint(statement: Statement, language: str) -> FormatConstraint | None:
    patterns = [
        text
        for snak in statement.qualifiers.get(FORMAT_AS_REGEX, [])
        if (text := snak.text) is not None
    ]
    if not patterns:
        return None
    return FormatConstraint(
        pattern=patterns[0],
        description=_clarification(statement.qualifiers.get(SYNTAX_CLARIFICATION, []), language),
        rank=statement.rank,
    )


def _clarification(snaks: list[Snak], language: str) -> str | None:
    fallback: str | None = None
    for snak in snaks:
        if snak.language == language:
            return snak.text
        if fallback is None:
            fallback = snak.text
    return fallback


def _localized(values: Mapping[str, object], language: str) -> str | None:
    entry = values.get(language)
    value = getattr(entry, "value", None)
    return value if isinstance(value, str) else None
