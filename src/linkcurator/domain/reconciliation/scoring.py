"""Candidate scoring and ranking.

Only scores reported by the search endpoint are trusted for auto-acceptance.
Candidates without one get a position-based score that stays below the
auto-accept threshold. Property constraints then scale the score:

- value-type constraint present but unmet by the candidate's types: x0.7
- format constraint violated by the source value: x0.8
- format constraint satisfied by the source value: x1.1
- external-id property answered by the reconciliation service: x1.2
- wikibase-item property and a ``Q`` identifier: x1.1

Adjusted scores are capped at 100.
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Final

from linkcurator.domain.model import Datatype

from .constraints import ConstraintPatternError, compile_pattern

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkcurator.domain.model import Candidate, PropertyDescriptor

MAX_SCORE: Final[float] = 100.0
MIN_FALLBACK_SCORE: Final[float] = 10.0
EXACT_ID_SCORE: Final[float] = 100.0
RECONCILIATION_SOURCE: Final[str] = "reconciliation"

_ITEM_ID = re.compile(r"^Q[1-9]\d*$")


def parse_score(raw: object) -> float | None:
    """Return ``raw`` as a finite float, or ``None`` when it is not one."""

    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int | float):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def fallback_score(rank: int, threshold: float) -> float:
    """Score for the ``rank``-th (0-based) unscored candidate."""

    score = max(MAX_SCORE - 10 * rank, MIN_FALLBACK_SCORE)
    return min(score, threshold - 1)


def looks_like_item_id(value: str) -> bool:
    return _ITEM_ID.match(value.strip().upper()) is not None


def score_candidates(
    candidates: Sequence[Candidate],
    *,
    query: str,
    descriptor: PropertyDescriptor | None,
    threshold: float,
) -> tuple[Candidate, ...]:
    """Score, adjust and rank ``candidates`` highest first.

    Ties keep the order the endpoint returned them in.
    """

    exact_id = query.strip().upper() if looks_like_item_id(query) else None
    format_factor = _format_factor(query, descriptor)

    scored: list[Candidate] = []
    for rank, candidate in enumerate(candidates):
        if exact_id is not None and candidate.id == exact_id:
            scored.append(
                candidate.with_score(
                    EXACT_ID_SCORE, trusted=True, adjustments=("Exact identifier match",)
                )
            )
            continue

        raw = parse_score(candidate.score)
        trusted = raw is not None
        base = raw if raw is not None else fallback_score(rank, threshold)
        factor, notes = _constraint_factor(candidate, descriptor, format_factor)
        score = min(MAX_SCORE, base * factor)
        if not trusted:
            score = min(score, threshold - 1)
        scored.append(candidate.with_score(score, trusted=trusted, adjustments=notes))

    return tuple(sorted(scored, key=lambda c: c.score or 0.0, reverse=True))


def best_auto_accept(
    candidates: Sequence[Candidate], threshold: float
) -> Candidate | None:
    for candidate in candidates:
        if candidate.score_trusted and (candidate.score or 0.0) >= threshold:
            return candidate
    return None


def _format_factor(
    value: str, descriptor: PropertyDescriptor | None
) -> tuple[float, str] | None:
    if descriptor is None:
        return None
    constraints = descriptor.active_format_constraints
    if not constraints:
        return None
    text = value.strip()
    for constraint in constraints:
        try:
            compiled = compile_pattern(constraint.pattern)
        except ConstraintPatternError:
            continue
        if compiled.fullmatch(text) is None:
            return 0.8, "Format constraint violated (-20%)"
    return 1.1, "Format constraint satisfied (+10%)"


def _constraint_factor(
    candidate: Candidate,
    descriptor: PropertyDescriptor | None,
    format_factor: tuple[float, str] | None,
) -> tuple[float, tuple[str, ...]]:
    if descriptor is None:
        return 1.0, ()

    factor = 1.0
    notes: list[str] = []

    value_types = descriptor.active_value_type_constraints
    if value_types:
        candidate_types = set(candidate.types)
        satisfied = any(
            candidate_types.intersection(constraint.classes) for constraint in value_types
        )
        if not satisfied:
            factor *= 0.7
            notes.append("Type constraint not satisfied (-30%)")

    if format_factor is not None:
        factor *= format_factor[0]
        notes.append(format_factor[1])

    if descriptor.datatype == Datatype.EXTERNAL_ID and candidate.source == RECONCILIATION_SOURCE:
        factor *= 1.2
        notes.append("External ID via reconciliation API (+20%)")
    elif descriptor.datatype == Datatype.WIKIBASE_ITEM and candidate.id.startswith("Q"):
        factor *= 1.1
        notes.append("Valid Wikibase item format (+10%)")

    return factor, tuple(notes)
