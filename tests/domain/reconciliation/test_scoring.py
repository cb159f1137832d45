from __future__ import annotations

import math

import pytest

from linkcurator.domain.model import (
    Candidate,
    FormatConstraint,
    PropertyDescriptor,
    ValueTypeConstraint,
)
from linkcurator.domain.reconciliation import (
    best_auto_accept,
    fallback_score,
    parse_score,
    score_candidates,
)

THRESHOLD = 90.0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(87, 87.0), ("92.5", 92.5), (" 3 ", 3.0), ("abc", None), (math.nan, None), (True, None)],
)
def test_parse_score(raw: object, expected: float | None) -> None:
    assert parse_score(raw) == expected


def test_fallback_scores_descend_and_stay_below_threshold() -> None:
    scores = [fallback_score(rank, THRESHOLD) for rank in range(12)]

    assert scores[0] == THRESHOLD - 1
    assert scores[2] == 80.0
    assert scores[-1] == 10.0
    assert scores == sorted(scores, reverse=True)


def test_unscored_candidates_never_auto_accept() -> None:
    candidates = [Candidate(id=f"Q{i}", label=f"hit {i}") for i in range(1, 4)]

    scored = score_candidates(candidates, query="hit", descriptor=None, threshold=THRESHOLD)

    assert [c.id for c in scored] == ["Q1", "Q2", "Q3"]
    assert all(not c.score_trusted for c in scored)
    assert best_auto_accept(scored, THRESHOLD) is None


def test_reported_scores_are_trusted_and_ranked() -> None:
    candidates = [
        Candidate(id="Q1", label="low", score=40.0, source="reconciliation"),
        Candidate(id="Q2", label="high", score=95.0, source="reconciliation"),
    ]

    scored = score_candidates(candidates, query="x", descriptor=None, threshold=THRESHOLD)

    assert [c.id for c in scored] == ["Q2", "Q1"]
    best = best_auto_accept(scored, THRESHOLD)
    assert best is not None
    assert best.id == "Q2"


def test_exact_identifier_query_scores_full_marks() -> None:
    candidates = [Candidate(id="Q5", label="other"), Candidate(id="Q42", label="Douglas Adams")]

    scored = score_candidates(candidates, query=" q42 ", descriptor=None, threshold=THRESHOLD)

    assert scored[0].id == "Q42"
    assert scored[0].score == 100.0
    assert scored[0].score_trusted
    assert "Exact identifier match" in scored[0].adjustments


def test_unmet_value_type_constraint_lowers_score() -> None:
    descriptor = PropertyDescriptor(
        key="dcterms:creator",
        datatype="external-id",
        value_type_constraints=(ValueTypeConstraint(classes=("Q5",)),),
    )
    candidates = [
        Candidate(id="Q1", label="person", score=80.0, types=("Q5",)),
        Candidate(id="Q2", label="book", score=80.0, types=("Q571",)),
    ]

    scored = {
        c.id: c
        for c in score_candidates(
            candidates, query="x", descriptor=descriptor, threshold=THRESHOLD
        )
    }

    assert scored["Q1"].score == pytest.approx(80.0)
    assert scored["Q2"].score == pytest.approx(56.0)
    assert scored["Q2"].original_score == 80.0


def test_deprecated_value_type_constraint_is_ignored() -> None:
    descriptor = PropertyDescriptor(
        key="dcterms:creator",
        datatype="external-id",
        value_type_constraints=(ValueTypeConstraint(classes=("Q5",), rank="deprecated"),),
    )
    candidate = Candidate(id="Q2", label="book", score=80.0, types=("Q571",))

    (scored,) = score_candidates(
        [candidate], query="x", descriptor=descriptor, threshold=THRESHOLD
    )

    assert scored.score == pytest.approx(80.0)
    assert not any("Type constraint" in note for note in scored.adjustments)


def test_external_id_via_reconciliation_is_boosted_and_capped() -> None:
    descriptor = PropertyDescriptor(key="bibo:isbn13", datatype="external-id")
    candidates = [
        Candidate(id="Q1", label="a", score=80.0, source="reconciliation"),
        Candidate(id="Q2", label="b", score=90.0, source="reconciliation"),
    ]

    scored = {
        c.id: c
        for c in score_candidates(
            candidates, query="x", descriptor=descriptor, threshold=THRESHOLD
        )
    }

    assert scored["Q1"].score == pytest.approx(96.0)
    assert scored["Q2"].score == 100.0


def test_format_constraint_on_query_scales_every_candidate() -> None:
    descriptor = PropertyDescriptor(
        key="bibo:isbn13",
        datatype="string",
        format_constraints=(FormatConstraint(pattern=r"\d{13}"),),
    )
    candidates = [Candidate(id="Q1", label="a", score=50.0)]

    valid = score_candidates(
        candidates, query="9780140283297", descriptor=descriptor, threshold=THRESHOLD
    )
    invalid = score_candidates(
        candidates, query="invalid-isbn", descriptor=descriptor, threshold=THRESHOLD
    )

    assert valid[0].score == pytest.approx(55.0)
    assert invalid[0].score == pytest.approx(40.0)


def test_boosts_do_not_lift_fallback_scores_over_threshold() -> None:
    descriptor = PropertyDescriptor(key="dcterms:creator", datatype="wikibase-item")

    scored = score_candidates(
        [Candidate(id="Q1", label="a")], query="a", descriptor=descriptor, threshold=THRESHOLD
    )

    assert scored[0].score == THRESHOLD - 1
