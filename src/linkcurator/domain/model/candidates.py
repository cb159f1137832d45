"""Match candidates returned by entity search."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True, kw_only=True)
class Candidate:
    """One ranked search hit.

    ``score`` is ``None`` when the endpoint did not report one; scoring fills it
    in, remembering the raw value in ``original_score``.
    """

    id: str
    label: str
    description: str = ""
    score: float | None = None
    original_score: float | None = None
    types: tuple[str, ...] = ()
    source: str = "search"
    adjustments: tuple[str, ...] = ()
    score_trusted: bool = False

    @property
    def url(self) -> str:
        return f"https://www.wikidata.org/wiki/{self.id}"

    def with_score(
        self,
        score: float,
        *,
        trusted: bool,
        adjustments: tuple[str, ...] = (),
    ) -> Candidate:
        return replace(
            self,
            score=score,
            original_score=self.score if self.original_score is None else self.original_score,
            score_trusted=trusted,
            adjustments=self.adjustments + adjustments,
        )
