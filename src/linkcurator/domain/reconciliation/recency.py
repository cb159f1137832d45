"""Remember the last accepted entity per property to pre-seed suggestions."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from linkcurator.domain.model import Candidate

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkcurator.domain.model import WikidataSelection

RECENT_SOURCE: Final[str] = "recent"


@dataclass(slots=True)
class RecencyCache:
    """Bounded property-id -> last accepted selection map.

    Suggestions from here are heuristic: they never carry a score and so never
    take part in auto-acceptance.
    """

    max_properties: int = 256
    _entries: OrderedDict[str, WikidataSelection] = field(default_factory=OrderedDict, repr=False)

    def remember(self, property_key: str, selection: WikidataSelection) -> None:
        self._entries[property_key] = selection
        self._entries.move_to_end(property_key)
        while len(self._entries) > self.max_properties:
            self._entries.popitem(last=False)

    def recent_for(self, property_key: str) -> WikidataSelection | None:
        return self._entries.get(property_key)

    def seed(self, property_key: str, candidates: Sequence[Candidate]) -> tuple[Candidate, ...]:
        """Append the recent selection to ``candidates`` unless already present."""

        recent = self._entries.get(property_key)
        if recent is None or any(c.id == recent.id for c in candidates):
            return tuple(candidates)
        suggestion = Candidate(
            id=recent.id,
            label=recent.label,
            description=recent.description,
            source=RECENT_SOURCE,
        )
        return (*candidates, suggestion)

    def clear(self) -> None:
        self._entries.clear()
