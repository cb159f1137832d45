"""Port definitions for knowledge-base entity search."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkcurator.domain.model import Candidate, PropertyDescriptor


class MatchQueryFailure(RuntimeError):
    """Raised by search adapters when a query could not be answered.

    Treated as transient by the matching engine: the cell stays pending and
    the caller is offered a retry.
    """


class EntitySearch(Protocol):
    """Free-text entity search returning ranked candidates."""

    async def search(
        self,
        query: str,
        *,
        limit: int,
        language: str = "en",
        descriptor: PropertyDescriptor | None = None,
    ) -> Sequence[Candidate]: ...
