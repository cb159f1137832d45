"""Wikidata implementations of the search and metadata ports."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from linkcurator.domain.ports import MatchQueryFailure, MetadataLookupFailure

from .client import WikidataAPIError
from .schema import PROPERTY_CONSTRAINT
from .translator import translate_property, translate_reconciliation, translate_search

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkcurator.domain.model import Candidate, PropertyDescriptor, PropertyMetadata
    from linkcurator.domain.ports import EntitySearch

    from .schema import (
        GetClaimsResponse,
        GetEntitiesResponse,
        ReconciliationResult,
        SearchEntitiesResponse,
    )

log = getLogger(__name__)


class SearchClient(Protocol):
    async def search_entities(
        self,
        *,
        query: str,
        limit: int,
        language: str | None = None,
        entity_type: str = "item",
    ) -> SearchEntitiesResponse: ...


class ReconcileClient(Protocol):
    async def reconcile(
        self,
        *,
        query: str,
        limit: int,
        entity_types: tuple[str, ...] = (),
    ) -> ReconciliationResult: ...


class EntityLookupClient(Protocol):
    async def get_entities(
        self,
        *,
        ids: tuple[str, ...],
        props: tuple[str, ...] = ...,
        language: str | None = None,
    ) -> GetEntitiesResponse: ...

    async def get_claims(self, *, entity: str, property_id: str) -> GetClaimsResponse: ...


class WikidataEntitySearch:
    """``wbsearchentities`` as an ``EntitySearch``."""

    def __init__(self, client: SearchClient) -> None:
        self._client = client

    async def search(
        self,
        query: str,
        *,
        limit: int,
        language: str = "en",
        descriptor: PropertyDescriptor | None = None,  # noqa: ARG002
    ) -> Sequence[Candidate]:
        try:
            payload = await self._client.search_entities(
                query=query, limit=limit, language=language
            )
        except WikidataAPIError as exc:
            raise MatchQueryFailure(str(exc)) from exc
        return translate_search(payload)


class ReconciliationServiceSearch:
    """Scored search through an OpenRefine reconciliation service.

    The property's value-type constraint classes, when known, restrict the
    query's entity types.
    """

    def __init__(self, client: ReconcileClient) -> None:
        self._client = client

    async def search(
        self,
        query: str,
        *,
        limit: int,
        language: str = "en",  # noqa: ARG002
        descriptor: PropertyDescriptor | None = None,
    ) -> Sequence[Candidate]:
        try:
            payload = await self._client.reconcile(
                query=query, limit=limit, entity_types=_entity_types(descriptor)
            )
        except WikidataAPIError as exc:
            raise MatchQueryFailure(str(exc)) from exc
        return translate_reconciliation(payload)


class ChainedEntitySearch:
    """Try each search in order until one returns candidates.

    A failing search is logged and skipped; the query only fails when every
    search failed.
    """

    def __init__(self, *searches: EntitySearch) -> None:
        if not searches:
            raise ValueError("ChainedEntitySearch needs at least one search")
        self._searches = searches

    async def search(
        self,
        query: str,
        *,
        limit: int,
        language: str = "en",
        descriptor: PropertyDescriptor | None = None,
    ) -> Sequence[Candidate]:
        failures: list[MatchQueryFailure] = []
        for search in self._searches:
            try:
                candidates = await search.search(
                    query, limit=limit, language=language, descriptor=descriptor
                )
            except MatchQueryFailure as exc:
                log.warning("%s failed for %r: %s", type(search).__name__, query, exc)
                failures.append(exc)
                continue
            if candidates:
                return candidates
        if len(failures) == len(self._searches):
            raise MatchQueryFailure("; ".join(str(exc) for exc in failures)) from failures[-1]
        return []


class WikidataPropertyMetadata:
    """Datatype, labels and format/value-type constraints of a property."""

    def __init__(self, client: EntityLookupClient, *, language: str = "en") -> None:
        self._client = client
        self._language = language
        self._cache: dict[str, PropertyMetadata] = {}

    async def property_metadata(self, property_id: str) -> PropertyMetadata:
        cached = self._cache.get(property_id)
        if cached is not None:
            return cached

        try:
            entities = await self._client.get_entities(
                ids=(property_id,), language=self._language
            )
        except WikidataAPIError as exc:
            raise MetadataLookupFailure(str(exc)) from exc
        document = entities.entities.get(property_id)
        if document is not None and document.missing is not None:
            raise MetadataLookupFailure(f"Property {property_id} does not exist")
        try:
            claims = await self._client.get_claims(
                entity=property_id, property_id=PROPERTY_CONSTRAINT
            )
        except WikidataAPIError as exc:
            log.warning("Could not load constraints for %s: %s", property_id, exc)
            claims = None

        metadata = translate_property(property_id, document, claims, language=self._language)
        self._cache[property_id] = metadata
        return metadata


def _entity_types(descriptor: PropertyDescriptor | None) -> tuple[str, ...]:
    if descriptor is None:
        return ()
    return tuple(
        dict.fromkeys(
            cls
            for constraint in descriptor.active_value_type_constraints
            for cls in constraint.classes
        )
    )
