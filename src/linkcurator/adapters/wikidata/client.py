"""Wikidata action API and reconciliation service clients."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ValidationError

from linkcurator.adapters.http_resilience import ResilientClient

from .schema import (
    GetClaimsResponse,
    GetEntitiesResponse,
    ReconciliationResult,
    SearchEntitiesResponse,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from linkcurator.config.http_resilience import ResilienceConfig
    from linkcurator.config.wikidata import ReconciliationServiceConfig, WikidataConfig

log = getLogger(__name__)


class WikidataAPIError(RuntimeError):
    """Raised when a Wikidata endpoint fails or returns an unexpected response."""


class WikidataClient:
    """Low-level async client for ``api.php``.

    One ``ResilientClient`` is opened lazily and reused so the rate limiter and
    response cache span all requests; close it with ``aclose`` or ``async with``.
    """

    def __init__(
        self,
        *,
        config: WikidataConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    @property
    def language(self) -> str:
        return self._config.language

    async def __aenter__(self) -> WikidataClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search_entities(
        self,
        *,
        query: str,
        limit: int,
        language: str | None = None,
        entity_type: str = "item",
    ) -> SearchEntitiesResponse:
        params = {
            "action": "wbsearchentities",
            "search": query,
            "language": language or self.language,
            "uselang": language or self.language,
            "type": entity_type,
            "limit": str(limit),
            "format": "json",
        }
        return await self._get(params, SearchEntitiesResponse)

    async def get_entities(
        self,
        *,
        ids: tuple[str, ...],
        props: tuple[str, ...] = ("datatype", "labels", "descriptions"),
        language: str | None = None,
    ) -> GetEntitiesResponse:
        params = {
            "action": "wbgetentities",
            "ids": "|".join(ids),
            "props": "|".join(props),
            "languages": language or self.language,
            "format": "json",
        }
        return await self._get(params, GetEntitiesResponse)

    async def get_claims(self, *, entity: str, property_id: str) -> GetClaimsResponse:
        params = {
            "action": "wbgetclaims",
            "entity": entity,
            "property": property_id,
            "format": "json",
        }
        return await self._get(params, GetClaimsResponse)

    async def _get[M: BaseModel](self, params: dict[str, str], model: type[M]) -> M:
        base_url = self._resilience.base_url
        if base_url is None:
            raise WikidataAPIError("Missing Wikidata base_url in resilience configuration")
        client = self._ensure_client()
        try:
            response = await client.get(base_url, params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            raise WikidataAPIError(f"{params['action']} request failed: {exc}") from exc

        if not isinstance(payload, dict):
            raise WikidataAPIError(f"Unexpected {params['action']} response payload")
        error = payload.get("error")
        if isinstance(error, dict):
            raise WikidataAPIError(
                f"{params['action']} error {error.get('code')}: {error.get('info', '')}"
            )
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise WikidataAPIError(f"Malformed {params['action']} response: {exc}") from exc

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client


class ReconciliationServiceClient:
    """OpenRefine reconciliation API client trying each configured endpoint in turn."""

    def __init__(
        self,
        *,
        config: ReconciliationServiceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._endpoints = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._clients: dict[str, ResilientClient] = {}

    async def __aenter__(self) -> ReconciliationServiceClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        clients, self._clients = self._clients, {}
        for client in clients.values():
            await client.aclose()

    async def reconcile(
        self,
        *,
        query: str,
        limit: int,
        entity_types: tuple[str, ...] = (),
    ) -> ReconciliationResult:
        spec: dict[str, Any] = {"query": query, "limit": limit}
        if entity_types:
            spec["type"] = list(entity_types) if len(entity_types) > 1 else entity_types[0]
        form = {"queries": json.dumps({"q0": spec})}

        failures: list[str] = []
        for resilience in self._endpoints:
            try:
                return await self._post(resilience, form)
            except WikidataAPIError as exc:
                log.warning("Reconciliation endpoint %s failed: %s", resilience.name, exc)
                failures.append(f"{resilience.name}: {exc}")
        raise WikidataAPIError("All reconciliation endpoints failed: " + "; ".join(failures))

    async def _post(
        self, resilience: ResilienceConfig, form: dict[str, str]
    ) -> ReconciliationResult:
        if resilience.base_url is None:
            raise WikidataAPIError(f"Missing base_url for {resilience.name}")
        client = self._clients.get(resilience.name)
        if client is None:
            client = self._client_factory(resilience)
            self._clients[resilience.name] = client
        try:
            response = await client.post(resilience.base_url, data=form)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            raise WikidataAPIError(str(exc)) from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("q0"), dict):
            raise WikidataAPIError("Unexpected reconciliation response payload")
        try:
            return ReconciliationResult.model_validate(payload["q0"])
        except ValidationError as exc:
            raise WikidataAPIError(f"Malformed reconciliation response: {exc}") from exc
