"""HTTP-level checks for the Wikidata clients using ``httpx.MockTransport``."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable  # noqa: TC003
from dataclasses import replace
from pathlib import Path  # noqa: TC003
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from hishel.httpx import AsyncCacheClient

from linkcurator.adapters.http_resilience import ClientOverrides, ResilientClient
from linkcurator.adapters.wikidata import (
    ReconciliationServiceClient,
    WikidataAPIError,
    WikidataClient,
)
from linkcurator.config.http_resilience import (
    ResilienceConfig,
    RetryablePayloadError,
    RetryPolicy,
)
from linkcurator.config.wikidata import (
    ReconciliationServiceConfig,
    WikidataConfig,
    get_wikidata_config,
    raise_on_maxlag,
)

API_URL = "https://www.wikidata.org/w/api.php"

type Handler = Callable[[httpx.Request], httpx.Response]


def _resilience(name: str, base_url: str = API_URL) -> ResilienceConfig:
    return ResilienceConfig(
        name=name, base_url=base_url, retry=RetryPolicy(total=0), cache=None
    )


def _factory(handler: Handler) -> Callable[[ResilienceConfig], ResilientClient]:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(
            resilience, overrides=ClientOverrides(transport=httpx.MockTransport(handler))
        )

    return factory


def _wikidata(handler: Handler) -> WikidataClient:
    return WikidataClient(
        config=WikidataConfig(resilience=_resilience("wikidata"), language="de"),
        client_factory=_factory(handler),
    )


def test_search_entities_sends_action_api_query(search_payload: dict[str, Any]) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=search_payload)

    async def run() -> list[str]:
        async with _wikidata(handler) as client:
            response = await client.search_entities(query="Shakespeare", limit=7)
        return [hit.id for hit in response.search]

    assert asyncio.run(run()) == ["Q692", "Q1"]
    (request,) = seen
    assert str(request.url).startswith(API_URL + "?")
    assert request.url.params["action"] == "wbsearchentities"
    assert request.url.params["search"] == "Shakespeare"
    assert request.url.params["language"] == "de"
    assert request.url.params["limit"] == "7"


def test_get_entities_and_claims(
    entities_payload: dict[str, Any], claims_payload: dict[str, Any]
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        match request.url.params["action"]:
            case "wbgetentities":
                assert request.url.params["ids"] == "P212"
                return httpx.Response(200, json=entities_payload)
            case "wbgetclaims":
                assert request.url.params["property"] == "P2302"
                return httpx.Response(200, json=claims_payload)
        return httpx.Response(400)

    async def run() -> tuple[str | None, int]:
        async with _wikidata(handler) as client:
            entities = await client.get_entities(ids=("P212",))
            claims = await client.get_claims(entity="P212", property_id="P2302")
        return entities.entities["P212"].datatype, len(claims.claims["P2302"])

    assert asyncio.run(run()) == ("external-id", 4)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"error": {"code": "badvalue", "info": "Bad limit"}}),
        httpx.Response(200, json={"search": [{"label": "missing id"}]}),
    ],
)
def test_failures_become_api_errors(response: httpx.Response) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    async def run() -> None:
        async with _wikidata(handler) as client:
            await client.search_entities(query="x", limit=1)

    with pytest.raises(WikidataAPIError):
        asyncio.run(run())


def test_missing_base_url_is_reported() -> None:
    client = WikidataClient(
        config=WikidataConfig(
            resilience=ResilienceConfig(name="wikidata", retry=RetryPolicy(total=0), cache=None)
        ),
        client_factory=_factory(lambda request: httpx.Response(200, json={})),
    )

    with pytest.raises(WikidataAPIError, match="base_url"):
        asyncio.run(client.search_entities(query="x", limit=1))


def test_maxlag_refusal_is_raised_by_response_hook() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"error": {"code": "maxlag", "info": "Waiting for db: 6 seconds lagged"}}
        )

    resilience = replace(_resilience("wikidata"), response_hooks=(raise_on_maxlag,))
    client = WikidataClient(
        config=WikidataConfig(resilience=resilience), client_factory=_factory(handler)
    )

    async def run() -> None:
        async with client:
            await client.search_entities(query="x", limit=1)

    with pytest.raises(WikidataAPIError, match="Wikidata is lagging") as exc:
        asyncio.run(run())
    assert isinstance(exc.value.__cause__, RetryablePayloadError)


def test_wikidata_config_builds_cached_client_with_maxlag_hook(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("WIKIDATA_APP_NAME", "linkcurator-test")
    monkeypatch.setenv("WIKIDATA_CONTACT", "curator@example.org")
    monkeypatch.setenv("LINKCURATOR_HTTP_CACHE", str(tmp_path / "cache.sqlite"))

    resilience = get_wikidata_config().resilience
    client = ResilientClient(resilience)

    try:
        assert isinstance(client._client, AsyncCacheClient)  # noqa: SLF001
        assert client._client.event_hooks["response"] == [raise_on_maxlag]  # noqa: SLF001
    finally:
        asyncio.run(client.aclose())


def _service(handlers: dict[str, Handler]) -> ReconciliationServiceClient:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return _factory(handlers[resilience.name])(resilience)

    return ReconciliationServiceClient(
        config=ReconciliationServiceConfig(
            resilience=tuple(
                _resilience(name, f"https://{name}.example/api") for name in handlers
            )
        ),
        client_factory=factory,
    )


def test_reconcile_posts_query_batch(reconciliation_payload: dict[str, Any]) -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        form = parse_qs(request.content.decode())
        seen.append(json.loads(form["queries"][0]))
        return httpx.Response(200, json=reconciliation_payload)

    async def run() -> list[str]:
        async with _service({"primary": handler}) as service:
            result = await service.reconcile(query="Shakespeare", limit=5, entity_types=("Q5",))
        return [hit.id for hit in result.result]

    assert asyncio.run(run()) == ["Q692", "Q2", "Q3"]
    assert seen == [{"q0": {"query": "Shakespeare", "limit": 5, "type": "Q5"}}]


def test_reconcile_falls_back_to_next_endpoint(reconciliation_payload: dict[str, Any]) -> None:
    calls: list[str] = []

    def broken(request: httpx.Request) -> httpx.Response:
        calls.append("primary")
        return httpx.Response(502)

    def working(request: httpx.Request) -> httpx.Response:
        calls.append("fallback")
        return httpx.Response(200, json=reconciliation_payload)

    async def run() -> int:
        async with _service({"primary": broken, "fallback": working}) as service:
            result = await service.reconcile(query="Shakespeare", limit=5)
        return len(result.result)

    assert asyncio.run(run()) == 3
    assert calls == ["primary", "fallback"]


def test_reconcile_raises_when_every_endpoint_fails() -> None:
    def broken(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    async def run() -> None:
        async with _service({"primary": broken, "fallback": broken}) as service:
            await service.reconcile(query="x", limit=1)

    with pytest.raises(WikidataAPIError, match="All reconciliation endpoints failed"):
        asyncio.run(run())
