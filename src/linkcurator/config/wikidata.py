"""Wikidata endpoint configuration values."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .env import require_env_vars
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryablePayloadError,
    RetryPolicy,
)

if TYPE_CHECKING:
    import httpx

DEFAULT_WIKIDATA_API_URL = "https://www.wikidata.org/w/api.php"
DEFAULT_RECONCILIATION_SERVICE_URL = "https://wikidata.reconci.link/en/api"
FALLBACK_RECONCILIATION_SERVICE_URL = "https://tools.wmflabs.org/openrefine-wikidata/en/api"


@dataclass(frozen=True, slots=True)
class WikidataConfig:
    resilience: ResilienceConfig
    language: str = "en"


@dataclass(frozen=True, slots=True)
class ReconciliationServiceConfig:
    """OpenRefine-style reconciliation endpoints, tried in order."""

    resilience: tuple[ResilienceConfig, ...]


def cacheable_payload(payload: object) -> bool:
    """Action API errors arrive with HTTP 200; keep them out of the cache."""

    return not (isinstance(payload, dict) and "error" in payload)


async def raise_on_maxlag(response: httpx.Response) -> None:
    """Turn a replication-lag refusal into an HTTP error before the body is parsed."""

    await response.aread()
    try:
        payload = json.loads(response.content)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return
    if not isinstance(payload, dict):
        return
    error = payload.get("error")
    if isinstance(error, dict) and error.get("code") == "maxlag":
        raise RetryablePayloadError(
            f"Wikidata is lagging: {error.get('info', 'maxlag')}", response=response
        )


def _user_agent() -> str:
    values = require_env_vars(("WIKIDATA_APP_NAME", "WIKIDATA_CONTACT"))
    return f"{values['WIKIDATA_APP_NAME']} ({values['WIKIDATA_CONTACT']})"


def get_wikidata_config(*, language: str = "en") -> WikidataConfig:
    resilience = ResilienceConfig(
        name="wikidata",
        base_url=DEFAULT_WIKIDATA_API_URL,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        retry=RetryPolicy(total=4),
        cache=CacheConfig(enabled=True, backend="sqlite", should_cache=cacheable_payload),
        response_hooks=(raise_on_maxlag,),
        default_headers={"User-Agent": _user_agent()},
    )
    return WikidataConfig(resilience=resilience, language=language)


def get_reconciliation_service_config() -> ReconciliationServiceConfig:
    user_agent = _user_agent()
    endpoints = (
        ("reconci.link", DEFAULT_RECONCILIATION_SERVICE_URL),
        ("wmflabs", FALLBACK_RECONCILIATION_SERVICE_URL),
    )
    return ReconciliationServiceConfig(
        resilience=tuple(
            ResilienceConfig(
                name=f"reconciliation:{name}",
                base_url=url,
                ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
                retry=RetryPolicy(total=2),
                cache=None,
                default_headers={"User-Agent": user_agent},
            )
            for name, url in endpoints
        )
    )
