"""Wikidata knowledge-base adapter."""

from __future__ import annotations

from .client import ReconciliationServiceClient, WikidataAPIError, WikidataClient
from .fetcher import (
    ChainedEntitySearch,
    ReconciliationServiceSearch,
    WikidataEntitySearch,
    WikidataPropertyMetadata,
)

__all__ = [
    "ChainedEntitySearch",
    "ReconciliationServiceClient",
    "ReconciliationServiceSearch",
    "WikidataAPIError",
    "WikidataClient",
    "WikidataEntitySearch",
    "WikidataPropertyMetadata",
]
