"""Domain port definitions for adapters."""

from __future__ import annotations

from .metadata import MetadataLookupFailure, PropertyMetadataLookup
from .search import EntitySearch, MatchQueryFailure

__all__ = [
    "EntitySearch",
    "MatchQueryFailure",
    "MetadataLookupFailure",
    "PropertyMetadataLookup",
]
