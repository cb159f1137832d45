"""Port definitions for property metadata lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from linkcurator.domain.model import PropertyMetadata


class MetadataLookupFailure(RuntimeError):
    """Raised when a property's metadata could not be loaded."""


class PropertyMetadataLookup(Protocol):
    async def property_metadata(self, property_id: str) -> PropertyMetadata: ...
