"""Wikidata API response schemas (action API and reconciliation service)."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

type EntityId = str  # Q123 or P123

FORMAT_CONSTRAINT = "Q21502404"
VALUE_TYPE_CONSTRAINT = "Q21503250"
PROPERTY_CONSTRAINT = "P2302"
FORMAT_AS_REGEX = "P1793"
SYNTAX_CLARIFICATION = "P2916"
CONSTRAINT_CLASS = "P2308"


class WikidataBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Wikidata %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class WikidataApiErrorBody(WikidataBaseModel):
    code: str
    info: str = ""


class SearchHit(WikidataBaseModel):
    id: EntityId
    label: str | None = None
    description: str | None = None
    concepturi: str | None = None
    aliases: list[str] = Field(default_factory=list)


class SearchEntitiesResponse(WikidataBaseModel):
    search: list[SearchHit] = Field(default_factory=list)
    error: WikidataApiErrorBody | None = None
    search_continue: int | None = Field(default=None, alias="search-continue")


class LanguageValue(WikidataBaseModel):
    language: str
    value: str


class EntityDocument(WikidataBaseModel):
    id: EntityId
    type: str | None = None
    datatype: str | None = None
    labels: dict[str, LanguageValue] = Field(default_factory=dict)
    descriptions: dict[str, LanguageValue] = Field(default_factory=dict)
    missing: str | None = None


class GetEntitiesResponse(WikidataBaseModel):
    entities: dict[str, EntityDocument] = Field(default_factory=dict)
    error: WikidataApiErrorBody | None = None


class DataValue(WikidataBaseModel):
    value: Any = None
    type: str | None = None


class Snak(WikidataBaseModel):
    snaktype: str = "value"
    property: EntityId
    datavalue: DataValue | None = None
    datatype: str | None = None

    @property
    def entity_id(self) -> str | None:
        value = self.datavalue.value if self.datavalue is not None else None
        if isinstance(value, dict):
            entity = value.get("id")
            return entity if isinstance(entity, str) else None
        return None

    @property
    def text(self) -> str | None:
        value = self.datavalue.value if self.datavalue is not None else None
        if isinstance(value, str):
            return value
        if isinstance(value, dict) and isinstance(value.get("text"), str):
            return value["text"]
        return None

    @property
    def language(self) -> str | None:
        value = self.datavalue.value if self.datavalue is not None else None
        if isinstance(value, dict) and isinstance(value.get("language"), str):
            return value["language"]
        return None


class Statement(WikidataBaseModel):
    mainsnak: Snak
    rank: str = "normal"
    qualifiers: dict[str, list[Snak]] = Field(default_factory=dict)
    id: str | None = None
    type: str | None = None


class GetClaimsResponse(WikidataBaseModel):
    claims: dict[str, list[Statement]] = Field(default_factory=dict)
    error: WikidataApiErrorBody | None = None


class ReconciliationType(WikidataBaseModel):
    id: str
    name: str | None = None


class ReconciliationCandidate(WikidataBaseModel):
    id: EntityId
    name: str
    description: str | None = None
    score: float | str | None = None
    match: bool = False
    type: list[ReconciliationType] = Field(default_factory=list)


class ReconciliationResult(WikidataBaseModel):
    result: list[ReconciliationCandidate] = Field(default_factory=list)
