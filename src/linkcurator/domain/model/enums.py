"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CellStatus(StrEnum):
    PENDING = "pending"
    RECONCILED = "reconciled"
    SKIPPED = "skipped"
    NO_ITEM = "no-item"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not CellStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self in {CellStatus.RECONCILED, CellStatus.NO_ITEM}


class SelectionKind(StrEnum):
    """Discriminator for the accepted value of a cell."""

    WIKIDATA = "wikidata"
    CUSTOM = "custom"
    STRING = "string"
    NO_ITEM = "no-item"


class Datatype(StrEnum):
    """Knowledge-base property datatypes as reported by ``wbgetentities``."""

    WIKIBASE_ITEM = "wikibase-item"
    WIKIBASE_PROPERTY = "wikibase-property"
    EXTERNAL_ID = "external-id"
    STRING = "string"
    URL = "url"
    TIME = "time"
    QUANTITY = "quantity"
    MONOLINGUAL_TEXT = "monolingualtext"
    GLOBE_COORDINATE = "globe-coordinate"
    COMMONS_MEDIA = "commonsMedia"


class ValueKind(StrEnum):
    """How a cell is reconciled: entity matching or literal validation."""

    ENTITY = "entity"
    EXTERNAL_ID = "external-id"
    STRING = "string"
    URL = "url"
    TIME = "time"
    QUANTITY = "quantity"
    OTHER = "other"

    @property
    def requires_matching(self) -> bool:
        return self is ValueKind.ENTITY


class ValidationLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ConstraintSource(StrEnum):
    KNOWLEDGE_BASE = "knowledge-base"
    BUILTIN = "builtin"
