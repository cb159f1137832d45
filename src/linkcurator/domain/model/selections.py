"""Accepted values for a cell, one dataclass per kind of decision."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .enums import SelectionKind


@dataclass(frozen=True, slots=True, kw_only=True)
class WikidataSelection:
    """Cell linked to a knowledge-base item."""

    id: str
    label: str
    description: str = ""
    kind: Literal[SelectionKind.WIKIDATA] = SelectionKind.WIKIDATA


@dataclass(frozen=True, slots=True, kw_only=True)
class CustomSelection:
    """Literal value typed by the curator (or standardised, e.g. a date)."""

    value: str
    datatype: str
    kind: Literal[SelectionKind.CUSTOM] = SelectionKind.CUSTOM


@dataclass(frozen=True, slots=True, kw_only=True)
class StringSelection:
    """Source value kept verbatim as a string."""

    value: str
    label: str
    description: str = "Used as string value"
    kind: Literal[SelectionKind.STRING] = SelectionKind.STRING


@dataclass(frozen=True, slots=True, kw_only=True)
class NoItemSelection:
    """Curator decided no suitable item exists."""

    reason: str = "No appropriate Wikidata item exists"
    kind: Literal[SelectionKind.NO_ITEM] = SelectionKind.NO_ITEM


type Selection = WikidataSelection | CustomSelection | StringSelection | NoItemSelection
