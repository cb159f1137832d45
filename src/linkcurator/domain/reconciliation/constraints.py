"""Format-constraint resolution for literal-valued properties.

Resolution order:
1. a non-deprecated format constraint attached to the property descriptor
   (fetched from the knowledge base),
2. the built-in table of well-known identifier formats, matched first by exact
   property name and then by substring containment,
3. nothing: the property is unconstrained.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Final

from linkcurator.domain.model import ConstraintSource

if TYPE_CHECKING:
    from linkcurator.domain.model import PropertyDescriptor

log = logging.getLogger(__name__)


class ConstraintPatternError(ValueError):
    """Raised when a constraint pattern cannot be compiled."""


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedConstraint:
    pattern: str
    description: str
    source: ConstraintSource
    key: str | None = None
    examples: tuple[str, ...] = ()
    error_message: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class _BuiltinFormat:
    pattern: str
    description: str
    examples: tuple[str, ...]
    error_message: str


BUILTIN_FORMATS: Final[dict[str, _BuiltinFormat]] = {
    "isbn": _BuiltinFormat(
        pattern=r"^(?:97[89])?\d{9}(?:\d|X)$",
        description=(
            "ISBN-10 (10 digits, last may be X) or ISBN-13 "
            "(13 digits starting with 978 or 979)"
        ),
        examples=("0123456789", "9780123456789", "123456789X"),
        error_message="ISBN must be 10 or 13 digits. ISBN-10 may end with X.",
    ),
    "issn": _BuiltinFormat(
        pattern=r"^\d{4}-\d{3}[\dX]$",
        description="ISSN format: four digits, hyphen, three digits, and check digit (may be X)",
        examples=("1234-5678", "0028-0836", "1550-7998"),
        error_message="ISSN must be in format NNNN-NNNX where X can be a digit or X",
    ),
    "doi": _BuiltinFormat(
        pattern=r"^10\.\d+/.+$",
        description='DOI starting with "10." followed by registrant and suffix',
        examples=("10.1000/182", "10.1038/nature12373", "10.1145/1327452.1327492"),
        error_message='DOI must start with "10." followed by registrant code and suffix',
    ),
    "orcid": _BuiltinFormat(
        pattern=r"^\d{4}-\d{4}-\d{4}-\d{3}[\dX]$",
        description="ORCID identifier: 16 digits in groups of 4, separated by hyphens",
        examples=("0000-0002-1825-0097", "0000-0003-1234-567X"),
        error_message="ORCID must be 16 digits in format NNNN-NNNN-NNNN-NNNX",
    ),
    "url": _BuiltinFormat(
        pattern=r"^https?://\S+$",
        description="Valid HTTP or HTTPS URL",
        examples=("https://example.com", "http://www.example.org/path"),
        error_message="Must be a valid HTTP or HTTPS URL",
    ),
    "email": _BuiltinFormat(
        pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
        description="Valid email address format",
        examples=("user@example.com", "test.email@domain.org"),
        error_message="Must be a valid email address",
    ),
    "year": _BuiltinFormat(
        pattern=r"^\d{4}$",
        description="Four-digit year",
        examples=("2023", "1995", "1066"),
        error_message="Must be a four-digit year",
    ),
    "date_iso": _BuiltinFormat(
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="ISO 8601 date format (YYYY-MM-DD)",
        examples=("2023-12-25", "1995-07-15", "2000-01-01"),
        error_message="Must be in format YYYY-MM-DD",
    ),
    "wikidata_item": _BuiltinFormat(
        pattern=r"^Q[1-9]\d*$",
        description="Wikidata item identifier (Q followed by digits)",
        examples=("Q42", "Q5"),
        error_message="Must be a Wikidata item id such as Q42",
    ),
    "wikidata_property": _BuiltinFormat(
        pattern=r"^P[1-9]\d*$",
        description="Wikidata property identifier (P followed by digits)",
        examples=("P31", "P212"),
        error_message="Must be a Wikidata property id such as P31",
    ),
}


def resolve_constraint(
    property_name: str,
    descriptor: PropertyDescriptor | None = None,
) -> ResolvedConstraint | None:
    """Return the format constraint that applies to ``property_name``."""

    if descriptor is not None:
        for constraint in descriptor.active_format_constraints:
            return ResolvedConstraint(
                pattern=constraint.pattern,
                description=constraint.description
                or f"Must match pattern: {constraint.pattern}",
                source=ConstraintSource.KNOWLEDGE_BASE,
                key=builtin_key_for_pattern(constraint.pattern),
            )

    name = property_name.lower()
    if name in BUILTIN_FORMATS:
        return builtin_constraint(name)
    for key in BUILTIN_FORMATS:
        if key in name:
            return builtin_constraint(key)
    return None


def builtin_constraint(key: str) -> ResolvedConstraint:
    entry = BUILTIN_FORMATS[key]
    return ResolvedConstraint(
        pattern=entry.pattern,
        description=entry.description,
        source=ConstraintSource.BUILTIN,
        key=key,
        examples=entry.examples,
        error_message=entry.error_message,
    )


def builtin_key_for_pattern(pattern: str) -> str | None:
    for key, entry in BUILTIN_FORMATS.items():
        if entry.pattern == pattern:
            return key
    return None


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a constraint pattern, raising ``ConstraintPatternError`` if malformed."""

    try:
        return _compile(pattern)
    except re.error as exc:
        raise ConstraintPatternError(f"Invalid constraint pattern {pattern!r}: {exc}") from exc


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)
