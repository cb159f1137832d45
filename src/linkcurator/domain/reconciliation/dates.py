"""Recognise date-like literals and normalise them to knowledge-base time values."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import IntEnum
from typing import Final

_MONTHS: Final[dict[str, int]] = {
    name: index
    for index, names in enumerate(
        (
            ("january", "jan"),
            ("february", "feb"),
            ("march", "mar"),
            ("april", "apr"),
            ("may",),
            ("june", "jun"),
            ("july", "jul"),
            ("august", "aug"),
            ("september", "sep", "sept"),
            ("october", "oct"),
            ("november", "nov"),
            ("december", "dec"),
        ),
        start=1,
    )
    for name in names
}
_MONTH_NAME = "|".join(sorted(_MONTHS, key=len, reverse=True))

_YEAR = re.compile(r"^(\d{4})$")
_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")
_ISO_DAY = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_US_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DAY_FIRST = re.compile(r"^(\d{1,2})[-.](\d{1,2})[-.](\d{4})$")
_DECADE = re.compile(r"^(\d{3})0s$")
_MONTH_DAY_YEAR = re.compile(rf"^({_MONTH_NAME})\.?\s+(\d{{1,2}}),?\s+(\d{{4}})$", re.IGNORECASE)
_DAY_MONTH_YEAR = re.compile(rf"^(\d{{1,2}})\s+({_MONTH_NAME})\.?\s+(\d{{4}})$", re.IGNORECASE)
_MONTH_YEAR = re.compile(rf"^({_MONTH_NAME})\.?\s+(\d{{4}})$", re.IGNORECASE)
_PART_OF_DECADE = re.compile(r"^(early|mid|late)\s+(\d{4})s?$", re.IGNORECASE)
_CIRCA = re.compile(r"^(?:c\.|ca\.|circa)\s*(\d{4})$", re.IGNORECASE)
_RANGE = re.compile(r"^(\d{4})\s*[-/]\s*(\d{4})$")


class DatePrecision(IntEnum):
    """Precision codes used by Wikibase time values."""

    CENTURY = 7
    DECADE = 8
    YEAR = 9
    MONTH = 10
    DAY = 11


@dataclass(frozen=True, slots=True, kw_only=True)
class StandardizedDate:
    value: str
    precision: DatePrecision
    original: str
    circa: bool = False

    @property
    def wikibase_time(self) -> str:
        """Format as ``+YYYY-MM-DDT00:00:00Z`` with unknown parts zeroed."""

        year, _, rest = self.value.partition("-")
        month, _, day = rest.partition("-")
        return f"+{year}-{month or '00'}-{day or '00'}T00:00:00Z"


def is_date_value(value: str | None) -> bool:
    return standardize_date(value) is not None


def standardize_date(value: str | None) -> StandardizedDate | None:
    """Parse common human date spellings.

    Returns ``None`` for anything that is not recognisably a date. Ranges keep
    their start year at year precision.
    """

    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    if match := _YEAR.match(text):
        return _build(text, int(match[1]))
    if match := _YEAR_MONTH.match(text):
        return _build(text, int(match[1]), int(match[2]))
    if match := _ISO_DAY.match(text):
        return _build(text, int(match[1]), int(match[2]), int(match[3]))
    if match := _US_SLASH.match(text):
        return _build(text, int(match[3]), int(match[1]), int(match[2]))
    if match := _DAY_FIRST.match(text):
        return _build(text, int(match[3]), int(match[2]), int(match[1]))
    if match := _MONTH_DAY_YEAR.match(text):
        return _build(text, int(match[3]), _MONTHS[match[1].lower()], int(match[2]))
    if match := _DAY_MONTH_YEAR.match(text):
        return _build(text, int(match[3]), _MONTHS[match[2].lower()], int(match[1]))
    if match := _MONTH_YEAR.match(text):
        return _build(text, int(match[2]), _MONTHS[match[1].lower()])
    if match := _DECADE.match(text):
        return StandardizedDate(
            value=f"{match[1]}0", precision=DatePrecision.DECADE, original=text
        )
    if match := _PART_OF_DECADE.match(text):
        precision = DatePrecision.DECADE if text.lower().endswith("s") else DatePrecision.YEAR
        return StandardizedDate(value=match[2], precision=precision, original=text, circa=True)
    if match := _CIRCA.match(text):
        return StandardizedDate(
            value=match[1], precision=DatePrecision.YEAR, original=text, circa=True
        )
    if (match := _RANGE.match(text)) and int(match[1]) <= int(match[2]):
        return StandardizedDate(value=match[1], precision=DatePrecision.YEAR, original=text)
    return _from_iso_timestamp(text)


def _build(text: str, year: int, month: int | None = None, day: int | None = None) -> StandardizedDate | None:
    if month is None:
        return StandardizedDate(value=f"{year:04d}", precision=DatePrecision.YEAR, original=text)
    if not 1 <= month <= 12:  # noqa: PLR2004
        return None
    if day is None:
        return StandardizedDate(
            value=f"{year:04d}-{month:02d}", precision=DatePrecision.MONTH, original=text
        )
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    return StandardizedDate(value=parsed.isoformat(), precision=DatePrecision.DAY, original=text)


def _from_iso_timestamp(text: str) -> StandardizedDate | None:
    if "T" not in text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return StandardizedDate(
        value=parsed.date().isoformat(), precision=DatePrecision.DAY, original=text
    )
