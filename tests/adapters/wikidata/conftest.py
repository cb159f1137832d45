from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture
def search_payload() -> dict[str, Any]:
    return {
        "searchinfo": {"search": "Shakespeare"},
        "search": [
            {
                "id": "Q692",
                "label": "William Shakespeare",
                "description": "English playwright and poet (1564-1616)",
                "concepturi": "http://www.wikidata.org/entity/Q692",
                "match": {"type": "label", "language": "en", "text": "William Shakespeare"},
            },
            {"id": "Q1", "description": "no label here"},
        ],
        "search-continue": 2,
        "success": 1,
    }


@pytest.fixture
def reconciliation_payload() -> dict[str, Any]:
    return {
        "q0": {
            "result": [
                {
                    "id": "Q692",
                    "name": "William Shakespeare",
                    "description": "English playwright",
                    "score": 100,
                    "match": True,
                    "type": [{"id": "Q5", "name": "human"}],
                },
                {"id": "Q2", "name": "Shakespeare crater", "score": "42.5", "type": []},
                {"id": "Q3", "name": "weird", "score": "n/a"},
            ]
        }
    }


@pytest.fixture
def entities_payload() -> dict[str, Any]:
    return {
        "entities": {
            "P212": {
                "type": "property",
                "datatype": "external-id",
                "id": "P212",
                "labels": {"en": {"language": "en", "value": "ISBN-13"}},
                "descriptions": {
                    "en": {"language": "en", "value": "identifier for a book edition"}
                },
            }
        },
        "success": 1,
    }


def _snak(property_id: str, value: Any, datatype: str = "string") -> dict[str, Any]:
    return {
        "snaktype": "value",
        "property": property_id,
        "datavalue": {"value": value, "type": "string"},
        "datatype": datatype,
    }


@pytest.fixture
def claims_payload() -> dict[str, Any]:
    return {
        "claims": {
            "P2302": [
                {
                    "mainsnak": _snak(
                        "P2302", {"entity-type": "item", "id": "Q21502404"}, "wikibase-item"
                    ),
                    "rank": "normal",
                    "qualifiers": {
                        "P1793": [_snak("P1793", r"97[89]-\d{1,5}-\d+-\d+-\d")],
                        "P2916": [
                            _snak("P2916", {"text": "ISBN mit Bindestrichen", "language": "de"}),
                            _snak("P2916", {"text": "hyphenated ISBN-13", "language": "en"}),
                        ],
                    },
                },
                {
                    "mainsnak": _snak(
                        "P2302", {"entity-type": "item", "id": "Q21502404"}, "wikibase-item"
                    ),
                    "rank": "deprecated",
                    "qualifiers": {"P1793": [_snak("P1793", r"\d{13}")]},
                },
                {
                    "mainsnak": _snak(
                        "P2302", {"entity-type": "item", "id": "Q21503250"}, "wikibase-item"
                    ),
                    "qualifiers": {
                        "P2308": [
                            _snak("P2308", {"entity-type": "item", "id": "Q3331189"}),
                            _snak("P2308", {"entity-type": "item", "id": "Q571"}),
                        ]
                    },
                },
                {
                    "mainsnak": _snak(
                        "P2302", {"entity-type": "item", "id": "Q19474404"}, "wikibase-item"
                    ),
                },
            ]
        }
    }
