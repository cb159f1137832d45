from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest

from linkcurator.app import (
    MappingDocument,
    ReconciliationRun,
    enrich_descriptors,
    reconcile_dataset,
    reconcile_dataset_sync,
)
from linkcurator.domain.model import (
    Candidate,
    CellRef,
    CellStatus,
    FormatConstraint,
    PropertyDescriptor,
    PropertyMetadata,
    WikidataSelection,
)
from linkcurator.domain.ports import MetadataLookupFailure
from linkcurator.domain.reconciliation import (
    MatchOutcomeKind,
    PreconditionError,
    PreconditionFailure,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkcurator.config.reconciliation import ReconciliationSettings


class FakeMetadata:
    def __init__(self, known: dict[str, PropertyMetadata]) -> None:
        self._known = known
        self.requested: list[str] = []

    async def property_metadata(self, property_id: str) -> PropertyMetadata:
        self.requested.append(property_id)
        if property_id not in self._known:
            raise MetadataLookupFailure(f"unknown {property_id}")
        return self._known[property_id]


class FakeSearch:
    def __init__(self, answers: dict[str, list[Candidate]]) -> None:
        self._answers = answers
        self.queries: list[str] = []

    async def search(
        self,
        query: str,
        *,
        limit: int,
        language: str = "en",
        descriptor: PropertyDescriptor | None = None,
    ) -> Sequence[Candidate]:
        self.queries.append(query)
        return self._answers.get(query, [])


@pytest.fixture
def mapping_payload() -> dict[str, Any]:
    return {
        "mappedKeys": [
            {"key": "dcterms:creator", "property": {"id": "P50", "label": "author"}},
            {"key": "bibo:isbn13", "property": {"id": "P212"}},
            {"key": "dcterms:subject", "property": {"id": "P921"}},
        ],
        "manualProperties": [
            {
                "property": {"id": "P31", "label": "instance of"},
                "defaultValue": "Q571",
                "isRequired": True,
            }
        ],
        "transformations": {
            "bibo:isbn13::P212": [
                {"type": "findReplace", "config": {"find": "-", "replace": ""}, "id": "strip"}
            ]
        },
    }


@pytest.fixture
def metadata() -> FakeMetadata:
    return FakeMetadata(
        {
            "P50": PropertyMetadata(property_id="P50", datatype="wikibase-item"),
            "P212": PropertyMetadata(
                property_id="P212",
                datatype="external-id",
                label="ISBN-13",
                format_constraints=(FormatConstraint(pattern=r"\d{13}"),),
            ),
            "P31": PropertyMetadata(property_id="P31", datatype="wikibase-item"),
        }
    )


@pytest.fixture
def search() -> FakeSearch:
    return FakeSearch(
        {
            "William Shakespeare": [
                Candidate(id="Q692", label="William Shakespeare", score=97.0)
            ],
            "Jane Austen": [Candidate(id="Q36322", label="Jane Austen")],
            "Q571": [Candidate(id="Q571", label="book")],
        }
    )


def test_mapping_document_parses_every_section(mapping_payload: dict[str, Any]) -> None:
    mapping = MappingDocument.from_mapping(mapping_payload)

    assert [d.property_id for d in mapping.descriptors] == ["P50", "P212", "P921"]
    (manual,) = mapping.manual_properties
    assert manual.property_id == "P31"
    assert manual.default_value == "Q571"
    assert manual.is_required
    assert mapping.transformations is not None
    assert [b.id for b in mapping.transformations.chain_for("bibo:isbn13::P212")] == ["strip"]


def test_enrich_descriptors_keeps_descriptor_on_lookup_failure(
    metadata: FakeMetadata,
) -> None:
    descriptors = [
        PropertyDescriptor(key="dcterms:creator", property_id="P50"),
        PropertyDescriptor(key="dcterms:subject", property_id="P921"),
        PropertyDescriptor(key="dcterms:title"),
    ]

    enriched = asyncio.run(enrich_descriptors(descriptors, metadata))

    assert enriched[0].datatype == "wikibase-item"
    assert enriched[1] == descriptors[1]
    assert enriched[2] == descriptors[2]
    assert metadata.requested == ["P50", "P921"]


def test_reconcile_dataset_end_to_end(
    records: list[dict[str, Any]],
    mapping_payload: dict[str, Any],
    metadata: FakeMetadata,
    search: FakeSearch,
    settings: ReconciliationSettings,
) -> None:
    result = asyncio.run(
        reconcile_dataset(
            records,
            MappingDocument.from_mapping(mapping_payload),
            search=search,
            metadata=metadata,
            settings=settings,
        )
    )

    assert isinstance(result, ReconciliationRun)
    store = result.session.store
    creator = store.value_at(CellRef("item-0", "dcterms:creator", 0))
    assert creator.status is CellStatus.RECONCILED
    assert creator.selected_match == WikidataSelection(id="Q692", label="William Shakespeare")
    for item_id in ("item-0", "item-1"):
        instance_of = store.value_at(CellRef(item_id, "P31", 0))
        assert instance_of.status is CellStatus.RECONCILED
        assert instance_of.confidence == 100.0
    assert store.original_value(CellRef("item-1", "bibo:isbn13", 0)) == "invalidisbn"
    assert store.value_at(CellRef("item-1", "dcterms:creator", 0)).status is CellStatus.PENDING
    assert "9780140283297" not in search.queries
    assert result.report.outcomes[MatchOutcomeKind.AUTO_ACCEPTED] == 3
    assert result.report.outcomes[MatchOutcomeKind.LITERAL] == 2
    assert result.session.progress.reconciled == 3


def test_reconcile_dataset_reports_preconditions(
    mapping_payload: dict[str, Any], metadata: FakeMetadata, search: FakeSearch
) -> None:
    result = asyncio.run(
        reconcile_dataset(
            [], MappingDocument.from_mapping(mapping_payload), search=search, metadata=metadata
        )
    )

    assert isinstance(result, PreconditionError)
    assert result.reason is PreconditionFailure.NO_DATA
    assert search.queries == []


def test_sync_wrapper_runs_the_same_pipeline(
    records: list[dict[str, Any]],
    mapping_payload: dict[str, Any],
    metadata: FakeMetadata,
    search: FakeSearch,
) -> None:
    result = reconcile_dataset_sync(
        records,
        MappingDocument.from_mapping(mapping_payload),
        log_level=None,
        search=search,
        metadata=metadata,
    )

    assert isinstance(result, ReconciliationRun)
    assert result.report.failed == 0


@pytest.mark.parametrize(
    ("rows", "mapped_keys", "reason"),
    [
        ([], [{"key": "dcterms:subject", "property": {"id": "P921"}}], PreconditionFailure.NO_DATA),
        ([{"o:id": 1}], [], PreconditionFailure.NO_MAPPED_PROPERTIES),
        (
            [{"o:id": 1}],
            [{"key": "gone", "property": {"id": "P921"}, "notInCurrentDataset": True}],
            PreconditionFailure.NO_AVAILABLE_PROPERTIES,
        ),
    ],
)
def test_preconditions_are_checked_before_environment_and_lookups(
    monkeypatch: pytest.MonkeyPatch,
    rows: list[dict[str, Any]],
    mapped_keys: list[dict[str, Any]],
    reason: PreconditionFailure,
) -> None:
    monkeypatch.delenv("WIKIDATA_APP_NAME", raising=False)
    monkeypatch.delenv("WIKIDATA_CONTACT", raising=False)
    metadata = FakeMetadata({})
    mapping = MappingDocument.from_mapping({"mappedKeys": mapped_keys})

    without_adapters = asyncio.run(reconcile_dataset(rows, mapping))
    with_lookup = asyncio.run(reconcile_dataset(rows, mapping, metadata=metadata))

    assert isinstance(without_adapters, PreconditionError)
    assert without_adapters.reason is reason
    assert isinstance(with_lookup, PreconditionError)
    assert metadata.requested == []
