from __future__ import annotations

import logging

import pytest

from linkcurator.domain.extraction import (
    ExtractionContext,
    TransformationBlock,
    TransformationRegistry,
    extract_property_values,
)
from linkcurator.domain.model import PropertyDescriptor


def test_mixed_value_objects_yield_labels_and_values_in_order() -> None:
    record = {"dcterms:subject": [{"@value": "Art"}, {"o:label": "History"}]}

    assert extract_property_values(record, "dcterms:subject") == ["Art", "History"]


def test_label_wins_over_value() -> None:
    record = {"p": [{"@value": "raw", "o:label": "Pretty"}]}

    assert extract_property_values(record, "p") == ["Pretty"]


@pytest.mark.parametrize("raw", [None, "", [], {}])
def test_missing_or_empty_property_yields_nothing(raw: object) -> None:
    assert extract_property_values({"p": raw}, "p") == []
    assert extract_property_values({}, "p") == []


def test_scalars_become_singletons() -> None:
    assert extract_property_values({"p": "plain"}, "p") == ["plain"]
    assert extract_property_values({"p": 1999}, "p") == ["1999"]
    assert extract_property_values({"p": 0}, "p") == ["0"]
    assert extract_property_values({"p": False}, "p") == ["false"]


def test_selected_field_extracts_only_that_field() -> None:
    record = {"p": [{"@id": "http://x/1", "o:label": "X"}]}
    descriptor = PropertyDescriptor(key="p", selected_at_field="@id")

    assert extract_property_values(record, descriptor) == ["http://x/1"]


def test_selected_field_drops_elements_without_it() -> None:
    record = {"p": [{"@id": "http://x/1"}, {"o:label": "no id"}, "scalar"]}
    descriptor = PropertyDescriptor(key="p", selected_at_field="@id")

    assert extract_property_values(record, descriptor) == ["http://x/1"]


def _registry(descriptor: PropertyDescriptor, *blocks: TransformationBlock) -> ExtractionContext:
    registry = TransformationRegistry()
    registry.set_chain(descriptor.mapping_id, blocks)
    return ExtractionContext(transformations=registry)


def test_transformation_chain_keeps_final_value() -> None:
    descriptor = PropertyDescriptor(key="p", property_id="P1")
    context = _registry(
        descriptor,
        TransformationBlock(type="suffix", config={"text": "!"}, id="b2", order=2),
        TransformationBlock(type="prefix", config={"text": "Dr. "}, id="b1", order=1),
    )

    values = extract_property_values({"p": ["Who", "No"]}, descriptor, context=context)

    assert values == ["Dr. Who!", "Dr. No!"]


def test_transformations_need_a_target_property() -> None:
    descriptor = PropertyDescriptor(key="p")
    context = _registry(descriptor, TransformationBlock(type="prefix", config={"text": "x"}))

    assert extract_property_values({"p": "v"}, descriptor, context=context) == ["v"]


def test_failed_transformation_keeps_original_value(caplog: pytest.LogCaptureFixture) -> None:
    descriptor = PropertyDescriptor(key="p", property_id="P1")
    context = _registry(
        descriptor,
        TransformationBlock(type="regex", config={"pattern": "(unclosed", "replacement": ""}),
    )

    with caplog.at_level(logging.WARNING):
        values = extract_property_values({"p": "keep me"}, descriptor, context=context)

    assert values == ["keep me"]
    assert "ExtractionWarning" in caplog.text
