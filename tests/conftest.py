from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from linkcurator.config.reconciliation import ReconciliationSettings
from linkcurator.domain.model import (
    FormatConstraint,
    ManualProperty,
    PropertyDescriptor,
)
from linkcurator.domain.reconciliation import (
    PreconditionError,
    ReconciliationSession,
    initialize_store,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (
        "LINKCURATOR_AUTO_ACCEPT_THRESHOLD",
        "LINKCURATOR_VISIBLE_MATCHES",
        "LINKCURATOR_SEARCH_LIMIT",
        "LINKCURATOR_BATCH_CONCURRENCY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("LINKCURATOR_HTTP_CACHE", raising=False)
    monkeypatch.setenv("LINKCURATOR_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture
def records() -> list[dict[str, Any]]:
    return [
        {
            "o:id": 1,
            "dcterms:title": [{"@value": "Hamlet", "type": "literal"}],
            "dcterms:creator": [{"o:label": "William Shakespeare", "@id": "http://ex/1"}],
            "bibo:isbn13": [{"@value": "9780140283297"}],
            "dcterms:subject": [{"@value": "Art"}, {"o:label": "History"}],
        },
        {
            "o:id": 2,
            "dcterms:title": [{"@value": "Emma"}],
            "dcterms:creator": [{"o:label": "Jane Austen"}],
            "bibo:isbn13": [{"@value": "invalid-isbn"}],
        },
    ]


@pytest.fixture
def descriptors() -> list[PropertyDescriptor]:
    return [
        PropertyDescriptor(
            key="dcterms:creator", property_id="P50", label="author", datatype="wikibase-item"
        ),
        PropertyDescriptor(
            key="bibo:isbn13", property_id="P212", label="ISBN-13", datatype="external-id"
        ),
        PropertyDescriptor(
            key="dcterms:subject", property_id="P921", label="main subject", datatype="wikibase-item"
        ),
    ]


@pytest.fixture
def manual_property() -> ManualProperty:
    return ManualProperty(
        descriptor=PropertyDescriptor(
            key="P31", property_id="P31", label="instance of", datatype="wikibase-item"
        ),
        default_value="Q571",
        is_required=True,
    )


@pytest.fixture
def settings() -> ReconciliationSettings:
    return ReconciliationSettings()


@pytest.fixture
def make_session(
    settings: ReconciliationSettings,
) -> Callable[..., ReconciliationSession]:
    def factory(
        records: Sequence[Mapping[str, Any]],
        descriptors: Sequence[PropertyDescriptor],
        manual: Sequence[ManualProperty] = (),
        **kwargs: Any,
    ) -> ReconciliationSession:
        result = initialize_store(records, descriptors, manual)
        assert not isinstance(result, PreconditionError), result
        kwargs.setdefault("settings", settings)
        return ReconciliationSession(store=result.store, **kwargs)

    return factory


@pytest.fixture
def isbn_descriptor() -> PropertyDescriptor:
    return PropertyDescriptor(
        key="bibo:isbn13",
        property_id="P212",
        datatype="external-id",
        format_constraints=(
            FormatConstraint(pattern=r"97[89]-\d{1,5}-\d+-\d+-\d", description="hyphenated"),
        ),
    )
