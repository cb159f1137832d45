"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from contextlib import AsyncExitStack
from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING, Any

from linkcurator.adapters.wikidata import (
    ChainedEntitySearch,
    ReconciliationServiceClient,
    ReconciliationServiceSearch,
    WikidataClient,
    WikidataEntitySearch,
    WikidataPropertyMetadata,
)
from linkcurator.common.logging import configure_logging
from linkcurator.config import (
    get_reconciliation_service_config,
    get_reconciliation_settings,
    get_wikidata_config,
    load_environment,
)
from linkcurator.domain.extraction import (
    ExtractionContext,
    TransformationBlock,
    TransformationRegistry,
)
from linkcurator.domain.model import ManualProperty, PropertyDescriptor, with_metadata
from linkcurator.domain.ports import MetadataLookupFailure
from linkcurator.domain.reconciliation import (
    AlwaysConfirm,
    BatchReconciler,
    MatchingEngine,
    PreconditionError,
    ReconciliationSession,
    check_preconditions,
    initialize_store,
)

if TYPE_CHECKING:
    from linkcurator.config.reconciliation import ReconciliationSettings
    from linkcurator.domain.ports import EntitySearch, PropertyMetadataLookup
    from linkcurator.domain.reconciliation import BatchReport, ConfirmationStrategy

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class MappingDocument:
    """Mapped keys, manual properties and transformation chains of one mapping."""

    descriptors: tuple[PropertyDescriptor, ...]
    manual_properties: tuple[ManualProperty, ...] = ()
    transformations: TransformationRegistry | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> MappingDocument:
        """Parse ``{"mappedKeys": [...], "manualProperties": [...], "transformations": {...}}``."""

        descriptors = tuple(
            PropertyDescriptor.from_mapping(entry) for entry in payload.get("mappedKeys", ())
        )
        manual = tuple(
            ManualProperty(
                descriptor=PropertyDescriptor.from_mapping(
                    {"key": entry["property"]["id"], "property": entry["property"]}
                ),
                default_value=entry.get("defaultValue"),
                is_required=bool(entry.get("isRequired", False)),
            )
            for entry in payload.get("manualProperties", ())
        )
        registry: TransformationRegistry | None = None
        chains = payload.get("transformations")
        if isinstance(chains, Mapping) and chains:
            registry = TransformationRegistry()
            for mapping_id, blocks in chains.items():
                registry.set_chain(
                    str(mapping_id), [TransformationBlock.from_mapping(block) for block in blocks]
                )
        return cls(descriptors=descriptors, manual_properties=manual, transformations=registry)


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationRun:
    session: ReconciliationSession
    report: BatchReport


async def enrich_descriptors(
    descriptors: Sequence[PropertyDescriptor],
    metadata: PropertyMetadataLookup,
) -> list[PropertyDescriptor]:
    """Attach datatype and constraints to every descriptor with a property id.

    Lookup failures are logged and leave the descriptor as it was.
    """

    enriched: list[PropertyDescriptor] = []
    for descriptor in descriptors:
        if descriptor.property_id is None:
            enriched.append(descriptor)
            continue
        try:
            fetched = await metadata.property_metadata(descriptor.property_id)
        except MetadataLookupFailure as exc:
            log.warning("Metadata lookup failed for %s: %s", descriptor.property_id, exc)
            enriched.append(descriptor)
            continue
        enriched.append(with_metadata(descriptor, fetched))
    return enriched


def build_session(
    records: Sequence[Mapping[str, Any]],
    mapping: MappingDocument,
    *,
    settings: ReconciliationSettings | None = None,
    confirmation: ConfirmationStrategy | None = None,
) -> ReconciliationSession | PreconditionError:
    """Initialise a fresh session for a newly loaded dataset."""

    result = initialize_store(
        records,
        mapping.descriptors,
        mapping.manual_properties,
        context=ExtractionContext(transformations=mapping.transformations),
    )
    if isinstance(result, PreconditionError):
        return result
    return ReconciliationSession(
        store=result.store,
        settings=settings or get_reconciliation_settings(),
        confirmation=confirmation or AlwaysConfirm(),
    )


async def reconcile_dataset(
    records: Sequence[Mapping[str, Any]],
    mapping: MappingDocument,
    *,
    search: EntitySearch | None = None,
    metadata: PropertyMetadataLookup | None = None,
    settings: ReconciliationSettings | None = None,
    confirmation: ConfirmationStrategy | None = None,
) -> ReconciliationRun | PreconditionError:
    """Initialise a session and batch-reconcile every pending cell.

    Without injected ``search``/``metadata`` the Wikidata adapters are built from
    the environment (``WIKIDATA_APP_NAME``, ``WIKIDATA_CONTACT``).
    Preconditions are checked before either is read.
    """

    checked = check_preconditions(records, mapping.descriptors)
    if isinstance(checked, PreconditionError):
        log.warning("Cannot start reconciliation: %s", checked.message)
        return checked

    async with AsyncExitStack() as stack:
        if search is None or metadata is None:
            load_environment()
            wikidata = await stack.enter_async_context(
                WikidataClient(config=get_wikidata_config())
            )
            if metadata is None:
                metadata = WikidataPropertyMetadata(wikidata, language=wikidata.language)
            if search is None:
                service = await stack.enter_async_context(
                    ReconciliationServiceClient(config=get_reconciliation_service_config())
                )
                search = ChainedEntitySearch(
                    ReconciliationServiceSearch(service), WikidataEntitySearch(wikidata)
                )

        descriptors = await enrich_descriptors(mapping.descriptors, metadata)
        manual_descriptors = await enrich_descriptors(
            [m.descriptor for m in mapping.manual_properties], metadata
        )
        manual = [
            replace(original, descriptor=descriptor)
            for original, descriptor in zip(
                mapping.manual_properties, manual_descriptors, strict=True
            )
        ]
        enriched = MappingDocument(
            descriptors=tuple(descriptors),
            manual_properties=tuple(manual),
            transformations=mapping.transformations,
        )

        session = build_session(records, enriched, settings=settings, confirmation=confirmation)
        if isinstance(session, PreconditionError):
            return session

        log.info("Starting reconciliation: %s", session.progress)
        report = await BatchReconciler(MatchingEngine(search)).run(session)
        log.info("Finished reconciliation: %s", session.progress)
        return ReconciliationRun(session=session, report=report)


def reconcile_dataset_sync(
    records: Sequence[Mapping[str, Any]],
    mapping: MappingDocument,
    *,
    log_level: int | None = logging.INFO,
    **kwargs: Any,
) -> ReconciliationRun | PreconditionError:
    """Blocking wrapper around ``reconcile_dataset`` for scripts."""

    if log_level is not None:
        configure_logging(level=log_level)
    return asyncio.run(reconcile_dataset(records, mapping, **kwargs))
