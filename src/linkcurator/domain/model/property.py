"""Property descriptors: what a source key maps to and which constraints apply."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Final

from .enums import Datatype, ValueKind

_KIND_BY_DATATYPE: Final[dict[str, ValueKind]] = {
    Datatype.WIKIBASE_ITEM: ValueKind.ENTITY,
    Datatype.EXTERNAL_ID: ValueKind.EXTERNAL_ID,
    Datatype.STRING: ValueKind.STRING,
    Datatype.MONOLINGUAL_TEXT: ValueKind.STRING,
    Datatype.URL: ValueKind.URL,
    Datatype.TIME: ValueKind.TIME,
    Datatype.QUANTITY: ValueKind.QUANTITY,
}


def value_kind_for(datatype: str | None) -> ValueKind:
    """Map a datatype onto the reconciliation behaviour it needs.

    A missing datatype falls back to entity matching, the usual case for
    properties whose metadata has not been fetched yet.
    """

    if datatype is None:
        return ValueKind.ENTITY
    return _KIND_BY_DATATYPE.get(datatype, ValueKind.OTHER)


@dataclass(frozen=True, slots=True, kw_only=True)
class FormatConstraint:
    pattern: str
    description: str | None = None
    rank: str = "normal"

    @property
    def deprecated(self) -> bool:
        return self.rank == "deprecated"


@dataclass(frozen=True, slots=True, kw_only=True)
class ValueTypeConstraint:
    classes: tuple[str, ...]
    class_labels: Mapping[str, str] = field(default_factory=dict[str, str])
    rank: str = "normal"

    @property
    def deprecated(self) -> bool:
        return self.rank == "deprecated"


@dataclass(frozen=True, slots=True, kw_only=True)
class PropertyDescriptor:
    """One mapped source key and the knowledge-base property it targets."""

    key: str
    property_id: str | None = None
    label: str | None = None
    datatype: str | None = None
    selected_at_field: str | None = None
    format_constraints: tuple[FormatConstraint, ...] = ()
    value_type_constraints: tuple[ValueTypeConstraint, ...] = ()
    linked_data_uri: str | None = None
    not_in_current_dataset: bool = False
    required: bool | None = None

    @property
    def mapping_id(self) -> str:
        return mapping_id_for(self.key, self.property_id, self.selected_at_field)

    @property
    def value_kind(self) -> ValueKind:
        return value_kind_for(self.datatype)

    @property
    def active_format_constraints(self) -> tuple[FormatConstraint, ...]:
        return tuple(c for c in self.format_constraints if not c.deprecated)

    @property
    def active_value_type_constraints(self) -> tuple[ValueTypeConstraint, ...]:
        return tuple(c for c in self.value_type_constraints if not c.deprecated)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> PropertyDescriptor:
        """Build a descriptor from a mapping entry as saved by the mapping step.

        Accepts ``{"key", "selectedAtField", "notInCurrentDataset", "linkedDataUri",
        "property": {"id", "label", "datatype", "constraints"}}`` where
        ``constraints`` is either ``{"format": [...], "valueType": [...]}`` or a
        flat list of ``{"type": "format", "pattern" | "regex", "description"}``.
        """

        key = payload.get("key")
        if not isinstance(key, str) or not key:
            raise ValueError("Mapping entry needs a non-empty 'key'")
        prop = payload.get("property")
        prop_map: Mapping[str, object] = prop if isinstance(prop, Mapping) else {}
        formats, value_types = _parse_constraints(prop_map.get("constraints"))
        return cls(
            key=key,
            property_id=_optional_str(prop_map.get("id")),
            label=_optional_str(prop_map.get("label")),
            datatype=_optional_str(prop_map.get("datatype")),
            selected_at_field=_optional_str(payload.get("selectedAtField")),
            format_constraints=formats,
            value_type_constraints=value_types,
            linked_data_uri=_optional_str(payload.get("linkedDataUri")),
            not_in_current_dataset=bool(payload.get("notInCurrentDataset", False)),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ManualProperty:
    """Curator-added property: one value per item, optionally pre-filled."""

    descriptor: PropertyDescriptor
    default_value: str | None = None
    is_required: bool = False

    @property
    def property_id(self) -> str:
        return self.descriptor.property_id or self.descriptor.key


def mapping_id_for(key: str, property_id: str | None, selected_at_field: str | None) -> str:
    """Deterministic id linking a mapping to its transformation chain."""

    parts = [key, property_id or ""]
    if selected_at_field:
        parts.append(selected_at_field)
    return "::".join(parts)


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


def _parse_constraints(
    raw: object,
) -> tuple[tuple[FormatConstraint, ...], tuple[ValueTypeConstraint, ...]]:
    formats: list[FormatConstraint] = []
    value_types: list[ValueTypeConstraint] = []
    if isinstance(raw, Mapping):
        for entry in _mapping_entries(raw.get("format")):
            constraint = _format_constraint(entry)
            if constraint is not None:
                formats.append(constraint)
        for entry in _mapping_entries(raw.get("valueType")):
            classes = entry.get("classes")
            if isinstance(classes, list | tuple) and classes:
                labels = entry.get("classLabels")
                value_types.append(
                    ValueTypeConstraint(
                        classes=tuple(str(c) for c in classes),
                        class_labels=dict(labels) if isinstance(labels, Mapping) else {},
                        rank=str(entry.get("rank") or "normal"),
                    )
                )
    else:
        for entry in _mapping_entries(raw):
            if entry.get("type") == "format":
                constraint = _format_constraint(entry)
                if constraint is not None:
                    formats.append(constraint)
    return tuple(formats), tuple(value_types)


def _mapping_entries(raw: object) -> list[Mapping[str, object]]:
    if not isinstance(raw, list | tuple):
        return []
    return [entry for entry in raw if isinstance(entry, Mapping)]


def _format_constraint(entry: Mapping[str, object]) -> FormatConstraint | None:
    pattern = entry.get("pattern") or entry.get("regex")
    if not isinstance(pattern, str) or not pattern:
        return None
    return FormatConstraint(
        pattern=pattern,
        description=_optional_str(entry.get("description")),
        rank=str(entry.get("rank") or "normal"),
    )


@dataclass(frozen=True, slots=True, kw_only=True)
class PropertyMetadata:
    """Datatype and constraints of a knowledge-base property."""

    property_id: str
    datatype: str | None = None
    label: str | None = None
    description: str | None = None
    format_constraints: tuple[FormatConstraint, ...] = ()
    value_type_constraints: tuple[ValueTypeConstraint, ...] = ()


def with_metadata(descriptor: PropertyDescriptor, metadata: PropertyMetadata) -> PropertyDescriptor:
    """Return ``descriptor`` enriched with fetched metadata.

    Constraints already attached to the descriptor take precedence.
    """

    return replace(
        descriptor,
        datatype=descriptor.datatype or metadata.datatype,
        label=descriptor.label or metadata.label,
        format_constraints=descriptor.format_constraints or metadata.format_constraints,
        value_type_constraints=(
            descriptor.value_type_constraints or metadata.value_type_constraints
        ),
    )
