"""Value extraction and transformation for mapped source properties."""

from __future__ import annotations

from .extract import ExtractionContext, ExtractionWarning, extract_property_values
from .transform import (
    BlockType,
    TransformationBlock,
    TransformationError,
    TransformationLookup,
    TransformationRegistry,
    TransformationStep,
    apply_transformation,
    apply_transformation_chain,
    validate_transformation_block,
)

__all__ = [
    "BlockType",
    "ExtractionContext",
    "ExtractionWarning",
    "TransformationBlock",
    "TransformationError",
    "TransformationLookup",
    "TransformationRegistry",
    "TransformationStep",
    "apply_transformation",
    "apply_transformation_chain",
    "extract_property_values",
    "validate_transformation_block",
]
