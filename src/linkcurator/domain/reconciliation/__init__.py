"""Reconciliation engine: initialise, match, validate and decide cells."""

from __future__ import annotations

from .batch import BatchReconciler, BatchReport, next_pending_cell, pending_cells
from .constraints import (
    BUILTIN_FORMATS,
    ConstraintPatternError,
    ResolvedConstraint,
    builtin_constraint,
    compile_pattern,
    resolve_constraint,
)
from .dates import DatePrecision, StandardizedDate, is_date_value, standardize_date
from .initialize import (
    PreconditionError,
    PreconditionFailure,
    StoreInitialization,
    StoreReady,
    check_preconditions,
    count_reconcilable_cells,
    initialize_store,
    order_properties,
)
from .matching import MatchingEngine, MatchOutcome, MatchOutcomeKind
from .progress import Progress, ProgressTracker, scan
from .recency import RecencyCache
from .schema_suggestions import SchemaSeedResult, SchemaSuggestions, apply_schema_suggestions
from .scoring import best_auto_accept, fallback_score, parse_score, score_candidates
from .session import (
    AlwaysConfirm,
    ConfirmationRequest,
    ConfirmationStrategy,
    LiteralConfirmation,
    PolicyConfirmation,
    ReconciliationSession,
)
from .transitions import (
    AcceptMatch,
    Command,
    MarkError,
    MarkNoItem,
    Skip,
    TransitionResult,
    UseCustom,
    UseString,
    apply_command,
    record_matches,
)
from .validation import (
    ConfirmationDecision,
    ConfirmationMode,
    ConfirmationPolicy,
    ConfirmationVerdict,
    SuggestedFix,
    ValidationResult,
    check_confirmation,
    suggest_fixes,
    validate_batch,
    validate_realtime,
    validate_value,
)

__all__ = [
    "BUILTIN_FORMATS",
    "AcceptMatch",
    "AlwaysConfirm",
    "BatchReconciler",
    "BatchReport",
    "Command",
    "ConfirmationDecision",
    "ConfirmationMode",
    "ConfirmationPolicy",
    "ConfirmationRequest",
    "ConfirmationStrategy",
    "ConfirmationVerdict",
    "ConstraintPatternError",
    "DatePrecision",
    "LiteralConfirmation",
    "MarkError",
    "MarkNoItem",
    "MatchOutcome",
    "MatchOutcomeKind",
    "MatchingEngine",
    "PolicyConfirmation",
    "PreconditionError",
    "PreconditionFailure",
    "Progress",
    "ProgressTracker",
    "RecencyCache",
    "ReconciliationSession",
    "ResolvedConstraint",
    "SchemaSeedResult",
    "SchemaSuggestions",
    "Skip",
    "StandardizedDate",
    "StoreInitialization",
    "StoreReady",
    "SuggestedFix",
    "TransitionResult",
    "UseCustom",
    "UseString",
    "ValidationResult",
    "apply_command",
    "apply_schema_suggestions",
    "best_auto_accept",
    "builtin_constraint",
    "check_confirmation",
    "check_preconditions",
    "compile_pattern",
    "count_reconcilable_cells",
    "fallback_score",
    "initialize_store",
    "is_date_value",
    "next_pending_cell",
    "order_properties",
    "parse_score",
    "pending_cells",
    "record_matches",
    "resolve_constraint",
    "scan",
    "score_candidates",
    "standardize_date",
    "suggest_fixes",
    "validate_batch",
    "validate_realtime",
    "validate_value",
]
