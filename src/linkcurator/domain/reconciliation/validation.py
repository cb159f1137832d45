"""Literal-value validation against format constraints.

Validation is advisory: results describe whether a value satisfies the
resolved constraint, and ``check_confirmation`` turns a result into a decision
under a per-value-kind ``ConfirmationPolicy``. Nothing here writes to the store.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from linkcurator.domain.model import ValidationLevel, ValueKind

from .constraints import ConstraintPatternError, compile_pattern

if TYPE_CHECKING:
    from .constraints import ResolvedConstraint

log = logging.getLogger(__name__)

MAX_HINT_EXAMPLES: Final[int] = 2


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationResult:
    is_valid: bool
    message: str
    level: ValidationLevel
    pattern: str | None = None
    description: str | None = None
    examples: tuple[str, ...] = ()
    show_hint: bool = False


@dataclass(frozen=True, slots=True)
class SuggestedFix:
    text: str
    description: str


def validate_value(value: str | None, constraint: ResolvedConstraint | None) -> ValidationResult:
    """Check one value; empty values are invalid even without a constraint."""

    text = (value or "").strip()
    if not text:
        return ValidationResult(
            is_valid=False,
            message="Value cannot be empty",
            level=ValidationLevel.ERROR,
        )
    if constraint is None:
        return ValidationResult(
            is_valid=True,
            message="No format constraints to validate",
            level=ValidationLevel.SUCCESS,
        )

    try:
        compiled = compile_pattern(constraint.pattern)
    except ConstraintPatternError as exc:
        log.warning("Skipping validation, %s", exc)
        return ValidationResult(
            is_valid=True,
            message="Could not validate format (invalid pattern)",
            level=ValidationLevel.WARNING,
            pattern=constraint.pattern,
            description=constraint.description,
        )

    if compiled.fullmatch(text) is not None:
        return ValidationResult(
            is_valid=True,
            message="Valid format",
            level=ValidationLevel.SUCCESS,
            pattern=constraint.pattern,
            description=constraint.description,
            examples=constraint.examples,
        )
    return ValidationResult(
        is_valid=False,
        message=constraint.error_message or f"Value must match: {constraint.description}",
        level=ValidationLevel.ERROR,
        pattern=constraint.pattern,
        description=constraint.description,
        examples=constraint.examples,
    )


def validate_realtime(
    value: str | None, constraint: ResolvedConstraint | None
) -> ValidationResult:
    """Validation variant for as-you-type feedback."""

    if not (value or "").strip():
        return ValidationResult(
            is_valid=True,
            message=(
                f"Expected format: {constraint.description}"
                if constraint is not None
                else "Enter a value"
            ),
            level=ValidationLevel.INFO,
            pattern=constraint.pattern if constraint is not None else None,
            description=constraint.description if constraint is not None else None,
            examples=constraint.examples if constraint is not None else (),
            show_hint=True,
        )

    result = validate_value(value, constraint)
    if result.is_valid or not result.examples:
        return result
    examples = ", ".join(result.examples[:MAX_HINT_EXAMPLES])
    return ValidationResult(
        is_valid=False,
        message=f"{result.message}. Examples: {examples}",
        level=result.level,
        pattern=result.pattern,
        description=result.description,
        examples=result.examples,
    )


def validate_batch(
    pairs: Iterable[tuple[str | None, ResolvedConstraint | None]],
) -> list[ValidationResult]:
    return [validate_value(value, constraint) for value, constraint in pairs]


def suggest_fixes(value: str, constraint: ResolvedConstraint | None) -> list[SuggestedFix]:
    """Advisory rewrites for a value that fails a built-in format."""

    if constraint is None or constraint.key is None:
        return []
    if validate_value(value, constraint).is_valid:
        return []
    suggester = _FIX_SUGGESTERS.get(constraint.key)
    if suggester is None:
        return []
    return [fix for fix in suggester(value) if fix.text != value]


def _isbn_fixes(value: str) -> list[SuggestedFix]:
    cleaned = re.sub(r"[-\s]", "", value)
    return [SuggestedFix(cleaned, "Remove hyphens and spaces")] if cleaned else []


def _issn_fixes(value: str) -> list[SuggestedFix]:
    digits = re.sub(r"[^\dXx]", "", value).upper()
    if len(digits) != 8:  # noqa: PLR2004
        return []
    return [SuggestedFix(f"{digits[:4]}-{digits[4:]}", "Add hyphen in correct position")]


def _url_fixes(value: str) -> list[SuggestedFix]:
    text = value.strip()
    if not text or text.startswith(("http://", "https://")):
        return []
    return [SuggestedFix(f"https://{text}", "Add https:// prefix")]


def _year_fixes(value: str) -> list[SuggestedFix]:
    match = re.search(r"(?:19|20)\d{2}", value)
    return [SuggestedFix(match.group(0), "Extract 4-digit year")] if match else []


_FIX_SUGGESTERS: Final[Mapping[str, Callable[[str], list[SuggestedFix]]]] = {
    "isbn": _isbn_fixes,
    "issn": _issn_fixes,
    "url": _url_fixes,
    "year": _year_fixes,
}


class ConfirmationMode(StrEnum):
    """What a caller does with a literal value that fails validation."""

    BLOCK = "block"
    OVERRIDE = "override"
    ALLOW = "allow"


def _default_modes() -> dict[ValueKind, ConfirmationMode]:
    return {
        ValueKind.EXTERNAL_ID: ConfirmationMode.OVERRIDE,
        ValueKind.STRING: ConfirmationMode.BLOCK,
    }


@dataclass(frozen=True, slots=True)
class ConfirmationPolicy:
    modes: Mapping[ValueKind, ConfirmationMode] = field(default_factory=_default_modes)
    default: ConfirmationMode = ConfirmationMode.ALLOW

    def mode_for(self, kind: ValueKind) -> ConfirmationMode:
        return self.modes.get(kind, self.default)


class ConfirmationVerdict(StrEnum):
    ALLOWED = "allowed"
    NEEDS_OVERRIDE = "needs-override"
    BLOCKED = "blocked"


@dataclass(frozen=True, slots=True, kw_only=True)
class ConfirmationDecision:
    verdict: ConfirmationVerdict
    validation: ValidationResult
    mode: ConfirmationMode

    @property
    def allowed(self) -> bool:
        return self.verdict is ConfirmationVerdict.ALLOWED


def check_confirmation(
    value: str | None,
    constraint: ResolvedConstraint | None,
    kind: ValueKind,
    *,
    policy: ConfirmationPolicy | None = None,
    override: bool = False,
) -> ConfirmationDecision:
    """Decide whether ``value`` may be confirmed for a cell of ``kind``.

    Valid values are always allowed. Invalid values follow the policy mode:
    ``ALLOW`` lets them through, ``OVERRIDE`` requires ``override=True`` and
    ``BLOCK`` rejects them outright. Empty values are never confirmable.
    """

    policy = policy or ConfirmationPolicy()
    mode = policy.mode_for(kind)
    validation = validate_value(value, constraint)

    if validation.is_valid:
        verdict = ConfirmationVerdict.ALLOWED
    elif not (value or "").strip():
        verdict = ConfirmationVerdict.BLOCKED
    else:
        match mode:
            case ConfirmationMode.ALLOW:
                verdict = ConfirmationVerdict.ALLOWED
            case ConfirmationMode.OVERRIDE:
                verdict = (
                    ConfirmationVerdict.ALLOWED if override else ConfirmationVerdict.NEEDS_OVERRIDE
                )
            case ConfirmationMode.BLOCK:
                verdict = ConfirmationVerdict.BLOCKED
    return ConfirmationDecision(verdict=verdict, validation=validation, mode=mode)
