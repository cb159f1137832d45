"""Value transformation chains configured during mapping.

A chain is an ordered list of blocks; each block rewrites the current value
and the chain reports every intermediate value. Callers that only need the
result take the last step.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


class TransformationError(ValueError):
    """Raised when a block cannot be applied to a value."""


class BlockType(StrEnum):
    PREFIX = "prefix"
    SUFFIX = "suffix"
    FIND_REPLACE = "findReplace"
    COMPOSE = "compose"
    REGEX = "regex"


@dataclass(frozen=True, slots=True, kw_only=True)
class TransformationBlock:
    type: str
    config: Mapping[str, Any] = field(default_factory=dict[str, Any])
    id: str | None = None
    order: int = 0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> TransformationBlock:
        config = payload.get("config")
        return cls(
            type=str(payload.get("type", "")),
            config=dict(config) if isinstance(config, Mapping) else {},
            id=payload.get("id"),
            order=int(payload.get("order") or 0),
        )


@dataclass(frozen=True, slots=True)
class TransformationStep:
    value: str
    block_id: str | None = None


class TransformationLookup(Protocol):
    """Resolve the chain configured for a mapping id (empty when none)."""

    def chain_for(self, mapping_id: str) -> Sequence[TransformationBlock]: ...


@dataclass(slots=True)
class TransformationRegistry:
    """In-memory chains keyed by mapping id."""

    _chains: dict[str, tuple[TransformationBlock, ...]] = field(
        default_factory=dict[str, tuple[TransformationBlock, ...]]
    )

    def set_chain(self, mapping_id: str, blocks: Sequence[TransformationBlock]) -> None:
        if blocks:
            self._chains[mapping_id] = tuple(blocks)
        else:
            self._chains.pop(mapping_id, None)

    def chain_for(self, mapping_id: str) -> tuple[TransformationBlock, ...]:
        return self._chains.get(mapping_id, ())


_SAFE_FLAGS: Final[frozenset[str]] = frozenset("gimsu")
_FLAG_BITS: Final[dict[str, re.RegexFlag]] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}
_SOURCE_VALUE_KEYS: Final[tuple[str, ...]] = (
    "@value",
    "o:label",
    "value",
    "name",
    "title",
    "label",
    "display_title",
)


def apply_transformation_chain(
    initial_value: str,
    blocks: Sequence[TransformationBlock],
    *,
    source_data: Mapping[str, Any] | None = None,
) -> list[TransformationStep]:
    """Apply ``blocks`` in ascending ``order`` and return every step.

    The first step is always the untouched input.
    """

    steps = [TransformationStep(initial_value)]
    current = initial_value
    for block in sorted(blocks, key=lambda b: b.order):
        current = apply_transformation(current, block, source_data=source_data)
        steps.append(TransformationStep(current, block.id))
    return steps


def apply_transformation(
    value: str,
    block: TransformationBlock,
    *,
    source_data: Mapping[str, Any] | None = None,
) -> str:
    if not value or not block.type or not block.config:
        return value
    handler = _HANDLERS.get(block.type)
    if handler is None:
        log.warning("Unknown transformation type: %s", block.type)
        return value
    return handler(value, block.config, source_data or {})


def final_value(steps: Sequence[TransformationStep], fallback: str) -> str:
    if not steps:
        return fallback
    return steps[-1].value or fallback


def validate_transformation_block(block: TransformationBlock | None) -> list[str]:
    """Return configuration errors for ``block`` (empty when valid)."""

    if block is None:
        return ["Block is required"]
    errors: list[str] = []
    if not block.type:
        errors.append("Block type is required")
    elif block.type not in set(BlockType):
        errors.append(f"Invalid block type: {block.type}")
    config = block.config
    if not config:
        errors.append("Block configuration is required")
        return errors

    match block.type:
        case BlockType.PREFIX | BlockType.SUFFIX:
            if not isinstance(config.get("text"), str):
                errors.append("Text must be a string")
        case BlockType.FIND_REPLACE:
            find = config.get("find")
            if not find:
                errors.append("Find text is required")
            if not isinstance(find, str):
                errors.append("Find text must be a string")
            if not isinstance(config.get("replace", ""), str):
                errors.append("Replace text must be a string")
        case BlockType.COMPOSE:
            if not isinstance(config.get("pattern"), str):
                errors.append("Pattern must be a string")
        case BlockType.REGEX:
            pattern = config.get("pattern")
            if not pattern:
                errors.append("Regex pattern is required")
            if not isinstance(pattern, str):
                errors.append("Regex pattern must be a string")
            else:
                try:
                    re.compile(pattern, _regex_flags(config.get("flags")))
                except re.error:
                    errors.append("Invalid regex pattern")
        case _:
            pass
    return errors


def value_by_path(data: Mapping[str, Any], path: str) -> str:
    """Resolve a dot path like ``dcterms:publisher.0.o:label`` to text."""

    if not path:
        return ""
    current: Any = data
    for key in path.split("."):
        if isinstance(current, Mapping) and current.get(key) is not None:
            current = current[key]
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return ""
    if isinstance(current, str):
        return current
    if isinstance(current, Mapping):
        for key in _SOURCE_VALUE_KEYS:
            if current.get(key):
                return str(current[key])
    return str(current) if current else ""


def _prefix(value: str, config: Mapping[str, Any], _source: Mapping[str, Any]) -> str:
    return str(config.get("text") or "") + value


def _suffix(value: str, config: Mapping[str, Any], _source: Mapping[str, Any]) -> str:
    return value + str(config.get("text") or "")


def _find_replace(value: str, config: Mapping[str, Any], _source: Mapping[str, Any]) -> str:
    find = config.get("find")
    if not find:
        return value
    replacement = str(config.get("replace") or "")
    pattern = re.escape(str(find))
    if config.get("useWholeWord"):
        pattern = rf"\b{pattern}\b"
    flags = 0 if config.get("caseSensitive") else re.IGNORECASE
    return re.sub(pattern, lambda _match: replacement, value, flags=flags)


def _compose(value: str, config: Mapping[str, Any], source: Mapping[str, Any]) -> str:
    pattern = config.get("pattern") or "{{value}}"
    result = str(pattern).replace("{{value}}", value or "")
    return re.sub(
        r"\{\{field:([^}]+)\}\}",
        lambda match: value_by_path(source, match.group(1)),
        result,
    )


def _regex(value: str, config: Mapping[str, Any], _source: Mapping[str, Any]) -> str:
    pattern = config.get("pattern")
    if not pattern:
        return value
    flags = _sanitize_flags(config.get("flags"))
    try:
        compiled = re.compile(str(pattern), _regex_flags(flags))
    except re.error as exc:
        raise TransformationError(f"Invalid regex pattern {pattern!r}: {exc}") from exc
    replacement = _python_replacement(str(config.get("replacement") or ""))
    count = 0 if "g" in flags else 1
    try:
        return compiled.sub(replacement, value, count=count)
    except (re.error, IndexError) as exc:
        raise TransformationError(f"Invalid regex replacement: {exc}") from exc


def _sanitize_flags(flags: object) -> str:
    if not isinstance(flags, str) or not flags:
        return "g"
    safe = "".join(flag for flag in flags.lower() if flag in _SAFE_FLAGS)
    return safe or "g"


def _regex_flags(flags: object) -> int:
    bits = 0
    for flag in _sanitize_flags(flags):
        bits |= _FLAG_BITS.get(flag, 0)
    return bits


def _python_replacement(replacement: str) -> str:
    """Translate ``$&``/``$1``/``$$`` replacement syntax to ``re.sub`` syntax."""

    escaped = replacement.replace("\\", "\\\\")
    escaped = escaped.replace("$$", "\x00")
    escaped = escaped.replace("$&", r"\g<0>")
    escaped = re.sub(r"\$(\d+)", r"\\g<\1>", escaped)
    return escaped.replace("\x00", "$")


_HANDLERS: Final[dict[str, Callable[[str, Mapping[str, Any], Mapping[str, Any]], str]]] = {
    BlockType.PREFIX: _prefix,
    BlockType.SUFFIX: _suffix,
    BlockType.FIND_REPLACE: _find_replace,
    BlockType.COMPOSE: _compose,
    BlockType.REGEX: _regex,
}
