"""Tunable thresholds for the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env, optional_int_env
from .errors import ConfigurationError

MAX_SEARCH_LIMIT = 15


@dataclass(frozen=True, slots=True)
class ReconciliationSettings:
    auto_accept_threshold: float = 90.0
    visible_matches: int = 3
    search_limit: int = MAX_SEARCH_LIMIT
    batch_concurrency: int = 5
    language: str = "en"

    def __post_init__(self) -> None:
        if not 0 < self.auto_accept_threshold <= 100:  # noqa: PLR2004
            raise ConfigurationError("auto_accept_threshold must be within (0, 100]")
        if self.visible_matches < 1:
            raise ConfigurationError("visible_matches must be positive")
        if not 1 <= self.search_limit <= MAX_SEARCH_LIMIT:
            raise ConfigurationError(f"search_limit must be within 1..{MAX_SEARCH_LIMIT}")
        if self.batch_concurrency < 1:
            raise ConfigurationError("batch_concurrency must be positive")


def get_reconciliation_settings() -> ReconciliationSettings:
    """Build settings from optional ``LINKCURATOR_*`` overrides."""

    defaults = ReconciliationSettings()
    return ReconciliationSettings(
        auto_accept_threshold=optional_float_env(
            "LINKCURATOR_AUTO_ACCEPT_THRESHOLD", defaults.auto_accept_threshold
        ),
        visible_matches=optional_int_env("LINKCURATOR_VISIBLE_MATCHES", defaults.visible_matches),
        search_limit=optional_int_env("LINKCURATOR_SEARCH_LIMIT", defaults.search_limit),
        batch_concurrency=optional_int_env(
            "LINKCURATOR_BATCH_CONCURRENCY", defaults.batch_concurrency
        ),
        language=defaults.language,
    )
