"""Application configuration helpers."""

from __future__ import annotations

from linkcurator.common.logging import configure_logging

from .env import load_environment, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .reconciliation import ReconciliationSettings, get_reconciliation_settings
from .wikidata import (
    ReconciliationServiceConfig,
    WikidataConfig,
    get_reconciliation_service_config,
    get_wikidata_config,
)

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ReconciliationServiceConfig",
    "ReconciliationSettings",
    "ResilienceConfig",
    "RetryPolicy",
    "WikidataConfig",
    "configure_logging",
    "get_reconciliation_service_config",
    "get_reconciliation_settings",
    "get_wikidata_config",
    "load_environment",
    "require_env_vars",
]
