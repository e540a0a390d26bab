"""Application configuration helpers."""

from __future__ import annotations

from .classifier import ClassifierConfig, get_classifier_config
from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .ingest import (
    CLAIMS_LOCK_NAME,
    UPDATES_LOCK_NAME,
    PipelineConfig,
    get_claims_pipeline_config,
    get_updates_pipeline_config,
)
from .logging import configure_logging
from .sources import (
    ChangelogSourceConfig,
    DashboardSourceConfig,
    FeedSearchSourceConfig,
    SourcesConfig,
    get_sources_config,
    load_sources_config,
)
from .storage import StorageConfig, get_database_uri, get_http_cache_path, get_storage_config
from .trigger import TriggerConfig, get_trigger_config

__all__ = [
    "CLAIMS_LOCK_NAME",
    "UPDATES_LOCK_NAME",
    "CacheConfig",
    "ChangelogSourceConfig",
    "ClassifierConfig",
    "ConfigurationError",
    "DashboardSourceConfig",
    "FeedSearchSourceConfig",
    "MissingConfigurationError",
    "PipelineConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SourcesConfig",
    "StorageConfig",
    "TriggerConfig",
    "configure_logging",
    "get_claims_pipeline_config",
    "get_classifier_config",
    "get_database_uri",
    "get_http_cache_path",
    "get_sources_config",
    "get_storage_config",
    "get_trigger_config",
    "get_updates_pipeline_config",
    "load_sources_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
