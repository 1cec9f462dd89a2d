"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, env_json, optional_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .providers import (
    FleetYardsConfig,
    RsiConfig,
    ScUnpackedConfig,
    WikiConfig,
    get_fleetyards_config,
    get_rsi_config,
    get_scunpacked_config,
    get_wiki_config,
)
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_storage_config,
)
from .sync import (
    CacheSettings,
    LockConfig,
    PrecedenceConfig,
    RetentionConfig,
    RumorConfig,
    SyncConfig,
    get_sync_config,
)

__all__ = [
    "CacheConfig",
    "CacheSettings",
    "ConfigurationError",
    "DatabaseConfig",
    "FleetYardsConfig",
    "LockConfig",
    "MissingConfigurationError",
    "PrecedenceConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetentionConfig",
    "RetryPolicy",
    "RsiConfig",
    "RumorConfig",
    "ScUnpackedConfig",
    "StorageConfig",
    "SyncConfig",
    "WikiConfig",
    "configure_logging",
    "env_float",
    "env_json",
    "get_database_config",
    "get_fleetyards_config",
    "get_rsi_config",
    "get_scunpacked_config",
    "get_storage_config",
    "get_sync_config",
    "get_wiki_config",
    "optional_env",
    "require_env_vars",
]
