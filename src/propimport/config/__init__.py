"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .extraction import ExtractionServiceConfig, get_extraction_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .importing import ImportConfig, LookupFailurePolicy, get_import_config
from .providers import ProviderPreferences, ProviderSelection, get_provider_preferences
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "ExtractionServiceConfig",
    "ImportConfig",
    "InvalidConfigurationError",
    "LookupFailurePolicy",
    "MissingConfigurationError",
    "ProviderPreferences",
    "ProviderSelection",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "get_database_config",
    "get_extraction_config",
    "get_import_config",
    "get_provider_preferences",
    "get_storage_config",
    "require_env_vars",
]
