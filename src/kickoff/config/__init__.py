"""Application configuration helpers."""

from __future__ import annotations

from kickoff.common.logging import configure_logging

from .airtable import AirtableConfig, get_airtable_config
from .asana import AsanaConfig, get_asana_config
from .duplicates import DuplicatesConfig, get_duplicates_config
from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, InvalidSettingError, MissingConfigurationError
from .google import GoogleConfig, PlaceholderTokens, get_google_config
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .integrations import IntegrationSettings, load_integration_settings
from .oauth_relay import OAuthRelayConfig, get_oauth_relay_config
from .storage import StorageConfig, get_storage_config

__all__ = [
    "AirtableConfig",
    "AsanaConfig",
    "CacheConfig",
    "ConfigurationError",
    "DuplicatesConfig",
    "GoogleConfig",
    "IntegrationSettings",
    "InvalidSettingError",
    "MissingConfigurationError",
    "OAuthRelayConfig",
    "PlaceholderTokens",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_airtable_config",
    "get_asana_config",
    "get_duplicates_config",
    "get_google_config",
    "get_oauth_relay_config",
    "get_storage_config",
    "load_integration_settings",
    "optional_env_var",
    "require_env_vars",
]
