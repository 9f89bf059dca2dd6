"""Configuration management module."""

from .settings import (
    Settings,
    AppConfig,
    ProviderConfig,
    ProvidersConfig,
    TransportConfig,
    CacheConfig,
    LoggingConfig,
    BACKEND_NAMES,
    default_config_dir,
    default_state_dir,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "AppConfig",
    "ProviderConfig",
    "ProvidersConfig",
    "TransportConfig",
    "CacheConfig",
    "LoggingConfig",
    "BACKEND_NAMES",
    "default_config_dir",
    "default_state_dir",
    "get_settings",
    "reload_settings",
]
