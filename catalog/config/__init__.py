"""Configuration module."""

from catalog.config.configuration import (
    AppConfig,
    AuthConfig,
    ConfigurationError,
    LoggingConfig,
    MongoDBConfig,
    get_config,
    get_environment,
    load_config,
    reset_config,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "ConfigurationError",
    "LoggingConfig",
    "MongoDBConfig",
    "get_config",
    "get_environment",
    "load_config",
    "reset_config",
]
