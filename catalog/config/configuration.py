"""Configuration module for the product catalog service.

Loads settings from environment-specific config files:
- APP_ENV=dev  → config_dev.yaml (local MongoDB, verbose logging)
- APP_ENV=test → config_test.yaml (throwaway database for integration tests)
- Default      → config.yaml

Secrets (MONGODB_URI, JWT_SECRET) are loaded from the environment or .env.
Fails fast with clear error messages if required configuration is missing.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

MIN_BCRYPT_ROUNDS = 12


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_project_root() -> Path:
    """Get the project root directory (where config.yaml lives)."""
    # Navigate from catalog/config/ up to project root
    return Path(__file__).parent.parent.parent


def _get_config_filename() -> str:
    """Get config filename based on APP_ENV environment variable."""
    app_env = os.environ.get("APP_ENV", "").lower()

    if app_env == "dev":
        return "config_dev.yaml"
    elif app_env == "test":
        return "config_test.yaml"
    else:
        return "config.yaml"


def _load_yaml_config() -> dict:
    """Load configuration from environment-specific config file."""
    config_filename = _get_config_filename()
    config_path = _get_project_root() / config_filename

    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}. "
            f"Set APP_ENV to 'dev' or 'test', or create {config_filename}."
        )

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def _get_required_env(key: str) -> str:
    """Get required environment variable or raise ConfigurationError."""
    value = os.environ.get(key)
    if not value:
        raise ConfigurationError(
            f"Required environment variable '{key}' is not set. "
            f"Please add it to your .env file."
        )
    return value


@dataclass(frozen=True)
class MongoDBConfig:
    """MongoDB connection configuration."""
    uri: str
    database_name: str
    server_selection_timeout_ms: int


@dataclass(frozen=True)
class AuthConfig:
    """Token and credential configuration."""
    jwt_secret: str
    algorithm: str
    token_ttl_minutes: int
    bcrypt_rounds: int
    cookie_name: str
    cookie_secure: bool


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration container."""
    mongodb: MongoDBConfig
    auth: AuthConfig
    logging: LoggingConfig


def load_config() -> AppConfig:
    """
    Load and validate all application configuration.

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    # Load environment variables from .env file
    load_dotenv()

    yaml_config = _load_yaml_config()

    mongodb_section = yaml_config.get("mongodb", {})

    mongodb_config = MongoDBConfig(
        uri=_get_required_env("MONGODB_URI"),
        database_name=mongodb_section.get("database_name", "product_management"),
        server_selection_timeout_ms=int(mongodb_section.get("server_selection_timeout_ms", 5000)),
    )

    auth_section = yaml_config.get("auth", {})
    bcrypt_rounds = int(auth_section.get("bcrypt_rounds", MIN_BCRYPT_ROUNDS))
    if bcrypt_rounds < MIN_BCRYPT_ROUNDS:
        raise ConfigurationError(
            f"auth.bcrypt_rounds must be at least {MIN_BCRYPT_ROUNDS}, got {bcrypt_rounds}"
        )

    auth_config = AuthConfig(
        jwt_secret=_get_required_env("JWT_SECRET"),
        algorithm=auth_section.get("algorithm", "HS256"),
        token_ttl_minutes=int(auth_section.get("token_ttl_minutes", 24 * 60)),
        bcrypt_rounds=bcrypt_rounds,
        cookie_name=auth_section.get("cookie_name", "token"),
        cookie_secure=bool(auth_section.get("cookie_secure", True)),
    )

    logging_section = yaml_config.get("logging", {})

    logging_config = LoggingConfig(
        level=logging_section.get("level", "INFO"),
    )

    return AppConfig(
        mongodb=mongodb_config,
        auth=auth_config,
        logging=logging_config,
    )


# Module-level singleton for convenience
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the application configuration singleton.

    Lazy-loads configuration on first access.
    Config file is selected based on APP_ENV environment variable.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_environment() -> str:
    """Get current environment name: 'dev', 'test' or 'default'."""
    app_env = os.environ.get("APP_ENV", "").lower()
    return app_env if app_env in ("dev", "test") else "default"


def reset_config() -> None:
    """Reset the config singleton. Useful for testing."""
    global _config
    _config = None
