"""
Secure Configuration Management

Provides centralized, validated configuration for ghx.
Replaces weak os.getenv() calls with strict validation and fail-fast behavior.

Usage:
    from ghx.secure_config import get_config

    config = get_config()
    github_config = config.get_github_config()
    print(github_config.api_url)

Environment variables:
    GITHUB_TOKEN / GH_TOKEN   Personal access token (required for remote commands)
    GHX_API_URL               GraphQL endpoint (default: https://api.github.com/graphql)
    GHX_MAX_WORKERS           Concurrent mutations per bulk operation (default: 8)
    GHX_REQUEST_TIMEOUT       Per-request timeout in seconds (default: 30)
    GHX_ITEM_TIMEOUT          Per-item mutation timeout in seconds (default: 60)
    GHX_LOG_LEVEL             Log level (default: INFO)
    GHX_LOG_JSON              "true" for JSON log output

Security Features:
    - Fail-fast on missing/invalid configuration
    - Placeholder detection (e.g., "your_token_here")
    - HTTPS enforcement for the API endpoint
    - Length validation for credentials

Raises:
    ConfigurationError: If configuration is missing or invalid
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_API_URL = "https://api.github.com/graphql"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class GitHubConfig:
    """
    Validated GitHub API configuration.
    """

    token: str
    api_url: str = DEFAULT_API_URL
    max_workers: int = 8
    request_timeout: float = 30.0
    item_timeout: float = 60.0

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate GitHub configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.token:
            raise ConfigurationError("GITHUB_TOKEN is required")

        if len(self.token) < 20:
            raise ConfigurationError(f"GITHUB_TOKEN appears invalid (too short: {len(self.token)} chars, expected >=20)")

        placeholders = ["your_token", "your_pat", "example", "placeholder", "xxx", "replace_me"]
        if any(placeholder in self.token.lower() for placeholder in placeholders):
            raise ConfigurationError("GITHUB_TOKEN contains a placeholder value - please set a real Personal Access Token")

        if not self.api_url.startswith("https://"):
            raise ConfigurationError(f"GHX_API_URL must use HTTPS: {self.api_url}")

        if not 1 <= self.max_workers <= 64:
            raise ConfigurationError(f"GHX_MAX_WORKERS must be between 1 and 64, got {self.max_workers}")

        if self.request_timeout <= 0 or self.item_timeout <= 0:
            raise ConfigurationError("GHX_REQUEST_TIMEOUT and GHX_ITEM_TIMEOUT must be positive")


@dataclass
class LoggingSettings:
    """
    Validated logging configuration.
    """

    level: str = "INFO"
    json_output: bool = False

    def __post_init__(self):
        self.level = self.level.upper()
        if self.level not in VALID_LOG_LEVELS:
            raise ConfigurationError(f"GHX_LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}: {self.level}")


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer: {raw}") from e


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number: {raw}") from e


class SecureConfig:
    """
    Centralized secure configuration manager.

    Loads and validates all application configuration from environment variables.
    Provides fail-fast behavior to catch configuration issues early.
    """

    def __init__(self):
        """Initialize configuration (loads .env file)."""
        load_dotenv()

    def get_github_config(self) -> GitHubConfig:
        """
        Get validated GitHub configuration.

        Returns:
            GitHubConfig: Validated configuration

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        token = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")

        return GitHubConfig(
            token=token or "",
            api_url=os.getenv("GHX_API_URL", DEFAULT_API_URL),
            max_workers=_read_int("GHX_MAX_WORKERS", 8),
            request_timeout=_read_float("GHX_REQUEST_TIMEOUT", 30.0),
            item_timeout=_read_float("GHX_ITEM_TIMEOUT", 60.0),
        )

    def get_logging_settings(self) -> LoggingSettings:
        """
        Get validated logging configuration.

        Returns:
            LoggingSettings: Validated configuration
        """
        json_flag = os.getenv("GHX_LOG_JSON", "false").strip().lower()
        return LoggingSettings(
            level=os.getenv("GHX_LOG_LEVEL", "INFO"),
            json_output=json_flag in ("1", "true", "yes"),
        )


# Convenience function for getting configuration
_config_instance = None


def get_config() -> SecureConfig:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        SecureConfig: The configuration manager
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = SecureConfig()
    return _config_instance


def validate_config_on_startup(required_services: list[str]) -> None:
    """
    Validate required configuration at application startup.

    Args:
        required_services: List of services to validate (e.g., ['github', 'logging'])

    Raises:
        ConfigurationError: If any required configuration is missing or invalid

    Example:
        validate_config_on_startup(["github"])
    """
    config = get_config()

    for service in required_services:
        if service == "github":
            config.get_github_config()  # Raises if invalid
        elif service == "logging":
            config.get_logging_settings()  # Raises if invalid
        else:
            raise ValueError(f"Unknown service: {service}")
