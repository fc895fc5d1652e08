"""
Core Infrastructure - Configuration, Logging, Request Metrics

Usage:
    from ghx.core import get_config, get_logger

    config = get_config()
    github_config = config.get_github_config()

    logger = get_logger(__name__)
"""

from ..secure_config import (
    ConfigurationError,
    GitHubConfig,
    LoggingSettings,
    SecureConfig,
    get_config,
    validate_config_on_startup,
)
from .logging_config import get_logger, log_with_context, setup_logging
from .request_metrics import RequestMetricsTracker, get_current_tracker, track_request_metrics

__all__ = [
    # Configuration
    "get_config",
    "validate_config_on_startup",
    "ConfigurationError",
    "SecureConfig",
    "GitHubConfig",
    "LoggingSettings",
    # Logging
    "get_logger",
    "setup_logging",
    "log_with_context",
    # Metrics
    "RequestMetricsTracker",
    "get_current_tracker",
    "track_request_metrics",
]
