"""
Request Metrics Tracking Module

Tracks remote API usage for a single ghx invocation:
    - RequestMetricsTracker: Counts API calls, retries and rate-limit hits
    - track_request_metrics(): Context manager that installs a tracker
    - get_current_tracker(): Access the active tracker from the GraphQL client

Nothing is persisted; a summary is logged when the tracked block exits.
"""

import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from ghx.core.logging_config import get_logger

logger = get_logger(__name__)

RATE_LIMIT_WARNING_THRESHOLD = 3

# Global tracker instance for GraphQL client access
_current_tracker: "RequestMetricsTracker | None" = None


class RequestMetricsTracker:
    """
    Tracks API usage and outcome for one command invocation.

    Attributes:
        command_name: Name of the tracked command (e.g., "bulk update")
        start_time: Timestamp when tracker was started (None before start())
        execution_time_ms: Total execution time in milliseconds
        success: Whether the command completed without errors
        api_call_count: Number of GraphQL requests made
        rate_limit_hits: Number of rate-limited responses
        retry_count: Number of transient error retries
        error_message: Error text if failed (None if successful)
        error_type: Exception class name if failed (None if successful)

    Example:
        >>> tracker = RequestMetricsTracker("analytics overview")
        >>> tracker.start()
        >>> tracker.record_api_call()  # Called by the GraphQL client
        >>> tracker.end(success=True)
    """

    def __init__(self, command_name: str):
        self.command_name = command_name
        self.start_time: float | None = None
        self.execution_time_ms: float = 0
        self.success: bool = False
        self.api_call_count: int = 0
        self.rate_limit_hits: int = 0
        self.retry_count: int = 0
        self.error_message: str | None = None
        self.error_type: str | None = None

    def start(self) -> None:
        """Start tracking execution time."""
        self.start_time = time.perf_counter()
        logger.debug(f"Started tracking: {self.command_name}")

    def end(self, success: bool, error: Exception | None = None) -> None:
        """
        End tracking and calculate execution time.

        Args:
            success: Whether the command completed successfully
            error: Exception if failed (None if successful)
        """
        if self.start_time is not None:
            self.execution_time_ms = (time.perf_counter() - self.start_time) * 1000

        self.success = success

        if error:
            self.error_message = str(error)
            self.error_type = type(error).__name__

    def record_api_call(self) -> None:
        """Record an API call."""
        self.api_call_count += 1

    def record_rate_limit_hit(self) -> None:
        """
        Record a rate-limited response.

        Logs a warning, escalating once the hit count passes the threshold.
        """
        self.rate_limit_hits += 1
        level = "error" if self.rate_limit_hits > RATE_LIMIT_WARNING_THRESHOLD else "warning"
        getattr(logger, level)(
            f"Rate limit hit during {self.command_name}",
            extra={"command": self.command_name, "total_rate_limit_hits": self.rate_limit_hits},
        )

    def record_retry(self) -> None:
        """Record a transient error retry."""
        self.retry_count += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to a dictionary for structured logging."""
        return {
            "command": self.command_name,
            "execution_time_ms": round(self.execution_time_ms, 2),
            "success": self.success,
            "api_call_count": self.api_call_count,
            "rate_limit_hits": self.rate_limit_hits,
            "retry_count": self.retry_count,
            "error_message": self.error_message,
            "error_type": self.error_type,
        }


def get_current_tracker() -> "RequestMetricsTracker | None":
    """
    Get the currently active tracker (for GraphQL client use).

    Returns:
        Active tracker or None if no command is being tracked
    """
    return _current_tracker


@contextmanager
def track_request_metrics(command_name: str) -> Generator["RequestMetricsTracker", None, None]:
    """
    Context manager for automatic API usage tracking.

    Args:
        command_name: Name of the command being tracked

    Yields:
        RequestMetricsTracker instance

    Example:
        >>> with track_request_metrics("bulk update") as tracker:
        ...     operation = await coordinator.submit(...)
        >>> # Summary logged on exit
    """
    global _current_tracker

    tracker = RequestMetricsTracker(command_name)
    previous = _current_tracker
    _current_tracker = tracker
    tracker.start()

    try:
        yield tracker
        tracker.end(success=True)
        logger.info("Command completed", extra=tracker.to_dict())

    except Exception as e:
        tracker.end(success=False, error=e)
        logger.error("Command failed", extra=tracker.to_dict())
        raise

    finally:
        _current_tracker = previous
