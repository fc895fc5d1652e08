#!/usr/bin/env python3
"""
Application Constants

Centralized configuration constants for bulk operations, API calls, workflows
and analytics. Provides type-safe, immutable configuration values.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BulkOperationConfig:
    """
    Bulk operation execution constants.

    Attributes:
        MAX_WORKERS: Default number of concurrent item mutations
        ITEM_TIMEOUT_SECONDS: Default timeout for a single item mutation
        PROGRESS_LOG_STEPS: Progress is logged each time this fraction (1/N) of items completes

    Example:
        >>> bulk_operations.MAX_WORKERS
        8
    """

    MAX_WORKERS: int = 8
    """Default number of concurrent item mutations"""

    ITEM_TIMEOUT_SECONDS: float = 60.0
    """Default timeout for a single item mutation"""

    PROGRESS_LOG_STEPS: int = 10
    """Log progress every 10% of items"""


@dataclass(frozen=True)
class APIConfig:
    """
    GitHub GraphQL API configuration constants.

    Attributes:
        MAX_RETRIES: Attempts for read queries (transient errors only)
        MUTATION_MAX_RETRIES: Attempts for mutations (single attempt, never replayed)
        MAX_RETRY_AFTER_SECONDS: Upper bound on a rate-limit wait
        DEFAULT_RETRY_AFTER_SECONDS: Wait used when the server sends no Retry-After
        ITEMS_PAGE_SIZE: Items requested per page (GitHub maximum is 100)
        FIELDS_PAGE_SIZE: Project fields requested per query
        FIELD_VALUES_PAGE_SIZE: Field values requested per item
    """

    MAX_RETRIES: int = 3
    MUTATION_MAX_RETRIES: int = 1
    MAX_RETRY_AFTER_SECONDS: int = 60
    DEFAULT_RETRY_AFTER_SECONDS: int = 5
    ITEMS_PAGE_SIZE: int = 100
    FIELDS_PAGE_SIZE: int = 50
    FIELD_VALUES_PAGE_SIZE: int = 30


@dataclass(frozen=True)
class WorkflowConfig:
    """
    Workflow automation constants.

    Attributes:
        MAX_NAME_LENGTH: Longest accepted workflow name
        RECENT_EXECUTIONS_LIMIT: Executions included in a workflow status report
    """

    MAX_NAME_LENGTH: int = 100
    RECENT_EXECUTIONS_LIMIT: int = 10


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Analytics calculation constants.

    Attributes:
        WEEKLY_DAYS: Velocity window length for the weekly period
        MONTHLY_DAYS: Velocity window length for the monthly period
        QUARTERLY_DAYS: Velocity window length for the quarterly period
        NO_STATUS_LABEL: Bucket for items without a status value
        UNASSIGNED_LABEL: Bucket for items without an assignee
        NO_MILESTONE_LABEL: Bucket for items without a milestone
        STATUS_FIELD_NAME: Name of the project's built-in status field
        START_DATE_FIELD_NAMES: Date fields that mark when work started (cycle time)
    """

    WEEKLY_DAYS: int = 7
    MONTHLY_DAYS: int = 30
    QUARTERLY_DAYS: int = 90
    NO_STATUS_LABEL: str = "No Status"
    UNASSIGNED_LABEL: str = "Unassigned"
    NO_MILESTONE_LABEL: str = "No Milestone"
    STATUS_FIELD_NAME: str = "Status"
    START_DATE_FIELD_NAMES: tuple[str, ...] = ("start date", "start")


# Global instances for easy import
bulk_operations = BulkOperationConfig()
api_config = APIConfig()
workflow_config = WorkflowConfig()
analytics_config = AnalyticsConfig()
