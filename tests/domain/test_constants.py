#!/usr/bin/env python3
"""
Tests for Application Constants Module

Verifies immutability and the documented default values.
"""

from dataclasses import FrozenInstanceError

import pytest

from ghx.domain.constants import (
    AnalyticsConfig,
    APIConfig,
    BulkOperationConfig,
    WorkflowConfig,
    analytics_config,
    api_config,
    bulk_operations,
    workflow_config,
)


class TestBulkOperationConfig:
    """Test BulkOperationConfig constants"""

    def test_defaults(self):
        assert BulkOperationConfig.MAX_WORKERS == 8
        assert BulkOperationConfig.ITEM_TIMEOUT_SECONDS == 60.0
        assert bulk_operations.PROGRESS_LOG_STEPS == 10

    def test_immutability(self):
        """Test that constants cannot be modified"""
        with pytest.raises(FrozenInstanceError):
            bulk_operations.MAX_WORKERS = 99  # type: ignore[misc]


class TestAPIConfig:
    """Test APIConfig constants"""

    def test_retries(self):
        """Test that reads retry and mutations are attempted once"""
        assert APIConfig.MAX_RETRIES == 3
        assert api_config.MUTATION_MAX_RETRIES == 1

    def test_retry_after_bounds(self):
        assert api_config.DEFAULT_RETRY_AFTER_SECONDS <= api_config.MAX_RETRY_AFTER_SECONDS

    def test_page_size(self):
        assert api_config.ITEMS_PAGE_SIZE == 100


class TestWorkflowAndAnalyticsConfig:
    """Test WorkflowConfig and AnalyticsConfig constants"""

    def test_workflow_limits(self):
        assert WorkflowConfig.MAX_NAME_LENGTH == 100
        assert workflow_config.RECENT_EXECUTIONS_LIMIT == 10

    def test_velocity_windows(self):
        assert (AnalyticsConfig.WEEKLY_DAYS, AnalyticsConfig.MONTHLY_DAYS, AnalyticsConfig.QUARTERLY_DAYS) == (7, 30, 90)

    def test_bucket_labels(self):
        assert analytics_config.NO_STATUS_LABEL == "No Status"
        assert analytics_config.UNASSIGNED_LABEL == "Unassigned"

    def test_immutability(self):
        with pytest.raises(FrozenInstanceError):
            analytics_config.WEEKLY_DAYS = 1  # type: ignore[misc]
