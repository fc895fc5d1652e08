"""
Engine components

    - bulk_coordinator: BulkOperationCoordinator (tracked bulk mutations)
    - workflow_engine: WorkflowStore, WorkflowEngine (automation rules)
    - analytics_aggregator: AnalyticsAggregator (project analytics)
    - analytics_calculations: Pure distribution / velocity / timeline functions
"""

from .analytics_aggregator import AnalyticsAggregator
from .bulk_coordinator import BulkOperationCoordinator, BulkOperationHandle, validate_bulk_request
from .workflow_engine import WorkflowEngine, WorkflowStore

__all__ = [
    "AnalyticsAggregator",
    "BulkOperationCoordinator",
    "BulkOperationHandle",
    "WorkflowEngine",
    "WorkflowStore",
    "validate_bulk_request",
]
