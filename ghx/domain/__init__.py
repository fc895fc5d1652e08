"""
Domain Models - Type-safe data structures for projects, bulk operations,
workflows and analytics

This package contains dataclasses representing domain concepts:
    - project: Project, ProjectItem, ProjectRef, MutationResult
    - bulk: BulkOperation, BulkOperationType, BulkOperationStatus
    - workflow: WorkflowDefinition, Condition, WorkflowAction, WorkflowExecution
    - analytics: AnalyticsInfo, DistributionStat, VelocityInfo, TimelineInfo

Usage:
    from ghx.domain import BulkOperation, BulkOperationType

    operation = BulkOperation.new(BulkOperationType.UPDATE, total_items=3)
"""

from .analytics import AnalyticsInfo, DistributionStat, TimelineInfo, VelocityInfo, VelocityPeriod
from .bulk import BulkOperation, BulkOperationStatus, BulkOperationType, FieldUpdates
from .project import ContentType, ItemRef, Milestone, MutationResult, Project, ProjectField, ProjectItem, ProjectRef
from .workflow import (
    ActionType,
    Condition,
    EqualsCondition,
    ExecutionStatus,
    MembershipCondition,
    TriggerType,
    WorkflowAction,
    WorkflowDefinition,
    WorkflowEvent,
    WorkflowExecution,
    WorkflowState,
    WorkflowStatus,
    WorkflowUpdate,
)

__all__ = [
    # Project
    "ContentType",
    "ItemRef",
    "Milestone",
    "MutationResult",
    "Project",
    "ProjectField",
    "ProjectItem",
    "ProjectRef",
    # Bulk operations
    "BulkOperation",
    "BulkOperationStatus",
    "BulkOperationType",
    "FieldUpdates",
    # Workflows
    "ActionType",
    "Condition",
    "EqualsCondition",
    "ExecutionStatus",
    "MembershipCondition",
    "TriggerType",
    "WorkflowAction",
    "WorkflowDefinition",
    "WorkflowEvent",
    "WorkflowExecution",
    "WorkflowState",
    "WorkflowStatus",
    "WorkflowUpdate",
    # Analytics
    "AnalyticsInfo",
    "DistributionStat",
    "TimelineInfo",
    "VelocityInfo",
    "VelocityPeriod",
]
