"""Output rendering: JSON-ready dictionaries and plain-text tables."""

from .formatters import (
    analytics_to_dict,
    distribution_to_list,
    execution_to_dict,
    operation_to_dict,
    render_analytics,
    render_distribution,
    render_executions,
    render_operation,
    render_timeline,
    render_velocity,
    render_workflow,
    render_workflow_status,
    render_workflows,
    timeline_to_dict,
    velocity_to_dict,
    workflow_status_to_dict,
    workflow_to_dict,
)

__all__ = [
    "analytics_to_dict",
    "distribution_to_list",
    "execution_to_dict",
    "operation_to_dict",
    "render_analytics",
    "render_distribution",
    "render_executions",
    "render_operation",
    "render_timeline",
    "render_velocity",
    "render_workflow",
    "render_workflow_status",
    "render_workflows",
    "timeline_to_dict",
    "velocity_to_dict",
    "workflow_status_to_dict",
    "workflow_to_dict",
]
