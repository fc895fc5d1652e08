"""
Output formatters

Two renderings of every core record:
    - *_to_dict(): JSON-ready dictionaries with stable camelCase keys
    - render_*(): Plain-text tables for terminals

Timestamps use ``%Y-%m-%dT%H:%M:%SZ`` in JSON and ``%Y-%m-%d %H:%M:%S`` in
tables. Distribution percentages are computed here from the counts and are
omitted when a project has no items.
"""

from collections.abc import Sequence
from typing import Any

from ghx.domain.analytics import AnalyticsInfo, DistributionStat, TimelineInfo, VelocityInfo
from ghx.domain.bulk import BulkOperation
from ghx.domain.workflow import WorkflowDefinition, WorkflowExecution, WorkflowStatus
from ghx.utils.datetime_utils import format_utc

TABLE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
RULE_WIDTH = 60


def _days(value: float | None) -> str | None:
    return f"{value:.1f} days" if value is not None else None


def _percentiles(p50: float | None, p85: float | None) -> str:
    if p50 is None or p85 is None:
        return "n/a"
    return f"{p50:.1f} / {p85:.1f} days"


def _date(value) -> str | None:
    return value.isoformat() if value is not None else None


# ============================================================
# JSON dictionaries
# ============================================================


def operation_to_dict(operation: BulkOperation) -> dict[str, Any]:
    return {
        "operationId": operation.id,
        "type": operation.type.value,
        "status": operation.status.value,
        "progress": round(operation.progress, 3),
        "totalItems": operation.total_items,
        "processedItems": operation.processed_items,
        "failedItems": operation.failed_items,
        "createdAt": format_utc(operation.created_at),
        "completedAt": format_utc(operation.completed_at),
        "errorMessage": operation.error_message,
        "itemErrors": dict(operation.item_errors),
    }


def distribution_to_list(stats: Sequence[DistributionStat], total: int, label: str) -> list[dict[str, Any]]:
    """
    Distribution entries keyed by ``label`` ("status", "assignee", "milestone").

    ``percentage`` is present only when ``total`` is positive.
    """
    entries = []
    for stat in stats:
        entry: dict[str, Any] = {label: stat.category, "count": stat.count}
        percentage = stat.percentage(total)
        if percentage is not None:
            entry["percentage"] = round(percentage, 2)
        entries.append(entry)
    return entries


def velocity_to_dict(velocity: VelocityInfo) -> dict[str, Any]:
    return {
        "period": velocity.period_label,
        "completedItems": velocity.completed_items,
        "addedItems": velocity.added_items,
        "closureRate": round(velocity.closure_rate, 3),
        "leadTime": _days(velocity.lead_time_days),
        "cycleTime": _days(velocity.cycle_time_days),
        "leadTimeP50": _days(velocity.lead_time_p50),
        "leadTimeP85": _days(velocity.lead_time_p85),
        "cycleTimeP50": _days(velocity.cycle_time_p50),
        "cycleTimeP85": _days(velocity.cycle_time_p85),
    }


def timeline_to_dict(timeline: TimelineInfo) -> dict[str, Any]:
    result: dict[str, Any] = {
        "milestoneCount": timeline.milestone_count,
        "activityCount": timeline.activity_count,
    }
    if timeline.start_date is not None:
        result["startDate"] = _date(timeline.start_date)
        result["endDate"] = _date(timeline.end_date)
        result["duration"] = f"{timeline.duration_days} days"
    return result


def analytics_to_dict(info: AnalyticsInfo) -> dict[str, Any]:
    return {
        "projectId": info.project_id,
        "title": info.title,
        "itemCount": info.item_count,
        "fieldCount": info.field_count,
        "viewCount": info.view_count,
        "statusDistribution": distribution_to_list(info.status_stats, info.item_count, "status"),
        "assigneeDistribution": distribution_to_list(info.assignee_stats, info.item_count, "assignee"),
        "milestoneDistribution": distribution_to_list(info.milestone_stats, info.item_count, "milestone"),
        "velocity": velocity_to_dict(info.velocity_data),
        "timeline": timeline_to_dict(info.timeline_data),
    }


def workflow_to_dict(definition: WorkflowDefinition) -> dict[str, Any]:
    return definition.to_dict()


def execution_to_dict(execution: WorkflowExecution) -> dict[str, Any]:
    return execution.to_dict()


def workflow_status_to_dict(status: WorkflowStatus) -> dict[str, Any]:
    """Workflow status with ``successRate`` as a percentage (one decimal)."""
    return {
        "projectId": status.project_id,
        "totalWorkflows": status.total_workflows,
        "activeWorkflows": status.active_workflows,
        "totalExecutions": status.total_executions,
        "successRate": round(status.success_rate_percent, 1),
        "recentExecutions": [execution_to_dict(execution) for execution in status.recent_executions],
    }


# ============================================================
# Tables
# ============================================================


def _title(text: str) -> list[str]:
    return [text, "=" * RULE_WIDTH]


def render_operation(operation: BulkOperation) -> str:
    lines = _title(f"Bulk Operation {operation.id}")
    lines += [
        f"{'Type:':<12} {operation.type.value}",
        f"{'Status:':<12} {operation.status.value}",
        f"{'Progress:':<12} {operation.progress * 100:.1f}% "
        f"({operation.processed_items}/{operation.total_items}, {operation.failed_items} failed)",
        f"{'Created:':<12} {format_utc(operation.created_at, TABLE_TIME_FORMAT)}",
    ]
    if operation.completed_at:
        lines.append(f"{'Completed:':<12} {format_utc(operation.completed_at, TABLE_TIME_FORMAT)}")
    if operation.error_message:
        lines.append(f"{'Error:':<12} {operation.error_message}")

    if operation.item_errors:
        lines += ["", f"{'Item':<30} Error", "-" * RULE_WIDTH]
        lines += [f"{item_id:<30} {error}" for item_id, error in operation.item_errors.items()]
    return "\n".join(lines)


def render_distribution(stats: Sequence[DistributionStat], total: int, label: str) -> str:
    lines = [f"{label:<30} {'Count':>8} {'Percent':>9}", "-" * 49]
    for stat in stats:
        percentage = stat.percentage(total)
        shown = f"{percentage:.1f}%" if percentage is not None else "-"
        lines.append(f"{stat.category:<30} {stat.count:>8} {shown:>9}")
    if not stats:
        lines.append("(no items)")
    return "\n".join(lines)


def render_velocity(velocity: VelocityInfo) -> str:
    return "\n".join(
        [
            f"{'Period:':<16} {velocity.period_label}",
            f"{'Completed:':<16} {velocity.completed_items}",
            f"{'Added:':<16} {velocity.added_items}",
            f"{'Closure rate:':<16} {velocity.closure_rate * 100:.1f}%",
            f"{'Lead time:':<16} {_days(velocity.lead_time_days) or 'n/a'}",
            f"{'  p50 / p85:':<16} {_percentiles(velocity.lead_time_p50, velocity.lead_time_p85)}",
            f"{'Cycle time:':<16} {_days(velocity.cycle_time_days) or 'n/a'}",
            f"{'  p50 / p85:':<16} {_percentiles(velocity.cycle_time_p50, velocity.cycle_time_p85)}",
        ]
    )


def render_timeline(timeline: TimelineInfo) -> str:
    lines = [
        f"{'Start date:':<16} {_date(timeline.start_date) or 'n/a'}",
        f"{'End date:':<16} {_date(timeline.end_date) or 'n/a'}",
        f"{'Duration:':<16} {timeline.duration_days} days" if timeline.start_date else f"{'Duration:':<16} n/a",
        f"{'Milestones:':<16} {timeline.milestone_count}",
        f"{'Activity:':<16} {timeline.activity_count}",
    ]
    return "\n".join(lines)


def render_analytics(info: AnalyticsInfo) -> str:
    lines = _title(f"Project Analytics: {info.title}")
    lines += [
        f"{'Items:':<16} {info.item_count}",
        f"{'Fields:':<16} {info.field_count}",
        f"{'Views:':<16} {info.view_count}",
        "",
        "Status Distribution",
        render_distribution(info.status_stats, info.item_count, "Status"),
        "",
        "Assignee Distribution",
        render_distribution(info.assignee_stats, info.item_count, "Assignee"),
        "",
        "Milestone Distribution",
        render_distribution(info.milestone_stats, info.item_count, "Milestone"),
        "",
        "Velocity",
        render_velocity(info.velocity_data),
        "",
        "Timeline",
        render_timeline(info.timeline_data),
    ]
    return "\n".join(lines)


def render_workflow(definition: WorkflowDefinition) -> str:
    lines = _title(f"Workflow {definition.id}")
    lines += [
        f"{'Name:':<12} {definition.name}",
        f"{'Project:':<12} {definition.project_id}",
        f"{'Trigger:':<12} {definition.trigger.value}",
        f"{'Condition:':<12} {definition.condition.describe() if definition.condition else '(always)'}",
        f"{'Action:':<12} {definition.action.describe()}",
        f"{'State:':<12} {definition.state.value}",
        f"{'Created:':<12} {format_utc(definition.created_at, TABLE_TIME_FORMAT)}",
    ]
    return "\n".join(lines)


def render_workflows(definitions: Sequence[WorkflowDefinition]) -> str:
    if not definitions:
        return "No workflows found"
    lines = [f"{'ID':<16} {'Name':<30} {'Trigger':<18} {'State':<9} Action", "-" * 96]
    for definition in definitions:
        lines.append(
            f"{definition.id:<16} {definition.name[:30]:<30} {definition.trigger.value:<18} "
            f"{definition.state.value:<9} {definition.action.describe()}"
        )
    return "\n".join(lines)


def render_executions(executions: Sequence[WorkflowExecution]) -> str:
    if not executions:
        return "No executions recorded"
    lines = [f"{'Executed':<20} {'Workflow':<30} {'Status':<8} {'Duration':>9}  Error", "-" * 90]
    for execution in executions:
        lines.append(
            f"{format_utc(execution.executed_at, TABLE_TIME_FORMAT):<20} {execution.workflow_name[:30]:<30} "
            f"{execution.status.value:<8} {execution.duration:>8.1f}s  {execution.error_message or ''}"
        )
    return "\n".join(lines)


def render_workflow_status(status: WorkflowStatus) -> str:
    lines = _title(f"Workflow Status: {status.project_id}")
    lines += [
        f"{'Workflows:':<16} {status.total_workflows} ({status.active_workflows} active)",
        f"{'Executions:':<16} {status.total_executions}",
        f"{'Success rate:':<16} {status.success_rate_percent:.1f}%",
        "",
        "Recent Executions",
        render_executions(status.recent_executions),
    ]
    return "\n".join(lines)
