"""
Tests for output formatters

JSON dictionaries use stable camelCase keys; tables are plain text.
"""

from datetime import UTC, date, datetime

import pytest

from ghx.domain.analytics import AnalyticsInfo, DistributionStat, TimelineInfo, VelocityInfo, VelocityPeriod
from ghx.domain.bulk import BulkOperation, BulkOperationType
from ghx.domain.workflow import (
    ExecutionStatus,
    TriggerType,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowStatus,
    parse_action,
    parse_condition,
)
from ghx.presentation.formatters import (
    analytics_to_dict,
    distribution_to_list,
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
)

CREATED = datetime(2026, 3, 1, 9, 0, 0, tzinfo=UTC)


@pytest.fixture
def partial_operation():
    operation = BulkOperation(id="bulk_abc", type=BulkOperationType.UPDATE, total_items=3, created_at=CREATED)
    operation.start()
    operation.record_item_result("PVTI_1")
    operation.record_item_result("PVTI_2", error="field is read-only")
    operation.record_item_result("PVTI_3")
    operation.complete(completed_at=datetime(2026, 3, 1, 9, 0, 5, tzinfo=UTC))
    return operation


@pytest.fixture
def velocity():
    return VelocityInfo(
        period=VelocityPeriod.WEEKLY,
        window_start=datetime(2026, 3, 8, 12, tzinfo=UTC),
        window_end=datetime(2026, 3, 15, 12, tzinfo=UTC),
        completed_items=1,
        added_items=3,
        closure_rate=0.25,
        lead_time_days=10.0,
        cycle_time_days=None,
        lead_time_p50=9.0,
        lead_time_p85=14.5,
    )


@pytest.fixture
def analytics(velocity):
    return AnalyticsInfo(
        project_id="PVT_1",
        title="Roadmap",
        item_count=4,
        field_count=6,
        view_count=2,
        velocity_data=velocity,
        timeline_data=TimelineInfo(
            start_date=date(2026, 3, 1),
            end_date=date(2026, 3, 31),
            duration_days=31,
            milestone_count=2,
            activity_count=6,
        ),
        status_stats=[DistributionStat("Done", 2), DistributionStat("In Progress", 1), DistributionStat("No Status", 1)],
        assignee_stats=[DistributionStat("alice", 3), DistributionStat("Unassigned", 1)],
        milestone_stats=[DistributionStat("v1", 4)],
    )


@pytest.fixture
def workflow():
    return WorkflowDefinition(
        id="wf_1",
        project_id="PVT_1",
        name="Escalate critical",
        trigger=TriggerType.ISSUE_OPENED,
        action=parse_action("set_field:Priority=High"),
        condition=parse_condition("label=critical"),
        created_at=CREATED,
    )


@pytest.fixture
def executions():
    return [
        WorkflowExecution(
            workflow_id="wf_1",
            workflow_name="Escalate critical",
            project_id="PVT_1",
            trigger=TriggerType.ISSUE_OPENED,
            status=ExecutionStatus.FAILURE,
            duration=0.42,
            executed_at=datetime(2026, 3, 2, 10, 0, tzinfo=UTC),
            error_message="field not found",
        ),
        WorkflowExecution(
            workflow_id="wf_1",
            workflow_name="Escalate critical",
            project_id="PVT_1",
            trigger=TriggerType.ISSUE_OPENED,
            status=ExecutionStatus.SUCCESS,
            duration=0.1,
            executed_at=datetime(2026, 3, 2, 9, 0, tzinfo=UTC),
        ),
    ]


class TestOperationFormatting:
    """Tests for bulk operation output"""

    def test_operation_to_dict(self, partial_operation):
        data = operation_to_dict(partial_operation)

        assert data["operationId"] == "bulk_abc"
        assert data["type"] == "UPDATE"
        assert data["status"] == "PARTIALLY_FAILED"
        assert data["progress"] == 1.0
        assert data["processedItems"] == 3
        assert data["failedItems"] == 1
        assert data["createdAt"] == "2026-03-01T09:00:00Z"
        assert data["completedAt"] == "2026-03-01T09:00:05Z"
        assert data["itemErrors"] == {"PVTI_2": "field is read-only"}

    def test_render_operation(self, partial_operation):
        output = render_operation(partial_operation)

        assert "Bulk Operation bulk_abc" in output
        assert "PARTIALLY_FAILED" in output
        assert "100.0% (3/3, 1 failed)" in output
        assert "2026-03-01 09:00:00" in output
        assert "PVTI_2" in output and "field is read-only" in output

    def test_pending_operation_has_no_completion(self):
        operation = BulkOperation(id="bulk_new", type=BulkOperationType.DELETE, total_items=2, created_at=CREATED)

        data = operation_to_dict(operation)

        assert data["completedAt"] is None
        assert data["progress"] == 0.0
        assert "Completed:" not in render_operation(operation)


class TestDistributionFormatting:
    def test_percentages_two_decimals(self):
        stats = [DistributionStat("a", 1), DistributionStat("b", 1), DistributionStat("c", 1)]

        entries = distribution_to_list(stats, 3, "status")

        assert entries[0] == {"status": "a", "count": 1, "percentage": 33.33}
        assert sum(entry["percentage"] for entry in entries) == pytest.approx(100, abs=0.1)

    def test_percentage_omitted_without_items(self):
        entries = distribution_to_list([DistributionStat("No Status", 0)], 0, "status")

        assert entries == [{"status": "No Status", "count": 0}]

    def test_render_distribution(self):
        output = render_distribution([DistributionStat("Done", 3), DistributionStat("Todo", 1)], 4, "Status")

        assert "75.0%" in output
        assert "25.0%" in output

    def test_render_empty_distribution(self):
        assert "(no items)" in render_distribution([], 0, "Status")


class TestVelocityAndTimeline:
    def test_velocity_to_dict(self, velocity):
        data = velocity_to_dict(velocity)

        assert data["period"] == "weekly (2026-03-08 to 2026-03-15)"
        assert data["completedItems"] == 1
        assert data["addedItems"] == 3
        assert data["closureRate"] == 0.25
        assert data["leadTime"] == "10.0 days"
        assert data["cycleTime"] is None
        assert data["leadTimeP50"] == "9.0 days"
        assert data["leadTimeP85"] == "14.5 days"
        assert data["cycleTimeP50"] is None
        assert data["cycleTimeP85"] is None

    def test_render_velocity(self, velocity):
        output = render_velocity(velocity)

        assert "25.0%" in output
        assert "10.0 days" in output
        assert "n/a" in output

    def test_render_velocity_percentiles(self, velocity):
        """Test the p50 / p85 rows under lead and cycle time"""
        lines = render_velocity(velocity).splitlines()

        assert lines[-3].split() == ["p50", "/", "p85:", "9.0", "/", "14.5", "days"]
        assert lines[-1].split() == ["p50", "/", "p85:", "n/a"]

    def test_timeline_to_dict(self):
        timeline = TimelineInfo(date(2026, 3, 1), date(2026, 3, 1), 1, 1, 2)

        assert timeline_to_dict(timeline) == {
            "milestoneCount": 1,
            "activityCount": 2,
            "startDate": "2026-03-01",
            "endDate": "2026-03-01",
            "duration": "1 days",
        }

    def test_timeline_without_dates(self):
        data = timeline_to_dict(TimelineInfo(activity_count=3))

        assert data == {"milestoneCount": 0, "activityCount": 3}
        duration_line = [line for line in render_timeline(TimelineInfo()).splitlines() if line.startswith("Duration:")]
        assert duration_line[0].split() == ["Duration:", "n/a"]


class TestAnalyticsFormatting:
    """Tests for the analytics overview"""

    def test_analytics_to_dict(self, analytics):
        data = analytics_to_dict(analytics)

        assert data["projectId"] == "PVT_1"
        assert data["itemCount"] == 4
        assert data["fieldCount"] == 6
        assert data["viewCount"] == 2
        assert data["statusDistribution"][0] == {"status": "Done", "count": 2, "percentage": 50.0}
        assert data["assigneeDistribution"][0]["assignee"] == "alice"
        assert data["milestoneDistribution"] == [{"milestone": "v1", "count": 4, "percentage": 100.0}]
        assert data["timeline"]["duration"] == "31 days"

    def test_distribution_counts_sum_to_item_count(self, analytics):
        data = analytics_to_dict(analytics)

        for key in ("statusDistribution", "assigneeDistribution", "milestoneDistribution"):
            assert sum(entry["count"] for entry in data[key]) == data["itemCount"]

    def test_render_analytics(self, analytics):
        output = render_analytics(analytics)

        assert "Project Analytics: Roadmap" in output
        assert "Status Distribution" in output
        assert "Velocity" in output
        assert "31 days" in output


class TestWorkflowFormatting:
    def test_render_workflow(self, workflow):
        output = render_workflow(workflow)

        assert "Workflow wf_1" in output
        assert "issue_opened" in output
        assert "label=critical" in output
        assert "set_field:Priority=High" in output

    def test_render_workflows_empty(self):
        assert render_workflows([]) == "No workflows found"

    def test_render_workflows(self, workflow):
        output = render_workflows([workflow])

        assert "wf_1" in output
        assert "enabled" in output

    def test_render_executions(self, executions):
        output = render_executions(executions)

        assert "failed" in output
        assert "field not found" in output
        assert "0.4s" in output

    def test_render_executions_empty(self):
        assert render_executions([]) == "No executions recorded"

    def test_workflow_status(self, executions):
        status = WorkflowStatus(
            project_id="PVT_1",
            total_workflows=2,
            active_workflows=1,
            total_executions=3,
            success_rate=2 / 3,
            recent_executions=executions,
        )

        data = workflow_status_to_dict(status)

        assert data["successRate"] == 66.7
        assert data["recentExecutions"][0]["status"] == "failed"
        assert data["recentExecutions"][0]["duration"] == "0.4s"
        assert "66.7%" in render_workflow_status(status)
        assert "2 (1 active)" in render_workflow_status(status)
