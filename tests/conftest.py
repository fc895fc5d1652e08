"""
Pytest configuration and shared fixtures

Provides an in-memory RemoteDataProvider double with call counting and a
small set of project items for engine and formatter tests.
"""

import asyncio
from datetime import UTC, date, datetime

import pytest

from ghx.domain.bulk import BulkOperationType, FieldUpdates
from ghx.domain.project import (
    ContentType,
    FieldOption,
    ItemRef,
    Milestone,
    MutationResult,
    Project,
    ProjectField,
    ProjectItem,
)
from ghx.domain.workflow import ActionType, WorkflowAction
from ghx.errors import RemoteUnavailableError
from ghx.provider.base import RemoteDataProvider

REFERENCE_TIME = datetime(2026, 3, 15, 12, 0, 0, tzinfo=UTC)


class FakeProvider(RemoteDataProvider):
    """
    In-memory provider.

    Args:
        project: Project returned by fetch_project()
        items: Items yielded by fetch_items(), ``page_size`` per page
        failures: item id -> error message (returned as a failed MutationResult)
            or exception instance (raised)
        fail_on_page: 1-based page number whose fetch raises RemoteUnavailableError
        delay: Seconds each mutation takes
        hang_items: Item ids whose mutation never finishes
    """

    def __init__(
        self,
        project: Project | None = None,
        items=(),
        failures=None,
        page_size: int = 2,
        fail_on_page: int | None = None,
        delay: float = 0.0,
        hang_items=(),
    ):
        self.project = project or make_project()
        self.items = list(items)
        self.failures = dict(failures or {})
        self.page_size = page_size
        self.fail_on_page = fail_on_page
        self.delay = delay
        self.hang_items = set(hang_items)

        self.fetch_project_error: Exception | None = None
        self.action_results: dict[ActionType, MutationResult | Exception] = {}

        self.fetch_project_calls = 0
        self.fetch_items_calls = 0
        self.pages_fetched = 0
        self.mutate_calls: list[tuple[str, str, BulkOperationType, FieldUpdates | None]] = []
        self.action_calls: list[tuple[str, WorkflowAction, ItemRef]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def call_count(self) -> int:
        return self.fetch_project_calls + self.fetch_items_calls + len(self.mutate_calls) + len(self.action_calls)

    async def fetch_project(self, owner: str, number: int) -> Project:
        self.fetch_project_calls += 1
        if self.fetch_project_error:
            raise self.fetch_project_error
        return self.project

    async def fetch_items(self, project_id: str):
        self.fetch_items_calls += 1
        for page_number, start in enumerate(range(0, len(self.items), self.page_size), start=1):
            if self.fail_on_page == page_number:
                raise RemoteUnavailableError(f"page {page_number} unavailable")
            self.pages_fetched += 1
            for item in self.items[start : start + self.page_size]:
                yield item

    async def mutate_item(
        self,
        project_id: str,
        item_id: str,
        op_type: BulkOperationType,
        updates: FieldUpdates | None = None,
    ) -> MutationResult:
        self.mutate_calls.append((project_id, item_id, op_type, updates))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if item_id in self.hang_items:
                await asyncio.Event().wait()
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        failure = self.failures.get(item_id)
        if isinstance(failure, BaseException):
            raise failure
        if failure:
            return MutationResult.failed(failure)
        return MutationResult.ok()

    async def invoke_action(self, project_id: str, action: WorkflowAction, item: ItemRef) -> MutationResult:
        self.action_calls.append((project_id, action, item))
        result = self.action_results.get(action.type, MutationResult.ok())
        if isinstance(result, BaseException):
            raise result
        return result


def make_project(project_id: str = "PVT_1", title: str = "Roadmap") -> Project:
    return Project(
        id=project_id,
        title=title,
        number=5,
        owner="octo-org",
        view_count=2,
        fields=[
            ProjectField(
                id="PVTSSF_status",
                name="Status",
                data_type="SINGLE_SELECT",
                options=[
                    FieldOption(id="opt_todo", name="Todo"),
                    FieldOption(id="opt_progress", name="In Progress"),
                    FieldOption(id="opt_done", name="Done"),
                ],
            ),
            ProjectField(
                id="PVTSSF_priority",
                name="Priority",
                data_type="SINGLE_SELECT",
                options=[FieldOption(id="opt_high", name="High"), FieldOption(id="opt_low", name="Low")],
            ),
            ProjectField(id="PVTF_estimate", name="Estimate", data_type="NUMBER"),
            ProjectField(id="PVTF_due", name="Due", data_type="DATE"),
            ProjectField(id="PVTF_notes", name="Notes", data_type="TEXT"),
            ProjectField(id="PVTF_title", name="Title", data_type="TITLE"),
        ],
    )


def make_item(item_id: str, **overrides) -> ProjectItem:
    values = {"id": item_id, "content_type": ContentType.ISSUE, "title": f"Item {item_id}"}
    values.update(overrides)
    return ProjectItem(**values)


@pytest.fixture
def reference_time():
    """Fixed 'now' for velocity windows"""
    return REFERENCE_TIME


@pytest.fixture
def project():
    return make_project()


@pytest.fixture
def sample_items():
    """
    Four items:
        PVTI_1  Done, alice, milestone v1 (due 2026-03-31), closed 2 days before REFERENCE_TIME
        PVTI_2  In Progress, bob + alice, milestone v1, Due field 2026-03-01
        PVTI_3  Done, unassigned, no milestone, closed 40 days before REFERENCE_TIME
        PVTI_4  no status, alice, milestone v2 (no due date), added 1 day before REFERENCE_TIME
    """
    v1 = Milestone(title="v1", due_on=date(2026, 3, 31))
    return [
        make_item(
            "PVTI_1",
            content_id="I_1",
            status="Done",
            assignees=["alice"],
            milestone=v1,
            created_at=datetime(2026, 3, 3, 12, 0, tzinfo=UTC),
            added_at=datetime(2026, 3, 4, 12, 0, tzinfo=UTC),
            started_at=datetime(2026, 3, 10, 12, 0, tzinfo=UTC),
            closed_at=datetime(2026, 3, 13, 12, 0, tzinfo=UTC),
        ),
        make_item(
            "PVTI_2",
            content_id="I_2",
            status="In Progress",
            assignees=["bob", "alice"],
            milestone=v1,
            field_values={"Status": "In Progress", "Due": date(2026, 3, 1)},
            created_at=datetime(2026, 3, 10, 12, 0, tzinfo=UTC),
            added_at=datetime(2026, 3, 10, 12, 0, tzinfo=UTC),
        ),
        make_item(
            "PVTI_3",
            content_id="I_3",
            status="Done",
            created_at=datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
            added_at=datetime(2026, 1, 2, 12, 0, tzinfo=UTC),
            closed_at=datetime(2026, 2, 3, 12, 0, tzinfo=UTC),
        ),
        make_item(
            "PVTI_4",
            content_type=ContentType.DRAFT_ISSUE,
            assignees=["alice"],
            milestone=Milestone(title="v2"),
            created_at=datetime(2026, 3, 14, 12, 0, tzinfo=UTC),
            added_at=datetime(2026, 3, 14, 12, 0, tzinfo=UTC),
        ),
    ]


@pytest.fixture
def fake_provider(project, sample_items):
    return FakeProvider(project=project, items=sample_items)


@pytest.fixture
def provider_factory(project):
    """Build a FakeProvider with custom items / failures"""

    def _factory(**kwargs) -> FakeProvider:
        kwargs.setdefault("project", project)
        return FakeProvider(**kwargs)

    return _factory


@pytest.fixture
def item_factory():
    """Build a ProjectItem with sensible defaults"""
    return make_item
