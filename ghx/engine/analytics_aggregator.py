"""
Analytics Aggregator

Collects every item of a project through the provider's paginated iterator
and derives distributions, velocity and timeline in one pass over the
collected list. Analytics are all-or-nothing: a page that cannot be fetched
aborts the whole aggregation instead of producing a partial result.
"""

from collections.abc import Callable
from datetime import datetime

from ghx.core import get_logger, log_with_context
from ghx.domain.analytics import AnalyticsInfo, VelocityPeriod
from ghx.domain.project import Project, ProjectItem
from ghx.engine.analytics_calculations import (
    calculate_assignee_distribution,
    calculate_milestone_distribution,
    calculate_status_distribution,
    calculate_timeline,
    calculate_velocity,
)
from ghx.errors import RemoteUnavailableError
from ghx.provider.base import RemoteDataProvider
from ghx.utils.datetime_utils import utc_now
from ghx.utils.error_handling import log_and_raise

logger = get_logger(__name__)


class AnalyticsAggregator:
    """
    Builds AnalyticsInfo for a project.

    Args:
        provider: Source of projects and items
        clock: Returns the reference time for velocity windows
    """

    def __init__(self, provider: RemoteDataProvider, clock: Callable[[], datetime] = utc_now):
        self.provider = provider
        self._clock = clock

    async def aggregate_reference(
        self, owner: str, number: int, period: VelocityPeriod = VelocityPeriod.WEEKLY
    ) -> AnalyticsInfo:
        """Resolve ``owner/number`` and aggregate it."""
        project = await self.provider.fetch_project(owner, number)
        return await self.aggregate(project, period)

    async def aggregate(self, project: Project, period: VelocityPeriod = VelocityPeriod.WEEKLY) -> AnalyticsInfo:
        """
        Aggregate analytics over every item of the project.

        Raises:
            RemoteUnavailableError: If any page of items cannot be fetched
        """
        items = await self.collect_items(project.id)

        info = AnalyticsInfo(
            project_id=project.id,
            title=project.title,
            item_count=len(items),
            field_count=project.field_count,
            view_count=project.view_count,
            status_stats=calculate_status_distribution(items),
            assignee_stats=calculate_assignee_distribution(items),
            milestone_stats=calculate_milestone_distribution(items),
            velocity_data=calculate_velocity(items, period, reference_time=self._clock()),
            timeline_data=calculate_timeline(items),
        )

        log_with_context(
            logger,
            "info",
            "Analytics aggregated",
            project_id=project.id,
            item_count=info.item_count,
            completed_items=info.velocity_data.completed_items,
            period=period.value,
        )
        return info

    async def collect_items(self, project_id: str) -> list[ProjectItem]:
        """Drain the provider's item iterator; never returns a partial collection."""
        items: list[ProjectItem] = []
        try:
            async for item in self.provider.fetch_items(project_id):
                items.append(item)
        except RemoteUnavailableError as e:
            log_and_raise(
                logger,
                e,
                context={"project_id": project_id, "items_collected": len(items)},
                error_type="Item collection",
            )
        return items
