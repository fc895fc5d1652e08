"""
Analytics Calculations

Pure functions over a fully collected list of project items. No I/O, so they
can be tested without a provider.

    - calculate_distribution(): Bucket counts for a single-valued item attribute
    - calculate_status_distribution() / calculate_assignee_distribution() / calculate_milestone_distribution()
    - calculate_velocity(): Completed vs. added items and lead/cycle times in a window
    - calculate_timeline(): Date range covered by milestones and date fields
"""

from collections import Counter
from collections.abc import Callable, Sequence
from datetime import date, datetime, timedelta

from ghx.domain.analytics import DistributionStat, TimelineInfo, VelocityInfo, VelocityPeriod
from ghx.domain.constants import analytics_config
from ghx.domain.project import ProjectItem
from ghx.utils.datetime_utils import calculate_elapsed_days, inclusive_day_span, utc_now
from ghx.utils.statistics import calculate_summary_stats


def calculate_distribution(
    items: Sequence[ProjectItem],
    key: Callable[[ProjectItem], str | None],
    none_label: str,
) -> list[DistributionStat]:
    """
    Count items per category in a single pass.

    Every item lands in exactly one bucket; missing or blank values go to
    ``none_label``. Buckets are ordered by count (descending), then name.

    Args:
        items: Project items
        key: Extracts the category of an item
        none_label: Bucket name for items without a category

    Returns:
        Distribution whose counts sum to len(items)

    Example:
        >>> stats = calculate_distribution(items, lambda item: item.status, "No Status")
        >>> [(s.category, s.count) for s in stats]
        [('Done', 3), ('In Progress', 1)]
    """
    counts: Counter[str] = Counter()
    for item in items:
        value = key(item)
        category = value.strip() if isinstance(value, str) and value.strip() else none_label
        counts[category] += 1

    return [
        DistributionStat(category=category, count=count)
        for category, count in sorted(counts.items(), key=lambda entry: (-entry[1], entry[0]))
    ]


def calculate_status_distribution(items: Sequence[ProjectItem]) -> list[DistributionStat]:
    return calculate_distribution(items, lambda item: item.status, analytics_config.NO_STATUS_LABEL)


def calculate_assignee_distribution(items: Sequence[ProjectItem]) -> list[DistributionStat]:
    """Items bucketed by their first listed assignee so the counts sum to the item count."""
    return calculate_distribution(items, lambda item: item.primary_assignee, analytics_config.UNASSIGNED_LABEL)


def calculate_milestone_distribution(items: Sequence[ProjectItem]) -> list[DistributionStat]:
    return calculate_distribution(
        items,
        lambda item: item.milestone.title if item.milestone else None,
        analytics_config.NO_MILESTONE_LABEL,
    )


def _within(value: datetime | None, start: datetime, end: datetime) -> bool:
    return value is not None and start <= value <= end


def _duration_stats(values: list[float]) -> tuple[float | None, float | None, float | None]:
    """(mean, p50, p85) of a duration sample, all None when it is empty."""
    if not values:
        return None, None, None
    stats = calculate_summary_stats(values)
    return stats["mean"], stats["p50"], stats["p85"]


def calculate_velocity(
    items: Sequence[ProjectItem],
    period: VelocityPeriod = VelocityPeriod.WEEKLY,
    reference_time: datetime | None = None,
) -> VelocityInfo:
    """
    Throughput over the window ending at ``reference_time``.

    Args:
        items: Project items
        period: Window length (weekly = 7 days, monthly = 30, quarterly = 90)
        reference_time: End of the window (default: now, UTC)

    Returns:
        VelocityInfo where
            completed_items = items with closed_at inside the window
            added_items = items with added_at inside the window
            closure_rate = completed / (completed + added), 0.0 when both are zero
            lead_time_days = mean created_at -> closed_at of completed items
            cycle_time_days = mean (started_at or added_at) -> closed_at of completed items
            lead_time_p50 / lead_time_p85, cycle_time_p50 / cycle_time_p85 = percentiles of the same samples
    """
    window_end = reference_time or utc_now()
    window_start = window_end - timedelta(days=period.days)

    completed = [item for item in items if _within(item.closed_at, window_start, window_end)]
    added = [item for item in items if _within(item.added_at, window_start, window_end)]

    lead_times = [
        lead_time
        for item in completed
        if (lead_time := calculate_elapsed_days(item.created_at, item.closed_at)) is not None
    ]
    cycle_times = [
        cycle_time
        for item in completed
        if (cycle_time := calculate_elapsed_days(item.started_at or item.added_at, item.closed_at)) is not None
    ]

    lead_mean, lead_p50, lead_p85 = _duration_stats(lead_times)
    cycle_mean, cycle_p50, cycle_p85 = _duration_stats(cycle_times)

    denominator = len(completed) + len(added)
    return VelocityInfo(
        period=period,
        window_start=window_start,
        window_end=window_end,
        completed_items=len(completed),
        added_items=len(added),
        closure_rate=len(completed) / denominator if denominator else 0.0,
        lead_time_days=lead_mean,
        cycle_time_days=cycle_mean,
        lead_time_p50=lead_p50,
        lead_time_p85=lead_p85,
        cycle_time_p50=cycle_p50,
        cycle_time_p85=cycle_p85,
    )


def calculate_timeline(items: Sequence[ProjectItem]) -> TimelineInfo:
    """
    Date range covered by milestone due dates and DATE field values.

    ``duration_days`` counts both ends (a single-day range lasts 1 day) and is
    0 when no dated data exists. ``activity_count`` is the number of creation
    and closure timestamps seen across items.
    """
    dates: list[date] = []
    milestones: set[str] = set()
    activity_count = 0

    for item in items:
        if item.milestone:
            milestones.add(item.milestone.title)
            if item.milestone.due_on:
                dates.append(item.milestone.due_on)
        for value in item.field_values.values():
            if isinstance(value, datetime):
                dates.append(value.date())
            elif isinstance(value, date):
                dates.append(value)
        activity_count += int(item.created_at is not None) + int(item.closed_at is not None)

    start_date = min(dates) if dates else None
    end_date = max(dates) if dates else None

    return TimelineInfo(
        start_date=start_date,
        end_date=end_date,
        duration_days=inclusive_day_span(start_date, end_date),
        milestone_count=len(milestones),
        activity_count=activity_count,
    )
