"""
Analytics domain models

Read-only summaries derived from a project's full item collection:
    - DistributionStat: One bucket of a status / assignee / milestone distribution
    - VelocityPeriod: Velocity window granularity
    - VelocityInfo: Completed vs. added items and lead/cycle times for one window
    - TimelineInfo: Date range covered by milestones and dated fields
    - AnalyticsInfo: Everything above for one project

Percentages are derived when rendering and are never stored, so they cannot
drift from the counts.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from ghx.domain.constants import analytics_config
from ghx.errors import InvalidRequestError


class VelocityPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

    @property
    def days(self) -> int:
        if self is VelocityPeriod.WEEKLY:
            return analytics_config.WEEKLY_DAYS
        if self is VelocityPeriod.MONTHLY:
            return analytics_config.MONTHLY_DAYS
        return analytics_config.QUARTERLY_DAYS

    @classmethod
    def parse(cls, value: "str | VelocityPeriod") -> "VelocityPeriod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise InvalidRequestError(f"invalid period: {value} (valid periods: {valid})") from None


@dataclass(frozen=True)
class DistributionStat:
    """
    Count of items sharing one category value.

    Example:
        >>> DistributionStat("Done", 3).percentage(4)
        75.0
        >>> DistributionStat("Done", 0).percentage(0) is None
        True
    """

    category: str
    count: int

    def percentage(self, total: int) -> float | None:
        """Share of ``total`` in percent, or None when total is zero."""
        if total <= 0:
            return None
        return self.count / total * 100


@dataclass
class VelocityInfo:
    """
    Throughput for one velocity window.

    Attributes:
        period: Window granularity
        window_start: Start of the window (inclusive)
        window_end: End of the window (inclusive, normally "now")
        completed_items: Items closed inside the window
        added_items: Items added to the project inside the window
        closure_rate: completed / (completed + added), 0.0 when both are zero
        lead_time_days: Mean created -> closed days of completed items (None without samples)
        cycle_time_days: Mean started -> closed days of completed items (None without samples)
        lead_time_p50, lead_time_p85: Median and 85th percentile lead time (None without samples)
        cycle_time_p50, cycle_time_p85: Median and 85th percentile cycle time (None without samples)
    """

    period: VelocityPeriod
    window_start: datetime
    window_end: datetime
    completed_items: int = 0
    added_items: int = 0
    closure_rate: float = 0.0
    lead_time_days: float | None = None
    cycle_time_days: float | None = None
    lead_time_p50: float | None = None
    lead_time_p85: float | None = None
    cycle_time_p50: float | None = None
    cycle_time_p85: float | None = None

    @property
    def period_label(self) -> str:
        return f"{self.period.value} ({self.window_start:%Y-%m-%d} to {self.window_end:%Y-%m-%d})"


@dataclass
class TimelineInfo:
    """
    Date range covered by a project's milestones and date fields.

    Attributes:
        start_date: Earliest date found (None when there is no dated data)
        end_date: Latest date found
        duration_days: Inclusive day count from start to end (0 when unknown)
        milestone_count: Distinct milestones referenced by items
        activity_count: Creation and closure timestamps seen across items
    """

    start_date: date | None = None
    end_date: date | None = None
    duration_days: int = 0
    milestone_count: int = 0
    activity_count: int = 0


@dataclass
class AnalyticsInfo:
    """
    Analytics summary for one project.

    Invariant: the counts of each distribution sum to ``item_count``.
    """

    project_id: str
    title: str
    item_count: int
    field_count: int
    view_count: int
    velocity_data: VelocityInfo
    timeline_data: TimelineInfo
    status_stats: list[DistributionStat] = field(default_factory=list)
    assignee_stats: list[DistributionStat] = field(default_factory=list)
    milestone_stats: list[DistributionStat] = field(default_factory=list)
