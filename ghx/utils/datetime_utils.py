#!/usr/bin/env python3
"""
Datetime Utility Functions

Centralized datetime parsing and calculation functions shared by the
provider transformers, the workflow engine and the analytics calculations.

Handles common patterns:
- GitHub ISO timestamps with 'Z' suffix
- GitHub date-only values (milestone due dates, DATE fields)
- Elapsed days between two timestamps
- Inclusive calendar-day spans
"""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def parse_github_timestamp(timestamp_str: str | None) -> datetime | None:
    """
    Parse a GitHub ISO timestamp with 'Z' suffix to a timezone-aware datetime.

    GitHub's GraphQL API returns DateTime scalars in ISO format with 'Z' suffix:
    Example: "2026-02-10T10:00:00Z"

    Args:
        timestamp_str: ISO timestamp string, or None

    Returns:
        datetime object in UTC, or None if input is empty

    Raises:
        ValueError: If timestamp format is invalid or cannot be parsed

    Examples:
        >>> parse_github_timestamp("2026-02-10T10:00:00Z")
        datetime.datetime(2026, 2, 10, 10, 0, tzinfo=datetime.timezone.utc)

        >>> parse_github_timestamp(None)
        None
    """
    if not timestamp_str:
        return None

    if not isinstance(timestamp_str, str):
        raise ValueError(f"Timestamp must be a string, got {type(timestamp_str)}")

    try:
        parsed = datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid timestamp format: {timestamp_str}") from e

    # Date-only and naive values are interpreted as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_github_date(date_str: str | None) -> date | None:
    """
    Parse a GitHub Date scalar ("2026-02-10") or DateTime into a calendar date.

    Args:
        date_str: Date or timestamp string, or None

    Returns:
        date object, or None if input is empty

    Raises:
        ValueError: If the value cannot be parsed
    """
    if not date_str:
        return None
    if len(date_str) == 10:
        try:
            return date.fromisoformat(date_str)
        except ValueError as e:
            raise ValueError(f"Invalid date format: {date_str}") from e
    parsed = parse_github_timestamp(date_str)
    return parsed.date() if parsed else None


def calculate_elapsed_days(start: datetime | None, end: datetime | None) -> float | None:
    """
    Calculate elapsed time in days between two timestamps.

    Used for lead time (created -> closed) and cycle time (started -> closed).

    Args:
        start: Start of the interval
        end: End of the interval

    Returns:
        Elapsed days (fractional), or None if either bound is missing
        Returns None if the interval is negative (invalid data)

    Examples:
        >>> calculate_elapsed_days(datetime(2026, 2, 1, 10, tzinfo=UTC), datetime(2026, 2, 10, 10, tzinfo=UTC))
        9.0
    """
    if start is None or end is None:
        return None

    elapsed_days = (end - start).total_seconds() / 86400

    # Negative intervals indicate data quality issues
    if elapsed_days < 0:
        return None

    return elapsed_days


def inclusive_day_span(start: date | None, end: date | None) -> int:
    """
    Count calendar days from start to end, both included.

    Args:
        start: First day
        end: Last day

    Returns:
        Number of days, or 0 when either bound is missing or end precedes start

    Examples:
        >>> inclusive_day_span(date(2026, 3, 1), date(2026, 3, 1))
        1
        >>> inclusive_day_span(date(2026, 3, 1), date(2026, 3, 31))
        31
    """
    if start is None or end is None or end < start:
        return 0
    return (end - start).days + 1


def format_utc(value: datetime | None, fmt: str = "%Y-%m-%dT%H:%M:%SZ") -> str | None:
    """Format a datetime in UTC with the given strftime pattern (None passes through)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(fmt)
