"""
Statistics Utilities

Shared statistical functions for analytics calculations.

Usage:
    from ghx.utils.statistics import calculate_percentile, calculate_summary_stats

    p50 = calculate_percentile(lead_times, 50)
    stats = calculate_summary_stats(lead_times)
"""

from collections.abc import Sequence


def calculate_percentile(data: Sequence[float], percentile: float) -> float:
    """
    Calculate a single percentile value.

    Uses linear interpolation between values (same as numpy.percentile).

    Args:
        data: Sequence of numeric values
        percentile: Percentile to calculate (0-100)

    Returns:
        Percentile value

    Raises:
        ValueError: If data is empty or percentile is out of range

    Example:
        lead_times = [5.2, 10.1, 15.3, 20.0, 25.5]
        median = calculate_percentile(lead_times, 50)
    """
    if not data:
        raise ValueError("Cannot calculate percentile of empty data")

    if not 0 <= percentile <= 100:
        raise ValueError(f"Percentile must be 0-100, got {percentile}")

    sorted_data = sorted(data)
    n = len(sorted_data)

    index = (n - 1) * (percentile / 100.0)
    lower_index = int(index)
    upper_index = min(lower_index + 1, n - 1)

    lower_value = sorted_data[lower_index]
    upper_value = sorted_data[upper_index]
    fraction = index - lower_index

    return float(lower_value + fraction * (upper_value - lower_value))


def calculate_summary_stats(data: Sequence[float]) -> dict[str, float]:
    """
    Calculate common summary statistics.

    Includes: min, max, mean, median (p50), p85 and count.

    Args:
        data: Sequence of numeric values

    Returns:
        Dictionary with summary statistics (all zero for empty data)

    Example:
        stats = calculate_summary_stats([5, 10, 15, 20, 25])
        # {"min": 5.0, "max": 25.0, "mean": 15.0, "p50": 15.0, "p85": 23.0, "count": 5}
    """
    if not data:
        return {"min": 0.0, "max": 0.0, "mean": 0.0, "p50": 0.0, "p85": 0.0, "count": 0}

    sorted_data = sorted(data)
    n = len(sorted_data)

    return {
        "min": float(sorted_data[0]),
        "max": float(sorted_data[-1]),
        "mean": float(sum(sorted_data) / n),
        "p50": calculate_percentile(sorted_data, 50),
        "p85": calculate_percentile(sorted_data, 85),
        "count": n,
    }
