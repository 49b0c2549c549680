"""Hour-of-day activity histogram for a conversation."""
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, Optional, Union

Timestamp = Union[datetime, str]


def _hour_of(timestamp: Timestamp) -> int:
    if isinstance(timestamp, str):
        timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    return timestamp.hour


def format_hour(hour: int) -> str:
    """Format 0-23 as a 12-hour clock label, e.g. 14 -> '02:00 PM'."""
    suffix = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour:02d}:00 {suffix}"


def build_activity_histogram(timestamps: Iterable[Timestamp]) -> Counter:
    return Counter(_hour_of(ts) for ts in timestamps)


def get_activity_report(timestamps: Iterable[Timestamp]) -> Optional[Dict]:
    """
    Summarize when a conversation is most active.

    Returns None for an empty conversation. When several hours share the
    highest count the earliest hour wins.
    """
    histogram = build_activity_histogram(timestamps)
    total = sum(histogram.values())
    if total == 0:
        return None

    peak_hour, peak_count = 0, 0
    for hour in sorted(histogram):
        if histogram[hour] > peak_count:
            peak_hour, peak_count = hour, histogram[hour]

    return {
        "peak_time": format_hour(peak_hour),
        "peak_hour": peak_hour,
        "message_count": peak_count,
        "total_analyzed": total,
        "percentage": f"{peak_count / total * 100:.1f}",
        "histogram": {hour: histogram[hour] for hour in sorted(histogram)},
    }
