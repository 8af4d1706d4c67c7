"""
Data processing utilities for the SOP metrics system.

This module provides the small numeric and time helpers shared by every
analyzer: integer percentage math with half-up rounding, the time-window
record filter, monthly bucket labels and relative-time text. Keeping them
in one place means every view rounds and filters the same way.
"""

import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, TypeVar

from sopmetrics.data.models.enums import MonthlyBucketing

T = TypeVar("T")

MS_PER_DAY = 86_400_000

# Fixed English labels; calendar.month_abbr depends on the process locale
MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def ratio_percent(numerator: int, denominator: int) -> int:
    """
    Compute ``round(100 * numerator / denominator)`` with half-up rounding.

    Integer arithmetic only, so 0.5 boundaries are exact.

    Args:
        numerator: Count of matching items (>= 0)
        denominator: Count of all items (>= 0)

    Returns:
        int: Percentage, 0 when the denominator is 0
    """
    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


def round_one_decimal(value: float) -> float:
    """Round half-up (toward positive infinity on ties) to one decimal."""
    return math.floor(value * 10 + 0.5) / 10


def is_after_cutoff(timestamp: Optional[datetime], cutoff: Optional[datetime]) -> bool:
    """
    Apply the shared window rule: a record is in the window when it is
    strictly newer than the cutoff. No cutoff admits everything.

    Args:
        timestamp: Record timestamp (None never passes a real cutoff)
        cutoff: Exclusive lower bound or None

    Returns:
        bool: True if the record is inside the window
    """
    if cutoff is None:
        return True
    if timestamp is None:
        return False
    return timestamp > cutoff


def filter_events_since(events: Iterable[T], cutoff: Optional[datetime]) -> List[T]:
    """
    Keep the events created strictly after ``cutoff``.

    Args:
        events: Objects with a ``created_at`` attribute
        cutoff: Exclusive lower bound or None for all time

    Returns:
        List of events inside the window, input order kept
    """
    return [e for e in events if is_after_cutoff(e.created_at, cutoff)]


def group_by_attribute(items: Iterable[T], attribute: str) -> Dict[object, List[T]]:
    """
    Group items by an attribute value, keeping first-seen key order.

    Args:
        items: Objects to group
        attribute: Attribute name to group on

    Returns:
        Dict mapping attribute values to item lists
    """
    grouped: Dict[object, List[T]] = defaultdict(list)
    for item in items:
        grouped[getattr(item, attribute)].append(item)
    return dict(grouped)


def newest_first(
    items: Iterable[T],
    limit: Optional[int] = None,
    attribute: str = "created_at",
    descending: bool = True,
) -> List[T]:
    """
    Order items by an attribute, newest first by default, and keep ``limit``.

    Ties are broken by ``id`` ascending so the order is stable across reads.

    Args:
        items: Objects carrying ``id`` and ``attribute``
        limit: Maximum number to keep, None for all
        attribute: Attribute to order by
        descending: Whether the largest value comes first

    Returns:
        List[T]: Ordered items
    """
    ordered = sorted(items, key=lambda item: item.id)
    ordered.sort(key=lambda item: getattr(item, attribute), reverse=descending)
    return ordered if limit is None else ordered[:limit]


def month_label(
    timestamp: datetime, bucketing: MonthlyBucketing = MonthlyBucketing.LABEL
) -> str:
    """
    Get the monthly bucket label of a UTC timestamp.

    Args:
        timestamp: Aware UTC datetime
        bucketing: LABEL gives "Jan"; YEAR_MONTH gives "Jan 2024"

    Returns:
        str: Bucket label
    """
    label = MONTH_LABELS[timestamp.month - 1]
    if bucketing == MonthlyBucketing.YEAR_MONTH:
        return f"{label} {timestamp.year}"
    return label


def format_relative_time(timestamp: datetime, now: datetime) -> str:
    """
    Describe how long ago something happened, the way activity feeds do.

    Args:
        timestamp: When it happened
        now: Reference time

    Returns:
        str: "N hours ago" under a day, "Yesterday" under two days,
        otherwise "N days ago"
    """
    hours = max(0, math.floor((now - timestamp).total_seconds() / 3600))

    if hours < 24:
        return f"{hours} hours ago"
    if hours < 48:
        return "Yesterday"
    return f"{hours // 24} days ago"
