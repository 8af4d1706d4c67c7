"""
Enumerations for the SOP metrics system.

This module defines the categorical values used throughout the system:
SOP lifecycle states, the dashboard time windows and views, per-event
completion states and the monthly bucketing modes. All enums are
string-valued so they serialize cleanly inside pydantic models.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional

from sopmetrics.utils.safe_ops import safe_lower


# Days covered by each time window; None means no lower bound
_WINDOW_DAYS: Dict[str, Optional[int]] = {
    "last7days": 7,
    "last30days": 30,
    "last90days": 90,
    "lastYear": 365,
    "allTime": None,
}


class SopStatus(str, Enum):
    """Lifecycle states of a Standard Operating Procedure."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class TimeWindow(str, Enum):
    """Rolling time windows offered by the dashboard period selector."""

    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    LAST_90_DAYS = "last90days"
    LAST_YEAR = "lastYear"
    ALL_TIME = "allTime"

    @classmethod
    def _missing_(cls, value):
        # Accept "lastyear", "ALLTIME" and friends
        lowered = safe_lower(value)
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return None

    @property
    def days(self) -> Optional[int]:
        """Number of days covered by the window, or None for all time."""
        return _WINDOW_DAYS[self.value]

    def cutoff(self, now: datetime) -> Optional[datetime]:
        """
        Get the exclusive lower bound for records in this window.

        Args:
            now: Reference time the window is measured back from

        Returns:
            Optional[datetime]: ``now - days`` or None when unbounded
        """
        if self.days is None:
            return None
        return now - timedelta(days=self.days)


class ActiveView(str, Enum):
    """Dashboard/analytics tabs that decide which optional aggregates run."""

    OVERVIEW = "overview"
    SOPS = "sops"
    USERS = "users"
    DROPOFF = "dropoff"
    ACTIVITY = "activity"
    MY_SOPS = "my_sops"
    ALL = "all"

    @classmethod
    def _missing_(cls, value):
        lowered = safe_lower(value).replace("-", "_")
        for member in cls:
            if member.value == lowered:
                return member
        return None


class CompletionStatus(str, Enum):
    """State of a single completion event."""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    NOT_STARTED = "not_started"


class MonthlyBucketing(str, Enum):
    """How completion events are grouped into monthly buckets."""

    # Month name only; the same month of different years shares a bucket
    LABEL = "label"
    YEAR_MONTH = "year_month"


class DropoffPosition(str, Enum):
    """Which position a step is counted at in the drop-off funnel."""

    # Rank inside the SOP after sorting by order_index; gaps are closed
    RELATIVE = "relative"
    INDEX = "index"


class WarningCode(str, Enum):
    """Codes for data-integrity warnings attached to assembled metrics."""

    NEGATIVE_ELAPSED_TIME = "negative_elapsed_time"
    FUNNEL_INCREASE = "funnel_increase"
