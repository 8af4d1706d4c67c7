"""
Time-series aggregator for the SOP metrics system.

This module buckets completion events by calendar month and measures how
long completed steps took, producing the monthly completion-rate trend and
the average completion time shown on the analytics overview.

Monthly buckets are keyed by the month of ``created_at`` in UTC and come
out in the order they are first met while scanning the events, not in
calendar order. With the default LABEL bucketing the same month of
different years shares one bucket ("Jan" 2023 and "Jan" 2024 are merged);
YEAR_MONTH bucketing keeps years apart.
"""

import logging
from typing import Dict, List, Sequence

from sopmetrics.data.models.completion_model import CompletionEvent
from sopmetrics.data.models.enums import MonthlyBucketing, WarningCode
from sopmetrics.data.models.metrics_model import MetricWarning, MonthlyRate
from sopmetrics.utils.data_processing_utils import (
    MS_PER_DAY,
    month_label,
    ratio_percent,
    round_one_decimal,
)

logger = logging.getLogger(__name__)


def compute_monthly_completion_rate(
    events: Sequence[CompletionEvent],
    bucketing: MonthlyBucketing = MonthlyBucketing.LABEL,
) -> List[MonthlyRate]:
    """
    Compute the completion rate of the events created in each month.

    Args:
        events: Completion events (already restricted to the time window)
        bucketing: Month-name-only labels (default) or month plus year

    Returns:
        List[MonthlyRate]: One entry per bucket, in first-seen order
    """
    totals: Dict[str, List[int]] = {}

    for event in events:
        label = month_label(event.created_at, bucketing)
        bucket = totals.setdefault(label, [0, 0])
        bucket[0] += 1
        if event.completed:
            bucket[1] += 1

    return [
        MonthlyRate(
            month=label,
            rate=ratio_percent(completed, total),
            total=total,
            completed=completed,
        )
        for label, (total, completed) in totals.items()
    ]


def compute_avg_completion_time(events: Sequence[CompletionEvent]) -> float:
    """
    Compute the average time completed events took, in days.

    Elapsed time is ``updated_at - created_at``. Negative values are bad
    data but are not clamped; use find_negative_elapsed to report them.

    Args:
        events: Completion events

    Returns:
        float: Average days rounded half-up to one decimal; 0.0 when no
        event is completed
    """
    completed = [event for event in events if event.completed]
    if not completed:
        return 0.0

    total_ms = sum(event.elapsed_ms for event in completed)
    return round_one_decimal(total_ms / (len(completed) * MS_PER_DAY))


def find_negative_elapsed(events: Sequence[CompletionEvent]) -> List[MetricWarning]:
    """
    Report completed events whose last touch precedes their creation.

    Args:
        events: Completion events

    Returns:
        List[MetricWarning]: One warning per offending event
    """
    warnings = []
    for event in events:
        if event.completed and event.elapsed_ms < 0:
            warnings.append(
                MetricWarning(
                    code=WarningCode.NEGATIVE_ELAPSED_TIME,
                    message=(
                        f"Completion event {event.id} was updated before it was created"
                    ),
                    context={
                        "event_id": event.id,
                        "step_id": event.step_id,
                        "elapsed_ms": event.elapsed_ms,
                    },
                )
            )

    if warnings:
        logger.warning(f"{len(warnings)} completion events have negative elapsed time")
    return warnings
