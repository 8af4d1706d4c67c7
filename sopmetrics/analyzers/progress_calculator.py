"""
Progress calculator for the SOP metrics system.

This module holds the single implementation of every "how complete is it"
figure shown by the dashboard, analytics and detail views: SOP progress,
event-level completion rate and the completed / in progress / not started
breakdown. Every view calls these functions instead of deriving ratios on
its own, so the numbers agree everywhere.

All functions are pure: they never mutate their inputs and give the same
result for the same input.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from sopmetrics.data.models.completion_model import CompletionEvent
from sopmetrics.data.models.enums import CompletionStatus
from sopmetrics.data.models.metrics_model import (
    SopCompletionRate,
    SopSummary,
    StatusBreakdown,
    UserProgress,
)
from sopmetrics.data.models.profile_model import Profile
from sopmetrics.data.models.sop_model import Sop, Step
from sopmetrics.utils.data_processing_utils import (
    filter_events_since,
    newest_first,
    ratio_percent,
)

logger = logging.getLogger(__name__)


def count_completed_steps(steps: Iterable[Step], user_id: Optional[str] = None) -> int:
    """
    Count the steps that have at least one completed event.

    Args:
        steps: Steps with their completion events embedded
        user_id: Only count this user's events; None counts any user

    Returns:
        int: Number of completed steps
    """
    return sum(1 for step in steps if step.is_completed(user_id))


def compute_sop_progress(steps: Sequence[Step], user_id: Optional[str] = None) -> int:
    """
    Compute a SOP's completion percentage.

    A step is completed when any of its events is completed. Without a
    ``user_id`` this is the shared, any-user meaning used by dashboard cards;
    with one, only that user's events count (the per-user detail meaning).

    Args:
        steps: The SOP's steps (order irrelevant)
        user_id: Optional user to measure progress for

    Returns:
        int: 0..100, rounded half-up; 0 for a SOP without steps
    """
    steps = list(steps)
    return ratio_percent(count_completed_steps(steps, user_id), len(steps))


def compute_completion_rate(events: Sequence[CompletionEvent]) -> int:
    """
    Compute the share of events that are completed.

    Args:
        events: Completion events

    Returns:
        int: 0..100, rounded half-up; 0 when there are no events
    """
    completed = sum(1 for event in events if event.completed)
    return ratio_percent(completed, len(events))


def compute_step_status(event: CompletionEvent) -> CompletionStatus:
    """Classify one event as completed, in progress or not started."""
    return event.get_status()


def count_statuses(events: Iterable[CompletionEvent]) -> Dict[CompletionStatus, int]:
    """
    Count events per completion status.

    Returns:
        Dict[CompletionStatus, int]: Count for every status (zeros included)
    """
    counts = {status: 0 for status in CompletionStatus}
    for event in events:
        counts[event.get_status()] += 1
    return counts


def compute_user_status_breakdown(events: Sequence[CompletionEvent]) -> StatusBreakdown:
    """
    Compute the completed / in progress / not started percentages.

    Completed and in progress are rounded independently; not started is the
    remainder, so the three always add up to exactly 100. If independent
    rounding pushes the first two past 100 the in-progress share gives way.

    Args:
        events: One user's (or one cohort's) completion events

    Returns:
        StatusBreakdown: Percentages; 0/0/100 for no events
    """
    total = len(events)
    if total == 0:
        return StatusBreakdown(completed=0, in_progress=0, not_started=100)

    counts = count_statuses(events)
    completed = ratio_percent(counts[CompletionStatus.COMPLETED], total)
    in_progress = min(ratio_percent(counts[CompletionStatus.IN_PROGRESS], total), 100 - completed)

    return StatusBreakdown(
        completed=completed,
        in_progress=in_progress,
        not_started=100 - completed - in_progress,
    )


def compute_status_distribution(events: Sequence[CompletionEvent]) -> StatusBreakdown:
    """
    Compute the tenant-wide status distribution.

    Same formula as compute_user_status_breakdown, applied to the whole
    filtered event set.
    """
    return compute_user_status_breakdown(events)


def summarize_sop(
    sop: Sop, user_id: Optional[str] = None, cutoff: Optional[datetime] = None
) -> SopSummary:
    """
    Build a SOP card.

    Args:
        sop: SOP with steps and events embedded
        user_id: Optional user whose own progress is shown
        cutoff: Optional window cutoff applied to the events first

    Returns:
        SopSummary: Progress plus completed/total step counts
    """
    steps = restrict_steps_to_window(sop.steps, cutoff)
    return SopSummary(
        id=sop.id,
        title=sop.title,
        category=sop.category,
        status=sop.status.value,
        progress=compute_sop_progress(steps, user_id),
        steps=len(steps),
        completed_steps=count_completed_steps(steps, user_id),
    )


def restrict_steps_to_window(
    steps: Iterable[Step], cutoff: Optional[datetime]
) -> List[Step]:
    """
    Drop the events created at or before ``cutoff`` from each step.

    Returns new Step objects; the input is left untouched.
    """
    if cutoff is None:
        return list(steps)
    return [
        step.model_copy(
            update={"completion_events": filter_events_since(step.completion_events, cutoff)}
        )
        for step in steps
    ]


def recent_sops(sops: Iterable[Sop], limit: Optional[int]) -> List[Sop]:
    """
    Order SOPs newest first (id breaks ties) and keep the first ``limit``.

    Args:
        sops: SOPs
        limit: Maximum number to keep, None for all

    Returns:
        List[Sop]: Most recently created SOPs
    """
    return newest_first(sops, limit)


def compute_sop_completion_rates(
    sops: Iterable[Sop], limit: Optional[int] = 5, cutoff: Optional[datetime] = None
) -> List[SopCompletionRate]:
    """
    Compute the per-SOP completion bar chart for the most recent SOPs.

    Args:
        sops: SOPs with steps and events embedded
        limit: How many of the most recent SOPs to include
        cutoff: Optional window cutoff applied to events

    Returns:
        List[SopCompletionRate]: One entry per SOP, newest first
    """
    rates = []
    for sop in recent_sops(sops, limit):
        steps = restrict_steps_to_window(sop.steps, cutoff)
        rates.append(
            SopCompletionRate(sop_id=sop.id, name=sop.title, value=compute_sop_progress(steps))
        )
    return rates


def compute_user_progress(
    profiles: Iterable[Profile],
    events: Iterable[CompletionEvent],
    limit: Optional[int] = 5,
) -> List[UserProgress]:
    """
    Compute the per-user stacked progress breakdown.

    Users are ordered by most recent activity (never-active users last),
    with the user id breaking ties.

    Args:
        profiles: User profiles
        events: Completion events, already restricted to the time window
        limit: Number of users to include, None for all

    Returns:
        List[UserProgress]: Counts and percentages per user
    """
    events_by_user: Dict[str, List[CompletionEvent]] = {}
    for event in events:
        events_by_user.setdefault(event.user_id, []).append(event)

    ordered = sorted(profiles, key=lambda p: p.id)
    active = [p for p in ordered if p.last_active is not None]
    inactive = [p for p in ordered if p.last_active is None]
    active.sort(key=lambda p: p.last_active, reverse=True)
    selected = active + inactive
    if limit is not None:
        selected = selected[:limit]

    results = []
    for profile in selected:
        user_events = events_by_user.get(profile.id, [])
        counts = count_statuses(user_events)
        results.append(
            UserProgress(
                user_id=profile.id,
                name=profile.display_name,
                completed=counts[CompletionStatus.COMPLETED],
                in_progress=counts[CompletionStatus.IN_PROGRESS],
                not_started=counts[CompletionStatus.NOT_STARTED],
                breakdown=compute_user_status_breakdown(user_events),
            )
        )

    logger.debug(f"Computed progress for {len(results)} users")
    return results
