"""
Activity analyzer for the SOP metrics system.

Builds the "recent activity" feed and the active-user count.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sopmetrics.data.models.completion_model import CompletionEvent
from sopmetrics.data.models.metrics_model import ActivityItem
from sopmetrics.data.models.profile_model import Profile
from sopmetrics.data.models.sop_model import Sop, Step
from sopmetrics.utils.data_processing_utils import format_relative_time, is_after_cutoff

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown user"
UNKNOWN_SOP = "Unknown SOP"


def count_active_users(profiles: Iterable[Profile], cutoff: Optional[datetime]) -> int:
    """
    Count profiles active strictly after ``cutoff``.

    Args:
        profiles: User profiles
        cutoff: Exclusive lower bound, None for all time

    Returns:
        int: Active profile count
    """
    return sum(1 for p in profiles if is_after_cutoff(p.last_active, cutoff))


def compute_recent_activity(
    events: Iterable[CompletionEvent],
    steps: Iterable[Step],
    sops: Iterable[Sop],
    profiles: Iterable[Profile],
    now: datetime,
    limit: Optional[int] = 4,
) -> List[ActivityItem]:
    """
    Build the activity feed from the most recently touched events.

    Args:
        events: Completion events
        steps: Steps used to resolve each event's SOP
        sops: SOPs used to resolve titles
        profiles: Profiles used to resolve names and avatars
        now: Reference time for the relative-time text
        limit: Number of entries, None for all

    Returns:
        List[ActivityItem]: Newest first, event id breaking ties
    """
    step_to_sop = {step.id: step.sop_id for step in steps}
    titles = {sop.id: sop.title for sop in sops}
    people = {profile.id: profile for profile in profiles}

    ordered = sorted(events, key=lambda e: e.id)
    ordered.sort(key=lambda e: e.updated_at, reverse=True)
    if limit is not None:
        ordered = ordered[:limit]

    feed = []
    for event in ordered:
        profile = people.get(event.user_id)
        feed.append(
            ActivityItem(
                id=event.id,
                user=profile.display_name if profile else UNKNOWN_USER,
                avatar=profile.avatar_url if profile else None,
                action="completed" if event.completed else "started",
                sop=titles.get(step_to_sop.get(event.step_id), UNKNOWN_SOP),
                time=format_relative_time(event.updated_at, now),
            )
        )
    return feed
