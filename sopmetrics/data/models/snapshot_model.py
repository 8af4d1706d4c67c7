"""
Snapshot model for the SOP metrics system.

A snapshot is the fully materialized, read-only input of one metrics
request. The entity reader builds it once; the analyzers only read it.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from sopmetrics.data.models.completion_model import CompletionEvent
from sopmetrics.data.models.profile_model import Profile
from sopmetrics.data.models.sop_model import Sop, Step


class Snapshot(BaseModel):
    """
    Immutable view of every entity needed to assemble metrics.

    Attributes:
        sops: SOPs with their steps (and the steps' events) embedded
        steps: Every step across all SOPs, events embedded
        completion_events: Every completion event, unfiltered
        profiles: User profiles
        captured_at: When the snapshot was taken (UTC)
        invalid_record_count: Raw rows rejected while building the snapshot
    """

    model_config = ConfigDict(frozen=True)

    sops: List[Sop] = Field(default_factory=list)
    steps: List[Step] = Field(default_factory=list)
    completion_events: List[CompletionEvent] = Field(default_factory=list)
    profiles: List[Profile] = Field(default_factory=list)
    captured_at: datetime
    invalid_record_count: int = 0
