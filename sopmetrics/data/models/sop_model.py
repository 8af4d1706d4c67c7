"""
SOP and step models for the SOP metrics system.

A SOP owns an ordered sequence of steps. Order is given by ``order_index``,
which is unique within a SOP but not guaranteed to be contiguous; consumers
sort by it rather than trusting list order.
"""

from typing import List, Optional, Tuple

from pydantic import Field

from sopmetrics.data.models.base_model import EntityId, EntityModel, UtcDatetime
from sopmetrics.data.models.completion_model import CompletionEvent
from sopmetrics.data.models.enums import SopStatus


class Step(EntityModel):
    """
    An ordered unit of work within a SOP.

    Completion events recorded against the step are embedded so that the
    calculators can work from a single materialized structure.
    """

    id: EntityId
    sop_id: EntityId
    order_index: int = Field(ge=0)
    title: Optional[str] = None
    completion_events: List[CompletionEvent] = Field(default_factory=list)

    @property
    def position_key(self) -> Tuple[int, str]:
        """Sort key putting steps in ``order_index`` order, id breaking ties."""
        return (self.order_index, self.id)

    def events_for_user(self, user_id: Optional[str]) -> List[CompletionEvent]:
        """
        Get the completion events of this step, optionally for one user.

        Args:
            user_id: User to restrict to, or None for every user

        Returns:
            List[CompletionEvent]: Matching events
        """
        if user_id is None:
            return list(self.completion_events)
        return [e for e in self.completion_events if e.user_id == user_id]

    def is_completed(self, user_id: Optional[str] = None) -> bool:
        """True if any (matching) completion event is completed."""
        return any(e.completed for e in self.events_for_user(user_id))


class Sop(EntityModel):
    """A titled, categorized Standard Operating Procedure."""

    id: EntityId
    title: str
    category: str = ""
    status: SopStatus = SopStatus.DRAFT
    created_at: UtcDatetime
    created_by: Optional[EntityId] = None
    steps: List[Step] = Field(default_factory=list)
