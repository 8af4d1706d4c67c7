"""
Completion event model for the SOP metrics system.

A completion event records one user's interaction with one step. Two store
variants exist: one where an explicit ``completed`` flag distinguishes the
state, and one where the mere existence of the row (usually carrying a
``completed_at`` column) means the step was completed. Both are normalized
to a single boolean when the event is constructed.
"""

from typing import Any, Dict, Optional

from pydantic import model_validator

from sopmetrics.data.models.base_model import EntityId, EntityModel, UtcDatetime
from sopmetrics.data.models.enums import CompletionStatus


class CompletionEvent(EntityModel):
    """A user's progress record against a single step."""

    id: EntityId
    step_id: EntityId
    user_id: EntityId
    completed: bool
    created_at: UtcDatetime
    updated_at: UtcDatetime
    completed_at: Optional[UtcDatetime] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_completion(cls, data: Any) -> Any:
        """
        Fill in the completion flag and last-touched time.

        An explicit flag wins. Without one the row itself is the
        completion record. A row that was never touched again has
        ``updated_at`` equal to ``created_at``.
        """
        if not isinstance(data, dict):
            return data

        normalized: Dict[str, Any] = dict(data)

        if normalized.get("completed") is None:
            normalized["completed"] = True

        if normalized.get("updated_at") is None and normalized.get("updatedAt") is None:
            created = normalized.get("created_at", normalized.get("createdAt"))
            if created is not None:
                normalized["updated_at"] = created

        return normalized

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds between first and last touch (may be negative)."""
        return (self.updated_at - self.created_at).total_seconds() * 1000.0

    @property
    def was_touched(self) -> bool:
        """True when the record changed after it was created."""
        return self.updated_at != self.created_at

    def get_status(self) -> CompletionStatus:
        """
        Classify this event.

        Returns:
            CompletionStatus: completed, in progress (touched but not done)
            or not started
        """
        if self.completed:
            return CompletionStatus.COMPLETED
        if self.was_touched:
            return CompletionStatus.IN_PROGRESS
        return CompletionStatus.NOT_STARTED
