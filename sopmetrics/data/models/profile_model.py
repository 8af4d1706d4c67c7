"""
Profile model for the SOP metrics system.
"""

from typing import Optional

from sopmetrics.data.models.base_model import EntityId, EntityModel, UtcDatetime
from sopmetrics.utils.safe_ops import safe_str


class Profile(EntityModel):
    """A team member's profile, used for activity counts and user breakdowns."""

    id: EntityId
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    last_active: Optional[UtcDatetime] = None

    @property
    def display_name(self) -> str:
        """First and last name joined, falling back to the id."""
        name = " ".join(
            part for part in (safe_str(self.first_name), safe_str(self.last_name)) if part
        )
        return name or self.id
