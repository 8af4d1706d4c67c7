"""
Profile repository for the SOP metrics system.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sopmetrics.data.db import RowStore
from sopmetrics.data.models.profile_model import Profile
from sopmetrics.data.repositories.base_repository import BaseRepository
from sopmetrics.utils.data_processing_utils import is_after_cutoff


class ProfileRepository(BaseRepository[Profile]):
    """Repository for profile rows (the ``profiles`` table)."""

    def __init__(self, db: Optional[RowStore] = None, config=None):
        super().__init__("profiles", Profile, db=db, config=config)
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def data_path_setting(self) -> str:
        return "PROFILES_DATA_PATH"

    def find_active_since(self, cutoff: Optional[datetime]) -> List[Profile]:
        """
        Find profiles active strictly after ``cutoff``.

        Profiles that were never active only match when there is no cutoff.

        Args:
            cutoff: Exclusive lower bound, or None for all time

        Returns:
            List[Profile]: Active profiles
        """
        return [p for p in self.get_all() if is_after_cutoff(p.last_active, cutoff)]
