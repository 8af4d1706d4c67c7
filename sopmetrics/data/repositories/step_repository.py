"""
Step repository for the SOP metrics system.

This module provides data access methods for Step entities. Steps come out
of the store without their completion events; the data repository embeds
those when it builds a snapshot.
"""

import logging
from typing import List, Optional

from sopmetrics.data.db import RowStore
from sopmetrics.data.models.sop_model import Step
from sopmetrics.data.repositories.base_repository import BaseRepository


class StepRepository(BaseRepository[Step]):
    """Repository for step rows (the ``sop_steps`` table)."""

    def __init__(self, db: Optional[RowStore] = None, config=None):
        super().__init__("sop_steps", Step, db=db, config=config)
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def data_path_setting(self) -> str:
        return "STEPS_DATA_PATH"

    def find_by_sop_id(self, sop_id: str) -> List[Step]:
        """
        Find the steps of a SOP in ``order_index`` order.

        Args:
            sop_id: SOP id

        Returns:
            List[Step]: Ordered steps
        """
        steps = [step for step in self.get_all() if step.sop_id == str(sop_id)]
        return sorted(steps, key=lambda s: s.position_key)
