"""
SOP repository for the SOP metrics system.

This module provides data access methods for SOP entities: ordering by
recency for the "top-N" views and lookup by owner for the "my SOPs" view.
"""

import logging
from typing import Dict, List, Optional

from sopmetrics.data.db import RowStore
from sopmetrics.data.models.enums import SopStatus
from sopmetrics.data.models.sop_model import Sop
from sopmetrics.data.repositories.base_repository import BaseRepository
from sopmetrics.utils.data_processing_utils import newest_first


class SopRepository(BaseRepository[Sop]):
    """Repository for SOP rows (the ``sops`` table)."""

    def __init__(self, db: Optional[RowStore] = None, config=None):
        super().__init__("sops", Sop, db=db, config=config)
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def data_path_setting(self) -> str:
        return "SOPS_DATA_PATH"

    def find_recent(self, limit: Optional[int] = None) -> List[Sop]:
        """
        Get SOPs ordered by most recently created first.

        Ties on ``created_at`` are broken by id so the order is stable.

        Args:
            limit: Maximum number of SOPs to return (None for all)

        Returns:
            List[Sop]: SOPs, newest first
        """
        return newest_first(self.get_all(), limit)

    def find_by_owner(self, user_id: str) -> List[Sop]:
        """
        Find SOPs created by a user, newest first.

        Creator ids are compared after normalization, so integer keys in
        the export match their string form.

        Args:
            user_id: Creator's user id

        Returns:
            List[Sop]: SOPs created by the user
        """
        owner = str(user_id)
        return newest_first(sop for sop in self.get_all() if sop.created_by == owner)

    def find_by_status(self, status: SopStatus) -> List[Sop]:
        """
        Find SOPs in a lifecycle state.

        Rows without a status column are drafts.
        """
        status = SopStatus(status)
        clauses: List[Dict] = [{"status": status.value}]
        if status is SopStatus.DRAFT:
            clauses.append({"status": {"$exists": False}})
        return self.find_many({"$or": clauses})

    def get_status_counts(self) -> Dict[str, int]:
        """
        Count SOPs per lifecycle state.

        Returns:
            Dict[str, int]: Count per status value (every status present)
        """
        return {status.value: len(self.find_by_status(status)) for status in SopStatus}
