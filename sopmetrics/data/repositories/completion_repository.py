"""
Completion event repository for the SOP metrics system.

This module provides data access methods for per-user step completion
events, including the time-window filter shared by every metric.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from sopmetrics.data.db import RowStore
from sopmetrics.data.models.completion_model import CompletionEvent
from sopmetrics.data.repositories.base_repository import BaseRepository
from sopmetrics.utils.data_processing_utils import filter_events_since


class CompletionRepository(BaseRepository[CompletionEvent]):
    """Repository for completion rows (the ``sop_step_completions`` table)."""

    def __init__(self, db: Optional[RowStore] = None, config=None):
        super().__init__("sop_step_completions", CompletionEvent, db=db, config=config)
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def data_path_setting(self) -> str:
        return "COMPLETIONS_DATA_PATH"

    def find_created_after(self, cutoff: Optional[datetime]) -> List[CompletionEvent]:
        """
        Find events created strictly after ``cutoff``.

        Args:
            cutoff: Exclusive lower bound, or None for every event

        Returns:
            List[CompletionEvent]: Matching events in store order
        """
        return filter_events_since(self.get_all(), cutoff)

    def group_by_step(self) -> Dict[str, List[CompletionEvent]]:
        """
        Group every event by its step.

        Returns:
            Dict[str, List[CompletionEvent]]: Step id to events, store order
        """
        grouped: Dict[str, List[CompletionEvent]] = defaultdict(list)
        for event in self.get_all():
            grouped[event.step_id].append(event)
        return dict(grouped)
