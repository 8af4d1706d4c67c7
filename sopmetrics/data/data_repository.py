"""
Main data repository for the SOP metrics system.

This module provides the DataRepository class, the entity reader that sits
between the store and the analyzers. It coordinates the entity-specific
repositories, answers the reader queries the views need, and materializes
an immutable Snapshot so metrics are always computed from one complete,
consistent read.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from config.settings import Settings
from sopmetrics.data.db import RowStore
from sopmetrics.data.exceptions import EntityReaderError
from sopmetrics.data.models.completion_model import CompletionEvent
from sopmetrics.data.models.enums import TimeWindow
from sopmetrics.data.models.snapshot_model import Snapshot
from sopmetrics.data.models.sop_model import Sop, Step
from sopmetrics.data.repositories.completion_repository import CompletionRepository
from sopmetrics.data.repositories.profile_repository import ProfileRepository
from sopmetrics.data.repositories.sop_repository import SopRepository
from sopmetrics.data.repositories.step_repository import StepRepository
from sopmetrics.utils.data_processing_utils import newest_first


class DataRepository:
    """
    Entity reader coordinating access to all entity-specific repositories.

    Every failure to read the backing data surfaces as a single
    EntityReaderError; nothing is retried and no partial result is returned.
    """

    # Data file name per collection inside a data directory
    FILE_NAMES = {
        "sops": "sops.json",
        "sop_steps": "sop_steps.json",
        "sop_step_completions": "sop_step_completions.json",
        "profiles": "profiles.json",
    }

    def __init__(self, config: Optional[Settings] = None, db: Optional[RowStore] = None):
        """
        Initialize the data repository.

        Args:
            config: Optional settings configuration
            db: Optional pre-populated in-memory database
        """
        self._logger = logging.getLogger(self.__class__.__name__)
        self._config = config or Settings()
        self._db = db if db is not None else RowStore()

        self._sop_repo = SopRepository(db=self._db, config=self._config)
        self._step_repo = StepRepository(db=self._db, config=self._config)
        self._completion_repo = CompletionRepository(db=self._db, config=self._config)
        self._profile_repo = ProfileRepository(db=self._db, config=self._config)

        self._data_loaded = False

    @property
    def _repositories(self):
        return (self._sop_repo, self._step_repo, self._completion_repo, self._profile_repo)

    def connect(self) -> None:
        """
        Connect to all data sources.

        Raises:
            EntityReaderError: If any source fails to load
        """
        if self._data_loaded:
            return

        try:
            for repo in self._repositories:
                repo.connect()
        except EntityReaderError:
            raise
        except Exception as e:
            self._logger.error(f"Error connecting to data sources: {e}")
            raise EntityReaderError(f"Error connecting to data sources: {e}") from e

        self._data_loaded = True
        self._logger.info("Successfully connected to all data sources")

    def _ensure_connected(self) -> None:
        if not self._data_loaded:
            self.connect()

    @property
    def sops(self) -> SopRepository:
        """Get the SOP repository."""
        self._ensure_connected()
        return self._sop_repo

    @property
    def steps(self) -> StepRepository:
        """Get the step repository."""
        self._ensure_connected()
        return self._step_repo

    @property
    def completions(self) -> CompletionRepository:
        """Get the completion event repository."""
        self._ensure_connected()
        return self._completion_repo

    @property
    def profiles(self) -> ProfileRepository:
        """Get the profile repository."""
        self._ensure_connected()
        return self._profile_repo

    def load_records(
        self,
        sops: Iterable[Dict[str, Any]] = (),
        steps: Iterable[Dict[str, Any]] = (),
        completions: Iterable[Dict[str, Any]] = (),
        profiles: Iterable[Dict[str, Any]] = (),
    ) -> None:
        """
        Load raw rows directly, bypassing the configured files.

        Args:
            sops: Rows for the ``sops`` table
            steps: Rows for the ``sop_steps`` table
            completions: Rows for the ``sop_step_completions`` table
            profiles: Rows for the ``profiles`` table
        """
        self._sop_repo.load_records(list(sops))
        self._step_repo.load_records(list(steps))
        self._completion_repo.load_records(list(completions))
        self._profile_repo.load_records(list(profiles))
        self._data_loaded = True

    def load_data_from_directory(self, directory_path: Union[str, Path]) -> Dict[str, int]:
        """
        Load data from the JSON export files in a directory.

        Missing files are skipped; unreadable ones abort the load.

        Args:
            directory_path: Path to directory containing JSON data files

        Returns:
            Dict[str, int]: Rows loaded per file name

        Raises:
            EntityReaderError: If the directory is missing or a file is unreadable
        """
        path = Path(directory_path)
        if not path.is_dir():
            raise EntityReaderError(f"Data directory not found: {path}")

        results = {}
        for repo in self._repositories:
            file_path = path / self.FILE_NAMES[repo.collection_name]
            if file_path.exists():
                results[file_path.name] = repo.load_data_from_file(file_path)
            else:
                self._logger.warning(f"Data file not found, skipping: {file_path}")

        self._data_loaded = True
        return results

    def list_steps(self, sop_id: str) -> List[Step]:
        """
        Get a SOP's steps, each carrying its completion events.

        Args:
            sop_id: SOP id

        Returns:
            List[Step]: Steps in ``order_index`` order
        """
        events_by_step = self.completions.group_by_step()
        return [
            self._with_events(step, events_by_step)
            for step in self.steps.find_by_sop_id(sop_id)
        ]

    def list_completion_events(
        self, window: TimeWindow = TimeWindow.ALL_TIME, now: Optional[datetime] = None
    ) -> List[CompletionEvent]:
        """
        Get the completion events created inside a time window.

        Args:
            window: Time window
            now: Reference time (defaults to the current UTC time)

        Returns:
            List[CompletionEvent]: Events in store order
        """
        return self.completions.find_created_after(window.cutoff(now or _utc_now()))

    def list_sops(
        self,
        limit: Optional[int] = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Sop]:
        """
        Get SOPs with their steps (and the steps' events) nested.

        Args:
            limit: Maximum number of SOPs (None for all)
            order_by: SOP attribute to order by
            descending: Whether to order newest/largest first

        Returns:
            List[Sop]: SOPs in the requested order
        """
        return self._nest(newest_first(self.sops.get_all(), limit, order_by, descending))

    def list_sops_by_owner(self, user_id: str) -> List[Sop]:
        """Get the SOPs a user created, newest first, steps nested."""
        return self._nest(self.sops.find_by_owner(user_id))

    def count_active_users(
        self, window: TimeWindow = TimeWindow.LAST_30_DAYS, now: Optional[datetime] = None
    ) -> int:
        """
        Count profiles active inside a time window.

        Args:
            window: Time window
            now: Reference time (defaults to the current UTC time)

        Returns:
            int: Number of active profiles
        """
        return len(self.profiles.find_active_since(window.cutoff(now or _utc_now())))

    def snapshot(self, now: Optional[datetime] = None) -> Snapshot:
        """
        Materialize every entity into one immutable snapshot.

        Args:
            now: Capture time to record (defaults to the current UTC time)

        Returns:
            Snapshot: Complete, validated view of the store

        Raises:
            EntityReaderError: If any part of the store cannot be read
        """
        try:
            self._ensure_connected()
            events = self._completion_repo.get_all()
            events_by_step = self._completion_repo.group_by_step()
            steps = [
                self._with_events(step, events_by_step)
                for step in sorted(
                    self._step_repo.get_all(), key=lambda s: (s.sop_id, s.position_key)
                )
            ]
            sops = self._nest(self._sop_repo.find_recent(), steps)
            profiles = self._profile_repo.get_all()
        except EntityReaderError:
            raise
        except Exception as e:
            self._logger.error(f"Error building snapshot: {e}")
            raise EntityReaderError(f"Error building snapshot: {e}") from e

        invalid = sum(repo.invalid_record_count for repo in self._repositories)
        if invalid:
            self._logger.warning(f"{invalid} invalid rows were skipped")

        snapshot = Snapshot(
            sops=sops,
            steps=steps,
            completion_events=events,
            profiles=profiles,
            captured_at=now or _utc_now(),
            invalid_record_count=invalid,
        )
        self._logger.info(
            f"Snapshot captured: {len(sops)} SOPs, {len(steps)} steps, "
            f"{len(events)} completion events, {len(profiles)} profiles"
        )
        return snapshot

    def get_data_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all loaded data.

        Returns:
            Dict[str, Any]: Data summary statistics
        """
        self._ensure_connected()
        return {
            "sops": {
                **self._sop_repo.get_data_summary(),
                "by_status": self._sop_repo.get_status_counts(),
            },
            "steps": self._step_repo.get_data_summary(),
            "completions": self._completion_repo.get_data_summary(),
            "profiles": self._profile_repo.get_data_summary(),
        }

    def export_summary(self, file_path: Union[str, Path]) -> None:
        """Write the data summary as JSON."""
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(self.get_data_summary(), f, indent=4)

    def _with_events(self, step: Step, events_by_step: Dict[str, List[CompletionEvent]]) -> Step:
        return step.model_copy(update={"completion_events": list(events_by_step.get(step.id, []))})

    def _nest(self, sops: List[Sop], steps: Optional[List[Step]] = None) -> List[Sop]:
        """Attach ordered steps (events embedded) to each SOP."""
        if steps is None:
            events_by_step = self._completion_repo.group_by_step()
            steps = [self._with_events(s, events_by_step) for s in self._step_repo.get_all()]

        steps_by_sop: Dict[str, List[Step]] = {}
        for step in sorted(steps, key=lambda s: s.position_key):
            steps_by_sop.setdefault(step.sop_id, []).append(step)

        return [sop.model_copy(update={"steps": steps_by_sop.get(sop.id, [])}) for sop in sops]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
