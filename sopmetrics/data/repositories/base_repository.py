"""
Base repository for the SOP metrics system.

This module provides the BaseRepository abstract class that serves as the
foundation for all entity-specific repositories. It defines common read
operations over the in-memory store and the row-to-model conversion that
turns untyped store rows into validated entities exactly once.
"""

import functools
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from sopmetrics.data.db import RowStore
from sopmetrics.data.exceptions import EntityReaderError, InvalidRecordError

# Type variable for the model type
T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T], ABC):
    """
    Base repository for data access.

    Rows that fail validation are skipped, logged and remembered so the
    number of rejected rows can be reported next to the computed metrics.

    Attributes:
        _collection_name (str): Name of the data collection
        _model_class (Type[T]): Pydantic model class for this repository
        _db (RowStore): Store holding the raw rows
        _cache (Dict): In-memory cache for frequently accessed data
        _rejected (Dict): Reasons for rows that failed validation
    """

    def __init__(
        self,
        collection_name: str,
        model_class: Type[T],
        db: Optional[RowStore] = None,
        config: Optional[Any] = None,
    ):
        """
        Initialize the repository.

        Args:
            collection_name: Name of the data collection
            model_class: Pydantic model class to use for this repository
            db: Optional shared database
            config: Optional settings object providing data file paths
        """
        self._collection_name = collection_name
        self._model_class = model_class
        self._db = db if db is not None else RowStore()
        self._config = config
        self._logger = logging.getLogger(self.__class__.__name__)
        self._cache: Dict[str, Any] = {}
        self._rejected: Dict[int, str] = {}

    @property
    @abstractmethod
    def data_path_setting(self) -> str:
        """Name of the settings attribute holding this collection's file."""

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def collection(self):
        """Get the raw data collection."""
        return self._db[self._collection_name]

    def connect(self) -> None:
        """
        Load the collection from its configured JSON file if it is empty.

        Raises:
            EntityReaderError: If the configured file cannot be read
        """
        if self._db.count(self._collection_name) > 0:
            return

        file_path = getattr(self._config, self.data_path_setting, None) if self._config else None
        if file_path is None:
            self._logger.debug(f"No data file configured for {self._collection_name}")
            return

        if not Path(file_path).exists():
            self._logger.warning(f"Data file not found for {self._collection_name}: {file_path}")
            return

        self.load_data_from_file(file_path)

    def load_data_from_file(self, filepath: Union[str, Path]) -> int:
        """
        Load data from a JSON file into the collection.

        The file holds either a list of rows or a single row object.

        Args:
            filepath: Path to the JSON file

        Returns:
            int: Number of rows loaded

        Raises:
            EntityReaderError: If the file cannot be read or parsed
        """
        try:
            with open(filepath, "r", encoding="utf-8") as file:
                data = json.load(file)
        except (OSError, json.JSONDecodeError) as e:
            self._logger.error(f"Error loading data from file {filepath}: {e}")
            raise EntityReaderError(
                f"Could not load {self._collection_name} from {filepath}: {e}"
            ) from e

        rows = data if isinstance(data, list) else [data]
        self.load_records(rows)
        self._logger.info(f"Loaded {len(rows)} {self._collection_name} rows from {filepath}")
        return len(rows)

    def load_records(self, rows: List[Dict[str, Any]]) -> None:
        """
        Insert raw rows into the collection.

        Args:
            rows: Raw store rows

        Raises:
            EntityReaderError: If a row is not a JSON object
        """
        for row in rows:
            if not isinstance(row, dict):
                raise EntityReaderError(
                    f"{self._collection_name} rows must be objects, got {type(row).__name__}"
                )
        self.collection.insert_many(list(rows))
        self.clear_cache()

    def _to_model(self, data: Dict[str, Any]) -> Optional[T]:
        """
        Convert a raw row to a Pydantic model.

        Args:
            data: Raw row

        Returns:
            Optional[T]: Model instance, or None when the row is invalid
        """
        try:
            return self._model_class.model_validate(data)
        except ValidationError as e:
            error = InvalidRecordError(
                self._collection_name,
                data.get("id"),
                "; ".join(
                    f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}"
                    for err in e.errors()
                ),
            )
            if id(data) not in self._rejected:
                self._rejected[id(data)] = error.reason
                self._logger.warning(f"Skipping row: {error}")
            return None

    def _to_models(self, rows) -> List[T]:
        """Convert rows, dropping the invalid ones."""
        models = []
        for row in rows:
            model = self._to_model(row)
            if model is not None:
                models.append(model)
        return models

    # Cache decorator for query methods
    def _cache_result(func):
        """Decorator to cache results of repository methods."""

        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            cache_key = f"{func.__name__}:{args!r}:{sorted(kwargs.items())!r}"

            if cache_key in self._cache:
                return list(self._cache[cache_key])

            result = func(self, *args, **kwargs)
            self._cache[cache_key] = result
            return list(result)

        return wrapper

    @_cache_result
    def find_many(self, query: Optional[Dict[str, Any]] = None) -> List[T]:
        """
        Find all valid entities whose rows match the query.

        Args:
            query: Query dictionary over raw column names

        Returns:
            List[T]: Model instances in store order
        """
        return self._to_models(self.collection.find(query or {}))

    def find_by_id(self, id_value: Any) -> Optional[T]:
        """
        Find an entity by its ID.

        Args:
            id_value: Entity ID (compared as a string)

        Returns:
            Optional[T]: Model instance or None if not found or invalid
        """
        target = str(id_value)
        for model in self.get_all():
            if getattr(model, "id", None) == target:
                return model
        return None

    def get_all(self) -> List[T]:
        """Get all valid entities in the collection."""
        return self.find_many({})

    def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        """Count raw rows matching the query, valid or not."""
        return self.collection.count_documents(query or {})

    @property
    def invalid_record_count(self) -> int:
        """Number of distinct rows rejected so far."""
        return len(self._rejected)

    def validate_all(self) -> int:
        """
        Validate every row in the collection.

        Returns:
            int: Number of invalid rows
        """
        self.get_all()
        return self.invalid_record_count

    def clear_cache(self) -> None:
        """Clear the cache."""
        self._cache.clear()

    def get_data_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the data in the collection.

        Returns:
            Dict[str, Any]: Summary information
        """
        return {
            "collection": self._collection_name,
            "document_count": self.count(),
            "invalid_count": self.validate_all(),
            "model_type": self._model_class.__name__,
        }
