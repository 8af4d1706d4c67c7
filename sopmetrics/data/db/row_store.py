"""
Row store backing the SOP metrics repositories.

Raw rows from the SOP, step, completion and profile exports are kept in
named tables. Tables answer filter documents written in the same dialect
the upstream document store uses (field equality, ``$``-operators,
``$and``/``$or`` and dotted paths), so repositories can express their
lookups as queries instead of hand-written loops.
"""

import logging
import operator
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

Row = Dict[str, Any]
Query = Dict[str, Any]

_MISSING = object()


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    """Wrap an ordering comparison so that absent values never satisfy it."""

    def check(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        try:
            return compare(actual, expected)
        except TypeError:
            return False

    return check


FIELD_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "$eq": operator.eq,
    "$ne": operator.ne,
    "$gt": _ordered(operator.gt),
    "$gte": _ordered(operator.ge),
    "$lt": _ordered(operator.lt),
    "$lte": _ordered(operator.le),
    "$in": lambda actual, choices: actual in choices,
    "$nin": lambda actual, choices: actual not in choices,
    "$exists": lambda actual, wanted: (actual is not None) is bool(wanted),
}


def resolve_path(row: Row, path: str) -> Any:
    """Follow a dotted path into nested objects; ``None`` when any hop is absent."""
    current: Any = row
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key, _MISSING)
        if current is _MISSING:
            return None
    return current


def _is_operator_block(condition: Any) -> bool:
    return isinstance(condition, dict) and any(str(k).startswith("$") for k in condition)


def row_matches(row: Row, query: Query) -> bool:
    """
    Evaluate a filter document against one row.

    Plain values compare by equality, except against list-valued fields
    where they test membership. Unknown operators raise ``ValueError``.
    """
    for key, condition in query.items():
        if key == "$and":
            if not all(row_matches(row, clause) for clause in condition):
                return False
            continue
        if key == "$or":
            if not any(row_matches(row, clause) for clause in condition):
                return False
            continue

        actual = resolve_path(row, key)
        if _is_operator_block(condition):
            for op_name, expected in condition.items():
                check = FIELD_OPERATORS.get(op_name)
                if check is None:
                    raise ValueError(f"Unsupported query operator: {op_name}")
                if not check(actual, expected):
                    return False
        elif isinstance(actual, list):
            if condition not in actual:
                return False
        elif actual != condition:
            return False
    return True


class RowTable:
    """Append-only table of raw rows for one entity kind."""

    def __init__(self, name: str):
        self.name = name
        self.rows: List[Row] = []
        self._logger = logging.getLogger(f"{self.__class__.__name__}.{name}")

    def insert_many(self, rows: Iterable[Row]) -> None:
        batch = list(rows)
        self.rows.extend(batch)
        self._logger.debug(f"Appended {len(batch)} rows ({len(self.rows)} total)")

    def find(self, query: Optional[Query] = None) -> Iterator[Row]:
        """
        Lazily yield rows matching ``query`` in insertion order.

        The returned iterator is single-pass.
        """
        query = query or {}
        return (row for row in list(self.rows) if row_matches(row, query))

    def count_documents(self, query: Optional[Query] = None) -> int:
        return sum(1 for _ in self.find(query))


class RowStore:
    """Named tables shared by the repositories of one reader."""

    def __init__(self):
        self.tables: Dict[str, RowTable] = {}

    def __getitem__(self, table_name: str) -> RowTable:
        if table_name not in self.tables:
            self.tables[table_name] = RowTable(table_name)
        return self.tables[table_name]

    def count(self, table_name: str, query: Optional[Query] = None) -> int:
        return self[table_name].count_documents(query)
