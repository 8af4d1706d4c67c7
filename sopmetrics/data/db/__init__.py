from .row_store import RowStore, RowTable, row_matches

__all__ = ["RowStore", "RowTable", "row_matches"]
