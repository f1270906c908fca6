# hooksheet/store.py
"""
In-memory, append-only record store.

Rows are kept in insertion order; readers choose newest-first (the display and
default export order) or oldest-first. The column union is maintained
incrementally on every append and reset on clear, so `column_union()` never
rescans the rows.
"""

import threading
from typing import List, Set, Tuple

from hooksheet.errors import DuplicateRowError, ShapeError
from hooksheet.schemas import ProcessedRow
from hooksheet.validator import is_flat_record


class RecordStore:
    """Thread-safe store; append, clear and reads are serialized behind one lock."""

    def __init__(self):
        self._rows: List[ProcessedRow] = []
        self._columns: Set[str] = set()
        # every id ever accepted, including cleared rows
        self._seen_ids: Set[str] = set()
        self._last_timestamp = ""
        self._lock = threading.Lock()

    def append(self, row: ProcessedRow) -> ProcessedRow:
        """
        Insert a fully validated row. Returns the row as stored, which may carry
        a later timestamp than the one given (timestamps never go backwards).

        Raises:
          ShapeError         if row.data is not a flat record
          DuplicateRowError  if row.id was already used in this store
        """
        if not is_flat_record(row.data):
            raise ShapeError("Refusing to store a row whose data is not a flat record.")
        with self._lock:
            if row.id in self._seen_ids:
                raise DuplicateRowError(f"Row id '{row.id}' already exists in the store.")
            update = {"data": dict(row.data)}
            if row.timestamp < self._last_timestamp:
                update["timestamp"] = self._last_timestamp
            stored = row.model_copy(update=update)
            self._rows.append(stored)
            self._seen_ids.add(stored.id)
            self._columns.update(stored.data.keys())
            self._last_timestamp = stored.timestamp
            return stored

    def clear(self) -> int:
        """Drop every row. Returns how many were removed; clearing an empty store is a no-op."""
        with self._lock:
            removed = len(self._rows)
            self._rows = []
            self._columns = set()
            return removed

    def all(self, newest_first: bool = True) -> List[ProcessedRow]:
        with self._lock:
            return self._ordered(newest_first)

    def column_union(self) -> List[str]:
        with self._lock:
            return sorted(self._columns)

    def snapshot(self, newest_first: bool = True) -> Tuple[List[ProcessedRow], List[str]]:
        """Rows and their column union taken under a single lock acquisition."""
        with self._lock:
            return self._ordered(newest_first), sorted(self._columns)

    def _ordered(self, newest_first: bool) -> List[ProcessedRow]:
        # readers get their own data dicts; the frozen model alone does not stop item assignment
        rows = reversed(self._rows) if newest_first else self._rows
        return [r.model_copy(update={"data": dict(r.data)}) for r in rows]

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)
