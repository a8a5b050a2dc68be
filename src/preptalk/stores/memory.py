"""Thread-safe in-process record store."""

from __future__ import annotations

import copy
import threading
import uuid
from typing import Any


class InMemoryRecordStore:
    """Tables of records keyed by generated ids. Reads return deep copies."""

    def __init__(self, tables: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self._tables: dict[str, dict[str, dict[str, Any]]] = copy.deepcopy(tables) if tables else {}
        self._lock = threading.Lock()

    def create_record(self, table: str, fields: dict[str, Any]) -> str:
        record_id = str(fields.get("id") or uuid.uuid4())
        with self._lock:
            self._tables.setdefault(table, {})[record_id] = {**copy.deepcopy(fields), "id": record_id}
        return record_id

    def read_record(self, table: str, record_id: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._tables.get(table, {}).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            records = self._tables.get(table, {})
            if record_id not in records:
                raise KeyError(f"{table}/{record_id} does not exist")
            records[record_id].update(copy.deepcopy(fields))

    def records(self, table: str) -> list[dict[str, Any]]:
        """All records in ``table``, in insertion order."""
        with self._lock:
            return copy.deepcopy(list(self._tables.get(table, {}).values()))

    def snapshot(self) -> dict[str, dict[str, dict[str, Any]]]:
        with self._lock:
            return copy.deepcopy(self._tables)
