"""Record store persisted to a single JSON document, used by the CLI."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import structlog

from .memory import InMemoryRecordStore


class JsonFileRecordStore(InMemoryRecordStore):
    """In-memory tables written through to ``path`` after every change."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        tables: dict[str, dict[str, dict[str, Any]]] = {}
        if self._path.exists() and self._path.stat().st_size > 0:
            with self._path.open("r", encoding="utf-8") as handle:
                tables = json.load(handle)
            if not isinstance(tables, dict):
                raise ValueError(f"Store file {self._path} must contain a JSON object")
        super().__init__(tables)
        self._logger = structlog.get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def create_record(self, table: str, fields: dict[str, Any]) -> str:
        record_id = super().create_record(table, fields)
        self._flush()
        return record_id

    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> None:
        super().update_record(table, record_id, fields)
        self._flush()

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(self.snapshot(), handle, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self._path)
        self._logger.debug("store.flushed", path=str(self._path))
