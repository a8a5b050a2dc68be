"\"\"\"Record store and credit ledger collaborators.\"\"\""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RecordStore(Protocol):
    """Opaque table/record persistence contract."""

    def create_record(self, table: str, fields: dict[str, Any]) -> str:
        """Insert a record and return its id."""

    def read_record(self, table: str, record_id: str) -> dict[str, Any] | None:
        """Return a copy of the record, or ``None`` when it does not exist."""

    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> None:
        """Merge ``fields`` into an existing record."""


@dataclass(frozen=True, slots=True)
class DebitResult:
    success: bool
    remaining: int


@runtime_checkable
class CreditLedger(Protocol):
    """Per-request identity and credit checks."""

    def get_user_id(self) -> str | None: ...

    def has_sufficient_credits(self, user_id: str) -> bool: ...

    def debit_credit(self, user_id: str) -> DebitResult: ...


from .credits import LocalCreditLedger  # noqa: E402
from .json_file import JsonFileRecordStore  # noqa: E402
from .memory import InMemoryRecordStore  # noqa: E402

__all__ = [
    "CreditLedger",
    "DebitResult",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    "LocalCreditLedger",
    "RecordStore",
]
