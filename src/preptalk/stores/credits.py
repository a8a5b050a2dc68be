"""Fixed-balance credit ledger for local runs."""

from __future__ import annotations

import threading

from . import DebitResult


class LocalCreditLedger:
    """Single local user with a fixed number of generation credits."""

    def __init__(self, user_id: str | None = "local-user", balance: int = 1, cost: int = 1) -> None:
        self._user_id = user_id
        self._balance = balance
        self._cost = cost
        self._lock = threading.Lock()

    @property
    def balance(self) -> int:
        return self._balance

    def get_user_id(self) -> str | None:
        return self._user_id

    def has_sufficient_credits(self, user_id: str) -> bool:
        return user_id == self._user_id and self._balance >= self._cost

    def debit_credit(self, user_id: str) -> DebitResult:
        with self._lock:
            if user_id != self._user_id or self._balance < self._cost:
                return DebitResult(success=False, remaining=self._balance)
            self._balance -= self._cost
            return DebitResult(success=True, remaining=self._balance)
