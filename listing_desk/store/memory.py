"""In-memory Record Store and Credit Ledger.

Used as fakes in tests and for local demos. Both keep a log of every call
they receive and can be told to fail the next call to a given operation,
which is how partial failures are exercised.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable

from listing_desk.exceptions import RecordNotFoundError, RemoteMutationError
from listing_desk.models.enums import CreditType, TransactionType
from listing_desk.models.listing import CreditBalance, CreditTransaction, PropertyRecord
from listing_desk.store.base import CreditLedger, RecordStore

logger = logging.getLogger(__name__)


class _CallRecorder:
    """Call log plus one-shot fault injection."""

    READ_OPERATIONS: tuple[str, ...] = ()

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self._faults: dict[str, list[Exception]] = {}

    def fail_next(self, operation: str, error: Exception | None = None) -> None:
        """Make the next call to ``operation`` raise ``error``."""
        error = error or RemoteMutationError(f"{operation} failed")
        self._faults.setdefault(operation, []).append(error)

    def calls_to(self, operation: str) -> list[tuple]:
        """Logged calls for one operation."""
        return [c for c in self.calls if c[0] == operation]

    @property
    def mutation_calls(self) -> list[tuple]:
        """Logged calls that write, excluding reads."""
        return [c for c in self.calls if c[0] not in self.READ_OPERATIONS]

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        pending = self._faults.get(operation)
        if pending:
            error = pending.pop(0)
            logger.debug("Injected failure for %s: %s", operation, error)
            raise error


class InMemoryRecordStore(_CallRecorder, RecordStore):
    """Dictionary-backed Record Store."""

    READ_OPERATIONS = ("query",)

    def __init__(
        self,
        records: Iterable[PropertyRecord] = (),
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__()
        self._clock = clock
        self._records: dict[str, PropertyRecord] = {}
        for record in records:
            self._records[record.id] = replace(record)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> PropertyRecord | None:
        """Direct lookup, not logged as a remote call."""
        return self._records.get(record_id)

    async def query(
        self,
        owner_id: str | None = None,
        status: str | None = None,
        listing_type: str | None = None,
    ) -> list[PropertyRecord]:
        self._record("query", owner_id, status, listing_type)
        result = [
            replace(r) for r in self._records.values()
            if (owner_id is None or r.owner_id == owner_id)
            and (status is None or r.status == status)
            and (listing_type is None or r.listing_type == listing_type)
        ]
        result.sort(
            key=lambda r: r.created_at.timestamp() if r.created_at else 0.0,
            reverse=True,
        )
        return result

    async def insert(self, record: PropertyRecord) -> PropertyRecord:
        self._record("insert", record)
        now = self._clock()
        stored = replace(record, id=uuid.uuid4().hex, created_at=now, updated_at=now)
        self._records[stored.id] = stored
        return replace(stored)

    async def update(self, record_id: str, **fields) -> None:
        self._record("update", record_id, fields)
        if record_id not in self._records:
            raise RecordNotFoundError(f"Property {record_id} not found")
        self._apply(record_id, fields)

    async def update_many(self, record_ids: Iterable[str], **fields) -> None:
        record_ids = list(record_ids)
        self._record("update_many", record_ids, fields)
        # Same as ``WHERE id IN (...)``: unknown ids are skipped
        for record_id in record_ids:
            if record_id in self._records:
                self._apply(record_id, fields)

    async def delete(self, record_id: str) -> None:
        self._record("delete", record_id)
        self._records.pop(record_id, None)

    async def delete_many(self, record_ids: Iterable[str]) -> None:
        record_ids = list(record_ids)
        self._record("delete_many", record_ids)
        for record_id in record_ids:
            self._records.pop(record_id, None)

    async def increment_views(self, record_id: str) -> None:
        self._record("increment_views", record_id)
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Property {record_id} not found")
        record.views_count = (record.views_count or 0) + 1

    def _apply(self, record_id: str, fields: dict) -> None:
        self._records[record_id] = replace(
            self._records[record_id], **fields, updated_at=self._clock()
        )


class InMemoryCreditLedger(_CallRecorder, CreditLedger):
    """Dictionary-backed Credit Ledger with an append-only history."""

    READ_OPERATIONS = ("get_balance", "history")

    def __init__(
        self,
        balances: dict[str, CreditBalance] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__()
        self._clock = clock
        self._balances: dict[str, CreditBalance] = dict(balances or {})
        self._history: list[CreditTransaction] = []

    def set_balance(self, owner_id: str, listing_credits: int = 0, boosting_credits: int = 0) -> None:
        """Seed an owner's balance, not logged as a remote call or in history."""
        self._balances[owner_id] = CreditBalance(listing_credits, boosting_credits)

    def peek(self, owner_id: str) -> CreditBalance:
        """Current balance without logging a call."""
        return replace(self._balances.get(owner_id, CreditBalance()))

    async def get_balance(self, owner_id: str) -> CreditBalance:
        self._record("get_balance", owner_id)
        return self.peek(owner_id)

    async def decrement(
        self, owner_id: str, credit_type: str, amount: int = 1, reason: str = ""
    ) -> None:
        self._record("decrement", owner_id, credit_type, amount)
        if amount <= 0:
            raise RemoteMutationError(f"Decrement amount must be positive, got {amount}")
        self._move(owner_id, credit_type, -amount, performed_by=owner_id, reason=reason)

    async def adjust(
        self,
        owner_id: str,
        credit_type: str,
        delta: int,
        performed_by: str | None = None,
        reason: str = "",
    ) -> CreditBalance:
        self._record("adjust", owner_id, credit_type, delta)
        if delta == 0:
            raise RemoteMutationError("Credit adjustment must not be zero")
        self._move(owner_id, credit_type, delta, performed_by=performed_by, reason=reason)
        return self.peek(owner_id)

    async def history(
        self, owner_id: str | None = None, limit: int | None = None
    ) -> list[CreditTransaction]:
        self._record("history", owner_id, limit)
        entries = [
            replace(t) for t in reversed(self._history)
            if owner_id is None or t.owner_id == owner_id
        ]
        return entries if limit is None else entries[:limit]

    def _move(self, owner_id: str, credit_type: str, delta: int, performed_by: str | None, reason: str) -> None:
        balance = self._balances.get(owner_id)
        if balance is None:
            raise RemoteMutationError(f"Profile {owner_id} not found")

        credit_type = CreditType(credit_type)
        current = balance.available(credit_type.column)
        if current + delta < 0:
            raise RemoteMutationError(
                f"Profile {owner_id} has {current} {credit_type.value} credits, cannot deduct {-delta}"
            )
        setattr(balance, credit_type.column, current + delta)
        self._history.append(CreditTransaction(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            action_type=TransactionType.CREDIT_ADD if delta > 0 else TransactionType.CREDIT_DEDUCT,
            credit_type=credit_type,
            amount=abs(delta),
            balance_after=current + delta,
            performed_by=performed_by,
            reason=reason,
            created_at=self._clock(),
        ))
