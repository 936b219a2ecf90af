"""Collaborator interfaces for the hosted backend.

The orchestrator only ever talks to these two abstract types, so it can be
exercised against the in-memory fakes as well as the Postgres adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from listing_desk.models.listing import CreditBalance, CreditTransaction, PropertyRecord


class RecordStore(ABC):
    """Remote collection of property records."""

    @abstractmethod
    async def query(
        self,
        owner_id: str | None = None,
        status: str | None = None,
        listing_type: str | None = None,
    ) -> list[PropertyRecord]:
        """Return matching records, newest ``created_at`` first."""

    @abstractmethod
    async def insert(self, record: PropertyRecord) -> PropertyRecord:
        """Insert ``record`` and return it with id and timestamps assigned."""

    @abstractmethod
    async def update(self, record_id: str, **fields) -> None:
        """Update fields of one record.

        Raises
        ------
        RecordNotFoundError
            If ``record_id`` does not exist.
        """

    @abstractmethod
    async def update_many(self, record_ids: Iterable[str], **fields) -> None:
        """Apply the same field update to every id in one call."""

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Remove one record."""

    @abstractmethod
    async def delete_many(self, record_ids: Iterable[str]) -> None:
        """Remove every id in one call."""

    @abstractmethod
    async def increment_views(self, record_id: str) -> None:
        """Add one to a record's view counter."""


class CreditLedger(ABC):
    """Remote per-owner listing and boosting credit counters.

    Every change to a counter is also written to the transaction history.
    """

    @abstractmethod
    async def get_balance(self, owner_id: str) -> CreditBalance:
        """Return the owner's current balance."""

    @abstractmethod
    async def decrement(
        self, owner_id: str, credit_type: str, amount: int = 1, reason: str = ""
    ) -> None:
        """Subtract ``amount`` from one counter when the owner spends credits.

        Not atomic with any record mutation issued alongside it.
        """

    @abstractmethod
    async def adjust(
        self,
        owner_id: str,
        credit_type: str,
        delta: int,
        performed_by: str | None = None,
        reason: str = "",
    ) -> CreditBalance:
        """Add ``delta`` (negative to remove) on an admin's behalf.

        Returns the balance after the change.

        Raises
        ------
        RemoteMutationError
            If ``delta`` is zero, the profile is unknown, or the counter
            would go negative.
        """

    @abstractmethod
    async def history(
        self, owner_id: str | None = None, limit: int | None = None
    ) -> list[CreditTransaction]:
        """Credit movements, newest first; every owner's when ``owner_id`` is None."""
