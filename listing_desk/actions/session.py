"""Cached view of one user's listings and credits."""

from __future__ import annotations

import logging
from dataclasses import replace

from listing_desk.engine import browse, summarize, view
from listing_desk.exceptions import ConfigurationError, ReloadError
from listing_desk.models.enums import ListingStatus, ViewRole
from listing_desk.models.listing import (
    BrowseFilters,
    CreditBalance,
    CreditTransaction,
    ListingStats,
    PropertyRecord,
    QueryState,
)
from listing_desk.store.base import CreditLedger, RecordStore

logger = logging.getLogger(__name__)


class ListingSession:
    """Read-only cache of records and balance for one role.

    The role decides what a reload fetches:

    - agent: the owner's listings and the owner's credit balance
    - admin: every listing, no balance
    - consumer: active listings only (optionally one listing type), no balance

    Each reload takes a generation ticket; a reload that finishes after a
    newer one has started is discarded instead of overwriting fresher data.
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: CreditLedger,
        role: ViewRole | str = ViewRole.AGENT,
        owner_id: str | None = None,
        listing_type: str | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.role = ViewRole(role)
        self.owner_id = owner_id
        self.listing_type = getattr(listing_type, "value", listing_type)

        if self.role == ViewRole.AGENT and not owner_id:
            raise ConfigurationError("An agent session needs an owner_id")

        self.records: list[PropertyRecord] = []
        self.balance = CreditBalance()
        self.query = QueryState()
        self.loaded_generation = 0
        self._generation = 0

    def _store_filter(self) -> dict:
        if self.role == ViewRole.AGENT:
            return {"owner_id": self.owner_id}
        if self.role == ViewRole.CONSUMER:
            return {"status": ListingStatus.ACTIVE.value, "listing_type": self.listing_type}
        return {}

    async def reload(self) -> bool:
        """Refetch records and balance.

        Returns
        -------
        bool
            True if the result was applied, False if a newer reload
            superseded it.

        Raises
        ------
        ReloadError
            If either collaborator call fails; cached data is left as is.
        """
        self._generation += 1
        ticket = self._generation

        try:
            records = await self.store.query(**self._store_filter())
            if self.role == ViewRole.AGENT:
                balance = await self.ledger.get_balance(self.owner_id)
            else:
                balance = CreditBalance()
        except Exception as e:
            logger.error("Reload %d failed: %s", ticket, e)
            raise ReloadError(f"Could not refresh listings: {e}") from e

        if ticket != self._generation:
            logger.debug("Discarding reload %d, superseded by %d", ticket, self._generation)
            return False

        self.records = records
        self.balance = balance
        self.loaded_generation = ticket
        logger.debug("Reload %d applied: %d records", ticket, len(records))
        return True

    async def credit_history(
        self, owner_id: str | None = None, limit: int | None = None
    ) -> list[CreditTransaction]:
        """Credit movements, newest first.

        An agent always sees its own history; an admin sees one owner's or,
        with no ``owner_id``, everyone's. Consumers have no credits.

        Raises
        ------
        ReloadError
            If the ledger cannot be read.
        """
        if self.role == ViewRole.CONSUMER:
            return []
        if self.role == ViewRole.AGENT:
            owner_id = self.owner_id
        try:
            return await self.ledger.history(owner_id, limit)
        except Exception as e:
            logger.error("Credit history for %s failed: %s", owner_id or "all owners", e)
            raise ReloadError(f"Could not load credit history: {e}") from e

    def find(self, record_id: str) -> PropertyRecord | None:
        """Cached record by id."""
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def set_query(self, **changes) -> QueryState:
        """Update text, status or sort of the current query."""
        self.query = replace(self.query, **changes)
        return self.query

    def visible(self) -> list[PropertyRecord]:
        """Records for the current query, filtered and sorted."""
        return view(self.records, self.query)

    def browse(self, filters: BrowseFilters | None = None, text: str = "") -> list[PropertyRecord]:
        """Consumer ordering of the cached records."""
        return browse(self.records, filters, text)

    def stats(self) -> ListingStats:
        return summarize(self.records, self.balance)
