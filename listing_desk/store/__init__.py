"""Record Store and Credit Ledger interfaces and implementations.

The Postgres adapters live in ``listing_desk.store.postgres`` and are not
imported here so the in-memory fakes work without a database driver.
"""

from listing_desk.store.base import CreditLedger, RecordStore
from listing_desk.store.memory import InMemoryCreditLedger, InMemoryRecordStore

__all__ = ["CreditLedger", "InMemoryCreditLedger", "InMemoryRecordStore", "RecordStore"]
