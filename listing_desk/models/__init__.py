"""Domain models for listing-desk."""

from listing_desk.models.base import Event
from listing_desk.models.enums import (
    CreditType,
    Furnishing,
    ListingStatus,
    ListingType,
    NotificationLevel,
    PropertyType,
    SortKey,
    TransactionType,
    ViewRole,
)
from listing_desk.models.listing import (
    ALL,
    BrowseFilters,
    CreditBalance,
    CreditTransaction,
    ListingStats,
    PropertyRecord,
    QueryState,
)

__all__ = [
    "ALL",
    "BrowseFilters",
    "CreditBalance",
    "CreditTransaction",
    "CreditType",
    "Event",
    "Furnishing",
    "ListingStats",
    "ListingStatus",
    "ListingType",
    "NotificationLevel",
    "PropertyRecord",
    "PropertyType",
    "QueryState",
    "SortKey",
    "TransactionType",
    "ViewRole",
]
