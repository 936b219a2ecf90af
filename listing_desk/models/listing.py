"""Property listing, credit balance and query state models."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from decimal import Decimal

from listing_desk.models.enums import ListingStatus, ListingType, PropertyType, TransactionType

# Sentinel for "no status filter"
ALL = "all"

# Fields the Record Store assigns on write
STORE_ASSIGNED_FIELDS = ("id", "created_at", "updated_at")


@dataclass
class PropertyRecord:
    """One property listing as returned by the Record Store.

    Status, property type and listing type are stored as their lowercase
    string values so records read back from the backend compare equal to
    records built in code.
    """

    id: str
    owner_id: str
    title: str
    description: str = ""
    property_type: str = PropertyType.HOUSE.value
    listing_type: str = ListingType.SALE.value
    price: Decimal = Decimal("0")
    bedrooms: int = 0
    bathrooms: int = 0
    sqft: int = 1
    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "Malaysia"
    furnished: str | None = None
    amenities: frozenset[str] = field(default_factory=frozenset)
    image_urls: tuple[str, ...] = ()
    main_image_url: str | None = None
    status: str = ListingStatus.PENDING.value
    is_featured: bool = False
    is_premium: bool = False
    views_count: int | None = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        for name in ("status", "property_type", "listing_type"):
            value = getattr(self, name)
            if hasattr(value, "value"):
                setattr(self, name, value.value)
        if not isinstance(self.price, Decimal):
            self.price = Decimal(str(self.price))
        if not isinstance(self.amenities, frozenset):
            self.amenities = frozenset(self.amenities or ())
        if not isinstance(self.image_urls, tuple):
            self.image_urls = tuple(self.image_urls or ())

    @property
    def primary_image(self) -> str | None:
        """Explicit main image, else the first gallery image."""
        if self.main_image_url:
            return self.main_image_url
        return self.image_urls[0] if self.image_urls else None

    def evolve(self, **changes) -> PropertyRecord:
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    def descriptive_fields(self) -> dict:
        """Fields an owner may edit or carry over to a copy."""
        excluded = set(STORE_ASSIGNED_FIELDS) | {
            "owner_id", "status", "is_featured", "is_premium", "views_count",
        }
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name not in excluded}


@dataclass
class CreditBalance:
    """An owner's listing and boosting credit counters."""

    listing_credits: int = 0
    boosting_credits: int = 0

    def available(self, column: str) -> int:
        """Return the counter stored under ``column`` (e.g. ``listing_credits``)."""
        return getattr(self, column)


@dataclass
class CreditTransaction:
    """One movement of an owner's credits, as kept in the transaction history.

    ``amount`` is always positive; ``action_type`` says which way it went.
    ``performed_by`` is the admin for grants and the owner for spending.
    """

    id: str
    owner_id: str
    action_type: str
    credit_type: str
    amount: int
    balance_after: int | None = None
    performed_by: str | None = None
    reason: str = ""
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        self.action_type = getattr(self.action_type, "value", self.action_type)
        self.credit_type = getattr(self.credit_type, "value", self.credit_type)

    @property
    def signed_amount(self) -> int:
        """Amount with the sign of the movement."""
        return -self.amount if self.action_type == TransactionType.CREDIT_DEDUCT.value else self.amount


@dataclass(frozen=True)
class QueryState:
    """Client-only search state for the owner dashboard."""

    text: str = ""
    status: str = ALL
    sort: str = "newest"


@dataclass(frozen=True)
class BrowseFilters:
    """Consumer-side filters applied to active listings."""

    listing_type: str | None = None
    property_type: str = ALL
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    min_bedrooms: int | None = None
    state: str = ALL


@dataclass
class ListingStats:
    """Overview counters shown on the owner dashboard."""

    total: int = 0
    active: int = 0
    pending: int = 0
    inactive: int = 0
    featured: int = 0
    total_views: int = 0
    listing_credits: int = 0
    boosting_credits: int = 0
