"""Enumeration types for listing entities."""

from enum import Enum


class ListingStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SOLD = "sold"
    RENTED = "rented"


class PropertyType(str, Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    VILLA = "villa"
    STUDIO = "studio"
    SHOPHOUSE = "shophouse"


class ListingType(str, Enum):
    SALE = "sale"
    RENT = "rent"


class Furnishing(str, Enum):
    FURNISHED = "furnished"
    PARTIALLY_FURNISHED = "partially_furnished"
    UNFURNISHED = "unfurnished"


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_HIGH = "price_high"
    PRICE_LOW = "price_low"
    VIEWS = "views"


class CreditType(str, Enum):
    """Credit counter on an owner's profile."""

    LISTING = "listing"
    BOOSTING = "boosting"

    @property
    def column(self) -> str:
        """Profile column holding this counter."""
        return f"{self.value}_credits"


class ViewRole(str, Enum):
    """Whose listings a session loads."""

    AGENT = "agent"
    ADMIN = "admin"
    CONSUMER = "consumer"


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class TransactionType(str, Enum):
    """Direction of a credit movement in the transaction history."""

    CREDIT_ADD = "credit_add"
    CREDIT_DEDUCT = "credit_deduct"
