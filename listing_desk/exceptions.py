"""Custom exception hierarchy for listing-desk."""


class ListingDeskError(Exception):
    """Base exception for all listing-desk errors."""


class PreconditionFailedError(ListingDeskError):
    """Raised when an action violates a credit, status or selection gate."""


class RemoteMutationError(ListingDeskError):
    """Raised when a Record Store or Credit Ledger write fails."""


class RecordNotFoundError(RemoteMutationError):
    """Raised when a write targets a record id that does not exist."""


class ReloadError(ListingDeskError):
    """Raised when refreshing records or credits after an action fails."""


class ConfigurationError(ListingDeskError):
    """Raised when configuration is invalid or missing."""


class SinkError(ListingDeskError):
    """Raised when a sink operation fails."""
