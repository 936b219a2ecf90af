"""Listing session, action orchestrator and notifications."""

from listing_desk.actions.notifications import Notification, NotificationCenter
from listing_desk.actions.orchestrator import (
    PRECONDITION_FAILED,
    RELOAD_FAILED,
    REMOTE_MUTATION_FAILED,
    ActionOutcome,
    ListingActions,
    duplicate_of,
    validate_listing,
)
from listing_desk.actions.session import ListingSession

__all__ = [
    "PRECONDITION_FAILED",
    "RELOAD_FAILED",
    "REMOTE_MUTATION_FAILED",
    "ActionOutcome",
    "ListingActions",
    "ListingSession",
    "Notification",
    "NotificationCenter",
    "duplicate_of",
    "validate_listing",
]
