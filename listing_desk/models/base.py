"""Base models shared across listing-desk."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Event:
    """Standard event envelope for action outcomes."""

    event_id: str
    event_type: str  # entity.action (e.g., listing.duplicate)
    event_time: datetime
    source: str  # Component that produced the event
    subject: str  # Record or owner id affected
    data: dict
    metadata: dict = field(default_factory=dict)
