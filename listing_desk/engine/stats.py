"""Dashboard overview counters."""

from __future__ import annotations

from listing_desk.models.enums import ListingStatus
from listing_desk.models.listing import CreditBalance, ListingStats, PropertyRecord


def summarize(
    records: list[PropertyRecord],
    balance: CreditBalance | None = None,
) -> ListingStats:
    """Count listings by status and add up views and credits."""
    balance = balance or CreditBalance()
    by_status: dict[str, int] = {}
    for record in records:
        by_status[record.status] = by_status.get(record.status, 0) + 1

    return ListingStats(
        total=len(records),
        active=by_status.get(ListingStatus.ACTIVE.value, 0),
        pending=by_status.get(ListingStatus.PENDING.value, 0),
        inactive=by_status.get(ListingStatus.INACTIVE.value, 0),
        featured=sum(1 for r in records if r.is_featured),
        total_views=sum(r.views_count or 0 for r in records),
        listing_credits=balance.listing_credits,
        boosting_credits=balance.boosting_credits,
    )
