"""Consumer-facing browse filters over active listings."""

from __future__ import annotations

from listing_desk.engine.filters import filter_text
from listing_desk.models.enums import ListingStatus
from listing_desk.models.listing import ALL, BrowseFilters, PropertyRecord

BROWSE_SEARCH_FIELDS = ("title", "city", "state")


def matches_filters(record: PropertyRecord, filters: BrowseFilters) -> bool:
    """Return True if ``record`` passes every filter in ``filters``."""
    if filters.listing_type and record.listing_type != filters.listing_type:
        return False
    if filters.property_type != ALL and record.property_type != filters.property_type:
        return False
    if filters.state != ALL and record.state != filters.state:
        return False
    if filters.min_bedrooms is not None and record.bedrooms < filters.min_bedrooms:
        return False
    if filters.price_min is not None and record.price < filters.price_min:
        return False
    if filters.price_max is not None and record.price > filters.price_max:
        return False
    return True


def _placement(record: PropertyRecord) -> tuple:
    # premium banner first, then featured, then newest
    created = record.created_at.timestamp() if record.created_at else 0.0
    return (not record.is_premium, not record.is_featured, -created)


def browse(
    records: list[PropertyRecord],
    filters: BrowseFilters | None = None,
    text: str = "",
) -> list[PropertyRecord]:
    """Active listings matching ``filters`` and ``text``, promoted ones first.

    Parameters
    ----------
    records : list[PropertyRecord]
        Records loaded for the consumer view.
    filters : BrowseFilters | None
        Consumer filters; ``None`` applies none.
    text : str
        Free-text term matched against title, city and state.

    Returns
    -------
    list[PropertyRecord]
        Matching records, premium first, then featured, then newest.
    """
    filters = filters or BrowseFilters()
    active = [r for r in records if r.status == ListingStatus.ACTIVE.value]
    visible = [r for r in filter_text(active, text, BROWSE_SEARCH_FIELDS) if matches_filters(r, filters)]
    return sorted(visible, key=_placement)
