"""Pure search, filter, sort and summary functions over listings."""

from listing_desk.engine.browse import browse, matches_filters
from listing_desk.engine.filters import (
    SEARCH_FIELDS,
    filter_status,
    filter_text,
    matches_text,
    sort_records,
    view,
)
from listing_desk.engine.stats import summarize

__all__ = [
    "SEARCH_FIELDS",
    "browse",
    "filter_status",
    "filter_text",
    "matches_filters",
    "matches_text",
    "sort_records",
    "summarize",
    "view",
]
