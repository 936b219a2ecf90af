"""
Filter-Sort Engine for the owner dashboard.

Pure functions over an in-memory list of property records:
- Free-text search (case-insensitive substring, OR across fields)
- Exact status filter
- Stable sort by one of five keys

Nothing here performs I/O or mutates its input.
"""

from __future__ import annotations

from typing import Callable, Iterable

from listing_desk.models.listing import ALL, PropertyRecord, QueryState

# Fields searched by the free-text term
SEARCH_FIELDS = ("title", "city", "state", "property_type", "address")

# key function, descending
SORT_KEYS: dict[str, tuple[Callable[[PropertyRecord], object], bool]] = {
    "newest": (lambda r: _timestamp(r), True),
    "oldest": (lambda r: _timestamp(r), False),
    "price_high": (lambda r: r.price, True),
    "price_low": (lambda r: r.price, False),
    "views": (lambda r: r.views_count or 0, True),
}


def _timestamp(record: PropertyRecord) -> float:
    return record.created_at.timestamp() if record.created_at else 0.0


def matches_text(
    record: PropertyRecord,
    term: str,
    search_fields: Iterable[str] = SEARCH_FIELDS,
) -> bool:
    """Return True if ``term`` appears in any of ``search_fields``.

    ``term`` is expected to be stripped and lower-cased already.
    """
    for name in search_fields:
        value = getattr(record, name, None)
        if value and term in str(value).lower():
            return True
    return False


def filter_text(
    records: list[PropertyRecord],
    text: str,
    search_fields: Iterable[str] = SEARCH_FIELDS,
) -> list[PropertyRecord]:
    """Keep records matching the free-text term; a blank term keeps all."""
    term = (text or "").strip().lower()
    if not term:
        return list(records)
    search_fields = tuple(search_fields)
    return [r for r in records if matches_text(r, term, search_fields)]


def filter_status(records: list[PropertyRecord], status: str) -> list[PropertyRecord]:
    """Keep records whose status equals ``status`` exactly, unless it is ``"all"``."""
    status = getattr(status, "value", status)
    if status == ALL:
        return list(records)
    return [r for r in records if r.status == status]


def sort_records(records: list[PropertyRecord], sort_key: str) -> list[PropertyRecord]:
    """Stable sort by ``sort_key``; an unknown key leaves the order untouched."""
    sort_key = getattr(sort_key, "value", sort_key)
    entry = SORT_KEYS.get(sort_key)
    if entry is None:
        return list(records)
    key, descending = entry
    # sorted() is stable with reverse=True as well
    return sorted(records, key=key, reverse=descending)


def view(records: list[PropertyRecord], query: QueryState) -> list[PropertyRecord]:
    """Compute the visible, ordered subset of ``records`` for ``query``."""
    visible = filter_text(records, query.text)
    visible = filter_status(visible, query.status)
    return sort_records(visible, query.sort)
