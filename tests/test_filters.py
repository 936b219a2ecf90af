"""Tests for the Filter-Sort Engine."""

import copy
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import BASE_TIME
from listing_desk.engine import filter_status, filter_text, sort_records, view
from listing_desk.models import QueryState


def ids(records) -> list[str]:
    return [r.id for r in records]


class TestView:
    """Scenario tests for ``view``."""

    def test_empty_search_returns_all_newest_first(self, sample_records) -> None:
        """Blank text, all statuses, newest sort keeps every record."""
        result = view(sample_records, QueryState(text="", status="all", sort="newest"))

        assert ids(result) == ["prop-002", "prop-001", "prop-003"]

    def test_no_match_returns_empty(self, sample_records) -> None:
        result = view(sample_records, QueryState(text="zzzzz", status="all"))

        assert result == []

    def test_empty_input(self) -> None:
        assert view([], QueryState(text="condo", status="active")) == []

    def test_idempotent(self, sample_records) -> None:
        """Running the same query twice yields the same order."""
        query = QueryState(text="a", status="all", sort="price_low")

        assert ids(view(sample_records, query)) == ids(view(sample_records, query))

    def test_does_not_mutate_input(self, sample_records) -> None:
        snapshot = copy.deepcopy(sample_records)

        view(sample_records, QueryState(text="condo", status="active", sort="price_high"))

        assert sample_records == snapshot

    def test_returns_records_unmodified(self, sample_records) -> None:
        result = view(sample_records, QueryState(status="pending"))

        assert result == [sample_records[1]]

    def test_text_and_status_combined(self, sample_records) -> None:
        result = view(sample_records, QueryState(text="kuala", status="inactive"))

        assert ids(result) == ["prop-003"]


class TestTextFilter:
    """Tests for the free-text filter."""

    @pytest.mark.parametrize(
        "term, expected",
        [
            ("sunny", ["prop-001"]),          # title
            ("george", ["prop-002"]),         # city
            ("SELANGOR", ["prop-001"]),       # state, case-insensitive
            ("studio", ["prop-003"]),         # property type
            ("lebuh chulia", ["prop-002"]),   # address
        ],
    )
    def test_matches_any_field(self, sample_records, term, expected) -> None:
        assert ids(filter_text(sample_records, term)) == expected

    def test_whitespace_only_term_keeps_all(self, sample_records) -> None:
        assert ids(filter_text(sample_records, "   ")) == ids(sample_records)

    def test_term_is_trimmed(self, sample_records) -> None:
        assert ids(filter_text(sample_records, "  penang ")) == ["prop-002"]

    def test_record_matching_no_field_excluded(self, make_record) -> None:
        record = make_record(
            "prop-x", title="Loft", city="Ipoh", state="Perak",
            property_type="apartment", address="1 Jalan Sultan",
        )

        assert filter_text([record], "villa") == []

    def test_description_is_not_searched(self, make_record) -> None:
        record = make_record("prop-x", description="near the beach")

        assert filter_text([record], "beach") == []


class TestStatusFilter:
    """Tests for the exact status filter."""

    def test_all_keeps_everything(self, sample_records) -> None:
        assert len(filter_status(sample_records, "all")) == 3

    def test_exact_match_only(self, make_record) -> None:
        records = [
            make_record("a", status="active"),
            make_record("b", status="inactive"),
            make_record("c", status="Active"),
        ]

        assert ids(filter_status(records, "active")) == ["a"]

    def test_accepts_enum(self, sample_records) -> None:
        from listing_desk.models import ListingStatus

        assert ids(filter_status(sample_records, ListingStatus.PENDING)) == ["prop-002"]


class TestSort:
    """Tests for sorting and its stability."""

    def test_oldest(self, sample_records) -> None:
        assert ids(sort_records(sample_records, "oldest")) == ["prop-003", "prop-001", "prop-002"]

    def test_price_high(self, sample_records) -> None:
        assert ids(sort_records(sample_records, "price_high")) == ["prop-002", "prop-001", "prop-003"]

    def test_price_low(self, sample_records) -> None:
        assert ids(sort_records(sample_records, "price_low")) == ["prop-003", "prop-001", "prop-002"]

    def test_views_treats_missing_as_zero(self, sample_records) -> None:
        result = sort_records(sample_records, "views")

        assert result[0].id == "prop-001"
        # prop-002 (0) and prop-003 (None) tie, input order kept
        assert ids(result[1:]) == ["prop-002", "prop-003"]

    def test_unknown_key_is_identity(self, sample_records) -> None:
        assert ids(sort_records(sample_records, "alphabetical")) == ids(sample_records)

    @pytest.mark.parametrize("sort_key", ["newest", "oldest", "price_high", "price_low", "views"])
    def test_stable_for_equal_keys(self, make_record, sort_key) -> None:
        """Records with identical sort values keep their input order."""
        records = [
            make_record(f"tie-{i}", price=Decimal("100"), views_count=5, created_at=BASE_TIME)
            for i in range(6)
        ]
        records.insert(3, make_record(
            "other", price=Decimal("900"), views_count=50, created_at=BASE_TIME + timedelta(days=1),
        ))

        result = [r.id for r in sort_records(records, sort_key) if r.id != "other"]

        assert result == [f"tie-{i}" for i in range(6)]

    def test_missing_created_at_sorts_as_oldest(self, make_record) -> None:
        records = [make_record("dated"), make_record("undated", created_at=None)]

        assert ids(sort_records(records, "newest")) == ["dated", "undated"]
