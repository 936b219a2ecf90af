"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

import pytest

from listing_desk.actions import ListingActions, ListingSession, NotificationCenter
from listing_desk.models import PropertyRecord
from listing_desk.store import InMemoryCreditLedger, InMemoryRecordStore

BASE_TIME = datetime(2025, 10, 1, 12, 0, 0)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StoreClock:
    """Datetime clock that ticks one minute per call, so inserts are ordered."""

    def __init__(self, start: datetime = BASE_TIME + timedelta(days=30)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def owner_id() -> str:
    """Sample agent id."""
    return "agent-test-001"


@pytest.fixture
def make_record(owner_id: str) -> Callable[..., PropertyRecord]:
    """Factory for records with sensible defaults."""

    def _make(record_id: str, **overrides) -> PropertyRecord:
        values = {
            "id": record_id,
            "owner_id": owner_id,
            "title": f"Listing {record_id}",
            "description": "Spacious unit close to the LRT",
            "property_type": "condo",
            "listing_type": "sale",
            "price": Decimal("500000"),
            "bedrooms": 3,
            "bathrooms": 2,
            "sqft": 1200,
            "address": "12 Jalan Ampang",
            "city": "Kuala Lumpur",
            "state": "Kuala Lumpur",
            "postal_code": "50450",
            "amenities": {"pool", "gym"},
            "image_urls": ["https://img.example/1.jpg", "https://img.example/2.jpg"],
            "status": "active",
            "views_count": 10,
            "created_at": BASE_TIME,
            "updated_at": BASE_TIME,
        }
        values.update(overrides)
        return PropertyRecord(**values)

    return _make


@pytest.fixture
def sample_records(make_record: Callable[..., PropertyRecord]) -> list[PropertyRecord]:
    """Three records with statuses active, pending, inactive."""
    return [
        make_record(
            "prop-001",
            title="Sunny Condo",
            city="Petaling Jaya",
            state="Selangor",
            status="active",
            price=Decimal("650000"),
            views_count=120,
            created_at=BASE_TIME - timedelta(days=2),
        ),
        make_record(
            "prop-002",
            title="Family House",
            property_type="house",
            city="George Town",
            state="Penang",
            address="8 Lebuh Chulia",
            status="pending",
            price=Decimal("980000"),
            views_count=0,
            created_at=BASE_TIME,
        ),
        make_record(
            "prop-003",
            title="City Studio",
            property_type="studio",
            listing_type="rent",
            city="Kuala Lumpur",
            state="Kuala Lumpur",
            status="inactive",
            price=Decimal("1800"),
            views_count=None,
            created_at=BASE_TIME - timedelta(days=5),
        ),
    ]


@pytest.fixture
def store(sample_records: list[PropertyRecord]) -> InMemoryRecordStore:
    """Record store seeded with the sample records."""
    return InMemoryRecordStore(sample_records, clock=StoreClock())


@pytest.fixture
def ledger(owner_id: str) -> InMemoryCreditLedger:
    """Ledger with 5 listing and 3 boosting credits for the owner."""
    ledger = InMemoryCreditLedger()
    ledger.set_balance(owner_id, listing_credits=5, boosting_credits=3)
    return ledger


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(store: InMemoryRecordStore, ledger: InMemoryCreditLedger, owner_id: str) -> ListingSession:
    """Agent session, not yet loaded."""
    return ListingSession(store, ledger, owner_id=owner_id)


@pytest.fixture
def actions(session: ListingSession, clock: FakeClock) -> ListingActions:
    """Orchestrator over the agent session."""
    return ListingActions(session, notifications=NotificationCenter(clock=clock))
