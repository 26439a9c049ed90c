"""
Pytest configuration and fixtures for the marketplace analytics test suite
"""

from datetime import date, datetime

import pytest

from marketplace_analytics.config.settings import AnalyticsConfig, AppConfig, DatabaseConfig, Settings
from marketplace_analytics.models.records import Booking, Listing, Review, RewardLedgerEntry, User
from marketplace_analytics.repositories.memory_repository import InMemoryRecordRepository
from marketplace_analytics.utils.date_ranges import resolve_range

# Dashboard window for TODAY is 2024-05-17 .. 2024-06-15 inclusive;
# its predecessor covers 2024-04-17 .. 2024-05-16.
TODAY = date(2024, 6, 15)


def make_booking(id, listing_id, status, total_amount, service_fee, created_at,
                 type="stays", guest_id="G1", host_id="H1") -> Booking:
    return Booking(
        id=id,
        listing_id=listing_id,
        guest_id=guest_id,
        host_id=host_id,
        type=type,
        status=status,
        total_amount=total_amount,
        service_fee=service_fee,
        created_at=created_at,
    )


def make_listing(id, rating=0.0, review_count=0, type="stays", host_id="H1", price=100.0,
                 status="active", is_draft=False, created_at=None, title=None) -> Listing:
    return Listing(
        id=id,
        host_id=host_id,
        type=type,
        title=title or f"Listing {id}",
        location="Cebu",
        price=price,
        rating=rating,
        review_count=review_count,
        status=status,
        is_draft=is_draft,
        created_at=created_at,
    )


LISTINGS = [
    make_listing("L1", 4.8, 200, price=100.0, created_at=datetime(2024, 6, 1)),
    make_listing("L2", 4.8, 50, price=80.0, created_at=datetime(2024, 5, 1)),
    make_listing("L3", 3.2, 10, type="experiences", host_id="H2", price=50.0, created_at=datetime(2024, 6, 10)),
    make_listing("L4", 0.0, 0, type="services", host_id="H2", price=30.0, created_at=datetime(2024, 3, 1)),
    make_listing("L5", 5.0, 12, is_draft=True, created_at=datetime(2024, 6, 2)),
    make_listing("L6", 2.0, 4, type="experiences", host_id="H2", status="inactive",
                 created_at=datetime(2024, 1, 1)),
]

USERS = [
    User(id="H1", role="host", display_name="Ana Host", created_at=datetime(2024, 6, 3)),
    User(id="H2", role="host", display_name="Ben Host", created_at=datetime(2023, 11, 20)),
    User(id="G1", role="guest", display_name="Gia Guest", created_at=datetime(2024, 1, 5)),
    User(id="G2", role="guest", created_at=datetime(2024, 2, 5)),
    User(id="A1", role="admin", display_name="Admin", created_at=datetime(2023, 1, 1)),
]

BOOKINGS = [
    # current window
    make_booking("B1", "L1", "confirmed", 1000.0, 100.0, datetime(2024, 6, 10, 10, 0)),
    make_booking("B2", "L1", "completed", 1000.0, 100.0, datetime(2024, 6, 11, 10, 0), guest_id="G2"),
    make_booking("B3", "L2", "confirmed", 800.0, 80.0, datetime(2024, 6, 12, 10, 0)),
    make_booking("B4", "L3", "refunded", 500.0, 50.0, datetime(2024, 6, 13, 10, 0),
                 type="experiences", host_id="H2"),
    make_booking("B5", "L3", "pending", 500.0, 50.0, datetime(2024, 6, 14, 9, 0),
                 type="experiences", guest_id="G2", host_id="H2"),
    make_booking("B6", "L4", "confirmed", 300.0, 30.0, datetime(2024, 6, 14, 12, 0),
                 type="services", host_id="H2"),
    make_booking("B7", "GONE", "confirmed", 200.0, 20.0, datetime(2024, 6, 15, 8, 0),
                 type="services", guest_id="ghost", host_id="H2"),
    # previous window
    make_booking("P1", "L1", "confirmed", 1000.0, 100.0, datetime(2024, 5, 1, 10, 0)),
    make_booking("P2", "L3", "refunded", 500.0, 50.0, datetime(2024, 5, 2, 10, 0),
                 type="experiences", guest_id="G2", host_id="H2"),
    # revenue trend only
    make_booking("O1", "L1", "confirmed", 1000.0, 100.0, datetime(2024, 2, 10, 10, 0)),
]

REVIEWS = [
    Review(id="R1", listing_id="L1", rating=5.0, created_at=datetime(2024, 6, 12)),
    Review(id="R2", listing_id="L1", rating=4.0, created_at=datetime(2024, 6, 13)),
    Review(id="R3", listing_id="L3", rating=3.0, created_at=datetime(2024, 6, 14)),
]

LEDGER = [
    RewardLedgerEntry(user_id="G1", points_issued=100, points_redeemed=25, created_at=datetime(2024, 6, 1)),
    RewardLedgerEntry(user_id="G1", points_issued=50, points_redeemed=0, created_at=datetime(2024, 5, 1)),
]


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file"""
    return Settings(
        database=DatabaseConfig(path=":memory:", connection_timeout=5.0),
        analytics=AnalyticsConfig(
            dashboard_preset="last30days",
            enrichment_strategy="batched",
            top_rated_limit=4,
            low_rated_limit=3,
        ),
        app=AppConfig(environment="testing", log_level="WARNING"),
    )


@pytest.fixture
def repository() -> InMemoryRecordRepository:
    """In-memory store seeded with the sample marketplace"""
    return InMemoryRecordRepository(
        bookings=BOOKINGS,
        listings=LISTINGS,
        users=USERS,
        reviews=REVIEWS,
        ledger=LEDGER,
    )


@pytest.fixture
def dashboard_range():
    return resolve_range("last30days", TODAY)


@pytest.fixture
def current_window(dashboard_range):
    return dashboard_range.current


class FailingRepository(InMemoryRecordRepository):
    """Repository whose booking reads fail, for error propagation tests"""

    async def fetch_bookings(self, query):
        self.calls["fetch_bookings"] += 1
        raise ConnectionError("store unavailable")

    async def count_bookings_by_listing(self, window, statuses=None):
        self.calls["count_bookings_by_listing"] += 1
        raise ConnectionError("store unavailable")

    async def count_bookings(self, listing_id, window, statuses=None):
        self.calls["count_bookings"] += 1
        raise ConnectionError("store unavailable")


@pytest.fixture
def failing_repository() -> FailingRepository:
    return FailingRepository(listings=LISTINGS, users=USERS, reviews=REVIEWS, ledger=LEDGER)
