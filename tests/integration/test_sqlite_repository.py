"""
Integration tests for the SQLite record repository
"""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import BOOKINGS, LEDGER, LISTINGS, REVIEWS, TODAY, USERS
from marketplace_analytics.container import Container
from marketplace_analytics.models.analytics import DateWindow
from marketplace_analytics.models.records import CONFIRMED_STATUSES
from marketplace_analytics.repositories.base import BookingQuery, ListingQuery, ReviewQuery, UserQuery
from marketplace_analytics.repositories.memory_repository import InMemoryRecordRepository
from marketplace_analytics.repositories.sqlite_repository import (
    DatabaseConnection,
    SQLiteRecordRepository,
    to_db_timestamp,
)
from marketplace_analytics.services.analytics_service import AnalyticsService


def _store(db: DatabaseConnection) -> None:
    """Write the sample marketplace into the tables."""
    with db.get_connection() as conn:
        for booking in BOOKINGS:
            conn.execute(
                "INSERT INTO bookings (id, listing_id, guest_id, host_id, type, status, total_amount, "
                "service_fee, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (booking.id, booking.listing_id, booking.guest_id, booking.host_id, booking.type,
                 booking.status, booking.total_amount, booking.service_fee, to_db_timestamp(booking.created_at)),
            )
        for listing in LISTINGS:
            conn.execute(
                "INSERT INTO listings (id, host_id, type, title, location, price, rating, review_count, "
                "status, is_draft, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (listing.id, listing.host_id, listing.type, listing.title, listing.location, listing.price,
                 listing.rating, listing.review_count, listing.status, int(listing.is_draft),
                 to_db_timestamp(listing.created_at)),
            )
        for user in USERS:
            conn.execute(
                "INSERT INTO users (id, role, account_status, display_name, created_at) VALUES (?, ?, ?, ?, ?)",
                (user.id, user.role, user.account_status, user.display_name, to_db_timestamp(user.created_at)),
            )
        for review in REVIEWS:
            conn.execute(
                "INSERT INTO reviews (id, listing_id, rating, created_at) VALUES (?, ?, ?, ?)",
                (review.id, review.listing_id, review.rating, to_db_timestamp(review.created_at)),
            )
        for entry in LEDGER:
            conn.execute(
                "INSERT INTO reward_ledger (user_id, points_issued, points_redeemed, created_at) "
                "VALUES (?, ?, ?, ?)",
                (entry.user_id, entry.points_issued, entry.points_redeemed, to_db_timestamp(entry.created_at)),
            )
        # a row with missing amounts
        conn.execute(
            "INSERT INTO bookings (id, listing_id, type, status, created_at) VALUES (?, ?, ?, ?, ?)",
            ("N1", "L2", "stays", "pending", "2023-01-01T00:00:00"),
        )


@pytest.fixture
def db(tmp_path):
    connection = DatabaseConnection(str(tmp_path / "marketplace.db"), timeout=5.0)
    connection.init_schema()
    _store(connection)
    yield connection
    connection.close()


@pytest.fixture
def sqlite_repository(db) -> SQLiteRecordRepository:
    return SQLiteRecordRepository(db)


class TestSQLiteRepository:
    """Queries are bounded and filtered in SQL"""

    @pytest.mark.asyncio
    async def test_fetch_bookings_in_window(self, sqlite_repository, current_window):
        bookings = await sqlite_repository.fetch_bookings(BookingQuery(window=current_window))
        assert sorted(b.id for b in bookings) == ["B1", "B2", "B3", "B4", "B5", "B6", "B7"]

    @pytest.mark.asyncio
    async def test_window_end_is_exclusive(self, sqlite_repository):
        window = DateWindow(datetime(2024, 6, 10), datetime(2024, 6, 10, 10, 0))
        assert await sqlite_repository.fetch_bookings(BookingQuery(window=window)) == []

    @pytest.mark.asyncio
    async def test_booking_filters(self, sqlite_repository, current_window):
        query = BookingQuery(window=current_window, host_id="H2", statuses=CONFIRMED_STATUSES)
        bookings = await sqlite_repository.fetch_bookings(query)
        assert [b.id for b in bookings] == ["B6", "B7"]

    @pytest.mark.asyncio
    async def test_missing_amounts_read_as_zero(self, sqlite_repository):
        window = DateWindow(datetime(2023, 1, 1), datetime(2023, 1, 2))
        (booking,) = await sqlite_repository.fetch_bookings(BookingQuery(window=window))
        assert booking.total_amount == 0
        assert booking.service_fee == 0

    @pytest.mark.asyncio
    async def test_counts(self, sqlite_repository, current_window):
        grouped = await sqlite_repository.count_bookings_by_listing(current_window, CONFIRMED_STATUSES)
        assert grouped == {"L1": 2, "L2": 1, "L4": 1, "GONE": 1}
        assert await sqlite_repository.count_bookings("L3", current_window) == 2

    @pytest.mark.asyncio
    async def test_listings_exclude_drafts_by_default(self, sqlite_repository):
        listings = await sqlite_repository.fetch_listings(ListingQuery())
        assert [listing.id for listing in listings] == ["L1", "L2", "L3", "L4", "L6"]
        with_drafts = await sqlite_repository.fetch_listings(ListingQuery(include_drafts=True))
        assert len(with_drafts) == 6

    @pytest.mark.asyncio
    async def test_users_and_reviews(self, sqlite_repository):
        hosts = await sqlite_repository.fetch_users(UserQuery(role="host"))
        assert [u.display_name for u in hosts] == ["Ana Host", "Ben Host"]
        reviews = await sqlite_repository.fetch_reviews(ReviewQuery(listing_ids=frozenset({"L1"})))
        assert sorted(r.rating for r in reviews) == [4.0, 5.0]
        assert await sqlite_repository.fetch_reviews(ReviewQuery(listing_ids=frozenset())) == []

    @pytest.mark.asyncio
    async def test_ledger(self, sqlite_repository, current_window):
        entries = await sqlite_repository.fetch_ledger(current_window, user_id="G1")
        assert [e.points_issued for e in entries] == [100]


class TestTimestampForms:
    """Stored timestamps land in the same window as DateWindow.contains puts them"""

    ROWS = [
        ("aware_before", "2024-06-01T05:00:00+08:00"),
        ("aware_inside", "2024-06-02T06:00:00+08:00"),
        ("space", "2024-06-01 12:00:00"),
        ("dateonly", "2024-06-01"),
        ("fraction", "2024-06-01T23:59:59.999500"),
        ("next_day", "2024-06-02T00:00:00"),
    ]

    @pytest.fixture
    def mixed_db(self, tmp_path):
        connection = DatabaseConnection(str(tmp_path / "mixed.db"), timeout=5.0)
        connection.init_schema()
        with connection.get_connection() as conn:
            conn.executemany(
                "INSERT INTO bookings (id, listing_id, type, status, created_at) "
                "VALUES (?, 'L1', 'stays', 'confirmed', ?)",
                self.ROWS,
            )
        yield connection
        connection.close()

    @pytest.mark.asyncio
    async def test_window_membership_matches_in_memory(self, mixed_db):
        window = DateWindow(datetime(2024, 6, 1), datetime(2024, 6, 2))
        documents = [
            {"id": row_id, "listing_id": "L1", "type": "stays", "status": "confirmed", "created_at": created_at}
            for row_id, created_at in self.ROWS
        ]
        in_memory = await InMemoryRecordRepository(bookings=documents).fetch_bookings(BookingQuery(window=window))
        from_sqlite = await SQLiteRecordRepository(mixed_db).fetch_bookings(BookingQuery(window=window))

        expected = {"aware_inside", "space", "dateonly", "fraction"}
        assert {b.id for b in in_memory} == expected
        assert {b.id for b in from_sqlite} == expected

    @pytest.mark.asyncio
    async def test_counts_follow_the_same_window(self, mixed_db):
        repository = SQLiteRecordRepository(mixed_db)
        window = DateWindow(datetime(2024, 6, 1), datetime(2024, 6, 2))
        assert await repository.count_bookings("L1", window) == 4
        assert await repository.count_bookings_by_listing(window) == {"L1": 4}

    @pytest.mark.asyncio
    async def test_rows_come_back_in_utc_order(self, mixed_db):
        window = DateWindow(datetime(2024, 5, 31), datetime(2024, 6, 3))
        bookings = await SQLiteRecordRepository(mixed_db).fetch_bookings(BookingQuery(window=window))
        assert [b.id for b in bookings] == ["aware_before", "dateonly", "space", "aware_inside", "fraction", "next_day"]

    def test_stored_form_is_naive_utc(self):
        manila = timezone(timedelta(hours=8))
        assert to_db_timestamp(datetime(2024, 6, 1, 5, 0, tzinfo=manila)) == "2024-05-31T21:00:00"
        assert to_db_timestamp(datetime(2024, 6, 1, 12, 30)) == "2024-06-01T12:30:00"
        assert to_db_timestamp(None) is None


class TestServiceOverSQLite:
    """The same dashboard whichever store backs it"""

    @pytest.mark.asyncio
    async def test_dashboard_matches_in_memory(self, sqlite_repository, repository, test_settings):
        from_sqlite = await AnalyticsService(sqlite_repository, settings=test_settings).get_dashboard_data(TODAY)
        from_memory = await AnalyticsService(repository, settings=test_settings).get_dashboard_data(TODAY)
        assert from_sqlite.stats == from_memory.stats
        assert from_sqlite.top_rated_listings == from_memory.top_rated_listings
        assert [b.id for b in from_sqlite.recent_bookings] == [b.id for b in from_memory.recent_bookings]

    @pytest.mark.asyncio
    async def test_container_wiring(self, tmp_path, test_settings):
        settings = test_settings.model_copy(
            update={"database": test_settings.database.model_copy(update={"path": str(tmp_path / "c.db")})}
        )
        container = Container()
        container.configure(settings)
        try:
            service = container.get_analytics_service()
            report = await service.generate_financial_report_data("last7days", today=TODAY)
            assert report.transactions == 0
            assert container.get_exporter("json").export(report)
        finally:
            container.close()
