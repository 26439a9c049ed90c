"""
SQLite-backed record repository.

Queries run in worker threads via ``asyncio.to_thread`` so the event loop
only suspends at I/O boundaries.
"""

import asyncio
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..models.analytics import DateWindow
from ..models.base import as_naive_utc
from ..models.records import Booking, Listing, Review, RewardLedgerEntry, User
from ..utils.secure_logging import get_structured_logger
from .base import BookingQuery, ListingQuery, RecordRepository, ReviewQuery, UserQuery

logger = get_structured_logger().get_logger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS bookings (
        id TEXT PRIMARY KEY,
        listing_id TEXT,
        guest_id TEXT,
        host_id TEXT,
        type TEXT NOT NULL,
        status TEXT NOT NULL,
        total_amount REAL,
        service_fee REAL,
        created_at TEXT,
        check_in TEXT,
        check_out TEXT,
        service_date TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS listings (
        id TEXT PRIMARY KEY,
        host_id TEXT,
        type TEXT NOT NULL,
        title TEXT,
        location TEXT,
        price REAL,
        rating REAL,
        review_count INTEGER,
        status TEXT DEFAULT 'active',
        is_draft INTEGER DEFAULT 0,
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        role TEXT NOT NULL,
        account_status TEXT DEFAULT 'active',
        display_name TEXT,
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reviews (
        id TEXT PRIMARY KEY,
        listing_id TEXT NOT NULL,
        rating REAL,
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reward_ledger (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        points_issued INTEGER DEFAULT 0,
        points_redeemed INTEGER DEFAULT 0,
        created_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_bookings_created_at ON bookings (strftime('%Y-%m-%d %H:%M:%f', created_at))",
    "CREATE INDEX IF NOT EXISTS idx_reviews_listing_id ON reviews (listing_id)",
    "CREATE INDEX IF NOT EXISTS idx_reward_ledger_created_at ON reward_ledger (strftime('%Y-%m-%d %H:%M:%f', created_at))",
)


class DatabaseConnection:
    """One shared SQLite connection, serialized with a lock."""

    def __init__(self, db_path: str = "marketplace.db", timeout: float = 30.0):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False, timeout=timeout)
        self._conn.row_factory = self._dict_factory

    @staticmethod
    def _dict_factory(cursor, row):
        """Convert row to dictionary"""
        return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}

    @contextmanager
    def get_connection(self):
        with self._lock:
            try:
                yield self._conn
            except Exception as e:
                self._conn.rollback()
                logger.error("Database error", error_type=type(e).__name__, db_path=self.db_path)
                raise
            else:
                self._conn.commit()

    def init_schema(self) -> None:
        with self.get_connection() as conn:
            for statement in SCHEMA:
                conn.execute(statement)

    def close(self) -> None:
        self._conn.close()


def to_db_timestamp(moment: Optional[datetime]) -> Optional[str]:
    """Stored form of a timestamp: naive UTC in ISO 8601."""
    moment = as_naive_utc(moment)
    return moment.isoformat() if moment is not None else None


def _moment(column: str) -> str:
    # SQLite normalizes ISO 8601 variants and shifts UTC offsets, so stored
    # text compares the way DateWindow.contains does
    return f"strftime('%Y-%m-%d %H:%M:%f', {column})"


def _bound(moment: datetime) -> str:
    moment = as_naive_utc(moment)
    return f"{moment:%Y-%m-%d %H:%M:%S}.{moment.microsecond // 1000:03d}"


def _window_clause(column: str, window: DateWindow) -> Tuple[str, List[Any]]:
    return f"{_moment(column)} >= ? AND {_moment(column)} < ?", [_bound(window.start), _bound(window.end)]


def _in_clause(column: str, values: Iterable[str]) -> Tuple[str, List[Any]]:
    values = sorted(values)
    if not values:
        return "0", []
    return f"{column} IN ({', '.join('?' for _ in values)})", values


class SQLiteRecordRepository(RecordRepository):
    """RecordRepository over the tables created by ``DatabaseConnection.init_schema``."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _select(self, table: str, clauses: Sequence[Tuple[str, List[Any]]], suffix: str = "") -> List[Dict[str, Any]]:
        where = " AND ".join(c for c, _ in clauses) or "1"
        params = [p for _, ps in clauses for p in ps]
        with self.db.get_connection() as conn:
            return conn.execute(f"SELECT * FROM {table} WHERE {where} {suffix}", params).fetchall()

    def _booking_clauses(self, query: BookingQuery) -> List[Tuple[str, List[Any]]]:
        clauses = [_window_clause("created_at", query.window)]
        if query.host_id is not None:
            clauses.append(("host_id = ?", [query.host_id]))
        if query.listing_id is not None:
            clauses.append(("listing_id = ?", [query.listing_id]))
        if query.booking_type is not None:
            clauses.append(("type = ?", [query.booking_type]))
        if query.statuses is not None:
            clauses.append(_in_clause("status", query.statuses))
        return clauses

    async def fetch_bookings(self, query: BookingQuery) -> List[Booking]:
        rows = await asyncio.to_thread(
            self._select, "bookings", self._booking_clauses(query), f"ORDER BY {_moment('created_at')}"
        )
        return [Booking.model_validate(row) for row in rows]

    def _count(self, clauses: List[Tuple[str, List[Any]]]) -> int:
        where = " AND ".join(c for c, _ in clauses)
        params = [p for _, ps in clauses for p in ps]
        with self.db.get_connection() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS n FROM bookings WHERE {where}", params).fetchone()
        return int(row["n"] or 0)

    async def count_bookings(self, listing_id: str, window: DateWindow,
                             statuses: Optional[FrozenSet[str]] = None) -> int:
        query = BookingQuery(window=window, listing_id=listing_id, statuses=statuses)
        return await asyncio.to_thread(self._count, self._booking_clauses(query))

    def _grouped_counts(self, clauses: List[Tuple[str, List[Any]]]) -> Dict[str, int]:
        where = " AND ".join(c for c, _ in clauses)
        params = [p for _, ps in clauses for p in ps]
        with self.db.get_connection() as conn:
            rows = conn.execute(
                f"""
                SELECT listing_id, COUNT(*) AS n
                  FROM bookings
                 WHERE {where} AND listing_id IS NOT NULL
              GROUP BY listing_id
                """,
                params,
            ).fetchall()
        return {row["listing_id"]: int(row["n"]) for row in rows}

    async def count_bookings_by_listing(self, window: DateWindow,
                                        statuses: Optional[FrozenSet[str]] = None) -> Dict[str, int]:
        query = BookingQuery(window=window, statuses=statuses)
        return await asyncio.to_thread(self._grouped_counts, self._booking_clauses(query))

    async def fetch_listings(self, query: ListingQuery) -> List[Listing]:
        clauses: List[Tuple[str, List[Any]]] = []
        if not query.include_drafts:
            clauses.append(("COALESCE(is_draft, 0) = 0", []))
        if query.host_id is not None:
            clauses.append(("host_id = ?", [query.host_id]))
        if query.listing_type is not None:
            clauses.append(("type = ?", [query.listing_type]))
        if query.status is not None:
            clauses.append(("status = ?", [query.status]))
        if query.created_within is not None:
            clauses.append(_window_clause("created_at", query.created_within))
        if query.ids is not None:
            clauses.append(_in_clause("id", query.ids))
        rows = await asyncio.to_thread(self._select, "listings", clauses, "ORDER BY id")
        return [Listing.model_validate(row) for row in rows]

    async def fetch_users(self, query: UserQuery) -> List[User]:
        clauses: List[Tuple[str, List[Any]]] = []
        if query.role is not None:
            clauses.append(("role = ?", [query.role]))
        if query.account_status is not None:
            clauses.append(("account_status = ?", [query.account_status]))
        if query.ids is not None:
            clauses.append(_in_clause("id", query.ids))
        rows = await asyncio.to_thread(self._select, "users", clauses, "ORDER BY id")
        return [User.model_validate(row) for row in rows]

    async def fetch_reviews(self, query: ReviewQuery) -> List[Review]:
        clauses: List[Tuple[str, List[Any]]] = []
        if query.window is not None:
            clauses.append(_window_clause("created_at", query.window))
        if query.listing_ids is not None:
            clauses.append(_in_clause("listing_id", query.listing_ids))
        rows = await asyncio.to_thread(self._select, "reviews", clauses)
        return [Review.model_validate(row) for row in rows]

    async def fetch_ledger(self, window: DateWindow, user_id: Optional[str] = None) -> List[RewardLedgerEntry]:
        clauses = [_window_clause("created_at", window)]
        if user_id is not None:
            clauses.append(("user_id = ?", [user_id]))
        rows = await asyncio.to_thread(self._select, "reward_ledger", clauses, f"ORDER BY {_moment('created_at')}")
        return [RewardLedgerEntry.model_validate(row) for row in rows]
