"""
In-memory record repository, used for fixtures and local previews.
"""

from collections import Counter
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from ..models.analytics import DateWindow
from ..models.records import Booking, Listing, Review, RewardLedgerEntry, User
from .base import BookingQuery, ListingQuery, RecordRepository, ReviewQuery, UserQuery


def _coerce(model, items: Optional[Iterable[Any]]) -> List[Any]:
    """Accept model instances or raw store documents."""
    return [item if isinstance(item, model) else model.model_validate(item) for item in (items or [])]


class InMemoryRecordRepository(RecordRepository):
    """Repository over plain lists of records.

    ``calls`` counts method invocations so callers can see how many
    round-trips a computation needed.
    """

    def __init__(
        self,
        bookings: Optional[Iterable[Any]] = None,
        listings: Optional[Iterable[Any]] = None,
        users: Optional[Iterable[Any]] = None,
        reviews: Optional[Iterable[Any]] = None,
        ledger: Optional[Iterable[Any]] = None,
    ):
        self.bookings: List[Booking] = _coerce(Booking, bookings)
        self.listings: List[Listing] = _coerce(Listing, listings)
        self.users: List[User] = _coerce(User, users)
        self.reviews: List[Review] = _coerce(Review, reviews)
        self.ledger: List[RewardLedgerEntry] = _coerce(RewardLedgerEntry, ledger)
        self.calls: Counter = Counter()

    async def fetch_bookings(self, query: BookingQuery) -> List[Booking]:
        self.calls["fetch_bookings"] += 1
        return [b for b in self.bookings if query.matches(b)]

    async def count_bookings(self, listing_id: str, window: DateWindow,
                             statuses: Optional[FrozenSet[str]] = None) -> int:
        self.calls["count_bookings"] += 1
        query = BookingQuery(window=window, listing_id=listing_id, statuses=statuses)
        return sum(1 for b in self.bookings if query.matches(b))

    async def count_bookings_by_listing(self, window: DateWindow,
                                        statuses: Optional[FrozenSet[str]] = None) -> Dict[str, int]:
        self.calls["count_bookings_by_listing"] += 1
        query = BookingQuery(window=window, statuses=statuses)
        counts = Counter(b.listing_id for b in self.bookings if b.listing_id and query.matches(b))
        return dict(counts)

    async def fetch_listings(self, query: ListingQuery) -> List[Listing]:
        self.calls["fetch_listings"] += 1
        return [listing for listing in self.listings if query.matches(listing)]

    async def fetch_users(self, query: UserQuery) -> List[User]:
        self.calls["fetch_users"] += 1
        return [u for u in self.users if query.matches(u)]

    async def fetch_reviews(self, query: ReviewQuery) -> List[Review]:
        self.calls["fetch_reviews"] += 1
        return [r for r in self.reviews if query.matches(r)]

    async def fetch_ledger(self, window: DateWindow, user_id: Optional[str] = None) -> List[RewardLedgerEntry]:
        self.calls["fetch_ledger"] += 1
        return [
            entry for entry in self.ledger
            if window.contains(entry.created_at) and (user_id is None or entry.user_id == user_id)
        ]
