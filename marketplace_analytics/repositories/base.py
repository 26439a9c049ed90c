"""
Record repository interface and query objects.

The engine never touches the store directly: every read goes through an
injected RecordRepository. Transactional records (bookings, reviews, ledger
entries) are always queried with a bound, either a date window or an owner.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..models.analytics import DateWindow
from ..models.records import Booking, Listing, Review, RewardLedgerEntry, User


@dataclass(frozen=True)
class BookingQuery:
    """Bookings created inside ``window``, optionally narrowed further."""

    window: DateWindow
    host_id: Optional[str] = None
    listing_id: Optional[str] = None
    booking_type: Optional[str] = None
    statuses: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        if self.statuses is not None:
            object.__setattr__(self, "statuses", status_values(self.statuses))

    def matches(self, booking: Booking) -> bool:
        if not self.window.contains(booking.created_at):
            return False
        if self.host_id is not None and booking.host_id != self.host_id:
            return False
        if self.listing_id is not None and booking.listing_id != self.listing_id:
            return False
        if self.booking_type is not None and booking.type != self.booking_type:
            return False
        if self.statuses is not None and booking.status not in self.statuses:
            return False
        return True


@dataclass(frozen=True)
class ListingQuery:
    """Listings are reference data; drafts are left out unless asked for."""

    host_id: Optional[str] = None
    listing_type: Optional[str] = None
    status: Optional[str] = None
    include_drafts: bool = False
    created_within: Optional[DateWindow] = None
    ids: Optional[FrozenSet[str]] = None

    def matches(self, listing: Listing) -> bool:
        if not self.include_drafts and listing.is_draft:
            return False
        if self.host_id is not None and listing.host_id != self.host_id:
            return False
        if self.listing_type is not None and listing.type != self.listing_type:
            return False
        if self.status is not None and listing.status != self.status:
            return False
        if self.created_within is not None and not self.created_within.contains(listing.created_at):
            return False
        if self.ids is not None and listing.id not in self.ids:
            return False
        return True


@dataclass(frozen=True)
class UserQuery:
    role: Optional[str] = None
    account_status: Optional[str] = None
    ids: Optional[FrozenSet[str]] = None

    def matches(self, user: User) -> bool:
        if self.role is not None and user.role != self.role:
            return False
        if self.account_status is not None and user.account_status != self.account_status:
            return False
        if self.ids is not None and user.id not in self.ids:
            return False
        return True


@dataclass(frozen=True)
class ReviewQuery:
    """Reviews bounded by a window, a set of listings, or both."""

    window: Optional[DateWindow] = None
    listing_ids: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        if self.window is None and self.listing_ids is None:
            raise ValueError("ReviewQuery needs a window or listing ids")

    def matches(self, review: Review) -> bool:
        if self.window is not None and not self.window.contains(review.created_at):
            return False
        if self.listing_ids is not None and review.listing_id not in self.listing_ids:
            return False
        return True


def id_set(ids: Iterable[str]) -> FrozenSet[str]:
    """Helper for building query id filters."""
    return frozenset(i for i in ids if i)


def status_values(statuses: Iterable) -> FrozenSet[str]:
    """Plain string values; enum members hash by name, not value."""
    return frozenset(getattr(s, "value", s) for s in statuses)


class RecordRepository(ABC):
    """Read-only access to marketplace records.

    Implementations perform I/O, so every method is a coroutine. Errors are
    raised as-is; the services turn them into AggregationError.
    """

    @abstractmethod
    async def fetch_bookings(self, query: BookingQuery) -> List[Booking]:
        """Bookings matching the query."""

    @abstractmethod
    async def count_bookings(self, listing_id: str, window: DateWindow,
                             statuses: Optional[FrozenSet[str]] = None) -> int:
        """Number of bookings of one listing inside the window."""

    @abstractmethod
    async def count_bookings_by_listing(self, window: DateWindow,
                                        statuses: Optional[FrozenSet[str]] = None) -> Dict[str, int]:
        """Booking counts inside the window grouped by listing id."""

    @abstractmethod
    async def fetch_listings(self, query: ListingQuery) -> List[Listing]:
        """Listings matching the query."""

    @abstractmethod
    async def fetch_users(self, query: UserQuery) -> List[User]:
        """Users matching the query."""

    @abstractmethod
    async def fetch_reviews(self, query: ReviewQuery) -> List[Review]:
        """Reviews matching the query."""

    @abstractmethod
    async def fetch_ledger(self, window: DateWindow, user_id: Optional[str] = None) -> List[RewardLedgerEntry]:
        """Reward ledger entries created inside the window."""
