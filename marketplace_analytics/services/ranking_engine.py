"""
Listing and host rankings.

Every ranking is a total order (explicit tie-breaks ending on the id), so the
output does not depend on the order records arrive in. Drafts and inactive
listings are never ranked.
"""

from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Mapping, Optional

from ..models.analytics import HostRankingEntry, RankingEntry
from ..models.records import Booking, Listing, Review, User, UserRole

# Minimum bookings for a listing to count as popular. The effective
# threshold rises to the least-booked listing's count when that is higher,
# so a catalogue where every listing has a single booking shows nothing.
POPULARITY_FLOOR = 2

DEFAULT_LOW_RATING_THRESHOLD = 3.5


def popularity_threshold(booking_counts: Mapping[str, int]) -> int:
    """max(POPULARITY_FLOOR, min(count over booked listings))."""
    booked = [count for count in booking_counts.values() if count > 0]
    if not booked:
        return POPULARITY_FLOOR
    return max(POPULARITY_FLOOR, min(booked))


def _unique(records: Iterable, predicate=None) -> List:
    """First record per id, then filtered; a rejected first record hides later duplicates."""
    seen = {}
    for record in records:
        seen.setdefault(record.id, record)
    return [record for record in seen.values() if predicate is None or predicate(record)]


def confirmed_counts(bookings: Iterable[Booking]) -> Dict[str, int]:
    """Confirmed/completed bookings per listing id."""
    return dict(Counter(b.listing_id for b in _unique(bookings) if b.is_confirmed and b.listing_id))


class RankingEngine:
    """Produces top-N and bottom-N lists."""

    def __init__(self, low_rating_threshold: float = DEFAULT_LOW_RATING_THRESHOLD):
        self.low_rating_threshold = low_rating_threshold

    @staticmethod
    def _rankable(listings: Iterable[Listing]) -> List[Listing]:
        return _unique(listings, lambda listing: listing.is_active)

    def top_rated(
        self,
        listings: Iterable[Listing],
        n: int = 5,
        booking_counts: Optional[Mapping[str, int]] = None,
    ) -> List[RankingEntry]:
        """Highest rating first; ties go to the more-reviewed listing."""
        if n <= 0:
            return []
        counts = booking_counts or {}
        rated = [listing for listing in self._rankable(listings) if listing.rating > 0]
        rated.sort(key=lambda listing: (-listing.rating, -listing.review_count, listing.id))
        return [RankingEntry.from_listing(listing, counts.get(listing.id, 0)) for listing in rated[:n]]

    def bottom_rated(
        self,
        listings: Iterable[Listing],
        n: int = 5,
        threshold: Optional[float] = None,
        booking_counts: Optional[Mapping[str, int]] = None,
    ) -> List[RankingEntry]:
        """Rated listings at or below the threshold, lowest first."""
        if n <= 0:
            return []
        limit = self.low_rating_threshold if threshold is None else threshold
        counts = booking_counts or {}
        low = [
            listing for listing in self._rankable(listings)
            if 0 < listing.rating <= limit
        ]
        low.sort(key=lambda listing: (listing.rating, -listing.review_count, listing.id))
        return [RankingEntry.from_listing(listing, counts.get(listing.id, 0)) for listing in low[:n]]

    def popular(
        self,
        listings: Iterable[Listing],
        booking_counts: Mapping[str, int],
        n: int = 6,
    ) -> List[RankingEntry]:
        """Most-booked listings that clear the popularity threshold."""
        if n <= 0:
            return []
        threshold = popularity_threshold(booking_counts)
        by_id = {listing.id: listing for listing in self._rankable(listings)}
        qualifying = [
            listing_id for listing_id, count in booking_counts.items()
            if count >= threshold and listing_id in by_id
        ]
        qualifying.sort(key=lambda listing_id: (-booking_counts[listing_id], listing_id))
        return [
            RankingEntry.from_listing(by_id[listing_id], booking_counts[listing_id])
            for listing_id in qualifying[:n]
        ]

    def top_listings(
        self,
        bookings: Iterable[Booking],
        listings: Iterable[Listing],
        n: int = 10,
    ) -> List[RankingEntry]:
        """Ranked by price × confirmed bookings, then booking count."""
        if n <= 0:
            return []
        counts = confirmed_counts(bookings)
        entries = [
            RankingEntry.from_listing(
                listing,
                booking_count=counts.get(listing.id, 0),
                total_revenue=listing.price * counts.get(listing.id, 0),
            )
            for listing in self._rankable(listings)
        ]
        entries.sort(key=lambda e: (-e.total_revenue, -e.booking_count, e.id))
        return entries[:n]

    def host_performance(
        self,
        bookings: Iterable[Booking],
        hosts: Iterable[User],
        listings: Iterable[Listing],
        reviews: Iterable[Review] = (),
    ) -> List[HostRankingEntry]:
        """Earnings and ratings for every host, best earner first.

        A host earns ``price × confirmed bookings`` on each non-draft listing.
        """
        bookings = _unique(bookings)
        owned = _unique(listings, lambda listing: not listing.is_draft)
        prices = {listing.id: listing.price for listing in owned}

        listings_by_host = defaultdict(set)
        for listing in owned:
            listings_by_host[listing.host_id].add(listing.id)

        ratings_by_listing = defaultdict(list)
        for review in reviews:
            ratings_by_listing[review.listing_id].append(review.rating)

        bookings_by_host = defaultdict(list)
        for booking in bookings:
            bookings_by_host[booking.host_id].append(booking)

        entries = []
        for host in _unique(hosts, lambda user: user.role == UserRole.HOST.value):
            host_bookings = bookings_by_host.get(host.id, [])
            confirmed = [b for b in host_bookings if b.is_confirmed]
            host_ratings = [
                rating
                for listing_id in listings_by_host.get(host.id, ())
                for rating in ratings_by_listing.get(listing_id, ())
            ]
            entries.append(
                HostRankingEntry(
                    id=host.id,
                    host_name=host.display_name or "Unknown Host",
                    total_earnings=sum(prices.get(b.listing_id, 0.0) for b in confirmed),
                    confirmed_bookings=len(confirmed),
                    total_bookings=len(host_bookings),
                    listing_count=len(listings_by_host.get(host.id, ())),
                    average_rating=sum(host_ratings) / len(host_ratings) if host_ratings else 0.0,
                    review_count=len(host_ratings),
                )
            )
        entries.sort(key=lambda e: (-e.total_earnings, -e.confirmed_bookings, e.id))
        return entries

    def top_hosts(
        self,
        bookings: Iterable[Booking],
        hosts: Iterable[User],
        listings: Iterable[Listing],
        n: int = 10,
        reviews: Iterable[Review] = (),
    ) -> List[HostRankingEntry]:
        if n <= 0:
            return []
        return self.host_performance(bookings, hosts, listings, reviews)[:n]
