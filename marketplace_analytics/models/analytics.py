"""
Analytics and reporting domain models.

Everything here is built fresh per call and never persisted.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from .base import as_naive_utc
from .records import Booking, Listing, RewardLedgerEntry, User


class Trend(str, Enum):
    """Direction of a metric compared to the previous window."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class ReportType(str, Enum):
    """Report type constants"""

    FINANCIAL = "financial"
    BOOKINGS = "bookings"
    HOSTS = "hosts"
    LISTINGS = "listings"

    @property
    def label(self) -> str:
        return {
            ReportType.FINANCIAL: "Financial Report",
            ReportType.BOOKINGS: "Bookings Report",
            ReportType.HOSTS: "Host Performance Report",
            ReportType.LISTINGS: "Listing Analytics Report",
        }[self]


@dataclass(frozen=True)
class DateWindow:
    """Half-open time window: ``start`` is included, ``end`` is not."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, moment: Optional[datetime]) -> bool:
        """Records without a timestamp never fall inside a window."""
        moment = as_naive_utc(moment)
        if moment is None:
            return False
        return self.start <= moment < self.end

    def preceding(self) -> "DateWindow":
        """Window of equal length ending exactly where this one starts."""
        return DateWindow(start=self.start - self.duration, end=self.start)

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class ResolvedRange:
    """A resolved window and its comparison window."""

    current: DateWindow
    previous: DateWindow
    preset: str = "custom"


@dataclass
class RecordSet:
    """Records loaded for one window."""

    window: DateWindow
    bookings: List[Booking] = field(default_factory=list)
    listings: List[Listing] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    ledger: List[RewardLedgerEntry] = field(default_factory=list)


@dataclass(frozen=True)
class MetricSnapshot:
    """A metric compared across the current and previous window."""

    name: str
    current: float
    previous: float
    change: float
    trend: Trend

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.current,
            "previous": self.previous,
            "change": self.change,
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class RankingEntry:
    """One row of a listing ranking, denormalized for rendering."""

    id: str
    title: str
    location: str
    type: str
    rating: float
    review_count: int
    booking_count: int = 0
    total_revenue: float = 0.0

    @classmethod
    def from_listing(cls, listing: Listing, booking_count: int = 0, total_revenue: float = 0.0) -> "RankingEntry":
        return cls(
            id=listing.id,
            title=listing.title,
            location=listing.location,
            type=listing.type,
            rating=listing.rating,
            review_count=listing.review_count,
            booking_count=booking_count,
            total_revenue=total_revenue,
        )


@dataclass(frozen=True)
class HostRankingEntry:
    """One row of the top-host ranking."""

    id: str
    host_name: str
    total_earnings: float
    confirmed_bookings: int
    total_bookings: int = 0
    listing_count: int = 0
    average_rating: float = 0.0
    review_count: int = 0


@dataclass(frozen=True)
class BookingListingRef:
    title: str
    type: Optional[str] = None
    price: float = 0.0


@dataclass(frozen=True)
class EnrichedBooking:
    """A booking joined with its guest name and listing title."""

    id: str
    guest_name: str
    listing: Optional[BookingListingRef]
    created_at: Optional[datetime]
    total_amount: float
    status: str

    @property
    def listing_label(self) -> str:
        """Removed listings render as a label instead of failing."""
        return self.listing.title if self.listing else "Deleted Listing"


@dataclass
class DashboardPayload:
    """Everything the admin dashboard renders in one call."""

    window: DateWindow
    stats: Dict[str, Dict[str, Any]]
    top_rated_listings: List[RankingEntry]
    low_rated_listings: List[RankingEntry]
    recent_bookings: List[EnrichedBooking]
    booking_status_breakdown: Dict[str, int] = field(default_factory=dict)
    revenue_trends: List[Dict[str, Any]] = field(default_factory=list)
    popular_listings: List[RankingEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReportPayload:
    """Common header of every report dataset."""

    report_type: ReportType
    window: DateWindow

    @property
    def title(self) -> str:
        return self.report_type.label

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["report_type"] = self.report_type.value
        data["title"] = self.title
        data["window"] = self.window.to_dict()
        return data


@dataclass
class FinancialReport(ReportPayload):
    total_revenue: float = 0.0
    service_fees: float = 0.0
    gross_booking_value: float = 0.0
    transactions: int = 0
    refunds: float = 0.0
    refund_count: int = 0
    refunded_fees: float = 0.0
    revenue_by_type: Dict[str, float] = field(default_factory=dict)


@dataclass
class BookingsReport(ReportPayload):
    total_bookings: int = 0
    confirmed_bookings: int = 0
    cancelled_bookings: int = 0
    refunded_bookings: int = 0
    pending_bookings: int = 0
    completion_rate: float = 0.0
    average_booking_value: float = 0.0
    bookings_by_type: Dict[str, int] = field(default_factory=dict)
    status_breakdown: Dict[str, int] = field(default_factory=dict)


@dataclass
class HostsReport(ReportPayload):
    total_hosts: int = 0
    active_hosts: int = 0
    total_earnings: float = 0.0
    average_earnings: float = 0.0
    average_rating: float = 0.0
    top_hosts: List[HostRankingEntry] = field(default_factory=list)


@dataclass
class ListingsReport(ReportPayload):
    total_listings: int = 0
    active_listings: int = 0
    new_listings: int = 0
    conversion_rate: float = 0.0
    listings_by_type: Dict[str, int] = field(default_factory=dict)
    top_listings: List[RankingEntry] = field(default_factory=list)
