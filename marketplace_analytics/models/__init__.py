"""
Domain Models

Record models read from the marketplace store and the transient output
models produced by the aggregation engine.
"""

from .records import (
    Booking,
    BookingStatus,
    CONFIRMED_STATUSES,
    Listing,
    ListingStatus,
    ListingType,
    Review,
    RewardLedgerEntry,
    User,
    UserRole,
    AccountStatus,
)
from .analytics import (
    BookingListingRef,
    BookingsReport,
    DashboardPayload,
    DateWindow,
    EnrichedBooking,
    FinancialReport,
    HostRankingEntry,
    HostsReport,
    ListingsReport,
    MetricSnapshot,
    RankingEntry,
    RecordSet,
    ReportPayload,
    ReportType,
    ResolvedRange,
    Trend,
)

__all__ = [
    "Booking",
    "BookingStatus",
    "CONFIRMED_STATUSES",
    "Listing",
    "ListingStatus",
    "ListingType",
    "Review",
    "RewardLedgerEntry",
    "User",
    "UserRole",
    "AccountStatus",
    "BookingListingRef",
    "BookingsReport",
    "DashboardPayload",
    "DateWindow",
    "EnrichedBooking",
    "FinancialReport",
    "HostRankingEntry",
    "HostsReport",
    "ListingsReport",
    "MetricSnapshot",
    "RankingEntry",
    "RecordSet",
    "ReportPayload",
    "ReportType",
    "ResolvedRange",
    "Trend",
]
