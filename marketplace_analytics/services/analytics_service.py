"""
Analytics service for the admin dashboard and the report datasets.
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Union

from ..analytics.frames import trailing_months_window
from ..config.settings import AnalyticsConfig, Settings
from ..models.analytics import (
    BookingListingRef,
    BookingsReport,
    DashboardPayload,
    DateWindow,
    EnrichedBooking,
    FinancialReport,
    HostsReport,
    ListingsReport,
    RankingEntry,
    RecordSet,
    ReportPayload,
    ReportType,
    ResolvedRange,
)
from ..models.base import as_naive_utc
from ..models.records import CONFIRMED_STATUSES, Booking, Listing, User
from ..repositories.base import BookingQuery, ListingQuery, RecordRepository, UserQuery
from ..utils.date_ranges import RangeInput, resolve_range
from ..utils.secure_logging import get_structured_logger
from .enrichment import BookingCountEnricher, EnrichmentStrategy
from .metrics_aggregator import MetricsAggregator, booking_status_breakdown
from .ranking_engine import RankingEngine
from .report_data_builder import ReportDataBuilder, fetch_all

logger = get_structured_logger().get_logger(__name__)

UNKNOWN_GUEST = "Unknown Guest"

WindowInput = Union[DateWindow, ResolvedRange, RangeInput]


class AnalyticsService:
    """Service for dashboard metrics and report generation.

    Holds no per-call state: concurrent calls never observe each other, and a
    cancelled call leaves nothing behind.
    """

    def __init__(
        self,
        repository: RecordRepository,
        settings: Optional[Settings] = None,
        aggregator: Optional[MetricsAggregator] = None,
        ranking_engine: Optional[RankingEngine] = None,
        builder: Optional[ReportDataBuilder] = None,
        enricher: Optional[BookingCountEnricher] = None,
    ):
        self.repository = repository
        self.config: AnalyticsConfig = (settings or Settings()).analytics
        self.aggregator = aggregator or MetricsAggregator()
        self.ranking_engine = ranking_engine or RankingEngine(self.config.low_rating_threshold)
        self.builder = builder or ReportDataBuilder(
            repository,
            ranking_engine=self.ranking_engine,
            ranking_limit=self.config.report_ranking_limit,
        )
        self.enricher = enricher or BookingCountEnricher(
            repository,
            strategy=EnrichmentStrategy(self.config.enrichment_strategy),
            concurrency=self.config.enrichment_concurrency,
        )

    @staticmethod
    def resolve_window(window: WindowInput, today: Optional[date] = None) -> DateWindow:
        """
        Accept a DateWindow, a ResolvedRange, a preset key or a (start, end)
        pair. Invalid input raises InvalidRangeError before any fetch.
        """
        if isinstance(window, DateWindow):
            return window
        if isinstance(window, ResolvedRange):
            return window.current
        return resolve_range(window, today).current

    # --- Dashboard ---

    async def get_dashboard_data(self, today: Optional[date] = None) -> DashboardPayload:
        """
        Build the dashboard for the configured trailing window compared with
        the window immediately before it.

        Raises:
            AggregationError: a repository fetch failed; nothing partial is returned.
        """
        today = today or date.today()
        resolved = resolve_range(self.config.dashboard_preset, today)
        current, previous = resolved.current, resolved.previous
        trend_window = trailing_months_window(self.config.revenue_trend_months, today)

        logger.info(
            "Building dashboard",
            operation="get_dashboard_data",
            preset=resolved.preset,
            window_start=current.start.isoformat(),
            window_end=current.end.isoformat(),
        )

        (
            bookings,
            previous_bookings,
            listings,
            users,
            ledger,
            previous_ledger,
            trend_bookings,
        ) = await fetch_all(
            "dashboard",
            self.repository.fetch_bookings(BookingQuery(window=current)),
            self.repository.fetch_bookings(BookingQuery(window=previous)),
            self.repository.fetch_listings(ListingQuery(include_drafts=True)),
            self.repository.fetch_users(UserQuery()),
            self.repository.fetch_ledger(current),
            self.repository.fetch_ledger(previous),
            self.repository.fetch_bookings(BookingQuery(window=trend_window, statuses=CONFIRMED_STATUSES)),
        )

        current_records = RecordSet(window=current, bookings=bookings, listings=listings, users=users, ledger=ledger)
        previous_records = RecordSet(
            window=previous, bookings=previous_bookings, listings=listings, users=users, ledger=previous_ledger
        )
        stats = self.aggregator.aggregate(current_records, previous_records)

        (counts,) = await fetch_all(
            "dashboard_booking_counts",
            self.enricher.counts(
                (listing.id for listing in listings if listing.is_active),
                current,
                CONFIRMED_STATUSES,
            ),
        )

        return DashboardPayload(
            window=current,
            stats=stats,
            top_rated_listings=self.ranking_engine.top_rated(
                listings, self.config.top_rated_limit, booking_counts=counts
            ),
            low_rated_listings=self.ranking_engine.bottom_rated(
                listings, self.config.low_rated_limit, booking_counts=counts
            ),
            recent_bookings=self.recent_bookings(bookings, listings, users, self.config.recent_bookings_limit),
            booking_status_breakdown=booking_status_breakdown(bookings),
            revenue_trends=self.aggregator.revenue_trends(trend_bookings, self.config.revenue_trend_months, today),
            popular_listings=self.ranking_engine.popular(listings, counts, self.config.popular_listings_limit),
        )

    @staticmethod
    def recent_bookings(
        bookings: List[Booking],
        listings: List[Listing],
        users: List[User],
        limit: int,
    ) -> List[EnrichedBooking]:
        """Newest bookings joined with guest names and listing titles."""
        listings_by_id: Dict[str, Listing] = {listing.id: listing for listing in listings}
        names_by_id = {user.id: user.display_name for user in users}

        unique = list({b.id: b for b in reversed(bookings)}.values())
        # undated bookings sort last
        unique.sort(key=lambda b: b.id)
        unique.sort(key=lambda b: (b.created_at is not None, as_naive_utc(b.created_at) or datetime.min), reverse=True)

        recent = []
        for booking in unique[:max(limit, 0)]:
            listing = listings_by_id.get(booking.listing_id)
            recent.append(
                EnrichedBooking(
                    id=booking.id,
                    guest_name=names_by_id.get(booking.guest_id) or UNKNOWN_GUEST,
                    listing=BookingListingRef(title=listing.title, type=listing.type, price=listing.price)
                    if listing else None,
                    created_at=booking.created_at,
                    total_amount=booking.total_amount,
                    status=booking.status,
                )
            )
        return recent

    async def get_popular_listings(self, window: WindowInput = "last30days",
                                   today: Optional[date] = None) -> List[RankingEntry]:
        """Most-booked active listings for the landing page."""
        window = self.resolve_window(window, today)
        (listings,) = await fetch_all("popular_listings", self.repository.fetch_listings(ListingQuery()))
        (counts,) = await fetch_all(
            "popular_listings_counts",
            self.enricher.counts((listing.id for listing in listings if listing.is_active), window, CONFIRMED_STATUSES),
        )
        return self.ranking_engine.popular(listings, counts, self.config.popular_listings_limit)

    # --- Reports ---

    async def generate_report(self, report_type: Union[ReportType, str], window: WindowInput,
                              today: Optional[date] = None) -> ReportPayload:
        """Build one of the fixed report datasets for a window."""
        return await self.builder.build(report_type, self.resolve_window(window, today))

    async def generate_financial_report_data(self, window: WindowInput,
                                             today: Optional[date] = None) -> FinancialReport:
        return await self.generate_report(ReportType.FINANCIAL, window, today)

    async def generate_bookings_report_data(self, window: WindowInput,
                                            today: Optional[date] = None) -> BookingsReport:
        return await self.generate_report(ReportType.BOOKINGS, window, today)

    async def generate_hosts_report_data(self, window: WindowInput,
                                         today: Optional[date] = None) -> HostsReport:
        return await self.generate_report(ReportType.HOSTS, window, today)

    async def generate_listings_report_data(self, window: WindowInput,
                                            today: Optional[date] = None) -> ListingsReport:
        return await self.generate_report(ReportType.LISTINGS, window, today)
