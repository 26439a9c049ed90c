"""
Report Data Builder
Assembles the four fixed report datasets for a resolved date window.
"""

import asyncio
from typing import Any, Awaitable, List, Optional, Union

from ..models.analytics import (
    BookingsReport,
    DateWindow,
    FinancialReport,
    HostsReport,
    ListingsReport,
    ReportPayload,
    ReportType,
)
from ..models.records import BookingStatus, UserRole
from ..repositories.base import BookingQuery, ListingQuery, RecordRepository, ReviewQuery, UserQuery, id_set
from ..utils.secure_logging import get_structured_logger
from .error_handler import AnalyticsError, InvalidReportTypeError, wrap_repository_error
from .metrics_aggregator import (
    booking_status_breakdown,
    count_by_type,
    revenue_by_type,
    safe_ratio,
    service_fee_revenue,
)
from .ranking_engine import RankingEngine

logger = get_structured_logger().get_logger(__name__)


async def fetch_all(operation: str, *fetches: Awaitable[Any]) -> List[Any]:
    """Run repository fetches concurrently.

    The first failure cancels the fetches still in flight and surfaces as an
    AggregationError. Cancellation of the caller propagates unchanged.
    """
    tasks = [asyncio.ensure_future(fetch) for fetch in fetches]
    try:
        return await asyncio.gather(*tasks)
    except AnalyticsError:
        for task in tasks:
            task.cancel()
        raise
    except Exception as e:
        for task in tasks:
            task.cancel()
        raise wrap_repository_error(e, operation) from e


class ReportDataBuilder:
    """Builds report payloads; every call reads fresh records and keeps no state."""

    def __init__(
        self,
        repository: RecordRepository,
        ranking_engine: Optional[RankingEngine] = None,
        ranking_limit: int = 10,
    ):
        self.repository = repository
        self.ranking_engine = ranking_engine or RankingEngine()
        self.ranking_limit = ranking_limit

    async def build(self, report_type: Union[ReportType, str], window: DateWindow) -> ReportPayload:
        try:
            report_type = ReportType(report_type)
        except ValueError:
            raise InvalidReportTypeError(
                f"Unknown report type: {report_type}",
                details={"report_type": str(report_type)},
            ) from None

        builders = {
            ReportType.FINANCIAL: self.financial,
            ReportType.BOOKINGS: self.bookings,
            ReportType.HOSTS: self.hosts,
            ReportType.LISTINGS: self.listings,
        }
        logger.info(
            "Building report",
            operation="build_report",
            report_type=report_type.value,
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
        )
        return await builders[report_type](window)

    async def financial(self, window: DateWindow) -> FinancialReport:
        (bookings,) = await fetch_all(
            "financial_report",
            self.repository.fetch_bookings(BookingQuery(window=window)),
        )
        confirmed = [b for b in bookings if b.is_confirmed]
        refunded = [b for b in bookings if b.status == BookingStatus.REFUNDED.value]
        revenue = service_fee_revenue(confirmed)

        return FinancialReport(
            report_type=ReportType.FINANCIAL,
            window=window,
            total_revenue=revenue,
            service_fees=revenue,
            gross_booking_value=sum(b.total_amount for b in confirmed),
            transactions=len(confirmed),
            refunds=sum(b.total_amount for b in refunded),
            refund_count=len(refunded),
            refunded_fees=sum(b.service_fee for b in refunded),
            revenue_by_type=revenue_by_type(confirmed),
        )

    async def bookings(self, window: DateWindow) -> BookingsReport:
        (bookings,) = await fetch_all(
            "bookings_report",
            self.repository.fetch_bookings(BookingQuery(window=window)),
        )
        breakdown = booking_status_breakdown(bookings)
        total = len(bookings)
        confirmed = breakdown[BookingStatus.CONFIRMED.value] + breakdown[BookingStatus.COMPLETED.value]

        return BookingsReport(
            report_type=ReportType.BOOKINGS,
            window=window,
            total_bookings=total,
            confirmed_bookings=confirmed,
            cancelled_bookings=breakdown[BookingStatus.REJECTED.value],
            refunded_bookings=breakdown[BookingStatus.REFUNDED.value],
            pending_bookings=breakdown[BookingStatus.PENDING.value],
            completion_rate=safe_ratio(confirmed, total),
            average_booking_value=sum(b.total_amount for b in bookings) / total if total else 0.0,
            bookings_by_type=count_by_type(bookings),
            status_breakdown=breakdown,
        )

    async def hosts(self, window: DateWindow) -> HostsReport:
        bookings, hosts, listings = await fetch_all(
            "hosts_report",
            self.repository.fetch_bookings(BookingQuery(window=window)),
            self.repository.fetch_users(UserQuery(role=UserRole.HOST.value)),
            self.repository.fetch_listings(ListingQuery()),
        )
        (reviews,) = await fetch_all(
            "hosts_report_reviews",
            self.repository.fetch_reviews(ReviewQuery(listing_ids=id_set(l.id for l in listings))),
        )

        performance = self.ranking_engine.host_performance(bookings, hosts, listings, reviews)
        active = [entry for entry in performance if entry.total_bookings > 0]
        total_earnings = sum(entry.total_earnings for entry in performance)
        review_total = sum(entry.review_count for entry in performance)
        weighted_rating = sum(entry.average_rating * entry.review_count for entry in performance)

        return HostsReport(
            report_type=ReportType.HOSTS,
            window=window,
            total_hosts=len(performance),
            active_hosts=len(active),
            total_earnings=total_earnings,
            average_earnings=total_earnings / len(active) if active else 0.0,
            average_rating=weighted_rating / review_total if review_total else 0.0,
            top_hosts=performance[:self.ranking_limit],
        )

    async def listings(self, window: DateWindow) -> ListingsReport:
        listings, new_listings, bookings = await fetch_all(
            "listings_report",
            self.repository.fetch_listings(ListingQuery()),
            self.repository.fetch_listings(ListingQuery(created_within=window)),
            self.repository.fetch_bookings(BookingQuery(window=window)),
        )
        confirmed = sum(1 for b in bookings if b.is_confirmed)

        return ListingsReport(
            report_type=ReportType.LISTINGS,
            window=window,
            total_listings=len(listings),
            active_listings=sum(1 for listing in listings if listing.is_active),
            new_listings=len(new_listings),
            conversion_rate=safe_ratio(confirmed, len(listings)),
            listings_by_type=count_by_type(listings),
            top_listings=self.ranking_engine.top_listings(bookings, listings, self.ranking_limit),
        )
