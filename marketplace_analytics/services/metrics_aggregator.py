"""
Dashboard metric aggregation.

Turns the records of a window and of its preceding window into per-family
totals with period-over-period change and trend direction.
"""

from datetime import date
from typing import Any, Dict, Iterable, List

from ..analytics.frames import monthly_revenue
from ..models.analytics import MetricSnapshot, RecordSet, Trend
from ..models.records import AccountStatus, Booking, BookingStatus, ListingStatus, ListingType, UserRole

# A metric with no baseline reports 0.0% change, even when it grew from
# nothing. Dashboards rely on this to avoid showing infinite growth.
ZERO_BASELINE_CHANGE = 0.0


def percentage_change(current: float, previous: float) -> float:
    """Change from ``previous`` to ``current`` in percent."""
    if previous == 0:
        return ZERO_BASELINE_CHANGE
    return (current - previous) / previous * 100


def trend_for(current: float, previous: float, inverted: bool = False) -> Trend:
    """Direction of a metric; ``inverted`` metrics improve when they shrink."""
    if current == 0 and previous == 0:
        return Trend.FLAT
    improved = current <= previous if inverted else current >= previous
    return Trend.UP if improved else Trend.DOWN


def snapshot(name: str, current: float, previous: float, inverted: bool = False) -> MetricSnapshot:
    return MetricSnapshot(
        name=name,
        current=current,
        previous=previous,
        change=percentage_change(current, previous),
        trend=trend_for(current, previous, inverted),
    )


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0.0 without a denominator."""
    if not denominator:
        return 0.0
    return numerator * 100 / denominator


def booking_status_breakdown(bookings: Iterable[Booking]) -> Dict[str, int]:
    """Count of bookings per status, with every status present."""
    breakdown = {status.value: 0 for status in BookingStatus}
    for booking in bookings:
        if booking.status in breakdown:
            breakdown[booking.status] += 1
    return breakdown


def count_by_type(items: Iterable[Any]) -> Dict[str, int]:
    counts = {t.value: 0 for t in ListingType}
    for item in items:
        if item.type in counts:
            counts[item.type] += 1
    return counts


def service_fee_revenue(bookings: Iterable[Booking]) -> float:
    """Platform revenue: service fees of confirmed bookings only."""
    return sum(b.service_fee for b in bookings if b.is_confirmed)


def revenue_by_type(bookings: Iterable[Booking]) -> Dict[str, float]:
    totals = {t.value: 0.0 for t in ListingType}
    for booking in bookings:
        if booking.is_confirmed:
            totals[booking.type] += booking.service_fee
    return totals


class MetricsAggregator:
    """Computes dashboard metric families from two record sets."""

    def aggregate(self, current: RecordSet, previous: RecordSet) -> Dict[str, Dict[str, Any]]:
        return {
            "bookings": self.booking_metrics(current, previous),
            "users": self.user_metrics(current, previous),
            "revenue": self.revenue_metrics(current, previous),
            "listings": self.listing_metrics(current, previous),
            "points": self.points_metrics(current, previous),
            "refunds": self.refund_metrics(current, previous),
        }

    def booking_metrics(self, current: RecordSet, previous: RecordSet) -> Dict[str, Any]:
        metric = snapshot("bookings", len(current.bookings), len(previous.bookings))
        return {
            **metric.to_dict(),
            "confirmed": sum(1 for b in current.bookings if b.is_confirmed),
            "status_breakdown": booking_status_breakdown(current.bookings),
        }

    @staticmethod
    def _active_host_ids(records: RecordSet) -> set:
        hosts = {
            u.id for u in records.users
            if u.role == UserRole.HOST.value and u.account_status == AccountStatus.ACTIVE.value
        }
        return {b.host_id for b in records.bookings if b.host_id in hosts}

    def user_metrics(self, current: RecordSet, previous: RecordSet) -> Dict[str, Any]:
        """Active hosts are hosts with at least one booking in the window."""
        metric = snapshot(
            "active_hosts",
            len(self._active_host_ids(current)),
            len(self._active_host_ids(previous)),
        )
        hosts = [u for u in current.users if u.role == UserRole.HOST.value]
        return {
            **metric.to_dict(),
            "total_hosts": len(hosts),
            "total_guests": sum(1 for u in current.users if u.role == UserRole.GUEST.value),
            "total_users": len(current.users),
            "new_hosts": sum(1 for u in hosts if current.window.contains(u.created_at)),
        }

    def revenue_metrics(self, current: RecordSet, previous: RecordSet) -> Dict[str, Any]:
        metric = snapshot(
            "revenue",
            service_fee_revenue(current.bookings),
            service_fee_revenue(previous.bookings),
        )
        return {**metric.to_dict(), "by_type": revenue_by_type(current.bookings)}

    def listing_metrics(self, current: RecordSet, previous: RecordSet) -> Dict[str, Any]:
        """Trend compares active listings published in each window."""
        listings = [listing for listing in current.listings if not listing.is_draft]
        active = [listing for listing in listings if listing.is_active]
        metric = snapshot(
            "active_listings",
            sum(1 for listing in active if current.window.contains(listing.created_at)),
            sum(1 for listing in active if previous.window.contains(listing.created_at)),
        )
        return {
            **metric.to_dict(),
            "total_listings": len(listings),
            "active": len(active),
            "inactive": sum(1 for listing in listings if listing.status == ListingStatus.INACTIVE.value),
            "by_type": count_by_type(listings),
        }

    def points_metrics(self, current: RecordSet, previous: RecordSet) -> Dict[str, Any]:
        issued = sum(e.points_issued for e in current.ledger)
        redeemed = sum(e.points_redeemed for e in current.ledger)
        metric = snapshot("points_issued", issued, sum(e.points_issued for e in previous.ledger))
        return {
            **metric.to_dict(),
            "redeemed": redeemed,
            "available": issued - redeemed,
            "redemption_rate": safe_ratio(redeemed, issued),
        }

    def refund_metrics(self, current: RecordSet, previous: RecordSet) -> Dict[str, Any]:
        """Fewer refunds is an improvement, so the trend is inverted."""
        refunded = [b for b in current.bookings if b.status == BookingStatus.REFUNDED.value]
        previous_refunded = sum(1 for b in previous.bookings if b.status == BookingStatus.REFUNDED.value)
        metric = snapshot("refunds", len(refunded), previous_refunded, inverted=True)
        return {
            **metric.to_dict(),
            "requested": sum(1 for b in current.bookings if b.status == BookingStatus.REFUND_REQUESTED.value),
            "approved": len(refunded),
            "total_amount": sum(b.total_amount for b in refunded),
        }

    def revenue_trends(self, bookings: List[Booking], months: int, today: date) -> List[Dict[str, Any]]:
        """Monthly service-fee revenue over the trailing ``months`` months."""
        return monthly_revenue(bookings, months, today)
