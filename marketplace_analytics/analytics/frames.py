"""
Utilities for turning booking records into pandas frames and for building
continuous monthly series with zero-filled gaps.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, List, Dict, Any

import pandas as pd

from ..models.analytics import DateWindow
from ..models.base import as_naive_utc
from ..models.records import Booking

BOOKING_COLUMNS = ["id", "listing_id", "host_id", "type", "status", "total_amount", "service_fee", "created_at"]


def bookings_frame(bookings: Iterable[Booking]) -> pd.DataFrame:
    """
    One row per booking with the columns the aggregations need.
    Bookings without a creation timestamp are dropped.
    """
    rows = [
        {
            "id": b.id,
            "listing_id": b.listing_id,
            "host_id": b.host_id,
            "type": b.type,
            "status": b.status,
            "total_amount": float(b.total_amount),
            "service_fee": float(b.service_fee),
            "created_at": as_naive_utc(b.created_at),
        }
        for b in bookings
        if b.created_at is not None
    ]
    if not rows:
        return pd.DataFrame(columns=BOOKING_COLUMNS)
    frame = pd.DataFrame(rows, columns=BOOKING_COLUMNS)
    frame["created_at"] = pd.to_datetime(frame["created_at"])
    return frame


def trailing_months_window(months: int, today: date) -> DateWindow:
    """
    Calendar-month window covering the current month and the ``months - 1``
    months before it.
    """
    if months < 1:
        raise ValueError("months must be at least 1")
    this_month = pd.Period(pd.Timestamp(today), freq="M")
    first = this_month - (months - 1)
    return DateWindow(
        start=first.start_time.to_pydatetime(),
        end=(this_month + 1).start_time.to_pydatetime(),
    )


def monthly_revenue(bookings: Iterable[Booking], months: int, today: date) -> List[Dict[str, Any]]:
    """
    Service-fee revenue and distinct booking count per calendar month for the
    trailing ``months`` months. Months without bookings are zero-filled.

    Only confirmed or completed bookings contribute.
    """
    frame = bookings_frame(b for b in bookings if b.is_confirmed)
    periods = pd.period_range(start=pd.Period(pd.Timestamp(today), freq="M") - (months - 1), periods=months, freq="M")

    if frame.empty:
        grouped = pd.DataFrame({"revenue": 0.0, "booking_count": 0}, index=periods)
    else:
        frame["month"] = frame["created_at"].dt.to_period("M")
        grouped = (
            frame.groupby("month")
            .agg(revenue=("service_fee", "sum"), booking_count=("id", "nunique"))
            .reindex(periods, fill_value=0)
        )

    return [
        {
            "month": period.strftime("%b %Y"),
            "revenue": float(revenue),
            "booking_count": int(count),
        }
        for period, revenue, count in zip(grouped.index, grouped["revenue"], grouped["booking_count"])
    ]
