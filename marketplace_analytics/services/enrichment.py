"""
Per-listing booking count enrichment.

Two interchangeable strategies produce the same mapping:

* ``SEQUENTIAL`` issues one count lookup per listing, fanned out through a
  bounded semaphore so the repository never sees more than ``concurrency``
  requests at once.
* ``BATCHED`` issues a single grouped count query.
"""

import asyncio
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

from ..models.analytics import DateWindow
from ..repositories.base import RecordRepository
from ..utils.secure_logging import get_structured_logger

logger = get_structured_logger().get_logger(__name__)


class EnrichmentStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    BATCHED = "batched"


class BookingCountEnricher:
    """Looks up booking counts for a set of listings."""

    def __init__(
        self,
        repository: RecordRepository,
        strategy: EnrichmentStrategy = EnrichmentStrategy.BATCHED,
        concurrency: int = 8,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.repository = repository
        self.strategy = EnrichmentStrategy(strategy)
        self.concurrency = concurrency

    async def counts(
        self,
        listing_ids: Iterable[str],
        window: DateWindow,
        statuses: Optional[FrozenSet[str]] = None,
    ) -> Dict[str, int]:
        """Booking count per listing id; listings without bookings map to 0."""
        ids = sorted(set(listing_ids))
        if not ids:
            return {}

        logger.debug(
            "Enriching booking counts",
            operation="booking_counts",
            strategy=self.strategy.value,
            listing_count=len(ids),
        )
        if self.strategy is EnrichmentStrategy.BATCHED:
            grouped = await self.repository.count_bookings_by_listing(window, statuses)
            return {listing_id: grouped.get(listing_id, 0) for listing_id in ids}
        return await self._fan_out(ids, window, statuses)

    async def _fan_out(self, ids, window: DateWindow, statuses) -> Dict[str, int]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def lookup(listing_id: str):
            async with semaphore:
                return listing_id, await self.repository.count_bookings(listing_id, window, statuses)

        tasks = [asyncio.ensure_future(lookup(listing_id)) for listing_id in ids]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # a failed or cancelled lookup abandons the rest
            for task in tasks:
                task.cancel()
            raise
        return dict(results)
