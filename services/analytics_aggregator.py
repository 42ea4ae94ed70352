"""Analytics view: summary counters and chart series over a time window."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from dal.record_store import ClassificationStore
from models.analytics_models import PERIOD_DAY_DIVISORS, PIE_COLORS, AnalyticsMetrics, ChartBucket
from models.classification_record import HEALTHY, UNHEALTHY, ClassificationRecord
from services.supabase.query import SessionExpired
from utils.timestamps import locale_date, shift_months, to_iso, utc_now

LOGGER = logging.getLogger(__name__)


def period_start(period: str, now: datetime) -> datetime:
    """Start of the window: 7 days, one calendar month or one calendar year back."""
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return shift_months(now, -1)
    if period == "year":
        return shift_months(now, -12)
    raise ValueError(f"Unsupported period {period!r}. Use one of: {', '.join(PERIOD_DAY_DIVISORS)}")


class AnalyticsAggregator:
    """Records inside the selected period and everything derived from them.

    The daily average always divides by the nominal period length (7, 30 or
    365 days), not by the time that actually elapsed.
    """

    def __init__(
        self,
        classifications: ClassificationStore,
        *,
        display_timezone: str = "UTC",
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = classifications
        self._now = now
        self.display_timezone = display_timezone
        self.period = "week"
        self.divisor = PERIOD_DAY_DIVISORS["week"]
        self.start: Optional[datetime] = None
        self.records: List[ClassificationRecord] = []
        self._load_token = 0

    def set_period(self, period: str) -> datetime:
        """Select `week`, `month` or `year` and return the new window start."""
        start = period_start(period, self._now())
        self.period = period
        self.divisor = PERIOD_DAY_DIVISORS[period]
        self.start = start
        return start

    async def load(self) -> bool:
        """Fetch records created at or after the window start.

        The start is recomputed from the current time on every load. Returns
        False when the fetch failed or was superseded by a newer load.
        """
        start = self.set_period(self.period)
        self._load_token += 1
        token = self._load_token
        try:
            records = await self._store.list_classifications_since(start)
        except SessionExpired:
            raise
        except Exception as exc:
            LOGGER.error("Error fetching analytics data: %s", exc)
            return False
        if token != self._load_token:
            LOGGER.debug("Discarding superseded analytics load %d", token)
            return False
        self.records = records
        return True

    def compute_metrics(self) -> AnalyticsMetrics:
        total = len(self.records)
        healthy = sum(1 for r in self.records if r.classification == HEALTHY)
        unhealthy = sum(1 for r in self.records if r.classification == UNHEALTHY)
        return AnalyticsMetrics(
            total_scans=total,
            healthy_scans=healthy,
            unhealthy_scans=unhealthy,
            daily_average_scans=total / self.divisor,
        )

    def bucket_by_date(self) -> List[ChartBucket]:
        """Count Healthy/Unhealthy per display date, in first-seen date order."""
        buckets: Dict[str, ChartBucket] = {}
        for record in self.records:
            key = locale_date(record.created_at, self.display_timezone)
            bucket = buckets.get(key)
            if bucket is None:
                bucket = buckets[key] = ChartBucket(date=key)
            if record.classification == HEALTHY:
                bucket.healthy += 1
            else:
                bucket.unhealthy += 1
        return list(buckets.values())

    def pie_series(self) -> List[Dict[str, Any]]:
        metrics = self.compute_metrics()
        return [
            {"name": HEALTHY, "value": metrics.healthy_scans, "color": PIE_COLORS[HEALTHY]},
            {"name": UNHEALTHY, "value": metrics.unhealthy_scans, "color": PIE_COLORS[UNHEALTHY]},
        ]

    def view(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "start": to_iso(self.start) if self.start else None,
            "metrics": self.compute_metrics().to_dict(),
            "chart": [bucket.to_dict() for bucket in self.bucket_by_date()],
            "pie": self.pie_series(),
        }
