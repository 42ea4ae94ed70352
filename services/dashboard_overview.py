"""Overview page: all-time label counts, today's scans and recent activity."""

from __future__ import annotations

import logging
from datetime import datetime, time, timezone
from typing import Any, Callable, Dict, List

from dal.record_store import ClassificationStore
from models.classification_record import HEALTHY, UNHEALTHY, ClassificationRecord
from services.supabase.query import SessionExpired
from utils.timestamps import utc_now

LOGGER = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 5


class DashboardOverview:
    """Three independent fetches; a failure in one leaves the others intact."""

    def __init__(self, classifications: ClassificationStore, *, now: Callable[[], datetime] = utc_now) -> None:
        self._store = classifications
        self._now = now
        self.healthy_scans = 0
        self.unhealthy_scans = 0
        self.today_scans = 0
        self.recent_activities: List[ClassificationRecord] = []

    async def load(self) -> Dict[str, bool]:
        """Refresh every section and report which ones succeeded."""
        return {
            "stats": await self.load_stats(),
            "today": await self.load_today_scans(),
            "recent": await self.load_recent_activities(),
        }

    async def load_stats(self) -> bool:
        try:
            labels = await self._store.list_labels()
        except SessionExpired:
            raise
        except Exception as exc:
            LOGGER.error("Error fetching stats: %s", exc)
            return False
        self.healthy_scans = sum(1 for label in labels if label == HEALTHY)
        self.unhealthy_scans = sum(1 for label in labels if label == UNHEALTHY)
        return True

    async def load_today_scans(self) -> bool:
        """Count scans between 00:00:00Z and 23:59:59Z of the current UTC day."""
        today = self._now().astimezone(timezone.utc).date()
        start = datetime.combine(today, time(0, 0, 0), tzinfo=timezone.utc)
        end = datetime.combine(today, time(23, 59, 59), tzinfo=timezone.utc)
        try:
            records = await self._store.list_classifications_between(start, end)
        except SessionExpired:
            raise
        except Exception as exc:
            LOGGER.error("Error fetching today's scans: %s", exc)
            return False
        self.today_scans = len(records)
        return True

    async def load_recent_activities(self) -> bool:
        try:
            records = await self._store.list_recent_classifications(RECENT_ACTIVITY_LIMIT)
        except SessionExpired:
            raise
        except Exception as exc:
            LOGGER.error("Error fetching recent activities: %s", exc)
            return False
        self.recent_activities = records
        return True

    def view(self) -> Dict[str, Any]:
        return {
            "healthy_scans": self.healthy_scans,
            "unhealthy_scans": self.unhealthy_scans,
            "today_scans": self.today_scans,
            "recent_activities": [r.to_dict() for r in self.recent_activities],
        }
