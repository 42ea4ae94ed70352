"""Derived analytics view models. Recomputed on every load, never persisted."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

PERIOD_DAY_DIVISORS: Dict[str, int] = {
    "week": 7,
    "month": 30,
    "year": 365,
}

PIE_COLORS: Dict[str, str] = {
    "Healthy": "#00C49F",
    "Unhealthy": "#FF8042",
}


@dataclass
class ChartBucket:
    """Per-day Healthy/Unhealthy counts keyed by a locale date string."""

    date: str
    healthy: int = 0
    unhealthy: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "Healthy": self.healthy, "Unhealthy": self.unhealthy}


@dataclass
class AnalyticsMetrics:
    total_scans: int = 0
    healthy_scans: int = 0
    unhealthy_scans: int = 0
    daily_average_scans: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
