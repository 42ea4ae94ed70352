from typing import Any, Dict, Optional

from fastapi import HTTPException

from models.analytics_models import PERIOD_DAY_DIVISORS
from models.session_models import DashboardSession


async def get_analytics(session: DashboardSession, period: Optional[str] = None) -> Dict[str, Any]:
    """Select the period (if given), reload the window and return metrics and series."""
    analytics = session.analytics
    if period is not None:
        if period not in PERIOD_DAY_DIVISORS:
            raise HTTPException(
                status_code=400,
                detail=f"period must be one of: {', '.join(PERIOD_DAY_DIVISORS)}",
            )
        analytics.set_period(period)
    await analytics.load()
    return analytics.view()

