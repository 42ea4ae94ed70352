"""FastAPI routes for the Dashboard overview and the Analytics page."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from controllers.analytics_controller import get_analytics
from controllers.dashboard_controller import get_overview
from controllers.session_controller import require_session
from models.session_models import DashboardSession
from services.supabase.query import SessionExpired

router = APIRouter(tags=["analytics"])


@router.get("/dashboard")
async def dashboard_route(session: DashboardSession = Depends(require_session)):
    try:
        return await get_overview(session)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/analytics")
async def analytics_route(period: Optional[str] = None, session: DashboardSession = Depends(require_session)):
    """Metrics, per-day chart buckets and pie series for `week`, `month` or `year`."""
    try:
        return await get_analytics(session, period)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
