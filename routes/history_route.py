"""FastAPI routes for the History page."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from controllers.history_controller import (
    close_detail,
    delete_record,
    delete_selected,
    get_history,
    open_detail,
    toggle_page_selection,
    toggle_selection,
)
from controllers.session_controller import require_session
from models.session_models import DashboardSession
from services.supabase.query import SessionExpired

router = APIRouter(prefix="/history", tags=["history"])


class BulkDeletePayload(BaseModel):
    ids: Optional[List[str]] = None


@router.get("")
async def history_route(
    sort: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[int] = None,
    session: DashboardSession = Depends(require_session),
):
    """Return the current History page, applying any sort/search/page change."""
    try:
        return await get_history(session, sort=sort, search=search, page=page)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/reload")
async def reload_route(session: DashboardSession = Depends(require_session)):
    try:
        return await get_history(session, refresh=True)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/selection/page")
async def select_page_route(session: DashboardSession = Depends(require_session)):
    """Select every row on the current page, or clear the selection."""
    return toggle_page_selection(session)


@router.post("/records/{record_id}/selection")
async def select_route(record_id: str, session: DashboardSession = Depends(require_session)):
    return toggle_selection(session, record_id)


@router.post("/delete")
async def delete_selected_route(payload: BulkDeletePayload, session: DashboardSession = Depends(require_session)):
    """Delete the given ids, or the current selection when `ids` is omitted."""
    try:
        return await delete_selected(session, payload.ids)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/detail")
async def close_detail_route(session: DashboardSession = Depends(require_session)):
    return close_detail(session)


@router.get("/records/{record_id}")
async def detail_route(record_id: str, session: DashboardSession = Depends(require_session)):
    """Open the detail view for one record of the working set."""
    return open_detail(session, record_id)


@router.delete("/records/{record_id}")
async def delete_route(record_id: str, session: DashboardSession = Depends(require_session)):
    try:
        return await delete_record(session, record_id)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
