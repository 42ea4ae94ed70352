"""History page controllers.

Each function works on the caller's `HistoryAggregator` and returns the
refreshed view so the client never has to re-query after an action.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from models.session_models import DashboardSession


async def get_history(
    session: DashboardSession,
    sort: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[int] = None,
    refresh: bool = False,
) -> Dict[str, Any]:
    """Return one History page, reloading only when the sort order changes.

    Args:
        session: The caller's dashboard session.
        sort: "asc" or "desc". A change from the loaded order triggers a reload.
        search: Search term; None keeps the current term.
        page: 1-based page number; None keeps the current page.
        refresh: Force a reload even if nothing changed.
    """
    history = session.history
    if sort is not None and sort not in ("asc", "desc"):
        raise HTTPException(status_code=400, detail="sort must be 'asc' or 'desc'")
    if page is not None and page < 1:
        raise HTTPException(status_code=400, detail="page must be at least 1")

    if refresh or not history.loaded or (sort is not None and sort != history.sort_direction):
        await history.load(sort)
    if search is not None:
        history.filter(search)
    if page is not None:
        history.paginate(page)
    return history.view()


def toggle_selection(session: DashboardSession, record_id: str) -> Dict[str, Any]:
    try:
        session.history.toggle_select(record_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found") from exc
    return session.history.view()


def toggle_page_selection(session: DashboardSession) -> Dict[str, Any]:
    session.history.toggle_select_all_on_page()
    return session.history.view()


async def delete_record(session: DashboardSession, record_id: str) -> Dict[str, Any]:
    """Delete one record. A store failure leaves the page as it was (HTTP 502)."""
    if not await session.history.delete(record_id):
        raise HTTPException(status_code=502, detail="Error deleting item.")
    return session.history.view()


async def delete_selected(session: DashboardSession, record_ids: Optional[List[str]] = None) -> Dict[str, Any]:
    """Delete the given ids, or the current selection when none are given."""
    history = session.history
    ids = record_ids if record_ids is not None else sorted(history.selection)
    if not ids:
        raise HTTPException(status_code=400, detail="No records selected.")
    if not await history.delete_selected(ids):
        raise HTTPException(status_code=502, detail="Error deleting selected items.")
    return history.view()


def open_detail(session: DashboardSession, record_id: str) -> Dict[str, Any]:
    try:
        session.history.open_detail(record_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found") from exc
    return session.history.view()


def close_detail(session: DashboardSession) -> Dict[str, Any]:
    session.history.close_detail()
    return session.history.view()
