"""Profile page controllers."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException

from models.profile_update import ProfileUpdate
from models.session_models import DashboardSession
from services.profile_editor import ProfileEditError
from services.supabase.auth_client import AuthError
from services.supabase.query import SessionExpired


async def _load(session: DashboardSession) -> None:
    try:
        await session.profile.load()
    except AuthError as exc:
        if exc.status_code in (401, 403):
            raise SessionExpired(exc.message) from exc
        raise HTTPException(status_code=502, detail=exc.message) from exc


async def get_profile(session: DashboardSession) -> Dict[str, Any]:
    """Load (or initialize) the profile of the user the auth service reports."""
    await _load(session)
    return session.profile.view()


async def _ensure_loaded(session: DashboardSession) -> None:
    if session.profile.profile is None:
        await _load(session)


async def toggle_edit(session: DashboardSession) -> Dict[str, Any]:
    await _ensure_loaded(session)
    session.profile.toggle_edit()
    return session.profile.view()


async def save_profile(session: DashboardSession, update: ProfileUpdate) -> Dict[str, Any]:
    """Persist profile edits. Only allowed while edit mode is on (HTTP 409 otherwise)."""
    try:
        await session.profile.save(update)
    except ProfileEditError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return session.profile.view()


def open_password_dialog(session: DashboardSession) -> Dict[str, Any]:
    session.profile.open_password_dialog()
    return session.profile.view()


def close_password_dialog(session: DashboardSession) -> Dict[str, Any]:
    session.profile.close_password_dialog()
    return session.profile.view()


async def change_password(session: DashboardSession, current: str, new: str, confirm: str) -> Dict[str, Any]:
    """Run the password change; a failure is reported as HTTP 400 with the message."""
    result = await session.profile.change_password(current, new, confirm)
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.message)
    return {"message": result.message, **session.profile.view()}
