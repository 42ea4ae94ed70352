"""FastAPI routes for the Profile page."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from controllers.profile_controller import (
    change_password,
    close_password_dialog,
    get_profile,
    open_password_dialog,
    save_profile,
    toggle_edit,
)
from controllers.session_controller import require_session
from models.profile_update import ProfileUpdate
from models.session_models import DashboardSession
from services.supabase.query import SessionExpired

router = APIRouter(prefix="/profile", tags=["profile"])


class PasswordPayload(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


@router.get("")
async def profile_route(session: DashboardSession = Depends(require_session)):
    try:
        return await get_profile(session)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/edit")
async def edit_route(session: DashboardSession = Depends(require_session)):
    """Flip edit mode on or off."""
    try:
        return await toggle_edit(session)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.put("")
async def save_route(payload: ProfileUpdate, session: DashboardSession = Depends(require_session)):
    try:
        return await save_profile(session, payload)
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/password/open")
async def open_password_route(session: DashboardSession = Depends(require_session)):
    return open_password_dialog(session)


@router.post("/password/close")
async def close_password_route(session: DashboardSession = Depends(require_session)):
    return close_password_dialog(session)


@router.post("/password")
async def password_route(payload: PasswordPayload, session: DashboardSession = Depends(require_session)):
    try:
        return await change_password(
            session, payload.current_password, payload.new_password, payload.confirm_password
        )
    except (HTTPException, SessionExpired):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
