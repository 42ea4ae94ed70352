"""FastAPI routes for signing in and out."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from controllers.session_controller import SESSION_COOKIE, require_session, sign_in, sign_out
from models.session_models import DashboardSession

router = APIRouter(tags=["session"])


class LoginPayload(BaseModel):
	email: str
	password: str


@router.get("/login")
async def login_page():
	"""Target of the unauthenticated redirect; tells the client to sign in."""
	return {"login_required": True}


@router.post("/login")
async def login_route(request: Request, response: Response, payload: LoginPayload):
	try:
		result = await sign_in(request, payload.email.strip(), payload.password)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
	response.set_cookie(SESSION_COOKIE, result["session_token"], httponly=True, samesite="lax")
	return result


@router.post("/logout")
async def logout_route(request: Request, response: Response, session: DashboardSession = Depends(require_session)):
	try:
		result = await sign_out(request, session)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
	response.delete_cookie(SESSION_COOKIE)
	return result
