"""Sign-in, sign-out and session lookup for the dashboard routes."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from models.session_models import DashboardSession
from services.session_store import SessionStore
from services.supabase.auth_client import AuthError, SupabaseAuthFactory

LOGGER = logging.getLogger(__name__)

SESSION_COOKIE = "session_token"


class LoginRequired(Exception):
	"""Raised when a request has no valid session; answered with a redirect to /login."""


def _session_store(request: Request) -> SessionStore:
	store = getattr(request.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store not initialized.")
	return store


def _auth_clients(request: Request) -> SupabaseAuthFactory:
	factory = getattr(request.app.state, "auth_clients", None)
	if factory is None:
		raise HTTPException(status_code=500, detail="Auth client not initialized.")
	return factory


def session_token(request: Request) -> Optional[str]:
	"""Read the session id from the session cookie or an `Authorization: Bearer` header."""
	token = request.cookies.get(SESSION_COOKIE)
	if token:
		return token
	header = request.headers.get("authorization") or ""
	scheme, _, value = header.partition(" ")
	if scheme.lower() == "bearer" and value.strip():
		return value.strip()
	return None


async def require_session(request: Request) -> DashboardSession:
	"""FastAPI dependency returning the caller's session or redirecting to /login.

	The session's auth tokens are checked on every request and refreshed when
	they have expired. A session whose refresh is refused is dropped.
	"""
	token = session_token(request)
	if not token:
		raise LoginRequired()
	store = _session_store(request)
	try:
		session = store.get(token)
	except KeyError as exc:
		raise LoginRequired() from exc

	current = await session.auth_client.current_session()
	if current is None:
		LOGGER.info("Auth session for user %s has ended; signing out", session.user.id)
		store.discard(session.session_id)
		raise LoginRequired()
	session.auth = current
	store.touch(session)
	return session


def discard_session(request: Request) -> None:
	"""Drop the caller's dashboard session, if any."""
	token = session_token(request)
	store = getattr(request.app.state, "session_store", None)
	if token and store is not None and store.discard(token) is not None:
		LOGGER.info("Dropped dashboard session after the record store refused its token")


async def sign_in(request: Request, email: str, password: str) -> Dict[str, Any]:
	"""Authenticate against the auth service and open a dashboard session."""
	if not email or not password:
		raise HTTPException(status_code=400, detail="Email and password are required.")
	auth_client = await _auth_clients(request).open()
	try:
		auth = await auth_client.sign_in(email, password)
	except AuthError as exc:
		raise HTTPException(status_code=401, detail=exc.message) from exc

	session = _session_store(request).create(auth, auth_client)
	LOGGER.info("Opened dashboard session for user %s", session.user.id)
	return {
		"session_token": session.session_id,
		"user": {"id": session.user.id, "email": session.user.email},
	}


async def sign_out(request: Request, session: DashboardSession) -> Dict[str, Any]:
	"""Close the session locally; the remote sign-out is best effort."""
	try:
		await session.auth_client.sign_out()
	except AuthError as exc:
		LOGGER.warning("Remote sign-out failed for user %s: %s", session.user.id, exc.message)
	_session_store(request).discard(session.session_id)
	return {"signed_out": True}
