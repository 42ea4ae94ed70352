"""Supabase Auth for dashboard sessions.

Each signed-in user gets their own `supabase.AsyncClient`: the SDK keeps that
user's tokens and sends them on every table query, so row-level security
applies per user. `SupabaseAuthFactory` opens those clients and
`SupabaseAuthClient` wraps the auth calls the dashboard needs.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from supabase import AsyncClient, AsyncClientOptions, acreate_client
from supabase import AuthError as SupabaseAuthError

from models.session_models import AuthSession, AuthUser

LOGGER = logging.getLogger(__name__)


class AuthError(RuntimeError):
    """Raised with the auth service's own message when a call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _auth_error(exc: SupabaseAuthError) -> AuthError:
    return AuthError(getattr(exc, "message", None) or str(exc), status_code=getattr(exc, "status", None))


class SupabaseAuthClient:
    """Auth calls for one user, on that user's own Supabase client."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> AsyncClient:
        """The underlying SDK client; table queries made with it carry the user's token."""
        return self._client

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Exchange email and password for an `AuthSession`."""
        try:
            response = await self._client.auth.sign_in_with_password({"email": email, "password": password})
        except SupabaseAuthError as exc:
            raise _auth_error(exc) from exc
        if response.session is None:
            raise AuthError("Sign-in did not return a session.")
        return _auth_session(response.session, response.user)

    async def current_session(self) -> Optional[AuthSession]:
        """Return the user's tokens, refreshing them first when they have expired.

        Returns None when there is no session or the refresh token was refused.
        """
        try:
            session = await self._client.auth.get_session()
        except SupabaseAuthError as exc:
            LOGGER.info("Could not refresh auth session: %s", getattr(exc, "message", exc))
            return None
        if session is None:
            return None
        return _auth_session(session, session.user)

    async def get_user(self) -> AuthUser:
        """Fetch the current user from the auth service."""
        try:
            response = await self._client.auth.get_user()
        except SupabaseAuthError as exc:
            raise _auth_error(exc) from exc
        if response is None or response.user is None:
            raise AuthError("No signed-in user.", status_code=401)
        return _auth_user(response.user)

    async def update_password(self, new_password: str) -> AuthUser:
        """Set a new password for the signed-in user."""
        try:
            response = await self._client.auth.update_user({"password": new_password})
        except SupabaseAuthError as exc:
            raise _auth_error(exc) from exc
        return _auth_user(response.user)

    async def sign_out(self) -> None:
        try:
            await self._client.auth.sign_out()
        except SupabaseAuthError as exc:
            raise _auth_error(exc) from exc


class SupabaseAuthFactory:
    """Open a fresh Supabase client for each sign-in.

    Args:
        supabase_url: Project URL.
        api_key: Project anon key.
        timeout: Table query timeout in seconds.
    """

    def __init__(self, supabase_url: str, api_key: str, *, timeout: float = 10.0) -> None:
        self.supabase_url = supabase_url
        self.api_key = api_key
        self.timeout = timeout

    async def open(self) -> SupabaseAuthClient:
        client = await acreate_client(
            self.supabase_url,
            self.api_key,
            options=AsyncClientOptions(
                auto_refresh_token=False,
                persist_session=False,
                postgrest_client_timeout=self.timeout,
            ),
        )
        return SupabaseAuthClient(client)


def _auth_user(user: Any) -> AuthUser:
    if user is None or not getattr(user, "id", None):
        raise AuthError("Auth response did not include a user.")
    return AuthUser(id=str(user.id), email=getattr(user, "email", None) or "")


def _auth_session(session: Any, user: Any) -> AuthSession:
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
        user=_auth_user(user or session.user),
    )
