"""Profile page state: load-or-initialize, edit mode, save, password change."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from dal.record_store import ProfileStore
from models.profile_record import ProfileRecord
from models.profile_update import ProfileUpdate
from models.session_models import AuthUser
from services.supabase.auth_client import AuthError, SupabaseAuthClient
from utils.timestamps import utc_now

LOGGER = logging.getLogger(__name__)

PASSWORD_MISMATCH = "New passwords do not match"
PASSWORD_UPDATED = "Password updated successfully"


class ProfileEditError(RuntimeError):
    """Raised when an edit is attempted in a state that does not allow it."""


@dataclass
class PasswordChangeResult:
    ok: bool
    message: str


class ProfileEditor:
    """Holds one user's profile plus the edit-mode and password-dialog state.

    Args:
        profiles: Profile DAL for the session's record store.
        auth_client: The user's auth client, used to read the current user
            and to change the password.
        now: Clock used for `updated_at`, injectable for tests.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        auth_client: SupabaseAuthClient,
        *,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._profiles = profiles
        self._auth = auth_client
        self._now = now

        self.profile: Optional[ProfileRecord] = None
        self.edit_mode = False
        self.saved = False

        self.password_dialog_open = False
        self.password_error: Optional[str] = None
        self.password_message: Optional[str] = None

    async def load(self, user: Optional[AuthUser] = None) -> ProfileRecord:
        """Fetch the stored profile, or start a blank one for a first-time user.

        Without `user` the current user is read from the auth service. Any
        fetch error other than "no row" propagates to the caller.
        """
        if user is None:
            user = await self._auth.get_user()
        record = await self._profiles.get_profile(user.id, email=user.email)
        if record is None:
            record = ProfileRecord.new_for_user(user.id, user.email)
        self.profile = record
        return record

    def toggle_edit(self) -> bool:
        self.edit_mode = not self.edit_mode
        if self.edit_mode:
            self.saved = False
        return self.edit_mode

    async def save(self, update: ProfileUpdate) -> ProfileRecord:
        """Upsert the edited profile; local state changes only after success.

        Raises:
            ProfileEditError: If no profile is loaded or edit mode is off.
        """
        if self.profile is None:
            raise ProfileEditError("Profile has not been loaded")
        if not self.edit_mode:
            raise ProfileEditError("Profile is not in edit mode")

        candidate = replace(self.profile, **update.changes(), updated_at=self._now())
        try:
            await self._profiles.upsert_profile(candidate)
        except Exception as exc:
            LOGGER.error("Error saving profile %s: %s", candidate.id, exc)
            raise

        candidate.is_new_user = False
        self.profile = candidate
        self.edit_mode = False
        self.saved = True
        return candidate

    def open_password_dialog(self) -> None:
        self.password_dialog_open = True
        self.password_message = None

    def close_password_dialog(self) -> None:
        self.password_dialog_open = False
        self.password_error = None

    async def change_password(self, current: str, new: str, confirm: str) -> PasswordChangeResult:
        """Change the password through the auth collaborator.

        A mismatch between `new` and `confirm` fails without any request.
        The collaborator's error message is reported verbatim and the dialog
        stays open. The dialog closes only on success. None of the submitted
        passwords are kept on the editor.
        """
        self.password_message = None

        if new != confirm:
            self.password_error = PASSWORD_MISMATCH
            return PasswordChangeResult(ok=False, message=PASSWORD_MISMATCH)

        try:
            await self._auth.update_password(new)
        except AuthError as exc:
            LOGGER.error("Error changing password: %s", exc.message)
            self.password_error = exc.message
            return PasswordChangeResult(ok=False, message=exc.message)

        self.password_error = None
        self.password_message = PASSWORD_UPDATED
        self.password_dialog_open = False
        return PasswordChangeResult(ok=True, message=PASSWORD_UPDATED)

    def view(self) -> Dict[str, Any]:
        return {
            "profile": self.profile.to_dict() if self.profile else None,
            "edit_mode": self.edit_mode,
            "saved": self.saved,
            "password_dialog_open": self.password_dialog_open,
            "password_error": self.password_error,
            "password_message": self.password_message,
        }
