"""Session domain models for authenticated dashboard users."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
	from services.analytics_aggregator import AnalyticsAggregator
	from services.dashboard_overview import DashboardOverview
	from services.history_aggregator import HistoryAggregator
	from services.profile_editor import ProfileEditor
	from services.supabase.auth_client import SupabaseAuthClient


@dataclass
class AuthUser:
	"""Identity returned by the auth collaborator."""

	id: str
	email: str = ""


@dataclass
class AuthSession:
	"""Tokens issued at sign-in or on refresh.

	`expires_at` is a Unix timestamp; None when the auth service did not say.
	"""

	access_token: str
	user: AuthUser
	refresh_token: Optional[str] = None
	expires_at: Optional[int] = None


@dataclass
class DashboardSession:
	"""Per-user view state, created at sign-in and dropped at sign-out or expiry.

	`session_id` is an opaque key handed to the browser; the auth tokens stay
	on the server inside `auth_client`.
	"""

	session_id: str
	auth: AuthSession
	auth_client: "SupabaseAuthClient"
	history: "HistoryAggregator"
	analytics: "AnalyticsAggregator"
	profile: "ProfileEditor"
	overview: "DashboardOverview"
	last_seen: float = field(default_factory=time.monotonic)

	@property
	def user(self) -> AuthUser:
		return self.auth.user
