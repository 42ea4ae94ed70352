"""Simple in-memory store for signed-in dashboard sessions."""

from __future__ import annotations

import logging
import secrets
import time
from typing import Callable, Dict, List, Optional

from dal.record_store import RecordStoreFactory
from models.session_models import AuthSession, DashboardSession
from services.analytics_aggregator import AnalyticsAggregator
from services.dashboard_overview import DashboardOverview
from services.geocoding import GeocodingResolver
from services.history_aggregator import HistoryAggregator
from services.profile_editor import ProfileEditor
from services.supabase.auth_client import SupabaseAuthClient

LOGGER = logging.getLogger(__name__)


class DashboardSessionBuilder:
	"""Wire a fresh set of view components for one signed-in user."""

	def __init__(self, record_stores: RecordStoreFactory, geocoder: Optional[GeocodingResolver] = None) -> None:
		self.record_stores = record_stores
		self.geocoder = geocoder

	def build(self, session_id: str, auth: AuthSession, auth_client: SupabaseAuthClient) -> DashboardSession:
		config = self.record_stores.config
		store = self.record_stores.for_client(auth_client.client)
		return DashboardSession(
			session_id=session_id,
			auth=auth,
			auth_client=auth_client,
			history=HistoryAggregator(
				store.classifications,
				self.geocoder,
				page_size=config.history_page_size,
				notice_seconds=config.notice_seconds,
				display_timezone=config.display_timezone,
			),
			analytics=AnalyticsAggregator(store.classifications, display_timezone=config.display_timezone),
			profile=ProfileEditor(store.profiles, auth_client),
			overview=DashboardOverview(store.classifications),
		)


class SessionStore:
	"""Track dashboard sessions by opaque session id.

	Sessions idle for longer than `idle_seconds` are dropped the next time a
	session is created.
	"""

	def __init__(
		self,
		builder: DashboardSessionBuilder,
		*,
		idle_seconds: float = 8 * 3600,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self._builder = builder
		self._idle_seconds = idle_seconds
		self._clock = clock
		self._sessions: Dict[str, DashboardSession] = {}

	def create(self, auth: AuthSession, auth_client: SupabaseAuthClient) -> DashboardSession:
		"""Create a session for a fresh sign-in under a new random id."""
		self.evict_idle()
		session = self._builder.build(secrets.token_urlsafe(32), auth, auth_client)
		session.last_seen = self._clock()
		self._sessions[session.session_id] = session
		return session

	def get(self, session_id: str) -> DashboardSession:
		"""Return a session or raise KeyError if missing or idle past the limit."""
		session = self._sessions.get(session_id)
		if session is None:
			raise KeyError(f"Session {session_id} not found")
		if session.last_seen < self._clock() - self._idle_seconds:
			del self._sessions[session_id]
			raise KeyError(f"Session {session_id} has expired")
		return session

	def touch(self, session: DashboardSession) -> None:
		session.last_seen = self._clock()

	def discard(self, session_id: Optional[str]) -> Optional[DashboardSession]:
		"""Drop a session if it exists."""
		if not session_id:
			return None
		return self._sessions.pop(session_id, None)

	def evict_idle(self) -> List[DashboardSession]:
		"""Drop and return every session idle for longer than the limit."""
		cutoff = self._clock() - self._idle_seconds
		stale = [s for s in self._sessions.values() if s.last_seen < cutoff]
		for session in stale:
			del self._sessions[session.session_id]
		if stale:
			LOGGER.info("Evicted %d idle dashboard sessions", len(stale))
		return stale

	def __len__(self) -> int:
		return len(self._sessions)

	def __contains__(self, session_id: object) -> bool:
		return session_id in self._sessions
