"""Supabase-backed Data Access Layer for profiles."""

from __future__ import annotations

from typing import Optional

from supabase import AsyncClient

from models.profile_record import PROFILE_COLUMNS, ProfileRecord
from services.supabase.query import run_query

TABLE = "profiles"


class RestProfileDAL:
    """Same surface as `dal.profile_dal.ProfileDAL`, over the Supabase SDK."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def get_profile(self, user_id: str, email: str = "") -> Optional[ProfileRecord]:
        """Return the profile row for `user_id`; an empty result means no row."""
        query = self._client.table(TABLE).select(",".join(PROFILE_COLUMNS)).eq("id", user_id).limit(1)
        rows = await run_query(query)
        return ProfileRecord.from_row(rows[0], email=email) if rows else None

    async def upsert_profile(self, record: ProfileRecord) -> ProfileRecord:
        await run_query(self._client.table(TABLE).upsert(record.to_row(), on_conflict="id"))
        return record
