"""Async Data Access Layer for the profiles table (SQLite backend)."""

from __future__ import annotations

from typing import Optional

from models.profile_record import PROFILE_COLUMNS, ProfileRecord
from utils.database_init import AsyncDatabaseInitializer


class ProfileDAL:
    """Read and upsert profile rows keyed by the auth user id."""

    _COLUMN_LIST = ", ".join(PROFILE_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def get_profile(self, user_id: str, email: str = "") -> Optional[ProfileRecord]:
        """Return the profile for `user_id`, or None if no row exists."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM profiles WHERE id = ?",
                (user_id,),
            )
            row = await cur.fetchone()
            return ProfileRecord.from_row(dict(row), email=email) if row else None

    async def upsert_profile(self, record: ProfileRecord) -> ProfileRecord:
        """Insert the profile or update the existing row with the same id."""
        row = record.to_row()
        updates = ", ".join(f"{col} = excluded.{col}" for col in PROFILE_COLUMNS[1:])
        placeholders = ", ".join("?" for _ in PROFILE_COLUMNS)
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO profiles ({self._COLUMN_LIST}) VALUES ({placeholders}) "
                f"ON CONFLICT(id) DO UPDATE SET {updates}",
                tuple(row[col] for col in PROFILE_COLUMNS),
            )
            await conn.commit()
        return record
