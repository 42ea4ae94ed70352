"""Async Data Access Layer for the plant_classifications table (SQLite backend).

Provides ClassificationDAL with the same method surface as
`dal.rest_classification_dal.RestClassificationDAL`, so the aggregators do
not care which record store backs them.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, List

from models.classification_record import ClassificationRecord, labels_from_values, records_from_rows
from utils.database_init import AsyncDatabaseInitializer
from utils.timestamps import to_iso, utc_now


class ClassificationDAL:
    """Data access layer for classification records stored in SQLite.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection` with `aiosqlite.Row` rows).
    """

    _COLUMNS = (
        "id",
        "classification",
        "created_at",
        "image_url",
        "location",
        "confidence",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_classification(self, record: ClassificationRecord) -> str:
        """Insert a classification row and return its id.

        An empty `record.id` is replaced with a new UUID.
        """
        record_id = record.id or str(uuid.uuid4())
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO plant_classifications ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    record_id,
                    record.classification,
                    to_iso(record.created_at or utc_now()),
                    record.image_url,
                    record.location,
                    record.confidence,
                ),
            )
            await conn.commit()
        return record_id

    async def list_classifications(self, ascending: bool = False) -> List[ClassificationRecord]:
        """Return every record ordered by `created_at`."""
        direction = "ASC" if ascending else "DESC"
        return await self._select(
            f"SELECT {self._COLUMN_LIST} FROM plant_classifications ORDER BY created_at {direction}"
        )

    async def list_classifications_since(self, start: datetime) -> List[ClassificationRecord]:
        """Return records created at or after `start`, in storage order."""
        return await self._select(
            f"SELECT {self._COLUMN_LIST} FROM plant_classifications WHERE created_at >= ?",
            (to_iso(start),),
        )

    async def list_classifications_between(self, start: datetime, end: datetime) -> List[ClassificationRecord]:
        """Return records with `start <= created_at < end`."""
        return await self._select(
            f"SELECT {self._COLUMN_LIST} FROM plant_classifications "
            "WHERE created_at >= ? AND created_at < ?",
            (to_iso(start), to_iso(end)),
        )

    async def list_recent_classifications(self, limit: int = 5) -> List[ClassificationRecord]:
        """Return the `limit` most recent records, newest first."""
        return await self._select(
            f"SELECT {self._COLUMN_LIST} FROM plant_classifications ORDER BY created_at DESC LIMIT ?",
            (limit,),
        )

    async def list_labels(self) -> List[str]:
        """Return only the classification column of every row."""
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT classification FROM plant_classifications")
            rows = await cur.fetchall()
            return labels_from_values(row["classification"] for row in rows)

    async def delete_classification(self, record_id: str) -> bool:
        """Delete one row by id. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM plant_classifications WHERE id = ?", (record_id,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def delete_classifications(self, record_ids: Iterable[str]) -> int:
        """Delete every row whose id is in `record_ids` in one statement.

        Returns the number of rows removed.
        """
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        async with self._db.connection() as conn:
            await conn.execute(
                f"DELETE FROM plant_classifications WHERE id IN ({placeholders})",
                tuple(ids),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return int(changed[0]) if changed and changed[0] is not None else 0

    async def _select(self, sql: str, params: tuple = ()) -> List[ClassificationRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(sql, params)
            rows = await cur.fetchall()
            return records_from_rows(dict(row) for row in rows)
