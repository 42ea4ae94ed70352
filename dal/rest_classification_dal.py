"""Supabase-backed Data Access Layer for plant_classifications."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from supabase import AsyncClient

from models.classification_record import ClassificationRecord, labels_from_values, records_from_rows
from services.supabase.query import run_query
from utils.timestamps import to_iso, utc_now

TABLE = "plant_classifications"


class RestClassificationDAL:
    """Same surface as `dal.classification_dal.ClassificationDAL`, over the Supabase SDK.

    `client` is the signed-in user's own client, so queries run under that
    user's row-level security.
    """

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    def _table(self):
        return self._client.table(TABLE)

    async def create_classification(self, record: ClassificationRecord) -> str:
        row = record.to_dict()
        row["created_at"] = to_iso(record.created_at or utc_now())
        if not row["id"]:
            row.pop("id")
        rows = await run_query(self._table().insert(row))
        return str(rows[0]["id"]) if rows else record.id

    async def list_classifications(self, ascending: bool = False) -> List[ClassificationRecord]:
        rows = await run_query(self._table().select("*").order("created_at", desc=not ascending))
        return records_from_rows(rows)

    async def list_classifications_since(self, start: datetime) -> List[ClassificationRecord]:
        rows = await run_query(self._table().select("*").gte("created_at", to_iso(start)))
        return records_from_rows(rows)

    async def list_classifications_between(self, start: datetime, end: datetime) -> List[ClassificationRecord]:
        query = self._table().select("*").gte("created_at", to_iso(start)).lt("created_at", to_iso(end))
        return records_from_rows(await run_query(query))

    async def list_recent_classifications(self, limit: int = 5) -> List[ClassificationRecord]:
        rows = await run_query(self._table().select("*").order("created_at", desc=True).limit(limit))
        return records_from_rows(rows)

    async def list_labels(self) -> List[str]:
        rows = await run_query(self._table().select("classification"))
        return labels_from_values(r.get("classification") for r in rows)

    async def delete_classification(self, record_id: str) -> bool:
        rows = await run_query(self._table().delete().eq("id", record_id))
        return bool(rows)

    async def delete_classifications(self, record_ids: Iterable[str]) -> int:
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            return 0
        rows = await run_query(self._table().delete().in_("id", ids))
        return len(rows)
