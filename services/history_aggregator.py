"""History view state: load, search, sort, paginate, select and delete scans.

One `HistoryAggregator` lives in each `DashboardSession`. Every mutation of
the working set happens only after the record store has confirmed the
request, so the local list never gets ahead of the stored rows.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from dal.record_store import ClassificationStore
from models.classification_record import ClassificationRecord
from services.geocoding import GeocodingResolver
from services.supabase.query import SessionExpired
from utils.timestamps import locale_datetime

LOGGER = logging.getLogger(__name__)

SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_PAGE_SIZE = 10


class TransientNotice:
    """A message that reads as None once `lifetime` seconds have passed."""

    def __init__(self, lifetime: float = 3.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.lifetime = lifetime
        self._clock = clock
        self._message: Optional[str] = None
        self._expires_at = 0.0

    def show(self, message: str) -> None:
        self._message = message
        self._expires_at = self._clock() + self.lifetime

    @property
    def message(self) -> Optional[str]:
        if self._message is not None and self._clock() >= self._expires_at:
            self._message = None
        return self._message


@dataclass
class HistoryPage:
    items: List[ClassificationRecord]
    page: int
    page_size: int
    total_pages: int
    total_items: int


class HistoryAggregator:
    """Working set and view state behind the History page.

    Args:
        classifications: Classification DAL for the session's record store.
        geocoder: Optional resolver used to replace raw coordinates in
            locations. Without it locations are shown as stored.
        page_size: Rows per page.
        notice_seconds: Lifetime of the "deleted" success notice.
        display_timezone: Zone used for the searchable timestamp text.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        classifications: ClassificationStore,
        geocoder: Optional[GeocodingResolver] = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        notice_seconds: float = 3.0,
        display_timezone: str = "UTC",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = classifications
        self._geocoder = geocoder
        self.page_size = page_size
        self.display_timezone = display_timezone

        self.records: List[ClassificationRecord] = []
        self.sort_direction = "desc"
        self.search_term = ""
        self.page = 1
        self.selection: Set[str] = set()
        self.detail: Optional[ClassificationRecord] = None
        self.loaded = False

        self._load_token = 0
        self._notice = TransientNotice(notice_seconds, clock)

    # Loading

    async def load(self, sort_direction: Optional[str] = None) -> bool:
        """Fetch all records ordered by `created_at` and make them the working set.

        Returns False when the fetch failed (state untouched) or when a newer
        load started while this one was in flight (result discarded).

        Raises:
            ValueError: If `sort_direction` is not "asc" or "desc".
        """
        direction = sort_direction or self.sort_direction
        if direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unsupported sort direction {direction!r}")

        self._load_token += 1
        token = self._load_token
        try:
            records = await self._store.list_classifications(ascending=direction == "asc")
            records = await self._resolve_locations(records)
        except SessionExpired:
            raise
        except Exception as exc:
            LOGGER.error("Error fetching history: %s", exc)
            return False

        if token != self._load_token:
            LOGGER.debug("Discarding superseded history load %d", token)
            return False

        self.records = records
        self.sort_direction = direction
        self.loaded = True

        loaded_ids = {r.id for r in records}
        self.selection &= loaded_ids
        if self.detail is not None and self.detail.id not in loaded_ids:
            self.detail = None
        self._clamp_page()
        return True

    async def _resolve_locations(self, records: List[ClassificationRecord]) -> List[ClassificationRecord]:
        if self._geocoder is None:
            return records
        resolved = []
        for record in records:
            location = await self._geocoder.resolve_text(record.location)
            resolved.append(record if location == record.location else record.with_location(location))
        return resolved

    # Search and paging

    def filter(self, term: str) -> List[ClassificationRecord]:
        """Set the search term and return the matching records.

        A record matches when its label equals the term, its location
        contains it, or its display timestamp contains it. Only the term and
        the label/location are lower-cased; the timestamp text is compared as
        displayed. Changing the term returns to the first page.
        """
        term = (term or "").lower()
        if term != self.search_term:
            self.search_term = term
            self.page = 1
        return self.filtered()

    def filtered(self) -> List[ClassificationRecord]:
        term = self.search_term
        return [r for r in self.records if self._matches(r, term)]

    def _matches(self, record: ClassificationRecord, term: str) -> bool:
        return (
            record.classification.lower() == term
            or term in record.location.lower()
            or term in locale_datetime(record.created_at, self.display_timezone)
        )

    def paginate(self, page: Optional[int] = None, page_size: Optional[int] = None) -> HistoryPage:
        """Return one page of the filtered records.

        Pages are 1-based. A page past the end is empty.
        """
        if page is not None:
            if page < 1:
                raise ValueError("Page numbers start at 1.")
            self.page = page
        size = page_size or self.page_size
        matching = self.filtered()
        start = (self.page - 1) * size
        return HistoryPage(
            items=matching[start:start + size],
            page=self.page,
            page_size=size,
            total_pages=math.ceil(len(matching) / size),
            total_items=len(matching),
        )

    def page_items(self) -> List[ClassificationRecord]:
        return self.paginate().items

    def _clamp_page(self) -> None:
        total_pages = math.ceil(len(self.filtered()) / self.page_size)
        if self.page > max(total_pages, 1):
            self.page = max(total_pages, 1)

    # Selection

    def toggle_select(self, record_id: str) -> bool:
        """Flip membership of `record_id`; returns True if it is now selected.

        Raises:
            KeyError: If the id is not in the working set.
        """
        if not any(r.id == record_id for r in self.records):
            raise KeyError(f"Record {record_id} not found")
        if record_id in self.selection:
            self.selection.discard(record_id)
            return False
        self.selection.add(record_id)
        return True

    def toggle_select_all_on_page(self) -> Set[str]:
        """Select every record on the current page, or clear the selection.

        The selection counts as "all selected" when its size equals the
        number of rows on the current page.
        """
        page_ids = [r.id for r in self.page_items()]
        if len(self.selection) == len(page_ids):
            self.selection = set()
        else:
            self.selection = set(page_ids)
        return set(self.selection)

    # Deletion

    async def delete(self, record_id: str) -> bool:
        """Delete one record; local state changes only after the store confirms."""
        try:
            await self._store.delete_classification(record_id)
        except SessionExpired:
            raise
        except Exception as exc:
            LOGGER.error("Error deleting item %s: %s", record_id, exc)
            return False

        self._forget({record_id})
        self.selection.discard(record_id)
        self._notice.show("Item successfully deleted!")
        return True

    async def delete_selected(self, record_ids: Optional[Iterable[str]] = None) -> bool:
        """Delete a set of records (the current selection by default) in one request."""
        ids = set(record_ids) if record_ids is not None else set(self.selection)
        if not ids:
            return False
        try:
            await self._store.delete_classifications(sorted(ids))
        except SessionExpired:
            raise
        except Exception as exc:
            LOGGER.error("Error deleting %d selected items: %s", len(ids), exc)
            return False

        self._forget(ids)
        self.selection = set()
        self._notice.show(
            "Item successfully deleted!" if len(ids) == 1 else f"{len(ids)} items successfully deleted!"
        )
        return True

    def _forget(self, ids: Set[str]) -> None:
        self.records = [r for r in self.records if r.id not in ids]
        if self.detail is not None and self.detail.id in ids:
            self.detail = None
        self._clamp_page()

    @property
    def success_message(self) -> Optional[str]:
        return self._notice.message

    # Detail

    def open_detail(self, record_id: str) -> ClassificationRecord:
        for record in self.records:
            if record.id == record_id:
                self.detail = record
                return record
        raise KeyError(f"Record {record_id} not found")

    def close_detail(self) -> None:
        self.detail = None

    def view(self) -> Dict[str, Any]:
        """Serializable snapshot of the current page and surrounding state."""
        page = self.paginate()
        page_ids = [r.id for r in page.items]
        return {
            "items": [self._display(r) for r in page.items],
            "page": page.page,
            "page_size": page.page_size,
            "total_pages": page.total_pages,
            "total_items": page.total_items,
            "sort": self.sort_direction,
            "search": self.search_term,
            "selection": sorted(self.selection),
            "all_selected": bool(page_ids) and len(self.selection) == len(page_ids),
            "success_message": self.success_message,
            "detail": self._display(self.detail) if self.detail else None,
        }

    def _display(self, record: ClassificationRecord) -> Dict[str, Any]:
        data = record.to_dict()
        data["created_at_display"] = locale_datetime(record.created_at, self.display_timezone)
        return data
