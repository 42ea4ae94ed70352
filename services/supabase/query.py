"""Run Supabase table queries and translate PostgREST failures.

The REST DALs build queries with the SDK's fluent builder
(``client.table(...).select(...).eq(...)``) and hand them to `run_query`,
which returns the row list and raises this project's error types.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from supabase import PostgrestAPIError

LOGGER = logging.getLogger(__name__)

# PostgREST answers these when the bearer token is missing, invalid or expired.
JWT_ERROR_CODES = frozenset({"PGRST301", "PGRST302", "PGRST303"})


class RecordStoreError(RuntimeError):
    """Raised when the hosted record store rejects a request."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class SessionExpired(RuntimeError):
    """The signed-in user's tokens were rejected; they have to sign in again."""


async def run_query(query) -> List[Dict[str, Any]]:
    """Execute a built query and return its rows.

    Raises:
        SessionExpired: If PostgREST rejected the user's token.
        RecordStoreError: For any other PostgREST error.
    """
    try:
        response = await query.execute()
    except PostgrestAPIError as exc:
        message = exc.message or str(exc)
        if exc.code in JWT_ERROR_CODES:
            raise SessionExpired(message) from exc
        LOGGER.error("Record store request failed (%s): %s", exc.code, message)
        raise RecordStoreError(message, code=exc.code) from exc
    return list(response.data or [])
