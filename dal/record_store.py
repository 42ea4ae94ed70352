"""Select the record store backend for a signed-in user."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from dal.classification_dal import ClassificationDAL
from dal.profile_dal import ProfileDAL
from dal.rest_classification_dal import RestClassificationDAL
from dal.rest_profile_dal import RestProfileDAL
from utils.config import AppConfig
from utils.database_init import AsyncDatabaseInitializer

ClassificationStore = Union[ClassificationDAL, RestClassificationDAL]
ProfileStore = Union[ProfileDAL, RestProfileDAL]


@dataclass
class RecordStore:
    classifications: ClassificationStore
    profiles: ProfileStore


class RecordStoreFactory:
    """Build per-session `RecordStore`s for the configured backend.

    The `supabase` backend queries through the user's own Supabase client;
    the `sqlite` backend shares one local database file across sessions.
    """

    def __init__(self, config: AppConfig, db_initializer: Optional[AsyncDatabaseInitializer] = None) -> None:
        self.config = config
        self._db = db_initializer
        if config.record_store_backend == "sqlite" and db_initializer is None:
            raise RuntimeError("The sqlite record store needs a database initializer.")

    def for_client(self, supabase_client: Any) -> RecordStore:
        """Return the stores for one session; `supabase_client` is unused by `sqlite`."""
        if self.config.record_store_backend == "sqlite":
            return RecordStore(
                classifications=ClassificationDAL(self._db),
                profiles=ProfileDAL(self._db),
            )
        return RecordStore(
            classifications=RestClassificationDAL(supabase_client),
            profiles=RestProfileDAL(supabase_client),
        )
