"""Shared fixtures: in-memory record store doubles, sample scans, a SQLite store."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

import pytest

from models.classification_record import HEALTHY, UNHEALTHY, ClassificationRecord
from models.session_models import AuthSession, AuthUser
from services.supabase.auth_client import AuthError
from utils.config import AppConfig
from utils.database_init import AsyncDatabaseInitializer

BASE_TIME = datetime(2024, 5, 20, 15, 30, 0, tzinfo=timezone.utc)


def make_record(
    record_id: str,
    classification: str = HEALTHY,
    created_at: Optional[datetime] = None,
    location: str = "Greenhouse A",
) -> ClassificationRecord:
    return ClassificationRecord(
        id=record_id,
        classification=classification,
        created_at=created_at or BASE_TIME,
        image_url=f"https://images.example/{record_id}.jpg",
        location=location,
        confidence=0.9,
    )


class FakeClassificationStore:
    """In-memory stand-in for the classification DALs.

    Set `fail_on` to a method name to make that method raise `failure`
    (a RuntimeError by default).
    """

    def __init__(self, records: Iterable[ClassificationRecord] = ()) -> None:
        self.records: List[ClassificationRecord] = list(records)
        self.calls: List[tuple] = []
        self.fail_on: Optional[str] = None
        self.failure: Optional[Exception] = None

    def _check(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise self.failure or RuntimeError(f"{name} failed")

    async def list_classifications(self, ascending: bool = False):
        self._check("list_classifications", ascending)
        return sorted(self.records, key=lambda r: r.created_at, reverse=not ascending)

    async def list_classifications_since(self, start):
        self._check("list_classifications_since", start)
        return [r for r in self.records if r.created_at >= start]

    async def list_classifications_between(self, start, end):
        self._check("list_classifications_between", start, end)
        return [r for r in self.records if start <= r.created_at < end]

    async def list_recent_classifications(self, limit: int = 5):
        self._check("list_recent_classifications", limit)
        return sorted(self.records, key=lambda r: r.created_at, reverse=True)[:limit]

    async def list_labels(self):
        self._check("list_labels")
        return [r.classification for r in self.records]

    async def delete_classification(self, record_id):
        self._check("delete_classification", record_id)
        before = len(self.records)
        self.records = [r for r in self.records if r.id != record_id]
        return len(self.records) < before

    async def delete_classifications(self, record_ids):
        ids = set(record_ids)
        self._check("delete_classifications", ids)
        before = len(self.records)
        self.records = [r for r in self.records if r.id not in ids]
        return before - len(self.records)


class FakeAuthClient:
    """One user's auth client.

    Set `expired` to make the session unrecoverable, or `password_error` to
    make `update_password` fail with that message.
    """

    def __init__(self) -> None:
        self.client = None
        self.session: Optional[AuthSession] = None
        self.expired = False
        self.password_error: Optional[str] = None
        self.password_updates: List[str] = []
        self.signed_out = False
        self.accounts = {"admin@example.com": ("secret", AuthUser(id="user-1", email="admin@example.com"))}

    async def sign_in(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials", status_code=400)
        user = account[1]
        self.session = AuthSession(
            access_token=f"jwt-{user.id}",
            refresh_token=f"refresh-{user.id}",
            expires_at=1_900_000_000,
            user=user,
        )
        return self.session

    async def current_session(self):
        if self.expired:
            return None
        return self.session

    async def get_user(self):
        if self.expired or self.session is None:
            raise AuthError("Invalid JWT", status_code=401)
        return self.session.user

    async def update_password(self, new_password):
        self.password_updates.append(new_password)
        if self.password_error:
            raise AuthError(self.password_error, status_code=422)
        return AuthUser(id="user-1", email="admin@example.com")

    async def sign_out(self):
        self.signed_out = True
        self.session = None


class FakeAuthFactory:
    """Hands out a new `FakeAuthClient` per sign-in and keeps them in `opened`."""

    def __init__(self) -> None:
        self.opened: List[FakeAuthClient] = []

    async def open(self):
        auth_client = FakeAuthClient()
        self.opened.append(auth_client)
        return auth_client


@pytest.fixture
def records_25():
    """25 scans one hour apart, alternating labels, oldest first."""
    return [
        make_record(
            f"rec-{i:02d}",
            HEALTHY if i % 2 == 0 else UNHEALTHY,
            BASE_TIME + timedelta(hours=i),
        )
        for i in range(25)
    ]


@pytest.fixture
def fake_store(records_25):
    return FakeClassificationStore(records_25)


@pytest.fixture
def fake_auth():
    return FakeAuthClient()


@pytest.fixture
def fake_auths():
    return FakeAuthFactory()


@pytest.fixture
def db_initializer(tmp_path):
    return AsyncDatabaseInitializer(tmp_path / "db")


@pytest.fixture
def sqlite_config(tmp_path):
    return AppConfig(
        supabase_url="http://supabase.test",
        supabase_anon_key="anon-key",
        record_store_backend="sqlite",
        database_dir=tmp_path / "db",
    )
