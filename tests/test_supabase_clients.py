"""
Tests for the Supabase-backed DALs and the auth wrapper.

The SDK client is replaced by small fakes: `FakeSupabase.table()` hands out
a `FakeQuery` that records every builder call, and `FakeAuth` answers the
auth calls with canned objects, so nothing leaves the process.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from supabase import AuthApiError, PostgrestAPIError

from dal.rest_classification_dal import RestClassificationDAL
from dal.rest_profile_dal import RestProfileDAL
from models.classification_record import HEALTHY, UNHEALTHY
from models.profile_record import ProfileRecord
from services.supabase.auth_client import AuthError, SupabaseAuthClient
from services.supabase.query import RecordStoreError, SessionExpired, run_query

ROW = {
    "id": "rec-1",
    "classification": "Healthy",
    "created_at": "2024-05-20T15:30:00+00:00",
    "image_url": "https://images.example/rec-1.jpg",
    "location": "Latitude: 1.0, Longitude: 2.0",
    "confidence": "0.97",
}


def api_error(code, message):
    return PostgrestAPIError({"code": code, "message": message, "hint": None, "details": None})


class FakeQuery:
    """Chainable stand-in for the SDK's request builder."""

    def __init__(self, data=None, error=None):
        self.data = data if data is not None else []
        self.error = error
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return record

    async def execute(self):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.data)


class FakeSupabase:
    def __init__(self, data=None, error=None):
        self.query = FakeQuery(data, error)
        self.tables = []

    def table(self, name):
        self.tables.append(name)
        return self.query


class TestRunQuery:
    @pytest.mark.asyncio
    async def test_returns_rows(self):
        assert await run_query(FakeQuery(data=[ROW])) == [ROW]

    @pytest.mark.asyncio
    async def test_null_data_is_an_empty_list(self):
        query = FakeQuery()
        query.data = None
        assert await run_query(query) == []

    @pytest.mark.parametrize("code", ["PGRST301", "PGRST303"])
    @pytest.mark.asyncio
    async def test_rejected_token_means_session_expired(self, code):
        with pytest.raises(SessionExpired, match="JWT expired"):
            await run_query(FakeQuery(error=api_error(code, "JWT expired")))

    @pytest.mark.asyncio
    async def test_other_errors_become_record_store_errors(self):
        query = FakeQuery(error=api_error("42501", "permission denied for table plant_classifications"))

        with pytest.raises(RecordStoreError) as excinfo:
            await run_query(query)

        assert excinfo.value.code == "42501"
        assert "permission denied" in excinfo.value.message


class TestRestClassificationDAL:
    @pytest.mark.asyncio
    async def test_list_orders_by_created_at(self):
        client = FakeSupabase(data=[ROW])

        records = await RestClassificationDAL(client).list_classifications(ascending=True)

        assert client.tables == ["plant_classifications"]
        assert client.query.calls == [
            ("select", ("*",), {}),
            ("order", ("created_at",), {"desc": False}),
        ]
        assert records[0].confidence == "0.97"

    @pytest.mark.asyncio
    async def test_between_uses_half_open_filters(self):
        client = FakeSupabase(data=[ROW])
        start = datetime(2024, 5, 20, tzinfo=timezone.utc)
        end = datetime(2024, 5, 20, 23, 59, 59, tzinfo=timezone.utc)

        await RestClassificationDAL(client).list_classifications_between(start, end)

        assert client.query.calls[1:] == [
            ("gte", ("created_at", "2024-05-20T00:00:00.000000+00:00"), {}),
            ("lt", ("created_at", "2024-05-20T23:59:59.000000+00:00"), {}),
        ]

    @pytest.mark.asyncio
    async def test_mixed_case_label_is_normalized(self):
        rows = [ROW, dict(ROW, id="rec-2", classification="healthy"), dict(ROW, id="rec-3", classification="UNHEALTHY ")]

        records = await RestClassificationDAL(FakeSupabase(data=rows)).list_classifications()

        assert [r.classification for r in records] == [HEALTHY, HEALTHY, UNHEALTHY]

    @pytest.mark.asyncio
    async def test_bad_row_is_skipped_and_logged(self, caplog):
        rows = [ROW, dict(ROW, id="rec-2", classification="Wilted"), dict(ROW, id="rec-3", created_at="yesterday")]

        records = await RestClassificationDAL(FakeSupabase(data=rows)).list_classifications()

        assert [r.id for r in records] == ["rec-1"]
        assert "rec-2" in caplog.text
        assert "rec-3" in caplog.text

    @pytest.mark.asyncio
    async def test_labels_are_normalized_and_unknown_ones_dropped(self):
        rows = [{"classification": "healthy"}, {"classification": "Unhealthy"}, {"classification": None}]

        assert await RestClassificationDAL(FakeSupabase(data=rows)).list_labels() == [HEALTHY, UNHEALTHY]

    @pytest.mark.asyncio
    async def test_bulk_delete_sends_unique_ids_and_counts_rows(self):
        client = FakeSupabase(data=[{"id": "a"}, {"id": "b"}])

        assert await RestClassificationDAL(client).delete_classifications(["a", "b", "a"]) == 2
        assert client.query.calls == [("delete", (), {}), ("in_", ("id", ["a", "b"]), {})]

    @pytest.mark.asyncio
    async def test_bulk_delete_of_nothing_sends_no_request(self):
        client = FakeSupabase()

        assert await RestClassificationDAL(client).delete_classifications([]) == 0
        assert client.tables == []

    @pytest.mark.asyncio
    async def test_expired_token_propagates(self):
        client = FakeSupabase(error=api_error("PGRST303", "JWT expired"))

        with pytest.raises(SessionExpired):
            await RestClassificationDAL(client).delete_classification("rec-1")


class TestRestProfileDAL:
    @pytest.mark.asyncio
    async def test_missing_profile_row_is_none(self):
        client = FakeSupabase(data=[])

        assert await RestProfileDAL(client).get_profile("user-1") is None
        assert ("eq", ("id", "user-1"), {}) in client.query.calls

    @pytest.mark.asyncio
    async def test_upsert_merges_on_id_and_excludes_email(self):
        client = FakeSupabase(data=[])

        await RestProfileDAL(client).upsert_profile(
            ProfileRecord(id="user-1", email="admin@example.com", first_name="Ada")
        )

        name, (row,), kwargs = client.query.calls[0]
        assert name == "upsert"
        assert kwargs == {"on_conflict": "id"}
        assert "email" not in row
        assert row["first_name"] == "Ada"


USER = SimpleNamespace(id="user-1", email="admin@example.com")
SESSION = SimpleNamespace(access_token="jwt", refresh_token="refresh", expires_at=1_900_000_000, user=USER)


class FakeAuth:
    def __init__(self, error=None, session=SESSION):
        self.error = error
        self.session = session
        self.calls = []

    async def _answer(self, name, payload, value):
        self.calls.append((name, payload))
        if self.error is not None:
            raise self.error
        return value

    async def sign_in_with_password(self, credentials):
        return await self._answer("sign_in_with_password", credentials, SimpleNamespace(user=USER, session=SESSION))

    async def get_session(self):
        return await self._answer("get_session", None, self.session)

    async def get_user(self, jwt=None):
        return await self._answer("get_user", None, SimpleNamespace(user=USER))

    async def update_user(self, attributes):
        return await self._answer("update_user", attributes, SimpleNamespace(user=USER))

    async def sign_out(self):
        return await self._answer("sign_out", None, None)


def auth_client(auth):
    return SupabaseAuthClient(SimpleNamespace(auth=auth))


class TestSupabaseAuthClient:
    @pytest.mark.asyncio
    async def test_sign_in_returns_session(self):
        auth = FakeAuth()

        session = await auth_client(auth).sign_in("admin@example.com", "secret")

        assert auth.calls == [("sign_in_with_password", {"email": "admin@example.com", "password": "secret"})]
        assert (session.access_token, session.refresh_token, session.expires_at) == ("jwt", "refresh", 1_900_000_000)
        assert session.user.email == "admin@example.com"

    @pytest.mark.asyncio
    async def test_error_message_and_status_are_passed_through(self):
        error = AuthApiError("New password should be different from the old password.", 422, "same_password")

        with pytest.raises(AuthError) as excinfo:
            await auth_client(FakeAuth(error=error)).update_password("n3w")

        assert excinfo.value.message == "New password should be different from the old password."
        assert excinfo.value.status_code == 422

    @pytest.mark.asyncio
    async def test_update_password_sends_only_the_new_password(self):
        auth = FakeAuth()

        user = await auth_client(auth).update_password("n3w-secret")

        assert auth.calls == [("update_user", {"password": "n3w-secret"})]
        assert user.id == "user-1"

    @pytest.mark.asyncio
    async def test_current_session_is_none_when_refresh_is_refused(self):
        error = AuthApiError("Invalid Refresh Token: Refresh Token Not Found", 400, "refresh_token_not_found")

        assert await auth_client(FakeAuth(error=error)).current_session() is None

    @pytest.mark.asyncio
    async def test_current_session_is_none_without_a_session(self):
        assert await auth_client(FakeAuth(session=None)).current_session() is None

    @pytest.mark.asyncio
    async def test_get_user_reads_the_auth_service(self):
        user = await auth_client(FakeAuth()).get_user()
        assert (user.id, user.email) == ("user-1", "admin@example.com")

    @pytest.mark.asyncio
    async def test_sign_out(self):
        auth = FakeAuth()
        await auth_client(auth).sign_out()
        assert auth.calls == [("sign_out", None)]
