from datetime import datetime, timedelta, timezone

import pytest

from conftest import FakeClassificationStore, make_record
from models.classification_record import HEALTHY, UNHEALTHY
from services.dashboard_overview import DashboardOverview
from services.supabase.query import SessionExpired

NOW = datetime(2024, 6, 15, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return FakeClassificationStore(
        [
            make_record("today-1", HEALTHY, NOW - timedelta(hours=2)),
            make_record("today-2", UNHEALTHY, datetime(2024, 6, 15, 0, 0, tzinfo=timezone.utc)),
            make_record("late", HEALTHY, datetime(2024, 6, 15, 23, 59, 59, 500000, tzinfo=timezone.utc)),
            make_record("yesterday", UNHEALTHY, NOW - timedelta(days=1)),
            make_record("older", HEALTHY, NOW - timedelta(days=3)),
            make_record("oldest", HEALTHY, NOW - timedelta(days=9)),
        ]
    )


@pytest.mark.asyncio
async def test_overview_counts_labels_today_and_recent(store):
    overview = DashboardOverview(store, now=lambda: NOW)

    loaded = await overview.load()

    assert loaded == {"stats": True, "today": True, "recent": True}
    assert (overview.healthy_scans, overview.unhealthy_scans) == (4, 2)
    # The day window ends at 23:59:59Z, so the scan half a second later is not counted.
    assert overview.today_scans == 2
    assert [r.id for r in overview.recent_activities] == ["late", "today-1", "today-2", "yesterday", "older"]


@pytest.mark.asyncio
async def test_one_failing_section_does_not_block_the_others(store):
    overview = DashboardOverview(store, now=lambda: NOW)
    store.fail_on = "list_labels"

    loaded = await overview.load()

    assert loaded["stats"] is False
    assert overview.healthy_scans == 0
    assert overview.today_scans == 2
    assert len(overview.recent_activities) == 5


@pytest.mark.asyncio
async def test_rejected_token_stops_the_load(store):
    overview = DashboardOverview(store, now=lambda: NOW)
    store.fail_on = "list_classifications_between"
    store.failure = SessionExpired("JWT expired")

    with pytest.raises(SessionExpired):
        await overview.load()
