from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from cradlecoach.context_builders import build_agent_context, child_age_in_months, fetch_recent_logs

PACIFIC = timezone(timedelta(hours=-7))


class FakeSupabase:
    def __init__(self, *, tables=None):
        self.tables = {table: list(rows) for table, rows in (tables or {}).items()}
        self.calls = []

    async def select(self, table, params):
        self.calls.append(("select", table, params))
        return list(self.tables.get(table, []))


def test_age_in_months() -> None:
    today = date(2026, 10, 17)
    assert child_age_in_months(date(2026, 5, 30), today) == 5
    assert child_age_in_months("2025-10-01", today) == 12
    assert child_age_in_months("2026-10-16T08:00:00+00:00", today) == 0
    # Birth dates in the future clamp to zero.
    assert child_age_in_months(date(2027, 1, 1), today) == 0


def test_build_agent_context_counts_today() -> None:
    fake = FakeSupabase(
        tables={
            "children": [{"id": "c-1", "name": "Mia", "date_of_birth": "2026-02-10"}],
            "logs_sleep": [{"id": 1}, {"id": 2}],
            "logs_feed": [{"id": 3}, {"id": 4}, {"id": 5}],
            "logs_diaper": [{"id": 6}],
            "logs_mood": [{"mood": "calm"}],
        }
    )
    now = datetime(2026, 10, 17, 15, 30, tzinfo=PACIFIC)
    context = asyncio.run(build_agent_context(fake, "c-1", now=now))

    assert context.child.name == "Mia"
    assert context.child.date_of_birth == date(2026, 2, 10)
    assert context.recent_logs.sleep == 2
    assert context.recent_logs.feed == 3
    assert context.recent_logs.diaper == 1
    assert context.recent_logs.mood == "calm"

    params = {table: params for _, table, params in fake.calls}
    assert params["children"]["id"] == "eq.c-1"
    assert params["logs_sleep"]["start_time"] == "gte.2026-10-17T07:00:00+00:00"
    assert params["logs_feed"]["time"] == "gte.2026-10-17T07:00:00+00:00"
    assert params["logs_mood"]["limit"] == "1"
    assert "limit" not in params["logs_diaper"]


def test_build_agent_context_missing_child() -> None:
    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(build_agent_context(FakeSupabase(), "nope"))
    assert excinfo.value.status_code == 404


def test_fetch_recent_logs_uses_week_window() -> None:
    fake = FakeSupabase(tables={"logs_feed": [{"type": "bottle"}]})
    logs = asyncio.run(fetch_recent_logs(fake, "c-1", now=datetime(2026, 10, 17, 12, 0, tzinfo=PACIFIC)))
    assert logs["feed"] == [{"type": "bottle"}]
    assert logs["sleep"] == []
    params = {table: params for _, table, params in fake.calls}
    assert params["logs_sleep"]["start_time"] == "gte.2026-10-10T19:00:00+00:00"
    assert params["logs_sleep"]["limit"] == "20"
    assert params["logs_mood"]["limit"] == "10"


def _since(value: str) -> datetime:
    return datetime.fromisoformat(value[len("gte."):])


def test_default_today_window_is_local_midnight_with_offset() -> None:
    fake = FakeSupabase(tables={"children": [{"id": "c-1", "name": "Mia", "date_of_birth": "2026-02-10"}]})
    asyncio.run(build_agent_context(fake, "c-1"))

    params = {table: params for _, table, params in fake.calls}
    since = _since(params["logs_sleep"]["start_time"])
    assert since.tzinfo is not None
    assert since.utcoffset() == timedelta(0)
    local_midnight = since.astimezone()
    assert (local_midnight.hour, local_midnight.minute) == (0, 0)
    assert local_midnight.date() == datetime.now().astimezone().date()


def test_naive_now_is_read_as_local_time() -> None:
    fake = FakeSupabase()
    naive = datetime(2026, 10, 17, 12, 0)
    asyncio.run(fetch_recent_logs(fake, "c-1", now=naive))

    params = {table: params for _, table, params in fake.calls}
    since = _since(params["logs_feed"]["time"])
    assert since.tzinfo is not None
    assert since == naive.astimezone() - timedelta(days=7)
