from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException

from .schemas import AgentContext, ChildProfile, RecentLogs
from .supabase import SupabaseClient


LOG_TABLES = {
    "sleep": ("logs_sleep", "start_time"),
    "feed": ("logs_feed", "time"),
    "diaper": ("logs_diaper", "time"),
    "mood": ("logs_mood", "time"),
}

RECENT_LOG_LIMITS = {"sleep": 20, "feed": 20, "diaper": 20, "mood": 10}


def child_age_in_months(date_of_birth: Union[date, str], today: Optional[date] = None) -> int:
    """Whole calendar months since birth; day of month is ignored and the result never goes negative."""

    birth = date.fromisoformat(date_of_birth[:10]) if isinstance(date_of_birth, str) else date_of_birth
    now = today or date.today()
    months = (now.year - birth.year) * 12 + (now.month - birth.month)
    return max(0, months)


async def fetch_child(supabase: SupabaseClient, child_id: str) -> Dict[str, Any]:
    rows = await supabase.select(
        "children",
        params={"select": "*", "id": f"eq.{child_id}", "limit": "1"},
    )
    if not rows:
        raise HTTPException(status_code=404, detail="Child not found.")
    return rows[0]


async def _fetch_logs(
    supabase: SupabaseClient,
    kind: str,
    child_id: str,
    since: datetime,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    table, time_column = LOG_TABLES[kind]
    params: Dict[str, Any] = {
        "select": "*",
        "child_id": f"eq.{child_id}",
        time_column: f"gte.{since.astimezone(timezone.utc).isoformat()}",
        "order": f"{time_column}.desc",
    }
    if limit is not None:
        params["limit"] = str(limit)
    return await supabase.select(table, params=params)


def _local_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    # Naive values are read as server-local time.
    return now if now.tzinfo is not None else now.astimezone()


def child_profile_from_row(row: Dict[str, Any]) -> ChildProfile:
    return ChildProfile(
        id=str(row["id"]),
        name=row.get("name") or "your child",
        date_of_birth=date.fromisoformat(str(row["date_of_birth"])[:10]),
    )


async def build_agent_context(
    supabase: SupabaseClient,
    child_id: str,
    *,
    now: Optional[datetime] = None,
) -> AgentContext:
    """Profile plus today's sleep/feed/diaper counts and the latest mood label."""

    current = _local_now(now)
    midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)
    child_row = await fetch_child(supabase, child_id)
    sleep, feed, diaper, mood = await asyncio.gather(
        _fetch_logs(supabase, "sleep", child_id, midnight),
        _fetch_logs(supabase, "feed", child_id, midnight),
        _fetch_logs(supabase, "diaper", child_id, midnight),
        _fetch_logs(supabase, "mood", child_id, midnight, limit=1),
    )
    return AgentContext(
        child=child_profile_from_row(child_row),
        recent_logs=RecentLogs(
            sleep=len(sleep),
            feed=len(feed),
            diaper=len(diaper),
            mood=(mood[0].get("mood") or "") if mood else "",
        ),
    )


async def fetch_recent_logs(
    supabase: SupabaseClient,
    child_id: str,
    *,
    days: int = 7,
    now: Optional[datetime] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    since = _local_now(now) - timedelta(days=days)
    kinds = list(LOG_TABLES)
    results = await asyncio.gather(
        *(_fetch_logs(supabase, kind, child_id, since, limit=RECENT_LOG_LIMITS[kind]) for kind in kinds)
    )
    return dict(zip(kinds, results))
