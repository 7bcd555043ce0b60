"""Dashboard helpers: daily status, one-line insights and weekly trend summaries."""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Optional

from .context_builders import child_age_in_months
from .llm_client import GenerationError, TextGenerator
from .schemas import AgentContext, DailyStatus, DashboardResponse, WeeklyTotals
from .specialists import (
    FEEDING_COACH_AGENT,
    ROUTINE_PLANNER_AGENT,
    SLEEP_COACH_AGENT,
    get_tip,
)

logger = logging.getLogger(__name__)

WEEKLY_THRESHOLDS = {
    "sleep": 40,
    "feed": 35,
    "diaper": 30,
}


def daily_status(context: AgentContext) -> DailyStatus:
    logs = context.recent_logs
    if logs is None or (logs.sleep == 0 and logs.feed == 0 and logs.diaper == 0):
        return DailyStatus(status="Ready to start tracking", emoji="🌟", color="blue")
    total = logs.sleep + logs.feed + logs.diaper
    if total >= 10:
        return DailyStatus(status="Active & engaged day", emoji="🟢", color="green")
    if total >= 5:
        return DailyStatus(status="Calm & steady", emoji="🟢", color="green")
    return DailyStatus(status="Quiet morning so far", emoji="🟡", color="yellow")


async def insight_summary(context: AgentContext, client: TextGenerator, *, today: Optional[date] = None) -> str:
    logs = context.logs
    age_months = child_age_in_months(context.child.date_of_birth, today)
    prompt = (
        f"As pediatric analyst, analyze: {logs.sleep} sleep, {logs.feed} feeds, {logs.diaper} diapers "
        f"for {age_months}-month-old. ONE brief observation in 1 sentence."
    )
    try:
        generation = await client.generate(prompt)
    except GenerationError as exc:
        logger.warning("insight summary using fallback", extra={"error": type(exc).__name__})
        if context.recent_logs is not None and logs.sleep < 2:
            return "Sleep is lower than typical. Baby might need extra comfort today."
        return "Activity levels look normal for the day so far."
    return generation.text


async def analyze_trend(log_type: str, count: int, client: TextGenerator) -> str:
    prompt = f"As pediatric data analyst, analyze: {count} {log_type} logs past week. ONE insight in 1 sentence."
    try:
        generation = await client.generate(prompt)
    except GenerationError as exc:
        logger.warning("trend analysis using fallback", extra={"type": log_type, "error": type(exc).__name__})
        return f"{log_type.capitalize()} patterns are within normal range."
    return generation.text


def weekly_summary(totals: WeeklyTotals) -> List[str]:
    return [
        "Sleep is consistent - great routines!"
        if totals.sleep > WEEKLY_THRESHOLDS["sleep"]
        else "Sleep needs more consistency - try steady bedtime.",
        "Feeding rhythm well established."
        if totals.feed > WEEKLY_THRESHOLDS["feed"]
        else "Track feeds more regularly to spot patterns.",
        "Diaper changes indicate good hydration."
        if totals.diaper >= WEEKLY_THRESHOLDS["diaper"]
        else "Monitor diaper output as feeding indicator.",
    ]


async def build_dashboard(
    context: AgentContext,
    client: TextGenerator,
    *,
    today: Optional[date] = None,
) -> DashboardResponse:
    summary, sleep_tip, feeding_tip, routine_tip = await asyncio.gather(
        insight_summary(context, client, today=today),
        get_tip(SLEEP_COACH_AGENT, context, client, today=today),
        get_tip(FEEDING_COACH_AGENT, context, client, today=today),
        get_tip(ROUTINE_PLANNER_AGENT, context, client, today=today),
    )
    return DashboardResponse(
        status=daily_status(context),
        summary=summary,
        sleep_tip=sleep_tip,
        feeding_tip=feeding_tip,
        routine_tip=routine_tip,
    )
