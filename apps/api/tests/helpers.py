from __future__ import annotations

from datetime import date
from typing import List, Optional

from cradlecoach.llm_client import Generation, ProviderError
from cradlecoach.schemas import AgentContext, ChildProfile, RecentLogs

TODAY = date(2026, 10, 17)


def months_before(today: date, months: int) -> date:
    index = today.year * 12 + (today.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)


def make_context(
    age_months: int = 5,
    *,
    name: str = "Lev",
    sleep: int = 0,
    feed: int = 0,
    diaper: int = 0,
    mood: str = "",
    with_logs: bool = True,
    goals: Optional[List[str]] = None,
    today: date = TODAY,
) -> AgentContext:
    return AgentContext(
        child=ChildProfile(id="child-1", name=name, date_of_birth=months_before(today, age_months)),
        recent_logs=RecentLogs(sleep=sleep, feed=feed, diaper=diaper, mood=mood) if with_logs else None,
        goals=goals,
    )


class FakeTextClient:
    def __init__(self, text: str = "Try a steady wind-down.", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.prompts: List[str] = []
        self.narrations: List[str] = []

    async def generate(self, prompt: str) -> Generation:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return Generation(text=self.text)

    async def narrate(self, text: str) -> str:
        self.narrations.append(text)
        if self.error is not None:
            raise self.error
        return "data:audio/mp3;base64,bHVsbGFieQ=="


def failing_client(error: Optional[Exception] = None) -> FakeTextClient:
    return FakeTextClient(error=error or ProviderError("Provider returned status 500", status_code=500))
