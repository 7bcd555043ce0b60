"""Pydantic schemas shared across the API."""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChildProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque child record identifier")
    name: str
    date_of_birth: date


class RecentLogs(BaseModel):
    model_config = ConfigDict(frozen=True)

    sleep: int = 0
    feed: int = 0
    diaper: int = 0
    mood: str = ""


class AgentContext(BaseModel):
    """Snapshot handed to every specialist; never mutated while answering."""

    model_config = ConfigDict(frozen=True)

    child: ChildProfile
    recent_logs: Optional[RecentLogs] = None
    goals: Optional[List[str]] = None

    @property
    def logs(self) -> RecentLogs:
        return self.recent_logs or RecentLogs()


class StepStatus(str, Enum):
    THINKING = "thinking"
    CONSULTING = "consulting"
    COMPLETE = "complete"


class AgentStep(BaseModel):
    agent: str
    action: str
    status: StepStatus
    result: Optional[str] = None
    timestamp: int = Field(description="Creation marker in epoch milliseconds; unique per exchange")


class RouteResult(BaseModel):
    agent: str
    response: str
    steps: List[AgentStep] = Field(default_factory=list)


class ProgressEvent(BaseModel):
    type: Literal["step", "result"]
    step: Optional[AgentStep] = None
    result: Optional[RouteResult] = None


class AgentChoice(str, Enum):
    ALL = "all"
    SLEEP = "sleep"
    FEEDING = "feeding"
    ROUTINE = "routine"
    SUPPORT = "support"


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Freeform parent question")
    child_id: Optional[str] = Field(default=None, description="Child whose logs provide context.")
    context: Optional[AgentContext] = Field(
        default=None,
        description="Inline context; skips the persistence lookup when supplied.",
    )
    agent: AgentChoice = Field(default=AgentChoice.ALL, description="Route automatically or ask one specialist.")


class ChatResponse(BaseModel):
    agent: str
    response: str
    steps: List[AgentStep] = Field(default_factory=list)
    latency_ms: int


class ContextRequest(BaseModel):
    child_id: Optional[str] = None
    context: Optional[AgentContext] = None


class DailyStatus(BaseModel):
    status: str
    emoji: str
    color: str


class DashboardResponse(BaseModel):
    status: DailyStatus
    summary: str
    sleep_tip: str
    feeding_tip: str
    routine_tip: str


class TrendRequest(BaseModel):
    type: Literal["sleep", "feed", "diaper"]
    count: int = Field(..., ge=0, description="Number of logs of this type in the past week")


class WeeklyTotals(BaseModel):
    sleep: int = Field(default=0, ge=0)
    feed: int = Field(default=0, ge=0)
    diaper: int = Field(default=0, ge=0)


class CoachChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    child_id: str = Field(..., min_length=1)


class CoachChatResponse(BaseModel):
    response: str


class StoryRequest(BaseModel):
    child_name: str = ""
    child_age: int = Field(default=0, ge=0, description="Age in whole years.")
    toy: Optional[str] = None
    generate_audio: bool = False


class StoryResponse(BaseModel):
    story: str
    audio_url: Optional[str] = None
