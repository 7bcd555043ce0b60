from __future__ import annotations

import logging
import time
from typing import AsyncIterator, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from .coach_chat import coach_reply
from .config import get_config
from .context_builders import build_agent_context, child_age_in_months, fetch_child, fetch_recent_logs
from .insight_engine import analyze_trend, build_dashboard, weekly_summary
from .llm_client import GenerativeTextClient, TextGenerator, get_text_client
from .orchestrator import NoDelayPacer, Orchestrator, SleepPacer
from .schemas import (
    AgentChoice,
    AgentContext,
    ChatRequest,
    ChatResponse,
    CoachChatRequest,
    CoachChatResponse,
    ContextRequest,
    DashboardResponse,
    RouteResult,
    StoryRequest,
    StoryResponse,
    TrendRequest,
    WeeklyTotals,
)
from .specialists import SPECIALISTS_BY_KEY, analyze_question, support_message
from .stories import tell_story
from .supabase import SupabaseClient, get_admin_client


logger = logging.getLogger(__name__)

app = FastAPI(
    title="CradleCoach API",
    version="0.1.0",
    description="Routes parenting questions to specialist coaches and streams their progress",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)


def get_orchestrator(client: TextGenerator = Depends(get_text_client)) -> Orchestrator:
    pacing = get_config().pacing
    pacer = SleepPacer.from_config(pacing) if pacing.enabled else NoDelayPacer()
    return Orchestrator(client, pacer=pacer)


def get_supabase() -> SupabaseClient:
    try:
        return get_admin_client()
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


async def resolve_context(
    child_id: Optional[str],
    context: Optional[AgentContext],
) -> AgentContext:
    if context is not None:
        return context
    if not child_id:
        raise HTTPException(status_code=400, detail="child_id or context is required.")
    return await build_agent_context(get_supabase(), child_id)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/v1/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> ChatResponse:
    started = time.perf_counter()
    context = await resolve_context(payload.child_id, payload.context)
    logger.info(
        "chat request",
        extra={"child_id": context.child.id, "agent": payload.agent.value, "chars": len(payload.message)},
    )
    if payload.agent is AgentChoice.ALL:
        result = await orchestrator.route_and_process(payload.message, context)
    else:
        specialist = SPECIALISTS_BY_KEY[payload.agent]
        response = await analyze_question(specialist, payload.message, context, orchestrator.client)
        result = RouteResult(agent=specialist.name, response=response)
    latency_ms = int((time.perf_counter() - started) * 1000)
    return ChatResponse(agent=result.agent, response=result.response, steps=result.steps, latency_ms=latency_ms)


@app.post("/api/v1/chat/stream")
async def chat_stream(
    payload: ChatRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    """Newline-delimited JSON: one `step` event per progress update, then one `result` event."""

    if payload.agent is not AgentChoice.ALL:
        raise HTTPException(status_code=400, detail="Streaming is only available when routing automatically.")
    context = await resolve_context(payload.child_id, payload.context)
    logger.info("chat stream request", extra={"child_id": context.child.id})

    async def events() -> AsyncIterator[str]:
        async for event in orchestrator.stream(payload.message, context):
            yield event.model_dump_json() + "\n"

    return StreamingResponse(events(), media_type="application/x-ndjson")


@app.post("/api/v1/dashboard", response_model=DashboardResponse)
async def dashboard(
    payload: ContextRequest,
    client: TextGenerator = Depends(get_text_client),
) -> DashboardResponse:
    context = await resolve_context(payload.child_id, payload.context)
    return await build_dashboard(context, client)


@app.post("/api/v1/trends/analyze")
async def trend_insight(
    payload: TrendRequest,
    client: TextGenerator = Depends(get_text_client),
) -> dict:
    return {"type": payload.type, "insight": await analyze_trend(payload.type, payload.count, client)}


@app.post("/api/v1/trends/weekly", response_model=List[str])
async def weekly_trends(payload: WeeklyTotals) -> List[str]:
    return weekly_summary(payload)


@app.get("/api/v1/support-message")
async def get_support_message() -> dict:
    return {"message": support_message()}


@app.post("/api/v1/coach-chat", response_model=CoachChatResponse)
async def coach_chat(
    payload: CoachChatRequest,
    client: TextGenerator = Depends(get_text_client),
) -> CoachChatResponse:
    logger.info("coach chat request", extra={"child_id": payload.child_id})
    supabase = get_supabase()
    child = await fetch_child(supabase, payload.child_id)
    logs = await fetch_recent_logs(supabase, payload.child_id)
    age_months = child_age_in_months(str(child["date_of_birth"]))
    reply = await coach_reply(payload.message, child, age_months, logs, client)
    return CoachChatResponse(response=reply)


@app.post("/api/v1/stories", response_model=StoryResponse)
async def create_story(
    payload: StoryRequest,
    client: GenerativeTextClient = Depends(get_text_client),
) -> StoryResponse:
    if not payload.toy or not payload.toy.strip():
        raise HTTPException(status_code=400, detail="Toy description is required")
    logger.info("story request", extra={"toy": payload.toy, "audio": payload.generate_audio})
    return await tell_story(
        payload.child_name,
        payload.child_age,
        payload.toy,
        narrator=client if payload.generate_audio else None,
    )
