"""Orchestrator agent: classify a question, sequence specialists and stream progress.

One call to `route_and_process` walks a fixed sequence of steps:

    classify -> route -> consult* -> primary analysis -> contribute* -> finalize

Each step is created, pushed to the progress sink, and later flipped to
`complete` in place and pushed again. Callers keyed on `(agent, timestamp)` can
therefore update their step list rather than append duplicates.

The caller always gets a `RouteResult`; provider failures resolve to canned
text at the lowest layer that can produce it.
"""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import date
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from . import fallbacks
from .config import PacingConfig
from .context_builders import child_age_in_months
from .llm_client import GenerationError, TextGenerator
from .router import ROUTINE_PLANNER, RouteDecision, classify_question
from .schemas import AgentContext, AgentStep, ProgressEvent, RouteResult, StepStatus
from .specialists import AI_MARKER, SPECIALISTS, SpecialistAgent, analyze_question

logger = logging.getLogger(__name__)

ORCHESTRATOR_NAME = "AI Parenting Coach"

ProgressCallback = Callable[[AgentStep], Any]

CONSULTANT_RESULTS = {
    ROUTINE_PLANNER: "Added routine perspective",
}

# classify, route, primary analysis and finalize, plus consult and contribute per consultant.
FIXED_STEPS = 4
STEPS_PER_CONSULTANT = 2


def progress_capacity(consultant_count: int) -> int:
    """Emissions for one exchange (open and complete per step) plus the end marker."""

    return 2 * (FIXED_STEPS + STEPS_PER_CONSULTANT * consultant_count) + 1


class Pacer(Protocol):
    async def pause(self, phase: str) -> None:
        ...


class SleepPacer:
    """Waits a fixed, per-phase delay so the UI can show each step."""

    def __init__(self, delays: Mapping[str, float]) -> None:
        self.delays = dict(delays)

    @classmethod
    def from_config(cls, pacing: PacingConfig) -> "SleepPacer":
        return cls(pacing.delays())

    async def pause(self, phase: str) -> None:
        delay = self.delays.get(phase, 0.0)
        if delay > 0:
            await asyncio.sleep(delay)


class NoDelayPacer:
    async def pause(self, phase: str) -> None:
        return None


class _StepTrace:
    def __init__(self, on_progress: Optional[ProgressCallback]) -> None:
        self.steps: List[AgentStep] = []
        self._on_progress = on_progress
        self._last_ts = 0

    def _timestamp(self) -> int:
        # Strictly increasing so (agent, timestamp) stays unique within an exchange.
        self._last_ts = max(int(time.time() * 1000), self._last_ts + 1)
        return self._last_ts

    def _emit(self, step: AgentStep) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(step)
        except Exception:
            logger.exception("progress sink failed", extra={"agent": step.agent, "action": step.action})

    def open(self, agent: str, action: str, status: StepStatus = StepStatus.THINKING) -> AgentStep:
        step = AgentStep(agent=agent, action=action, status=status, timestamp=self._timestamp())
        self.steps.append(step)
        self._emit(step)
        return step

    def complete(self, step: AgentStep, result: str) -> None:
        step.status = StepStatus.COMPLETE
        step.result = result or "Done"
        self._emit(step)


class Orchestrator:
    name = ORCHESTRATOR_NAME

    def __init__(
        self,
        client: TextGenerator,
        *,
        pacer: Optional[Pacer] = None,
        specialists: Optional[Dict[str, SpecialistAgent]] = None,
        today: Optional[date] = None,
    ) -> None:
        self.client = client
        self.pacer = pacer or NoDelayPacer()
        self.specialists = specialists if specialists is not None else SPECIALISTS
        self.today = today

    def classify(self, question: str, context: Optional[AgentContext] = None) -> RouteDecision:
        return classify_question(question, context)

    async def _generic_answer(self, question: str, context: AgentContext) -> str:
        age_months = child_age_in_months(context.child.date_of_birth, self.today)
        prompt = (
            f"You are a supportive parenting coach. Answer about {context.child.name} "
            f'({age_months} months): "{question}". Warm, evidence-based, 2-4 sentences.'
        )
        try:
            generation = await self.client.generate(prompt)
        except GenerationError as exc:
            logger.warning("general coach using fallback", extra={"error": type(exc).__name__})
            return fallbacks.generic_fallback(context.child.name)
        return f"{AI_MARKER}{generation.text}"

    async def _primary_answer(self, decision: RouteDecision, question: str, context: AgentContext) -> str:
        agent = self.specialists.get(decision.primary)
        if agent is None:
            return await self._generic_answer(question, context)
        return await analyze_question(agent, question, context, self.client, today=self.today)

    async def route_and_process(
        self,
        question: str,
        context: AgentContext,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RouteResult:
        trace = _StepTrace(on_progress)

        step = trace.open(self.name, "Analyzing your question")
        await self.pacer.pause("classify")
        decision = self.classify(question, context)
        primary = decision.primary
        consultants = [name for name in decision.consultants if name != primary]
        logger.info(
            "question routed",
            extra={"primary": primary, "consultants": consultants, "reasons": decision.reasons},
        )
        trace.complete(step, f"Identified {primary} as primary specialist")

        step = trace.open(self.name, f"Routing to {primary}")
        await self.pacer.pause("route")
        trace.complete(step, f"Connected to {primary}")

        for consultant in consultants:
            step = trace.open(self.name, f"Requesting {consultant} collaboration", StepStatus.CONSULTING)
            await self.pacer.pause("consult")
            trace.complete(step, f"{consultant} will provide complementary insights")

        step = trace.open(primary, "Analyzing based on research evidence")
        try:
            response = await self._primary_answer(decision, question, context)
        except Exception:
            logger.exception("primary analysis failed", extra={"primary": primary})
            response = fallbacks.generic_fallback(context.child.name)
        if not response.strip():
            response = fallbacks.generic_fallback(context.child.name)
        trace.complete(step, "Generated research-based response")

        for consultant in consultants:
            await self.pacer.pause("contribute_lead")
            step = trace.open(consultant, "Contributing additional insights")
            await self.pacer.pause("contribute")
            response += fallbacks.consultant_addendum(consultant, context.child.name)
            trace.complete(step, CONSULTANT_RESULTS.get(consultant, f"Added {consultant} perspective"))

        step = trace.open(self.name, "Finalizing response")
        await self.pacer.pause("finalize")
        trace.complete(step, "Response ready")

        return RouteResult(agent=primary, response=response, steps=trace.steps)

    async def route_question(self, question: str, context: AgentContext) -> Tuple[str, str]:
        result = await self.route_and_process(question, context)
        return result.agent, result.response

    async def stream(self, question: str, context: AgentContext) -> AsyncIterator[ProgressEvent]:
        """Yield a snapshot per step emission, then a final `result` event.

        Closing the iterator early cancels the in-flight routing task.
        """

        decision = self.classify(question, context)
        consultants = [name for name in decision.consultants if name != decision.primary]
        queue: "asyncio.Queue[Optional[ProgressEvent]]" = asyncio.Queue(maxsize=progress_capacity(len(consultants)))

        def sink(step: AgentStep) -> None:
            queue.put_nowait(ProgressEvent(type="step", step=step.model_copy()))

        task = asyncio.create_task(self.route_and_process(question, context, sink))
        task.add_done_callback(lambda _: queue.put_nowait(None))
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
            yield ProgressEvent(type="result", result=task.result())
        finally:
            if not task.done():
                task.cancel()
