"""Specialist agents: one prompt template, one enrichment rule and one set of canned answers per domain."""
from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, Optional, Pattern

from . import fallbacks
from .context_builders import child_age_in_months
from .llm_client import GenerationError, TextGenerator
from .router import EMOTIONAL_SUPPORT, FEEDING_COACH, ROUTINE_PLANNER, SLEEP_COACH
from .schemas import AgentChoice, AgentContext, RecentLogs

logger = logging.getLogger(__name__)

AI_MARKER = "🤖 **AI-Generated Response:**\n\n"

FallbackFn = Callable[[str, int, RecentLogs], str]


class Branch(str, Enum):
    DETAILED = "detailed"
    FOCUS = "focus"
    GENERAL = "general"


@dataclass(frozen=True)
class SpecialistAgent:
    key: AgentChoice
    name: str
    system_prompt: str
    context_template: str
    general_instruction: str
    general_fallback: FallbackFn
    question_label: str = "Question"
    tip_template: str = ""
    tip_fallback: Optional[FallbackFn] = None
    detail_pattern: Optional[Pattern[str]] = None
    detail_instruction: str = ""
    detail_fallback: Optional[FallbackFn] = None
    focus_pattern: Optional[Pattern[str]] = None
    focus_instruction: str = ""


SLEEP_PROMPT = """You are an expert Sleep Coach for infants/toddlers (0-3 years), trained on peer-reviewed research:

SAFE SLEEP (AAP Guidelines): Always back-to-sleep, firm flat surface, no loose bedding/pillows, room-sharing not bed-sharing, pacifier after breastfeeding established.

SLEEP CONSOLIDATION: Early sleep education at 4 months helps longer sleep by 6 months. Consistent bedtime routines by 3-6 months promote better consolidation.

BEDTIME ROUTINES: ≥5 nights/week routines at 12-15 months significantly reduce behavior problems. Include quiet play, bath, story. Benefits: better sleep AND emotional regulation.

When asked about sleep routines or best practices:
- Provide SPECIFIC bedtime routine with exact timing (e.g., "6:30 PM bath, 7:00 PM story, 7:30 PM sleep")
- Include step-by-step bedtime ritual
- Mention age-appropriate wake windows and nap schedules
- Always include safe sleep reminders
- Explain research-backed benefits

Be specific, actionable, and detailed. Parents want concrete guidance."""

FEEDING_PROMPT = """You are an expert Feeding Coach for ages 0-3, based on research:

BREASTFEEDING: Mother's milk is best. Exclusive breastfeeding first 6 months, continue with solids to 12-24 months.

RESPONSIVE FEEDING (Critical): Follow hunger/fullness cues, encourage autonomy. NEVER pressure to "clean plate" - disrupts self-regulation. Make meals pleasant with praise, eye contact.

COMPLEMENTARY FEEDING (6+ months): Iron-rich foods first (meat, fortified cereals). Progress textures: purees→lumpy→pieces by 9-12 months. High-quality diet links to better cognitive/language development. Repeated exposure without pressure.

FEEDING DIFFICULTIES: Regular meal schedules (5 small meals/day), low-pressure exposure. Never force - it's ineffective per research. Praise small tastes.

Validate concerns, give evidence-based practical steps. 2-4 sentences."""

ROUTINE_PROMPT = """You are an expert Routine Planner for ages 0-3, grounded in research:

VALUE OF ROUTINES: Stable family routines→better cognitive skills, self-regulation, behavior, academic readiness, physical health. Protective in high-stress contexts.

PLAY & LEARNING: Play is educational. More playtime→stronger self-regulation→higher reading/math scores. Unstructured play (pretend, blocks, art) fosters executive skills.

FLEXIBLE STRUCTURE: Balance fixed times (meals, sleep) with exploration. Consistent rhythm helps toddlers learn self-control and expectations. Adjust as child grows.

When asked about specific routines or schedules:
- For SLEEP routines: Provide specific bedtime schedule with times (e.g., 7:00 PM bath, 7:30 PM story, 8:00 PM sleep)
- For DAILY schedules: Give hour-by-hour breakdown with wake time, naps, meals, play, bath, bedtime
- For TIMETABLES: Create specific time blocks for the child's age
- Include WHY each element helps development (backed by research)

Always be specific with times and activities. Make it actionable and detailed."""

SUPPORT_PROMPT = """You are an Emotional Support specialist for parents of 0-3 year-olds, research-based:

PARENTAL STRESS: Higher stress→less adaptive coping, more suppression. fMRI studies show stressed caregivers find it harder to stay calm. Teach reappraisal: "This phase will pass" vs catastrophizing. Quick relaxation (deep breathing) improves coping.

EFFECTIVE COPING: Problem-focused (active problem-solving)=beneficial. Healthy emotion-focused (venting to friends, self-care)=helpful. Avoidant (denial, withdrawal)=more distress. Research recommends encouraging effective coping.

EVIDENCE-BASED: Cognitive reappraisal is neurologically grounded. Self-care (exercise, sleep) improves stress regulation. Schedule help, set small goals, find peer support.

Lead with empathy, normalize feelings, offer specific coping strategy, ground in research. 2-4 sentences."""


SLEEP_COACH_AGENT = SpecialistAgent(
    key=AgentChoice.SLEEP,
    name=SLEEP_COACH,
    system_prompt=SLEEP_PROMPT,
    context_template="Child: {name}, {age} months. Today's sleep: {sleep} sessions.",
    detail_pattern=re.compile(r"routine|schedule|best|what.*time|when|how.*sleep|suggest"),
    detail_instruction=(
        "The parent wants SPECIFIC sleep routine guidance. Provide:\n"
        '1. Exact bedtime routine with times (e.g., "6:30 PM - Start bath")\n'
        "2. Step-by-step pre-sleep activities\n"
        "3. Age-appropriate total sleep hours and nap schedule\n"
        "4. Safe sleep reminders\n"
        "5. Research-backed explanation of benefits\n\n"
        "Make it detailed and actionable."
    ),
    detail_fallback=fallbacks.sleep_schedule_fallback,
    general_instruction="Provide research-based sleep coaching with specific, practical advice.",
    general_fallback=fallbacks.sleep_general_fallback,
    tip_template="Generate ONE sleep tip for {name}, {age} months, {sleep} sleep sessions today.",
    tip_fallback=fallbacks.sleep_tip_fallback,
)

FEEDING_COACH_AGENT = SpecialistAgent(
    key=AgentChoice.FEEDING,
    name=FEEDING_COACH,
    system_prompt=FEEDING_PROMPT,
    context_template="Child: {name}, {age} months. Today's feeds: {feed}.",
    general_instruction="Provide research-based feeding advice.",
    general_fallback=fallbacks.feeding_general_fallback,
    tip_template="Generate ONE feeding tip for {name}, {age} months, {feed} feeds today.",
    tip_fallback=fallbacks.feeding_tip_fallback,
)

ROUTINE_PLANNER_AGENT = SpecialistAgent(
    key=AgentChoice.ROUTINE,
    name=ROUTINE_PLANNER,
    system_prompt=ROUTINE_PROMPT,
    context_template="Child: {name}, {age} months.",
    detail_pattern=re.compile(r"schedule|timetable|routine|time|when|suggest.*time|daily|plan|hour"),
    detail_instruction=(
        "The parent is asking for a SPECIFIC SCHEDULE. Provide:\n"
        '1. Exact times for activities (e.g., "7:00 AM - Wake up and feed")\n'
        "2. Age-appropriate activities with durations\n"
        "3. Brief research note on why this schedule benefits development\n"
        "Format with times clearly listed."
    ),
    detail_fallback=fallbacks.routine_schedule_fallback,
    focus_pattern=re.compile(r"sleep|bedtime|nap"),
    focus_instruction=(
        "Focus on sleep routine. Include specific bedtime ritual steps with times, "
        "safe sleep practices, and research-backed benefits."
    ),
    general_instruction="Provide research-based routine planning with specific, actionable advice.",
    general_fallback=fallbacks.routine_general_fallback,
    tip_template="Suggest ONE routine tip for {name}, {age} months.",
    tip_fallback=fallbacks.routine_tip_fallback,
)

EMOTIONAL_SUPPORT_AGENT = SpecialistAgent(
    key=AgentChoice.SUPPORT,
    name=EMOTIONAL_SUPPORT,
    system_prompt=SUPPORT_PROMPT,
    context_template="Parent of {name}.",
    question_label="Concern",
    general_instruction="Provide research-based emotional support.",
    general_fallback=fallbacks.support_fallback,
)

SPECIALISTS: Dict[str, SpecialistAgent] = {
    agent.name: agent
    for agent in (SLEEP_COACH_AGENT, FEEDING_COACH_AGENT, ROUTINE_PLANNER_AGENT, EMOTIONAL_SUPPORT_AGENT)
}
SPECIALISTS_BY_KEY: Dict[AgentChoice, SpecialistAgent] = {agent.key: agent for agent in SPECIALISTS.values()}


def select_branch(agent: SpecialistAgent, question: str) -> Branch:
    lower = (question or "").lower()
    if agent.detail_pattern is not None and agent.detail_pattern.search(lower):
        return Branch.DETAILED
    if agent.focus_pattern is not None and agent.focus_pattern.search(lower):
        return Branch.FOCUS
    return Branch.GENERAL


def _template_values(context: AgentContext, age_months: int) -> Dict[str, object]:
    logs = context.logs
    return {
        "name": context.child.name,
        "age": age_months,
        "sleep": logs.sleep,
        "feed": logs.feed,
        "diaper": logs.diaper,
        "mood": logs.mood or "unknown",
    }


def build_prompt(
    agent: SpecialistAgent,
    question: str,
    context: AgentContext,
    age_months: int,
    branch: Branch,
) -> str:
    summary = agent.context_template.format(**_template_values(context, age_months))
    if branch is Branch.DETAILED:
        instruction = agent.detail_instruction
    elif branch is Branch.FOCUS:
        instruction = agent.focus_instruction
    else:
        instruction = agent.general_instruction
    goals = f"\nFamily goals: {', '.join(context.goals)}." if context.goals else ""
    return (
        f"{agent.system_prompt}\n\n{summary}{goals}\n"
        f'{agent.question_label}: "{question}"\n\n{instruction}'
    )


def render_fallback(agent: SpecialistAgent, branch: Branch, context: AgentContext, age_months: int) -> str:
    if branch is Branch.DETAILED and agent.detail_fallback is not None:
        return agent.detail_fallback(context.child.name, age_months, context.logs)
    return agent.general_fallback(context.child.name, age_months, context.logs)


async def analyze_question(
    agent: SpecialistAgent,
    question: str,
    context: AgentContext,
    client: TextGenerator,
    *,
    today: Optional[date] = None,
) -> str:
    """Answer one question as `agent`; falls back to canned text instead of raising."""

    age_months = child_age_in_months(context.child.date_of_birth, today)
    branch = select_branch(agent, question)
    prompt = build_prompt(agent, question, context, age_months, branch)
    try:
        generation = await client.generate(prompt)
    except GenerationError as exc:
        logger.warning(
            "specialist using fallback response",
            extra={"agent": agent.name, "branch": branch.value, "error": type(exc).__name__},
        )
        return render_fallback(agent, branch, context, age_months)
    except Exception:
        logger.exception("specialist generation failed unexpectedly", extra={"agent": agent.name})
        return render_fallback(agent, branch, context, age_months)
    return f"{AI_MARKER}{generation.text}"


async def get_tip(
    agent: SpecialistAgent,
    context: AgentContext,
    client: TextGenerator,
    *,
    today: Optional[date] = None,
) -> str:
    if agent.tip_fallback is None or not agent.tip_template:
        raise ValueError(f"{agent.name} has no dashboard tip")
    age_months = child_age_in_months(context.child.date_of_birth, today)
    values = _template_values(context, age_months)
    prompt = f"{agent.system_prompt}\n\n{agent.tip_template.format(**values)}"
    try:
        generation = await client.generate(prompt)
    except GenerationError as exc:
        logger.warning("tip using fallback", extra={"agent": agent.name, "error": type(exc).__name__})
        return agent.tip_fallback(context.child.name, age_months, context.logs)
    return generation.text


def support_message(index: Optional[int] = None) -> str:
    if index is None:
        return random.choice(fallbacks.SUPPORT_MESSAGES)
    return fallbacks.SUPPORT_MESSAGES[index % len(fallbacks.SUPPORT_MESSAGES)]
