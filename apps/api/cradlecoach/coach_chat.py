"""Single-prompt coach chat over the last week of logs, with a safety disclaimer."""
from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Any, Dict, List

from .llm_client import GenerationError, ProviderError, RateLimited, TextGenerator

logger = logging.getLogger(__name__)

MEDICAL_KEYWORDS = [
    "sick",
    "fever",
    "rash",
    "vomit",
    "diarrhea",
    "cough",
    "blood",
    "emergency",
    "pain",
    "injury",
]

MEDICAL_DISCLAIMER = (
    "\n\n⚠️ Important: This is not medical advice. If you're concerned about your child's health, "
    "please consult your pediatrician or seek immediate medical attention if it's an emergency."
)
INFO_DISCLAIMER = (
    "\n\nRemember: CradleCoach provides informational support only. "
    "For health concerns, always consult your pediatrician."
)

RATE_LIMIT_MESSAGE = (
    "I'm currently experiencing high demand. The AI service has reached its rate limit. "
    "Please try again in a few minutes."
)
CONFIG_ERROR_MESSAGE = "There's an issue with the AI service configuration. Please contact support."
GENERIC_ERROR_MESSAGE = "I'm having trouble responding right now. Please try again."

COACH_PROMPT = """You are CradleCoach AI, a supportive and empathetic parenting co-pilot. You help parents of newborns to 3-year-olds with guidance on sleep, feeding, routines, and development.

IMPORTANT GUIDELINES:
1. You are NOT a medical professional. Always include a disclaimer for medical concerns.
2. Be warm, supportive, and encouraging. Parenting is hard.
3. Provide practical, actionable advice in 2-4 short paragraphs.
4. Use simple, non-technical language.
5. When discussing sleep, feeding, or behavior patterns, reference the data provided.
6. Never diagnose medical conditions or prescribe treatments.
7. For concerning symptoms or persistent issues, recommend consulting a pediatrician.

CONTEXT:
{context}

User's question: {message}

Provide a helpful, empathetic response that addresses their question while following all guidelines above."""


def build_week_context(
    child: Dict[str, Any],
    age_months: int,
    logs: Dict[str, List[Dict[str, Any]]],
) -> str:
    lines = [
        f"Child: {child.get('name')}, {age_months} months old",
        f"Birth type: {child.get('birth_type')}, Feeding: {child.get('feeding_type')}",
        "",
    ]

    sleep_logs = logs.get("sleep") or []
    if sleep_logs:
        naps = sum(1 for entry in sleep_logs if entry.get("type") == "nap")
        lines += [
            "Recent sleep patterns (last 7 days):",
            f"- {len(sleep_logs)} sleep sessions logged",
            f"- {naps} naps, {len(sleep_logs) - naps} night sleeps",
            "",
        ]

    feed_logs = logs.get("feed") or []
    if feed_logs:
        types = Counter(entry.get("type") for entry in feed_logs)
        lines += [
            "Recent feeding (last 7 days):",
            f"- {len(feed_logs)} feedings logged",
            f"- Types: {json.dumps(dict(types))}",
            "",
        ]

    mood_logs = logs.get("mood") or []
    if mood_logs:
        latest = mood_logs[0]
        event = f" ({latest['event_type']})" if latest.get("event_type") else ""
        lines += ["Recent mood observations:", f"- Latest: {latest.get('mood')}{event}", ""]

    return "\n".join(lines) + "\n"


def add_safety_disclaimer(response: str, message: str) -> str:
    lower_message = message.lower()
    lower_response = response.lower()
    medical = any(keyword in lower_message for keyword in MEDICAL_KEYWORDS)
    if medical or "doctor" in lower_response or "pediatrician" in lower_response:
        return response + MEDICAL_DISCLAIMER
    return response + INFO_DISCLAIMER


def describe_failure(exc: Exception) -> str:
    if isinstance(exc, RateLimited):
        return RATE_LIMIT_MESSAGE
    if isinstance(exc, ProviderError) and "api key" in str(exc).lower():
        return CONFIG_ERROR_MESSAGE
    return GENERIC_ERROR_MESSAGE


async def coach_reply(
    message: str,
    child: Dict[str, Any],
    age_months: int,
    logs: Dict[str, List[Dict[str, Any]]],
    client: TextGenerator,
) -> str:
    prompt = COACH_PROMPT.format(context=build_week_context(child, age_months, logs), message=message)
    try:
        generation = await client.generate(prompt)
    except GenerationError as exc:
        logger.warning("coach chat failed", extra={"error": type(exc).__name__})
        return describe_failure(exc)
    return add_safety_disclaimer(generation.text, message)
