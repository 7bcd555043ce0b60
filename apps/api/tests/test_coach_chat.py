from __future__ import annotations

import asyncio

from cradlecoach.coach_chat import (
    CONFIG_ERROR_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    INFO_DISCLAIMER,
    MEDICAL_DISCLAIMER,
    RATE_LIMIT_MESSAGE,
    add_safety_disclaimer,
    build_week_context,
    coach_reply,
)
from cradlecoach.llm_client import ProviderError, RateLimited

from .helpers import FakeTextClient, failing_client

CHILD = {"id": "child-1", "name": "Lev", "birth_type": "vaginal", "feeding_type": "breast"}
LOGS = {
    "sleep": [{"type": "nap"}, {"type": "nap"}, {"type": "night"}],
    "feed": [{"type": "breast"}, {"type": "bottle"}, {"type": "breast"}],
    "diaper": [],
    "mood": [{"mood": "happy", "event_type": "after nap"}, {"mood": "fussy"}],
}


def test_week_context_summarises_logs() -> None:
    text = build_week_context(CHILD, 5, LOGS)
    assert text.startswith("Child: Lev, 5 months old\nBirth type: vaginal, Feeding: breast\n")
    assert "- 3 sleep sessions logged" in text
    assert "- 2 naps, 1 night sleeps" in text
    assert '- Types: {"breast": 2, "bottle": 1}' in text
    assert "- Latest: happy (after nap)" in text


def test_week_context_skips_empty_sections() -> None:
    text = build_week_context(CHILD, 5, {"sleep": [], "feed": [], "diaper": [], "mood": []})
    assert "Recent" not in text


def test_disclaimer_selection() -> None:
    assert add_safety_disclaimer("Keep an eye on it.", "She has a fever").endswith(MEDICAL_DISCLAIMER)
    assert add_safety_disclaimer("Ask your pediatrician.", "Is this normal?").endswith(MEDICAL_DISCLAIMER)
    assert add_safety_disclaimer("Try a bath first.", "Bedtime tips?").endswith(INFO_DISCLAIMER)


def test_reply_appends_disclaimer() -> None:
    client = FakeTextClient(text="Try a consistent wind-down.")
    reply = asyncio.run(coach_reply("Bedtime tips?", CHILD, 5, LOGS, client))
    assert reply == "Try a consistent wind-down." + INFO_DISCLAIMER
    assert "User's question: Bedtime tips?" in client.prompts[0]
    assert "- 2 naps, 1 night sleeps" in client.prompts[0]


def test_reply_failure_messages() -> None:
    assert asyncio.run(coach_reply("hi", CHILD, 5, LOGS, failing_client(RateLimited("quota")))) == RATE_LIMIT_MESSAGE
    missing_key = ProviderError("Missing OpenAI API key; the generative provider is unavailable.")
    assert asyncio.run(coach_reply("hi", CHILD, 5, LOGS, failing_client(missing_key))) == CONFIG_ERROR_MESSAGE
    assert asyncio.run(coach_reply("hi", CHILD, 5, LOGS, failing_client())) == GENERIC_ERROR_MESSAGE
