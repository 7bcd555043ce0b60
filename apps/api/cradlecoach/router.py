from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .schemas import AgentContext

GENERAL_COACH = "General Coach"
SLEEP_COACH = "Sleep Coach"
FEEDING_COACH = "Feeding Coach"
ROUTINE_PLANNER = "Routine Planner"
EMOTIONAL_SUPPORT = "Emotional Support"


@dataclass
class RouteDecision:
    primary: str
    consultants: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)

    @property
    def is_general(self) -> bool:
        return self.primary == GENERAL_COACH


# Precedence follows list order; first domain with a hit wins.
# Matching is substring based ("rest" also hits "restless").
DOMAIN_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    (SLEEP_COACH, ("sleep", "nap", "bedtime", "night", "wake", "tired", "rest")),
    (FEEDING_COACH, ("feed", "eat", "food", "milk", "bottle", "breast", "solid", "hungry", "meal")),
    (ROUTINE_PLANNER, ("routine", "schedule", "activity", "play", "day", "plan")),
    (EMOTIONAL_SUPPORT, ("stress", "overwhelm", "tired", "cope", "help", "exhaust", "anxious", "worry")),
]

CONSULTANT_RULES: Dict[str, List[Tuple[str, Tuple[str, ...]]]] = {
    SLEEP_COACH: [(ROUTINE_PLANNER, ("routine", "schedule", "when", "time"))],
    FEEDING_COACH: [(ROUTINE_PLANNER, ("routine", "schedule", "when", "how often"))],
}


def _first_hit(lower: str, keywords: Sequence[str]) -> Optional[str]:
    for word in keywords:
        if word in lower:
            return word
    return None


def classify_question(question: str, context: Optional[AgentContext] = None) -> RouteDecision:
    """Pick the primary specialist and any consultants for a parent's question.

    Pure function of the question text; `context` is accepted so callers can pass
    what they have, but today's logs never change the route.
    """

    lower = (question or "").strip().lower()
    if not lower:
        return RouteDecision(GENERAL_COACH, reasons=["empty question"])

    for agent, keywords in DOMAIN_KEYWORDS:
        hit = _first_hit(lower, keywords)
        if hit is None:
            continue
        decision = RouteDecision(agent, reasons=[f"{agent} keyword: {hit}"])
        for consultant, triggers in CONSULTANT_RULES.get(agent, []):
            trigger = _first_hit(lower, triggers)
            if trigger is None or consultant == agent or consultant in decision.consultants:
                continue
            decision.consultants.append(consultant)
            decision.reasons.append(f"{consultant} consult trigger: {trigger}")
        return decision

    return RouteDecision(GENERAL_COACH, reasons=["no specialist keywords"])
