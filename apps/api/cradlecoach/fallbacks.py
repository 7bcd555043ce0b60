"""Canned answers used whenever the generative provider can't be reached.

Every function here is pure: identical child name, age and counts give
byte-identical text.
"""
from __future__ import annotations

from typing import Optional

from .router import ROUTINE_PLANNER
from .schemas import RecentLogs

QUOTA_NOTE = "_Note: The AI service has reached its quota limit. It will work again once the quota resets._"
FALLBACK_HEADER = "📋 **Fallback Response** (AI quota exceeded)"
FALLBACK_LABEL = "📋 _Fallback answer (AI unavailable)_"

SUPPORT_MESSAGES = [
    "Research shows parenting stress is valid. Problem-focused coping (making plans, asking for help) is proven effective. You're doing great by reaching out.",
    "Studies find self-care isn't selfish - it's essential. Parents who practice stress management have better emotional regulation. Take moments for yourself.",
    "Evidence shows reframing positively (\"I'm learning\") helps more than self-criticism. Every day caring for your baby is an accomplishment.",
    "Research emphasizes: reaching out for support is strength. Parents who connect with others cope better. You're not alone.",
]


def _plural(count: int, singular: str, plural: Optional[str] = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def _labeled(text: str) -> str:
    return f"{FALLBACK_LABEL}\n\n{text}"


def nap_schedule(age_months: int) -> str:
    if age_months < 6:
        return "3-4 naps throughout the day (wake windows: 1-2 hours)"
    if age_months < 12:
        return "2-3 naps (9:00 AM, 1:00 PM, optional late afternoon)"
    return "1-2 naps (usually around 1:00 PM)"


def sleep_schedule_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    return f"""{FALLBACK_HEADER}

**Best Sleep Routine for {name} ({age_months} months):**

**Bedtime Routine (30-45 min before sleep):**
• 6:30 PM - Warm bath (calming)
• 7:00 PM - Gentle massage with lotion
• 7:10 PM - Put on sleep clothes
• 7:15 PM - Dim lights, quiet story time
• 7:30 PM - Cuddles, lullaby, place in crib drowsy but awake
• 7:45 PM - Lights out, sleep

**Daytime:** {nap_schedule(age_months)}

**Today so far:** {_plural(logs.sleep, "sleep session")} logged.

**Safe Sleep:** Always back-to-sleep, firm mattress, no loose blankets/toys.

**Research shows** consistent routines ≥5 nights/week significantly **improve sleep quality** and **reduce behavior issues**. This predictable pattern helps {name}'s brain recognize sleep cues.

{QUOTA_NOTE}"""


def sleep_general_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    return _labeled(
        f"At {age_months} months, **research shows** consistent **bedtime routines** are crucial. "
        f"Try a calming sequence (bath, story, cuddles) at the same time nightly. "
        f"This helps {name} **sleep better** and supports **emotional regulation**. "
        f"({_plural(logs.sleep, 'sleep session')} logged today.)"
    )


def sleep_tip_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    return (
        "Research shows bedtime routines improve sleep consolidation. "
        f"Start a calming 30-minute routine before sleep for {name}."
    )


def feeding_general_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    today = f"({_plural(logs.feed, 'feed')} logged today.)"
    if age_months < 6:
        return _labeled(
            f"At {age_months} months, **breast milk or formula** provides complete nutrition. "
            f"**Research emphasizes responsive feeding** - watch {name}'s hunger cues and feed on demand. {today}"
        )
    return _labeled(
        f"For {age_months}-month-olds, offer **iron-rich foods** and varied textures. "
        f"Studies show **responsive feeding** (following {name}'s cues without pressure) supports "
        f"**healthy development**. {today}"
    )


def feeding_tip_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    return (
        f"**Research shows responsive feeding is key.** Watch {name}'s hunger cues, offer variety without "
        "pressure, make meals pleasant. This approach links to better **self-regulation**."
    )


def routine_schedule_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    return f"""{FALLBACK_HEADER}

**Daily Schedule for {name} ({age_months} months):**

**Morning:**
• 7:00 AM - Wake up & feed
• 8:00 AM - Playtime/tummy time
• 9:30 AM - Morning nap (1-2 hours)

**Afternoon:**
• 11:30 AM - Feed
• 12:00 PM - Active play & activities
• 2:00 PM - Afternoon nap
• 4:00 PM - Feed & quiet play

**Evening:**
• 5:30 PM - Dinner/feed
• 6:30 PM - Bath time
• 7:00 PM - Bedtime routine (story, cuddles)
• 7:30 PM - Sleep

**Naps at this age:** {nap_schedule(age_months)}

**Studies show** consistent schedules **improve cognitive development** and **self-regulation**.

{QUOTA_NOTE}"""


def routine_general_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    return _labeled(
        f"**Research shows** stable routines **boost development**. For {age_months}-month-olds, create "
        f"consistent **meal/nap times** plus plenty of **play**. Studies link regular schedules to better "
        f"**self-regulation** and **cognitive skills**."
    )


def routine_tip_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    return (
        f"Studies show routines enhance development. Create a predictable rhythm for {name} - consistent "
        "meal/sleep times plus unstructured play for cognitive growth."
    )


def support_fallback(name: str, age_months: int, logs: RecentLogs) -> str:
    return _labeled(
        "It's completely normal to feel overwhelmed - research shows parenting stress is common. "
        "Try cognitive reappraisal: \"this phase will pass.\" Studies show this technique plus self-care "
        "and reaching out for support are most effective."
    )


def generic_fallback(name: str) -> str:
    return _labeled(
        f"I understand your concern about {name}. Every baby is unique. If you have ongoing concerns, "
        "consulting your pediatrician is always wise. Maintaining routines and responsive care are "
        "evidence-based approaches."
    )


CONSULTANT_ADDENDA = {
    ROUTINE_PLANNER: (
        "Research shows building this into a consistent daily routine supports {name}'s development. "
        "Try scheduling regular times for this activity."
    ),
}


def consultant_addendum(consultant: str, name: str) -> str:
    template = CONSULTANT_ADDENDA.get(
        consultant,
        "Looking at this from another angle can help {name}; small, consistent changes tend to stick best.",
    )
    return f"\n\n💡 **{consultant} adds:** {template.format(name=name)}"
