"""Bedtime stories built around a child's favourite toy, with optional narration."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .llm_client import GenerationError, Narrator
from .schemas import StoryResponse

logger = logging.getLogger(__name__)

DEFAULT_CHILD_NAME = "your little one"

VEHICLE_STORY = (
    "Once upon a time, in a cozy little garage at the very edge of Dreamland, there lived a very "
    "special {toy}. This wasn't just any ordinary toy, it had a secret. Every single night, when "
    "{name} closed their eyes and drifted off to sleep, the {toy} would come alive, its lights "
    "twinkling like tiny stars.\n\n"
    "One starry night the {toy} found a shimmering rainbow bridge that stretched all the way up to "
    "the Moon. Fluffy cloud bunnies and cloud puppies waved as it drove higher and higher, and "
    "they all joined the adventure, laughing and playing games along the way.\n\n"
    "At the top, the Moon smiled and said, \"Thank you for visiting, little {toy}. Now hurry home, "
    "{name} will want you close by in the morning.\" So the {toy} rolled gently back down the "
    "rainbow, parked quietly beside {name}'s bed, and dreamed of the next adventure.\n\n"
    "Goodnight, {name}. Sweet dreams.\n\nThe end."
)

GUARDIAN_STORY = (
    "In the coziest corner of {name}'s room, right next to the nightlight that glows like a tiny "
    "moon, sits {toy}. To anyone else, {toy} might look like just a regular cuddly friend. But "
    "{name} knows the truth: {toy} is magical, and has been since the very first day they met.\n\n"
    "{toy} is the Guardian of Dreams. Every evening, as the stars wake up one by one, {toy} starts "
    "to glow with a gentle, warm light made of love and a sprinkle of moonbeam, and wraps it around "
    "{name} like an invisible blanket. No worries and no sad thoughts can get through.\n\n"
    "All night long {toy} keeps watch, letting only the sweetest dreams come to visit this "
    "wonderful {age}. And when the sun peeks in, {toy} is right there, ready for a morning hug.\n\n"
    "Goodnight, {name}. Sleep tight.\n\nThe end."
)

ADVENTURE_STORY = (
    "Once upon a time, in a world where magic was real and dreams came true, there lived a very "
    "special {toy}. Every single night, when the stars came out to play, this {toy} would come "
    "alive with the most wonderful magic.\n\n"
    "The {toy} belonged to a very special {age} named {name}. As {name}'s eyes fluttered closed, "
    "the {toy} would whisper, \"Are you ready for tonight's adventure?\" and together they would "
    "float up through the roof into a sky full of friendly, twinkling stars.\n\n"
    "They visited the Cloud Kingdom, where Queen Cumula let {name} send happy dreams to children "
    "all over the world, and walked the glowing shore of the Sea of Starlight, where the Star "
    "Keeper showed {name} a constellation that had appeared the night they were born.\n\n"
    "As dawn began to lighten the sky, the {toy} carried {name} gently home and whispered, "
    "\"Remember that you are special and loved. I'll be here, ready for more adventures every "
    "single night.\"\n\n"
    "Goodnight. Sleep tight. Dream bright.\n\nThe end."
)

# First entry whose keywords appear in the toy description wins.
STORY_TEMPLATES: List[Tuple[Tuple[str, ...], str]] = [
    (("truck", "car", "vehicle"), VEHICLE_STORY),
    (("bear", "teddy", "stuffed"), GUARDIAN_STORY),
]


def age_description(age_years: int) -> str:
    if age_years < 1:
        return "baby"
    if age_years == 1:
        return "toddler"
    return f"{age_years}-year-old"


def select_template(toy: str) -> str:
    lower = toy.lower()
    for keywords, template in STORY_TEMPLATES:
        if any(word in lower for word in keywords):
            return template
    return ADVENTURE_STORY


def compose_story(child_name: str, age_years: int, toy: str) -> str:
    name = child_name.strip() or DEFAULT_CHILD_NAME
    return select_template(toy).format(name=name, toy=toy.strip(), age=age_description(age_years))


async def tell_story(
    child_name: str,
    age_years: int,
    toy: str,
    narrator: Optional[Narrator] = None,
) -> StoryResponse:
    """Compose the story; narration is best effort and never costs the caller the text."""

    story = compose_story(child_name, age_years, toy)
    audio_url: Optional[str] = None
    if narrator is not None:
        try:
            audio_url = await narrator.narrate(story)
        except GenerationError as exc:
            logger.warning("story narration skipped", extra={"error": type(exc).__name__})
    return StoryResponse(story=story, audio_url=audio_url)
