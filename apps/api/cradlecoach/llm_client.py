"""Generative text client shared by the specialist agents and dashboard helpers.

One prompt in, one completion out; bedtime stories can also be narrated to
audio. Failures are classified so callers can
decide how to recover; nothing here retries.
"""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Protocol

from openai import APIError, APIStatusError, AsyncOpenAI, RateLimitError

from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

NARRATION_INSTRUCTIONS = (
    "Narrate this bedtime story in a warm, gentle voice suitable for reading to young children. "
    "Use a soothing tone and pace appropriate for bedtime."
)


class GenerationError(RuntimeError):
    """Base error for generative provider calls."""


class RateLimited(GenerationError):
    """Raised when the provider reports quota exhaustion or a 429."""


class ProviderError(GenerationError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class Generation:
    text: str
    source: str = "ai"


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> Generation:
        ...


class Narrator(Protocol):
    async def narrate(self, text: str) -> str:
        ...


class GenerativeTextClient:
    def __init__(self, config: Optional[AppConfig] = None, sdk: Optional[AsyncOpenAI] = None) -> None:
        self.config = config or get_config()
        self._sdk = sdk

    def _client(self) -> AsyncOpenAI:
        if self._sdk is None:
            if not self.config.openai_api_key:
                raise ProviderError("Missing OpenAI API key; the generative provider is unavailable.")
            self._sdk = AsyncOpenAI(
                api_key=self.config.openai_api_key,
                base_url=self.config.openai_base_url,
            )
        return self._sdk

    async def generate(self, prompt: str) -> Generation:
        sdk = self._client()
        logger.info(
            "generative call",
            extra={"model": self.config.openai_model, "prompt_chars": len(prompt)},
        )
        try:
            response = await sdk.chat.completions.create(
                model=self.config.openai_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.config.temperature,
                max_tokens=self.config.max_output_tokens,
            )
        except APIError as exc:
            raise _classify_error(exc) from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as exc:
            raise ProviderError("Unexpected provider response format") from exc
        text = (content or "").strip() if isinstance(content, str) else ""
        if not text:
            raise ProviderError("Provider response contained no text")
        return Generation(text=text)

    async def narrate(self, text: str) -> str:
        """Speech for `text` as an mp3 data URL."""

        sdk = self._client()
        logger.info(
            "narration call",
            extra={"model": self.config.tts_model, "voice": self.config.tts_voice, "chars": len(text)},
        )
        try:
            response = await sdk.audio.speech.create(
                model=self.config.tts_model,
                voice=self.config.tts_voice,
                input=text,
                instructions=NARRATION_INSTRUCTIONS,
                response_format="mp3",
            )
        except APIError as exc:
            raise _classify_error(exc) from exc

        audio = getattr(response, "content", None)
        if not isinstance(audio, (bytes, bytearray)) or not audio:
            raise ProviderError("Provider response contained no audio")
        return "data:audio/mp3;base64," + base64.b64encode(audio).decode("ascii")


def _classify_error(exc: APIError) -> GenerationError:
    if isinstance(exc, RateLimitError) or (isinstance(exc, APIStatusError) and exc.status_code == 429):
        logger.warning("generative provider rate limited", extra={"status": getattr(exc, "status_code", 429)})
        return RateLimited("Quota exceeded at the generative provider.")
    if isinstance(exc, APIStatusError):
        logger.warning("generative provider error", extra={"status": exc.status_code})
        return ProviderError(f"Provider returned status {exc.status_code}", status_code=exc.status_code)
    logger.warning("generative provider unreachable", extra={"error": type(exc).__name__})
    return ProviderError(f"Provider request failed: {type(exc).__name__}")


@lru_cache
def get_text_client() -> GenerativeTextClient:
    return GenerativeTextClient()
