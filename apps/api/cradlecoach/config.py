"""Application configuration utilities."""
from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PacingConfig(BaseModel):
    """Pauses (seconds) inserted between orchestration steps so progress reads naturally."""

    enabled: bool = True
    classify: float = 1.0
    route: float = 0.8
    consult: float = 0.7
    contribute_lead: float = 0.6
    contribute: float = 0.8
    finalize: float = 0.5

    def delays(self) -> Dict[str, float]:
        if not self.enabled:
            return {}
        return {
            "classify": self.classify,
            "route": self.route,
            "consult": self.consult,
            "contribute_lead": self.contribute_lead,
            "contribute": self.contribute,
            "finalize": self.finalize,
        }


class AppConfig(BaseModel):
    """Strongly typed configuration loaded from config.json or the environment."""

    openai_api_key: Optional[str] = Field(default=None, alias="openai_api_key")
    openai_model: str = Field(default="gpt-4o-mini")
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Any OpenAI-compatible endpoint (e.g. Gemini's compatibility API).",
    )
    temperature: float = Field(default=0.7)
    max_output_tokens: int = Field(default=1000)
    tts_model: str = Field(default="gpt-4o-mini-tts")
    tts_voice: str = Field(default="alloy")
    pacing: PacingConfig = Field(default_factory=PacingConfig)


def _config_path() -> Path:
    return Path(__file__).resolve().parents[1] / "config.json"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "off", "no"}


def load_config() -> AppConfig:
    """Load configuration from config.json when present, then apply environment overrides."""

    contents: Dict[str, Any] = {}
    config_file = _config_path()
    if config_file.exists():
        contents = json.loads(config_file.read_text())

    api_key = os.getenv("OPENAI_API_KEY")
    if api_key and not contents.get("openai_api_key"):
        contents["openai_api_key"] = api_key
    model = os.getenv("CRADLECOACH_OPENAI_MODEL")
    if model:
        contents["openai_model"] = model
    base_url = os.getenv("CRADLECOACH_OPENAI_BASE_URL")
    if base_url:
        contents["openai_base_url"] = base_url

    pacing = dict(contents.get("pacing") or {})
    pacing["enabled"] = _env_flag("CRADLECOACH_PACING", pacing.get("enabled", True))
    contents["pacing"] = pacing
    return AppConfig(**contents)


@lru_cache
def get_config() -> AppConfig:
    return load_config()
