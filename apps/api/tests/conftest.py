from __future__ import annotations

from typing import Iterator

import pytest

from cradlecoach.config import get_config
from cradlecoach.llm_client import get_text_client


@pytest.fixture(autouse=True)
def offline_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("CRADLECOACH_PACING", "0")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("CRADLECOACH_OPENAI_MODEL", raising=False)
    monkeypatch.delenv("CRADLECOACH_OPENAI_BASE_URL", raising=False)
    get_config.cache_clear()
    get_text_client.cache_clear()
    yield
    get_config.cache_clear()
    get_text_client.cache_clear()
