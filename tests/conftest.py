"""
Pytest fixtures for FakeCheck tests. Provides a stub provider in place of Gemini
and keeps real credentials from the environment out of every test.
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from fakecheck_agent.ai_judge import ProviderReply
from fakecheck_agent.config import Settings


class StubProvider:
    """Records calls and returns a canned reply (or raises a canned error)."""

    def __init__(self, payload: Any = None, *, text: str | None = None, sources: list[str] | None = None, error: BaseException | None = None):
        self.payload = payload
        self.text = text
        self.sources = sources or []
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def generate(self, prompt: str, schema: dict[str, Any]) -> ProviderReply:
        self.calls.append((prompt, schema))
        if self.error is not None:
            raise self.error
        text = self.text if self.text is not None else json.dumps(self.payload)
        return ProviderReply(text=text, sources=list(self.sources))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "GEMINI_MODEL", "GEMINI_TIMEOUT_S", "FAKECHECK_FALLBACK_SEED", "FAKECHECK_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def keyed_settings() -> Settings:
    return Settings(gemini_api_key="test-key", gemini_timeout_s=5.0, fallback_seed=11)


@pytest.fixture
def keyless_settings() -> Settings:
    return Settings(gemini_api_key=None, fallback_seed=11)


@pytest.fixture
def stub_provider_factory():
    return StubProvider
