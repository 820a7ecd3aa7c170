from __future__ import annotations

import asyncio
import json
import random
from typing import Any, Protocol

import httpx
from google.genai import errors as genai_errors
from loguru import logger
from pydantic import ValidationError

from .ai_judge import RESPONSE_SCHEMA, GeminiProvider, ProviderError, ProviderReply, build_prompt, normalize_reply
from .config import Settings
from .fallback import fallback_analyze
from .models import AnalysisResult


class AnalysisProvider(Protocol):
    async def generate(self, prompt: str, schema: dict[str, Any]) -> ProviderReply: ...


def normalize_url(raw: str) -> str:
    """Trim and scheme-qualify user input. Raises ValueError if it cannot be a website URL."""
    value = (raw or "").strip()
    if not value:
        raise ValueError("Please provide a URL.")

    if not value.startswith("http://") and not value.startswith("https://"):
        value = "https://" + value

    if "." not in value:
        raise ValueError("Please enter a valid product URL.")
    return value


def _failure_kind(exc: BaseException) -> str:
    if isinstance(exc, (asyncio.TimeoutError, httpx.HTTPError, OSError)):
        return "transport"
    if isinstance(exc, genai_errors.ClientError) and exc.code in (401, 403, 429):
        return "auth_or_quota"
    if isinstance(exc, genai_errors.APIError):
        return "provider"
    if isinstance(exc, (ProviderError, json.JSONDecodeError, ValidationError, ValueError, TypeError)):
        return "malformed"
    return "unknown"


def _fallback_rng(settings: Settings) -> random.Random:
    return random.Random(settings.fallback_seed)


async def analyze(
    url: str,
    *,
    settings: Settings | None = None,
    provider: AnalysisProvider | None = None,
    rng: random.Random | None = None,
) -> AnalysisResult:
    """Judge a product URL with Gemini, falling back to the offline heuristic.

    Never raises: missing credentials, provider failures and unusable replies all
    produce a fallback result instead.
    """
    settings = settings or Settings.from_env()

    if not settings.has_credential:
        logger.info("Gemini API key missing. Using fallback analysis for {}", url)
        return fallback_analyze(url, rng=rng or _fallback_rng(settings))

    try:
        if provider is None:
            provider = GeminiProvider(settings.gemini_api_key or "", model=settings.gemini_model)

        call = provider.generate(build_prompt(url), RESPONSE_SCHEMA)
        if settings.gemini_timeout_s > 0:
            reply = await asyncio.wait_for(call, timeout=settings.gemini_timeout_s)
        else:
            reply = await call

        result = normalize_reply(reply, url)
    except Exception as e:
        logger.warning("AI analysis failed ({}): {!r}. Using fallback analysis.", _failure_kind(e), e)
        return fallback_analyze(url, rng=rng or _fallback_rng(settings))

    logger.debug("AI analysis for {}: verdict={} score={} sources={}", url, result.verdict, result.trust_score, len(result.sources))
    return result
