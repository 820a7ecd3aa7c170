"""
AI-powered product listing judge using Google Gemini.
This module builds the prompt and response schema, calls Gemini with Google Search
grounding, and normalizes the reply into an AnalysisResult.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any

from google import genai
from google.genai import types

from .config import DEFAULT_GEMINI_MODEL
from .models import AnalysisResult, Breakdown, Verdict, utc_timestamp

MAX_SOURCES = 3

BREAKDOWN_SLOTS = ("reviews", "sentiment", "price", "seller", "description")

DEFAULT_TRUST_SCORE = 0.0
DEFAULT_REASONS = ["Analysis based on domain reputation."]
DEFAULT_ADVICE = "Proceed with caution."
BREAKDOWN_PLACEHOLDERS = {
    "reviews": "No review signals were reported for this listing.",
    "sentiment": "Customer sentiment could not be determined.",
    "price": "No pricing anomalies were reported.",
    "seller": "Seller reputation could not be verified.",
    "description": "The product description was not assessed.",
}

_STRING_ARRAY = {"type": "ARRAY", "items": {"type": "STRING"}}

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "trust_score": {"type": "NUMBER"},
        "verdict": {"type": "STRING", "enum": ["Genuine", "Suspicious", "Fake"]},
        "breakdown": {
            "type": "OBJECT",
            "properties": {slot: _STRING_ARRAY for slot in BREAKDOWN_SLOTS},
        },
        "reasons": _STRING_ARRAY,
        "advice": {"type": "STRING"},
    },
    "required": ["trust_score", "verdict", "breakdown", "reasons", "advice"],
}


class ProviderError(RuntimeError):
    """The provider answered, but with nothing usable."""


@dataclass(frozen=True)
class ProviderReply:
    text: str
    sources: list[str] = field(default_factory=list)


def build_prompt(url: str) -> str:
    """Build the analysis prompt for Gemini."""
    return f"""You are an expert "Fake Online Product Detector" AI. Your job is to decide whether an e-commerce product listing is genuine or a fraud (counterfeit product, scam store, phishing clone).

Analyze this product URL: {url}

## HOW TO INVESTIGATE

Use Google Search to:
1. Verify the legitimacy of the domain (ownership, age, reputation).
2. Cross-check the product's price against major retailers.
3. Look for scam reports, complaints and reviews about the store or seller.

## DETECTION RULES

- **Trusted retailers** (Amazon, Walmart, eBay, Flipkart, Best Buy, Target, Apple, etc.): start from a HIGH trust score (80-95) unless the price is implausibly low for the product.
- **Typosquatting or unusual domains** (misspelled brand names such as "amaz0n" or "wallmart", brand names embedded in unrelated domains, unusual top-level domains like .xyz, .top, .shop, .click): flag immediately with a LOW trust score (under 30).
- **Extremely low prices** (luxury goods or electronics at 70%+ discount): mark Suspicious or Fake.
- **Missing data**: if the page cannot be found or search returns nothing about the product, rely on the reputation of the domain alone.

## RESPONSE FORMAT

Respond with ONLY valid JSON (no markdown, no code blocks):

{{
  "trust_score": <number 0-100, higher means more trustworthy>,
  "verdict": "<Genuine|Suspicious|Fake>",
  "breakdown": {{
    "reviews": ["<findings about reviews>"],
    "sentiment": ["<findings about customer sentiment>"],
    "price": ["<findings about pricing>"],
    "seller": ["<findings about the seller/store>"],
    "description": ["<findings about the product description>"]
  }},
  "reasons": ["<short reasons for the verdict>"],
  "advice": "<one clear recommendation for the shopper>"
}}"""


def grounding_uris(resp: Any) -> list[str]:
    """Web URIs from the first candidate's grounding chunks, in provider order."""
    candidates = getattr(resp, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    uris: list[str] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if uri:
            uris.append(uri)
    return uris


class GeminiProvider:
    """Single-shot Gemini call with Google Search grounding and a JSON response schema."""

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL):
        self.model = model
        self._api_key = api_key

    async def generate(self, prompt: str, schema: dict[str, Any]) -> ProviderReply:
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
            response_schema=schema,
            temperature=0.2,
        )
        # The async client owns an HTTP connection pool; close it with the call.
        async with genai.Client(api_key=self._api_key).aio as client:
            resp = await client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )

        text = (getattr(resp, "text", None) or "").strip()
        if not text:
            raise ProviderError("Empty response from provider")
        return ProviderReply(text=text, sources=grounding_uris(resp))


def _strip_code_fences(text: str) -> str:
    # The SDK may still return fenced JSON sometimes.
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_payload(text: str) -> dict[str, Any]:
    payload = json.loads(_strip_code_fences(text or ""))
    if not isinstance(payload, dict):
        raise ProviderError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, int, float, bool)):
        s = str(value).strip()
        return [s] if s else []
    if isinstance(value, list):
        out: list[str] = []
        for item in value:
            if item is None:
                continue
            s = str(item).strip()
            if s:
                out.append(s)
        return out
    raise ProviderError(f"Expected a list of strings, got {type(value).__name__}")


def _coerce_score(value: Any) -> float:
    """Out-of-range scores are clamped; non-numeric ones are a malformed reply."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_TRUST_SCORE
    if isinstance(value, bool):
        raise ProviderError("trust_score must be a number")
    score = float(value)
    if math.isnan(score) or math.isinf(score):
        raise ProviderError("trust_score must be finite")
    return max(0.0, min(100.0, score))


def map_verdict(raw: Any) -> Verdict:
    v = str(raw or "").strip().lower()
    if "genuine" in v or "safe" in v:
        return "Genuine"
    if "fake" in v:
        return "Fake"
    return "Suspicious"


def _distinct_sources(uris: list[str]) -> list[str]:
    out: list[str] = []
    for uri in uris:
        if uri and uri not in out:
            out.append(uri)
        if len(out) >= MAX_SOURCES:
            break
    return out


def _normalize_breakdown(raw: Any) -> Breakdown:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ProviderError(f"Expected breakdown object, got {type(raw).__name__}")
    slots = {}
    for slot in BREAKDOWN_SLOTS:
        slots[slot] = _as_str_list(raw.get(slot)) or [BREAKDOWN_PLACEHOLDERS[slot]]
    return Breakdown(**slots)


def normalize_reply(reply: ProviderReply, url: str) -> AnalysisResult:
    """Normalize a Gemini reply into the canonical result.

    Missing, null and empty fields are all back-filled with defaults, so a partial
    reply still yields a fully populated result. Raises on anything that cannot be
    coerced (non-JSON, non-object payload, non-numeric score).
    """
    payload = parse_payload(reply.text)

    advice = str(payload.get("advice") or "").strip() or DEFAULT_ADVICE

    return AnalysisResult(
        url=url,
        trust_score=_coerce_score(payload.get("trust_score")),
        verdict=map_verdict(payload.get("verdict")),
        breakdown=_normalize_breakdown(payload.get("breakdown")),
        reasons=_as_str_list(payload.get("reasons")) or list(DEFAULT_REASONS),
        advice=advice,
        timestamp=utc_timestamp(),
        sources=_distinct_sources(reply.sources),
        mode="ai",
    )
