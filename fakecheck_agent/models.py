from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

Verdict = Literal["Genuine", "Suspicious", "Fake"]
AnalysisMode = Literal["ai", "fallback"]


class AnalyzeRequest(BaseModel):
    url: str = Field(..., min_length=1)


class Breakdown(BaseModel):
    reviews: list[str]
    sentiment: list[str]
    price: list[str]
    seller: list[str]
    description: list[str]


class AnalysisResult(BaseModel):
    url: str
    trust_score: float = Field(..., ge=0, le=100)
    verdict: Verdict = "Suspicious"
    breakdown: Breakdown
    reasons: list[str] = Field(..., min_length=1)
    advice: str = Field(..., min_length=1)
    # ISO-8601 UTC, captured when the result is finalized
    timestamp: str
    sources: list[str] = Field(default_factory=list, max_length=3)

    # metadata
    mode: AnalysisMode = "ai"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
