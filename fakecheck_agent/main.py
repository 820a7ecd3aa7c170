from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv
from loguru import logger

from .analyzer import analyze, normalize_url
from .config import Settings
from .models import AnalysisResult, AnalyzeRequest


# Load environment variables from the repo root .env (so GEMINI_API_KEY works in local dev)
_HERE = Path(__file__).resolve()
_AGENT_ROOT = _HERE.parents[1]
load_dotenv(_AGENT_ROOT / ".env", override=False)

app = FastAPI(title="FakeCheck Agent", version="0.1.0")


# For local dev, this defaults to allowing http://localhost:3000.
# In production, set FAKECHECK_CORS_ORIGINS to your deployed frontend origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(Settings.from_env().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/analyze", response_model=AnalysisResult)
async def analyze_endpoint(req: AnalyzeRequest):
    try:
        url = normalize_url(req.url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return await analyze(url)
    except Exception:
        logger.exception("Analysis failed for {}", url)
        raise HTTPException(status_code=500, detail="Analysis failed. Please try again.")
