from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"

# Values shipped in example .env files that must never reach the provider.
_PLACEHOLDER_KEYS = {
    "",
    "placeholder_api_key",
    "your_api_key",
    "your_api_key_here",
    "your-api-key",
    "changeme",
}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _cors_allow_origins() -> list[str]:
    raw = os.getenv("FAKECHECK_CORS_ORIGINS", "").strip()
    if not raw:
        return ["http://localhost:3000"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    # Deadline around the provider call; 0 or less disables it.
    gemini_timeout_s: float = 30.0
    fallback_seed: int | None = None
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    @classmethod
    def from_env(cls) -> "Settings":
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        return cls(
            gemini_api_key=api_key.strip() if api_key else None,
            gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL).strip() or DEFAULT_GEMINI_MODEL,
            gemini_timeout_s=_env_float("GEMINI_TIMEOUT_S", 30.0),
            fallback_seed=_env_int("FAKECHECK_FALLBACK_SEED"),
            cors_origins=tuple(_cors_allow_origins()),
        )

    @property
    def has_credential(self) -> bool:
        if self.gemini_api_key is None:
            return False
        return self.gemini_api_key.strip().lower() not in _PLACEHOLDER_KEYS
