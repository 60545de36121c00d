from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Gemini exposes an OpenAI-compatible surface, so the openai SDK can talk to it.
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.5-flash-lite"


@dataclass(frozen=True)
class Settings:
    openai_api_key: str
    openai_base_url: Optional[str]
    model: str

    temperature: float
    top_k: Optional[int]
    request_timeout: float
    verify_resolution: bool

    stager: str
    supabase_url: str
    supabase_key: str
    bucket: str
    signed_url_ttl: int

    system_prompt: Optional[str]
    prompt: Optional[str]

    port: int
    log_level: str


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        # Explicitly blank means "unset", e.g. GASMETER_TOP_K= for providers without top-k.
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("GASMETER_ENV_FILE", ".env")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    stager = os.getenv("GASMETER_STAGER", "inline").strip().lower()
    if stager not in {"inline", "supabase"}:
        raise ValueError(f"GASMETER_STAGER must be 'inline' or 'supabase', got {stager!r}")

    port = _env_int("PORT", 10000)

    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openai_base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL) or None,
        model=os.getenv("GASMETER_MODEL", DEFAULT_MODEL),
        temperature=_env_float("GASMETER_TEMPERATURE", 0.1),
        top_k=_env_int("GASMETER_TOP_K", 10),
        request_timeout=_env_float("GASMETER_REQUEST_TIMEOUT", 60.0),
        verify_resolution=_env_bool("GASMETER_VERIFY_RESOLUTION", True),
        stager=stager,
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_key=os.getenv("SUPABASE_KEY", ""),
        bucket=os.getenv("GASMETER_BUCKET", "gas-meter"),
        signed_url_ttl=_env_int("GASMETER_SIGNED_URL_TTL", 600) or 600,
        system_prompt=os.getenv("GASMETER_SYSTEM_PROMPT") or None,
        prompt=os.getenv("GASMETER_PROMPT") or None,
        port=port if port is not None else 10000,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
