from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_NCBI_BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value not in (None, "") else default
    except ValueError:
        return default


def _env_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, resolved once and passed explicitly to services."""

    ncbi_base_url: str = DEFAULT_NCBI_BASE_URL
    ncbi_api_key: Optional[str] = None
    ncbi_email: Optional[str] = None
    ncbi_tool: str = "omics-study-portal"
    ncbi_timeout_s: float = 30.0
    ncbi_max_retries: int = 3
    ncbi_retry_delay_s: float = 1.0
    ncbi_batch_delay_s: float = 0.334

    google_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    assistant_language: str = "English"
    enhance_queries: bool = False

    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    port: int = 3001


def settings_from_mapping(env: Mapping[str, str]) -> Settings:
    origins = tuple(
        origin.strip() for origin in env.get("CORS_ORIGINS", "*").split(",") if origin.strip()
    ) or ("*",)
    return Settings(
        ncbi_base_url=(env.get("NCBI_BASE_URL") or DEFAULT_NCBI_BASE_URL).rstrip("/"),
        ncbi_api_key=env.get("NCBI_API_KEY") or None,
        ncbi_email=env.get("NCBI_EMAIL") or None,
        ncbi_tool=env.get("NCBI_TOOL") or "omics-study-portal",
        ncbi_timeout_s=_env_float(env.get("NCBI_TIMEOUT_S"), 30.0),
        ncbi_max_retries=max(1, _env_int(env.get("NCBI_MAX_RETRIES"), 3)),
        ncbi_retry_delay_s=_env_float(env.get("NCBI_RETRY_DELAY_S"), 1.0),
        ncbi_batch_delay_s=_env_float(env.get("NCBI_BATCH_DELAY_S"), 0.334),
        google_api_key=env.get("GOOGLE_API_KEY") or env.get("GEMINI_API_KEY") or None,
        gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        assistant_language=env.get("ASSISTANT_LANGUAGE") or "English",
        enhance_queries=_env_bool(env.get("ENHANCE_QUERIES"), False),
        cors_origins=origins,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        port=_env_int(env.get("PORT"), 3001),
    )


def load_settings(*, dotenv: bool = True) -> Settings:
    """Load settings from the process environment (and a ``.env`` file if present)."""

    if dotenv:
        load_dotenv()
    return settings_from_mapping(os.environ)
