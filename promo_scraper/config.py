"""
Runtime settings read from the environment (and a local .env file).
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _get_optional_str_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class ScraperSettings:
    """Settings shared by the CLI, the HTTP API and the pipeline."""

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-3.5-turbo"
    openai_base_url: str = "https://api.openai.com/v1/chat/completions"
    temperature: float = 0.3
    request_timeout_seconds: float = 60.0
    max_retries: int = 3

    max_chunk_length: int = 15000
    max_requests_per_minute: int = 3
    rate_limit_delay_seconds: float = 20.0

    navigation_timeout_ms: int = 30000
    launch_timeout_ms: int = 30000
    session_timeout_seconds: float = 300.0
    headless: bool = True

    max_urls: int = 10


def load_settings() -> ScraperSettings:
    """Build settings from the current environment."""
    load_dotenv()
    return ScraperSettings(
        openai_api_key=_get_optional_str_env("OPENAI_API_KEY"),
        openai_model=_get_str_env("OPENAI_MODEL", "gpt-3.5-turbo"),
        openai_base_url=_get_str_env("OPENAI_BASE_URL", "https://api.openai.com/v1/chat/completions"),
        temperature=_get_float_env("OPENAI_TEMPERATURE", 0.3),
        request_timeout_seconds=max(1.0, _get_float_env("OPENAI_TIMEOUT_SECONDS", 60.0)),
        max_retries=max(0, _get_int_env("OPENAI_MAX_RETRIES", 3)),
        max_chunk_length=max(1, _get_int_env("PROMO_MAX_CHUNK_LENGTH", 15000)),
        max_requests_per_minute=max(1, _get_int_env("PROMO_MAX_REQUESTS_PER_MINUTE", 3)),
        rate_limit_delay_seconds=max(0.0, _get_float_env("PROMO_RATE_LIMIT_DELAY_SECONDS", 20.0)),
        navigation_timeout_ms=max(1, _get_int_env("PROMO_NAVIGATION_TIMEOUT_MS", 30000)),
        launch_timeout_ms=max(1, _get_int_env("PROMO_LAUNCH_TIMEOUT_MS", 30000)),
        session_timeout_seconds=max(1.0, _get_float_env("PROMO_SESSION_TIMEOUT_SECONDS", 300.0)),
        headless=_get_bool_env("PROMO_HEADLESS", True),
    )


@lru_cache(maxsize=1)
def get_settings() -> ScraperSettings:
    """Cached settings for the running process."""
    return load_settings()


def debug_enabled() -> bool:
    load_dotenv()
    if _get_bool_env("PROMO_SCRAPER_DEBUG", False):
        return True
    return _get_str_env("APP_ENV", "").lower() == "development"
