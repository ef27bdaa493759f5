"""
KrishiMitra - environment configuration.
Keys are read on every call so a changed environment (or a test) takes effect without a restart.
"""
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

OPENWEATHER_BASE_URL = "https://api.openweathermap.org"
GNEWS_BASE_URL = "https://gnews.io/api/v4"


def _get(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def openweather_api_key() -> Optional[str]:
    return _get("OPENWEATHER_API_KEY")


def geocoding_api_key() -> Optional[str]:
    """Reverse geocoding uses its own key when set, else the OpenWeather one."""
    return _get("GEOCODING_API_KEY") or openweather_api_key()


def gnews_api_key() -> Optional[str]:
    return _get("GNEWS_API_KEY")


def gemini_api_key() -> Optional[str]:
    return _get("GEMINI_API_KEY")


def gemini_model_name() -> str:
    return _get("GEMINI_MODEL") or "gemini-2.0-flash"


def upstream_timeout() -> float:
    raw = _get("UPSTREAM_TIMEOUT")
    try:
        return float(raw) if raw else 10.0
    except ValueError:
        return 10.0


def log_level() -> str:
    """LOG_LEVEL when it names a logging level, else INFO."""
    level = (_get("LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        return "INFO"
    return level


def cors_origins() -> List[str]:
    raw = _get("CORS_ORIGINS")
    if not raw:
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]
