"""
KrishiMitra - shared HTTP access to third-party APIs (OpenWeather, GNews).
Single GET with a timeout, no retries; transport failures become UpstreamError.
"""
import logging
from typing import Any, Dict, Optional

import requests

import config

logger = logging.getLogger(__name__)

SECRET_PARAMS = ("appid", "apikey", "key")


class UpstreamError(Exception):
    """A third-party API failed or answered with an error; message is safe to show to the caller."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _redact(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: ("[REDACTED]" if k.lower() in SECRET_PARAMS else v) for k, v in params.items()}


def fetch(url: str, params: Dict[str, Any], service: str) -> requests.Response:
    """GET url with params. Returns the response whatever its status; raises UpstreamError on transport failure."""
    logger.info("Fetching %s: %s %s", service, url, _redact(params))
    try:
        return requests.get(url, params=params, timeout=config.upstream_timeout())
    except requests.exceptions.Timeout:
        logger.error("%s request timed out", service)
        raise UpstreamError(f"{service} request timed out")
    except requests.exceptions.RequestException as e:
        logger.error("%s request failed: %s", service, e)
        raise UpstreamError(f"Failed to reach {service}: {str(e)}")


def response_json(response: requests.Response) -> Any:
    """Decoded JSON body, or an empty dict when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return {}
