"""
Scraper configuration.

Built once per process from environment variables and passed into the
orchestrator as read-only context.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
DEFAULT_UNFURL_API_URL = 'https://api.microlink.io'


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ScraperConfig:
    places_api_key: Optional[str] = None
    unfurl_api_url: str = DEFAULT_UNFURL_API_URL
    unfurl_api_key: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    # Timeouts in seconds
    unfurl_timeout: float = 10
    html_timeout: float = 10
    oembed_timeout: float = 8
    places_timeout: float = 10
    resolve_timeout: float = 5
    screenshot_timeout: float = 15
    image_timeout: float = 10
    max_workers: int = 4


def load_config() -> ScraperConfig:
    """Read scraper settings from the environment."""
    return ScraperConfig(
        places_api_key=os.environ.get('GOOGLE_PLACES_API_KEY') or None,
        unfurl_api_url=os.environ.get('MICROLINK_API_URL', DEFAULT_UNFURL_API_URL),
        unfurl_api_key=os.environ.get('MICROLINK_API_KEY') or None,
        user_agent=os.environ.get('SCRAPER_USER_AGENT', DEFAULT_USER_AGENT),
        unfurl_timeout=_env_float('UNFURL_TIMEOUT', 10),
        html_timeout=_env_float('HTML_TIMEOUT', 10),
        oembed_timeout=_env_float('OEMBED_TIMEOUT', 8),
        places_timeout=_env_float('PLACES_TIMEOUT', 10),
        resolve_timeout=_env_float('RESOLVE_TIMEOUT', 5),
        screenshot_timeout=_env_float('SCREENSHOT_TIMEOUT', 15),
        image_timeout=_env_float('IMAGE_TIMEOUT', 10),
        max_workers=max(1, _env_int('SCRAPE_MAX_WORKERS', 4)),
    )
