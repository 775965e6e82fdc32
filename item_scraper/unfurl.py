"""
Client for the Microlink page-unfurling API.

The service fetches a URL on our behalf and returns title, description,
image, author and publisher. It can optionally pre-render JS-heavy pages
and capture a screenshot.
"""

import logging
from typing import Optional

import requests

from .config import ScraperConfig

logger = logging.getLogger(__name__)


def fetch_unfurl(
    url: str,
    config: ScraperConfig,
    prerender: bool = False,
    screenshot: bool = False,
    timeout: Optional[float] = None,
) -> dict:
    """
    Unfurl a URL through Microlink.

    Returns:
        {'success': True, 'data': {...}} on a "success" status, otherwise
        {'success': False, 'error': str}. Never raises.
    """
    params = {'url': url}
    if prerender:
        params['prerender'] = 'true'
    if screenshot:
        params['screenshot'] = 'true'

    headers = {}
    if config.unfurl_api_key:
        headers['x-api-key'] = config.unfurl_api_key

    try:
        response = requests.get(
            config.unfurl_api_url,
            params=params,
            headers=headers,
            timeout=timeout or config.unfurl_timeout,
        )
    except requests.exceptions.Timeout:
        logger.warning(f"Microlink timed out for {url}")
        return {'success': False, 'error': 'Request timed out'}
    except requests.exceptions.RequestException as e:
        logger.warning(f"Microlink fetch failed for {url}: {e}")
        return {'success': False, 'error': f'Request failed: {str(e)}'}

    if not response.ok:
        logger.warning(f"Microlink returned {response.status_code} for {url}")
        return {'success': False, 'error': f'HTTP error: {response.status_code}'}

    try:
        payload = response.json()
    except ValueError:
        return {'success': False, 'error': 'Invalid JSON response'}

    status = payload.get('status') if isinstance(payload, dict) else None
    if status != 'success':
        logger.warning(f"Microlink status: {status} for {url}")
        return {'success': False, 'error': f'Microlink status: {status}'}

    data = payload.get('data') or {}
    if not isinstance(data, dict):
        logger.warning(f"Microlink returned non-object data for {url}")
        return {'success': False, 'error': 'Invalid data in response'}

    return {'success': True, 'data': data}


def image_url_of(data: dict, key: str = 'image') -> Optional[str]:
    """Read the url out of an unfurl image/screenshot object."""
    value = (data or {}).get(key)
    if isinstance(value, dict):
        return value.get('url') or None
    return None


def fetch_screenshot(url: str, config: ScraperConfig) -> Optional[str]:
    """Return a page screenshot URL, or None. Failures are only logged."""
    result = fetch_unfurl(url, config, screenshot=True, timeout=config.screenshot_timeout)
    if not result.get('success'):
        return None
    return image_url_of(result['data'], 'screenshot')


def resolve_rendered_url(url: str, config: ScraperConfig) -> Optional[str]:
    """Follow JS redirects by pre-rendering the page; returns the final URL."""
    result = fetch_unfurl(url, config, prerender=True)
    if not result.get('success'):
        return None
    return result['data'].get('url') or None
