"""
HTML fetching and structured-metadata parsing.

Fetch helpers return (value, error) tuples and never raise. Parsers accept
any HTML string, including empty or malformed markup.
"""

import json
import logging
import re
from typing import Dict, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from .config import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)


def browser_headers(user_agent: str = DEFAULT_USER_AGENT) -> dict:
    return {
        'User-Agent': user_agent,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.5',
    }


def fetch_html(url: str, timeout: float = 10, user_agent: str = DEFAULT_USER_AGENT) -> Tuple[Optional[str], Optional[str]]:
    """Fetch page HTML with a browser-like User-Agent. Returns (html, error)."""
    try:
        response = requests.get(
            url,
            headers=browser_headers(user_agent),
            timeout=timeout,
            allow_redirects=True,
        )
        response.raise_for_status()
        return response.text, None

    except requests.exceptions.Timeout:
        return None, 'Request timed out'
    except requests.exceptions.HTTPError as e:
        return None, f'HTTP error: {e.response.status_code}'
    except requests.exceptions.RequestException as e:
        return None, f'Request failed: {str(e)}'


def fetch_json(url: str, timeout: float = 10, **kwargs) -> Tuple[Optional[dict], Optional[str]]:
    """GET a JSON document. Returns (data, error)."""
    try:
        response = requests.get(url, timeout=timeout, **kwargs)
        response.raise_for_status()
        return response.json(), None

    except requests.exceptions.Timeout:
        return None, 'Request timed out'
    except requests.exceptions.HTTPError as e:
        return None, f'HTTP error: {e.response.status_code}'
    except requests.exceptions.JSONDecodeError:
        return None, 'Invalid JSON response'
    except requests.exceptions.RequestException as e:
        return None, f'Request failed: {str(e)}'


def make_soup(html: Optional[str]) -> BeautifulSoup:
    return BeautifulSoup(html or '', 'html.parser')


def parse_og_tags(html: Optional[str]) -> Dict[str, str]:
    """
    Extract Open Graph meta tags.

    Keys drop the "og:" prefix, so og:title becomes 'title'. Entity
    references in content attributes are decoded by the parser. The first
    occurrence of a tag wins.
    """
    tags = {}
    if not html:
        return tags

    soup = make_soup(html)
    for meta in soup.find_all('meta'):
        name = meta.get('property') or meta.get('name') or ''
        content = meta.get('content')
        if not name.startswith('og:') or not content:
            continue
        key = name[3:]
        if key and key not in tags:
            tags[key] = content.strip()

    return tags


def find_meta_content(html: Optional[str], name: str) -> Optional[str]:
    """Return the content of a <meta property|name="..."> tag, if present."""
    if not html:
        return None
    soup = make_soup(html)
    meta = soup.find('meta', attrs={'property': name}) or soup.find('meta', attrs={'name': name})
    if meta and meta.get('content'):
        return meta['content'].strip()
    return None


def html_title(html: Optional[str]) -> Optional[str]:
    """Return the text of the page <title> tag."""
    if not html:
        return None
    title_tag = make_soup(html).find('title')
    if not title_tag:
        return None
    return title_tag.get_text(strip=True) or None


def parse_json_ld(html: Optional[str]) -> List[dict]:
    """
    Parse every application/ld+json block in the page.

    Top-level arrays and @graph containers are flattened. Blocks that
    are not valid JSON are skipped.
    """
    if not html:
        return []

    nodes = []
    soup = make_soup(html)
    for script in soup.find_all('script', attrs={'type': 'application/ld+json'}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Skipping malformed JSON-LD block: {e}")
            continue

        for node in data if isinstance(data, list) else [data]:
            if not isinstance(node, dict):
                continue
            nodes.append(node)
            graph = node.get('@graph')
            if isinstance(graph, list):
                nodes.extend(n for n in graph if isinstance(n, dict))

    return nodes


def find_json_ld_field(nodes: List[dict], field: str):
    """Return the first non-empty value of field across JSON-LD nodes."""
    for node in nodes:
        value = node.get(field)
        if value:
            return value
    return None


def search_inline(html: Optional[str], *patterns: str) -> Optional[str]:
    """Return group 1 of the first regex that matches the raw HTML."""
    if not html:
        return None
    for pattern in patterns:
        match = re.search(pattern, html)
        if match:
            return match.group(1)
    return None
