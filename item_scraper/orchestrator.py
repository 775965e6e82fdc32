"""
Scrape orchestration.

scrape_url() runs one request through:
    classify -> resolve short link (maps only) -> normalize -> fetch/extract
    -> screenshot fallback (no cover) -> NormalizedItem

Each request is independent; the rule tables are read-only and the
config is passed in, so scrape_many() can run requests on a thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from .classifier import classify, is_short_maps_link
from .config import ScraperConfig
from .extractors import fallback_item
from .fetchers import resolve_short_link, select_strategy
from .models import ClassifiedUrl, NormalizedItem
from .normalizer import normalize_url
from .title_utils import UNKNOWN_TITLE, ensure_title
from .unfurl import fetch_screenshot

logger = logging.getLogger(__name__)


def build_item(scraped: dict, classified: ClassifiedUrl, normalized_url: str) -> NormalizedItem:
    """Assemble a complete item from a partial record, filling defaults."""
    return NormalizedItem(
        url=normalized_url,
        title=ensure_title(scraped.get('title'), UNKNOWN_TITLE),
        creator=scraped.get('creator') or None,
        cover_image_url=scraped.get('cover_image_url') or None,
        type=scraped.get('type') or classified.type,
        source=classified.source,
        price=scraped.get('price') or None,
    )


def resolve_url(url: str, classified: ClassifiedUrl, config: ScraperConfig) -> str:
    """Return the canonical URL, expanding short map links first."""
    if classified.source == 'googlemaps' and is_short_maps_link(url):
        resolved = resolve_short_link(url, config)
        if resolved.ok:
            logger.info(f"Resolved {url} via {resolved.stage}")
            return normalize_url(resolved.value, classified.source)
        logger.warning(f"Could not resolve short link {url}: {'; '.join(resolved.errors)}")

    return normalize_url(url, classified.source)


def scrape_url(url: str, config: Optional[ScraperConfig] = None) -> NormalizedItem:
    """
    Scrape metadata for a URL.

    Args:
        url: Raw URL as entered by the user
        config: Scraper settings (defaults when omitted)

    Returns:
        A complete NormalizedItem. Fetch and parse failures only lower the
        fidelity of the result; they are never raised.
    """
    config = config or ScraperConfig()

    classified = classify(url)
    normalized_url = resolve_url(url, classified, config)

    strategy = select_strategy(classified)
    scraped = strategy(url, normalized_url, classified, config)
    item = build_item(scraped, classified, normalized_url)

    if not item.cover_image_url:
        screenshot = fetch_screenshot(normalized_url, config)
        if screenshot:
            item = NormalizedItem(**{**item.to_dict(), 'cover_image_url': screenshot})

    return item


def _scrape_one(url: str, config: ScraperConfig) -> NormalizedItem:
    try:
        return scrape_url(url, config)
    except Exception:
        logger.exception(f"Scrape failed for {url}")
        classified = classify(url)
        normalized_url = normalize_url(url, classified.source)
        return build_item(fallback_item(normalized_url, classified), classified, normalized_url)


def scrape_many(urls: Sequence[str], config: Optional[ScraperConfig] = None) -> List[NormalizedItem]:
    """
    Scrape several URLs concurrently.

    Results are returned in the same order as the input URLs regardless of
    completion order.
    """
    config = config or ScraperConfig()
    if not urls:
        return []

    workers = min(config.max_workers, len(urls))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda u: _scrape_one(u, config), urls))
