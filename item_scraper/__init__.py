"""Metadata scraping for items added to lists."""

from .models import (
    RESOURCE_TYPES,
    ClassifiedUrl,
    NormalizedItem,
)

from .config import (
    ScraperConfig,
    load_config,
)

from .classifier import (
    URL_RULES,
    classify,
)

from .normalizer import (
    normalize_url,
)

from .orchestrator import (
    scrape_url,
    scrape_many,
)

__all__ = [
    # Types
    'RESOURCE_TYPES',
    'ClassifiedUrl',
    'NormalizedItem',
    # Configuration
    'ScraperConfig',
    'load_config',
    # URL handling
    'URL_RULES',
    'classify',
    'normalize_url',
    # Scraping
    'scrape_url',
    'scrape_many',
]
