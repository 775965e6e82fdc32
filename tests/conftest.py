"""
Shared pytest fixtures for item scraper tests.
"""

import pytest
import sys
import importlib.util
from pathlib import Path

from item_scraper.config import ScraperConfig

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent

MICROLINK_URL = 'https://api.microlink.io'


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load the Cloud Function module with a unique name at module load time
_scrape_item_module = _load_module_from_path(
    'scrape_item_main',
    PROJECT_ROOT / 'scrape-item' / 'main.py'
)


# ============================================================================
# Configuration
# ============================================================================

@pytest.fixture
def config():
    """Scraper settings with a Places API key and no unfurl key."""
    return ScraperConfig(places_api_key='test-places-key', unfurl_api_url=MICROLINK_URL)


@pytest.fixture
def config_without_places():
    """Scraper settings with no Places API key."""
    return ScraperConfig(unfurl_api_url=MICROLINK_URL)


# ============================================================================
# Sample pages
# ============================================================================

@pytest.fixture
def imdb_movie_html():
    """IMDb movie page with og tags and a JSON-LD director."""
    return """
    <html>
    <head>
        <meta property="og:title" content="The Shawshank Redemption (1994) &#x2B50; 9.3 | Drama">
        <meta property="og:image" content="https://m.media-amazon.com/images/shawshank.jpg">
        <script type="application/ld+json">
        {"@type": "Movie", "name": "The Shawshank Redemption",
         "director": [{"@type": "Person", "name": "Frank Darabont"}]}
        </script>
    </head>
    <body></body>
    </html>
    """


@pytest.fixture
def imdb_show_html():
    """IMDb series page with no season count in JSON-LD."""
    return """
    <html>
    <head>
        <meta property="og:title" content="The Sopranos (TV Series 1999&#8211;2007) &#x2B50; 9.2 | Crime, Drama">
        <meta property="og:image" content="https://m.media-amazon.com/images/sopranos.jpg">
        <script type="application/ld+json">{"@type": "TVSeries", "name": "The Sopranos"}</script>
    </head>
    <body>
        <script>{"seasons":[{"number":1},{"number":2},{"number":3}]}</script>
    </body>
    </html>
    """


@pytest.fixture
def amazon_html():
    """Amazon product page without og:image."""
    return """
    <html>
    <head>
        <title>Echo Dot (4th Gen) : Amazon.com: Electronics</title>
    </head>
    <body>
        <script>var data = {"colorImages": {"initial": [{"hiRes":"https://m.media-amazon.com/images/I/echo.jpg"}]}};</script>
    </body>
    </html>
    """


@pytest.fixture
def lcbo_html():
    """LCBO product page with a price meta tag."""
    return """
    <html>
    <head>
        <meta property="og:title" content="Whitehaven Sauvignon Blanc | LCBO">
        <meta property="og:image" content="https://www.lcbo.com/media/whitehaven.jpg">
        <meta property="product:price:amount" content="19.95">
    </head>
    <body></body>
    </html>
    """


@pytest.fixture
def microlink_payload():
    """Factory for Microlink success responses."""
    def _payload(**data):
        return {'status': 'success', 'data': data}
    return _payload


# ============================================================================
# HTTP function fixtures
# ============================================================================

@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, json_data=None, method='POST', headers=None):
            self._json = json_data
            self.method = method
            self.headers = headers if headers is not None else {'Authorization': 'Bearer valid-token'}
            self.data = b''

        def get_json(self, force=False, silent=False):
            return self._json

    return MockRequest


@pytest.fixture
def scrape_item_module():
    """Returns the loaded scrape-item Cloud Function module."""
    return _scrape_item_module


@pytest.fixture
def scrape_item():
    """Returns main entry point from scrape-item."""
    return _scrape_item_module.scrape_item
