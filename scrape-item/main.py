"""
Scrape Item Cloud Function

Adds a URL to a user's list with scraped metadata.

Responsibilities:
- Authenticate the caller and check list ownership
- Classify, normalize and scrape the URL (item_scraper)
- Save the item and re-host its cover image
- Insert the item at the top of the list

Does NOT:
- Deduplicate items (every call creates a new item record)
- Retry failed scrapes (a fallback item is saved instead)
"""

import functions_framework
import json
import logging
import os
import sys

# Add project root so item_scraper is importable when deployed from this directory
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from item_scraper.config import load_config
from item_scraper.orchestrator import scrape_url
from item_scraper.storage import get_storage_client, rehost_cover
from item_scraper.store import ItemStore, StoreConfigError, StoreError

logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO'))
logger = logging.getLogger(__name__)

# Configuration
CONFIG = load_config()

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
}

_store = None
_storage_client = None


def get_store() -> ItemStore:
    """Return the process-wide store, created on first use."""
    global _store
    if _store is None:
        _store = ItemStore()
    return _store


def get_cover_storage():
    """Return the process-wide GCS client, created on first use."""
    global _storage_client
    if _storage_client is None:
        _storage_client = get_storage_client()
    return _storage_client


def _response(body: dict, status: int = 200):
    headers = {**CORS_HEADERS, 'Content-Type': 'application/json'}
    return (json.dumps(body), status, headers)


def rehost_item_cover(item_id: str, cover_image_url: str):
    """Copy the cover into our bucket. Returns the new URL or None."""
    try:
        storage_client = get_cover_storage()
    except Exception as e:
        logger.warning(f"Storage client unavailable: {e}")
        return None
    return rehost_cover(storage_client, cover_image_url, item_id, CONFIG)


@functions_framework.http
def scrape_item(request):
    """
    Main Cloud Function entry point.

    Expected JSON input:
    {
        "url": "https://open.spotify.com/album/...",
        "list_id": "..."
    }

    Returns {"success": true, "item": {...}} with the saved item.
    """
    # Handle CORS
    if request.method == 'OPTIONS':
        return ('', 204, CORS_HEADERS)

    try:
        auth_header = request.headers.get('Authorization')
        if not auth_header:
            return _response({'error': 'Missing authorization header'}, 401)

        store = get_store()
        user_id = store.get_user_id(auth_header)
        if not user_id:
            return _response({'error': 'Invalid authentication'}, 401)

        request_json = request.get_json(silent=True)
        if not isinstance(request_json, dict):
            request_json = {}
        url = request_json.get('url')
        list_id = request_json.get('list_id')

        if not url or not list_id:
            return _response({'error': 'Missing url or list_id'}, 400)

        target_list = store.get_list(list_id)
        if not target_list:
            return _response({'error': 'List not found'}, 404)

        if target_list.get('user_id') != user_id:
            return _response({'error': 'Not authorized to modify this list'}, 403)

        item = scrape_url(url, CONFIG).to_dict()
        logger.info(f"Scraped {url} as {item['type']}/{item['source']}: {item['title']}")

        item_id = store.insert_item(item)

        if item['cover_image_url']:
            stored_url = rehost_item_cover(item_id, item['cover_image_url'])
            if stored_url:
                try:
                    store.update_cover(item_id, stored_url)
                    item['cover_image_url'] = stored_url
                except StoreError as e:
                    logger.warning(f"Keeping original cover for {item_id}: {e}")

        store.add_to_list_top(list_id, item_id)

        return _response({'success': True, 'item': item})

    except StoreConfigError as e:
        logger.error(f"Store misconfigured: {e}")
        return _response({'error': 'Internal server error'}, 500)
    except StoreError as e:
        logger.error(f"Store error: {e}")
        return _response({'error': 'Failed to save item'}, 500)
    except Exception:
        logger.exception("Unhandled error in scrape_item")
        return _response({'error': 'Internal server error'}, 500)
