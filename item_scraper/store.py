"""
Supabase persistence for scraped items.

Wraps supabase-py with the handful of operations the scrape function
needs: resolving the caller from their JWT, checking list ownership,
saving the item and placing it at the top of a list.
"""

import logging
import os
from typing import Optional

from supabase import Client, create_client

logger = logging.getLogger(__name__)

SUPABASE_URL = os.environ.get('SUPABASE_URL')
SUPABASE_SERVICE_ROLE_KEY = os.environ.get('SUPABASE_SERVICE_ROLE_KEY')


class StoreError(Exception):
    """Raised when a write to the data store fails."""


class StoreConfigError(StoreError):
    """Raised when the store has no credentials to connect with."""


class ItemStore:
    """
    Thin wrapper around the service-role Supabase client.

    The client is created on first use so importing the module does not
    require credentials.
    """

    def __init__(self, url: Optional[str] = None, service_key: Optional[str] = None):
        self._url = url or SUPABASE_URL
        self._service_key = service_key or SUPABASE_SERVICE_ROLE_KEY
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        if self._client is None:
            if not self._url or not self._service_key:
                raise StoreConfigError('SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required')
            self._client = create_client(self._url, self._service_key)
        return self._client

    def get_user_id(self, auth_header: str) -> Optional[str]:
        """Return the id of the user owning the bearer token, or None if invalid."""
        token = auth_header.split(' ', 1)[1] if auth_header.lower().startswith('bearer ') else auth_header
        if not token.strip():
            return None

        # Missing credentials are a server fault, not a bad token
        client = self.client
        try:
            response = client.auth.get_user(token.strip())
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            return None

        user = getattr(response, 'user', None)
        return getattr(user, 'id', None)

    def get_list(self, list_id: str) -> Optional[dict]:
        """Return {'id', 'user_id'} for a list, or None if it does not exist."""
        client = self.client
        try:
            rows = (
                client.table('lists')
                .select('id, user_id')
                .eq('id', list_id)
                .limit(1)
                .execute()
                .data
            )
        except Exception as e:
            logger.warning(f"List lookup failed for {list_id}: {e}")
            return None
        return rows[0] if rows else None

    def insert_item(self, item: dict) -> str:
        """Insert an item record and return its id."""
        try:
            rows = self.client.table('items').insert(item).execute().data
        except Exception as e:
            raise StoreError(f'Failed to save item: {e}') from e

        if not rows or not rows[0].get('id'):
            raise StoreError('Failed to save item: no record returned')
        return rows[0]['id']

    def update_cover(self, item_id: str, cover_image_url: str) -> None:
        try:
            self.client.table('items').update({'cover_image_url': cover_image_url}).eq('id', item_id).execute()
        except Exception as e:
            raise StoreError(f'Failed to update cover: {e}') from e

    def add_to_list_top(self, list_id: str, item_id: str) -> None:
        """Shift existing positions down and insert the item at position 0."""
        try:
            self.client.rpc('shift_list_positions', {'p_list_id': list_id}).execute()
            self.client.table('list_items').insert({
                'list_id': list_id,
                'item_id': item_id,
                'position': 0,
            }).execute()
        except Exception as e:
            raise StoreError(f'Failed to add item to list: {e}') from e
