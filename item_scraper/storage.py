"""
Cover image re-hosting on Cloud Storage.

Third-party cover URLs expire or block hotlinking, so covers are copied
into our own bucket under covers/<item_id>.<ext>.
"""

import json
import logging
import os
from typing import Optional

import requests
from google.cloud import storage
from google.oauth2 import service_account

from .config import ScraperConfig

logger = logging.getLogger(__name__)

BUCKET_NAME = os.environ.get('GCS_BUCKET', 'list-covers')
SCOPES = ['https://www.googleapis.com/auth/cloud-platform']

CONTENT_TYPE_TO_EXT = {
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/png': 'png',
    'image/webp': 'webp',
    'image/gif': 'gif',
    'image/svg+xml': 'svg',
}


def get_storage_client():
    """Initialize Cloud Storage client."""
    creds_json = os.environ.get('GOOGLE_SERVICE_ACCOUNT')
    if creds_json:
        creds_dict = json.loads(creds_json)
        creds = service_account.Credentials.from_service_account_info(
            creds_dict,
            scopes=SCOPES
        )
        return storage.Client(credentials=creds, project=creds_dict.get('project_id'))
    # Default credentials inside Cloud Functions
    return storage.Client()


def extension_for(content_type: Optional[str]) -> str:
    """
    >>> extension_for('image/png; charset=binary')
    'png'
    >>> extension_for(None)
    'jpg'
    """
    base = (content_type or '').split(';')[0].strip().lower()
    return CONTENT_TYPE_TO_EXT.get(base, 'jpg')


def download_image(image_url: str, config: ScraperConfig) -> tuple:
    """Download an image. Returns ((bytes, content_type), error)."""
    try:
        response = requests.get(
            image_url,
            headers={'User-Agent': config.user_agent},
            timeout=config.image_timeout,
        )
        response.raise_for_status()
    except requests.exceptions.Timeout:
        return None, 'Request timed out'
    except requests.exceptions.HTTPError as e:
        return None, f'HTTP error: {e.response.status_code}'
    except requests.exceptions.RequestException as e:
        return None, f'Request failed: {str(e)}'

    content_type = (response.headers.get('Content-Type') or '').split(';')[0].strip()
    return (response.content, content_type), None


def rehost_cover(client, image_url: str, item_id: str, config: ScraperConfig) -> Optional[str]:
    """
    Copy a cover image into the bucket.

    Returns:
        The public URL of the stored copy, or None if download or upload
        failed. Failures are logged and never raised.
    """
    downloaded, error = download_image(image_url, config)
    if error:
        logger.warning(f"Image download failed for {image_url}: {error}")
        return None

    content, content_type = downloaded
    blob_name = f"covers/{item_id}.{extension_for(content_type)}"

    try:
        blob = client.bucket(BUCKET_NAME).blob(blob_name)
        blob.upload_from_string(content, content_type=content_type or 'image/jpeg')
    except Exception as e:
        logger.warning(f"Storage upload failed for {blob_name}: {e}")
        return None

    # Bucket is public via IAM
    return f"https://storage.googleapis.com/{BUCKET_NAME}/{blob_name}"
