"""
URL canonicalization for deduplication.

normalize_url() never raises and is idempotent for every source:
normalize_url(normalize_url(u, s), s) == normalize_url(u, s).
"""

import re
from urllib.parse import urlparse, parse_qs

AMAZON_ID_PATTERN = re.compile(r'/(dp|gp/product)/([A-Z0-9]+)')


def strip_query(url: str) -> str:
    """Drop everything after '?' and any trailing slashes."""
    return url.split('?', 1)[0].rstrip('/')


def _origin(parsed) -> str:
    return f"{parsed.scheme}://{parsed.netloc}"


def _normalize_amazon(url: str) -> str:
    parsed = urlparse(url)
    match = AMAZON_ID_PATTERN.search(parsed.path)
    if match and parsed.scheme and parsed.netloc:
        return f"{_origin(parsed)}/dp/{match.group(2)}"
    return strip_query(url)


def _normalize_youtube(url: str) -> str:
    parsed = urlparse(url)
    video_id = None
    if parsed.hostname == 'youtu.be':
        video_id = parsed.path.strip('/').split('/')[0]
    else:
        video_id = (parse_qs(parsed.query).get('v') or [None])[0]
    if not video_id:
        return url
    return f"https://www.youtube.com/watch?v={video_id}"


def _normalize_youtubemusic(url: str) -> str:
    parsed = urlparse(url)
    playlist = (parse_qs(parsed.query).get('list') or [None])[0]
    if not playlist:
        return url
    return f"{_origin(parsed)}{parsed.path}?list={playlist}"


def _normalize_googlemaps(url: str) -> str:
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return strip_query(url)
    return f"{_origin(parsed)}{parsed.path}".rstrip('/')


SOURCE_NORMALIZERS = {
    'amazon': _normalize_amazon,
    'youtube': _normalize_youtube,
    'youtubemusic': _normalize_youtubemusic,
    'googlemaps': _normalize_googlemaps,
}


def normalize_url(url: str, source: str = None) -> str:
    """
    Canonicalize a URL for its detected source.

    Args:
        url: Raw URL string (may be malformed)
        source: Source key from classification

    Returns:
        Canonical URL. Falls back to stripping the query string and
        trailing slash when the URL cannot be parsed.
    """
    if not isinstance(url, str):
        return ''

    normalizer = SOURCE_NORMALIZERS.get(source)
    if normalizer is None:
        return strip_query(url)

    try:
        return normalizer(url)
    except ValueError:
        return strip_query(url)
