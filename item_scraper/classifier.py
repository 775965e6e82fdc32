"""
URL classification.

Maps a raw URL to a (type, source) pair using an ordered rule list. The
first matching rule wins, so specific host rules must come before broad
path rules (the generic Shopify "/products/" rules sit near the end).
"""

import re
from typing import List
from urllib.parse import urlparse

from .models import (
    ClassifiedUrl, BOOK, MOVIE, SHOW, ALBUM, ARTIST, PRODUCT, LOCATION, LINK,
)

AMAZON_TLDS = r'(com|ca|co\.uk|com\.au|de|fr|es|it|nl|se|pl|co\.jp|com\.br|com\.mx|in|sg)'

# (type, source, pattern), evaluated in order
URL_RULES: List[ClassifiedUrl] = [
    ClassifiedUrl(BOOK, 'goodreads', re.compile(r'^https?://(www\.)?goodreads\.com/book/show/.+')),
    ClassifiedUrl(PRODUCT, 'amazon', re.compile(r'^https?://(www\.)?amazon\.' + AMAZON_TLDS + r'/.+/(dp|gp/product)/[A-Z0-9]+')),
    ClassifiedUrl(BOOK, 'indigo', re.compile(r'^https?://(www\.)?indigo\.ca/.+/\d+\.html')),
    ClassifiedUrl(MOVIE, 'rottentomatoes', re.compile(r'^https?://(www\.)?rottentomatoes\.com/m/.+')),
    ClassifiedUrl(SHOW, 'rottentomatoes', re.compile(r'^https?://(www\.)?rottentomatoes\.com/tv/.+')),
    ClassifiedUrl(MOVIE, 'imdb', re.compile(r'^https?://(www\.|m\.)?imdb\.com/title/.+')),
    ClassifiedUrl(MOVIE, 'justwatch', re.compile(r'^https?://(www\.)?justwatch\.com/.+/movie/.+')),
    # Albums
    ClassifiedUrl(ALBUM, 'spotify', re.compile(r'^https?://open\.spotify\.com/album/.+')),
    ClassifiedUrl(ALBUM, 'applemusic', re.compile(r'^https?://music\.apple\.com/.+/album/.+')),
    ClassifiedUrl(ALBUM, 'youtubemusic', re.compile(r'^https?://music\.youtube\.com/playlist\?.+')),
    ClassifiedUrl(ALBUM, 'tidal', re.compile(r'^https?://(www\.|listen\.)?tidal\.com/album/.+')),
    ClassifiedUrl(ALBUM, 'qobuz', re.compile(r'^https?://(www\.)?qobuz\.com/.+/album/.+')),
    # Artists
    ClassifiedUrl(ARTIST, 'spotify', re.compile(r'^https?://open\.spotify\.com/artist/.+')),
    ClassifiedUrl(ARTIST, 'applemusic', re.compile(r'^https?://music\.apple\.com/.+/artist/.+')),
    ClassifiedUrl(ARTIST, 'youtubemusic', re.compile(r'^https?://music\.youtube\.com/channel/.+')),
    ClassifiedUrl(ARTIST, 'tidal', re.compile(r'^https?://(www\.|listen\.)?tidal\.com/artist/.+')),
    ClassifiedUrl(ARTIST, 'qobuz', re.compile(r'^https?://(www\.)?qobuz\.com/.+/artist/.+')),
    # Videos
    ClassifiedUrl(LINK, 'youtube', re.compile(r'^https?://(www\.|m\.)?youtube\.com/watch\?.+')),
    ClassifiedUrl(LINK, 'youtube', re.compile(r'^https?://youtu\.be/.+')),
    # Liquor retailer, must stay ahead of the generic /products/ rules
    ClassifiedUrl(PRODUCT, 'lcbo', re.compile(r'^https?://(www\.)?lcbo\.com/en/.+')),
    # Shopify stores (myshopify.com host or a /products/ path)
    ClassifiedUrl(PRODUCT, 'shopify', re.compile(r'^https?://[^/]+\.myshopify\.com/products/.+')),
    ClassifiedUrl(PRODUCT, 'shopify', re.compile(r'^https?://[^/]+/.+/products/[^/]+$')),
    ClassifiedUrl(PRODUCT, 'shopify', re.compile(r'^https?://[^/]+/products/[^/]+$')),
    # Google Maps
    ClassifiedUrl(LOCATION, 'googlemaps', re.compile(r'^https?://maps\.app\.goo\.gl/.+')),
    ClassifiedUrl(LOCATION, 'googlemaps', re.compile(r'^https?://goo\.gl/maps/.+')),
    ClassifiedUrl(LOCATION, 'googlemaps', re.compile(r'^https?://(www\.)?google\.[a-z.]+/maps/place/.+')),
]


def hostname_of(url: str):
    """Return the lowercase hostname without a leading "www.", or None."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    return re.sub(r'^www\.', '', hostname)


def classify(url: str) -> ClassifiedUrl:
    """
    Classify a URL by the first matching rule.

    Never raises. Unmatched URLs are generic links whose source is the
    hostname, or 'link' when no hostname can be parsed.
    """
    url = url if isinstance(url, str) else ''

    for rule in URL_RULES:
        if rule.pattern.search(url):
            return rule

    return ClassifiedUrl(LINK, hostname_of(url) or 'link')


def is_short_maps_link(url: str) -> bool:
    """Check if URL is a shortened Google Maps link that needs resolving."""
    return 'goo.gl' in url or 'maps.app' in url
