"""
Title processing utilities for the item scraper.

Every item title must be non-empty. Cleaning strips site-name suffixes
per source, but when cleaning would leave nothing the raw title is kept.
"""

import re
from typing import Optional
from urllib.parse import unquote

from .models import MOVIE, SHOW, ALBUM, ARTIST, PRODUCT, LOCATION

UNKNOWN_TITLE = 'Unknown'
UNKNOWN_LOCATION_TITLE = 'Google Maps Location'

# Default titles when a dedicated strategy finds nothing
DEFAULT_TITLES = {
    MOVIE: 'Unknown Movie',
    SHOW: 'Unknown Show',
    ALBUM: 'Unknown Album',
    ARTIST: 'Unknown Artist',
    PRODUCT: 'Unknown Product',
    LOCATION: UNKNOWN_LOCATION_TITLE,
}

# Site-name suffixes, applied in order
TITLE_SUFFIX_PATTERNS = {
    'rottentomatoes': [re.compile(r'\s*[|–-]\s*Rotten Tomatoes$', re.I)],
    'imdb': [re.compile(r'\s*-\s*IMDb$', re.I), re.compile(r'\s*\(\d{4}\)\s*$')],
    'justwatch': [re.compile(r'\s*\|\s*JustWatch$', re.I), re.compile(r'\s*-\s*watch streaming online$', re.I)],
    'indigo': [re.compile(r'\s*\|\s*Indigo.*$', re.I)],
    'applemusic': [re.compile(r'\s+on Apple Music$', re.I)],
    'youtubemusic': [re.compile(r'\s*[-–|]\s*YouTube Music$', re.I)],
    'tidal': [re.compile(r'\s*[-–|]\s*TIDAL$', re.I), re.compile(r'\s+on TIDAL$', re.I)],
    'qobuz': [re.compile(r'\s*[-–|]\s*Qobuz$', re.I)],
    'goodreads': [re.compile(r'\s*\|\s*Goodreads$', re.I), re.compile(r'\s+by\s+.+\s*\|\s*Goodreads$', re.I)],
    'googlemaps': [
        re.compile(r'\s*-\s*Explore in Google Maps$', re.I),
        re.compile(r'\s*[-–·]\s*Google Maps$', re.I),
        re.compile(r'\s*-\s*Google$', re.I),
    ],
    'lcbo': [re.compile(r'\s*\|\s*LCBO$', re.I)],
}

# Streaming-service suffixes found on artist pages
ARTIST_SUFFIX_PATTERNS = [
    re.compile(r'\s+on Apple Music$', re.I),
    re.compile(r'\s*[-–]\s*YouTube Music$', re.I),
    re.compile(r'\s*[-–]\s*TIDAL$', re.I),
    re.compile(r'\s*[-–]\s*Qobuz$', re.I),
    re.compile(r'\s*[-–]\s*Listen on.*$', re.I),
]

PLACE_PATH_PATTERN = re.compile(r'/maps/place/([^/@]+)')


def collapse_whitespace(text: str) -> str:
    """Normalize runs of whitespace to single spaces."""
    if not text:
        return ''
    return ' '.join(text.split())


def strip_patterns(title: str, patterns) -> str:
    """Apply each pattern in sequence, removing whatever it matches."""
    for pattern in patterns:
        title = pattern.sub('', title)
    return title.strip()


def clean_title(title: str, source: str) -> str:
    """
    Strip the source's site-name suffixes from a title.

    Returns the raw title unchanged if cleaning would empty it.

    Examples:
        >>> clean_title("The Matrix - IMDb", "imdb")
        'The Matrix'

        >>> clean_title(" | Goodreads", "goodreads")
        ' | Goodreads'
    """
    if not title:
        return title or ''

    patterns = TITLE_SUFFIX_PATTERNS.get(source)
    if not patterns:
        return title.strip() or title

    return strip_patterns(title, patterns) or title


def clean_artist_title(title: str) -> str:
    """Remove streaming-service suffixes from an artist page title."""
    return strip_patterns(title, ARTIST_SUFFIX_PATTERNS)


def slug_to_title(slug: str) -> str:
    """
    Turn a URL slug into a readable title.

        >>> slug_to_title("the-great-gatsby")
        'The Great Gatsby'
    """
    text = slug.replace('-', ' ')
    return re.sub(r'\b\w', lambda m: m.group(0).upper(), text)


def place_name_from_url(url: str) -> Optional[str]:
    """Extract the decoded place name from a /maps/place/<name> URL path."""
    if not url:
        return None
    match = PLACE_PATH_PATTERN.search(url)
    if not match:
        return None
    name = unquote(match.group(1).replace('+', ' ')).strip()
    return name or None


def default_title(resource_type: str) -> str:
    """Return the placeholder title for a resource type."""
    return DEFAULT_TITLES.get(resource_type, UNKNOWN_TITLE)


def ensure_title(title: Optional[str], fallback: str = UNKNOWN_TITLE) -> str:
    """Return a non-empty title, using fallback for empty or blank input."""
    title = collapse_whitespace(title) if title else ''
    return title or fallback
