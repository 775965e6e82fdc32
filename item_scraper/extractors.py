"""
Field extraction for pages fetched through the unfurl service.

Turns the unfurl payload (title, description, image, author, publisher)
into item fields. Per-source behaviour lives in the EXTRACTORS registry;
sources without an entry only get the generic suffix cleaning from
title_utils. All functions here are pure and never raise.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from urllib.parse import urlparse, unquote

from .classifier import hostname_of
from .models import ClassifiedUrl, ALBUM, ARTIST, MOVIE, LOCATION, LINK
from .title_utils import (
    UNKNOWN_TITLE, UNKNOWN_LOCATION_TITLE,
    clean_title, clean_artist_title, slug_to_title, place_name_from_url,
)
from .unfurl import image_url_of

FILENAME_TITLE = re.compile(r'^\d+\.html$')
INDIGO_DESCRIPTION = re.compile(r'^Buy the (?:book|product)\s+(.+?)\s+by\s+.+?\s+at\s+Indigo', re.I)
INDIGO_SLUG = re.compile(r'/([^/]+)/\d+\.html')
ALBUM_BY = re.compile(r'^(.+?)\s*-\s*Album by\s+(.+)$', re.I)
STORE_BRAND_LINK = re.compile(r'^Visit the .+ Store$', re.I)
DIRECTOR_PREFIXES = [re.compile(r'^Directors?:\s*', re.I), re.compile(r'^Directed by:\s*', re.I)]
MAPS_BOILERPLATE = 'Find local businesses, view maps'

# Apple Music CDN artwork is templated: .../{w}x{h}bb.{f}
MZSTATIC_TEMPLATE = re.compile(r'\{w\}x\{h\}bb\.\{f\}')
MZSTATIC_SIZE = re.compile(r'/\d+x\d+[a-z]*\.')


# ---------------------------------------------------------------------------
# Title/credit splitters: cleaned title -> (title, creator or None)
# ---------------------------------------------------------------------------

def split_last_by(title: str) -> Tuple[str, Optional[str]]:
    """Split "Album Name by Artist" into ("Album Name", "Artist")."""
    by_index = title.rfind(' by ')
    if by_index > 0:
        return title[:by_index].strip(), title[by_index + 4:].strip() or None
    return title, None


def split_album_by(title: str) -> Tuple[str, Optional[str]]:
    """Split "ALBUM - Album by Artist" into ("ALBUM", "Artist")."""
    match = ALBUM_BY.match(title)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return title, None


def split_tidal(title: str) -> Tuple[str, Optional[str]]:
    """Tidal uses either "Album by Artist" or "Artist - Album"."""
    album, artist = split_last_by(title)
    if artist:
        return album, artist
    if ' - ' in title:
        dash = title.index(' - ')
        return title[dash + 3:].strip(), title[:dash].strip() or None
    return title, None


# ---------------------------------------------------------------------------
# Title refiners: (title, raw_title, url, description) -> title
# ---------------------------------------------------------------------------

def indigo_title(title: str, raw_title: str, url: Optional[str], description: Optional[str]) -> str:
    """Indigo pages are often titled with the filename ("9780743273565.html")."""
    if not (FILENAME_TITLE.match(title) or title == raw_title):
        return title

    if description:
        match = INDIGO_DESCRIPTION.match(description)
        if match:
            title = match.group(1).strip()

    if FILENAME_TITLE.match(title) and url:
        match = INDIGO_SLUG.search(url)
        if match:
            title = slug_to_title(match.group(1))

    return title


def maps_title(title: str, raw_title: str, url: Optional[str], description: Optional[str]) -> str:
    """The place name in the URL path is more reliable than the page title."""
    return place_name_from_url(url) or title.split(' · ')[0].strip()


# ---------------------------------------------------------------------------
# Cover fixers
# ---------------------------------------------------------------------------

def fix_apple_music_cover(image_url: str) -> str:
    if 'mzstatic.com' not in image_url:
        return image_url
    image_url = MZSTATIC_TEMPLATE.sub('600x600bb.jpg', image_url, count=1)
    return MZSTATIC_SIZE.sub('/600x600bb.', image_url, count=1)


@dataclass(frozen=True)
class SourceExtractor:
    """Per-source extraction capabilities. Missing entries use the defaults."""
    refine_title: Optional[Callable[[str, str, Optional[str], Optional[str]], str]] = None
    split_album: Optional[Callable[[str], Tuple[str, Optional[str]]]] = None
    fix_cover: Optional[Callable[[str], str]] = None


GENERIC_EXTRACTOR = SourceExtractor()

EXTRACTORS = {
    'indigo': SourceExtractor(refine_title=indigo_title),
    'applemusic': SourceExtractor(split_album=split_last_by, fix_cover=fix_apple_music_cover),
    'youtubemusic': SourceExtractor(split_album=split_album_by),
    'tidal': SourceExtractor(split_album=split_tidal),
    'googlemaps': SourceExtractor(refine_title=maps_title),
}


def extractor_for(source: str) -> SourceExtractor:
    return EXTRACTORS.get(source, GENERIC_EXTRACTOR)


def extract_title(
    raw_title: str,
    classified: ClassifiedUrl,
    url: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    """Derive a clean, non-empty title from the raw page title."""
    raw_title = raw_title or UNKNOWN_TITLE
    extractor = extractor_for(classified.source)
    title = clean_title(raw_title, classified.source)

    if extractor.refine_title:
        title = extractor.refine_title(title, raw_title, url, description)

    if classified.type == ALBUM and extractor.split_album:
        title, _ = extractor.split_album(title)

    if classified.type == ARTIST:
        title = clean_artist_title(title)

    return title.strip() or UNKNOWN_TITLE


def location_creator(description: str) -> Optional[str]:
    """Use the address part of a place description ("Name. Address.")."""
    if MAPS_BOILERPLATE in description:
        return None
    period = description.find('. ')
    address = description[period + 2:] if period > 0 else description
    return re.sub(r'\.$', '', address).strip() or None


def extract_creator(data: dict, classified: ClassifiedUrl, raw_title: str) -> Optional[str]:
    """
    Derive the creator line (author, artist, director, address, publisher).

    Artists never have a creator. Album sources with a title convention
    take the artist from the title; otherwise the author field is used.
    """
    if classified.type == ARTIST:
        return None

    extractor = extractor_for(classified.source)
    if classified.type == ALBUM and extractor.split_album and raw_title:
        _, artist = extractor.split_album(clean_title(raw_title, classified.source))
        if artist:
            return artist

    author = data.get('author')
    if author and isinstance(author, str):
        if STORE_BRAND_LINK.match(author.strip()):
            return None
        if classified.type == MOVIE:
            for prefix in DIRECTOR_PREFIXES:
                author = prefix.sub('', author)
        return author.strip() or None

    description = data.get('description')
    if classified.type == LOCATION and description:
        return location_creator(description)

    publisher = data.get('publisher')
    if classified.type == LINK and publisher:
        return publisher

    return None


def fix_cover_image_url(image_url: Optional[str], source: str) -> Optional[str]:
    """Rewrite source-specific cover URLs into directly usable ones."""
    if not image_url:
        return None
    extractor = extractor_for(source)
    if extractor.fix_cover:
        return extractor.fix_cover(image_url)
    return image_url


def map_unfurl_to_item(data: dict, classified: ClassifiedUrl, normalized_url: str) -> dict:
    """Map an unfurl payload to a partial item record."""
    raw_title = data.get('title') or UNKNOWN_TITLE
    return {
        'title': extract_title(raw_title, classified, normalized_url, data.get('description')),
        'creator': extract_creator(data, classified, raw_title),
        'cover_image_url': fix_cover_image_url(image_url_of(data), classified.source),
        'type': classified.type,
        'price': None,
    }


def fallback_item(url: str, classified: ClassifiedUrl) -> dict:
    """
    Build a record from the URL alone when nothing could be fetched.

    The title is the Maps place name or the last path segment; the creator
    is the hostname, or None when the input has no hostname.
    """
    title = UNKNOWN_TITLE

    try:
        path = urlparse(url).path
    except ValueError:
        path = ''

    if classified.source == 'googlemaps':
        title = place_name_from_url(path) or UNKNOWN_LOCATION_TITLE
    else:
        parts = [p for p in path.split('/') if p]
        if parts:
            title = unquote(re.sub(r'[-_]', ' ', parts[-1])).strip() or UNKNOWN_TITLE

    return {
        'title': title,
        'creator': hostname_of(url),
        'cover_image_url': None,
        'type': classified.type,
        'price': None,
    }
