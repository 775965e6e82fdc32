"""
Data types shared by the scraper.

A ClassifiedUrl is produced once per request by the classifier. A
NormalizedItem is the record handed to the item store; it is built once
and never mutated afterwards.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Pattern

# Resource types
BOOK = 'book'
MOVIE = 'movie'
SHOW = 'show'
ALBUM = 'album'
ARTIST = 'artist'
PRODUCT = 'product'
LOCATION = 'location'
LINK = 'link'

RESOURCE_TYPES = (BOOK, MOVIE, SHOW, ALBUM, ARTIST, PRODUCT, LOCATION, LINK)


@dataclass(frozen=True)
class ClassifiedUrl:
    """Resource type and source detected for a URL."""
    type: str
    source: str
    pattern: Optional[Pattern] = None


@dataclass(frozen=True)
class NormalizedItem:
    url: str
    title: str
    creator: Optional[str]
    cover_image_url: Optional[str]
    type: str
    source: str
    price: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)
