"""
Source-specific metadata fetch strategies.

Each strategy takes (url, normalized_url, classified, config) and returns
a partial item record: a dict with any of title, creator,
cover_image_url, price and type. Strategies never raise; network and
parse failures are logged and produce a lower-fidelity record.

Strategy selection is table-driven (STRATEGIES). Sources without a
dedicated entry go through the unfurl service.
"""

import json
import logging
import re
from typing import Callable, Dict, Optional, Tuple

import requests

from .config import ScraperConfig
from .extractors import map_unfurl_to_item, fallback_item, fix_apple_music_cover
from .http_utils import (
    fetch_html, fetch_json, parse_og_tags, parse_json_ld, find_json_ld_field,
    find_meta_content, html_title, search_inline,
)
from .models import ClassifiedUrl, ALBUM, ARTIST, MOVIE, SHOW, PRODUCT
from .pipeline import PipelineResult, run_fallbacks
from .title_utils import UNKNOWN_LOCATION_TITLE, default_title, place_name_from_url
from .unfurl import fetch_unfurl, resolve_rendered_url

logger = logging.getLogger(__name__)

SPOTIFY_OEMBED_URL = 'https://open.spotify.com/oembed'
SPOTIFY_EMBED_ALBUM_URL = 'https://open.spotify.com/embed/album/{album_id}'
PLACES_SEARCH_URL = 'https://places.googleapis.com/v1/places:searchText'
PLACES_PHOTO_URL = 'https://places.googleapis.com/v1/{photo_name}/media?maxHeightPx=800&maxWidthPx=800&key={api_key}'
PLACES_FIELD_MASK = 'places.displayName,places.formattedAddress,places.photos'
PLACES_BIAS_RADIUS_METERS = 500.0

# Sources whose pages need JS rendering before the unfurl service sees metadata
PRERENDER_SOURCES = frozenset()

COORDINATES_PATTERN = re.compile(r'@(-?\d+\.\d+),(-?\d+\.\d+)')
IMDB_SHOW_PATTERN = re.compile(r'\(TV (?:Series|Mini Series)', re.I)
IMDB_TITLE_SUFFIX = re.compile(r'\s*\((?:TV (?:Series|Mini Series|Movie|Short|Special) )?\d{4}[^)]*\).*$')

Strategy = Callable[[str, str, ClassifiedUrl, ScraperConfig], dict]


def fetch_og_tags(url: str, config: ScraperConfig) -> Tuple[Dict[str, str], str]:
    """Fetch a page directly and return (og_tags, html). Empty on failure."""
    html, error = fetch_html(url, timeout=config.html_timeout, user_agent=config.user_agent)
    if error:
        logger.warning(f"Direct fetch failed for {url}: {error}")
        return {}, ''
    return parse_og_tags(html), html


def season_label(count) -> Optional[str]:
    """Format a season count: 1 -> '1 Season', 3 -> '3 Seasons'."""
    try:
        count = int(count)
    except (TypeError, ValueError):
        return None
    if count <= 0:
        return None
    return f"{count} Season{'' if count == 1 else 's'}"


def director_names(director) -> Optional[str]:
    """Join JSON-LD director entries (object or list of objects) by name."""
    directors = director if isinstance(director, list) else [director]
    names = []
    for entry in directors:
        if isinstance(entry, dict) and entry.get('name'):
            names.append(entry['name'])
        elif isinstance(entry, str) and entry:
            names.append(entry)
    return ', '.join(names) or None


def creator_from_json_ld(html: str, is_show: bool) -> Optional[str]:
    """Season count for shows, director(s) for movies."""
    nodes = parse_json_ld(html)
    if is_show:
        seasons = find_json_ld_field(nodes, 'numberOfSeasons')
        if seasons:
            return season_label(seasons)
    director = find_json_ld_field(nodes, 'director')
    if director:
        return director_names(director)
    return None


# ============================================================================
# Generic unfurl strategy
# ============================================================================

def scrape_with_unfurl(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    """Unfurl through Microlink; fall back to a URL-derived record on failure."""
    result = fetch_unfurl(url, config, prerender=classified.source in PRERENDER_SOURCES)
    if result.get('success'):
        return map_unfurl_to_item(result['data'], classified, normalized_url)

    logger.warning(f"Unfurl failed for {url}, using URL fallback: {result.get('error')}")
    return fallback_item(normalized_url, classified)


# ============================================================================
# Spotify (oEmbed + embed page)
# ============================================================================

def fetch_spotify_oembed(url: str, config: ScraperConfig) -> dict:
    """Fetch title and thumbnail from Spotify's oEmbed endpoint."""
    data, error = fetch_json(SPOTIFY_OEMBED_URL, params={'url': url}, timeout=config.oembed_timeout)
    if error or not isinstance(data, dict):
        logger.warning(f"Spotify oEmbed failed for {url}: {error}")
        return {'success': False, 'error': error or 'Invalid oEmbed response'}
    return {
        'success': True,
        'title': data.get('title') or None,
        'thumbnail_url': data.get('thumbnail_url') or None,
    }


def extract_spotify_album_id(url: str) -> Optional[str]:
    match = re.search(r'/album/([a-zA-Z0-9]+)', url or '')
    return match.group(1) if match else None


def _decode_json_string(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except ValueError:
        return value


def fetch_spotify_album_artist(url: str, config: ScraperConfig) -> Optional[str]:
    """oEmbed omits the artist; the public embed page carries it as "subtitle"."""
    album_id = extract_spotify_album_id(url)
    if not album_id:
        return None

    embed_url = SPOTIFY_EMBED_ALBUM_URL.format(album_id=album_id)
    html, error = fetch_html(embed_url, timeout=config.oembed_timeout, user_agent=config.user_agent)
    if error:
        logger.warning(f"Spotify embed fetch failed for {url}: {error}")
        return None

    subtitle = search_inline(html, r'"subtitle"\s*:\s*"([^"]+)"')
    if not subtitle:
        return None
    return _decode_json_string(subtitle).strip() or None


def scrape_spotify_album(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    oembed = fetch_spotify_oembed(url, config)
    return {
        'title': oembed.get('title') or 'Unknown Title',
        'creator': fetch_spotify_album_artist(url, config),
        'cover_image_url': oembed.get('thumbnail_url'),
    }


def scrape_spotify_artist(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    oembed = fetch_spotify_oembed(url, config)
    return {
        'title': oembed.get('title') or default_title(ARTIST),
        'creator': None,
        'cover_image_url': oembed.get('thumbnail_url'),
    }


# ============================================================================
# YouTube Music (direct HTML, unfurl fails for playlists)
# ============================================================================

def scrape_youtube_music_album(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    title = None
    creator = None
    tags, _ = fetch_og_tags(url, config)

    if tags.get('title'):
        match = re.match(r'^(.+?)\s*[-–]\s*Album by\s+(.+)$', tags['title'], re.I)
        if match:
            title = match.group(1).strip()
            creator = match.group(2).strip()
        else:
            title = re.sub(r'\s*[-|]\s*YouTube Music$', '', tags['title'], flags=re.I).strip()

    if not creator and tags.get('description'):
        match = re.match(r'^Listen to .+? by (.+?) on YouTube Music', tags['description'], re.I)
        if match:
            creator = match.group(1).strip()

    return {
        'title': title or default_title(ALBUM),
        'creator': creator,
        'cover_image_url': tags.get('image'),
    }


# ============================================================================
# IMDb (direct HTML, unfurl blocked by anti-bot)
# ============================================================================

def scrape_imdb(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    """
    Scrape an IMDb title page.

    og:title looks like "The Shawshank Redemption (1994) ⭐ 9.3 | Drama" or
    "The Sopranos (TV Series 1999–2007) ⭐ 9.2 | Crime, Drama"; the TV form
    upgrades the item type to show.
    """
    title = None
    creator = None
    resource_type = MOVIE
    tags, html = fetch_og_tags(url, config)

    if tags.get('title'):
        if IMDB_SHOW_PATTERN.search(tags['title']):
            resource_type = SHOW
        title = IMDB_TITLE_SUFFIX.sub('', tags['title']).strip()

    if html:
        creator = creator_from_json_ld(html, resource_type == SHOW)

        # Season list in the inline page data when JSON-LD has no count
        if resource_type == SHOW and not creator:
            seasons = search_inline(html, r'"seasons":\[([^\]]*)\]')
            if seasons:
                creator = season_label(len(re.findall(r'"number":', seasons)))

    return {
        'title': title or default_title(resource_type),
        'creator': creator,
        'cover_image_url': tags.get('image'),
        'type': resource_type,
    }


# ============================================================================
# Rotten Tomatoes (direct HTML, unfurl blocked by anti-bot)
# ============================================================================

def scrape_rotten_tomatoes(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    is_show = classified.type == SHOW
    title = None
    creator = None
    tags, html = fetch_og_tags(url, config)

    if tags.get('title'):
        title = re.sub(r'\s*\|\s*Rotten Tomatoes$', '', tags['title'], flags=re.I).strip()

    if html:
        creator = creator_from_json_ld(html, is_show)

    return {
        'title': title or default_title(SHOW if is_show else MOVIE),
        'creator': creator,
        'cover_image_url': tags.get('image'),
    }


# ============================================================================
# Apple Music albums (direct HTML, unfurl returns 404)
# ============================================================================

def scrape_apple_music_album(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    """og:title looks like "Abbey Road (2019 Mix) - Album by The Beatles - Apple Music"."""
    title = None
    creator = None
    tags, _ = fetch_og_tags(url, config)

    if tags.get('title'):
        match = re.match(r'^(.+?)\s*-\s*Album by\s+(.+?)\s*-\s*Apple Music$', tags['title'], re.I)
        if match:
            title = match.group(1).strip()
            creator = match.group(2).strip()
        else:
            title = re.sub(r'\s*-\s*Apple Music$', '', tags['title'], flags=re.I)
            title = re.sub(r'\s+on Apple Music$', '', title, flags=re.I).strip()

    cover = tags.get('image')
    return {
        'title': title or default_title(ALBUM),
        'creator': creator,
        'cover_image_url': fix_apple_music_cover(cover) if cover else None,
    }


# ============================================================================
# Amazon (direct HTML, unfurl intermittently blocked)
# ============================================================================

def scrape_amazon(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    tags, html = fetch_og_tags(normalized_url, config)
    title = tags.get('title')
    cover = tags.get('image')

    # Main product image from the inline gallery data
    if not cover and html:
        cover = search_inline(
            html,
            r'"hiRes"\s*:\s*"([^"]+)"',
            r'"large"\s*:\s*"([^"]+)"',
            r'id="landingImage"[^>]+src="([^"]+)"',
        )

    if not title and html:
        page_title = html_title(html)
        if page_title:
            page_title = re.sub(r'\s*:\s*Amazon\.\w+\s*:.*$', '', page_title)
            title = re.sub(r'\s*-\s*Amazon\.\w+.*$', '', page_title).strip()

    return {
        'title': title or default_title(PRODUCT),
        'creator': None,
        'cover_image_url': cover,
    }


# ============================================================================
# LCBO (direct HTML, unfurl blocked by the CDN firewall)
# ============================================================================

def extract_lcbo_price(html: str) -> Optional[str]:
    """Price from the product:price:amount meta tag or inline JSON."""
    amount = find_meta_content(html, 'product:price:amount')
    if not amount:
        amount = search_inline(html, r'"price"\s*:\s*"?\$?([\d,.]+)"?')
    return f"${amount}" if amount else None


def scrape_lcbo(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    title = None
    price = None
    tags, html = fetch_og_tags(url, config)

    if tags.get('title'):
        title = re.sub(r'\s*\|\s*LCBO$', '', tags['title'], flags=re.I).strip()

    if html:
        price = extract_lcbo_price(html)

    return {
        'title': title or default_title(PRODUCT),
        'creator': None,
        'cover_image_url': tags.get('image'),
        'price': price,
    }


# ============================================================================
# Google Maps (Places API)
# ============================================================================

def extract_coordinates(url: str) -> Tuple[Optional[float], Optional[float]]:
    """Read the /@lat,lng map centre out of a place URL."""
    match = COORDINATES_PATTERN.search(url or '')
    if not match:
        return None, None
    return float(match.group(1)), float(match.group(2))


def format_address(formatted_address: str) -> str:
    """
    Drop the province/state + postal code segment.

        >>> format_address("465 Parkdale Ave, Ottawa, ON K1Y 1H5, Canada")
        '465 Parkdale Ave, Ottawa, Canada'
    """
    parts = formatted_address.split(', ')
    if len(parts) >= 4:
        del parts[-2]
    return ', '.join(parts)


def search_place(query: str, lat: Optional[float], lng: Optional[float], config: ScraperConfig) -> dict:
    """Text search against the Places API, biased to the URL's coordinates."""
    body = {'textQuery': query}
    if lat is not None and lng is not None:
        body['locationBias'] = {
            'circle': {
                'center': {'latitude': lat, 'longitude': lng},
                'radius': PLACES_BIAS_RADIUS_METERS,
            }
        }

    try:
        response = requests.post(
            PLACES_SEARCH_URL,
            json=body,
            headers={
                'Content-Type': 'application/json',
                'X-Goog-Api-Key': config.places_api_key,
                'X-Goog-FieldMask': PLACES_FIELD_MASK,
            },
            timeout=config.places_timeout,
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.HTTPError as e:
        logger.warning(f"Places API returned {e.response.status_code} for query: {query}")
        return {'success': False, 'error': f'HTTP error: {e.response.status_code}'}
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"Places API failed for {query}: {e}")
        return {'success': False, 'error': str(e)}

    places = data.get('places') if isinstance(data, dict) else None
    if not places:
        return {'success': False, 'error': 'No places found'}

    return {'success': True, 'place': places[0]}


def scrape_google_maps(url: str, normalized_url: str, classified: ClassifiedUrl, config: ScraperConfig) -> dict:
    """
    Look up a place by the name embedded in its URL.

    Without an API key, or when the search fails, only the URL's place
    name is returned.
    """
    query = place_name_from_url(normalized_url)
    lat, lng = extract_coordinates(normalized_url)

    if not query or not config.places_api_key:
        return {'title': query or UNKNOWN_LOCATION_TITLE}

    result = search_place(query, lat, lng, config)
    if not result.get('success'):
        return {'title': query}

    place = result['place']
    title = (place.get('displayName') or {}).get('text') or query

    creator = None
    if place.get('formattedAddress'):
        creator = format_address(place['formattedAddress'])

    cover = None
    photos = place.get('photos') or []
    if photos and photos[0].get('name'):
        cover = PLACES_PHOTO_URL.format(photo_name=photos[0]['name'], api_key=config.places_api_key)

    return {'title': title, 'creator': creator, 'cover_image_url': cover}


# ============================================================================
# Short-link resolution (maps.app.goo.gl, goo.gl/maps)
# ============================================================================

def follow_redirects(url: str, config: ScraperConfig) -> Tuple[Optional[str], Optional[str]]:
    """HEAD the short link and return the final URL if it is a place URL."""
    try:
        response = requests.head(
            url,
            allow_redirects=True,
            timeout=config.resolve_timeout,
            headers={'User-Agent': config.user_agent},
        )
    except requests.exceptions.RequestException as e:
        return None, f'Request failed: {str(e)}'

    if response.url and '/maps/place/' in response.url:
        return response.url, None
    return None, f'Redirected to non-place URL: {response.url}'


def resolve_short_link(url: str, config: ScraperConfig) -> PipelineResult:
    """Resolve a short map link: plain redirects first, then JS pre-rendering."""
    return run_fallbacks([
        ('redirect', lambda: follow_redirects(url, config)),
        ('prerender', lambda: (resolve_rendered_url(url, config), 'Pre-render returned no URL')),
    ])


# ============================================================================
# Dispatch
# ============================================================================

# (source, type) -> strategy; a None type matches any type for that source
STRATEGIES: Dict[Tuple[str, Optional[str]], Strategy] = {
    ('spotify', ALBUM): scrape_spotify_album,
    ('spotify', ARTIST): scrape_spotify_artist,
    ('youtubemusic', ALBUM): scrape_youtube_music_album,
    ('imdb', None): scrape_imdb,
    ('rottentomatoes', None): scrape_rotten_tomatoes,
    ('applemusic', ALBUM): scrape_apple_music_album,
    ('amazon', None): scrape_amazon,
    ('lcbo', None): scrape_lcbo,
    ('googlemaps', None): scrape_google_maps,
}


def select_strategy(classified: ClassifiedUrl) -> Strategy:
    """Pick the fetch strategy for a classified URL. Always returns one."""
    return (
        STRATEGIES.get((classified.source, classified.type))
        or STRATEGIES.get((classified.source, None))
        or scrape_with_unfurl
    )
