"""
End-to-end scrape tests with mocked external APIs.

Every scenario must produce a complete NormalizedItem; network failures
only lower the fidelity of the fields.
"""

import pytest
import requests
import responses
from unittest.mock import patch

from item_scraper.fetchers import PLACES_SEARCH_URL, SPOTIFY_OEMBED_URL
from item_scraper.models import ClassifiedUrl, NormalizedItem
from item_scraper.orchestrator import build_item, scrape_url, scrape_many

MICROLINK_URL = 'https://api.microlink.io'
PARLIAMENT_URL = 'https://www.google.com/maps/place/Parliament+Hill/@45.4236,-75.7009,17z'


class TestScrapeUrl:
    """Tests for scrape_url()"""

    @responses.activate
    def test_spotify_album(self, config):
        responses.add(
            responses.GET,
            SPOTIFY_OEMBED_URL,
            json={'title': 'Random Access Memories', 'thumbnail_url': 'https://i.scdn.co/image/ram'},
            status=200,
        )
        responses.add(
            responses.GET,
            'https://open.spotify.com/embed/album/4aawyAB9vmqN3uQ7FjRGTy',
            body='<script>{"subtitle":"Daft Punk"}</script>',
            status=200,
        )

        item = scrape_url('https://open.spotify.com/album/4aawyAB9vmqN3uQ7FjRGTy?si=abc', config)

        assert item == NormalizedItem(
            url='https://open.spotify.com/album/4aawyAB9vmqN3uQ7FjRGTy',
            title='Random Access Memories',
            creator='Daft Punk',
            cover_image_url='https://i.scdn.co/image/ram',
            type='album',
            source='spotify',
            price=None,
        )

    @responses.activate
    def test_spotify_album_without_artist(self, config):
        responses.add(
            responses.GET,
            SPOTIFY_OEMBED_URL,
            json={'title': 'Random Access Memories', 'thumbnail_url': 'https://i.scdn.co/image/ram'},
            status=200,
        )
        responses.add(
            responses.GET,
            'https://open.spotify.com/embed/album/4aawyAB9vmqN3uQ7FjRGTy',
            body=requests.exceptions.Timeout(),
        )

        item = scrape_url('https://open.spotify.com/album/4aawyAB9vmqN3uQ7FjRGTy', config)

        assert item.title
        assert item.creator is None

    @responses.activate
    def test_google_maps_with_places_failing(self, config):
        responses.add(responses.POST, PLACES_SEARCH_URL, status=500)
        responses.add(responses.GET, MICROLINK_URL, body=requests.exceptions.Timeout())

        item = scrape_url(PARLIAMENT_URL, config)

        assert item.type == 'location'
        assert item.source == 'googlemaps'
        assert item.title == 'Parliament Hill'
        assert item.creator is None
        assert item.cover_image_url is None

    @responses.activate
    def test_google_maps_short_link(self, config_without_places):
        short = 'https://maps.app.goo.gl/AbCdEf123'
        responses.add(responses.HEAD, short, status=302, headers={'Location': PARLIAMENT_URL + '?entry=ttu'})
        responses.add(responses.HEAD, PARLIAMENT_URL, status=200)
        responses.add(responses.GET, MICROLINK_URL, body=requests.exceptions.Timeout())

        item = scrape_url(short, config_without_places)

        assert item.url == PARLIAMENT_URL
        assert item.title == 'Parliament Hill'

    @responses.activate
    def test_unfurl_timeout_gives_defaults(self, config):
        responses.add(responses.GET, MICROLINK_URL, body=requests.exceptions.Timeout())

        item = scrape_url('https://example.com/blog/my-great-post?utm_source=x', config)

        assert item == NormalizedItem(
            url='https://example.com/blog/my-great-post',
            title='my great post',
            creator='example.com',
            cover_image_url=None,
            type='link',
            source='example.com',
            price=None,
        )

    @responses.activate
    def test_not_a_url(self, config):
        responses.add(responses.GET, MICROLINK_URL, body=requests.exceptions.Timeout())

        item = scrape_url('not a url', config)

        assert item.url == 'not a url'
        assert item.type == 'link'
        assert item.source == 'link'
        assert item.title == 'not a url'
        assert item.creator is None

    @responses.activate
    def test_amazon_normalized(self, config, amazon_html):
        responses.add(responses.GET, 'https://www.amazon.com/dp/B08N5WRWNW', body=amazon_html, status=200)

        item = scrape_url('https://www.amazon.com/Some-Product-Name/dp/B08N5WRWNW?ref=abc', config)

        assert item.url == 'https://www.amazon.com/dp/B08N5WRWNW'
        assert item.type == 'product'
        assert item.title == 'Echo Dot (4th Gen)'
        assert item.cover_image_url == 'https://m.media-amazon.com/images/I/echo.jpg'

    @responses.activate
    def test_imdb_series_type(self, config, imdb_show_html):
        responses.add(responses.GET, 'https://www.imdb.com/title/tt0141842/', body=imdb_show_html, status=200)

        item = scrape_url('https://www.imdb.com/title/tt0141842/', config)

        assert item.url == 'https://www.imdb.com/title/tt0141842'
        assert item.type == 'show'
        assert item.source == 'imdb'
        assert item.creator == '3 Seasons'

    @responses.activate
    def test_unfurl_with_non_object_data(self, config):
        responses.add(responses.GET, MICROLINK_URL, json={'status': 'success', 'data': ['weird']}, status=200)

        item = scrape_url('https://example.com/some-page', config)

        assert item.url == 'https://example.com/some-page'
        assert item.title == 'some page'
        assert item.type == 'link'
        assert item.cover_image_url is None

    @responses.activate
    def test_screenshot_fallback(self, config):
        # First call unfurls the page, second captures the screenshot
        responses.add(
            responses.GET,
            MICROLINK_URL,
            json={'status': 'success', 'data': {'title': 'No Image Here'}},
            status=200,
        )
        responses.add(
            responses.GET,
            MICROLINK_URL,
            json={'status': 'success', 'data': {'screenshot': {'url': 'https://cdn.microlink.io/shot.png'}}},
            status=200,
        )

        item = scrape_url('https://example.com/no-image', config)

        assert item.title == 'No Image Here'
        assert item.cover_image_url == 'https://cdn.microlink.io/shot.png'
        assert 'screenshot=true' in responses.calls[1].request.url


class TestBuildItem:
    """Tests for build_item()"""

    def test_defaults(self):
        item = build_item({}, ClassifiedUrl('book', 'goodreads'), 'https://www.goodreads.com/book/show/1')
        assert item.title == 'Unknown'
        assert item.creator is None
        assert item.type == 'book'
        assert item.source == 'goodreads'

    def test_scraped_type_overrides(self):
        item = build_item({'title': 'X', 'type': 'show'}, ClassifiedUrl('movie', 'imdb'), 'u')
        assert item.type == 'show'

    def test_empty_strings_become_none(self):
        item = build_item({'title': 'X', 'creator': '', 'cover_image_url': ''}, ClassifiedUrl('link', 'a.com'), 'u')
        assert item.creator is None
        assert item.cover_image_url is None


class TestScrapeMany:
    """Tests for scrape_many()"""

    @responses.activate
    def test_results_in_input_order(self, config):
        responses.add(responses.GET, MICROLINK_URL, body=requests.exceptions.Timeout())
        urls = [
            'https://example.com/first',
            'https://example.org/second',
            'https://example.net/third',
            'https://example.com/fourth',
            'https://example.com/fifth',
        ]

        items = scrape_many(urls, config)

        assert [item.title for item in items] == ['first', 'second', 'third', 'fourth', 'fifth']

    def test_empty(self, config):
        assert scrape_many([], config) == []

    def test_unexpected_error_gives_fallback(self, config):
        def fake_scrape(url, cfg):
            if 'broken' in url:
                raise RuntimeError('boom')
            return build_item({'title': 'ok'}, ClassifiedUrl('link', 'example.com'), url)

        with patch('item_scraper.orchestrator.scrape_url', side_effect=fake_scrape):
            items = scrape_many(['https://example.com/fine', 'https://example.com/broken-page'], config)

        assert items[0].title == 'ok'
        assert items[1].title == 'broken page'
        assert items[1].creator == 'example.com'
