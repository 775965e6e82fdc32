"""
Unit tests for HTML parsing helpers.
"""

import pytest

from item_scraper.http_utils import (
    parse_og_tags,
    parse_json_ld,
    find_json_ld_field,
    find_meta_content,
    html_title,
    search_inline,
)


class TestParseOgTags:
    """Tests for parse_og_tags()"""

    def test_basic_tags(self):
        html = """
        <head>
            <meta property="og:title" content="Dune">
            <meta property="og:description" content="A novel">
            <meta property="og:image" content="https://example.com/dune.jpg">
        </head>
        """
        tags = parse_og_tags(html)
        assert tags == {
            'title': 'Dune',
            'description': 'A novel',
            'image': 'https://example.com/dune.jpg',
        }

    def test_decodes_entities(self):
        html = '<meta property="og:title" content="Tom &amp; Jerry &quot;Classic&quot; &#39;55 &#x41;">'
        assert parse_og_tags(html)['title'] == 'Tom & Jerry "Classic" \'55 A'

    def test_name_attribute(self):
        html = '<meta name="og:title" content="Dune">'
        assert parse_og_tags(html)['title'] == 'Dune'

    def test_first_occurrence_wins(self):
        html = """
        <meta property="og:image" content="https://example.com/first.jpg">
        <meta property="og:image" content="https://example.com/second.jpg">
        """
        assert parse_og_tags(html)['image'] == 'https://example.com/first.jpg'

    def test_ignores_non_og_and_empty(self):
        html = """
        <meta name="description" content="Plain description">
        <meta property="og:title" content="">
        """
        assert parse_og_tags(html) == {}

    def test_empty_html(self):
        assert parse_og_tags("") == {}
        assert parse_og_tags(None) == {}

    def test_malformed_html(self):
        html = '<meta property="og:title" content="Dune"><div><span>'
        assert parse_og_tags(html)['title'] == 'Dune'


class TestParseJsonLd:
    """Tests for parse_json_ld() and find_json_ld_field()"""

    def test_single_object(self):
        html = '<script type="application/ld+json">{"@type": "Movie", "name": "Dune"}</script>'
        nodes = parse_json_ld(html)
        assert nodes == [{"@type": "Movie", "name": "Dune"}]

    def test_list_and_graph_flattened(self):
        html = """
        <script type="application/ld+json">[{"@type": "WebPage"}, {"@type": "Movie", "name": "Dune"}]</script>
        <script type="application/ld+json">{"@graph": [{"@type": "TVSeries", "numberOfSeasons": 6}]}</script>
        """
        nodes = parse_json_ld(html)
        assert find_json_ld_field(nodes, 'name') == "Dune"
        assert find_json_ld_field(nodes, 'numberOfSeasons') == 6

    def test_malformed_block_skipped(self):
        html = """
        <script type="application/ld+json">{not json</script>
        <script type="application/ld+json">{"name": "Dune"}</script>
        """
        assert parse_json_ld(html) == [{"name": "Dune"}]

    def test_no_blocks(self):
        assert parse_json_ld("<html></html>") == []

    def test_missing_field(self):
        assert find_json_ld_field([{"name": "Dune"}], 'director') is None


class TestPageHelpers:
    """Tests for find_meta_content(), html_title() and search_inline()"""

    def test_find_meta_content(self):
        html = '<meta property="product:price:amount" content=" 19.95 ">'
        assert find_meta_content(html, 'product:price:amount') == '19.95'

    def test_find_meta_content_missing(self):
        assert find_meta_content('<meta name="x" content="y">', 'product:price:amount') is None

    def test_html_title(self):
        assert html_title('<title> Echo Dot : Amazon.com </title>') == 'Echo Dot : Amazon.com'

    def test_html_title_missing(self):
        assert html_title('<p>No title</p>') is None

    def test_search_inline_first_matching_pattern(self):
        html = '{"large":"https://example.com/large.jpg"}'
        result = search_inline(html, r'"hiRes"\s*:\s*"([^"]+)"', r'"large"\s*:\s*"([^"]+)"')
        assert result == 'https://example.com/large.jpg'

    def test_search_inline_no_match(self):
        assert search_inline('<html></html>', r'"hiRes":"([^"]+)"') is None
