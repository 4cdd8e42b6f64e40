"""
URL Normalizer Tests
===================

Canonical forms for general and Reddit URLs.
"""

import pytest

from hnmirror.processing.url_normalizer import normalize_reddit_url, normalize_url


class TestNormalizeUrl:
    """Test general URL canonicalization."""

    @pytest.mark.parametrize("raw, expected", [
        ("http://WWW.Example.com/path/?utm_source=x#top", "https://example.com/path"),
        ("https://example.com", "https://example.com/"),
        ("https://example.com/", "https://example.com/"),
        ("http://example.com/a/b/", "https://example.com/a/b"),
        ("https://www.github.com/user/repo", "https://github.com/user/repo"),
        ("http://www.www.example.com/a", "https://example.com/a"),
        ("https://Blog.Example.org/Post?id=5", "https://blog.example.org/Post"),
        ("https://example.com/page#section", "https://example.com/page"),
        ("ftp://files.example.com/pub/", "ftp://files.example.com/pub"),
    ])
    def test_canonical_forms(self, raw, expected):
        """Test scheme, host, path, query and fragment handling."""
        assert normalize_url(raw) == expected

    def test_path_case_preserved(self):
        """Path casing is significant and must survive."""
        assert normalize_url("https://example.com/CamelCase/Path") == "https://example.com/CamelCase/Path"

    def test_empty_input(self):
        assert normalize_url("") == ""

    def test_unparseable_input_returned_unchanged(self):
        """Input that is not an absolute URL is returned as is."""
        assert normalize_url("not a url") == "not a url"
        assert normalize_url("example.com/page") == "example.com/page"
        assert normalize_url("http://[invalid") == "http://[invalid"

    @pytest.mark.parametrize("raw", [
        "http://WWW.Example.com/path/?utm_source=x#top",
        "https://example.com//double//",
        "http://www.www.example.com/a",
        "https://example.com",
        "https://www.reddit.com/r/programming/comments/abc123/title/",
        "https://old.reddit.com/r/foo/s/Share1",
        "https://reddit.com/user/someone?x=1",
        "https://redd.it/xyz789",
        "https://example.com/?next=reddit.com",
        "garbage",
    ])
    def test_idempotent(self, raw):
        """Normalizing twice gives the same result as normalizing once."""
        once = normalize_url(raw)
        assert normalize_url(once) == once

    def test_query_mentioning_reddit_uses_general_rules(self):
        """Only host and path select the Reddit normalizer."""
        assert normalize_url("https://example.com/share?u=reddit.com") == "https://example.com/share"

    def test_equivalent_links_compare_equal(self):
        variants = [
            "http://example.com/article",
            "https://www.example.com/article/",
            "https://EXAMPLE.com/article?utm_campaign=hn",
            "https://example.com/article#comments",
        ]
        assert len({normalize_url(v) for v in variants}) == 1


class TestNormalizeRedditUrl:
    """Test Reddit link reduction."""

    @pytest.mark.parametrize("raw, expected", [
        ("https://www.reddit.com/r/programming/comments/abc123/some_title/", "reddit.com/comments/abc123"),
        ("https://old.reddit.com/r/python/comments/def456/", "reddit.com/comments/def456"),
        ("https://redd.it/xyz789", "reddit.com/comments/xyz789"),
        ("https://redd.it/xyz789?utm=1", "reddit.com/comments/xyz789"),
        ("https://www.reddit.com/r/programming/s/AbCdEf", "reddit.com/s/AbCdEf"),
        ("https://WWW.REDDIT.COM/r/Python/comments/Q1w2E3/", "reddit.com/comments/Q1w2E3"),
    ])
    def test_post_shapes(self, raw, expected):
        assert normalize_reddit_url(raw) == expected
        assert normalize_url(raw) == expected

    def test_shapes_of_same_post_collapse(self):
        """Direct, short and query-tagged links of one post share a key."""
        keys = {
            normalize_url("https://www.reddit.com/r/programming/comments/abc123/title/"),
            normalize_url("https://redd.it/abc123"),
            normalize_url("https://reddit.com/r/other/comments/abc123?context=3"),
        }
        assert keys == {"reddit.com/comments/abc123"}

    def test_other_reddit_links_only_lose_query(self):
        """Links without a post id keep their shape apart from the query."""
        assert normalize_url("https://www.reddit.com/user/someone?sort=new") == "https://www.reddit.com/user/someone"

    def test_empty(self):
        assert normalize_reddit_url("") == ""
