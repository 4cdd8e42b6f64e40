"""
URL Normalization
================

Canonicalizes URLs so that equivalent links to the same content compare
equal: scheme and host casing, ``www.`` prefixes, trailing slashes,
tracking parameters and fragments are collapsed. Reddit links get a
dedicated normalizer that reduces the direct, short and share link shapes
of a post to a single key.
"""

import re
from typing import Callable, Pattern, Tuple
from urllib.parse import urlsplit, urlunsplit

REDDIT_CANONICAL_HOST = "reddit.com"

_REDDIT_POST_ID = re.compile(
    r"(?:reddit\.com/r/[^/]+/comments/|redd\.it/)([a-zA-Z0-9]+)", re.IGNORECASE
)
_REDDIT_SHARE_ID = re.compile(r"/s/([a-zA-Z0-9]+)")


def normalize_reddit_url(raw_url: str) -> str:
    """Reduce a Reddit link to ``reddit.com/comments/<id>`` where possible.

    Share links (``/s/<id>``) cannot be resolved to a post id offline and
    become ``reddit.com/s/<id>``. Anything else is returned with its query
    string removed but otherwise untouched.
    """
    if not raw_url:
        return raw_url

    clean_url = raw_url.split("?", 1)[0]

    match = _REDDIT_POST_ID.search(clean_url)
    if match:
        return f"{REDDIT_CANONICAL_HOST}/comments/{match.group(1)}"

    share = _REDDIT_SHARE_ID.search(clean_url)
    if share:
        return f"{REDDIT_CANONICAL_HOST}/s/{share.group(1)}"

    return clean_url


# Host pattern -> normalizer. The first pattern found in the host/path wins.
PLATFORM_NORMALIZERS: Tuple[Tuple[Pattern, Callable[[str], str]], ...] = (
    (re.compile(r"reddit\.com|redd\.it", re.IGNORECASE), normalize_reddit_url),
)


def _platform_normalizer(raw_url: str):
    # Only host and path select a platform; a query parameter mentioning
    # reddit.com must not
    head = raw_url.split("?", 1)[0]
    for pattern, normalizer in PLATFORM_NORMALIZERS:
        if pattern.search(head):
            return normalizer
    return None


def normalize_url(raw_url: str) -> str:
    """Return the canonical form of ``raw_url``.

    Never raises: input that cannot be parsed as a URL is returned as is.

    >>> normalize_url("http://WWW.Example.com/path/?utm_source=x#top")
    'https://example.com/path'
    >>> normalize_url("https://redd.it/xyz789?utm=1")
    'reddit.com/comments/xyz789'
    """
    if not raw_url:
        return raw_url

    platform = _platform_normalizer(raw_url)
    if platform is not None:
        return platform(raw_url)

    try:
        parts = urlsplit(raw_url)
    except ValueError:
        return raw_url

    if not parts.scheme and not parts.netloc:
        # Bare strings like "example.com/page" are not absolute URLs
        return raw_url

    scheme = parts.scheme.lower()
    if scheme in ("", "http"):
        scheme = "https"

    host = parts.netloc.lower()
    while host.startswith("www."):
        host = host[len("www."):]

    path = parts.path.rstrip("/")
    if not path and host:
        path = "/"

    return urlunsplit((scheme, host, path, "", ""))
