"""
Duplicate Detection
==================

Decides whether a candidate post matches something already published in
the target community, by exact canonical URL or by a loose title overlap.
"""

from datetime import datetime
from typing import Iterable

from ..models import ExistingItem
from ..utils.logging import get_logger_for_component
from .url_normalizer import normalize_url

# Titles shorter than this many tokens only match exactly or as substrings
MIN_FUZZY_TOKENS = 4
# Tokens this short or shorter are ignored when counting overlap
MAX_NOISE_TOKEN_LENGTH = 2
TOKEN_OVERLAP_THRESHOLD = 0.7

logger = get_logger_for_component("duplicate_detector")


def is_similar_title(title1: str, title2: str) -> bool:
    """Compare two already case-folded titles.

    Identical titles and titles where one contains the other are similar.
    Otherwise both need at least four tokens, and the share of the second
    title's significant tokens found among the first title's significant
    tokens, relative to the shorter title, must exceed 70%.
    """
    if title1 == title2:
        return True

    if title1 in title2 or title2 in title1:
        return True

    words1 = title1.split()
    words2 = title2.split()

    if len(words1) < MIN_FUZZY_TOKENS or len(words2) < MIN_FUZZY_TOKENS:
        return False

    significant = {w for w in words1 if len(w) > MAX_NOISE_TOKEN_LENGTH}
    common = sum(1 for w in words2 if len(w) > MAX_NOISE_TOKEN_LENGTH and w in significant)

    min_words = min(len(words1), len(words2))
    return common / min_words > TOKEN_OVERLAP_THRESHOLD


def is_duplicate(
    normalized_url: str,
    title: str,
    existing: Iterable[ExistingItem],
    cutoff: datetime,
) -> bool:
    """Return True if any existing item newer than ``cutoff`` matches.

    Args:
        normalized_url: Candidate URL, already passed through normalize_url
        title: Candidate title as it would be posted
        existing: Existing items in listing order
        cutoff: Items created before this instant are ignored
    """
    title_lower = title.casefold()

    for item in existing:
        if item.created_at < cutoff:
            continue

        if normalize_url(item.url) == normalized_url:
            return True

        if is_similar_title(title_lower, item.title.casefold()):
            logger.info(
                f"Similar title found: '{title}' vs '{item.title}'",
                extra={"candidate_title": title, "existing_title": item.title},
            )
            return True

    return False
