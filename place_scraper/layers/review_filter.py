"""Review content validation and deduplication."""
import re
from typing import List, Optional, Set

from place_scraper.models.place import ReviewRecord


# ASCII alphanumerics, Hangul compatibility jamo and Hangul syllables
_MEANINGFUL_CHAR = re.compile(r"[0-9A-Za-zㄱ-ㆎ가-힣]")


def validate_content(content: Optional[str]) -> bool:
    """True when the review text has at least one letter or digit worth keeping."""
    if not content or not content.strip():
        return False
    return bool(_MEANINGFUL_CHAR.search(content))


def deduplicate(reviews: List[ReviewRecord]) -> List[ReviewRecord]:
    """
    Drop repeated review ids, keeping the first occurrence in order.

    Reviews without an id are always kept.
    """
    seen: Set[str] = set()
    unique = []
    for review in reviews:
        if review.id is not None:
            if review.id in seen:
                continue
            seen.add(review.id)
        unique.append(review)
    return unique
