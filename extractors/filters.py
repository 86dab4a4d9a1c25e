"""Title-based filters: the essential-content skip list and the navigation denylist."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Sequence, TypeVar

import config

logger = logging.getLogger(__name__)

T = TypeVar("T")


def should_skip(title: str, keywords: Sequence[str] = config.SKIP_CHAPTER_KEYWORDS) -> bool:
    """True when *title* contains a non-essential keyword (case-insensitive)."""
    if not title:
        return False
    lowered = title.lower().strip()
    return any(keyword.lower() in lowered for keyword in keywords)


def filter_chapters(chapters: Iterable[T], enabled: bool) -> List[T]:
    """Drop chapters whose title is on the skip list when *enabled*."""
    kept: List[T] = []
    for chapter in chapters:
        if enabled and should_skip(chapter.title):
            logger.info("Skipping non-essential chapter: %r", chapter.title)
            continue
        kept.append(chapter)
    return kept


def _keyword_regex(keyword: str):
    # ASCII keywords match whole words so "nav" does not hit "Navajo"
    if keyword.isascii():
        return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
    return re.compile(re.escape(keyword))


_NAVIGATION_RES = [_keyword_regex(k) for k in config.NAVIGATION_HEADING_KEYWORDS]


def is_navigation_heading(text: str) -> bool:
    """True for headings that label page furniture (menus, TOCs) rather than chapters."""
    return any(regex.search(text or "") for regex in _NAVIGATION_RES)


__all__ = ["filter_chapters", "is_navigation_heading", "should_skip"]
