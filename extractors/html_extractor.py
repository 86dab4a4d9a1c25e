"""HTML adapter: heading tags act as the table of contents."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup

import config

from .base import ChapterExtractor, name_stem, read_text
from .filters import is_navigation_heading
from .models import BookMetadata, BoundarySource, ChapterBoundary, DocumentKind, TextUnit
from .patterns import HTML_PATTERNS
from .text_normalizer import HtmlBlock, collapse_spaces, parse_html_blocks

logger = logging.getLogger(__name__)

# Page furniture removed before any text is read
DROP_TAGS = ["script", "style", "nav", "header", "footer", "noscript", "template"]


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    position: int


@dataclass
class HtmlHandle:
    markup: str
    blocks: List[HtmlBlock] = field(default_factory=list)
    url: Optional[str] = None


def chapter_level(levels: List[int]) -> int:
    """Shallowest heading level used more than once, else the shallowest level."""
    counts = Counter(levels)
    repeated = sorted(level for level, count in counts.items() if count > 1)
    return repeated[0] if repeated else min(levels)


def heading_boundaries(headings: List[Heading], max_depth: int) -> List[ChapterBoundary]:
    """Boundaries for every non-navigation heading down to ``chapter level + max_depth``."""
    headings = [h for h in headings if h.text and not is_navigation_heading(h.text)]
    if not headings:
        return []
    base = chapter_level([h.level for h in headings])
    limit = base + max_depth
    logger.debug("Chapter heading level h%d, deepest included h%d", base, limit)
    return [
        ChapterBoundary(
            title=h.text[: config.HEADING_MAX_LENGTH],
            position=h.position,
            level=max(h.level - base, 0),
            source_kind=BoundarySource.TOC,
        )
        for h in headings
        if h.level <= limit
    ]


def _meta_content(soup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is not None and tag.get("content"):
        return collapse_spaces(tag["content"])
    return ""


def html_metadata(markup: str, fallback_title: str) -> BookMetadata:
    soup = BeautifulSoup(markup, "html.parser")

    title = ""
    if soup.title and soup.title.get_text(strip=True):
        title = collapse_spaces(soup.title.get_text())
    if not title:
        h1 = soup.find("h1")
        if h1 is not None:
            title = collapse_spaces(h1.get_text(" "))

    author = _meta_content(soup, name="author") or _meta_content(soup, property="article:author")
    if not author:
        byline = soup.find(class_="author")
        if byline is not None:
            author = collapse_spaces(byline.get_text(" "))

    return BookMetadata(title or fallback_title, author or config.UNKNOWN_AUTHOR)


class HtmlExtractor(ChapterExtractor):
    kind = DocumentKind.HTML
    patterns = HTML_PATTERNS

    def open(self, source):
        return self.handle_for(read_text(source, is_html=True))

    def handle_for(self, markup: str, url: Optional[str] = None) -> HtmlHandle:
        return HtmlHandle(markup=markup, blocks=parse_html_blocks(markup, DROP_TAGS), url=url)

    def close(self, handle):
        pass

    def read_units(self, handle):
        return [TextUnit(block.text, block.styled) for block in handle.blocks]

    def read_metadata(self, document):
        fallback = name_stem(document.name) or config.UNKNOWN_TITLE
        return html_metadata(document.handle.markup, fallback)

    def toc_boundaries(self, document, options):
        headings = [
            Heading(level=block.heading_level, text=block.text, position=index)
            for index, block in enumerate(document.handle.blocks)
            if block.heading_level
        ]
        return heading_boundaries(headings, options.max_sub_chapter_depth)


__all__ = ["Heading", "HtmlExtractor", "chapter_level", "heading_boundaries", "html_metadata"]
