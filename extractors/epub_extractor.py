import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote

import ebooklib
from bs4 import BeautifulSoup
from ebooklib import epub

import config

from .base import ChapterExtractor, as_path, name_stem
from .models import BookMetadata, BoundarySource, ChapterBoundary, DocumentKind, TextUnit
from .patterns import EPUB_PATTERNS
from .text_normalizer import collapse_spaces, html_to_text

logger = logging.getLogger(__name__)


@dataclass
class TocEntry:
    title: str
    href: str
    depth: int = 0


@dataclass
class EpubHandle:
    book: epub.EpubBook
    spine: List[epub.EpubItem] = field(default_factory=list)

    @property
    def names(self) -> List[str]:
        return [item.get_name() for item in self.spine]


def normalize_href(href: str) -> str:
    """Drop the fragment, percent-decode and clean up ``./`` segments."""
    path = (href or "").split("#", 1)[0]
    path = unquote(path).strip()
    if not path:
        return ""
    return posixpath.normpath(path).lstrip("/")


def resolve_href(href: str, names: List[str]) -> Optional[int]:
    """Spine index for *href*: exact name match first, then suffix match."""
    target = normalize_href(href)
    if not target:
        return None
    normalized = [normalize_href(name) for name in names]
    if target in normalized:
        return normalized.index(target)
    for index, name in enumerate(normalized):
        if name.endswith("/" + target) or target.endswith("/" + name):
            return index
    base = posixpath.basename(target)
    for index, name in enumerate(normalized):
        if posixpath.basename(name) == base:
            return index
    return None


def _safe_title(value) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    return collapse_spaces(value or "")


def _split_node(node) -> Tuple[object, list]:
    if isinstance(node, (list, tuple)):
        if not node:
            return None, []
        head, *rest = node
        children = rest[0] if len(rest) == 1 and isinstance(rest[0], (list, tuple)) else rest
        return head, list(children)
    return node, []


def _first_href(nodes) -> str:
    for node in nodes:
        head, children = _split_node(node)
        href = getattr(head, "href", "") or ""
        if href:
            return href
        href = _first_href(children)
        if href:
            return href
    return ""


def walk_toc(nodes, max_depth: int, depth: int = 0) -> List[TocEntry]:
    """Flatten the navigation tree down to *max_depth*.

    A node with children is replaced by its children while ``depth`` is still
    below ``max_depth``; otherwise the node itself becomes one entry and its
    sub-items fall inside that entry's span.
    """
    entries: List[TocEntry] = []
    for node in nodes or []:
        head, children = _split_node(node)
        if head is None:
            continue
        if children and depth < max_depth:
            entries.extend(walk_toc(children, max_depth, depth + 1))
            continue
        href = getattr(head, "href", "") or _first_href(children)
        title = _safe_title(getattr(head, "title", ""))
        if not href:
            logger.debug("Skipping TOC node without href: %r", title)
            continue
        entries.append(TocEntry(title=title, href=href, depth=depth))
    return entries


def _is_navigation_document(item) -> bool:
    if isinstance(item, epub.EpubNav):
        return True
    # Skip navigation/TOC pages that are not declared as such
    soup = BeautifulSoup(item.get_content(), "html.parser")
    body = soup.find("body")
    if body and body.get("class"):
        classes = " ".join(body["class"]).lower()
        if "nav" in classes or "toc" in classes:
            return True
    return soup.find("nav", attrs={"epub:type": "toc"}) is not None


def _document_title(item) -> str:
    soup = BeautifulSoup(item.get_content(), "html.parser")
    if soup.title and soup.title.get_text(strip=True):
        return collapse_spaces(soup.title.get_text())
    heading = soup.find(["h1", "h2"])
    if heading and heading.get_text(strip=True):
        return collapse_spaces(heading.get_text(" "))
    return ""


class EpubExtractor(ChapterExtractor):
    """EPUB adapter: the navigation TOC over the spine, with a spine fallback."""

    kind = DocumentKind.EPUB
    patterns = EPUB_PATTERNS

    def open(self, source):
        with as_path(source, suffix=".epub") as path:
            book = epub.read_epub(path, options={"ignore_ncx": False})
        spine = []
        for idref, *_ in book.spine:
            item = book.get_item_with_id(idref)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            if _is_navigation_document(item):
                continue
            spine.append(item)
        return EpubHandle(book=book, spine=spine)

    def close(self, handle):
        # ebooklib keeps nothing open after read_epub
        pass

    def read_units(self, handle):
        units = []
        for item in handle.spine:
            try:
                text = html_to_text(item.get_content())
            except Exception as e:
                logger.warning("Could not read spine item %s: %s", item.get_name(), e)
                text = ""
            units.append(TextUnit(text))
        return units

    def read_metadata(self, document):
        book = document.handle.book
        titles = [_safe_title(value) for value, _ in book.get_metadata("DC", "title")]
        creators = [_safe_title(value) for value, _ in book.get_metadata("DC", "creator")]
        title = next((t for t in titles if t), "") or name_stem(document.name)
        author = ", ".join(c for c in creators if c)
        return BookMetadata(title or config.UNKNOWN_TITLE, author or config.UNKNOWN_AUTHOR)

    def toc_entries(self, handle, max_depth: int) -> List[TocEntry]:
        return walk_toc(handle.book.toc, max_depth)

    def toc_boundaries(self, document, options):
        handle = document.handle
        names = handle.names
        entries = self.toc_entries(handle, options.max_sub_chapter_depth)
        boundaries = self._entries_to_boundaries(entries, names)

        top_level = len(handle.book.toc or [])
        if top_level <= config.EPUB_TOC_FALLBACK_MAX_ENTRIES:
            fallback = self.spine_boundaries(handle)
            if len(fallback) >= len(boundaries):
                logger.info(
                    "TOC has %d top-level entries; using %d spine items instead",
                    top_level, len(fallback),
                )
                return fallback
        return boundaries

    def _entries_to_boundaries(self, entries, names) -> List[ChapterBoundary]:
        boundaries = []
        for ordinal, entry in enumerate(entries, start=1):
            position = resolve_href(entry.href, names)
            if position is None:
                logger.debug("TOC entry %r points outside the spine: %s", entry.title, entry.href)
                continue
            boundaries.append(
                ChapterBoundary(
                    title=entry.title or f"Part {ordinal}",
                    position=position,
                    level=entry.depth,
                    source_kind=BoundarySource.TOC,
                    href=normalize_href(entry.href),
                )
            )
        return boundaries

    def spine_boundaries(self, handle) -> List[ChapterBoundary]:
        """One boundary per spine document, titled from the TOC when possible."""
        labels: Dict[str, str] = {}
        for entry in walk_toc(handle.book.toc, max_depth=64):
            labels.setdefault(normalize_href(entry.href), entry.title)

        boundaries = []
        for index, item in enumerate(handle.spine):
            name = normalize_href(item.get_name())
            title = labels.get(name) or _document_title(item) or f"Part {index + 1}"
            boundaries.append(
                ChapterBoundary(
                    title=title,
                    position=index,
                    level=0,
                    source_kind=BoundarySource.TOC,
                    href=name,
                )
            )
        return boundaries

    def chapter_fields(self, document, section):
        if section.boundary.href:
            return {}
        return {"href": normalize_href(document.handle.names[section.start])}
