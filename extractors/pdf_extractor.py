import logging
import os
import re
from dataclasses import dataclass, field
from typing import List

import fitz  # PyMuPDF

import config

from .base import ChapterExtractor, as_stream, name_stem
from .errors import ParseError
from .models import BookMetadata, BoundarySource, ChapterBoundary, DocumentKind, TextUnit
from .patterns import PDF_PATTERNS
from .text_normalizer import collapse_spaces

logger = logging.getLogger(__name__)


def _rejoin_lines(text):
    """Join hard-wrapped lines within paragraphs into continuous sentences.

    PDF text has a newline at the end of every visual line on the page.
    This merges those into flowing paragraphs while preserving real paragraph
    breaks (blank lines).
    """
    paragraphs = []
    current = []

    for line in text.split("\n"):
        stripped = line.strip()

        # Empty line = paragraph break
        if not stripped:
            if current:
                paragraphs.append(" ".join(current))
                current = []
            continue

        current.append(stripped)

    if current:
        paragraphs.append(" ".join(current))

    return "\n\n".join(re.sub(r"  +", " ", p) for p in paragraphs)


@dataclass
class OutlineNode:
    title: str
    page: int  # 1-based, < 1 when the destination is unresolved
    level: int
    children: List["OutlineNode"] = field(default_factory=list)


def build_outline(toc) -> List[OutlineNode]:
    """Rebuild the flat ``[level, title, page]`` list from get_toc() into a tree."""
    roots: List[OutlineNode] = []
    stack: List[OutlineNode] = []
    for level, title, page, *_ in toc or []:
        node = OutlineNode(title=collapse_spaces(title or ""), page=int(page), level=int(level))
        while stack and stack[-1].level >= node.level:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return roots


def walk_outline(nodes: List[OutlineNode], max_depth: int, depth: int = 0) -> List[ChapterBoundary]:
    """Same descent rule as the EPUB navigation walk, over outline items."""
    boundaries = []
    for node in nodes:
        if node.children and depth < max_depth:
            boundaries.extend(walk_outline(node.children, max_depth, depth + 1))
            continue
        if node.page < 1:
            logger.debug("Skipping outline item with unresolved destination: %r", node.title)
            continue
        boundaries.append(
            ChapterBoundary(
                title=node.title,
                position=node.page - 1,
                level=depth,
                source_kind=BoundarySource.TOC,
            )
        )
    return boundaries


class PdfExtractor(ChapterExtractor):
    """PDF adapter: outline bookmarks over pages, page text from PyMuPDF."""

    kind = DocumentKind.PDF
    patterns = PDF_PATTERNS

    def open(self, source):
        stream = as_stream(source)
        if isinstance(stream, (str, os.PathLike)):
            doc = fitz.open(os.fspath(stream))
        else:
            doc = fitz.open(stream=stream.getvalue(), filetype="pdf")

        if doc.is_encrypted:
            doc.close()
            raise ParseError("PDF is password-protected and cannot be read")

        if doc.page_count == 0:
            doc.close()
            raise ParseError("PDF has no pages")

        return doc

    def read_units(self, doc):
        units = []
        for page_num, page in enumerate(doc):
            try:
                text = _rejoin_lines(page.get_text("text"))
            except Exception as e:
                logger.warning("Could not read page %d: %s", page_num + 1, e)
                text = ""
            units.append(TextUnit(text))
        return units

    def read_metadata(self, document):
        info = document.handle.metadata or {}
        title = collapse_spaces(info.get("title") or "") or name_stem(document.name)
        author = collapse_spaces(info.get("author") or "")
        return BookMetadata(title or config.UNKNOWN_TITLE, author or config.UNKNOWN_AUTHOR)

    def toc_boundaries(self, document, options):
        outline = build_outline(document.handle.get_toc(simple=True))
        boundaries = walk_outline(outline, options.max_sub_chapter_depth)
        boundaries.sort(key=lambda b: b.position)
        logger.debug("Outline yielded %d boundaries", len(boundaries))
        return [b for b in boundaries if b.position < document.total]

    def chapter_fields(self, document, section):
        return {
            "start_page": section.start + 1,
            "end_page": section.end,
            "page_index": section.start,
        }
