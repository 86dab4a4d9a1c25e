import logging
import re
import statistics
from typing import List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH

import config

from .base import ChapterExtractor, as_stream, name_stem, source_name
from .errors import ParseError
from .html_extractor import Heading, heading_boundaries
from .models import BookMetadata, Chapter, DocumentKind, TextUnit
from .patterns import WORD_PATTERNS
from .text_normalizer import collapse_spaces

logger = logging.getLogger(__name__)

_HEADING_STYLE = re.compile(r"^heading\s*([1-3])$", re.IGNORECASE)


def _heading_level(paragraph) -> int:
    name = paragraph.style.name if paragraph.style is not None else ""
    match = _HEADING_STYLE.match((name or "").strip())
    return int(match.group(1)) if match else 0


def _font_size(paragraph) -> Optional[float]:
    sizes = [run.font.size.pt for run in paragraph.runs if run.font.size is not None]
    if sizes:
        return max(sizes)
    style = paragraph.style
    if style is not None and style.font is not None and style.font.size is not None:
        return style.font.size.pt
    return None


def _is_bold(paragraph) -> bool:
    runs = [run for run in paragraph.runs if run.text.strip()]
    if not runs:
        return False
    style_bold = bool(paragraph.style is not None and paragraph.style.font.bold)
    return all(run.bold or (run.bold is None and style_bold) for run in runs)


def _paragraphs(doc):
    return [p for p in doc.paragraphs if p.text.strip()]


class DocxExtractor(ChapterExtractor):
    """Word adapter: paragraphs as units, Heading 1-3 styles as the TOC."""

    kind = DocumentKind.WORD
    patterns = WORD_PATTERNS

    def open(self, source):
        return Document(as_stream(source))

    def close(self, handle):
        # python-docx reads the package fully into memory
        pass

    def read_units(self, doc):
        paragraphs = _paragraphs(doc)
        sizes = [s for s in (_font_size(p) for p in paragraphs) if s is not None]
        median = statistics.median(sizes) if sizes else None

        units = []
        for paragraph in paragraphs:
            size = _font_size(paragraph)
            styled = (
                _is_bold(paragraph)
                or (median is not None and size is not None and size > median)
                or paragraph.alignment == WD_ALIGN_PARAGRAPH.CENTER
            )
            units.append(TextUnit(collapse_spaces(paragraph.text), styled=styled))
        return units

    def read_metadata(self, document):
        props = document.handle.core_properties
        title = collapse_spaces(props.title or "") or name_stem(document.name)
        author = collapse_spaces(props.author or "")
        return BookMetadata(title or config.UNKNOWN_TITLE, author or config.UNKNOWN_AUTHOR)

    def toc_boundaries(self, document, options):
        headings = [
            Heading(level=_heading_level(p), text=collapse_spaces(p.text), position=index)
            for index, p in enumerate(_paragraphs(document.handle))
            if _heading_level(p)
        ]
        return heading_boundaries(headings, options.max_sub_chapter_depth)

    def extract_chapters(
        self,
        source,
        use_smart_detection=config.DEFAULT_USE_SMART_DETECTION,
        skip_non_essential_chapters=config.DEFAULT_SKIP_NON_ESSENTIAL_CHAPTERS,
        max_sub_chapter_depth=config.DEFAULT_MAX_SUB_CHAPTER_DEPTH,
        filename=None,
    ) -> List[Chapter]:
        try:
            return super().extract_chapters(
                source,
                use_smart_detection=use_smart_detection,
                skip_non_essential_chapters=skip_non_essential_chapters,
                max_sub_chapter_depth=max_sub_chapter_depth,
                filename=filename,
            )
        except ParseError as e:
            name = source_name(source, filename)
            logger.warning("python-docx could not open %r, returning placeholder: %s", name, e)
            return [
                Chapter(
                    id="chapter-1",
                    title=config.PLACEHOLDER_CHAPTER_TITLE,
                    content=config.PLACEHOLDER_CHAPTER_BODY.format(filename=name or "document"),
                    source="fallback",
                )
            ]


__all__ = ["DocxExtractor"]
