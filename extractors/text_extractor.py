import logging
import re

import config

from .base import ChapterExtractor, name_stem, read_text
from .detector import split_units
from .models import BookMetadata, DocumentKind
from .patterns import TEXT_PATTERNS
from .text_normalizer import collapse_whitespace, decode_entities

logger = logging.getLogger(__name__)

_AUTHOR_LINE = re.compile(r"^(?:author|作者)\s*[:：]\s*(.+)$", re.IGNORECASE)
_BY_LINE = re.compile(r"^by\s+(.+)$", re.IGNORECASE)
_TITLE_END = tuple(".!?,;。！？，；")


def _looks_like_title(line):
    if not 5 <= len(line) <= 100:
        return False
    if line.endswith(_TITLE_END):
        return False
    return not (_AUTHOR_LINE.match(line) or _BY_LINE.match(line))


def text_metadata(text, fallback_title=""):
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    title = next((line for line in lines[:3] if _looks_like_title(line)), "")
    if not title and lines:
        title = lines[0][:100]

    author = ""
    for line in lines[:10]:
        match = _AUTHOR_LINE.match(line) or _BY_LINE.match(line)
        if match:
            author = match.group(1).strip()
            break

    return BookMetadata(
        title or fallback_title or config.TEXT_TITLE,
        author or config.UNKNOWN_AUTHOR,
    )


class TextExtractor(ChapterExtractor):
    """Plain text and Markdown. No TOC: pattern detection or fixed chunks only."""

    kind = DocumentKind.TEXT
    patterns = TEXT_PATTERNS

    def open(self, source):
        # Single newlines survive so split_units can fall back to them
        return collapse_whitespace(decode_entities(read_text(source)))

    def close(self, handle):
        pass

    def read_units(self, text):
        return split_units(text)

    def read_metadata(self, document):
        return text_metadata(document.handle, name_stem(document.name))


__all__ = ["TextExtractor", "text_metadata"]
