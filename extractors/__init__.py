import logging
import os

import config

from .docx_extractor import DocxExtractor
from .epub_extractor import EpubExtractor
from .errors import (
    ExtractionError,
    FetchError,
    NoChaptersError,
    ParseError,
    UnsupportedFormatError,
)
from .html_extractor import HtmlExtractor
from .models import BookMetadata, Chapter, DocumentKind, ExtractionOptions
from .pdf_extractor import PdfExtractor
from .text_extractor import TextExtractor
from .web_extractor import WebExtractor

logger = logging.getLogger(__name__)

EXTENSION_KINDS = {
    "epub": DocumentKind.EPUB,
    "pdf": DocumentKind.PDF,
    "docx": DocumentKind.WORD,
    "doc": DocumentKind.WORD,
    "html": DocumentKind.HTML,
    "htm": DocumentKind.HTML,
    "xhtml": DocumentKind.HTML,
    "txt": DocumentKind.TEXT,
    "md": DocumentKind.TEXT,
    "markdown": DocumentKind.TEXT,
}

EXTRACTORS = {
    DocumentKind.EPUB: EpubExtractor(),
    DocumentKind.PDF: PdfExtractor(),
    DocumentKind.WORD: DocxExtractor(),
    DocumentKind.HTML: HtmlExtractor(),
    DocumentKind.TEXT: TextExtractor(),
    DocumentKind.WEB: WebExtractor(),
}


def detect_kind(filename):
    """Map a file name to its DocumentKind by extension."""
    ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
    if ext not in EXTENSION_KINDS or ext not in config.ALLOWED_EXTENSIONS:
        raise UnsupportedFormatError(f".{ext}" if ext else "")
    return EXTENSION_KINDS[ext]


def get_extractor(kind):
    return EXTRACTORS[DocumentKind(kind)]


def parse_document(filepath, filename=None):
    """Title and author of the file at *filepath*."""
    kind = detect_kind(filename or filepath)
    return get_extractor(kind).parse(filepath, filename=filename)


def extract_chapters(filepath, filename=None, **options):
    """Dispatch to the correct extractor based on file extension."""
    kind = detect_kind(filename or filepath)
    logger.info("Extracting chapters from %s as %s", filename or filepath, kind.value)
    return get_extractor(kind).extract_chapters(filepath, filename=filename, **options)


def extract_chapters_from_url(url, **options):
    return get_extractor(DocumentKind.WEB).extract_chapters(url, **options)


def extract_chapters_from_text(text, **options):
    data = text.encode("utf-8") if isinstance(text, str) else text
    return get_extractor(DocumentKind.TEXT).extract_chapters(data, **options)


__all__ = [
    "BookMetadata",
    "Chapter",
    "DocumentKind",
    "ExtractionError",
    "ExtractionOptions",
    "FetchError",
    "NoChaptersError",
    "ParseError",
    "UnsupportedFormatError",
    "detect_kind",
    "extract_chapters",
    "extract_chapters_from_text",
    "extract_chapters_from_url",
    "get_extractor",
    "parse_document",
]
