"""Shared orchestration for the per-format chapter extractors.

An adapter only has to know its own document model: how to open a source,
how to cut it into ``TextUnit``s (spine documents, pages, paragraphs) and, if
the format has one, how to read its table of contents as boundaries over
those units. Everything else (strategy order, the length gates, the
essential-content filter, numbering, error wrapping) lives here.
"""

from __future__ import annotations

import contextlib
import io
import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from bs4 import UnicodeDammit

import config

from .assembler import assemble, chunk_boundaries, first_non_empty, number_chapters
from .detector import detect_boundaries
from .errors import ExtractionError, NoChaptersError, ParseError
from .filters import filter_chapters
from .models import (
    BookMetadata,
    BoundarySource,
    Chapter,
    ChapterBoundary,
    DocumentKind,
    ExtractionOptions,
    Section,
    TextUnit,
)
from .patterns import PatternSet, TEXT_PATTERNS
from .text_normalizer import join_paragraphs

logger = logging.getLogger(__name__)


def source_name(source, filename: Optional[str] = None) -> str:
    """Best-effort file name for *source*, used for metadata fallbacks."""
    if filename:
        return os.path.basename(filename)
    if isinstance(source, (str, os.PathLike)):
        return os.path.basename(os.fspath(source))
    name = getattr(source, "name", None) or getattr(source, "filename", None)
    if isinstance(name, str):
        return os.path.basename(name)
    return ""


def name_stem(name: str) -> str:
    return os.path.splitext(os.path.basename(name or ""))[0].strip()


def read_bytes(source) -> bytes:
    """Return the raw bytes of a path, a byte buffer or a binary file object."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as f:
            return f.read()
    if hasattr(source, "read"):
        if hasattr(source, "seek"):
            source.seek(0)
        data = source.read()
        return data.encode("utf-8") if isinstance(data, str) else data
    raise ParseError(f"unsupported source type {type(source).__name__}")


def read_text(source, is_html: bool = False) -> str:
    """Decode *source*, honouring a byte-order mark, else UTF-8, else Windows-1252."""
    data = read_bytes(source)
    dammit = UnicodeDammit(data, user_encodings=["utf-8", "windows-1252"], is_html=is_html)
    if dammit.unicode_markup is None:
        logger.warning("could not detect text encoding, decoding as latin-1")
        return data.decode("latin-1")
    if dammit.original_encoding == "windows-1252":
        logger.warning("text is not UTF-8, decoded as windows-1252")
    return dammit.unicode_markup


@contextlib.contextmanager
def as_path(source, suffix: str = "") -> Iterator[str]:
    """Yield a filesystem path for *source*, spilling buffers to a temp file."""
    if isinstance(source, (str, os.PathLike)):
        yield os.fspath(source)
        return
    fd, path = tempfile.mkstemp(suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(read_bytes(source))
        yield path
    finally:
        try:
            os.remove(path)
        except OSError:
            pass


def as_stream(source):
    if isinstance(source, (str, os.PathLike)):
        return source
    return io.BytesIO(read_bytes(source))


@dataclass
class LoadedDocument:
    """One opened document for the duration of a single extraction call."""

    handle: Any
    name: str
    units: List[TextUnit] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.units)


class ChapterExtractor:
    """Base class for a format adapter.

    Subclasses set ``kind`` and ``patterns`` and implement ``open``,
    ``read_units`` and ``read_metadata``; formats with a native TOC also
    implement ``toc_boundaries``.
    """

    kind: DocumentKind = DocumentKind.TEXT
    patterns: PatternSet = TEXT_PATTERNS

    @property
    def min_chapter_length(self) -> int:
        return config.MIN_CHAPTER_LENGTH[self.kind.value]

    @property
    def min_chunk_length(self) -> int:
        return config.MIN_CHUNK_LENGTH[self.kind.value]

    @property
    def chunk_divisor(self) -> int:
        return config.CHUNK_DIVISOR[self.kind.value]

    @property
    def min_chunk_units(self) -> int:
        return config.CHUNK_MIN_UNITS[self.kind.value]

    # --- format hooks -------------------------------------------------

    def open(self, source):
        raise NotImplementedError

    def close(self, handle) -> None:
        close = getattr(handle, "close", None)
        if callable(close):
            close()

    def read_units(self, handle) -> List[TextUnit]:
        raise NotImplementedError

    def read_metadata(self, document: LoadedDocument) -> BookMetadata:
        raise NotImplementedError

    def toc_boundaries(
        self, document: LoadedDocument, options: ExtractionOptions
    ) -> List[ChapterBoundary]:
        return []

    def render(self, document: LoadedDocument, start: int, end: int) -> str:
        return join_paragraphs(unit.text for unit in document.units[start:end])

    def chapter_fields(self, document: LoadedDocument, section: Section) -> Dict[str, Any]:
        return {}

    # --- public operations --------------------------------------------

    def load(self, source, filename: Optional[str] = None) -> LoadedDocument:
        name = source_name(source, filename)
        try:
            handle = self.open(source)
        except ExtractionError:
            raise
        except Exception as e:
            raise ParseError(str(e)) from e
        return LoadedDocument(handle=handle, name=name)

    def fallback_metadata(self, name: str) -> BookMetadata:
        return BookMetadata(name_stem(name) or config.UNKNOWN_TITLE, config.UNKNOWN_AUTHOR)

    def parse(self, source, filename: Optional[str] = None) -> BookMetadata:
        """Read title and author. Never raises; falls back to the file name."""
        name = source_name(source, filename)
        try:
            document = self.load(source, filename)
        except ExtractionError as e:
            logger.warning("Could not open %s for metadata: %s", name or self.kind.value, e)
            return self.fallback_metadata(name)
        try:
            return self.read_metadata(document)
        except Exception as e:
            logger.warning("Metadata extraction failed for %s: %s", name or self.kind.value, e)
            return self.fallback_metadata(name)
        finally:
            self.close(document.handle)

    def extract_chapters(
        self,
        source,
        use_smart_detection: bool = config.DEFAULT_USE_SMART_DETECTION,
        skip_non_essential_chapters: bool = config.DEFAULT_SKIP_NON_ESSENTIAL_CHAPTERS,
        max_sub_chapter_depth: int = config.DEFAULT_MAX_SUB_CHAPTER_DEPTH,
        filename: Optional[str] = None,
    ) -> List[Chapter]:
        """Split *source* into an ordered, non-empty list of chapters.

        Raises:
            ParseError: the document could not be opened.
            NoChaptersError: no strategy produced any chapter content.
            ExtractionError: anything else went wrong while extracting.
        """
        options = ExtractionOptions(
            use_smart_detection=use_smart_detection,
            skip_non_essential_chapters=skip_non_essential_chapters,
            max_sub_chapter_depth=max_sub_chapter_depth,
        )
        document = self.load(source, filename)
        try:
            document.units = list(self.read_units(document.handle))
            logger.info(
                "Loaded %s %r: %d units", self.kind.value, document.name, document.total
            )
            sections = self.locate_sections(document, options)
            kept = filter_chapters(sections, options.skip_non_essential_chapters)
            if not kept:
                raise NoChaptersError()
            return number_chapters(
                kept, lambda chapter_id, section: self.build_chapter(document, chapter_id, section)
            )
        except ExtractionError:
            raise
        except Exception as e:
            logger.exception("Chapter extraction failed for %r", document.name)
            raise ExtractionError(f"failed to extract chapters: {e}") from e
        finally:
            self.close(document.handle)

    # --- pipeline -----------------------------------------------------

    def locate_sections(
        self, document: LoadedDocument, options: ExtractionOptions
    ) -> List[Section]:
        """TOC first, then pattern detection or fixed chunks, then fixed chunks."""
        total = document.total

        def render(start, end):
            return self.render(document, start, end)

        def toc():
            boundaries = self.toc_boundaries(document, options)
            return assemble(boundaries, total, render, self.min_chapter_length)

        def pattern():
            boundaries = detect_boundaries(document.units, self.patterns)
            return assemble(boundaries, total, render, self.min_chapter_length)

        def fixed():
            boundaries = chunk_boundaries(total, self.chunk_divisor, self.min_chunk_units)
            return assemble(boundaries, total, render, self.min_chunk_length)

        strategies = [("toc", toc)]
        if options.use_smart_detection:
            strategies.append(("pattern", pattern))
        strategies.append(("fixed", fixed))
        _, sections = first_non_empty(strategies)
        return sections

    def build_chapter(self, document: LoadedDocument, chapter_id: str, section: Section) -> Chapter:
        boundary = section.boundary
        fields: Dict[str, Any] = {"href": boundary.href}
        if boundary.source_kind == BoundarySource.TOC:
            fields["depth"] = boundary.level
        fields.update(self.chapter_fields(document, section))
        return Chapter(
            id=chapter_id,
            title=boundary.title,
            content=section.content,
            source=boundary.source_kind.value,
            **fields,
        )


__all__ = [
    "ChapterExtractor",
    "LoadedDocument",
    "as_path",
    "as_stream",
    "name_stem",
    "read_bytes",
    "read_text",
    "source_name",
]
