"""Records produced and consumed by the chapter-extraction pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

import config


class DocumentKind(str, enum.Enum):
    EPUB = "epub"
    PDF = "pdf"
    WORD = "word"
    HTML = "html"
    TEXT = "text"
    WEB = "web"


class BoundarySource(str, enum.Enum):
    TOC = "toc"
    PATTERN = "pattern"
    FIXED = "fixed"


@dataclass(frozen=True)
class BookMetadata:
    title: str
    author: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "author": self.author}


@dataclass(frozen=True)
class ExtractionOptions:
    """Options passed into every extract_chapters call."""

    use_smart_detection: bool = config.DEFAULT_USE_SMART_DETECTION
    skip_non_essential_chapters: bool = config.DEFAULT_SKIP_NON_ESSENTIAL_CHAPTERS
    max_sub_chapter_depth: int = config.DEFAULT_MAX_SUB_CHAPTER_DEPTH

    def __post_init__(self) -> None:
        if self.max_sub_chapter_depth < 0:
            raise ValueError("max_sub_chapter_depth must be zero or positive")


@dataclass(frozen=True)
class TextUnit:
    """A paragraph-like slice of a document: a page, a paragraph, a section."""

    text: str
    styled: bool = False

    @property
    def first_line(self) -> str:
        stripped = self.text.strip()
        return stripped.split("\n", 1)[0].strip() if stripped else ""


@dataclass(frozen=True)
class ChapterBoundary:
    """A located chapter start. Positions index the adapter's unit sequence."""

    title: str
    position: int
    level: int = 0
    source_kind: BoundarySource = BoundarySource.TOC
    href: Optional[str] = None


@dataclass(frozen=True)
class Section:
    """A boundary resolved to its span ``[start, end)`` and rendered text."""

    boundary: ChapterBoundary
    start: int
    end: int
    content: str

    @property
    def title(self) -> str:
        return self.boundary.title


@dataclass(frozen=True)
class Chapter:
    id: str
    title: str
    content: str
    source: str = BoundarySource.TOC.value
    href: Optional[str] = None
    start_page: Optional[int] = None
    end_page: Optional[int] = None
    page_index: Optional[int] = None
    depth: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "source": self.source,
        }
        optional = {
            "href": self.href,
            "startPage": self.start_page,
            "endPage": self.end_page,
            "pageIndex": self.page_index,
            "depth": self.depth,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


__all__ = [
    "BookMetadata",
    "BoundarySource",
    "Chapter",
    "ChapterBoundary",
    "DocumentKind",
    "ExtractionOptions",
    "Section",
    "TextUnit",
]
