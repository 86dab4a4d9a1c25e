"""Chapter-opening pattern tables shared by the format adapters.

Each adapter picks a ``PatternSet``: the base table everyone uses, extended
for the prose-heavy formats, plus an optional layout heuristic for formats
that carry styling (HTML, Word). Patterns are tried in declaration order and
the first hit wins, so earlier entries are the more specific ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple

import config

from .models import TextUnit

CN_NUMERALS = "一二三四五六七八九十百千零〇两"
_NUM = rf"[{CN_NUMERALS}\d]+"

WORD_NUMBERS = (
    "one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve|"
    "thirteen|fourteen|fifteen|sixteen|seventeen|eighteen|nineteen|twenty"
)
_ORDINAL = rf"(?:\d+|[IVXLC]+\b|(?:{WORD_NUMBERS})\b)"

_SENTENCE_END = tuple(".!?,;:。！？，；：\"'”’")
_HEADING_START = re.compile(rf"[A-Z0-9{CN_NUMERALS}]")


@dataclass(frozen=True)
class ChapterPattern:
    name: str
    regex: Pattern
    max_length: Optional[int] = None

    def matches(self, text: str) -> bool:
        if self.max_length is not None and len(text) >= self.max_length:
            return False
        return self.regex.match(text) is not None


def _pattern(name, expr, flags=0, max_length=None) -> ChapterPattern:
    return ChapterPattern(name, re.compile(expr, flags), max_length)


BASE_CHAPTER_PATTERNS: Tuple[ChapterPattern, ...] = (
    _pattern("cn_chapter", rf"第{_NUM}章"),
    _pattern("chapter", r"Chapter\s+\d+", re.IGNORECASE),
    _pattern("cn_section", rf"第{_NUM}节"),
    _pattern("numbered", r"\d+\."),
    _pattern("cn_enumerated", rf"[{CN_NUMERALS}]+、"),
)

SPACED_CHAPTER_PATTERNS: Tuple[ChapterPattern, ...] = (
    _pattern("cn_chapter_spaced", rf"第\s*{_NUM}\s*章"),
    _pattern("chapter_compact", r"Chapter\s*\d+", re.IGNORECASE),
    _pattern("cn_section_spaced", rf"第\s*{_NUM}\s*节"),
)

KEYWORD_CHAPTER_PATTERNS: Tuple[ChapterPattern, ...] = (
    _pattern("chapter_word", rf"Chapter\s+{_ORDINAL}", re.IGNORECASE),
    _pattern(
        "part",
        rf"(?:Part|Section|Step)\s+{_ORDINAL}",
        re.IGNORECASE,
        max_length=config.HEADING_MAX_LENGTH,
    ),
    _pattern(
        "keyword",
        r"(?:Introduction|Overview|Getting Started|Conclusion|Summary)\b",
        re.IGNORECASE,
        max_length=config.HEADING_MAX_LENGTH,
    ),
)

EXTENDED_CHAPTER_PATTERNS = BASE_CHAPTER_PATTERNS + SPACED_CHAPTER_PATTERNS


def looks_like_heading(unit: TextUnit) -> bool:
    """Layout heuristic for units that carry no chapter keyword."""
    text = unit.text.strip()
    if not text or "\n" in text or len(text) >= config.HEADING_MAX_LENGTH:
        return False
    if unit.styled:
        return True
    return (
        len(text) < config.SHORT_HEADING_MAX_LENGTH
        and _HEADING_START.match(text) is not None
        and not text.endswith(_SENTENCE_END)
    )


@dataclass(frozen=True)
class PatternSet:
    patterns: Tuple[ChapterPattern, ...]
    heading_heuristic: bool = False
    title_length: int = 100

    def match(self, unit: TextUnit) -> Optional[str]:
        """Name of the first pattern that opens a chapter at *unit*, if any."""
        text = unit.text.strip()
        if not text:
            return None
        for pattern in self.patterns:
            if pattern.matches(text):
                return pattern.name
        if self.heading_heuristic and looks_like_heading(unit):
            return "heading"
        return None

    def title_for(self, unit: TextUnit) -> str:
        return unit.first_line[: self.title_length].strip()


EPUB_PATTERNS = PatternSet(BASE_CHAPTER_PATTERNS)
PDF_PATTERNS = PatternSet(BASE_CHAPTER_PATTERNS)
TEXT_PATTERNS = PatternSet(EXTENDED_CHAPTER_PATTERNS)
HTML_PATTERNS = PatternSet(
    EXTENDED_CHAPTER_PATTERNS + KEYWORD_CHAPTER_PATTERNS,
    heading_heuristic=True,
    title_length=150,
)
WORD_PATTERNS = HTML_PATTERNS


__all__ = [
    "BASE_CHAPTER_PATTERNS",
    "EXTENDED_CHAPTER_PATTERNS",
    "KEYWORD_CHAPTER_PATTERNS",
    "ChapterPattern",
    "EPUB_PATTERNS",
    "HTML_PATTERNS",
    "PDF_PATTERNS",
    "PatternSet",
    "TEXT_PATTERNS",
    "WORD_PATTERNS",
    "looks_like_heading",
]
