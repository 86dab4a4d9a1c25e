"""Pattern-based chapter detection for documents without a usable TOC."""

from __future__ import annotations

import logging
import re
from functools import reduce
from typing import List, Sequence, Tuple

from .models import BoundarySource, ChapterBoundary, TextUnit
from .patterns import PatternSet
from .text_normalizer import split_paragraphs

logger = logging.getLogger(__name__)


def split_units(text: str) -> List[TextUnit]:
    """Split text into paragraph units.

    Blank lines separate paragraphs; when that yields one unit or none, single
    line breaks are used instead.
    """
    paragraphs = split_paragraphs(text)
    if len(paragraphs) <= 1:
        lines = [line.strip() for line in re.split(r"\n", text or "") if line.strip()]
        if len(lines) > len(paragraphs):
            paragraphs = lines
    return [TextUnit(p) for p in paragraphs]


def fallback_title(ordinal: int) -> str:
    return f"Part {ordinal}"


def _step(
    acc: Tuple[ChapterBoundary, ...], indexed: Tuple[int, TextUnit], patterns: PatternSet
) -> Tuple[ChapterBoundary, ...]:
    index, unit = indexed
    if not unit.text.strip():
        return acc
    matched = patterns.match(unit)
    if matched is None and acc:
        return acc
    if matched is None:
        title = fallback_title(len(acc) + 1)
    else:
        title = patterns.title_for(unit) or fallback_title(len(acc) + 1)
    boundary = ChapterBoundary(
        title=title,
        position=index,
        level=1,
        source_kind=BoundarySource.PATTERN,
    )
    return acc + (boundary,)


def detect_boundaries(units: Sequence[TextUnit], patterns: PatternSet) -> List[ChapterBoundary]:
    """Locate chapter openings in *units*.

    The first non-empty unit always opens a chapter; every later unit matching
    a chapter pattern opens the next one. Content between openings belongs to
    the preceding chapter and is sliced later by the assembler.
    """
    boundaries = reduce(
        lambda acc, indexed: _step(acc, indexed, patterns), enumerate(units), ()
    )
    logger.debug("Pattern detection located %d boundaries in %d units", len(boundaries), len(units))
    return list(boundaries)


__all__ = ["detect_boundaries", "fallback_title", "split_units"]
