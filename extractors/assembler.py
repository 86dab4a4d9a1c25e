"""Turn located boundaries into contiguous, non-overlapping chapter sections."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .models import BoundarySource, ChapterBoundary, Section

logger = logging.getLogger(__name__)

Renderer = Callable[[int, int], str]
Strategy = Tuple[str, Callable[[], List]]


def normalize_boundaries(boundaries: Iterable[ChapterBoundary]) -> List[ChapterBoundary]:
    """Sort by position and keep only the first boundary seen at each position."""
    ordered = sorted(boundaries, key=lambda b: b.position)
    result: List[ChapterBoundary] = []
    for boundary in ordered:
        if result and result[-1].position == boundary.position:
            logger.debug(
                "Dropping boundary %r: same position as %r", boundary.title, result[-1].title
            )
            continue
        result.append(boundary)
    return result


def spans(boundaries: Sequence[ChapterBoundary], total: int) -> List[Tuple[ChapterBoundary, int, int]]:
    """Pair each boundary with its ``[start, end)`` unit range.

    Boundaries are normalized first, and any at or past *total* are ignored,
    so adjacent spans always share an edge.
    """
    usable = [b for b in normalize_boundaries(boundaries) if 0 <= b.position < total]
    ends = [b.position for b in usable[1:]] + [total]
    return [(b, b.position, end) for b, end in zip(usable, ends)]


def assemble(
    boundaries: Sequence[ChapterBoundary],
    total: int,
    render: Renderer,
    min_length: int,
) -> List[Section]:
    """Render every span and drop the ones too short to be a real chapter."""
    sections: List[Section] = []
    for boundary, start, end in spans(boundaries, total):
        content = (render(start, end) or "").strip()
        if len(content) <= min_length:
            logger.debug(
                "Dropping %r (units %d-%d): %d chars, minimum is %d",
                boundary.title, start, end, len(content), min_length,
            )
            continue
        sections.append(Section(boundary=boundary, start=start, end=end, content=content))
    return sections


def chunk_boundaries(total: int, divisor: int, minimum: int) -> List[ChapterBoundary]:
    """Synthetic "Part N" boundaries splitting *total* units into equal buckets."""
    if total <= 0:
        return []
    size = max(minimum, total // max(divisor, 1), 1)
    return [
        ChapterBoundary(
            title=f"Part {ordinal}",
            position=start,
            source_kind=BoundarySource.FIXED,
        )
        for ordinal, start in enumerate(range(0, total, size), start=1)
    ]


def first_non_empty(strategies: Iterable[Strategy]) -> Tuple[Optional[str], List]:
    """Run *strategies* in order and return the first non-empty result with its name."""
    for name, strategy in strategies:
        result = strategy()
        if result:
            logger.info("Chapter strategy %r produced %d sections", name, len(result))
            return name, result
        logger.debug("Chapter strategy %r produced nothing", name)
    return None, []


def number_chapters(chapters: Sequence, build: Callable) -> List:
    """Call ``build(chapter_id, item)`` for each item, numbering from ``chapter-1``."""
    return [build(f"chapter-{index}", item) for index, item in enumerate(chapters, start=1)]


__all__ = [
    "assemble",
    "chunk_boundaries",
    "first_non_empty",
    "normalize_boundaries",
    "number_chapters",
    "spans",
]
