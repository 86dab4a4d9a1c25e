import pytest

from extractors.assembler import (
    assemble,
    chunk_boundaries,
    first_non_empty,
    normalize_boundaries,
    number_chapters,
    spans,
)
from extractors.detector import detect_boundaries, split_units
from extractors.filters import filter_chapters, is_navigation_heading, should_skip
from extractors.models import BoundarySource, ChapterBoundary, ExtractionOptions, TextUnit
from extractors.patterns import HTML_PATTERNS, PDF_PATTERNS, TEXT_PATTERNS


def units(*texts):
    return [TextUnit(t) for t in texts]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("第3章 开始", "cn_chapter"),
        ("Chapter 12: The End", "chapter"),
        ("chapter 2", "chapter"),
        ("第二节", "cn_section"),
        ("4. Setup", "numbered"),
        ("三、方法", "cn_enumerated"),
        ("Ordinary prose that opens no chapter.", None),
    ],
)
def test_base_patterns(text, expected):
    assert PDF_PATTERNS.match(TextUnit(text)) == expected


def test_first_declared_pattern_wins():
    # "第1章" would also satisfy the spaced variant
    assert TEXT_PATTERNS.match(TextUnit("第1章")) == "cn_chapter"
    assert TEXT_PATTERNS.match(TextUnit("第 1 章")) == "cn_chapter_spaced"


def test_patterns_only_match_at_unit_start():
    assert PDF_PATTERNS.match(TextUnit("As shown in Chapter 3, things happen.")) is None


def test_html_keywords_and_heading_heuristic():
    assert HTML_PATTERNS.match(TextUnit("Getting Started")) == "keyword"
    assert HTML_PATTERNS.match(TextUnit("Part Two")) == "part"
    assert HTML_PATTERNS.match(TextUnit("Some Short Heading")) == "heading"
    assert HTML_PATTERNS.match(TextUnit("a bold lowercase line", styled=True)) == "heading"
    assert HTML_PATTERNS.match(TextUnit("This is an ordinary sentence.")) is None
    assert PDF_PATTERNS.match(TextUnit("Some Short Heading")) is None


def test_split_units_falls_back_to_single_newlines():
    assert [u.text for u in split_units("a\n\nb\n\nc")] == ["a", "b", "c"]
    assert [u.text for u in split_units("a\nb\nc")] == ["a", "b", "c"]
    assert split_units("") == []


def test_first_unit_always_opens_a_chapter():
    found = detect_boundaries(units("Preamble text.", "more", "Chapter 1", "body"), PDF_PATTERNS)
    assert [(b.title, b.position) for b in found] == [("Part 1", 0), ("Chapter 1", 2)]
    assert all(b.source_kind == BoundarySource.PATTERN for b in found)


def test_detect_boundaries_is_pure():
    sample = units("Chapter 1", "body", "Chapter 2", "body")
    assert detect_boundaries(sample, PDF_PATTERNS) == detect_boundaries(sample, PDF_PATTERNS)


def test_detect_boundaries_truncates_titles():
    long_line = "Chapter 1 " + "x" * 300
    [boundary] = detect_boundaries(units(long_line), PDF_PATTERNS)
    assert len(boundary.title) <= 100


def test_normalize_boundaries_sorts_and_dedupes():
    raw = [
        ChapterBoundary("B", 5),
        ChapterBoundary("A", 0),
        ChapterBoundary("B again", 5),
    ]
    assert [b.title for b in normalize_boundaries(raw)] == ["A", "B"]


def test_spans_are_contiguous():
    boundaries = [ChapterBoundary("x", p) for p in (7, 0, 3, 3, 12)]
    result = spans(boundaries, total=20)
    assert [(s, e) for _, s, e in result] == [(0, 3), (3, 7), (7, 12), (12, 20)]
    for (_, _, end), (_, start, _) in zip(result, result[1:]):
        assert end == start


def test_assemble_applies_the_minimum_length_gate():
    texts = ["short", "a" * 150, "b" * 150]

    def render(start, end):
        return "\n\n".join(texts[start:end])

    boundaries = [ChapterBoundary(str(i), i) for i in range(3)]
    sections = assemble(boundaries, total=3, render=render, min_length=100)
    assert [s.title for s in sections] == ["1", "2"]
    assert all(len(s.content) > 100 for s in sections)


def test_chunk_boundaries():
    assert [b.position for b in chunk_boundaries(30, 10, 3)] == list(range(0, 30, 3))
    assert [b.title for b in chunk_boundaries(30, 10, 3)][:2] == ["Part 1", "Part 2"]
    assert len(chunk_boundaries(5, 10, 1)) == 5
    assert len(chunk_boundaries(9, 3, 1)) == 3
    assert chunk_boundaries(0, 10, 1) == []


def test_first_non_empty_returns_first_hit_in_order():
    calls = []

    def strategy(name, result):
        def run():
            calls.append(name)
            return result
        return name, run

    name, result = first_non_empty(
        [strategy("toc", []), strategy("pattern", [1]), strategy("fixed", [2])]
    )
    assert (name, result) == ("pattern", [1])
    assert calls == ["toc", "pattern"]
    assert first_non_empty([strategy("toc", [])]) == (None, [])


def test_number_chapters():
    assert number_chapters(["a", "b"], lambda cid, item: (cid, item)) == [
        ("chapter-1", "a"),
        ("chapter-2", "b"),
    ]


@pytest.mark.parametrize(
    "title",
    ["Acknowledgments", "ACKNOWLEDGEMENTS", "Select Bibliography", "Index", "About the Author"],
)
def test_should_skip_non_essential_titles(title):
    assert should_skip(title)


@pytest.mark.parametrize("title", ["Background", "Chapter 1", "The Long Road Home", ""])
def test_should_skip_keeps_essential_titles(title):
    assert not should_skip(title)


def test_filter_chapters_respects_the_switch():
    chapters = [ChapterBoundary("Chapter 1", 0), ChapterBoundary("Acknowledgments", 1)]
    assert [c.title for c in filter_chapters(chapters, enabled=True)] == ["Chapter 1"]
    assert len(filter_chapters(chapters, enabled=False)) == 2


def test_navigation_heading_denylist():
    assert is_navigation_heading("Navigation")
    assert is_navigation_heading("Table of Contents")
    assert is_navigation_heading("目录")
    assert not is_navigation_heading("Navajo Nation")
    assert not is_navigation_heading("Chapter 1")


def test_negative_depth_is_rejected():
    with pytest.raises(ValueError):
        ExtractionOptions(max_sub_chapter_depth=-1)
