import pytest
from ebooklib import epub

import config
from extractors import NoChaptersError, extract_chapters, parse_document
from extractors.epub_extractor import EpubExtractor, normalize_href, resolve_href


TEN_TITLES = [f"Chapter {n}: The Journey Part {n}" for n in range(1, 11)]


def test_ten_entry_toc_yields_ten_chapters_in_order(epub_factory):
    path = epub_factory(TEN_TITLES)
    chapters = extract_chapters(str(path), max_sub_chapter_depth=0)

    assert [c.title for c in chapters] == TEN_TITLES
    assert [c.id for c in chapters] == [f"chapter-{n}" for n in range(1, 11)]
    assert all(c.source == "toc" for c in chapters)
    assert chapters[0].href == "chap_01.xhtml"
    assert all(c.depth == 0 for c in chapters)


def test_content_comes_from_the_spine_document(epub_factory):
    path = epub_factory(TEN_TITLES)
    chapters = extract_chapters(str(path))
    assert chapters[2].content.startswith(TEN_TITLES[2])
    assert "belongs to Chapter 3" in chapters[2].content
    assert "belongs to Chapter 4" not in chapters[2].content


def test_sparse_toc_falls_back_to_spine_items(epub_factory):
    titles = [f"Section {n} of the book" for n in range(1, 9)]
    path = epub_factory(titles, toc=lambda chapters: (chapters[0], chapters[4]))

    chapters = extract_chapters(str(path))

    assert len(chapters) == 8
    # Spine items without a TOC label take their document <title>
    assert [c.title for c in chapters] == titles


def test_sparse_toc_kept_when_spine_is_smaller(epub_factory):
    extractor = EpubExtractor()
    path = epub_factory(["Only Chapter Here"])
    chapters = extractor.extract_chapters(str(path))
    assert [c.title for c in chapters] == ["Only Chapter Here"]


def _nested_toc(chapters):
    return tuple(
        (epub.Section(f"Book {n}", href=chapters[2 * n - 2].file_name), tuple(chapters[2 * n - 2: 2 * n]))
        for n in range(1, 5)
    )


@pytest.mark.parametrize("depth,expected_count", [(0, 4), (1, 8), (3, 8)])
def test_depth_bound(epub_factory, depth, expected_count):
    titles = [f"Story {n}" for n in range(1, 9)]
    path = epub_factory(titles, toc=_nested_toc)

    chapters = extract_chapters(str(path), max_sub_chapter_depth=depth)

    assert len(chapters) == expected_count
    assert all(c.depth <= depth for c in chapters)
    if depth == 0:
        assert [c.title for c in chapters] == ["Book 1", "Book 2", "Book 3", "Book 4"]
        # A top-level entry spans both of its sub-item documents
        assert "belongs to Story 1" in chapters[0].content
        assert "belongs to Story 2" in chapters[0].content
    else:
        assert [c.title for c in chapters] == titles


def test_skip_list_applies_to_toc_titles(epub_factory):
    titles = ["Opening", "Acknowledgments", "Middle", "Ending", "Bibliography"]
    path = epub_factory(titles)

    kept = extract_chapters(str(path), skip_non_essential_chapters=True)
    assert [c.title for c in kept] == ["Opening", "Middle", "Ending"]
    assert [c.id for c in kept] == ["chapter-1", "chapter-2", "chapter-3"]

    everything = extract_chapters(str(path), skip_non_essential_chapters=False)
    assert [c.title for c in everything] == titles


def test_bytes_and_path_sources_agree(epub_factory):
    path = epub_factory(TEN_TITLES)
    extractor = EpubExtractor()
    assert extractor.extract_chapters(path.read_bytes()) == extractor.extract_chapters(str(path))


def test_extraction_is_idempotent(epub_factory):
    path = epub_factory(TEN_TITLES)
    assert extract_chapters(str(path)) == extract_chapters(str(path))


def test_minimum_length_gate(epub_factory):
    path = epub_factory(TEN_TITLES)
    for chapter in extract_chapters(str(path)):
        assert len(chapter.content) > config.MIN_CHAPTER_LENGTH["epub"]


def test_metadata(epub_factory):
    path = epub_factory(TEN_TITLES)
    metadata = parse_document(str(path))
    assert metadata.title == "Sample Book"
    assert metadata.author == "Jane Doe"


def test_metadata_author_placeholder(epub_factory):
    path = epub_factory(TEN_TITLES, author=None)
    assert parse_document(str(path)).author == config.UNKNOWN_AUTHOR


def test_corrupt_epub_metadata_falls_back_to_file_name(tmp_path):
    path = tmp_path / "Broken Book.epub"
    path.write_bytes(b"not a zip archive")
    metadata = parse_document(str(path))
    assert metadata.title == "Broken Book"
    assert metadata.author == config.UNKNOWN_AUTHOR


def test_corrupt_epub_fails_to_parse(tmp_path):
    path = tmp_path / "broken.epub"
    path.write_bytes(b"not a zip archive")
    with pytest.raises(ValueError, match="failed to parse file"):
        extract_chapters(str(path))


def test_every_chapter_filtered_raises(epub_factory):
    path = epub_factory(["Index", "Glossary"])
    with pytest.raises(NoChaptersError, match="no valid chapter content found"):
        extract_chapters(str(path))


def test_href_resolution():
    names = ["OEBPS/Text/chap 1.xhtml", "OEBPS/Text/chap_02.xhtml"]
    assert normalize_href("./Text/chap%201.xhtml#p3") == "Text/chap 1.xhtml"
    assert resolve_href("Text/chap%201.xhtml#start", names) == 0
    assert resolve_href("chap_02.xhtml", names) == 1
    assert resolve_href("missing.xhtml", names) is None
    assert resolve_href("#only-a-fragment", names) is None
