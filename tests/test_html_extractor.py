import pytest

import config
from extractors import NoChaptersError, extract_chapters, get_extractor, parse_document
from extractors.html_extractor import Heading, HtmlExtractor, chapter_level, heading_boundaries

from conftest import body_text


def write_html(tmp_path, body, head="<title>Field Notes Online</title>", name="page.html"):
    path = tmp_path / name
    path.write_text(f"<html><head>{head}</head><body>{body}</body></html>", encoding="utf-8")
    return path


def test_thirty_paragraphs_without_headings(tmp_path):
    body = "".join(f"<p>{body_text(f'paragraph {n}', sentences=1)}</p>" for n in range(1, 31))
    path = write_html(tmp_path, body)

    chapters = extract_chapters(str(path), use_smart_detection=False)

    assert [c.title for c in chapters] == [f"Part {n}" for n in range(1, 11)]
    assert all(c.source == "fixed" for c in chapters)
    assert "belongs to paragraph 1 " in chapters[0].content
    assert "belongs to paragraph 4 " in chapters[1].content


def chapter_page():
    return (
        "<nav><h2>Navigation</h2><p>Home | About</p></nav>"
        "<h1>Field Notes Online</h1>"
        f"<h2>Spring Survey</h2><p>{body_text('spring')}</p>"
        f"<h2>Summer Survey</h2><p>{body_text('summer')}</p>"
        f"<h3>Coastal Sites</h3><p>{body_text('coast')}</p>"
        f"<h2>Autumn Survey</h2><p>{body_text('autumn')}</p>"
        "<footer><p>Copyright 2024</p></footer>"
    )


def test_repeated_heading_level_defines_chapters(tmp_path):
    path = write_html(tmp_path, chapter_page())

    chapters = extract_chapters(str(path))

    # The lone h1 only spans its own text and is dropped by the length gate
    assert [c.title for c in chapters] == ["Spring Survey", "Summer Survey", "Autumn Survey"]
    assert "belongs to coast" in chapters[1].content
    assert all("Home | About" not in c.content for c in chapters)
    assert all("Copyright 2024" not in c.content for c in chapters)


def test_depth_includes_sub_headings(tmp_path):
    path = write_html(tmp_path, chapter_page())

    chapters = extract_chapters(str(path), max_sub_chapter_depth=1)

    assert [c.title for c in chapters] == [
        "Spring Survey", "Summer Survey", "Coastal Sites", "Autumn Survey",
    ]
    assert [c.depth for c in chapters] == [0, 0, 1, 0]
    assert "belongs to coast" not in chapters[1].content


def test_heading_helpers():
    assert chapter_level([1, 2, 2, 3]) == 2
    assert chapter_level([3, 1, 2]) == 1
    headings = [
        Heading(1, "Contents", 0),
        Heading(2, "One", 1),
        Heading(2, "Two", 5),
        Heading(4, "Deep", 7),
    ]
    found = heading_boundaries(headings, max_depth=1)
    assert [b.title for b in found] == ["One", "Two"]


def test_smart_detection_on_bold_headings(tmp_path):
    body = (
        f"<p><strong>The Valley</strong></p><p>{body_text('valley')}</p>"
        f"<p><strong>The Ridge</strong></p><p>{body_text('ridge')}</p>"
    )
    path = write_html(tmp_path, body)

    chapters = extract_chapters(str(path), use_smart_detection=True)

    assert [c.title for c in chapters] == ["The Valley", "The Ridge"]
    assert all(c.source == "pattern" for c in chapters)


def test_empty_page_raises(tmp_path):
    path = write_html(tmp_path, "")
    with pytest.raises(NoChaptersError):
        extract_chapters(str(path))


def test_metadata(tmp_path):
    head = '<title>Field Notes Online</title><meta name="author" content="R. Birder">'
    path = write_html(tmp_path, chapter_page(), head=head)
    metadata = parse_document(str(path))
    assert (metadata.title, metadata.author) == ("Field Notes Online", "R. Birder")


def test_metadata_fallbacks(tmp_path):
    body = '<h1>Heading Title</h1><p class="author">Pat Smith</p>'
    metadata = HtmlExtractor().parse(str(write_html(tmp_path, body, head="")))
    assert (metadata.title, metadata.author) == ("Heading Title", "Pat Smith")

    bare = HtmlExtractor().parse(str(write_html(tmp_path, "<p>x</p>", head="", name="notes-page.htm")))
    assert (bare.title, bare.author) == ("notes-page", config.UNKNOWN_AUTHOR)


def test_html_source_as_bytes():
    markup = f"<h2>One</h2><p>{body_text('one')}</p><h2>Two</h2><p>{body_text('two')}</p>".encode()
    chapters = get_extractor("html").extract_chapters(markup)
    assert [c.title for c in chapters] == ["One", "Two"]
