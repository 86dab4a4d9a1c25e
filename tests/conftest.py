import json
import os
import tempfile
from pathlib import Path

os.environ.setdefault(
    "UPLOAD_FOLDER", os.path.join(tempfile.gettempdir(), "chapterizer-test-uploads")
)

import fitz
import pytest
import requests
from docx import Document
from ebooklib import epub


def body_text(label: str, sentences: int = 3) -> str:
    """A paragraph long enough to clear every minimum-length gate."""
    sentence = f"This passage belongs to {label} and carries enough words to read as prose."
    return " ".join([sentence] * sentences)


def write_epub(path: Path, titles, toc=None, author="Jane Doe") -> Path:
    """Write an EPUB with one spine document per title.

    ``toc`` receives the list of chapter items and returns ``book.toc``;
    by default every chapter gets a flat TOC entry.
    """
    book = epub.EpubBook()
    book.set_identifier("test-book")
    book.set_title("Sample Book")
    book.set_language("en")
    if author:
        book.add_author(author)

    chapters = []
    for idx, title in enumerate(titles, start=1):
        chapter = epub.EpubHtml(title=title, file_name=f"chap_{idx:02d}.xhtml", lang="en")
        chapter.content = f"<h1>{title}</h1><p>{body_text(title)}</p>"
        book.add_item(chapter)
        chapters.append(chapter)

    book.toc = tuple(chapters) if toc is None else toc(chapters)
    book.spine = ["nav", *chapters]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    epub.write_epub(str(path), book)
    return path


def write_pdf(path: Path, pages, toc=None, metadata=None) -> Path:
    """Write a PDF whose pages hold the given (multi-line) strings."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    if toc:
        doc.set_toc(toc)
    if metadata:
        doc.set_metadata(metadata)
    doc.save(str(path))
    doc.close()
    return path


def pdf_page(first_line: str, label: str) -> str:
    return "\n".join([
        first_line,
        f"Text on the page that belongs to {label}.",
        "It goes on for a few more short lines so that",
        "each page clears the minimum chapter length.",
    ])


@pytest.fixture
def epub_factory(tmp_path):
    def factory(titles, toc=None, name="book.epub", **kwargs):
        return write_epub(tmp_path / name, titles, toc=toc, **kwargs)
    return factory


@pytest.fixture
def pdf_factory(tmp_path):
    def factory(pages, toc=None, metadata=None, name="book.pdf"):
        return write_pdf(tmp_path / name, pages, toc=toc, metadata=metadata)
    return factory


@pytest.fixture
def docx_factory(tmp_path):
    """Build a .docx from ``(kind, text)`` pairs; kind is ``p``, ``h1``, ``h2`` or ``h3``."""
    def factory(blocks, name="book.docx", title=None, author=None):
        doc = Document()
        for kind, text in blocks:
            if kind.startswith("h"):
                doc.add_heading(text, level=int(kind[1]))
            else:
                doc.add_paragraph(text)
        doc.core_properties.title = title or ""
        doc.core_properties.author = author or ""
        path = tmp_path / name
        doc.save(str(path))
        return path
    return factory


def make_response(status=200, text="", url="https://example.com/", payload=None):
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.reason = "OK" if status < 400 else "Error"
    response.encoding = "utf-8"
    body = json.dumps(payload) if payload is not None else text
    response._content = body.encode("utf-8")
    return response


@pytest.fixture
def fake_get(monkeypatch):
    """Route requests.get through a list of canned responses or exceptions.

    Each call pops the next entry; the requested URLs are recorded on
    ``fake_get.calls``.
    """
    class FakeGet:
        def __init__(self):
            self.queue = []
            self.calls = []

        def __call__(self, url, **kwargs):
            self.calls.append(url)
            result = self.queue.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

    fake = FakeGet()
    monkeypatch.setattr(requests, "get", fake)
    return fake
