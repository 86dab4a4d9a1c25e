"""Markup stripping and whitespace normalization shared by every adapter.

Text leaves this module as paragraphs separated by a blank line, with runs of
spaces collapsed inside each paragraph. The DOM path uses BeautifulSoup; when
it raises, the same input goes through a regex tag strip instead so callers
always get text back.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List

from bs4 import BeautifulSoup

from .models import TextUnit

logger = logging.getLogger(__name__)

# Tags whose text becomes one paragraph each (leaf blocks only)
BLOCK_TAGS = [
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote", "div",
    "pre", "td", "th", "dt", "dd", "section", "article", "figcaption",
]
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

# Removed before any text is read
DEFAULT_DROP_TAGS = ["script", "style", "noscript", "template"]

ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}

_ENTITY_RE = re.compile("|".join(re.escape(k) for k in ENTITIES))
_STYLE_EMPHASIS = re.compile(
    r"font-weight\s*:\s*(bold|[6-9]00)|font-size\s*:|text-align\s*:\s*center",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class HtmlBlock:
    tag: str
    text: str
    styled: bool = False

    @property
    def heading_level(self) -> int:
        if self.tag in HEADING_TAGS:
            return int(self.tag[1])
        return 0


def decode_entities(text: str) -> str:
    return _ENTITY_RE.sub(lambda m: ENTITIES[m.group(0)], text)


def collapse_spaces(text: str) -> str:
    """Collapse every whitespace run, newlines included, to one space."""
    return re.sub(r"\s+", " ", text.replace("\xa0", " ")).strip()


def collapse_whitespace(text: str) -> str:
    """Collapse spaces inside lines and keep at most one blank line between paragraphs."""
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")
    text = re.sub(r"[\t\f\v ]+", " ", text)
    text = re.sub(r" ?\n ?", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def split_paragraphs(text: str) -> List[str]:
    return [p.strip() for p in re.split(r"\n\s*\n", text or "") if p.strip()]


def join_paragraphs(paragraphs: Iterable[str]) -> str:
    return "\n\n".join(p.strip() for p in paragraphs if p and p.strip())


def regex_strip_tags(markup: str) -> str:
    """Tag strip used when the DOM parser gives up."""
    text = re.sub(r"<\?xml[^>]*\?>", "", markup, flags=re.IGNORECASE)
    text = re.sub(r"<!DOCTYPE[^>]*>", "", text, flags=re.IGNORECASE)
    text = re.sub(r"<!--.*?-->", "", text, flags=re.DOTALL)
    text = re.sub(
        r"<(script|style|noscript|template)\b[^>]*>.*?</\1\s*>", "",
        text, flags=re.DOTALL | re.IGNORECASE,
    )
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(
        r"</(p|div|h[1-6]|li|blockquote|pre|tr|section|article)\s*>", "\n\n",
        text, flags=re.IGNORECASE,
    )
    text = re.sub(r"<[^>]+>", " ", text)
    return collapse_whitespace(decode_entities(text))


def _is_styled(tag) -> bool:
    if tag.find_parent("center") is not None or tag.name == "center":
        return True
    if _STYLE_EMPHASIS.search(tag.get("style") or ""):
        return True
    own_text = tag.get_text(" ", strip=True)
    for child in tag.find_all(["b", "strong", "span", "font"]):
        if child.get_text(" ", strip=True) != own_text:
            continue
        if child.name in ("b", "strong"):
            return True
        if _STYLE_EMPHASIS.search(child.get("style") or ""):
            return True
    return False


def _dom_blocks(markup: str, drop_tags: Iterable[str]) -> List[HtmlBlock]:
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup.find_all(list(drop_tags)):
        tag.decompose()

    blocks: List[HtmlBlock] = []
    for tag in soup.find_all(BLOCK_TAGS):
        if tag.find(BLOCK_TAGS) is not None:
            continue
        text = collapse_spaces(tag.get_text(separator=" ", strip=True))
        if text:
            blocks.append(HtmlBlock(tag=tag.name, text=text, styled=_is_styled(tag)))

    if not blocks:
        root = soup.body or soup
        for line in root.get_text(separator="\n").split("\n"):
            line = collapse_spaces(line)
            if line:
                blocks.append(HtmlBlock(tag="p", text=line))
    return blocks


def parse_html_blocks(markup, drop_tags: Iterable[str] = DEFAULT_DROP_TAGS) -> List[HtmlBlock]:
    """Split markup into leaf text blocks in document order."""
    if isinstance(markup, bytes):
        markup = markup.decode("utf-8", errors="ignore")
    if not markup or not markup.strip():
        return []
    try:
        return _dom_blocks(markup, drop_tags)
    except Exception as e:
        logger.warning("DOM parse failed, falling back to regex strip: %s", e)
        return [HtmlBlock(tag="p", text=p) for p in split_paragraphs(regex_strip_tags(markup))]


def html_to_units(markup, drop_tags: Iterable[str] = DEFAULT_DROP_TAGS) -> List[TextUnit]:
    return [TextUnit(b.text, b.styled) for b in parse_html_blocks(markup, drop_tags)]


def html_to_text(markup, drop_tags: Iterable[str] = DEFAULT_DROP_TAGS) -> str:
    return join_paragraphs(b.text for b in parse_html_blocks(markup, drop_tags))


def normalize(raw, keep_paragraphs: bool = True) -> str:
    """Strip markup, decode entities and collapse whitespace.

    With ``keep_paragraphs`` paragraphs stay separated by a blank line;
    otherwise the result is a single line.
    """
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="ignore")
    if "<" in raw and re.search(r"<[A-Za-z!/?][^>]*>", raw):
        text = html_to_text(raw)
    else:
        text = collapse_whitespace(decode_entities(raw))
    if keep_paragraphs:
        return join_paragraphs(collapse_spaces(p) for p in split_paragraphs(text))
    return collapse_spaces(text)


__all__ = [
    "BLOCK_TAGS",
    "HEADING_TAGS",
    "HtmlBlock",
    "collapse_spaces",
    "collapse_whitespace",
    "decode_entities",
    "html_to_text",
    "html_to_units",
    "join_paragraphs",
    "normalize",
    "parse_html_blocks",
    "regex_strip_tags",
    "split_paragraphs",
]
