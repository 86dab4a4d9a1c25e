"""Web adapter: fetch a page, narrow it to its main content, then treat it as HTML."""

from __future__ import annotations

import logging
from urllib.parse import quote, urlparse

import requests
from bs4 import BeautifulSoup

import config

from .errors import FetchError
from .html_extractor import DROP_TAGS, HtmlExtractor, html_metadata
from .models import BookMetadata, DocumentKind

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": config.WEB_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,zh-CN;q=0.8,zh;q=0.7",
}

BLOCKED_STATUS = {401, 403, 407, 451}

# Removed from the page before the main content is picked
NOISE_SELECTORS = ["aside", ".sidebar", ".navigation", ".menu", ".advertisement", ".ads"]

# Tried in order; the first match is the article body
MAIN_SELECTORS = [
    "main",
    "article",
    ".content",
    ".main-content",
    ".post-content",
    ".entry-content",
    "#content",
    ".container",
]


def normalize_url(url: str) -> str:
    """Add ``https://`` when no scheme is given and validate the result."""
    url = (url or "").strip()
    if not url:
        raise FetchError("invalid_url")
    if "://" not in url:
        url = "https://" + url
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise FetchError("invalid_url", url)
    return url


def classify(error: Exception) -> str:
    if isinstance(error, (requests.ConnectionError, requests.Timeout)):
        return "unreachable"
    if isinstance(error, requests.HTTPError) and error.response is not None:
        if error.response.status_code in BLOCKED_STATUS:
            return "blocked"
    return "failed"


def _fetch_direct(url: str) -> str:
    response = requests.get(url, headers=HEADERS, timeout=config.WEB_FETCH_TIMEOUT)
    response.raise_for_status()
    return response.text


def _fetch_via_proxy(url: str) -> str:
    proxy_url = config.WEB_PROXY_URL.format(url=quote(url, safe=""))
    response = requests.get(proxy_url, headers=HEADERS, timeout=config.WEB_FETCH_TIMEOUT)
    response.raise_for_status()
    return response.json().get("contents") or ""


def fetch_html(url: str) -> str:
    """Direct fetch, then the content proxy, then a classified FetchError."""
    url = normalize_url(url)
    try:
        html = _fetch_direct(url)
        if html.strip():
            return html
        direct_error: Exception = requests.HTTPError("empty response")
    except requests.RequestException as e:
        direct_error = e
    logger.warning("Direct fetch of %s failed (%s), trying proxy", url, direct_error)

    kind = classify(direct_error)
    try:
        html = _fetch_via_proxy(url)
    except (requests.RequestException, ValueError) as e:
        logger.warning("Proxy fetch of %s failed: %s", url, e)
        raise FetchError(kind, str(direct_error)) from e

    if not html.strip():
        raise FetchError("unreachable" if kind == "unreachable" else "blocked", "empty proxy response")
    return html


def main_content(markup: str) -> str:
    """Markup of the page's main content area, or of the whole body."""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup.find_all(DROP_TAGS):
        tag.decompose()
    for selector in NOISE_SELECTORS:
        for tag in soup.select(selector):
            tag.decompose()

    for selector in MAIN_SELECTORS:
        main = soup.select_one(selector)
        if main is not None and main.get_text(strip=True):
            logger.debug("Main content selected by %r", selector)
            return str(main)
    return str(soup.body or soup)


class WebExtractor(HtmlExtractor):
    kind = DocumentKind.WEB

    def open(self, source):
        markup = fetch_html(source)
        try:
            content = main_content(markup)
        except Exception as e:
            logger.warning("Could not narrow %s to its main content: %s", source, e)
            content = markup
        handle = self.handle_for(content, url=normalize_url(source))
        handle.markup = markup
        return handle

    def fallback_metadata(self, name):
        return BookMetadata(config.WEB_TITLE, config.UNKNOWN_AUTHOR)

    def read_metadata(self, document):
        host = urlparse(document.handle.url or "").hostname or config.WEB_TITLE
        return html_metadata(document.handle.markup, host)


__all__ = ["WebExtractor", "fetch_html", "main_content", "normalize_url"]
