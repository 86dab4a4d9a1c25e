import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(BASE_DIR, "uploads"))

ALLOWED_EXTENSIONS = {
    "epub", "pdf", "docx", "doc", "html", "htm", "xhtml", "txt", "md", "markdown",
}
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Defaults for every extract_chapters call
DEFAULT_USE_SMART_DETECTION = False
DEFAULT_SKIP_NON_ESSENTIAL_CHAPTERS = True
DEFAULT_MAX_SUB_CHAPTER_DEPTH = 0

# Placeholders used when a document carries no usable metadata
UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"
TEXT_TITLE = "Text Content"
WEB_TITLE = "Web Content"
PLACEHOLDER_CHAPTER_TITLE = "Document Content"
PLACEHOLDER_CHAPTER_BODY = (
    "Document content: {filename}\n\n"
    "This document could not be read directly. Convert it to PDF or EPUB "
    "for better results."
)

# Chapters whose title contains one of these (case-insensitive) are dropped
# when skip_non_essential_chapters is on.
SKIP_CHAPTER_KEYWORDS = [
    "acknowledgments", "acknowledgements", "acknowledgement", "thanks", "gratitude",
    "recommended reading", "further reading", "bibliography", "references",
    "about the author", "about author", "author bio", "biography",
    "praise for", "reviews", "testimonials", "endorsements",
    "title page", "copyright", "dedication", "contents", "table of contents",
    "index", "glossary", "appendix", "appendices", "afterword",
    "notes", "endnotes", "footnotes",
    "connect with hmh", "illustration credits", "image credits", "other titles",
    "preface", "epigraph", "about the book", "also by", "about the cover illustration",
]

# Headings that label page furniture rather than chapters (HTML/Word)
NAVIGATION_HEADING_KEYWORDS = [
    "navigation", "nav", "menu", "sidebar", "footer", "header",
    "table of contents", "contents", "toc",
    "导航", "菜单", "侧边栏", "页脚", "页眉", "目录",
]

# Minimum stripped content length (characters) for a chapter to survive
MIN_CHAPTER_LENGTH = {
    "epub": 100,
    "pdf": 100,
    "word": 100,
    "html": 100,
    "web": 100,
    "text": 50,
}

# Same gate for synthetic "Part N" chunks
MIN_CHUNK_LENGTH = {
    "epub": 100,
    "pdf": 100,
    "word": 200,
    "html": 200,
    "web": 200,
    "text": 50,
}

# Fixed chunking: units per chunk = max(CHUNK_MIN_UNITS, total // CHUNK_DIVISOR)
CHUNK_DIVISOR = {
    "epub": 10,
    "pdf": 10,
    "word": 10,
    "html": 10,
    "web": 10,
    "text": 3,
}
CHUNK_MIN_UNITS = {
    "epub": 1,
    "pdf": 1,
    "word": 3,
    "html": 3,
    "web": 3,
    "text": 1,
}

# A navigation TOC with this many top-level entries or fewer is treated as
# unreliable; spine items are used instead when they yield at least as many
# boundaries.
EPUB_TOC_FALLBACK_MAX_ENTRIES = 3

# Pattern detection
HEADING_MAX_LENGTH = 150
SHORT_HEADING_MAX_LENGTH = 50

# Web fetch
WEB_FETCH_TIMEOUT = float(os.environ.get("WEB_FETCH_TIMEOUT", 20))
WEB_PROXY_URL = os.environ.get("WEB_PROXY_URL", "https://api.allorigins.win/get?url={url}")
WEB_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
