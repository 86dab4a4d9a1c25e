"""Errors raised by the chapter-extraction pipeline.

Every error subclasses ValueError so callers that already treat ValueError as
"bad input document" keep working.
"""


class ExtractionError(ValueError):
    """Base class for user-visible extraction failures."""


class UnsupportedFormatError(ExtractionError):
    def __init__(self, extension):
        ext = extension or "(none)"
        super().__init__(f"unsupported file format: {ext}")
        self.extension = extension


class ParseError(ExtractionError):
    """The document could not be opened or read at all."""

    def __init__(self, detail):
        super().__init__(f"failed to parse file: {detail}")


class NoChaptersError(ExtractionError):
    def __init__(self, message="no valid chapter content found"):
        super().__init__(message)


class FetchError(ExtractionError):
    """A web page could not be fetched.

    ``kind`` is one of ``invalid_url``, ``unreachable``, ``blocked`` or
    ``failed``; each maps to its own remediation message.
    """

    MESSAGES = {
        "invalid_url": "Please enter a valid http(s) web address.",
        "unreachable": (
            "The page could not be reached. Check the address and your network "
            "connection, then try again."
        ),
        "blocked": (
            "The site refused automated access. Save the page as an HTML file "
            "and upload it instead."
        ),
        "failed": (
            "The page could not be fetched automatically. Save the page as an "
            "HTML file or copy its text and upload that instead."
        ),
    }

    def __init__(self, kind, detail=""):
        message = self.MESSAGES.get(kind, self.MESSAGES["failed"])
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.kind = kind
