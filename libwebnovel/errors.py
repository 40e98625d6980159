from typing import Optional


class WebnovelError(Exception):
    """Base class for every error raised by libwebnovel."""


class NoMatchingBackendFound(WebnovelError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No backend has been found capable of handling the url {url}.")


class NetworkError(WebnovelError):
    """Transport-level failure (DNS, TLS, connection reset, timeout)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Network error while fetching {url}: {reason}")


class RateLimitExhausted(WebnovelError):
    """The server kept answering HTTP 429 past the backoff ceiling."""

    def __init__(self, url: str, attempts: int, waited: float):
        self.url = url
        self.attempts = attempts
        self.waited = waited
        super().__init__(
            f"Still rate limited on {url} after {attempts} attempts ({waited:.0f}s spent waiting)"
        )


class RequestFailed(WebnovelError):
    """The server answered with a non-success status."""

    def __init__(self, message: str, status: int, body: str = ""):
        self.message = message
        self.status = status
        self.body = body
        super().__init__(f"{message} (HTTP {status})")


class ParseError(WebnovelError):
    """An expected element is missing from a page, usually because the site changed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"An error occured while parsing the page: {reason}")


class UnknownChapter(WebnovelError):
    def __init__(self, number: int):
        self.number = number
        super().__init__(f"Could not find chapter {number}")


class MissingChapterInformation(WebnovelError):
    """An operation needed a field the chapter does not carry."""

    def __init__(self, message: str, chapter):
        self.message = message
        self.chapter = chapter
        super().__init__(f"{message}: {chapter!r}")


class DateParseError(WebnovelError):
    def __init__(self, value: Optional[str], reason: str = ""):
        self.value = value
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Could not make sense of the date {value!r}{detail}")


class ChapterParseError(WebnovelError):
    """The durable chapter format could not be decoded."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ChapterEncodeError(WebnovelError):
    """A chapter field cannot be written to the durable format without being misread."""

    def __init__(self, field: str, value: str, reason: str = "it must fit on a single line"):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot encode {field} {value!r}: {reason}")
